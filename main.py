from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from database import Base, engine
from models import User, Project, ProjectLike, Follow, HandleReservation, MediaCleanupTask  # noqa: F401 (register tables)
from routes import (
    auth,
    users,
    follows,
    projects,
    files,
    stats,
    maintenance,
)
from services.errors import GraphStoreError
from utils.logger import setup_api_logger

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Wholspace API (Builders, Projects, Follows, Likes)")

# setup file logger for API failures
api_logger = setup_api_logger()


async def _request_body(request: Request) -> str:
    try:
        body = await request.body()
    except Exception:
        body = b""
    return body.decode('utf-8', errors='replace')


@app.exception_handler(GraphStoreError)
async def graph_store_exception_handler(request: Request, exc: GraphStoreError):
    api_logger.warning("%s on %s %s | status=%s | body=%s | detail=%s",
                       type(exc).__name__, request.method, request.url.path, exc.status_code,
                       await _request_body(request), exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(OperationalError)
async def database_exception_handler(request: Request, exc: OperationalError):
    api_logger.error("Database unavailable on %s %s | error=%s", request.method, request.url.path, str(exc))
    return JSONResponse(status_code=503, content={"detail": "Database unavailable"})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    api_logger.warning("HTTPException on %s %s | status=%s | body=%s | detail=%s",
                       request.method, request.url.path, exc.status_code,
                       await _request_body(request), str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    # log request info and stacktrace
    api_logger.error("Unhandled exception on %s %s | body=%s | error=%s",
                     request.method, request.url.path, await _request_body(request), str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(follows.router)
app.include_router(projects.router)
app.include_router(files.router)
app.include_router(stats.router)
app.include_router(maintenance.router)
