"""
tests/conftest.py: Shared pytest fixtures.

Fixtures:
    engine       : Fresh in-memory SQLite database per test (StaticPool).
    db           : Session bound to `engine`, used by service-level tests.
    storage      : LocalBlobStorage rooted in tmp_path.
    make_user    : Factory that signs a user in (identity sync) and optionally sets a handle.
    client       : FastAPI TestClient with get_db, identity and storage overridden.
    auth         : Builds the Authorization header for a uid (the test token *is* the uid).
"""
import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="wholspace-logs-"))
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="wholspace-uploads-"))

import pytest
from fastapi import Depends, HTTPException
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.User import User
from routes.auth import get_current_identity, get_optional_identity, security
from services.errors import StoreUnavailable
from services.identity import Identity
from services.storage import BlobStorage, LocalBlobStorage, get_storage
from services.users import sync_identity, update_user_profile


class FailingStorage(BlobStorage):
    """Blob store whose deletes always fail, to exercise best-effort cleanup."""

    def __init__(self):
        self.delete_calls = 0

    def upload(self, path, content, content_type):
        raise StoreUnavailable("bucket offline")

    def delete_prefix(self, prefix):
        self.delete_calls += 1
        raise StoreUnavailable("bucket offline")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def storage(tmp_path):
    return LocalBlobStorage(tmp_path / "uploads")


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def make_user(db):
    def _make(uid, display_name=None, handle=None):
        sync_identity(db, Identity(
            uid=uid,
            email=f"{uid}@example.com",
            display_name=display_name if display_name is not None else uid.title(),
            email_verified=True,
        ))
        if handle:
            update_user_profile(db, uid, {"handle": handle})
        return db.get(User, uid)
    return _make


@pytest.fixture
def client(session_factory, storage):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_identity(credentials=Depends(security)):
        if credentials is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        uid = credentials.credentials
        return Identity(uid=uid, email=f"{uid}@example.com", display_name=uid.title(), email_verified=True)

    def override_optional_identity(credentials=Depends(security)):
        if credentials is None:
            return None
        return Identity(uid=credentials.credentials, email_verified=True)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_identity] = override_identity
    app.dependency_overrides[get_optional_identity] = override_optional_identity
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    def _headers(uid):
        return {"Authorization": f"Bearer {uid}"}
    return _headers
