from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from routes.auth import get_current_identity
from schemas import ProjectCreate, ProjectRead, ProjectUpdate, ProjectPage, ProjectOptions, LikeResult
from services.identity import Identity
from services.listings import (
    get_featured_projects,
    get_latest_projects,
    get_projects_by_category,
    get_projects_by_tool,
)
from services.projects import (
    CATEGORIES,
    TOOLS,
    create_project,
    delete_project,
    get_project_by_id,
    is_liked,
    like_project,
    unlike_project,
    update_project,
)
from services.storage import BlobStorage, get_storage

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.post("", response_model=ProjectRead, status_code=201)
def create(
    payload: ProjectCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Create a project owned by the caller.
    """
    return create_project(db, identity.uid, payload.model_dump())


@router.get("/latest", response_model=ProjectPage)
def latest(
    page_size: int = Query(12, ge=1, le=100),
    cursor: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Published projects, newest first. Pass the returned cursor to get the next page.
    """
    page = get_latest_projects(db, page_size, cursor)
    return ProjectPage(
        items=[ProjectRead.model_validate(project) for project in page["items"]],
        cursor=page["cursor"],
        has_more=page["has_more"],
    )


@router.get("/featured", response_model=List[ProjectRead])
def featured(limit: int = Query(6, ge=1, le=50), db: Session = Depends(get_db)):
    return get_featured_projects(db, limit)


@router.get("/options", response_model=ProjectOptions)
def options():
    return ProjectOptions(tools=TOOLS, categories=CATEGORIES)


@router.get("/category/{category}", response_model=List[ProjectRead])
def by_category(category: str, limit: int = Query(12, ge=1, le=100), db: Session = Depends(get_db)):
    return get_projects_by_category(db, category, limit)


@router.get("/tool/{tool}", response_model=List[ProjectRead])
def by_tool(tool: str, limit: int = Query(12, ge=1, le=100), db: Session = Depends(get_db)):
    return get_projects_by_tool(db, tool, limit)


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(project_id: str, increment_view: bool = False, db: Session = Depends(get_db)):
    """
    Get a specific project by ID, optionally counting a view.
    """
    project = get_project_by_id(db, project_id, increment_view)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.patch("/{project_id}", response_model=ProjectRead)
def update(
    project_id: str,
    project_update: ProjectUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Update a project (only the owner can update).
    """
    return update_project(db, project_id, identity.uid, project_update.model_dump(exclude_unset=True))


@router.delete("/{project_id}", status_code=204)
def delete(
    project_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage)
):
    """
    Delete a project (only the owner can delete).
    """
    delete_project(db, storage, project_id, identity.uid)
    return None


# ---------- Likes ----------

@router.post("/{project_id}/like", response_model=LikeResult)
def like(
    project_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    changed = like_project(db, project_id, identity.uid)
    return LikeResult(liked=True, changed=changed)


@router.delete("/{project_id}/like", response_model=LikeResult)
def unlike(
    project_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    changed = unlike_project(db, project_id, identity.uid)
    return LikeResult(liked=False, changed=changed)


@router.get("/{project_id}/is-liked")
def check_if_liked(
    project_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Check if the caller has liked this project.
    """
    return {"is_liked": is_liked(db, project_id, identity.uid)}
