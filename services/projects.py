"""
Projects and likes.

Creating or deleting a project and liking or unliking one are the operations
that move the owner's project_count / total_likes and the project's likes, so
each of them is issued as one atomic batch together with its counter deltas.
"""
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import server_timestamp
from models.Project import Project
from models.ProjectLike import ProjectLike
from models.User import User
from services.batch import atomic_batch, increment_user_counters
from services.errors import NotFound, Unauthorized
from services.media_cleanup import process_cleanup, queue_cleanup
from services.storage import BlobStorage, project_prefix
from utils.logger import setup_api_logger

logger = setup_api_logger()

TOOLS = [
    "Lovable",
    "Bolt",
    "v0",
    "Cursor",
    "Replit",
    "Claude",
    "ChatGPT",
    "GitHub Copilot",
    "Other",
]

CATEGORIES = [
    "SaaS",
    "Landing Page",
    "Dashboard",
    "E-commerce",
    "Mobile App",
    "AI Tool",
    "Portfolio",
    "Blog",
    "Social",
    "Productivity",
    "Developer Tool",
    "Other",
]

# Owner-editable fields; likes, views and liked_by are never accepted here
CONTENT_FIELDS = {
    "title",
    "description",
    "short_description",
    "demo_url",
    "github_url",
    "thumbnail_url",
    "screenshots",
    "tool",
    "category",
    "tags",
    "is_published",
}


def _content(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if key in CONTENT_FIELDS and value is not None}


def create_project(db: Session, owner_id: str, data: Dict[str, Any]) -> Project:
    """Insert a project and bump the owner's project_count in one batch."""
    now = server_timestamp()
    project = Project(id=uuid.uuid4().hex, user_id=owner_id, created_at=now, updated_at=now, **_content(data))

    with atomic_batch(db):
        increment_user_counters(db, owner_id, project_count=1)
        db.add(project)
        db.flush()

    logger.info("User %s created project %s", owner_id, project.id)
    return project


def get_project_by_id(db: Session, project_id: str, increment_view: bool = False) -> Optional[Project]:
    project = db.get(Project, project_id)
    if project is None:
        return None

    if increment_view:
        with atomic_batch(db):
            db.execute(
                update(Project)
                .where(Project.id == project_id)
                .values(views=Project.views + 1)
                .execution_options(synchronize_session=False)
            )
    return project


def get_projects_by_user(db: Session, user_id: str, include_unpublished: bool = False) -> List[Project]:
    query = db.query(Project).filter(Project.user_id == user_id)
    if not include_unpublished:
        query = query.filter(Project.is_published == True)
    return query.order_by(Project.created_at.desc(), Project.id.desc()).all()


def update_project(db: Session, project_id: str, requester_id: str, data: Dict[str, Any]) -> Project:
    """Merge owner-editable fields and stamp updated_at. Counters are untouched."""
    project = db.get(Project, project_id)
    if project is None:
        raise NotFound("Project not found")
    if project.user_id != requester_id:
        raise Unauthorized("Not authorized to update this project")

    with atomic_batch(db):
        for field, value in _content(data).items():
            setattr(project, field, value)
        project.updated_at = server_timestamp()

    return project


def delete_project(db: Session, storage: BlobStorage, project_id: str, requester_id: str) -> None:
    """
    Delete a project owned by `requester_id`.

    The project row, its likes, the owner's counter deltas and the media
    cleanup task commit together. Stored files are then removed best-effort;
    a failure leaves the task pending for run_pending_cleanups.
    """
    project = db.get(Project, project_id)
    if project is None or project.user_id != requester_id:
        raise Unauthorized("Project not found or unauthorized")

    owner_id = project.user_id

    with atomic_batch(db):
        # Likes committed since the project was loaded must come off total_likes too
        likes = db.execute(
            select(Project.likes).where(Project.id == project_id).with_for_update()
        ).scalar_one_or_none()
        if likes is None:
            raise NotFound("Project not found")
        task = queue_cleanup(db, project_id, project_prefix(owner_id, project_id))
        increment_user_counters(db, owner_id, project_count=-1, total_likes=-likes)
        db.delete(project)
        db.flush()

    logger.info("User %s deleted project %s (likes=%s)", owner_id, project_id, likes)
    process_cleanup(db, storage, task)


def like_project(db: Session, project_id: str, user_id: str) -> bool:
    """
    Like a project. Returns False when the user had already liked it.
    """
    project = db.get(Project, project_id)
    if project is None:
        raise NotFound("Project not found")
    if db.get(User, user_id) is None:
        raise NotFound("User not found")
    if db.get(ProjectLike, (project_id, user_id)) is not None:
        return False  # Already liked

    try:
        with atomic_batch(db):
            _bump_project_likes(db, project_id, 1)
            increment_user_counters(db, project.user_id, total_likes=1)
            db.add(ProjectLike(project_id=project_id, user_id=user_id))
            db.flush()
    except IntegrityError:
        logger.info("Concurrent like of %s by %s lost the race, treated as no-op", project_id, user_id)
        return False
    return True


def unlike_project(db: Session, project_id: str, user_id: str) -> bool:
    """
    Remove a like. Returns False when the user had not liked the project.
    """
    project = db.get(Project, project_id)
    if project is None:
        raise NotFound("Project not found")
    like = db.get(ProjectLike, (project_id, user_id))
    if like is None:
        return False  # Not liked

    with atomic_batch(db):
        _bump_project_likes(db, project_id, -1)
        increment_user_counters(db, project.user_id, total_likes=-1)
        db.delete(like)
        db.flush()
    return True


def _bump_project_likes(db: Session, project_id: str, delta: int) -> None:
    db.execute(
        update(Project)
        .where(Project.id == project_id)
        .values(likes=Project.likes + delta)
        .execution_options(synchronize_session=False)
    )


def has_user_liked_project(project: Optional[Project], user_id: str) -> bool:
    return project is not None and user_id in project.liked_by


def is_liked(db: Session, project_id: str, user_id: str) -> bool:
    return db.get(ProjectLike, (project_id, user_id)) is not None
