"""
Read-only listings and aggregates, plus the counter reconciliation audit.
"""
import base64
import binascii
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from models.Follow import Follow
from models.Project import Project
from models.ProjectLike import ProjectLike
from models.User import User
from services.batch import atomic_batch
from services.errors import InvalidOperation, NotFound
from utils.logger import setup_api_logger

logger = setup_api_logger()


def get_featured_users(db: Session, limit: int = 6) -> List[User]:
    """Manually featured builders, falling back to the most prolific ones."""
    users = (
        db.query(User)
        .filter(User.is_featured == True, User.is_profile_complete == True)
        .limit(limit)
        .all()
    )
    if len(users) < limit:
        users = (
            db.query(User)
            .filter(User.is_profile_complete == True)
            .order_by(User.project_count.desc(), User.uid)
            .limit(limit)
            .all()
        )
    return users


def encode_cursor(project: Project) -> str:
    raw = f"{project.created_at.isoformat()}|{project.id}"
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> Tuple[datetime, str]:
    try:
        raw = base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8")
        created_at, project_id = raw.split("|", 1)
        return datetime.fromisoformat(created_at), project_id
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise InvalidOperation("Invalid cursor") from exc


def _published():
    return Project.is_published == True


def _newest_first(query):
    return query.order_by(Project.created_at.desc(), Project.id.desc())


def get_latest_projects(db: Session, page_size: int = 12, cursor: Optional[str] = None) -> Dict[str, Any]:
    """
    One page of published projects, newest first.

    `cursor` is the value returned with the previous page. has_more is true
    whenever the page came back full.
    """
    query = db.query(Project).filter(_published())
    if cursor:
        created_at, last_id = decode_cursor(cursor)
        query = query.filter(
            or_(
                Project.created_at < created_at,
                and_(Project.created_at == created_at, Project.id < last_id),
            )
        )

    items = _newest_first(query).limit(page_size).all()
    return {
        "items": items,
        "cursor": encode_cursor(items[-1]) if items else None,
        "has_more": len(items) == page_size,
    }


def get_projects_by_category(db: Session, category: str, limit: int = 12) -> List[Project]:
    query = db.query(Project).filter(Project.category == category, _published())
    return _newest_first(query).limit(limit).all()


def get_projects_by_tool(db: Session, tool: str, limit: int = 12) -> List[Project]:
    query = db.query(Project).filter(Project.tool == tool, _published())
    return _newest_first(query).limit(limit).all()


def get_featured_projects(db: Session, limit: int = 6) -> List[Project]:
    query = db.query(Project).filter(Project.is_featured == True, _published())
    return _newest_first(query).limit(limit).all()


def count_published_projects(db: Session, user_id: str) -> int:
    return db.query(func.count(Project.id)).filter(Project.user_id == user_id, _published()).scalar()


def get_platform_stats(db: Session) -> Dict[str, int]:
    return {
        "total_users": db.query(func.count(User.uid)).filter(User.is_profile_complete == True).scalar(),
        "total_projects": db.query(func.count(Project.id)).filter(_published()).scalar(),
        "all_projects": db.query(func.count(Project.id)).scalar(),
    }


def reconcile_user_counters(db: Session, user_id: str, apply: bool = True) -> Dict[str, Dict[str, int]]:
    """
    Recompute a user's counters (and their projects' like counts) from the
    underlying rows.

    Returns the drift found as {"user": {counter: actual - stored},
    "projects": {project_id: actual - stored}}; empty dicts mean consistent.
    With `apply`, drifting values are overwritten in one batch.
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    like_rows = dict(
        db.query(ProjectLike.project_id, func.count(ProjectLike.user_id))
        .join(Project, Project.id == ProjectLike.project_id)
        .filter(Project.user_id == user_id)
        .group_by(ProjectLike.project_id)
        .all()
    )
    projects = db.query(Project).filter(Project.user_id == user_id).all()

    actual = {
        "project_count": len(projects),
        "follower_count": db.query(func.count(Follow.id)).filter(Follow.following_id == user_id).scalar(),
        "following_count": db.query(func.count(Follow.id)).filter(Follow.follower_id == user_id).scalar(),
        "total_likes": sum(like_rows.values()),
    }
    user_drift = {
        name: value - getattr(user, name)
        for name, value in actual.items()
        if value != getattr(user, name)
    }
    project_drift = {
        project.id: like_rows.get(project.id, 0) - project.likes
        for project in projects
        if like_rows.get(project.id, 0) != project.likes
    }

    for name, delta in user_drift.items():
        logger.warning("Counter drift on user %s: %s off by %+d", user_id, name, delta)
    for project_id, delta in project_drift.items():
        logger.warning("Counter drift on project %s: likes off by %+d", project_id, delta)

    if apply and (user_drift or project_drift):
        with atomic_batch(db):
            for name in user_drift:
                setattr(user, name, actual[name])
            for project in projects:
                if project.id in project_drift:
                    project.likes = like_rows.get(project.id, 0)

    return {"user": user_drift, "projects": project_drift}
