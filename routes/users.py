from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from routes.auth import get_current_identity, get_optional_identity
from schemas import UserRead, UserUpdate, UserProfileRead, HandleAvailability, ProjectRead
from services.errors import Unauthorized
from services.follows import is_following
from services.identity import Identity
from services.listings import count_published_projects, get_featured_users
from services.projects import get_projects_by_user
from services.users import (
    get_user_by_handle,
    get_user_by_id,
    is_handle_available,
    normalize_handle,
    search_users,
    update_user_profile,
)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/featured", response_model=List[UserRead])
def featured_users(limit: int = Query(6, ge=1, le=50), db: Session = Depends(get_db)):
    return get_featured_users(db, limit)


@router.get("/search", response_model=List[UserRead])
def search(q: str, limit: int = Query(10, ge=1, le=50), db: Session = Depends(get_db)):
    return search_users(db, q, limit)


@router.get("/handle/{handle}", response_model=UserRead)
def get_by_handle(handle: str, db: Session = Depends(get_db)):
    user = get_user_by_handle(db, handle)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/handle-available/{handle}", response_model=HandleAvailability)
def handle_available(
    handle: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: Session = Depends(get_db)
):
    uid = identity.uid if identity else None
    return HandleAvailability(handle=normalize_handle(handle), available=is_handle_available(db, handle, uid))


@router.patch("/me", response_model=UserRead)
def update_me(
    user_update: UserUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Update the caller's profile. Counters cannot be set here.
    """
    return update_user_profile(db, identity.uid, user_update.model_dump(exclude_unset=True))


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """
    Get a user by ID.
    """
    user = get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/{user_id}/profile", response_model=UserProfileRead)
def get_user_profile(
    user_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: Session = Depends(get_db)
):
    """
    Get user profile with follow status.
    """
    user = get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    profile = UserProfileRead.model_validate(user)
    profile.published_project_count = count_published_projects(db, user_id)

    if identity and identity.uid != user_id:
        profile.is_following = is_following(db, identity.uid, user_id)
        profile.is_followed_by = is_following(db, user_id, identity.uid)

    return profile


@router.get("/{user_id}/projects", response_model=List[ProjectRead])
def get_user_projects(
    user_id: str,
    include_unpublished: bool = False,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: Session = Depends(get_db)
):
    """
    Projects of a user, newest first. Drafts are visible to their owner only.
    """
    if include_unpublished and (identity is None or identity.uid != user_id):
        raise Unauthorized("Only the owner can list unpublished projects")
    return get_projects_by_user(db, user_id, include_unpublished)
