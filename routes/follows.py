from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from routes.auth import get_current_identity
from schemas import FollowResult, UserRead
from services.follows import follow_user, get_followers, get_following, is_following, unfollow_user
from services.identity import Identity

router = APIRouter(prefix="/follows", tags=["Follows"])


@router.post("/{following_id}", response_model=FollowResult)
def follow(
    following_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Follow a user. Following someone twice is a no-op.
    """
    changed = follow_user(db, identity.uid, following_id)
    return FollowResult(following=True, changed=changed)


@router.delete("/{following_id}", response_model=FollowResult)
def unfollow(
    following_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Unfollow a user.
    """
    changed = unfollow_user(db, identity.uid, following_id)
    return FollowResult(following=False, changed=changed)


@router.get("/{user_id}/followers", response_model=List[UserRead])
def followers(user_id: str, limit: int = Query(20, ge=1, le=100), db: Session = Depends(get_db)):
    """
    Get list of users that follow a user.
    """
    return get_followers(db, user_id, limit)


@router.get("/{user_id}/following", response_model=List[UserRead])
def following(user_id: str, limit: int = Query(20, ge=1, le=100), db: Session = Depends(get_db)):
    """
    Get list of users that a user is following.
    """
    return get_following(db, user_id, limit)


@router.get("/{follower_id}/is-following/{following_id}", response_model=bool)
def check_following(follower_id: str, following_id: str, db: Session = Depends(get_db)):
    return is_following(db, follower_id, following_id)
