"""
Follow edges between users.

Every edge insert/delete is committed together with the two counter deltas it
implies (follower.following_count, followee.follower_count).
"""
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from models.Follow import Follow
from models.User import User
from services.batch import atomic_batch, increment_user_counters
from services.errors import InvalidOperation
from utils.logger import setup_api_logger

logger = setup_api_logger()


def follow_key(follower_id: str, following_id: str) -> str:
    return f"{follower_id}_{following_id}"


def follow_user(db: Session, follower_id: str, following_id: str) -> bool:
    """
    Follow a user. Returns True when a new edge was created, False when the
    edge already existed.
    """
    if follower_id == following_id:
        raise InvalidOperation("Cannot follow yourself")

    key = follow_key(follower_id, following_id)
    if db.get(Follow, key) is not None:
        return False  # Already following

    try:
        with atomic_batch(db):
            increment_user_counters(db, follower_id, following_count=1)
            increment_user_counters(db, following_id, follower_count=1)
            db.add(Follow(id=key, follower_id=follower_id, following_id=following_id))
            db.flush()
    except IntegrityError:
        # Another request created the same edge first; its batch carried the counters
        logger.info("Concurrent follow %s lost the race, treated as no-op", key)
        return False

    logger.info("User %s followed %s", follower_id, following_id)
    return True


def unfollow_user(db: Session, follower_id: str, following_id: str) -> bool:
    """
    Unfollow a user. Returns True when an edge was removed, False when there
    was nothing to remove.
    """
    follow = db.get(Follow, follow_key(follower_id, following_id))
    if follow is None:
        return False  # Not following

    with atomic_batch(db):
        db.delete(follow)
        db.flush()
        increment_user_counters(db, follower_id, following_count=-1)
        increment_user_counters(db, following_id, follower_count=-1)

    logger.info("User %s unfollowed %s", follower_id, following_id)
    return True


def is_following(db: Session, follower_id: str, following_id: str) -> bool:
    return db.get(Follow, follow_key(follower_id, following_id)) is not None


def get_followers(db: Session, user_id: str, limit: int = 20) -> List[User]:
    """Users following `user_id`, newest edge first. Edges to missing users are skipped."""
    edges = (
        db.query(Follow)
        .options(joinedload(Follow.follower))
        .filter(Follow.following_id == user_id)
        .order_by(Follow.created_at.desc())
        .limit(limit)
        .all()
    )
    return [edge.follower for edge in edges if edge.follower is not None]


def get_following(db: Session, user_id: str, limit: int = 20) -> List[User]:
    """Users followed by `user_id`, newest edge first. Edges to missing users are skipped."""
    edges = (
        db.query(Follow)
        .options(joinedload(Follow.following_user))
        .filter(Follow.follower_id == user_id)
        .order_by(Follow.created_at.desc())
        .limit(limit)
        .all()
    )
    return [edge.following_user for edge in edges if edge.following_user is not None]
