"""
User profiles: identity sync, lookups and profile updates.

Handles are unique through HandleReservation rows written in the same batch as
the profile update that claims them.
"""
import re
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import server_timestamp
from models.HandleReservation import HandleReservation
from models.User import User
from services.batch import atomic_batch
from services.errors import HandleTaken, InvalidOperation, NotFound
from services.identity import Identity
from utils.logger import setup_api_logger

logger = setup_api_logger()

# Fields a user may edit on their own profile; counters and flags are excluded
PROFILE_FIELDS = {
    "display_name",
    "photo_url",
    "handle",
    "bio",
    "tagline",
    "website",
    "tools",
    "social_links",
}

DEFAULT_SOCIAL_LINKS = {
    "twitter": "",
    "github": "",
    "linkedin": "",
    "youtube": "",
    "discord": "",
}

_HANDLE_PATTERN = re.compile(r"^[a-z0-9_]+$")


def normalize_handle(handle: str) -> str:
    return (handle or "").strip().lower()


def validate_handle(handle: str) -> str:
    """Normalize a handle a user asked for. Empty clears it; anything outside [a-z0-9_] is rejected."""
    normalized = normalize_handle(handle)
    if normalized and not _HANDLE_PATTERN.match(normalized):
        raise InvalidOperation("Handles may only contain letters, digits and underscores")
    return normalized


def get_user_by_id(db: Session, uid: str) -> Optional[User]:
    return db.get(User, uid)


def get_user_by_handle(db: Session, handle: str) -> Optional[User]:
    normalized = normalize_handle(handle)
    if not normalized:
        return None
    return db.query(User).filter(User.handle == normalized).first()


def is_handle_available(db: Session, handle: str, uid: Optional[str] = None) -> bool:
    normalized = normalize_handle(handle)
    if not normalized or not _HANDLE_PATTERN.match(normalized):
        return False
    reservation = db.get(HandleReservation, normalized)
    return reservation is None or reservation.owner_id == uid


def sync_identity(db: Session, identity: Identity) -> User:
    """
    Upsert the profile for a verified identity: create it on first sign-in,
    otherwise stamp last_login_at.
    """
    user = db.get(User, identity.uid)
    if user is None:
        now = server_timestamp()
        user = User(
            uid=identity.uid,
            email=identity.email or "",
            display_name=identity.display_name or "",
            photo_url=identity.photo_url or "",
            handle="",
            tools=[],
            social_links=dict(DEFAULT_SOCIAL_LINKS),
            created_at=now,
            updated_at=now,
            last_login_at=now,
        )
        try:
            with atomic_batch(db):
                db.add(user)
        except IntegrityError:
            # Concurrent first sign-in created the row already
            user = db.get(User, identity.uid)
        else:
            logger.info("Created profile for %s", identity.uid)
            return user

    with atomic_batch(db):
        user.last_login_at = server_timestamp()
    return user


def update_user_profile(db: Session, uid: str, data: Dict[str, Any]) -> User:
    """
    Merge the supplied non-null profile fields into the user's profile.

    A new handle is normalized and reserved in the same batch; the previous
    reservation is released. is_profile_complete follows display name + handle.
    """
    user = db.get(User, uid)
    if user is None:
        raise NotFound("User not found")

    changes = {key: value for key, value in data.items() if key in PROFILE_FIELDS and value is not None}
    if "handle" in changes:
        changes["handle"] = validate_handle(changes["handle"])
    claims_handle = changes.get("handle", user.handle) != user.handle

    try:
        with atomic_batch(db):
            if claims_handle:
                _claim_handle(db, uid, changes["handle"], previous=user.handle)

            for key, value in changes.items():
                setattr(user, key, value)
            user.is_profile_complete = bool(user.display_name and user.handle)
            user.updated_at = server_timestamp()
            db.flush()
    except IntegrityError as exc:
        if claims_handle:
            raise HandleTaken("This handle is already taken") from exc
        logger.warning("Profile update for %s rejected by the database: %s", uid, exc.orig)
        raise InvalidOperation("Profile update rejected") from exc

    return user


def _claim_handle(db: Session, uid: str, handle: str, previous: str) -> None:
    if handle:
        reservation = db.get(HandleReservation, handle)
        if reservation is not None and reservation.owner_id != uid:
            raise HandleTaken("This handle is already taken")
        if reservation is None:
            db.add(HandleReservation(handle=handle, owner_id=uid))

    if previous:
        old = db.get(HandleReservation, previous)
        if old is not None and old.owner_id == uid:
            db.delete(old)


def search_users(db: Session, term: str, limit: int = 10) -> List[User]:
    """Naive substring search over complete profiles (display name, handle, bio)."""
    candidates = (
        db.query(User)
        .filter(User.is_profile_complete == True)
        .order_by(User.display_name)
        .limit(50)
        .all()
    )
    needle = (term or "").lower()
    matches = [
        user for user in candidates
        if needle in (user.display_name or "").lower()
        or needle in (user.handle or "").lower()
        or needle in (user.bio or "").lower()
    ]
    return matches[:limit]
