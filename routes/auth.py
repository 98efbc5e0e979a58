from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from database import get_db
from schemas import UserRead
from services.errors import Unauthorized
from services.identity import Identity, verify_id_token
from services.users import get_user_by_id, sync_identity

router = APIRouter(prefix="/auth", tags=["Auth"])

# Security
security = HTTPBearer(auto_error=False)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    """Resolve the caller from `Authorization: Bearer <Firebase ID token>`."""
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        return verify_id_token(credentials.credentials)
    except Unauthorized as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.detail)


def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Identity]:
    if credentials is None:
        return None
    return get_current_identity(credentials)


@router.post("/sync", response_model=UserRead)
def sync_profile(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    """
    Create the caller's profile on first sign-in, otherwise stamp last login.
    """
    return sync_identity(db, identity)


@router.get("/me", response_model=UserRead)
def get_me(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    user = get_user_by_id(db, identity.uid)
    if not user:
        raise HTTPException(status_code=404, detail="Profile not found, call /auth/sync first")
    return user
