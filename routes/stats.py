from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from schemas import PlatformStats
from services.listings import get_platform_stats

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("", response_model=PlatformStats)
def platform_stats(db: Session = Depends(get_db)):
    """
    Profile-complete users, published projects and all projects.
    """
    return get_platform_stats(db)
