import os

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from routes.auth import get_current_identity
from schemas import CleanupReport, ReconcileReport
from services.errors import Unauthorized
from services.identity import Identity
from services.listings import reconcile_user_counters
from services.media_cleanup import run_pending_cleanups
from services.storage import BlobStorage, get_storage

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])

# Comma separated uids allowed to run maintenance jobs
ADMIN_UIDS = {uid.strip() for uid in os.getenv("ADMIN_UIDS", "").split(",") if uid.strip()}


def require_operator(identity: Identity = Depends(get_current_identity)) -> Identity:
    if identity.uid not in ADMIN_UIDS:
        raise Unauthorized("Maintenance is restricted to operators")
    return identity


@router.post("/media-cleanup", response_model=CleanupReport)
def media_cleanup(
    limit: int = Query(50, ge=1, le=500),
    operator: Identity = Depends(require_operator),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage)
):
    """
    Retry removal of stored files for deleted projects. Safe to call repeatedly.
    """
    return run_pending_cleanups(db, storage, limit)


@router.post("/reconcile/{user_id}", response_model=ReconcileReport)
def reconcile(
    user_id: str,
    apply: bool = True,
    operator: Identity = Depends(require_operator),
    db: Session = Depends(get_db)
):
    """
    Recount a user's counters from follows, projects and likes. With apply=false only report the drift.
    """
    return reconcile_user_counters(db, user_id, apply)
