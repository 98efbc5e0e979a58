"""
Retryable removal of stored media belonging to deleted entities.

A MediaCleanupTask row is written in the same batch as the deletion, so the
task exists exactly when the entity is gone. Processing is idempotent: deleting
an already-empty prefix succeeds.
"""
from typing import Dict

from sqlalchemy.orm import Session

from database import server_timestamp
from models.MediaCleanupTask import MediaCleanupTask
from services.batch import atomic_batch
from services.errors import StoreUnavailable
from services.storage import BlobStorage
from utils.logger import setup_api_logger

logger = setup_api_logger()


def queue_cleanup(db: Session, entity_id: str, prefix: str) -> MediaCleanupTask:
    """Add a cleanup task to the caller's open batch (no commit here)."""
    task = db.get(MediaCleanupTask, entity_id)
    if task is None:
        task = MediaCleanupTask(entity_id=entity_id, storage_prefix=prefix)
        db.add(task)
    else:
        task.storage_prefix = prefix
        task.completed_at = None
    return task


def process_cleanup(db: Session, storage: BlobStorage, task: MediaCleanupTask) -> bool:
    """
    Delete the task's stored files. Returns True on success.

    Blob-store failures are logged and recorded on the task, never raised.
    """
    try:
        removed = storage.delete_prefix(task.storage_prefix)
    except StoreUnavailable as exc:
        with atomic_batch(db):
            task.attempts += 1
            task.last_error = str(exc)
        logger.warning("Media cleanup for %s failed (attempt %s): %s",
                       task.entity_id, task.attempts, exc)
        return False

    with atomic_batch(db):
        task.attempts += 1
        task.last_error = None
        task.completed_at = server_timestamp()
    logger.info("Media cleanup for %s removed %s file(s)", task.entity_id, removed)
    return True


def run_pending_cleanups(db: Session, storage: BlobStorage, limit: int = 50) -> Dict[str, int]:
    tasks = (
        db.query(MediaCleanupTask)
        .filter(MediaCleanupTask.completed_at.is_(None))
        .order_by(MediaCleanupTask.created_at.asc())
        .limit(limit)
        .all()
    )
    succeeded = sum(1 for task in tasks if process_cleanup(db, storage, task))
    return {"processed": len(tasks), "succeeded": succeeded, "failed": len(tasks) - succeeded}
