"""
Blob storage for avatars and project images.

Two backends share one interface: local disk (development and tests) and
Firebase Storage (production). STORAGE_BACKEND selects which one get_storage()
returns.
"""
import os
import shutil
from pathlib import Path
from typing import Optional

from firebase_admin import storage as firebase_storage
from firebase_admin.exceptions import FirebaseError
from google.api_core.exceptions import GoogleAPIError, NotFound as BlobNotFound

from services.errors import InvalidOperation, NotFound, StoreUnavailable
from services.identity import initialize_firebase_admin
from utils.logger import setup_api_logger

logger = setup_api_logger()

# Configuración
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", "uploads"))
FIREBASE_STORAGE_BUCKET = os.getenv("FIREBASE_STORAGE_BUCKET")
MAX_AVATAR_SIZE = 5 * 1024 * 1024  # 5 MB
MAX_PROJECT_IMAGE_SIZE = 10 * 1024 * 1024  # 10 MB
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
EXTENSION_BY_TYPE = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def validate_image(content_type: Optional[str], size: int, max_size: int) -> None:
    """Valida el tipo y tamaño de una imagen."""
    if not content_type or content_type not in ALLOWED_IMAGE_TYPES:
        raise InvalidOperation(
            f"Please upload an image file (jpg, png, gif, webp). Received: {content_type or 'unknown'}"
        )
    if size > max_size:
        raise InvalidOperation(f"Image must be less than {max_size // (1024 * 1024)}MB")


def file_extension(filename: Optional[str], content_type: Optional[str]) -> str:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[-1].lower()
    return EXTENSION_BY_TYPE.get(content_type or "", "bin")


def avatar_path(user_id: str, ext: str) -> str:
    return f"avatars/{user_id}/avatar.{ext}"


def project_prefix(user_id: str, project_id: str) -> str:
    return f"projects/{user_id}/{project_id}"


def project_image_path(user_id: str, project_id: str, ext: str, index: int = 0) -> str:
    file_name = f"thumbnail.{ext}" if index == 0 else f"screenshot_{index}.{ext}"
    return f"{project_prefix(user_id, project_id)}/{file_name}"


class BlobStorage:
    def upload(self, path: str, content: bytes, content_type: str) -> str:
        raise NotImplementedError

    def delete_prefix(self, prefix: str) -> int:
        raise NotImplementedError


class LocalBlobStorage(BlobStorage):
    """Stores blobs under a local directory; URLs are served by GET /files/{path}."""

    def __init__(self, base_dir: Path = UPLOAD_DIR):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        base = self.base_dir.resolve()
        target = (base / path).resolve()
        if target != base and base not in target.parents:
            raise InvalidOperation("Invalid storage path")
        return target

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as buffer:
                buffer.write(content)
        except OSError as exc:
            raise StoreUnavailable(f"Could not store {path}: {exc}") from exc
        return f"/files/{path}"

    def delete_prefix(self, prefix: str) -> int:
        target = self._resolve(prefix)
        if not target.exists():
            return 0
        try:
            if target.is_file():
                target.unlink()
                return 1
            count = sum(1 for p in target.rglob("*") if p.is_file())
            shutil.rmtree(target)
        except OSError as exc:
            raise StoreUnavailable(f"Could not delete {prefix}: {exc}") from exc
        return count

    def open(self, path: str) -> Path:
        target = self._resolve(path)
        if not target.is_file():
            raise NotFound("File not found")
        return target


class FirebaseBlobStorage(BlobStorage):
    """Firebase Storage bucket accessed through the Admin SDK."""

    def __init__(self, bucket_name: Optional[str] = FIREBASE_STORAGE_BUCKET):
        initialize_firebase_admin()
        self.bucket = firebase_storage.bucket(bucket_name)

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        try:
            blob = self.bucket.blob(path)
            blob.upload_from_string(content, content_type=content_type)
            blob.make_public()
        except (GoogleAPIError, FirebaseError) as exc:
            raise StoreUnavailable(f"Could not upload {path}: {exc}") from exc
        return blob.public_url

    def delete_prefix(self, prefix: str) -> int:
        count = 0
        try:
            for blob in self.bucket.list_blobs(prefix=f"{prefix.rstrip('/')}/"):
                try:
                    blob.delete()
                except BlobNotFound:
                    continue  # already gone
                count += 1
        except (GoogleAPIError, FirebaseError) as exc:
            raise StoreUnavailable(f"Could not delete {prefix}: {exc}") from exc
        return count


_storage: Optional[BlobStorage] = None


def get_storage() -> BlobStorage:
    """FastAPI dependency returning the configured blob storage backend."""
    global _storage
    if _storage is None:
        if STORAGE_BACKEND == "firebase":
            _storage = FirebaseBlobStorage()
        else:
            _storage = LocalBlobStorage()
        logger.info("Blob storage backend: %s", type(_storage).__name__)
    return _storage
