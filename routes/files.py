"""
Upload and download endpoints for avatars and project images.
Only images (jpg, png, gif, webp) are accepted.
"""
from fastapi import APIRouter, UploadFile, File, HTTPException, Depends, Query
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from database import get_db
from routes.auth import get_current_identity
from schemas import UploadRead
from services.errors import NotFound, Unauthorized
from services.identity import Identity
from services.projects import get_project_by_id, update_project
from services.storage import (
    MAX_AVATAR_SIZE,
    MAX_PROJECT_IMAGE_SIZE,
    BlobStorage,
    LocalBlobStorage,
    avatar_path,
    file_extension,
    get_storage,
    project_image_path,
    validate_image,
)
from services.users import update_user_profile

router = APIRouter(prefix="/files", tags=["Files"])


@router.post("/avatar", response_model=UploadRead)
async def upload_avatar(
    file: UploadFile = File(...),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage)
):
    """
    Sube el avatar del usuario y actualiza photo_url en su perfil.
    """
    content = await file.read()
    validate_image(file.content_type, len(content), MAX_AVATAR_SIZE)

    path = avatar_path(identity.uid, file_extension(file.filename, file.content_type))
    url = storage.upload(path, content, file.content_type)
    update_user_profile(db, identity.uid, {"photo_url": url})

    return UploadRead(url=url, path=path, content_type=file.content_type, size=len(content))


@router.post("/projects/{project_id}/images", response_model=UploadRead)
async def upload_project_image(
    project_id: str,
    index: int = Query(0, ge=0, le=10),
    file: UploadFile = File(...),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage)
):
    """
    Sube una imagen de proyecto: index 0 es la miniatura, el resto capturas.
    """
    project = get_project_by_id(db, project_id)
    if not project:
        raise NotFound("Project not found")
    if project.user_id != identity.uid:
        raise Unauthorized("Not authorized to upload images for this project")

    content = await file.read()
    validate_image(file.content_type, len(content), MAX_PROJECT_IMAGE_SIZE)

    path = project_image_path(identity.uid, project_id, file_extension(file.filename, file.content_type), index)
    url = storage.upload(path, content, file.content_type)

    if index == 0:
        update_project(db, project_id, identity.uid, {"thumbnail_url": url})
    else:
        screenshots = [shot for shot in project.screenshots if shot != url] + [url]
        update_project(db, project_id, identity.uid, {"screenshots": screenshots})

    return UploadRead(url=url, path=path, content_type=file.content_type, size=len(content))


@router.get("/{path:path}")
async def get_file(path: str, storage: BlobStorage = Depends(get_storage)):
    """
    Sirve un archivo almacenado en disco local.
    """
    if not isinstance(storage, LocalBlobStorage):
        raise HTTPException(status_code=404, detail="Files are served by the storage bucket")
    return FileResponse(storage.open(path))
