"""File upload / download routes.

Uploaded bytes are written to the configured upload directory under a random
name; the `storedfile` collection keeps the metadata (original filename,
content type, size, owner).
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from fastapi.responses import FileResponse
from pydantic import BaseModel

from config import get_settings
from database import create_document, delete_document, get_document, get_documents, to_public
from schemas import StoredFile
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])


class FileOut(BaseModel):
    id: str
    filename: str
    content_type: str
    size: int
    owner_id: str
    url: str
    created_at: Optional[datetime] = None


def file_out(doc: dict) -> FileOut:
    data = to_public(doc)
    return FileOut(**data, url=f"/files/{data['id']}/download")


def _storage_path(storage_name: str) -> Path:
    return get_settings().upload_dir / storage_name


def _remove_content(doc: dict) -> None:
    path = _storage_path(doc["storage_name"])
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("Stored content for file %s was already gone", doc["_id"])


def remove_files_owned_by(owner_id: str) -> int:
    """Delete every file of `owner_id`, content and metadata. Returns the count."""
    docs = get_documents("storedfile", {"owner_id": owner_id})
    for doc in docs:
        _remove_content(doc)
        delete_document("storedfile", str(doc["_id"]))
    return len(docs)


@router.post("", response_model=FileOut, status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = File(..., description="File content (multipart/form-data)"),
    current_user: dict = Depends(get_current_user),
):
    settings = get_settings()

    # Read one byte past the limit so oversized uploads are detected without
    # holding arbitrarily large bodies in memory.
    raw = file.file.read(settings.max_upload_bytes + 1)
    if not raw:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    if len(raw) > settings.max_upload_bytes:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File too large")

    filename = Path(file.filename or "upload").name
    storage_name = f"{uuid.uuid4().hex}{Path(filename).suffix.lower()}"

    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    dest_path = _storage_path(storage_name)
    try:
        dest_path.write_bytes(raw)
    except OSError as exc:
        logger.error("Failed to store upload %s: %s", filename, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store file",
        ) from exc

    stored = StoredFile(
        filename=filename,
        content_type=file.content_type or "application/octet-stream",
        size=len(raw),
        owner_id=str(current_user["_id"]),
        storage_name=storage_name,
    )
    try:
        file_id = create_document("storedfile", stored)
    except Exception:
        dest_path.unlink(missing_ok=True)
        raise
    logger.info("Stored file %s (%d bytes) for %s", file_id, stored.size, stored.owner_id)
    return file_out(get_document("storedfile", file_id))


@router.get("", response_model=List[FileOut])
def list_files(current_user: dict = Depends(get_current_user)):
    docs = get_documents(
        "storedfile",
        {"owner_id": str(current_user["_id"])},
        sort=[("created_at", -1), ("_id", -1)],
    )
    return [file_out(d) for d in docs]


def _load_file(file_id: str) -> dict:
    doc = get_document("storedfile", file_id)
    if not doc:
        raise HTTPException(status_code=404, detail="File not found")
    return doc


@router.get("/{file_id}", response_model=FileOut)
def get_file(file_id: str):
    return file_out(_load_file(file_id))


@router.get("/{file_id}/download")
def download_file(file_id: str):
    doc = _load_file(file_id)
    path = _storage_path(doc["storage_name"])
    if not path.is_file():
        logger.error("Content missing for file %s", file_id)
        raise HTTPException(status_code=404, detail="File content not found")
    return FileResponse(path, media_type=doc.get("content_type"), filename=doc["filename"])


@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(file_id: str, current_user: dict = Depends(get_current_user)):
    doc = _load_file(file_id)
    if doc.get("owner_id") != str(current_user["_id"]):
        raise HTTPException(status_code=403, detail="Only the owner can delete this file")
    _remove_content(doc)
    delete_document("storedfile", file_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
