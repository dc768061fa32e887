"""
Local file storage for resumes and staged bulk uploads
"""
import os
import shutil
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from fastapi import UploadFile
from loguru import logger

from levelminds.core.config import settings
from levelminds.core.errors import InvalidInput

RESUME_SUBDIR = "resumes"
STAGING_SUBDIR = "tmp"
LEGACY_WORKBOOK_EXTENSIONS = (".xls",)


def _extension(filename: Optional[str], allowed: List[str], label: str) -> str:
    file_ext = os.path.splitext(filename or "")[1].lower()
    if file_ext not in allowed:
        raise InvalidInput(f"{label} must be one of: {', '.join(allowed)}")
    return file_ext


def _write_upload(upload: UploadFile, directory: str, filename: str) -> str:
    os.makedirs(directory, exist_ok=True)
    file_path = os.path.join(directory, filename)
    upload.file.seek(0)
    with open(file_path, "wb") as buffer:
        shutil.copyfileobj(upload.file, buffer)
    return file_path


def save_resume(upload: UploadFile) -> str:
    """Store a resume and return the address recorded on the application"""
    file_ext = _extension(upload.filename, settings.RESUME_EXTENSIONS, "Resume")
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = f"resume-{timestamp}-{uuid.uuid4().hex[:8]}{file_ext}"
    _write_upload(upload, os.path.join(settings.UPLOAD_DIR, RESUME_SUBDIR), filename)
    return f"/uploads/{RESUME_SUBDIR}/{filename}"


def resolve_stored_path(url: str) -> str:
    """Map an `/uploads/...` address back to its location on disk"""
    relative = url.split("/uploads/", 1)[-1]
    return os.path.join(settings.UPLOAD_DIR, relative)


def remove_file(path: Optional[str]) -> None:
    """Best-effort delete; failures are logged for cleanup later"""
    if not path or not os.path.exists(path):
        return
    try:
        os.remove(path)
    except OSError as e:
        logger.warning(f"Could not delete file {path}: {e}")


def delete_stored_file(url: Optional[str]) -> None:
    if url:
        remove_file(resolve_stored_path(url))


@contextmanager
def staged_upload(upload: UploadFile) -> Iterator[str]:
    """
    Save a bulk upload to a temporary path for parsing.
    The file is removed on every exit path, including errors.
    """
    if os.path.splitext(upload.filename or "")[1].lower() in LEGACY_WORKBOOK_EXTENSIONS:
        raise InvalidInput(
            "Legacy .xls workbooks are not supported. Save the sheet as .xlsx or .csv and upload again."
        )
    file_ext = _extension(upload.filename, settings.BULK_UPLOAD_EXTENSIONS, "Upload")
    file_path = _write_upload(
        upload,
        os.path.join(settings.UPLOAD_DIR, STAGING_SUBDIR),
        f"bulk-{uuid.uuid4().hex}{file_ext}"
    )
    try:
        yield file_path
    finally:
        remove_file(file_path)
