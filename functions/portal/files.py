"""
Course file uploads and the lecturer review workflow.

The bytes go to object storage under courses/<course_id>/files/ and the
metadata to the files collection. New files start pending; a lecturer or admin
approves or rejects them and the uploader is notified.
"""

from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass
from typing import Optional

from werkzeug.utils import secure_filename

from portal.errors import (
    InvalidRecordError,
    InvalidStateError,
    InvalidUploadError,
    NotFoundError,
)
from portal.portal_service import PortalService
from portal.storage import StorageClient
from shared.constants import (
    ALLOWED_UPLOAD_TYPES,
    FALLBACK_CONTENT_TYPE,
    MAX_REJECTION_REASON_LENGTH,
    MAX_UPLOAD_BYTES,
)
from shared.json_utils import utc_now_iso
from shared.records import CourseFile
from shared.types import FileStatus, NotificationType, UploaderType

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset(ALLOWED_UPLOAD_TYPES.values())


@dataclass
class FileUploadResult:
    id: str
    filename: str
    original_name: str
    file_type: str
    file_size: int
    download_url: str
    storage_path: str
    uploader_id: str
    uploader_type: UploaderType
    course_id: str
    created_at: str


def _extension(name: str) -> str:
    # Only the extension is sanitised; secure_filename drops non-ASCII stems.
    if "." not in (name or ""):
        return ""
    return secure_filename(name.rsplit(".", 1)[-1]).lower()


def content_type_for(name: str) -> Optional[str]:
    return ALLOWED_UPLOAD_TYPES.get(_extension(name))


def validate_upload(name: str, content_type: Optional[str], size: int) -> str:
    """
    Checks size and type of an upload and returns its content type, inferred
    from the extension when the client sent none.
    """
    if not name:
        raise InvalidUploadError("File name is required")
    if size > MAX_UPLOAD_BYTES:
        raise InvalidUploadError("File too large. Maximum size is 50MB")
    if not content_type or content_type == FALLBACK_CONTENT_TYPE:
        content_type = content_type_for(name)
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidUploadError(f"Unsupported file type: {content_type or name}")
    return content_type


class FileService:
    def __init__(
        self,
        service: PortalService,
        storage: StorageClient,
        download_url_expires_seconds: int = 3600,
    ):
        self.service = service
        self.storage = storage
        self.download_url_expires_seconds = download_url_expires_seconds

    def upload_file(
        self,
        content: bytes,
        original_name: str,
        content_type: Optional[str],
        course_id: str,
        uploader_id: str,
        uploader_type: UploaderType | str,
    ) -> FileUploadResult:
        content_type = validate_upload(original_name, content_type, len(content))
        if self.service.get_course(course_id) is None:
            raise NotFoundError(f"Course {course_id} not found")

        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
        extension = _extension(original_name) or "bin"
        filename = f"{int(time.time() * 1000)}_{suffix}.{extension}"
        storage_path = f"courses/{course_id}/files/{filename}"

        logger.info("Uploading %s (%d bytes) to %s", original_name, len(content), storage_path)
        self.storage.upload_bytes(storage_path, content, content_type)
        try:
            download_url = self.get_download_url(storage_path)
            saved = self.service.add_file(
                {
                    "filename": filename,
                    "original_name": original_name,
                    "file_type": content_type,
                    "file_size": len(content),
                    "download_url": download_url,
                    "storage_path": storage_path,
                    "course_id": course_id,
                    "uploader_id": uploader_id,
                    "uploader_type": uploader_type,
                    "status": FileStatus.PENDING,
                    "download_count": 0,
                    "tags": [],
                }
            )
        except Exception:
            logger.warning("Saving the record for %s failed, removing the object", storage_path)
            self._remove_object(storage_path)
            raise
        logger.info("Saved file %s for course %s", saved.id, course_id)
        return FileUploadResult(
            id=saved.id,
            filename=saved.filename,
            original_name=saved.original_name,
            file_type=saved.file_type,
            file_size=saved.file_size,
            download_url=download_url,
            storage_path=storage_path,
            uploader_id=saved.uploader_id,
            uploader_type=saved.uploader_type,
            course_id=saved.course_id,
            created_at=saved.created_at,
        )

    def delete_file(self, file_id: str) -> bool:
        record = self.service.get_file(file_id)
        if record is None:
            logger.warning("File %s not found", file_id)
            return False
        if record.storage_path:
            # The object may already be gone; the record is removed anyway.
            self._remove_object(record.storage_path)
        return self.service.delete_file(file_id)

    def _remove_object(self, storage_path: str) -> None:
        try:
            self.storage.delete(storage_path)
        except Exception as exc:
            logger.warning("Could not delete %s from storage: %s", storage_path, exc)

    def get_download_url(self, storage_path: str, expires_in: Optional[int] = None) -> str:
        return self.storage.signed_url(
            storage_path, expires_in or self.download_url_expires_seconds
        )

    def record_download(self, file_id: str) -> CourseFile:
        record = self.service.get_file(file_id)
        if record is None:
            raise NotFoundError(f"File {file_id} not found")
        updated = self.service.update_file(
            file_id, {"download_count": record.download_count + 1}
        )
        return updated or record

    def list_course_files(self, course_id: str) -> list[dict]:
        """Objects stored for a course, with fresh download links."""
        prefix = f"courses/{course_id}/files/"
        return [
            {
                "name": path.rsplit("/", 1)[-1],
                "full_path": path,
                "download_url": self.get_download_url(path),
            }
            for path in self.storage.list_paths(prefix)
        ]

    # ------------------------------------------------------------------
    # Review workflow
    # ------------------------------------------------------------------
    def _pending(self, file_id: str) -> CourseFile:
        record = self.service.get_file(file_id)
        if record is None:
            raise NotFoundError(f"File {file_id} not found")
        if record.status != FileStatus.PENDING:
            raise InvalidStateError(
                f"File {file_id} was already reviewed ({record.status.value})"
            )
        return record

    def approve_file(self, file_id: str, reviewer_id: str) -> CourseFile:
        record = self._pending(file_id)
        updated = self.service.update_file(
            file_id,
            {
                "status": FileStatus.APPROVED,
                "approval_date": utc_now_iso(),
                "approved_by": reviewer_id,
                "rejection_reason": None,
            },
        )
        self.service.add_notification(
            {
                "user_id": record.uploader_id,
                "title": "הקובץ אושר",
                "message": f"הקובץ {record.original_name} אושר ופורסם בקורס",
                "type": NotificationType.SUCCESS,
                "action_url": f"/courses/{record.course_id}",
                "action_text": "צפה בקורס",
            }
        )
        logger.info("File %s approved by %s", file_id, reviewer_id)
        return updated

    def reject_file(
        self, file_id: str, reviewer_id: str, reason: Optional[str] = None
    ) -> CourseFile:
        reason = (reason or "").strip() or None
        if reason and len(reason) > MAX_REJECTION_REASON_LENGTH:
            raise InvalidRecordError(
                f"Rejection reason is limited to {MAX_REJECTION_REASON_LENGTH} characters"
            )
        record = self._pending(file_id)
        updated = self.service.update_file(
            file_id,
            {
                "status": FileStatus.REJECTED,
                "approval_date": utc_now_iso(),
                "approved_by": reviewer_id,
                "rejection_reason": reason,
            },
        )
        message = f"הקובץ {record.original_name} נדחה"
        if reason:
            message = f"{message}: {reason}"
        self.service.add_notification(
            {
                "user_id": record.uploader_id,
                "title": "הקובץ נדחה",
                "message": message,
                "type": NotificationType.WARNING,
                "action_url": "/my-files",
                "action_text": "לקבצים שלי",
            }
        )
        logger.info("File %s rejected by %s", file_id, reviewer_id)
        return updated
