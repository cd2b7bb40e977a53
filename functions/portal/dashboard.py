"""
Dashboard summaries per role. Each collection is read once per call.
"""

from __future__ import annotations

from typing import Iterable, Optional

from portal.portal_service import PortalService, newest_first
from shared.json_utils import to_document
from shared.records import CourseFile
from shared.types import FileStatus, UploaderType, UserRole


def _docs(records: Iterable, limit: int) -> list[dict]:
    return [to_document(r) for r in list(records)[:limit]]


def _count(files: Iterable[CourseFile], status: FileStatus, **match) -> int:
    return sum(
        1
        for f in files
        if f.status == status and all(getattr(f, k) == v for k, v in match.items())
    )


def get_dashboard_data(
    service: PortalService, user_id: str, role: Optional[UserRole | str]
) -> dict:
    files = service.get_files()
    data = {
        "total_students": len(service.get_students()),
        "total_lecturers": len(service.get_lecturers()),
        "total_courses": len(service.get_courses()),
        "total_files": len(files),
    }
    if role not in (UserRole.ADMIN, UserRole.LECTURER, UserRole.STUDENT):
        return data

    notifications = newest_first(service.get_notifications())
    messages = newest_first(service.get_messages())
    files_by_date = newest_first(files)
    pending = [f for f in files_by_date if f.status == FileStatus.PENDING]

    if role == UserRole.ADMIN:
        data.update(
            recent_notifications=_docs(notifications, 8),
            recent_messages=_docs(messages, 8),
            recent_files=_docs(pending, 10),
            pending_files=_count(files, FileStatus.PENDING),
            approved_files=_count(files, FileStatus.APPROVED),
            rejected_files=_count(files, FileStatus.REJECTED),
        )
    elif role == UserRole.LECTURER:
        data.update(
            recent_notifications=_docs((n for n in notifications if n.user_id == user_id), 5),
            recent_messages=_docs(
                (m for m in messages if m.sender_type == UploaderType.STUDENT), 5
            ),
            recent_files=_docs(pending, 8),
            pending_files=len(pending),
            my_approved_files=_count(files, FileStatus.APPROVED, approved_by=user_id),
        )
    else:
        data.update(
            recent_notifications=_docs((n for n in notifications if n.user_id == user_id), 5),
            my_recent_messages=_docs(
                (m for m in messages if user_id in (m.sender_id, m.recipient_id)), 5
            ),
            my_recent_files=_docs((f for f in files_by_date if f.uploader_id == user_id), 5),
            my_pending_files=_count(files, FileStatus.PENDING, uploader_id=user_id),
            my_approved_files=_count(files, FileStatus.APPROVED, uploader_id=user_id),
            my_rejected_files=_count(files, FileStatus.REJECTED, uploader_id=user_id),
        )
    return data
