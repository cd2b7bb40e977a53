"""
HTTP routes for the course portal API.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Optional

from fastapi import (
    APIRouter,
    Body,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    UploadFile,
)
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portal.dashboard import get_dashboard_data
from portal.dependencies import (
    get_academic_tracks,
    get_file_service,
    get_notification_checker,
    get_portal_service,
    get_user_service,
)
from portal.entities import FirestoreEntity
from portal.errors import PermissionDeniedError
from portal.files import FileService
from portal.notifier import NotificationChecker
from portal.portal_service import PortalService
from portal.schemas import (
    AcademicTrackResponse,
    DeleteResponse,
    DownloadUrlResponse,
    EnsureFileVarietyResponse,
    FileStatusReport,
    FileUploadResponse,
    LoginRequest,
    MarkAllReadResponse,
    NotificationCheckResponse,
    NotificationCountsResponse,
    RejectFileRequest,
    ResetDataResponse,
    SessionResponse,
    SwitchRoleRequest,
    UserCreateRequest,
    UserUpdateRequest,
)
from portal.users import UserService
from shared.json_utils import to_document
from shared.records import AcademicTrack, User, UserSession
from shared.types import FileStatus, UserRole

logger = logging.getLogger(__name__)

router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)

LIST_CONTROL_PARAMS = {"sort_by", "limit"}

# Only the review endpoints may set these on a file.
FILE_REVIEW_FIELDS = ("status", "approval_date", "approved_by", "rejection_reason")


def _user_doc(user: User) -> dict:
    document = to_document(user)
    document.pop("password_hash", None)
    return document


def _session_response(session: UserSession) -> SessionResponse:
    return SessionResponse(
        token=session.token,
        user=_user_doc(session.user),
        current_role=session.current_role,
        available_roles=session.available_roles,
    )


def _guard_file_review_fields(name: str, payload: dict, creating: bool = False) -> None:
    if name != "files":
        return
    for field in FILE_REVIEW_FIELDS:
        if field not in payload:
            continue
        value = payload[field]
        unchanged = value is None or (field == "status" and value == FileStatus.PENDING.value)
        if creating and unchanged:
            continue
        raise PermissionDeniedError(
            f"File field '{field}' can only be changed through the approve and reject endpoints"
        )


def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    users: UserService = Depends(get_user_service),
) -> UserSession:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    session = users.get_session(credentials.credentials)
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return session


def require_roles(*roles: UserRole):
    """Dependency that only admits sessions whose active role is in `roles`."""

    def dependency(session: UserSession = Depends(get_current_session)) -> UserSession:
        if session.current_role not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"Requires role: {', '.join(r.value for r in roles)}",
            )
        return session

    return dependency


require_admin = require_roles(UserRole.ADMIN)
require_reviewer = require_roles(UserRole.LECTURER, UserRole.ADMIN)


# ----------------------------------------------------------------------
# Auth
# ----------------------------------------------------------------------
@router.post("/auth/login", response_model=SessionResponse)
def login(payload: LoginRequest, users: UserService = Depends(get_user_service)):
    return _session_response(users.login(payload.email, payload.password))


@router.get("/auth/session", response_model=SessionResponse)
def current_session(session: UserSession = Depends(get_current_session)):
    return _session_response(session)


@router.post("/auth/switch-role", response_model=SessionResponse)
def switch_role(
    payload: SwitchRoleRequest,
    session: UserSession = Depends(get_current_session),
    users: UserService = Depends(get_user_service),
):
    if not users.switch_user_role(session.user.id, payload.role):
        raise HTTPException(status_code=400, detail="Role not available for this user")
    refreshed = users.get_session(session.token)
    if refreshed is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return _session_response(refreshed)


@router.post("/auth/logout", response_model=DeleteResponse)
def logout(
    session: UserSession = Depends(get_current_session),
    users: UserService = Depends(get_user_service),
):
    return DeleteResponse(deleted=users.clear_session(session.token))


# ----------------------------------------------------------------------
# Generic entities
# ----------------------------------------------------------------------
def _entity(
    name: str,
    service: PortalService,
    tracks: list[AcademicTrack],
) -> FirestoreEntity:
    return FirestoreEntity(service, name, tracks=tracks)


@router.get("/entities/{name}")
def list_entities(
    name: str,
    request: Request,
    sort_by: str | None = Query(None),
    limit: int | None = Query(None, ge=0),
    session: UserSession = Depends(get_current_session),
    service: PortalService = Depends(get_portal_service),
    tracks: list[AcademicTrack] = Depends(get_academic_tracks),
):
    filters = {
        key: value
        for key, value in request.query_params.items()
        if key not in LIST_CONTROL_PARAMS
    }
    return _entity(name, service, tracks).filter(filters, sort_by=sort_by, limit=limit)


@router.post("/entities/{name}", status_code=201)
def create_entity(
    name: str,
    payload: dict[str, Any] = Body(...),
    session: UserSession = Depends(get_current_session),
    service: PortalService = Depends(get_portal_service),
    tracks: list[AcademicTrack] = Depends(get_academic_tracks),
):
    _guard_file_review_fields(name, payload, creating=True)
    return _entity(name, service, tracks).create(payload)


@router.get("/entities/{name}/{entity_id}")
def get_entity(
    name: str,
    entity_id: str,
    session: UserSession = Depends(get_current_session),
    service: PortalService = Depends(get_portal_service),
    tracks: list[AcademicTrack] = Depends(get_academic_tracks),
):
    record = _entity(name, service, tracks).get(entity_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"{name}/{entity_id} not found")
    return record


@router.put("/entities/{name}/{entity_id}")
def update_entity(
    name: str,
    entity_id: str,
    payload: dict[str, Any] = Body(...),
    session: UserSession = Depends(get_current_session),
    service: PortalService = Depends(get_portal_service),
    tracks: list[AcademicTrack] = Depends(get_academic_tracks),
):
    _guard_file_review_fields(name, payload)
    record = _entity(name, service, tracks).update(entity_id, payload)
    if record is None:
        raise HTTPException(status_code=404, detail=f"{name}/{entity_id} not found")
    return record


@router.delete("/entities/{name}/{entity_id}", response_model=DeleteResponse)
def delete_entity(
    name: str,
    entity_id: str,
    session: UserSession = Depends(require_admin),
    service: PortalService = Depends(get_portal_service),
    tracks: list[AcademicTrack] = Depends(get_academic_tracks),
):
    if not _entity(name, service, tracks).delete(entity_id):
        raise HTTPException(status_code=404, detail=f"{name}/{entity_id} not found")
    return DeleteResponse(deleted=True)


# ----------------------------------------------------------------------
# Tracks and courses
# ----------------------------------------------------------------------
@router.get("/academic-tracks", response_model=list[AcademicTrackResponse])
def academic_tracks(tracks: list[AcademicTrack] = Depends(get_academic_tracks)):
    return [AcademicTrackResponse(**asdict(track)) for track in tracks]


@router.get("/courses/mine")
def my_courses(
    session: UserSession = Depends(get_current_session),
    service: PortalService = Depends(get_portal_service),
    users: UserService = Depends(get_user_service),
):
    track_ids = users.track_ids_for(session.user, session.current_role)
    return [to_document(c) for c in service.get_courses_for_tracks(track_ids)]


# ----------------------------------------------------------------------
# Files
# ----------------------------------------------------------------------
@router.post("/files/upload", response_model=FileUploadResponse, status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    course_id: str = Form(...),
    session: UserSession = Depends(get_current_session),
    files: FileService = Depends(get_file_service),
):
    content = await file.read()
    result = files.upload_file(
        content,
        file.filename or "",
        file.content_type,
        course_id,
        session.user.id,
        session.current_role or UserRole.STUDENT,
    )
    return FileUploadResponse(**asdict(result))


@router.post("/files/{file_id}/approve")
def approve_file(
    file_id: str,
    session: UserSession = Depends(require_reviewer),
    files: FileService = Depends(get_file_service),
):
    return to_document(files.approve_file(file_id, session.user.id))


@router.post("/files/{file_id}/reject")
def reject_file(
    file_id: str,
    payload: Optional[RejectFileRequest] = None,
    session: UserSession = Depends(require_reviewer),
    files: FileService = Depends(get_file_service),
):
    reason = payload.reason if payload else None
    return to_document(files.reject_file(file_id, session.user.id, reason))


@router.get("/files/{file_id}/download", response_model=DownloadUrlResponse)
def download_file(
    file_id: str,
    session: UserSession = Depends(get_current_session),
    files: FileService = Depends(get_file_service),
):
    record = files.record_download(file_id)
    if record.storage_path:
        url = files.get_download_url(record.storage_path)
    elif record.download_url:
        url = record.download_url
    else:
        raise HTTPException(status_code=404, detail="File has no stored content")
    return DownloadUrlResponse(url=url, download_count=record.download_count)


@router.delete("/files/{file_id}", response_model=DeleteResponse)
def delete_file(
    file_id: str,
    session: UserSession = Depends(get_current_session),
    files: FileService = Depends(get_file_service),
):
    record = files.service.get_file(file_id)
    if record is None:
        raise HTTPException(status_code=404, detail="File not found")
    if session.current_role != UserRole.ADMIN and record.uploader_id != session.user.id:
        raise PermissionDeniedError("Only the uploader or an admin can delete a file")
    return DeleteResponse(deleted=files.delete_file(file_id))


# ----------------------------------------------------------------------
# Dashboard and notifications
# ----------------------------------------------------------------------
@router.get("/dashboard")
def dashboard(
    session: UserSession = Depends(get_current_session),
    service: PortalService = Depends(get_portal_service),
):
    return get_dashboard_data(service, session.user.id, session.current_role)


@router.get("/notifications/check", response_model=NotificationCheckResponse)
def check_notifications(
    session: UserSession = Depends(get_current_session),
    checker: NotificationChecker = Depends(get_notification_checker),
):
    notification = checker.check_once(session.user.id)
    return NotificationCheckResponse(
        notification=to_document(notification) if notification else None
    )


@router.get("/notifications/counts", response_model=NotificationCountsResponse)
def notification_counts(
    session: UserSession = Depends(get_current_session),
    checker: NotificationChecker = Depends(get_notification_checker),
):
    return NotificationCountsResponse(**checker.notification_counts(session.user.id))


@router.post("/notifications/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(
    session: UserSession = Depends(get_current_session),
    service: PortalService = Depends(get_portal_service),
):
    return MarkAllReadResponse(updated=service.mark_all_notifications_read(session.user.id))


@router.post("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: str,
    session: UserSession = Depends(get_current_session),
    service: PortalService = Depends(get_portal_service),
):
    notification = service.get_notification(notification_id)
    if notification is None or notification.user_id != session.user.id:
        raise HTTPException(status_code=404, detail="Notification not found")
    return to_document(service.mark_notification_read(notification_id))


# ----------------------------------------------------------------------
# Users (admin)
# ----------------------------------------------------------------------
@router.get("/users")
def list_users(
    role: UserRole | None = Query(None),
    session: UserSession = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    records = users.get_users_by_role(role) if role else users.get_all_users()
    return [_user_doc(u) for u in records]


@router.post("/users", status_code=201)
def create_user(
    payload: UserCreateRequest,
    session: UserSession = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    data = payload.model_dump(exclude={"password"}, exclude_none=True)
    return _user_doc(users.create_user(data, password=payload.password))


@router.put("/users/{user_id}")
def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    session: UserSession = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    updated = users.update_user(user_id, payload.model_dump(exclude_unset=True))
    if updated is None:
        raise HTTPException(status_code=404, detail="User not found")
    return _user_doc(updated)


@router.delete("/users/{user_id}", response_model=DeleteResponse)
def delete_user(
    user_id: str,
    session: UserSession = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    if not users.delete_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return DeleteResponse(deleted=True)


# ----------------------------------------------------------------------
# Admin data tools
# ----------------------------------------------------------------------
@router.get("/admin/file-status", response_model=FileStatusReport)
def file_status(
    session: UserSession = Depends(require_admin),
    service: PortalService = Depends(get_portal_service),
):
    return FileStatusReport(**service.file_status_report())


@router.post("/admin/ensure-file-variety", response_model=EnsureFileVarietyResponse)
def ensure_file_variety(
    session: UserSession = Depends(require_admin),
    service: PortalService = Depends(get_portal_service),
):
    added = service.ensure_data_completeness()
    return EnsureFileVarietyResponse(
        added=added, report=FileStatusReport(**service.file_status_report())
    )


@router.post("/admin/reset-data", response_model=ResetDataResponse)
def reset_data(
    session: UserSession = Depends(require_admin),
    service: PortalService = Depends(get_portal_service),
    users: UserService = Depends(get_user_service),
):
    data = service.reset_all_data()
    user_count = users.initialize_users()
    logger.info("Portal data reset by %s", session.user.id)
    return ResetDataResponse(
        students=len(data.students),
        lecturers=len(data.lecturers),
        courses=len(data.courses),
        files=len(data.files),
        messages=len(data.messages),
        notifications=len(data.notifications),
        users=user_count,
    )
