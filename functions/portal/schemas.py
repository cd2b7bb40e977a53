"""
Pydantic schemas for the portal API.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from shared.constants import MAX_REJECTION_REASON_LENGTH
from shared.types import StudentStatus, UploaderType, UserRole


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=254)
    password: str = Field(..., max_length=128)


class SessionResponse(BaseModel):
    token: str
    user: dict
    current_role: Optional[UserRole] = None
    available_roles: list[UserRole]


class SwitchRoleRequest(BaseModel):
    role: UserRole


class DeleteResponse(BaseModel):
    deleted: bool


class UserCreateRequest(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, max_length=254)
    national_id: str = Field(..., min_length=5, max_length=9)
    roles: list[UserRole] = Field(..., min_length=1)
    current_role: Optional[UserRole] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    student_id: Optional[str] = None
    academic_track_ids: list[str] = Field(default_factory=list)
    year: Optional[int] = Field(None, ge=1, le=7)
    status: Optional[StudentStatus] = None
    employee_id: Optional[str] = None
    lecturer_academic_track_ids: list[str] = Field(default_factory=list)
    admin_id: Optional[str] = None


class UserUpdateRequest(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = Field(None, min_length=3, max_length=254)
    national_id: Optional[str] = Field(None, min_length=5, max_length=9)
    roles: Optional[list[UserRole]] = Field(None, min_length=1)
    current_role: Optional[UserRole] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    student_id: Optional[str] = None
    academic_track_ids: Optional[list[str]] = None
    year: Optional[int] = Field(None, ge=1, le=7)
    status: Optional[StudentStatus] = None
    employee_id: Optional[str] = None
    lecturer_academic_track_ids: Optional[list[str]] = None
    admin_id: Optional[str] = None
    theme_preference: Optional[str] = None


class FileUploadResponse(BaseModel):
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


class RejectFileRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=MAX_REJECTION_REASON_LENGTH)


class DownloadUrlResponse(BaseModel):
    url: str
    download_count: int


class NotificationCheckResponse(BaseModel):
    notification: Optional[dict] = None


class NotificationCountsResponse(BaseModel):
    unread_notifications: int
    unhandled_inquiries: int


class MarkAllReadResponse(BaseModel):
    updated: int


class AcademicTrackResponse(BaseModel):
    id: str
    name: str
    department: str = ""
    degree_level: str = ""


class FileStatusReport(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int


class EnsureFileVarietyResponse(BaseModel):
    added: int
    report: FileStatusReport


class ResetDataResponse(BaseModel):
    students: int
    lecturers: int
    courses: int
    files: int
    messages: int
    notifications: int
    users: int
