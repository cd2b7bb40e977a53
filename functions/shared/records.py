# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import dataclass, field
from typing import List, Optional

from shared.types import (
    ActiveStatus,
    FileStatus,
    MessageStatus,
    MessageType,
    NotificationType,
    Priority,
    Semester,
    StudentStatus,
    UploaderType,
    UserRole,
)


@dataclass
class Student:
    id: str = ""
    full_name: str = ""
    email: str = ""
    student_id: str = ""
    national_id: Optional[str] = None
    academic_track: str = ""
    academic_track_ids: List[str] = field(default_factory=list)
    year: int = 1
    phone: Optional[str] = None
    status: StudentStatus = StudentStatus.ACTIVE
    user_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Lecturer:
    id: str = ""
    full_name: str = ""
    email: str = ""
    employee_id: str = ""
    national_id: Optional[str] = None
    department: str = ""
    specialization: str = ""
    phone: Optional[str] = None
    status: ActiveStatus = ActiveStatus.ACTIVE
    academic_track_ids: List[str] = field(default_factory=list)
    user_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Admin:
    """Admin projection of a unified user."""

    id: str = ""
    full_name: str = ""
    email: str = ""
    national_id: str = ""
    admin_id: str = ""


@dataclass
class Course:
    id: str = ""
    name: str = ""
    code: str = ""
    description: str = ""
    credits: int = 0
    semester: Semester = Semester.A
    year: int = 0
    lecturer_id: str = ""
    academic_track: str = ""
    academic_track_ids: List[str] = field(default_factory=list)
    max_students: int = 0
    enrolled_students: int = 0
    status: ActiveStatus = ActiveStatus.ACTIVE
    created_at: str = ""
    updated_at: str = ""


@dataclass
class CourseFile:
    """Metadata of an uploaded course file. The bytes live in object storage."""

    id: str = ""
    filename: str = ""
    original_name: str = ""
    file_type: str = ""
    file_size: int = 0
    course_id: str = ""
    uploader_id: str = ""
    uploader_type: UploaderType = UploaderType.STUDENT
    status: FileStatus = FileStatus.PENDING
    approval_date: Optional[str] = None
    approved_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    download_count: int = 0
    tags: List[str] = field(default_factory=list)
    download_url: Optional[str] = None
    storage_path: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Message:
    id: str = ""
    sender_id: str = ""
    sender_type: UploaderType = UploaderType.STUDENT
    recipient_id: Optional[str] = None
    subject: str = ""
    content: str = ""
    message_type: MessageType = MessageType.GENERAL
    status: MessageStatus = MessageStatus.OPEN
    priority: Priority = Priority.MEDIUM
    category: str = ""
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Notification:
    id: str = ""
    user_id: str = ""
    title: str = ""
    message: str = ""
    type: NotificationType = NotificationType.INFO
    is_read: bool = False
    action_url: Optional[str] = None
    action_text: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class User:
    """A person with one or more roles; role-specific fields are optional."""

    id: str = ""
    full_name: str = ""
    email: str = ""
    national_id: str = ""
    roles: List[UserRole] = field(default_factory=list)
    current_role: Optional[UserRole] = None
    password_hash: Optional[str] = None
    # Student role
    student_id: Optional[str] = None
    academic_track_ids: List[str] = field(default_factory=list)
    year: Optional[int] = None
    status: Optional[StudentStatus] = None
    # Lecturer role
    employee_id: Optional[str] = None
    lecturer_academic_track_ids: List[str] = field(default_factory=list)
    # Admin role
    admin_id: Optional[str] = None
    theme_preference: str = "light"
    created_at: str = ""
    updated_at: str = ""


@dataclass
class UserSession:
    token: str
    user: User
    current_role: Optional[UserRole] = None
    available_roles: List[UserRole] = field(default_factory=list)
    created_at: str = ""


@dataclass
class AcademicTrack:
    id: str
    name: str
    department: str = ""
    degree_level: str = ""


# Older documents use different names for a few fields.
LEGACY_FIELD_ALIASES = {
    Notification: {"read": "is_read"},
    Lecturer: {"academic_tracks": "academic_track_ids"},
    Course: {"course_name": "name", "course_code": "code"},
}
