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

MAX_UPLOAD_BYTES = 50 * 1024 * 1024
MAX_REJECTION_REASON_LENGTH = 500
MAX_MESSAGE_CONTENT_LENGTH = 5000

NOTIFICATION_POLL_SECONDS = 30
DEFAULT_RECENT_LIMIT = 5

ALLOWED_UPLOAD_TYPES = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "txt": "text/plain",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
}

FALLBACK_CONTENT_TYPE = "application/octet-stream"

# Role-specific user identifiers look like STU0001, EMP0001, ADM0001.
STUDENT_ID_PREFIX = "STU"
EMPLOYEE_ID_PREFIX = "EMP"
ADMIN_ID_PREFIX = "ADM"
ROLE_ID_DIGITS = 4
