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

# Document collection names, shared by every store backend.
STUDENTS_COLLECTION = "students"
LECTURERS_COLLECTION = "lecturers"
COURSES_COLLECTION = "courses"
FILES_COLLECTION = "files"
MESSAGES_COLLECTION = "messages"
NOTIFICATIONS_COLLECTION = "notifications"
USERS_COLLECTION = "users"
USER_SESSIONS_COLLECTION = "user_sessions"

ALL_COLLECTIONS = (
    STUDENTS_COLLECTION,
    LECTURERS_COLLECTION,
    COURSES_COLLECTION,
    FILES_COLLECTION,
    MESSAGES_COLLECTION,
    NOTIFICATIONS_COLLECTION,
    USERS_COLLECTION,
    USER_SESSIONS_COLLECTION,
)

# Firestore rejects batches with more writes than this.
MAX_BATCH_WRITES = 500
