"""
Per-collection access to portal records on top of a DocumentStore.

Records come back as dataclasses from shared.records. Writes accept either a
record or a plain dict of fields; enum fields are validated when the record is
materialised, so an unknown status raises InvalidRecordError before anything
is stored.
"""

from __future__ import annotations

import logging
import random
import re
import string
import time
from dataclasses import is_dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Type, TypeVar

from dacite import DaciteError

from portal.db import DocumentStore
from portal.errors import InvalidRecordError
from portal.seed import MockDataGenerator, SeedData
from shared.constants import DEFAULT_RECENT_LIMIT, MAX_MESSAGE_CONTENT_LENGTH
from shared.firebase_constants import (
    ALL_COLLECTIONS,
    COURSES_COLLECTION,
    FILES_COLLECTION,
    LECTURERS_COLLECTION,
    MESSAGES_COLLECTION,
    NOTIFICATIONS_COLLECTION,
    STUDENTS_COLLECTION,
)
from shared.json_utils import from_document, timestamp_millis, to_document, utc_now_iso
from shared.records import Course, CourseFile, Lecturer, Message, Notification, Student
from shared.types import FileStatus
from shared.validation import is_valid_email, is_valid_israeli_id

logger = logging.getLogger(__name__)

T = TypeVar("T")

ID_ALPHABET = string.ascii_lowercase + string.digits

# Keys of a browser localStorage export and the collections they map to.
LOCAL_EXPORT_KEYS = {
    "app_students": (STUDENTS_COLLECTION, "student"),
    "app_lecturers": (LECTURERS_COLLECTION, "lecturer"),
    "app_courses": (COURSES_COLLECTION, "course"),
    "app_files": (FILES_COLLECTION, "file"),
    "app_messages": (MESSAGES_COLLECTION, "message"),
    "app_notifications": (NOTIFICATIONS_COLLECTION, "notification"),
}

MIN_TOTAL_FILES = 50
MIN_PENDING_FILES = 10
MIN_APPROVED_FILES = 15
MIN_REJECTED_FILES = 5
COMPLETENESS_BATCH_SIZE = 60

SEEDED_FILE_ID = re.compile(r"^file-(\d+)$")


def generate_id(prefix: str) -> str:
    """Record id of the form `<prefix>-<epoch ms>-<9 random chars>`."""
    suffix = "".join(random.choices(ID_ALPHABET, k=9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def newest_first(records: Iterable[T]) -> list[T]:
    return sorted(records, key=lambda r: timestamp_millis(r.created_at), reverse=True)


def _payload(data: Any) -> dict:
    if is_dataclass(data):
        return to_document(data)
    return to_document(dict(data or {}))


def check_identity_fields(payload: Mapping[str, Any]) -> None:
    """Raises InvalidRecordError for a malformed national id or email, when present."""
    national_id = payload.get("national_id")
    if national_id is not None and not is_valid_israeli_id(str(national_id)):
        raise InvalidRecordError(f"Invalid national id: {national_id}")
    email = payload.get("email")
    if email and not is_valid_email(email):
        raise InvalidRecordError(f"Invalid email address: {email}")


def _check_message_content(payload: Mapping[str, Any]) -> None:
    content = payload.get("content") or ""
    if len(content) > MAX_MESSAGE_CONTENT_LENGTH:
        raise InvalidRecordError(
            f"Message content is limited to {MAX_MESSAGE_CONTENT_LENGTH} characters"
        )


def _seed_writes(collection: str, records: Iterable[Any]):
    for record in records:
        document = to_document(record)
        doc_id = document.pop("id")
        yield collection, doc_id, document


class PortalService:
    """CRUD for students, lecturers, courses, files, messages and notifications."""

    def __init__(
        self, store: DocumentStore, generator: Optional[MockDataGenerator] = None
    ):
        self.store = store
        self.generator = generator or MockDataGenerator()

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------
    def _materialize(self, record_type: Type[T], doc: dict) -> Optional[T]:
        try:
            return from_document(record_type, doc, doc.get("id"))
        except (ValueError, TypeError, DaciteError) as exc:
            logger.warning(
                "Skipping malformed %s document %s: %s",
                record_type.__name__,
                doc.get("id"),
                exc,
            )
            return None

    def _validate(self, record_type: Type[T], payload: dict, doc_id: str) -> T:
        try:
            return from_document(record_type, payload, doc_id)
        except (ValueError, TypeError, DaciteError) as exc:
            raise InvalidRecordError(
                f"Invalid {record_type.__name__.lower()} data: {exc}"
            ) from exc

    def _list(self, record_type: Type[T], collection: str) -> list[T]:
        try:
            docs = self.store.list_documents(collection)
        except Exception:
            logger.exception("Failed to list %s", collection)
            raise
        records = (self._materialize(record_type, doc) for doc in docs)
        return [record for record in records if record is not None]

    def _get(self, record_type: Type[T], collection: str, doc_id: str) -> Optional[T]:
        try:
            doc = self.store.get_document(collection, doc_id)
        except Exception:
            logger.exception("Failed to fetch %s/%s", collection, doc_id)
            raise
        if doc is None:
            return None
        return self._materialize(record_type, doc)

    def _add(self, record_type: Type[T], collection: str, prefix: str, data: Any) -> T:
        payload = _payload(data)
        payload.pop("id", None)
        now = utc_now_iso()
        payload["created_at"] = payload.get("created_at") or now
        payload["updated_at"] = now
        doc_id = generate_id(prefix)
        record = self._validate(record_type, payload, doc_id)
        document = to_document(record)
        document.pop("id")
        try:
            self.store.set_document(collection, doc_id, document)
        except Exception:
            logger.exception("Failed to add document to %s", collection)
            raise
        return record

    def _update(
        self, record_type: Type[T], collection: str, doc_id: str, updates: Any
    ) -> Optional[T]:
        changes = _payload(updates)
        changes.pop("id", None)
        changes.pop("created_at", None)
        changes["updated_at"] = utc_now_iso()
        existing = self.store.get_document(collection, doc_id)
        if existing is None:
            return None
        self._validate(record_type, {**existing, **changes}, doc_id)
        try:
            updated = self.store.update_document(collection, doc_id, changes)
        except Exception:
            logger.exception("Failed to update %s/%s", collection, doc_id)
            raise
        if updated is None:
            return None
        return self._materialize(record_type, updated)

    def _delete(self, collection: str, doc_id: str) -> bool:
        try:
            return self.store.delete_document(collection, doc_id)
        except Exception:
            logger.exception("Failed to delete %s/%s", collection, doc_id)
            raise

    # ------------------------------------------------------------------
    # Students
    # ------------------------------------------------------------------
    def get_students(self) -> list[Student]:
        students = self._list(Student, STUDENTS_COLLECTION)
        return sorted(students, key=lambda s: s.full_name.casefold())

    def get_student(self, student_id: str) -> Optional[Student]:
        return self._get(Student, STUDENTS_COLLECTION, student_id)

    def add_student(self, data: Any) -> Student:
        """
        Adds a student. A student whose email, student number or national id
        is already registered is returned as is instead of being duplicated.
        """
        payload = _payload(data)
        national_id = str(payload.get("national_id") or "").strip()
        if not national_id:
            raise InvalidRecordError("national_id is required to create a student")
        payload["national_id"] = national_id
        check_identity_fields(payload)

        existing = self.get_students()
        email = payload.get("email")
        student_number = payload.get("student_id")
        for student in existing:
            if email and student.email == email:
                logger.warning("Student with email %s already exists", email)
                return student
        if student_number:
            for student in existing:
                if student.student_id == student_number:
                    logger.warning(
                        "Student with student_id %s already exists", student_number
                    )
                    return student
        for student in existing:
            if student.national_id == national_id:
                logger.warning("Student with national_id %s already exists", national_id)
                return student

        if not payload.get("academic_track_ids"):
            track = payload.get("academic_track")
            payload["academic_track_ids"] = [track] if track else []
        return self._add(Student, STUDENTS_COLLECTION, "student", payload)

    def update_student(self, student_id: str, updates: Any) -> Optional[Student]:
        updates = _payload(updates)
        check_identity_fields(updates)
        return self._update(Student, STUDENTS_COLLECTION, student_id, updates)

    def delete_student(self, student_id: str) -> bool:
        return self._delete(STUDENTS_COLLECTION, student_id)

    # ------------------------------------------------------------------
    # Lecturers
    # ------------------------------------------------------------------
    def get_lecturers(self) -> list[Lecturer]:
        lecturers = self._list(Lecturer, LECTURERS_COLLECTION)
        return sorted(lecturers, key=lambda l: l.full_name.casefold())

    def get_lecturer(self, lecturer_id: str) -> Optional[Lecturer]:
        return self._get(Lecturer, LECTURERS_COLLECTION, lecturer_id)

    def add_lecturer(self, data: Any) -> Lecturer:
        return self._add(Lecturer, LECTURERS_COLLECTION, "lecturer", data)

    def update_lecturer(self, lecturer_id: str, updates: Any) -> Optional[Lecturer]:
        return self._update(Lecturer, LECTURERS_COLLECTION, lecturer_id, updates)

    def delete_lecturer(self, lecturer_id: str) -> bool:
        return self._delete(LECTURERS_COLLECTION, lecturer_id)

    # ------------------------------------------------------------------
    # Courses
    # ------------------------------------------------------------------
    def get_courses(self) -> list[Course]:
        return self._list(Course, COURSES_COLLECTION)

    def get_course(self, course_id: str) -> Optional[Course]:
        return self._get(Course, COURSES_COLLECTION, course_id)

    def add_course(self, data: Any) -> Course:
        return self._add(Course, COURSES_COLLECTION, "course", data)

    def update_course(self, course_id: str, updates: Any) -> Optional[Course]:
        return self._update(Course, COURSES_COLLECTION, course_id, updates)

    def delete_course(self, course_id: str) -> bool:
        return self._delete(COURSES_COLLECTION, course_id)

    def get_courses_for_tracks(self, track_ids: Optional[Sequence[str]]) -> list[Course]:
        """Courses sharing at least one track; every course when no tracks are given."""
        courses = self.get_courses()
        if not track_ids:
            return courses
        wanted = set(track_ids)
        return [
            course
            for course in courses
            if wanted.intersection(course.academic_track_ids)
            or course.academic_track in wanted
        ]

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------
    def get_files(self) -> list[CourseFile]:
        return self._list(CourseFile, FILES_COLLECTION)

    def get_file(self, file_id: str) -> Optional[CourseFile]:
        return self._get(CourseFile, FILES_COLLECTION, file_id)

    def add_file(self, data: Any) -> CourseFile:
        return self._add(CourseFile, FILES_COLLECTION, "file", data)

    def update_file(self, file_id: str, updates: Any) -> Optional[CourseFile]:
        return self._update(CourseFile, FILES_COLLECTION, file_id, updates)

    def delete_file(self, file_id: str) -> bool:
        return self._delete(FILES_COLLECTION, file_id)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------
    def get_messages(self) -> list[Message]:
        return self._list(Message, MESSAGES_COLLECTION)

    def get_message(self, message_id: str) -> Optional[Message]:
        return self._get(Message, MESSAGES_COLLECTION, message_id)

    def add_message(self, data: Any) -> Message:
        data = _payload(data)
        _check_message_content(data)
        return self._add(Message, MESSAGES_COLLECTION, "message", data)

    def update_message(self, message_id: str, updates: Any) -> Optional[Message]:
        updates = _payload(updates)
        _check_message_content(updates)
        return self._update(Message, MESSAGES_COLLECTION, message_id, updates)

    def delete_message(self, message_id: str) -> bool:
        return self._delete(MESSAGES_COLLECTION, message_id)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def get_notifications(self) -> list[Notification]:
        return self._list(Notification, NOTIFICATIONS_COLLECTION)

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        return self._get(Notification, NOTIFICATIONS_COLLECTION, notification_id)

    def add_notification(self, data: Any) -> Notification:
        return self._add(Notification, NOTIFICATIONS_COLLECTION, "notification", data)

    def update_notification(
        self, notification_id: str, updates: Any
    ) -> Optional[Notification]:
        return self._update(
            Notification, NOTIFICATIONS_COLLECTION, notification_id, updates
        )

    def delete_notification(self, notification_id: str) -> bool:
        return self._delete(NOTIFICATIONS_COLLECTION, notification_id)

    def get_unread_notifications(self, user_id: str) -> list[Notification]:
        return newest_first(
            n
            for n in self.get_notifications()
            if n.user_id == user_id and not n.is_read
        )

    def mark_notification_read(self, notification_id: str) -> Optional[Notification]:
        return self.update_notification(notification_id, {"is_read": True})

    def mark_all_notifications_read(self, user_id: str) -> int:
        unread = self.get_unread_notifications(user_id)
        for notification in unread:
            self.update_notification(notification.id, {"is_read": True})
        return len(unread)

    # ------------------------------------------------------------------
    # Recent activity
    # ------------------------------------------------------------------
    def get_recent_notifications(
        self, user_id: Optional[str] = None, limit: int = DEFAULT_RECENT_LIMIT
    ) -> list[Notification]:
        notifications = self.get_notifications()
        if user_id:
            notifications = [n for n in notifications if n.user_id == user_id]
        return newest_first(notifications)[:limit]

    def get_recent_messages(
        self,
        user_id: Optional[str] = None,
        user_type: Optional[str] = None,
        limit: int = DEFAULT_RECENT_LIMIT,
    ) -> list[Message]:
        """
        Newest messages. `user_id` keeps messages sent by or to that user,
        `user_type` keeps messages whose sender has that role.
        """
        messages = self.get_messages()
        if user_id:
            messages = [
                m for m in messages if m.sender_id == user_id or m.recipient_id == user_id
            ]
        if user_type:
            messages = [m for m in messages if m.sender_type == user_type]
        return newest_first(messages)[:limit]

    def get_recent_files(
        self,
        status: Optional[str] = None,
        uploader_id: Optional[str] = None,
        uploader_type: Optional[str] = None,
        limit: int = DEFAULT_RECENT_LIMIT,
    ) -> list[CourseFile]:
        files = self.get_files()
        if status:
            files = [f for f in files if f.status == status]
        if uploader_id:
            files = [f for f in files if f.uploader_id == uploader_id]
        if uploader_type:
            files = [f for f in files if f.uploader_type == uploader_type]
        return newest_first(files)[:limit]

    # ------------------------------------------------------------------
    # Data lifecycle
    # ------------------------------------------------------------------
    def initialize_data(self, export: Optional[Mapping[str, list]] = None) -> None:
        """
        Fills an empty store, from `export` when one is given and with mock
        data otherwise. A populated store is topped up with files instead.
        """
        if self.store.is_empty(STUDENTS_COLLECTION):
            if export:
                logger.info("No portal data found, importing local export")
                self.migrate_from_local_export(export)
            else:
                logger.info("No portal data found, generating mock data")
                self.generate_mock_data()
        else:
            self.ensure_data_completeness()
        logger.info("Portal data initialization complete")

    def generate_mock_data(self) -> SeedData:
        data = self.generator.generate_dataset()
        writes = [
            *_seed_writes(STUDENTS_COLLECTION, data.students),
            *_seed_writes(LECTURERS_COLLECTION, data.lecturers),
            *_seed_writes(COURSES_COLLECTION, data.courses),
            *_seed_writes(FILES_COLLECTION, data.files),
            *_seed_writes(MESSAGES_COLLECTION, data.messages),
            *_seed_writes(NOTIFICATIONS_COLLECTION, data.notifications),
        ]
        self.store.batch_set(writes)
        logger.info(
            "Generated %d students, %d lecturers, %d courses, %d files, "
            "%d messages, %d notifications",
            len(data.students),
            len(data.lecturers),
            len(data.courses),
            len(data.files),
            len(data.messages),
            len(data.notifications),
        )
        return data

    def file_status_report(self) -> dict:
        files = self.get_files()
        report = {"total": len(files)}
        for status in FileStatus:
            report[status.value] = sum(1 for f in files if f.status == status)
        return report

    def ensure_data_completeness(self) -> int:
        """
        Adds a batch of mock files when there are too few files overall or in
        any status. Returns the number of files added.
        """
        files = self.get_files()
        report = self.file_status_report()
        logger.info(
            "Files by status: %d pending, %d approved, %d rejected",
            report[FileStatus.PENDING.value],
            report[FileStatus.APPROVED.value],
            report[FileStatus.REJECTED.value],
        )
        needs_more = (
            report["total"] < MIN_TOTAL_FILES
            or report[FileStatus.PENDING.value] < MIN_PENDING_FILES
            or report[FileStatus.APPROVED.value] < MIN_APPROVED_FILES
            or report[FileStatus.REJECTED.value] < MIN_REJECTED_FILES
        )
        if not needs_more:
            return 0

        start_index = max(
            (int(m.group(1)) for m in (SEEDED_FILE_ID.match(f.id) for f in files) if m),
            default=0,
        )
        extra = self.generator.generate_files(
            COMPLETENESS_BATCH_SIZE,
            self.get_courses(),
            self.get_students(),
            start_index=start_index,
        )
        self.store.batch_set(_seed_writes(FILES_COLLECTION, extra))
        logger.info("Added %d files to keep every status populated", len(extra))
        return len(extra)

    def clear_all_data(self) -> int:
        deleted = 0
        for collection in ALL_COLLECTIONS:
            deleted += self.store.clear_collection(collection)
        logger.info("Cleared %d documents", deleted)
        return deleted

    def reset_all_data(self) -> SeedData:
        self.clear_all_data()
        return self.generate_mock_data()

    def migrate_from_local_export(self, export: Mapping[str, list]) -> dict[str, int]:
        """
        Imports a browser localStorage export (`app_students`, `app_files`, ...).
        Documents keep their ids; ones without an id get a generated one.
        Returns the number of documents imported per collection.
        """
        counts: dict[str, int] = {}
        writes = []
        for key, (collection, prefix) in LOCAL_EXPORT_KEYS.items():
            items = export.get(key) or []
            for item in items:
                document = dict(item)
                doc_id = document.pop("id", None) or generate_id(prefix)
                writes.append((collection, doc_id, document))
            counts[collection] = len(items)
        self.store.batch_set(writes)
        logger.info("Imported local export: %s", counts)
        return counts
