"""
Unified users: one account may hold the student, lecturer and admin roles at
once. Also owns login sessions, stored as token-keyed documents.
"""

from __future__ import annotations

import dataclasses
import logging
import random
import time
import uuid
from typing import Any, Mapping, Optional

from dacite import DaciteError
from werkzeug.security import check_password_hash, generate_password_hash

from portal.db import DocumentStore
from portal.errors import AuthenticationError, ConflictError, InvalidRecordError
from portal.portal_service import check_identity_fields, generate_id
from shared.constants import (
    ADMIN_ID_PREFIX,
    EMPLOYEE_ID_PREFIX,
    ROLE_ID_DIGITS,
    STUDENT_ID_PREFIX,
)
from shared.firebase_constants import USER_SESSIONS_COLLECTION, USERS_COLLECTION
from shared.json_utils import from_document, to_document, utc_now_iso
from shared.records import Admin, Lecturer, Student, User, UserSession
from shared.types import ActiveStatus, StudentStatus, UserRole
from shared.validation import israeli_id_check_digit

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "123456"

DEMO_USERS = [
    {
        "id": "user-001",
        "full_name": 'ד"ר רונה סופר יוזר',
        "email": "all.roles@ono.ac.il",
        "national_id": "123456782",
        "roles": ["student", "lecturer", "admin"],
        "current_role": "admin",
        "student_id": "STU0001",
        "academic_track_ids": ["cs-undergrad"],
        "year": 3,
        "status": "active",
        "employee_id": "EMP0001",
        "lecturer_academic_track_ids": ["cs-undergrad", "cs-grad"],
        "admin_id": "ADM0001",
    },
    {
        "id": "user-002",
        "full_name": "יוסי כהן",
        "email": "yossi.cohen@student.ono.ac.il",
        "national_id": "987654324",
        "roles": ["student"],
        "current_role": "student",
        "student_id": "STU0002",
        "academic_track_ids": ["cs-undergrad"],
        "year": 2,
        "status": "active",
    },
    {
        "id": "user-003",
        "full_name": 'ד"ר מיכל לוי',
        "email": "michal.levi@ono.ac.il",
        "national_id": "555666775",
        "roles": ["lecturer", "admin"],
        "current_role": "lecturer",
        "employee_id": "EMP0002",
        "lecturer_academic_track_ids": ["math-undergrad"],
        "admin_id": "ADM0002",
    },
    {
        "id": "user-004",
        "full_name": "נועה ברק",
        "email": "student@ono.ac.il",
        "national_id": "200000008",
        "roles": ["student"],
        "current_role": "student",
        "student_id": "STU0003",
        "academic_track_ids": ["swe-undergrad"],
        "year": 1,
        "status": "active",
    },
    {
        "id": "user-005",
        "full_name": 'ד"ר אבי גולד',
        "email": "lecturer@ono.ac.il",
        "national_id": "300000007",
        "roles": ["lecturer"],
        "current_role": "lecturer",
        "employee_id": "EMP0003",
        "lecturer_academic_track_ids": ["swe-undergrad", "cs-undergrad"],
    },
    {
        "id": "user-006",
        "full_name": "הדר רוזן",
        "email": "admin@ono.ac.il",
        "national_id": "400000006",
        "roles": ["admin"],
        "current_role": "admin",
        "admin_id": "ADM0003",
    },
    {
        "id": "user-007",
        "full_name": "עמית כץ",
        "email": "student.lecturer@ono.ac.il",
        "national_id": "500000005",
        "roles": ["student", "lecturer"],
        "current_role": "student",
        "student_id": "STU0004",
        "academic_track_ids": ["math-undergrad"],
        "year": 4,
        "status": "active",
        "employee_id": "EMP0004",
        "lecturer_academic_track_ids": ["math-undergrad"],
    },
    {
        "id": "user-008",
        "full_name": "פרופ' טל שמיר",
        "email": "lecturer.admin@ono.ac.il",
        "national_id": "600000004",
        "roles": ["lecturer", "admin"],
        "current_role": "lecturer",
        "employee_id": "EMP0005",
        "lecturer_academic_track_ids": ["law-undergrad"],
        "admin_id": "ADM0004",
    },
]

ROLE_ID_FIELDS = {
    UserRole.STUDENT: ("student_id", STUDENT_ID_PREFIX),
    UserRole.LECTURER: ("employee_id", EMPLOYEE_ID_PREFIX),
    UserRole.ADMIN: ("admin_id", ADMIN_ID_PREFIX),
}


def _random_national_id() -> str:
    first_eight = f"{random.randrange(10_000_000, 100_000_000)}"
    return f"{first_eight}{israeli_id_check_digit(first_eight)}"


def _public(user: User) -> User:
    return dataclasses.replace(user, password_hash=None)


class UserService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def _to_user(self, doc: dict) -> Optional[User]:
        try:
            return from_document(User, doc, doc.get("id"))
        except (ValueError, TypeError, DaciteError) as exc:
            logger.warning("Skipping malformed user %s: %s", doc.get("id"), exc)
            return None

    def _to_users(self, docs: list[dict]) -> list[User]:
        users = (self._to_user(doc) for doc in docs)
        return [user for user in users if user is not None]

    def _save(self, user: User) -> None:
        document = to_document(user)
        document.pop("id")
        self.store.set_document(USERS_COLLECTION, user.id, document)

    def initialize_users(self) -> int:
        """Seeds the demo accounts into an empty users collection."""
        if not self.store.is_empty(USERS_COLLECTION):
            return 0
        now = utc_now_iso()
        password_hash = generate_password_hash(DEMO_PASSWORD)
        writes = []
        for data in DEMO_USERS:
            document = {
                **data,
                "password_hash": password_hash,
                "created_at": now,
                "updated_at": now,
            }
            writes.append((USERS_COLLECTION, document.pop("id"), document))
        self.store.batch_set(writes)
        logger.info("Initialized %d demo users", len(writes))
        return len(writes)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get_all_users(self) -> list[User]:
        return self._to_users(self.store.list_documents(USERS_COLLECTION))

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        doc = self.store.get_document(USERS_COLLECTION, user_id)
        return self._to_user(doc) if doc else None

    def _first_by(self, field: str, value: str) -> Optional[User]:
        users = self._to_users(self.store.find_documents(USERS_COLLECTION, field, value))
        return users[0] if users else None

    def get_user_by_national_id(self, national_id: str) -> Optional[User]:
        return self._first_by("national_id", national_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._first_by("email", email)

    def get_users_by_role(self, role: UserRole | str) -> list[User]:
        docs = self.store.find_documents(
            USERS_COLLECTION, "roles", UserRole(role).value, op="array-contains"
        )
        return self._to_users(docs)

    def get_students(self) -> list[Student]:
        return [
            Student(
                id=user.id,
                full_name=user.full_name,
                email=user.email,
                national_id=user.national_id,
                student_id=user.student_id or "",
                academic_track=user.academic_track_ids[0] if user.academic_track_ids else "",
                academic_track_ids=list(user.academic_track_ids),
                year=user.year or 1,
                status=user.status or StudentStatus.ACTIVE,
                user_id=user.id,
                created_at=user.created_at,
                updated_at=user.updated_at,
            )
            for user in self.get_users_by_role(UserRole.STUDENT)
        ]

    def get_lecturers(self) -> list[Lecturer]:
        return [
            Lecturer(
                id=user.id,
                full_name=user.full_name,
                email=user.email,
                national_id=user.national_id,
                employee_id=user.employee_id or "",
                status=ActiveStatus.ACTIVE,
                academic_track_ids=list(user.lecturer_academic_track_ids),
                user_id=user.id,
                created_at=user.created_at,
                updated_at=user.updated_at,
            )
            for user in self.get_users_by_role(UserRole.LECTURER)
        ]

    def get_admins(self) -> list[Admin]:
        return [
            Admin(
                id=user.id,
                full_name=user.full_name,
                email=user.email,
                national_id=user.national_id,
                admin_id=user.admin_id or "",
            )
            for user in self.get_users_by_role(UserRole.ADMIN)
        ]

    # ------------------------------------------------------------------
    # Create / update / delete
    # ------------------------------------------------------------------
    def _next_role_id(self, role: UserRole) -> str:
        field, prefix = ROLE_ID_FIELDS[role]
        highest = 0
        for user in self.get_users_by_role(role):
            value = getattr(user, field) or ""
            if value.startswith(prefix) and value[len(prefix):].isdigit():
                highest = max(highest, int(value[len(prefix):]))
        return f"{prefix}{highest + 1:0{ROLE_ID_DIGITS}d}"

    def is_email_unique(self, email: str, exclude_user_id: Optional[str] = None) -> bool:
        return not any(
            user.email == email and user.id != exclude_user_id
            for user in self.get_all_users()
        )

    def is_national_id_unique(
        self, national_id: str, exclude_user_id: Optional[str] = None
    ) -> bool:
        return not any(
            user.national_id == national_id and user.id != exclude_user_id
            for user in self.get_all_users()
        )

    def create_user(self, data: Mapping[str, Any], password: Optional[str] = None) -> User:
        """
        Creates a user. Role ids (STU0001, EMP0001, ADM0001) are generated for
        every role that comes without one.
        """
        payload = to_document(dict(data))
        payload.pop("password_hash", None)
        if not payload.get("roles"):
            raise InvalidRecordError("A user needs at least one role")
        email = payload.get("email") or ""
        national_id = payload.get("national_id") or ""
        if not email or not national_id:
            raise InvalidRecordError("email and national_id are required")
        check_identity_fields(payload)
        if not self.is_email_unique(email):
            raise ConflictError(f"A user with email {email} already exists")
        if not self.is_national_id_unique(national_id):
            raise ConflictError(f"A user with national_id {national_id} already exists")

        now = utc_now_iso()
        payload.setdefault("current_role", payload["roles"][0])
        payload["created_at"] = now
        payload["updated_at"] = now
        if password:
            payload["password_hash"] = generate_password_hash(password)
        user_id = payload.pop("id", None) or generate_id("user")
        try:
            user = from_document(User, payload, user_id)
        except (ValueError, TypeError, DaciteError) as exc:
            raise InvalidRecordError(f"Invalid user data: {exc}") from exc

        for role in user.roles:
            field, _ = ROLE_ID_FIELDS[role]
            if not getattr(user, field):
                setattr(user, field, self._next_role_id(role))
        if user.current_role not in user.roles:
            user.current_role = user.roles[0]

        self._save(user)
        logger.info("Created user %s with roles %s", user.id, [r.value for r in user.roles])
        return user

    def update_user(self, user_id: str, updates: Mapping[str, Any]) -> Optional[User]:
        changes = to_document(dict(updates))
        for key in ("id", "created_at", "password_hash"):
            changes.pop(key, None)
        password = changes.pop("password", None)
        existing = self.get_user_by_id(user_id)
        if existing is None:
            return None
        check_identity_fields(changes)
        if "email" in changes and not self.is_email_unique(changes["email"], user_id):
            raise ConflictError(f"A user with email {changes['email']} already exists")
        if "national_id" in changes and not self.is_national_id_unique(
            changes["national_id"], user_id
        ):
            raise ConflictError(
                f"A user with national_id {changes['national_id']} already exists"
            )
        if password:
            changes["password_hash"] = generate_password_hash(password)
        changes["updated_at"] = utc_now_iso()

        merged = {**to_document(existing), **changes}
        try:
            user = from_document(User, merged, user_id)
        except (ValueError, TypeError, DaciteError) as exc:
            raise InvalidRecordError(f"Invalid user data: {exc}") from exc
        if "roles" in changes:
            if not user.roles:
                raise InvalidRecordError("A user needs at least one role")
            # Newly granted roles get an id; the active role must stay one of the roles.
            for role in user.roles:
                field, _ = ROLE_ID_FIELDS[role]
                if not getattr(user, field):
                    changes[field] = self._next_role_id(role)
            if user.current_role not in user.roles:
                changes["current_role"] = user.roles[0].value
        updated = self.store.update_document(USERS_COLLECTION, user_id, changes)
        return self._to_user(updated) if updated else None

    def delete_user(self, user_id: str) -> bool:
        deleted = self.store.delete_document(USERS_COLLECTION, user_id)
        if deleted:
            for session in self.store.find_documents(
                USER_SESSIONS_COLLECTION, "user_id", user_id
            ):
                self.store.delete_document(USER_SESSIONS_COLLECTION, session["id"])
        return deleted

    def switch_user_role(self, user_id: str, role: UserRole | str) -> bool:
        """Changes the user's active role and refreshes their open sessions."""
        user = self.get_user_by_id(user_id)
        try:
            new_role = UserRole(role)
        except ValueError:
            return False
        if user is None or new_role not in user.roles:
            logger.info("User %s not found or role %s not available", user_id, role)
            return False
        updated = self.update_user(user_id, {"current_role": new_role})
        if updated is None:
            return False
        for doc in self.store.find_documents(USER_SESSIONS_COLLECTION, "user_id", user_id):
            session = self._to_session(doc)
            if session is None:
                continue
            session.user = _public(updated)
            session.current_role = new_role
            session.available_roles = list(updated.roles)
            self.set_session(session)
        return True

    def track_ids_for(self, user: User, role: Optional[UserRole | str] = None) -> list[str]:
        """Academic tracks the user sees in `role` (default: their current role)."""
        role = role or user.current_role
        if role == UserRole.STUDENT:
            return list(user.academic_track_ids)
        if role == UserRole.LECTURER:
            return list(user.lecturer_academic_track_ids)
        return []

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------
    def _to_session(self, doc: dict) -> Optional[UserSession]:
        try:
            return from_document(UserSession, doc)
        except (ValueError, TypeError, DaciteError) as exc:
            logger.warning("Dropping malformed session %s: %s", doc.get("id"), exc)
            return None

    def login(self, email: str, password: str) -> UserSession:
        user = self.get_user_by_email((email or "").strip())
        if (
            user is None
            or not user.password_hash
            or not check_password_hash(user.password_hash, password or "")
        ):
            raise AuthenticationError("Invalid email or password")
        session = UserSession(
            token=uuid.uuid4().hex,
            user=_public(user),
            current_role=user.current_role or user.roles[0],
            available_roles=list(user.roles),
            created_at=utc_now_iso(),
        )
        self.set_session(session)
        logger.info("User %s logged in as %s", user.id, session.current_role)
        return session

    def get_session(self, token: str) -> Optional[UserSession]:
        if not token:
            return None
        doc = self.store.get_document(USER_SESSIONS_COLLECTION, token)
        return self._to_session(doc) if doc else None

    def set_session(self, session: UserSession) -> None:
        document = to_document(session)
        document["user_id"] = session.user.id
        self.store.set_document(USER_SESSIONS_COLLECTION, session.token, document)

    def clear_session(self, token: str) -> bool:
        return self.store.delete_document(USER_SESSIONS_COLLECTION, token)

    # ------------------------------------------------------------------
    # Migration
    # ------------------------------------------------------------------
    def migrate_from_legacy_data(self, legacy: Mapping[str, list]) -> list[User]:
        """
        Merges the old per-role lists (`mock_students`, `mock_lecturers`,
        `mock_users`) into unified users. Lecturers merge into a student with
        the same national id; admins merge into a user with the same email.
        """
        now = utc_now_iso()
        migrated: list[dict] = []

        for student in legacy.get("mock_students") or []:
            migrated.append(
                {
                    "id": student.get("id") or generate_id("user"),
                    "full_name": student.get("full_name", ""),
                    "email": student.get("email", ""),
                    "national_id": student.get("national_id") or _random_national_id(),
                    "roles": ["student"],
                    "current_role": "student",
                    "student_id": student.get("student_id"),
                    "academic_track_ids": student.get("academic_track_ids") or [],
                    "year": student.get("year") or 1,
                    "status": student.get("status") or "active",
                }
            )

        for lecturer in legacy.get("mock_lecturers") or []:
            tracks = lecturer.get("academic_track_ids") or lecturer.get("academic_tracks") or []
            existing = next(
                (
                    u
                    for u in migrated
                    if lecturer.get("national_id")
                    and u["national_id"] == lecturer.get("national_id")
                ),
                None,
            )
            if existing:
                if "lecturer" not in existing["roles"]:
                    existing["roles"].append("lecturer")
                existing["employee_id"] = lecturer.get("employee_id")
                existing["lecturer_academic_track_ids"] = tracks
            else:
                migrated.append(
                    {
                        "id": lecturer.get("id") or generate_id("user"),
                        "full_name": lecturer.get("full_name", ""),
                        "email": lecturer.get("email", ""),
                        "national_id": lecturer.get("national_id") or _random_national_id(),
                        "roles": ["lecturer"],
                        "current_role": "lecturer",
                        "employee_id": lecturer.get("employee_id"),
                        "lecturer_academic_track_ids": tracks,
                    }
                )

        for admin in legacy.get("mock_users") or []:
            if "admin" not in (admin.get("roles") or []):
                continue
            admin_id = admin.get("admin_id") or f"{ADMIN_ID_PREFIX}{int(time.time() * 1000)}"
            existing = next((u for u in migrated if u["email"] == admin.get("email")), None)
            if existing:
                if "admin" not in existing["roles"]:
                    existing["roles"].append("admin")
                existing["admin_id"] = admin_id
            else:
                migrated.append(
                    {
                        "id": admin.get("id") or generate_id("user"),
                        "full_name": admin.get("full_name", ""),
                        "email": admin.get("email", ""),
                        "national_id": admin.get("national_id") or _random_national_id(),
                        "roles": ["admin"],
                        "current_role": "admin",
                        "admin_id": admin_id,
                    }
                )

        users = []
        writes = []
        for payload in migrated:
            payload["created_at"] = now
            payload["updated_at"] = now
            user = from_document(User, payload, payload["id"])
            document = to_document(user)
            writes.append((USERS_COLLECTION, document.pop("id"), document))
            users.append(user)
        if writes:
            self.store.batch_set(writes)
            logger.info("Migrated %d legacy users", len(writes))
        return users
