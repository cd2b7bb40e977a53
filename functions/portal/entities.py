"""
Generic entity access by name ("students", "courses", ...), used by the
entity routes. Every operation returns plain dicts.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from portal.errors import EntityNotSupportedError
from portal.portal_service import PortalService
from portal.tracks import load_academic_tracks
from shared.json_utils import to_document
from shared.records import AcademicTrack

logger = logging.getLogger(__name__)

ACADEMIC_TRACKS = "academic-tracks"

# entity name -> (list, get, create, update, delete) PortalService methods
ENTITY_METHODS = {
    "students": ("get_students", "get_student", "add_student", "update_student", "delete_student"),
    "lecturers": ("get_lecturers", "get_lecturer", "add_lecturer", "update_lecturer", "delete_lecturer"),
    "courses": ("get_courses", "get_course", "add_course", "update_course", "delete_course"),
    "files": ("get_files", "get_file", "add_file", "update_file", "delete_file"),
    "messages": ("get_messages", "get_message", "add_message", "update_message", "delete_message"),
    "notifications": (
        "get_notifications",
        "get_notification",
        "add_notification",
        "update_notification",
        "delete_notification",
    ),
}

SUPPORTED_ENTITIES = (*ENTITY_METHODS, ACADEMIC_TRACKS)


def _as_query_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def field_matches(current: Any, value: Any) -> bool:
    """
    Equality, or membership when the stored field is a list. String values
    (e.g. from a query string) also match the string form of stored numbers
    and booleans.
    """
    if isinstance(current, list):
        if value in current:
            return True
        return isinstance(value, str) and value in [_as_query_string(c) for c in current]
    if current == value:
        return True
    if isinstance(value, str) and isinstance(current, (bool, int, float)):
        return _as_query_string(current) == value
    return False


class FirestoreEntity:
    """Dispatches CRUD calls for one entity name to PortalService."""

    def __init__(
        self,
        service: PortalService,
        entity_name: str,
        tracks: Optional[Sequence[AcademicTrack]] = None,
    ):
        self.service = service
        self.entity_name = entity_name
        self._tracks = tracks

    def _method(self, index: int):
        methods = ENTITY_METHODS.get(self.entity_name)
        if methods is None:
            return None
        return getattr(self.service, methods[index])

    def _required_method(self, index: int, operation: str):
        method = self._method(index)
        if method is None:
            logger.warning(
                "%s operation not supported for entity type: %s",
                operation,
                self.entity_name,
            )
            raise EntityNotSupportedError(
                f"{operation} operation not supported for entity type: {self.entity_name}"
            )
        return method

    def list(self) -> list[dict]:
        if self.entity_name == ACADEMIC_TRACKS:
            tracks = self._tracks if self._tracks is not None else load_academic_tracks()
            return [to_document(track) for track in tracks]
        method = self._method(0)
        if method is None:
            logger.warning("Unknown entity type: %s", self.entity_name)
            return []
        return [to_document(record) for record in method()]

    def get(self, entity_id: str) -> Optional[dict]:
        if self.entity_name == ACADEMIC_TRACKS:
            return next((t for t in self.list() if t["id"] == entity_id), None)
        method = self._method(1)
        if method is None:
            logger.warning("Unknown entity type: %s", self.entity_name)
            return None
        record = method(entity_id)
        return to_document(record) if record is not None else None

    def create(self, data: Mapping[str, Any]) -> dict:
        method = self._required_method(2, "Create")
        return to_document(method(data))

    def update(self, entity_id: str, data: Mapping[str, Any]) -> Optional[dict]:
        method = self._required_method(3, "Update")
        record = method(entity_id, data)
        return to_document(record) if record is not None else None

    def delete(self, entity_id: str) -> bool:
        method = self._required_method(4, "Delete")
        return method(entity_id)

    def query(self, params: Optional[Mapping[str, Any]] = None) -> list[dict]:
        items = self.list()
        if not params:
            return items
        for key, value in params.items():
            if value is None:
                continue
            items = [item for item in items if field_matches(item.get(key), value)]
        return items

    def filter(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        sort_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """`query` plus ordering (`-field` for descending) and truncation."""
        items = self.query(filters)
        if sort_by:
            descending = sort_by.startswith("-")
            field = sort_by.lstrip("-")
            # Missing values sort after present ones in ascending order.
            items.sort(
                key=lambda item: (
                    item.get(field) is None,
                    item.get(field) if item.get(field) is not None else "",
                ),
                reverse=descending,
            )
        if limit is not None:
            items = items[: max(limit, 0)]
        return items
