"""
Dependency wiring for the FastAPI app and the CLI scripts.
"""

from __future__ import annotations

from portal.config import get_settings
from portal.db import (
    DocumentStore,
    FirestoreDocumentStore,
    InMemoryDocumentStore,
    SqlDocumentStore,
)
from portal.files import FileService
from portal.markers import InMemoryMarkerStore, MarkerStore, RedisMarkerStore
from portal.notifier import NotificationChecker
from portal.portal_service import PortalService
from portal.storage import InMemoryStorageClient, S3StorageClient, StorageClient
from portal.tracks import load_academic_tracks
from portal.users import UserService
from shared.records import AcademicTrack

_document_store: DocumentStore | None = None
_storage_client: StorageClient | None = None
_marker_store: MarkerStore | None = None
_academic_tracks: list[AcademicTrack] | None = None


def get_document_store() -> DocumentStore:
    """
    Return a singleton document store so data persists across requests.
    """
    global _document_store
    if _document_store:
        return _document_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _document_store = InMemoryDocumentStore()
    elif settings.use_firestore:
        _document_store = FirestoreDocumentStore(
            project_id=settings.firestore_project_id,
            credentials_path=settings.firebase_credentials_path,
        )
    elif settings.database_url:
        _document_store = SqlDocumentStore(settings.database_url)
    else:
        _document_store = InMemoryDocumentStore()
    return _document_store


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.storage_bucket:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.storage_bucket,
            region=settings.storage_region or "",
            endpoint=settings.storage_endpoint or "",
            access_key_id=settings.storage_access_key_id or "",
            secret_access_key=settings.storage_secret_access_key or "",
        )
    return _storage_client


def get_marker_store() -> MarkerStore:
    """
    Return a singleton store for "last seen notification" markers.
    """
    global _marker_store
    if _marker_store:
        return _marker_store

    settings = get_settings()
    if settings.redis_url and not settings.use_in_memory_backends:
        _marker_store = RedisMarkerStore(
            url=settings.redis_url,
            key_prefix=settings.redis_marker_prefix,
        )
    else:
        _marker_store = InMemoryMarkerStore()
    return _marker_store


def get_academic_tracks() -> list[AcademicTrack]:
    global _academic_tracks
    if _academic_tracks is None:
        settings = get_settings()
        _academic_tracks = load_academic_tracks(
            path=settings.academic_tracks_path, url=settings.academic_tracks_url
        )
    return _academic_tracks


def get_portal_service() -> PortalService:
    return PortalService(get_document_store())


def get_user_service() -> UserService:
    return UserService(get_document_store())


def get_file_service() -> FileService:
    return FileService(
        get_portal_service(),
        get_storage_client(),
        download_url_expires_seconds=get_settings().download_url_expires_seconds,
    )


def get_notification_checker() -> NotificationChecker:
    return NotificationChecker(
        get_portal_service(),
        get_marker_store(),
        poll_interval_seconds=get_settings().notification_poll_seconds,
    )


def reset_backends() -> None:
    """Drop every cached backend (tests and settings changes)."""
    global _document_store, _storage_client, _marker_store, _academic_tracks
    _document_store = None
    _storage_client = None
    _marker_store = None
    _academic_tracks = None
