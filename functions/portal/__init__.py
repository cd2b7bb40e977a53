"""
Backend package for the course portal.

This package provides a FastAPI application plus document-store, object
storage and notification abstractions so the portal can run against
Firestore in production and in-memory backends in development and tests.
"""
