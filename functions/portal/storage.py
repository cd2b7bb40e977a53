"""
Object storage for uploaded course files: S3-compatible buckets and an
in-memory test double. Objects are addressed by their storage path, e.g.
courses/<course_id>/files/<name>.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

import boto3
from botocore.config import Config

from shared.constants import FALLBACK_CONTENT_TYPE


class StorageClient(Protocol):
    """Operations the portal needs from object storage."""

    def upload_bytes(
        self, path: str, content: bytes, content_type: Optional[str] = None
    ) -> None:
        ...

    def delete(self, path: str) -> None:
        ...

    def signed_url(self, path: str, expires_in: int = 3600) -> str:
        ...

    def list_paths(self, prefix: str) -> list[str]:
        ...


@dataclass
class InMemoryStorageClient:
    base_url: str = "https://storage.test/course-files"
    stored_objects: dict[str, bytes] = field(default_factory=dict)
    content_types: dict[str, str] = field(default_factory=dict)

    def upload_bytes(
        self, path: str, content: bytes, content_type: Optional[str] = None
    ) -> None:
        self.stored_objects[path] = bytes(content)
        self.content_types[path] = content_type or FALLBACK_CONTENT_TYPE

    def delete(self, path: str) -> None:
        if self.stored_objects.pop(path, None) is None:
            raise FileNotFoundError(path)
        self.content_types.pop(path, None)

    def signed_url(self, path: str, expires_in: int = 3600) -> str:
        return f"{self.base_url}/{path}?expires={expires_in}"

    def list_paths(self, prefix: str) -> list[str]:
        return sorted(p for p in self.stored_objects if p.startswith(prefix))


@dataclass
class S3StorageClient:
    """
    Any S3-compatible bucket (AWS, GCS interoperability, MinIO). Empty
    credentials fall back to boto3's default credential chain.
    """

    bucket: str
    region: str = ""
    endpoint: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""

    def __post_init__(self):
        self._s3 = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=Config(signature_version="s3v4"),
        )

    def upload_bytes(
        self, path: str, content: bytes, content_type: Optional[str] = None
    ) -> None:
        self._s3.put_object(
            Bucket=self.bucket,
            Key=path,
            Body=content,
            ContentType=content_type or FALLBACK_CONTENT_TYPE,
        )

    def delete(self, path: str) -> None:
        self._s3.delete_object(Bucket=self.bucket, Key=path)

    def signed_url(self, path: str, expires_in: int = 3600) -> str:
        return self._s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": path},
            ExpiresIn=expires_in,
        )

    def list_paths(self, prefix: str) -> list[str]:
        pages = self._s3.get_paginator("list_objects_v2").paginate(
            Bucket=self.bucket, Prefix=prefix
        )
        return [obj["Key"] for page in pages for obj in page.get("Contents", [])]
