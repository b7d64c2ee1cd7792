"""Object store collaborators: evidence bytes live here, metadata lives in the DB.

Both implementations expose the same async surface; blocking I/O (filesystem,
boto3) is pushed onto a worker thread so the event loop is never stalled.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.clock import utcnow
from app.core.config import Settings
from app.core.exceptions import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedUrl:
    url: str
    expires_at: datetime


class ObjectStore(Protocol):
    async def put(self, key: str, data: bytes, content_type: str) -> None: ...

    async def get(self, key: str) -> bytes: ...

    async def signed_url(self, key: str, expires_in: int) -> SignedUrl: ...


# ---------------------------------------------------------------------------
# Local filesystem (development)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LocalObjectStore:
    root: Path

    def _path(self, key: str) -> Path:
        safe_key = key.lstrip("/").replace("\\", "/")
        path = (self.root / safe_key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise StorageError(f"Key escapes storage root: {key}")
        return path

    def _write(self, key: str, data: bytes) -> None:
        p = self._path(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(self._write, key, data)
        except OSError as exc:
            raise StorageError(f"Failed to write object '{key}': {exc}") from exc

    async def get(self, key: str) -> bytes:
        try:
            return await asyncio.to_thread(self._path(key).read_bytes)
        except OSError as exc:
            raise StorageError(f"Failed to read object '{key}': {exc}") from exc

    async def signed_url(self, key: str, expires_in: int) -> SignedUrl:
        # No signing on local disk; a file URI is enough for development viewers
        return SignedUrl(
            url=self._path(key).as_uri(),
            expires_at=utcnow() + timedelta(seconds=expires_in),
        )


# ---------------------------------------------------------------------------
# S3-compatible (AWS S3, R2, Spaces, MinIO)
# ---------------------------------------------------------------------------

class S3ObjectStore:
    def __init__(
        self,
        bucket: str,
        *,
        endpoint: str | None = None,
        region: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        client=None,
    ):
        self._bucket = bucket
        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint or None,
            region_name=region or None,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self._bucket, Key=key, Body=data, ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 put failed for %s: %s", key, exc)
            raise StorageError(f"Failed to write object '{key}'") from exc

    async def get(self, key: str) -> bytes:
        def _read() -> bytes:
            obj = self._client.get_object(Bucket=self._bucket, Key=key)
            return obj["Body"].read()

        try:
            return await asyncio.to_thread(_read)
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 get failed for %s: %s", key, exc)
            raise StorageError(f"Failed to read object '{key}'") from exc

    async def signed_url(self, key: str, expires_in: int) -> SignedUrl:
        try:
            url = await asyncio.to_thread(
                self._client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self._bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to sign object '{key}'") from exc
        return SignedUrl(url=url, expires_at=utcnow() + timedelta(seconds=expires_in))


def object_store_from_settings(config: Settings) -> ObjectStore:
    backend = (config.storage_backend or "local").strip().lower()
    if backend == "s3":
        return S3ObjectStore(
            config.s3_bucket,
            endpoint=config.s3_endpoint,
            region=config.s3_region,
            access_key_id=config.s3_access_key_id,
            secret_access_key=config.s3_secret_access_key,
        )
    return LocalObjectStore(root=Path(config.storage_local_root))
