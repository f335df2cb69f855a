"""Screenshot blob storage behind a put/get/delete/list_blobs contract.

Two backends ship here: ``MemoryBlobStore`` for tests and single-process
development, and ``LocalBlobStore`` which writes files under a root directory
with a JSON sidecar for metadata. Anything else (S3, R2, GCS) only has to
implement :class:`BlobStore`.
"""

import asyncio
import json
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from src.feedback.core.config import Settings
from src.feedback.core.logging import get_logger
from src.feedback.models.base import utc_now

logger = get_logger(__name__)

_META_SUFFIX = ".meta.json"


class BlobStoreError(Exception):
    """Raised when a backend cannot complete an operation."""


@dataclass
class Blob:
    key: str
    data: bytes
    content_type: str = "application/octet-stream"
    cache_control: str | None = None
    content_disposition: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    uploaded_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class BlobInfo:
    key: str
    size: int
    uploaded_at: datetime


class BlobStore(Protocol):
    async def put(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str,
        cache_control: str | None = None,
        content_disposition: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None: ...

    async def get(self, key: str) -> Blob | None: ...

    async def delete(self, key: str) -> None: ...

    async def list_blobs(self, prefix: str = "") -> list[BlobInfo]: ...


def _check_key(key: str) -> None:
    if not key or key.startswith("/") or ".." in key.split("/") or "\\" in key:
        raise BlobStoreError(f"Invalid blob key: {key!r}")


class MemoryBlobStore:
    """Dict-backed store. Deleting a missing key is a no-op."""

    def __init__(self) -> None:
        self._blobs: dict[str, Blob] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)

    async def put(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str,
        cache_control: str | None = None,
        content_disposition: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        _check_key(key)
        self._blobs[key] = Blob(
            key=key,
            data=data,
            content_type=content_type,
            cache_control=cache_control,
            content_disposition=content_disposition,
            metadata=dict(metadata or {}),
        )

    async def get(self, key: str) -> Blob | None:
        return self._blobs.get(key)

    async def delete(self, key: str) -> None:
        self._blobs.pop(key, None)

    async def list_blobs(self, prefix: str = "") -> list[BlobInfo]:
        return [
            BlobInfo(key=b.key, size=len(b.data), uploaded_at=b.uploaded_at)
            for b in self._blobs.values()
            if b.key.startswith(prefix)
        ]


class LocalBlobStore:
    """Filesystem store rooted at ``root``; blocking I/O runs in a thread."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        _check_key(key)
        return self.root / key

    def _sync_put(self, key: str, data: bytes, meta: dict[str, object]) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_bytes(data)
        os.replace(tmp, path)
        path.with_name(path.name + _META_SUFFIX).write_text(json.dumps(meta))

    def _sync_get(self, key: str) -> Blob | None:
        path = self._path(key)
        if not path.is_file():
            return None
        meta_path = path.with_name(path.name + _META_SUFFIX)
        meta = json.loads(meta_path.read_text()) if meta_path.is_file() else {}
        uploaded_at = meta.get("uploaded_at")
        return Blob(
            key=key,
            data=path.read_bytes(),
            content_type=meta.get("content_type", "application/octet-stream"),
            cache_control=meta.get("cache_control"),
            content_disposition=meta.get("content_disposition"),
            metadata=meta.get("metadata", {}),
            uploaded_at=datetime.fromisoformat(uploaded_at) if uploaded_at else utc_now(),
        )

    def _sync_delete(self, key: str) -> None:
        path = self._path(key)
        path.unlink(missing_ok=True)
        path.with_name(path.name + _META_SUFFIX).unlink(missing_ok=True)

    def _sync_list(self, prefix: str) -> list[BlobInfo]:
        if not self.root.is_dir():
            return []
        infos = []
        for path in self.root.rglob("*"):
            if not path.is_file() or path.name.endswith((_META_SUFFIX, ".tmp")):
                continue
            key = path.relative_to(self.root).as_posix()
            if not key.startswith(prefix):
                continue
            stat = path.stat()
            infos.append(
                BlobInfo(
                    key=key,
                    size=stat.st_size,
                    uploaded_at=datetime.fromtimestamp(stat.st_mtime, UTC).replace(tzinfo=None),
                )
            )
        return infos

    async def put(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str,
        cache_control: str | None = None,
        content_disposition: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        meta: dict[str, object] = {
            "content_type": content_type,
            "cache_control": cache_control,
            "content_disposition": content_disposition,
            "metadata": dict(metadata or {}),
            "uploaded_at": utc_now().isoformat(),
        }
        try:
            await asyncio.to_thread(self._sync_put, key, data, meta)
        except OSError as e:
            raise BlobStoreError(f"Failed to write blob {key}") from e

    async def get(self, key: str) -> Blob | None:
        try:
            return await asyncio.to_thread(self._sync_get, key)
        except (OSError, ValueError) as e:
            raise BlobStoreError(f"Failed to read blob {key}") from e

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._sync_delete, key)
        except OSError as e:
            raise BlobStoreError(f"Failed to delete blob {key}") from e

    async def list_blobs(self, prefix: str = "") -> list[BlobInfo]:
        try:
            return await asyncio.to_thread(self._sync_list, prefix)
        except OSError as e:
            raise BlobStoreError("Failed to list blobs") from e


def create_blob_store(settings: Settings) -> BlobStore:
    """Build the configured backend."""
    if settings.blob_backend == "local":
        logger.info("Using local blob storage", root=settings.blob_root)
        return LocalBlobStore(settings.blob_root)
    logger.info("Using in-memory blob storage (not persistent)")
    return MemoryBlobStore()
