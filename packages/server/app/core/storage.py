"""
Object store for member photos.
"""

from __future__ import annotations

import asyncio
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional, Protocol

import structlog

from app.core.config import Settings, get_settings
from app.core.errors import UpstreamFailure, ValidationError

log = structlog.get_logger()

MEMBER_PHOTO_PREFIX = "member-photos"


class ObjectStore(Protocol):
    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None) -> None: ...

    def public_url(self, path: str) -> str: ...


def generate_object_path(filename: str, prefix: str = MEMBER_PHOTO_PREFIX) -> str:
    """Unique path under ``prefix`` keeping the original file extension."""
    suffix = PurePosixPath(filename or "").suffix.lower()
    return f"{prefix}/{uuid.uuid4().hex}{suffix}"


def _write(target: Path, content: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)


class LocalObjectStore:
    """Stores blobs on the local filesystem and serves them from a base URL."""

    def __init__(self, root: str, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "LocalObjectStore":
        settings = settings or get_settings()
        return cls(settings.storage_root, settings.storage_public_url)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValidationError(f"Invalid object path: {path}")
        return target

    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(_write, target, content)
        except OSError as exc:
            raise UpstreamFailure(str(exc)) from exc
        log.info("storage.uploaded", path=path, size=len(content), content_type=content_type)

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{path}"


def get_object_store() -> ObjectStore:
    """FastAPI dependency."""
    return LocalObjectStore.from_settings()
