# resumind/services/storage.py
# ============================================================
# Storage Collaborators
# ============================================================
# The pipeline talks to object storage and a key-value store
# through the protocols below. The local implementations keep
# everything on disk so the CLI runs without any cloud service:
#
#   - LocalObjectStorage: uploads → <root>/<uuid>/<name>
#   - FileKeyValueStore:  key     → <root>/<key>.json
#
# Disk I/O is pushed to a worker thread so the event loop keeps
# serving other pipelines.
# ============================================================

import asyncio
import re
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Protocol, Union, runtime_checkable

from resumind.utils.logger import get_logger

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._ -]+")


@dataclass(frozen=True)
class StoredFile:
    """Handle to an uploaded object. ``path`` is storage-relative."""
    path: str
    name: str = ""
    size: int = 0


@runtime_checkable
class ObjectStorage(Protocol):
    async def upload(self, data: bytes, name: str) -> Optional[StoredFile]:
        ...

    async def read(self, path: str) -> bytes:
        ...


@runtime_checkable
class KeyValueStore(Protocol):
    async def set(self, key: str, value: str) -> bool:
        ...

    async def get(self, key: str) -> Optional[str]:
        ...


def _safe_name(name: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", PurePosixPath(name.replace("\\", "/")).name).strip(" .")
    return cleaned or "file"


class LocalObjectStorage:
    """
    Object storage backed by a local directory.

    Every upload gets its own directory, so two files with the same name
    never collide.

    Example:
        >>> storage = LocalObjectStorage("data/uploads")
        >>> stored = await storage.upload(b"%PDF-1.7 ...", "cv.pdf")
        >>> stored.path
        '/3f2c.../cv.pdf'
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.lstrip("/")).resolve()
        if self.root.resolve() not in target.parents:
            raise ValueError(f"Path escapes storage root: {path}")
        return target

    def _write(self, target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    async def upload(self, data: bytes, name: str) -> Optional[StoredFile]:
        if not data:
            logger.warning(f"Refusing empty upload for [bold]{name}[/bold]")
            return None

        safe = _safe_name(name)
        relative = f"/{uuid.uuid4().hex}/{safe}"
        try:
            await asyncio.to_thread(self._write, self._resolve(relative), data)
        except OSError as e:
            logger.error(f"Upload of [bold]{name}[/bold] failed: {e}")
            return None

        logger.info(f"Stored [bold]{safe}[/bold] ({len(data)} bytes) at {relative}")
        return StoredFile(path=relative, name=safe, size=len(data))

    async def read(self, path: str) -> bytes:
        return await asyncio.to_thread(self._resolve(path).read_bytes)


class FileKeyValueStore:
    """Key-value store writing one JSON file per key. Writes overwrite."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _path_for(self, key: str) -> Path:
        return self.root / f"{_safe_name(key)}.json"

    def _write(self, key: str, value: str) -> None:
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Replace atomically so a reader never sees half a record
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    async def set(self, key: str, value: str) -> bool:
        await asyncio.to_thread(self._write, key, value)
        logger.debug(f"kv set {key} ({len(value)} chars)")
        return True

    async def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
