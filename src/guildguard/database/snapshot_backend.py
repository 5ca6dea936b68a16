"""
Durable snapshot backends for the tenant store.

A backend persists the *whole* store as one document: a mapping of guild id
(string) to that tenant's serialized record. The store never writes partial
or delta updates, so a backend only needs two operations:

- ``read()``  -> the last document written, or ``None`` when nothing was ever written
- ``write(document)`` -> replace the stored document atomically

Backends raise on I/O or decode failures; the tenant store decides how to
degrade (empty store on read, in-memory authority on write).
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from guildguard.util.logger import get_logger

logger = get_logger("snapshot_backend")

SnapshotDocument = Dict[str, Dict[str, Any]]


class SnapshotDecodeError(ValueError):
    """Raised when a stored snapshot exists but cannot be decoded."""


class SnapshotBackend(ABC):
    """Storage for the whole-store snapshot document."""

    async def open(self) -> None:
        """Acquire resources. Called once before the first read."""

    async def close(self) -> None:
        """Release resources. Called once at shutdown."""

    @abstractmethod
    async def read(self) -> Optional[SnapshotDocument]:
        """Return the stored document, or ``None`` if nothing was stored yet."""

    @abstractmethod
    async def write(self, document: SnapshotDocument) -> None:
        """Replace the stored document with ``document``."""


class JsonSnapshotBackend(SnapshotBackend):
    """
    Human-inspectable JSON file at a fixed path.

    Writes go to a temporary file in the same directory which is then moved
    over the target with ``os.replace``, so a crash mid-write leaves the
    previous snapshot intact. File I/O runs in a worker thread to keep the
    event loop responsive.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"JsonSnapshotBackend({str(self.path)!r})"

    async def read(self) -> Optional[SnapshotDocument]:
        return await asyncio.to_thread(self._read_sync)

    async def write(self, document: SnapshotDocument) -> None:
        payload = json.dumps(document, indent=2, ensure_ascii=False, sort_keys=True)
        await asyncio.to_thread(self._write_sync, payload)

    def _read_sync(self) -> Optional[SnapshotDocument]:
        if not self.path.exists():
            return None
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return None
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SnapshotDecodeError(f"{self.path} is not valid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise SnapshotDecodeError(f"{self.path} does not contain a JSON object")
        return document

    def _write_sync(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.debug("[SNAPSHOT] Wrote %d bytes to %s", len(payload), self.path)
