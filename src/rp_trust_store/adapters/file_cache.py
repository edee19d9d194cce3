"""
File cache adapter — the persisted copy of the last fetched PEM bundle.

Adapter layer — implements the CacheStore port on the local filesystem.

One slot, one file: `<directory>/<name>` (by default
`rp-certificates-cache.pem`). Writes go to a sibling temp file that is then
renamed over the slot with os.replace, so a reader sees either the previous
bundle or the new one, never a truncated file. Nothing here evicts or
expires the slot; staleness is reported by the caller.
"""

from __future__ import annotations

import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path

import structlog

from rp_trust_store.domain.models import CacheSlot

log = structlog.get_logger()

CACHE_FILE = "rp-certificates-cache.pem"


class FileCacheStore:
    """
    Whole-value PEM cache scoped to one file in a private directory.

    Implements the CacheStore port. All methods block; the updater calls
    them from a worker thread.
    """

    def __init__(self, directory: Path | str, name: str = CACHE_FILE) -> None:
        if Path(name).name != name or name in ("", ".", ".."):
            raise ValueError(f"Cache slot name must be a bare file name, got {name!r}")
        self._slot = CacheSlot(directory=Path(directory), name=name)

    @property
    def path(self) -> Path:
        return self._slot.path

    def exists(self) -> bool:
        return self._slot.path.is_file()

    def read(self) -> str:
        with self._slot.path.open(encoding="utf-8", newline="") as handle:
            return handle.read()

    def write(self, pem: str) -> None:
        """Replace the slot content with `pem` in a single rename."""
        directory = self._slot.directory
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self._slot.name}.", suffix=".tmp", dir=directory)
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(pem)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp, self._slot.path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        log.debug("cache.file_replaced", path=str(self._slot.path), size_chars=len(pem))

    def last_modified(self) -> datetime:
        return datetime.fromtimestamp(self._slot.path.stat().st_mtime, tz=UTC)
