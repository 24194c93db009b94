"""
Key-value cache for the last good result set.

Two stores share the ``CacheStore`` protocol:
  - InMemoryCacheStore: dict-backed, for tests and throwaway runs.
  - FileCacheStore: one JSON file per key, named by a SHA-256 of the key.
    Writes go to a temp file that is then ``os.replace``d over the target,
    so a reader sees either the old entry or the new one, never a mix.
"""

import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from lit_pulse.models.model_refresh import CacheEntry

logger = logging.getLogger(__name__)


class CacheError(Exception):
    """The persistence layer could not be read or written."""


class CacheStore(Protocol):
    def get(self, key: str) -> CacheEntry | None: ...
    def set(self, key: str, entry: CacheEntry) -> None: ...


def cache_key(namespace: str) -> str:
    """Return a deterministic hex digest for the given key."""
    return hashlib.sha256(json.dumps({"ns": namespace}).encode()).hexdigest()


class InMemoryCacheStore:
    """Simple in-memory store for tests/local runs."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def set(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry


class FileCacheStore:
    """JSON-file store under ``cache_dir``."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{cache_key(key)}.json"

    def get(self, key: str) -> CacheEntry | None:
        """Return the stored entry, or None on a miss or a corrupt file."""
        path = self._path(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheError(f"Cannot read {path}: {e}") from e

        try:
            return CacheEntry.model_validate_json(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValidationError):
            logger.warning("Discarding corrupt cache file %s", path)
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise CacheError(f"Cannot remove corrupt {path}: {e}") from e
            return None

    def set(self, key: str, entry: CacheEntry) -> None:
        path = self._path(key)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
            try:
                with os.fdopen(fd, "w") as tmp:
                    tmp.write(entry.model_dump_json())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CacheError(f"Cannot write {path}: {e}") from e
