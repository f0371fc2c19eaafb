"""String key/value store used for the cell cache and cached names.

Two implementations share the ``KeyValueStore`` protocol:
  - ``FileStore``: one file per key under a base directory; survives restarts.
  - ``MemoryStore``: a dict; for tests and throwaway runs.

The store has no TTL and no transactions. Freshness lives in the values
themselves (see ``cache.CellCacheStore``), and each key has a single writer
at a time, so atomic per-key replacement is all that is needed.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path  # noqa: TC003
from typing import Protocol
from urllib.parse import quote, unquote


class KeyValueStore(Protocol):
    """Minimal persistent get/set interface."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """In-process store backed by a dict."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class FileStore:
    """Store each key as a UTF-8 file under ``base_dir``.

    Keys are percent-encoded into file names, so any string is a valid key.
    """

    SUFFIX = ".val"

    def __init__(self, base_dir: Path) -> None:
        self.base = base_dir

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never set."""
        full = self._resolve(key)
        if not full.exists():
            return None
        return full.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        """Write a value, replacing any previous one atomically."""
        full = self._resolve(key)
        full.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=full.parent, prefix=".tmp-", suffix=self.SUFFIX)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, full)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def keys(self) -> list[str]:
        """All keys currently stored, sorted."""
        if not self.base.exists():
            return []
        return sorted(
            unquote(p.name[: -len(self.SUFFIX)])
            for p in self.base.glob(f"*{self.SUFFIX}")
            if not p.name.startswith(".tmp-")
        )

    def _resolve(self, key: str) -> Path:
        if not key:
            msg = "Store key must not be empty"
            raise ValueError(msg)
        full = self.base / f"{quote(key, safe='')}{self.SUFFIX}"
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Key escapes store base directory: {key}"
            raise ValueError(msg) from None
        return full
