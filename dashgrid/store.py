"""
Key-value blob stores for the persisted widget list.

The engine only needs three calls — read, write, delete — on opaque
bytes keyed by name.  Two implementations:

  MemoryBlobStore  — dict-backed, for tests and ephemeral sessions
  FileBlobStore    — one file per key under <root>/<suite>/<key>.json

A missing key reads as None.  Stores raise OSError on I/O failure; it
is the engine's job to decide that such failures are not fatal.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol

from dashgrid.config import GRID_RULES


class BlobStore(Protocol):
    def read(self, key: str) -> bytes | None: ...

    def write(self, key: str, blob: bytes) -> None: ...

    def delete(self, key: str) -> bool: ...


class MemoryBlobStore:
    """Dict-backed store."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = dict(initial or {})

    def read(self, key: str) -> bytes | None:
        return self._data.get(key)

    def write(self, key: str, blob: bytes) -> None:
        self._data[key] = bytes(blob)

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)


class FileBlobStore:
    """Store each key as a file inside a per-suite folder."""

    def __init__(self, root: Path | str, suite: str = GRID_RULES.store_suite) -> None:
        self.root = Path(root)
        self.suite = suite
        self.path = self.root / suite

    def _file(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid store key '{key}'")
        return self.path / f"{key}.json"

    def read(self, key: str) -> bytes | None:
        """Return the stored bytes, or None if the key was never written."""
        p = self._file(key)
        if not p.exists():
            return None
        return p.read_bytes()

    def write(self, key: str, blob: bytes) -> None:
        """Write atomically: temp file in the same folder, then replace."""
        p = self._file(key)
        self.path.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(blob)
            os.replace(tmp, p)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def delete(self, key: str) -> bool:
        """Delete a key.  Returns True if it existed."""
        p = self._file(key)
        if p.exists():
            p.unlink()
            return True
        return False

    def keys(self) -> list[str]:
        if not self.path.exists():
            return []
        return sorted(p.stem for p in self.path.glob("*.json"))
