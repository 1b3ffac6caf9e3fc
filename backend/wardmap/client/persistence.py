"""
Key-value persistence primitive for the client cache.

Values are opaque strings stored under a name, scoped to one
application namespace.  ``FileStorage`` keeps one file per key on disk;
``MemoryStorage`` is the in-process variant used in tests and
short-lived sessions.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Protocol

from wardmap.errors import PersistenceFailure

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage(Protocol):
    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...


def _check_key(key: str) -> str:
    if not _KEY_RE.match(key) or key in {".", ".."}:
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class MemoryStorage:
    """Dict-backed storage."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    async def get_item(self, key: str) -> str | None:
        return self._items.get(_check_key(key))

    async def set_item(self, key: str, value: str) -> None:
        self._items[_check_key(key)] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(_check_key(key), None)


class FileStorage:
    """
    One UTF-8 file per key under ``<root>/<namespace>/``.

    Blocking file I/O runs on the default executor so the event loop
    is never stalled by a slow disk.
    """

    def __init__(self, root: str | Path, namespace: str = "wardmap") -> None:
        self.directory = Path(root) / _check_key(namespace)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_check_key(key)}.json"

    def _read(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            raise PersistenceFailure(f"Cannot write {path}: {exc}") from exc

    def _remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    async def get_item(self, key: str) -> str | None:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read, key)

    async def set_item(self, key: str, value: str) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write, key, value)

    async def remove_item(self, key: str) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._remove, key)
