"""Key-value storage backends the history store persists through."""
from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Dict, Optional


class StorageError(RuntimeError):
    """Raised when a backend cannot read or write a key."""


class StorageBackend:
    """Asynchronous string key-value layer; every call may raise ``StorageError``."""

    async def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    async def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryBackend(StorageBackend):
    """Process-local fallback; values vanish with the process."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileBackend(StorageBackend):
    """Durable backend storing one UTF-8 file per key under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root).expanduser()

    def path_for(self, key: str) -> Path:
        return self.root / f"{_slugify(key)}.json"

    async def get_item(self, key: str) -> Optional[str]:
        return await self._run(self._read, self.path_for(key))

    async def set_item(self, key: str, value: str) -> None:
        await self._run(self._write, self.path_for(key), value)

    async def remove_item(self, key: str) -> None:
        await self._run(self._remove, self.path_for(key))

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"History storage unavailable at {self.root}: {exc}") from exc

    @staticmethod
    def _read(path: Path) -> Optional[str]:
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    @staticmethod
    def _write(path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        os.replace(tmp_path, path)

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass


def _slugify(value: str) -> str:
    normalized = "".join(ch.lower() if ch.isalnum() else "-" for ch in value.strip())
    parts = [part for part in normalized.split("-") if part]
    slug = "-".join(parts)
    return slug or "default"
