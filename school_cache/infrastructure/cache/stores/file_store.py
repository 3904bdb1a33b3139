"""Persistent file-backed key-value store with atomic writes.

One file per key under root_dir. File names are the url-safe base64 of
the key, so any key string maps to a safe name and listing can decode
names back to keys without opening the files.
"""

from __future__ import annotations

import base64
import binascii
import os
import tempfile
from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles
import aiofiles.os

from school_cache.infrastructure.cache.stores.base import KeyValueStore
from school_cache.infrastructure.exceptions import StorageError

_SUFFIX = ".entry"


def _encode_name(key: str) -> str:
    return base64.urlsafe_b64encode(key.encode("utf-8")).decode("ascii").rstrip("=") + _SUFFIX


def _decode_name(name: str) -> str | None:
    if not name.endswith(_SUFFIX):
        return None
    stem = name[: -len(_SUFFIX)]
    try:
        return base64.urlsafe_b64decode(stem + "=" * (-len(stem) % 4)).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


class FileKeyValueStore(KeyValueStore):
    """Directory of small files; survives process restart.

    Writes go to a temp file in the same directory and are moved into place
    with os.replace, so readers never see a partially written value.
    """

    def __init__(self, root_dir: str | Path) -> None:
        self.root_dir = Path(root_dir).expanduser().resolve()

    async def open(self) -> None:
        try:
            await aiofiles.os.makedirs(self.root_dir, exist_ok=True)
        except OSError as e:
            raise StorageError("open", str(self.root_dir), str(e)) from e

    def _path(self, key: str) -> Path:
        return self.root_dir / _encode_name(key)

    async def read(self, key: str) -> str | None:
        try:
            async with aiofiles.open(self._path(key), "r", encoding="utf-8") as f:
                return await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError("read", key, str(e)) from e

    async def write(self, key: str, raw: str) -> None:
        target = self._path(key)
        temp_path: str | None = None
        try:
            fd, temp_path = tempfile.mkstemp(dir=self.root_dir, prefix=".tmp_")
            os.close(fd)
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(raw)
            await aiofiles.os.replace(temp_path, target)
            temp_path = None
        except OSError as e:
            raise StorageError("write", key, str(e)) from e
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)

    async def delete(self, key: str) -> None:
        try:
            await aiofiles.os.remove(self._path(key))
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError("delete", key, str(e)) from e

    async def iter_keys(self, prefix: str = "") -> AsyncIterator[str]:
        try:
            entries = await aiofiles.os.scandir(self.root_dir)
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError("list", prefix, str(e)) from e
        with entries:
            for entry in entries:
                key = _decode_name(entry.name)
                if key is not None and key.startswith(prefix):
                    yield key
