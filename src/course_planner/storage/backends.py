# src/course_planner/storage/backends.py

from __future__ import annotations

import contextlib
import errno
import logging
import os
import sqlite3
import time
from pathlib import Path
from urllib.parse import quote

logger = logging.getLogger(__name__)

# errno values that mean "the medium is full" rather than "something is broken".
_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class StorageError(Exception):
    """Base error for key-value backends."""


class StorageQuotaExceeded(StorageError):
    """The backend refused a write because it is out of space."""

    def __init__(self, key: str, message: str = "") -> None:
        super().__init__(message or f"storage quota exceeded for key {key!r}")
        self.key = key


class MemoryStorage:
    """
    In-process dict backend.

    quota_bytes limits the total size of all stored values (0 = unlimited),
    which lets tests exercise the quota path without filling a disk.
    """

    def __init__(self, *, quota_bytes: int = 0) -> None:
        self._data: dict[str, bytes] = {}
        self._quota_bytes = max(0, int(quota_bytes))

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        if self._quota_bytes:
            used = sum(len(v) for k, v in self._data.items() if k != key)
            if used + len(value) > self._quota_bytes:
                raise StorageQuotaExceeded(key)
        self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class FileStorage:
    """
    One file per key under a directory.

    Writes go to a temp file first and are moved into place with os.replace,
    so a crash mid-write never leaves a truncated value behind.
    """

    def __init__(self, root: str | Path, *, quota_bytes: int = 0) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._quota_bytes = max(0, int(quota_bytes))
        logger.info("FileStorage ready dir=%s quota=%s", self._root, self._quota_bytes or "none")

    def _path(self, key: str) -> Path:
        return self._root / f"{quote(key, safe='')}.json"

    def _used_bytes(self, exclude: Path) -> int:
        total = 0
        for p in self._root.glob("*.json"):
            if p == exclude:
                continue
            with contextlib.suppress(OSError):
                total += p.stat().st_size
        return total

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"failed to read {path}: {e}") from e

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)
        if self._quota_bytes and self._used_bytes(path) + len(value) > self._quota_bytes:
            raise StorageQuotaExceeded(key)

        tmp = path.with_suffix(".tmp")
        try:
            tmp.write_bytes(value)
            os.replace(tmp, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            if e.errno in _QUOTA_ERRNOS:
                raise StorageQuotaExceeded(key, str(e)) from e
            raise StorageError(f"failed to write {path}: {e}") from e

    def delete(self, key: str) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._path(key).unlink()


class SQLiteStorage:
    """
    SQLite key-value backend (single table).

    Thread-safety:
    - each method opens its own SQLite connection, so the debounce timer
      thread and the main thread never share a cursor.
    """

    def __init__(self, db_path: str | Path = "planner.sqlite3", *, quota_bytes: int = 0) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._quota_bytes = max(0, int(quota_bytes))
        self._ensure_schema()
        try:
            total = self.count_keys()
        except Exception:
            total = -1
        logger.info("SQLiteStorage ready db=%s keys=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    # ---- public API ----

    def count_keys(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM kv").fetchone()
            return int(n)
        finally:
            conn.close()

    def get(self, key: str) -> bytes | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return bytes(row["value"]) if row else None
        except sqlite3.Error as e:
            raise StorageError(f"failed to read key {key!r}: {e}") from e
        finally:
            conn.close()

    def set(self, key: str, value: bytes) -> None:
        conn = self._get_conn()
        try:
            if self._quota_bytes:
                (used,) = conn.execute(
                    "SELECT COALESCE(SUM(LENGTH(value)), 0) FROM kv WHERE key != ?", (key,)
                ).fetchone()
                if int(used) + len(value) > self._quota_bytes:
                    raise StorageQuotaExceeded(key)
            conn.execute(
                """
                INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, sqlite3.Binary(value), time.time()),
            )
            conn.commit()
        except sqlite3.OperationalError as e:
            if "full" in str(e).lower():
                raise StorageQuotaExceeded(key, str(e)) from e
            raise StorageError(f"failed to write key {key!r}: {e}") from e
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()


def open_storage(backend: str, path: str | Path, *, quota_bytes: int = 0):
    """Build the backend named in settings ("file", "sqlite" or "memory")."""
    name = (backend or "file").strip().lower()
    if name == "memory":
        return MemoryStorage(quota_bytes=quota_bytes)
    if name == "sqlite":
        return SQLiteStorage(path, quota_bytes=quota_bytes)
    if name == "file":
        return FileStorage(path, quota_bytes=quota_bytes)
    raise ValueError(f"unknown storage backend: {backend!r}")
