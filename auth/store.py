"""
auth/store.py -- File-backed persistence layer for user records.

Pattern: Repository + Data Mapper.
RecordStore is the repository; _record_to_dict / _dict_to_record are the
mappers. Directory code never touches the file directly.

Storage layout:
  One JSON array of user objects in a single file (default data/users.json).
  Pretty-printed so an operator can read it with cat. No schema version.

Durability:
  write() never edits the file in place. It writes the full collection to a
  temp file in the same directory, fsyncs it, then os.replace()s it over the
  live file. os.replace is atomic on POSIX and Windows, so a concurrent reader
  sees either the previous snapshot or the new one, never a torn write.

Initialization:
  The parent directory and an empty array are created lazily on first use.
  "Already exists" is never an error. The empty file is created with mode "x"
  (exclusive) so a slow initializer can never clobber records another thread
  wrote in the meantime.

Concurrency:
  Reads are lock-free against the last committed snapshot. Mutations go
  through transaction(), which holds a process-wide lock across the whole
  read-modify-write cycle. That lock is the single mutual-exclusion domain
  for every mutating directory operation.

Failure mode:
  An unreadable or corrupt file raises StoreUnavailable. It is NEVER treated
  as "zero records" -- that would let the next write silently erase everyone.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, fields
from pathlib import Path

from auth.errors import StoreUnavailable
from auth.models import UserRecord

logger = logging.getLogger("profilevault.store")

_REQUIRED_KEYS = frozenset(f.name for f in fields(UserRecord))


class RecordStore:
    """Repository for UserRecord entities backed by one JSON file.

    Usage:
        store = RecordStore(Path("data/users.json"))
        records = store.read_all()
        with store.transaction() as records:
            records.append(new_record)
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._write_lock = threading.Lock()
        self._init_lock = threading.Lock()
        self._initialized = False

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def _ensure_initialized(self) -> None:
        """Create the parent directory and an empty collection if absent.

        Idempotent. Only genuine I/O faults (permissions, read-only fs) raise.
        """
        if self._initialized:
            return
        with self._init_lock:
            if self._initialized:
                return
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.error("Cannot create user store directory %s: %s", self.path.parent, exc)
                raise StoreUnavailable() from exc
            try:
                with open(self.path, "x", encoding="utf-8") as fh:
                    fh.write("[]\n")
                logger.info("Initialized empty user store at %s", self.path)
            except FileExistsError:
                pass
            except OSError as exc:
                logger.error("Cannot initialize user store at %s: %s", self.path, exc)
                raise StoreUnavailable() from exc
            self._initialized = True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read_all(self) -> list[UserRecord]:
        """Return the full committed snapshot as a fresh list.

        An empty (zero-byte or whitespace-only) file is zero records.
        """
        self._ensure_initialized()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("Cannot read user store %s: %s", self.path, exc)
            raise StoreUnavailable() from exc

        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("User store %s is not valid JSON: %s", self.path, exc)
            raise StoreUnavailable() from exc

        if not isinstance(data, list):
            logger.error("User store %s does not hold a JSON array (found %s)", self.path, type(data).__name__)
            raise StoreUnavailable()

        return [_dict_to_record(item, self.path) for item in data]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write(self, records: list[UserRecord]) -> None:
        """Atomically replace the entire stored collection with records."""
        self._ensure_initialized()
        payload = json.dumps([_record_to_dict(r) for r in records], indent=2) + "\n"

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            logger.error("Cannot write user store %s: %s", self.path, exc)
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            except OSError:
                logger.warning("Could not remove temp file %s", tmp_name)
            raise StoreUnavailable() from exc

    @contextmanager
    def transaction(self) -> Iterator[list[UserRecord]]:
        """Serialized read-modify-write over the whole collection.

        Yields a mutable list of records. On clean exit the list is written
        back if anything changed; if the block raises, nothing is written.
        Only one transaction runs at a time in this process.
        """
        with self._write_lock:
            records = self.read_all()
            before = [_record_to_dict(r) for r in records]
            yield records
            if [_record_to_dict(r) for r in records] != before:
                self.write(records)


# ---------------------------------------------------------------------------
# Mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _record_to_dict(record: UserRecord) -> dict:
    return asdict(record)


def _dict_to_record(item: object, path: Path) -> UserRecord:
    if not isinstance(item, dict) or not _REQUIRED_KEYS.issubset(item):
        shape = sorted(item) if isinstance(item, dict) else type(item).__name__
        logger.error("User store %s holds a malformed record (keys: %s)", path, shape)
        raise StoreUnavailable()
    return UserRecord(**{k: item[k] for k in _REQUIRED_KEYS})
