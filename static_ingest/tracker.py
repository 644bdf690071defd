## static_ingest/tracker.py

from __future__ import annotations
import os, threading
from typing import BinaryIO, Dict, Optional
from .identity import FileIdentity, Key, key_of, parse_entry, same_file
from .utils import ensure_dirs, logger


def open_pos_file(path: str, file_perm: int = 0o600, dir_perm: int = 0o755) -> BinaryIO:
    """Open (creating if needed) the ledger file for read/write without truncation."""
    ensure_dirs(os.path.dirname(path), mode=dir_perm)
    return open(path, "r+b", opener=lambda p, flags: os.open(p, flags | os.O_CREAT, file_perm))


class FileTracker:
    """Processed-file ledger: an in-memory cache mirrored by an append/rewrite pos file.

    ``add`` appends one line, ``remove`` rewrites the file from the cache, and
    ``reload`` rebuilds the cache from the file. Every operation holds the same
    lock for its whole read-modify-write sequence, so the cache always equals a
    fresh parse of the file.
    """

    def __init__(self, file: Optional[BinaryIO] = None, follow_inodes: bool = False):
        self._file = file
        self.follow_inodes = follow_inodes
        self._lock = threading.Lock()
        self._cache: Dict[Key, FileIdentity] = {}

    @property
    def cache(self) -> Dict[Key, FileIdentity]:
        with self._lock:
            return dict(self._cache)

    def reload(self):
        with self._lock:
            self._cache = {}
            if self._file is None:
                return
            self._file.seek(0)
            skipped = 0
            for line in self._file:
                info = parse_entry(line)
                if info is None:
                    skipped += 1
                    continue
                self._cache[key_of(info, self.follow_inodes)] = info
            if skipped:
                logger.warning(f"Skipped {skipped} malformed line(s) in pos file {self._file.name}")

    def has(self, info: Optional[FileIdentity]) -> bool:
        if info is None:
            return False
        with self._lock:
            return same_file(self._cache.get(key_of(info, self.follow_inodes)), info)

    def add(self, info: Optional[FileIdentity]) -> bool:
        if info is None:
            return False
        with self._lock:
            if self._file is not None:
                self._file.seek(0, os.SEEK_END)
                self._file.write(info.to_entry())
                self._file.flush()
            self._cache[key_of(info, self.follow_inodes)] = info
        return True

    def remove(self, info: Optional[FileIdentity]) -> bool:
        if info is None:
            return False
        with self._lock:
            self._cache.pop(key_of(info, self.follow_inodes), None)
            if self._file is not None:
                self._file.seek(0)
                self._file.truncate(0)
                self._file.write(b"".join(i.to_entry() for i in self._cache.values()))
                self._file.flush()
        return True

    def close(self):
        with self._lock:
            if self._file is not None and not self._file.closed:
                self._file.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
