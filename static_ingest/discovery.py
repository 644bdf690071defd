## static_ingest/discovery.py

from __future__ import annotations
import glob, os, stat
from datetime import datetime
from typing import Dict, List, Optional, Sequence
from .identity import FileIdentity, Key, key_of
from .utils import have_read_capability, logger

WILDCARDS = ("*", "?")


def has_wildcard(pattern: str) -> bool:
    return any(c in pattern for c in WILDCARDS)


def expand(pattern: str, now: datetime) -> List[str]:
    """Fill time placeholders, then glob when the pattern has a wildcard."""
    path = now.strftime(pattern)
    if has_wildcard(path):
        return sorted(glob.glob(path, recursive=True))
    return [path]


class PathResolver:
    """Turns configured path patterns into the files to consider on this tick."""

    def __init__(
        self,
        paths: Sequence[str],
        exclude_path: Sequence[str] = (),
        limit_recently_modified: Optional[float] = None,
        limit_oldly_modified: Optional[float] = 5,
        follow_inodes: bool = False,
        ignore_repeated_permission_error: bool = False,
    ):
        self.paths = list(paths)
        self.exclude_path = list(exclude_path)
        self.limit_recently_modified = limit_recently_modified
        self.limit_oldly_modified = limit_oldly_modified
        self.follow_inodes = follow_inodes
        self.ignore_repeated_permission_error = ignore_repeated_permission_error
        self.ignore_list: set[str] = set()

    def _wanted(self, p: str, now_ts: float) -> bool:
        try:
            is_file = not os.path.isdir(p)
            if is_file and (os.access(p, os.R_OK) or have_read_capability()):
                mtime = os.stat(p).st_mtime
                if self.limit_recently_modified is not None and mtime < now_ts - self.limit_recently_modified:
                    return False
                # still possibly being written
                return not (self.limit_oldly_modified is not None and mtime > now_ts - self.limit_oldly_modified)
            if is_file and p not in self.ignore_list:
                logger.warning(f"{p} unreadable. It is excluded and would be examined next time.")
                if self.ignore_repeated_permission_error:
                    self.ignore_list.add(p)
            return False
        except (FileNotFoundError, PermissionError):
            logger.debug(f"{p} is missing after refresh file list")
            return False

    def candidates(self, now: datetime) -> List[str]:
        now_ts = now.timestamp()
        paths: List[str] = []
        for pattern in self.paths:
            if has_wildcard(now.strftime(pattern)):
                paths += [p for p in expand(pattern, now) if self._wanted(p, now_ts)]
            else:
                paths += expand(pattern, now)
        excluded = {p for pattern in self.exclude_path for p in expand(pattern, now)}
        return [p for p in paths if p not in excluded]

    def resolve(self, now: Optional[datetime] = None) -> Dict[Key, FileIdentity]:
        now = now or datetime.now()
        found: Dict[Key, FileIdentity] = {}
        for path in self.candidates(now):
            if not os.path.exists(path):
                continue
            # the file can still vanish between exists() and stat()
            try:
                st = os.stat(path)
            except (FileNotFoundError, PermissionError) as e:
                logger.warning(f"resolve: stat() for {path} failed with {type(e).__name__}. Skip file.")
                continue
            if stat.S_ISDIR(st.st_mode):
                continue
            info = FileIdentity.from_stat(path, st)
            found[key_of(info, self.follow_inodes)] = info
        return found
