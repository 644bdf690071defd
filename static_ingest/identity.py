## static_ingest/identity.py

from __future__ import annotations
import os, re
from dataclasses import dataclass
from typing import Optional, Union

# <path>\t<inode>\t<mtime seconds>\t<mtime nanos>, hex fields zero padded to 16 digits
ENTRY_FORMAT = "{path}\t{ino:016x}\t{mtime_s:016x}\t{mtime_ns:016x}\n"
ENTRY_REGEX = re.compile(rb"^([^\t\n]+)\t([0-9a-fA-F]{1,16})\t([0-9a-fA-F]{1,16})\t([0-9a-fA-F]{1,16})$")
# last line without newline: only trusted when every hex field is complete
UNTERMINATED_ENTRY_REGEX = re.compile(rb"^([^\t\n]+)\t([0-9a-fA-F]{16})\t([0-9a-fA-F]{16})\t([0-9a-fA-F]{16})$")

_U64 = 1 << 64


@dataclass(frozen=True)
class FileIdentity:
    path: str
    ino: int
    mtime_s: int
    mtime_ns: int

    @classmethod
    def from_stat(cls, path: str, st: os.stat_result) -> "FileIdentity":
        return cls(path, st.st_ino, st.st_mtime_ns // 1_000_000_000, st.st_mtime_ns % 1_000_000_000)

    def to_entry(self) -> bytes:
        # fsencode keeps undecodable filename bytes intact
        fields = ENTRY_FORMAT.format(
            path="", ino=self.ino % _U64, mtime_s=self.mtime_s % _U64, mtime_ns=self.mtime_ns % _U64
        )
        return os.fsencode(self.path) + fields.encode("ascii")


Key = Union[str, int]


def key_of(info: FileIdentity, follow_inodes: bool = False) -> Key:
    return info.ino if follow_inodes else info.path


def same_file(a: Optional[FileIdentity], b: Optional[FileIdentity]) -> bool:
    """True when both observations describe the same file version."""
    if a is None or b is None:
        return False
    return (a.path, a.ino, a.mtime_s, a.mtime_ns) == (b.path, b.ino, b.mtime_s, b.mtime_ns)


def parse_entry(line: bytes) -> Optional[FileIdentity]:
    """Decode one ledger line; ``None`` for anything that is not a full record."""
    if line.endswith(b"\n"):
        m = ENTRY_REGEX.match(line[:-1])
    else:
        m = UNTERMINATED_ENTRY_REGEX.match(line)
    if m is None:
        return None
    mtime_s = int(m.group(3), 16)
    if mtime_s >= 1 << 63:
        mtime_s -= _U64
    return FileIdentity(os.fsdecode(m.group(1)), int(m.group(2), 16), mtime_s, int(m.group(4), 16))
