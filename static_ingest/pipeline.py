## static_ingest/pipeline.py

from __future__ import annotations
import os, shutil
from typing import Optional
from .identity import FileIdentity
from .parsers import Parser
from .sinks import Router
from .tracker import FileTracker
from .utils import logger


def archive_target(archive_to: str, path: str) -> str:
    """``archive_to`` with ``%s`` replaced by the file's basename."""
    name = os.path.basename(path)
    return archive_to.replace("%s", name) if "%s" in archive_to else archive_to


def archive(path: str, archive_to: Optional[str], dir_perm: int = 0o755) -> Optional[str]:
    if archive_to is None:
        return None
    target = archive_target(archive_to, path)
    try:
        base = target if target.endswith("/") else os.path.dirname(target)
        if base:
            os.makedirs(base, mode=dir_perm, exist_ok=True)
        logger.debug(f"archiving {path} to {target}")
        return shutil.move(path, target)
    except OSError as e:
        logger.warning(f"can't archive {path} to {target}: {e}")
        return None


def read_events(info: FileIdentity, parser: Parser, path_key: Optional[str] = None) -> list:
    events = []
    with open(info.path, "rb") as f:
        for time, record in parser.parse(f):
            if path_key is not None and record.get(path_key) is None:
                record[path_key] = info.path
            events.append((time, record))
    return events


def process_file(
    info: FileIdentity,
    tracker: FileTracker,
    parser: Parser,
    router: Router,
    tag: str,
    path_key: Optional[str] = None,
    archive_to: Optional[str] = None,
    dir_perm: int = 0o755,
) -> bool:
    """Ingest one file unless the ledger already holds this exact version.

    Returns True when the file was parsed and emitted. Parser and router
    errors propagate; the file is then left untracked for the next tick.
    """
    if tracker.has(info):
        return False
    events = read_events(info, parser, path_key)
    router.emit_stream(tag, events)
    tracker.add(info)
    logger.info(f"Processed OK: {info.path} -> {len(events)} records")
    archive(info.path, archive_to, dir_perm)
    return True
