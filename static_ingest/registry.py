## static_ingest/registry.py

from __future__ import annotations
import os, threading
from typing import Dict, Optional
from .utils import ConfigError


class PosFileRegistry:
    """Tracks which source owns which pos file inside this process.

    Two ledgers writing the same file would corrupt each other, so a second
    registration of the same path is refused.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._owners: Dict[str, str] = {}

    def register(self, pos_file: str, owner: str):
        path = os.path.abspath(pos_file)
        with self._lock:
            current = self._owners.get(path)
            if current is not None:
                raise ConfigError(
                    f"Other source already uses the same pos_file: owner = {current}, pos_file = {path}"
                )
            self._owners[path] = owner

    def unregister(self, pos_file: str):
        with self._lock:
            self._owners.pop(os.path.abspath(pos_file), None)

    def owner_of(self, pos_file: str) -> Optional[str]:
        with self._lock:
            return self._owners.get(os.path.abspath(pos_file))


pos_file_registry = PosFileRegistry()
