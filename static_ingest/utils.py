## static_ingest/utils.py

from __future__ import annotations
import logging, os, re
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

logger = logging.getLogger("static_ingest")


class ConfigError(ValueError):
    pass


def setup_logging(log_path: Optional[str] = "logs/ingest.log", level: str = "INFO"):
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_path:
        ensure_dirs(os.path.dirname(log_path))
        handlers.append(logging.FileHandler(log_path))
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, handlers=handlers, force=True)


def load_yaml(path: str) -> dict:
    import yaml
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def ensure_dirs(*dirs: str, mode: int = 0o755):
    for d in dirs:
        if d:
            os.makedirs(d, mode=mode, exist_ok=True)


_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd]?)\s*$")
_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: Union[int, float, str]) -> float:
    """Seconds from ``30``, ``"30s"``, ``"5m"``, ``"2h"`` or ``"1d"``."""
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    m = _DURATION_RE.match(str(value))
    if not m:
        raise ValueError(f"invalid duration: {value!r}")
    return float(m.group(1)) * _UNITS[m.group(2)]


def have_read_capability() -> bool:
    # root bypasses file read permission bits
    return hasattr(os, "geteuid") and os.geteuid() == 0
