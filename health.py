from __future__ import annotations
import os, sys, traceback
from datetime import datetime
from pathlib import Path

from static_ingest.identity import parse_entry
from static_ingest.pipeline import archive_target
from static_ingest.schemas import load_config
from static_ingest.utils import ConfigError

# ---------- Paths ----------
ROOT = Path(__file__).resolve().parent
LOG_PATH = ROOT / "logs" / "ingest.log"
CONFIG_PATH = ROOT / "config.yaml"

def human(n: float) -> str:
    return f"{n:,.0f}"

def count_dir(p: Path, pattern: str = "*"):
    if not p.exists():
        return 0
    return sum(1 for _ in p.glob(pattern))

def ledger_summary(pos_file: Path) -> dict | None:
    """Entries, malformed lines and still-present files of one pos file."""
    if not pos_file.exists():
        return None
    lines = pos_file.read_bytes().splitlines(keepends=True)
    entries = [e for e in (parse_entry(l) for l in lines) if e is not None]
    paths = {e.path for e in entries}
    return {
        "lines": len(lines),
        "entries": len(entries),
        "malformed": len(lines) - len(entries),
        "duplicates": len(entries) - len(paths),
        "present": sum(1 for p in paths if os.path.exists(p)),
    }

def tail(path: Path, lines: int = 20) -> list[str]:
    if not path.exists():
        return ["<log file not found>"]
    # Efficient tail for small logs (good enough here)
    try:
        with open(path, "rb") as f:
            f.seek(0, os.SEEK_END)
            size = f.tell()
            block = 1024
            data = b""
            while size > 0 and data.count(b"\n") <= lines:
                step = min(block, size)
                f.seek(size - step)
                data = f.read(step) + data
                size -= step
        txt = data.decode("utf-8", errors="replace").splitlines()[-lines:]
        return txt if txt else ["<empty>"]
    except OSError:
        return [traceback.format_exc()]

def main(config_path: Path = CONFIG_PATH, log_path: Path = LOG_PATH):
    print("="*70)
    print("Static file ingest - Health Report")
    print(f"As of: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("="*70)

    try:
        cfg = load_config(str(config_path))
    except ConfigError as e:
        print(f"\nConfig: {e}")
        return 1

    for source in cfg.sources:
        print(f"\nSource: {source.tag}")
        print(f"  paths: {', '.join(source.paths)}")
        if not source.pos_file:
            print("  pos_file: not set (state is kept in memory only)")
        else:
            summary = ledger_summary(Path(source.pos_file))
            if summary is None:
                print(f"  pos_file: {source.pos_file} not found")
            else:
                print(f"  pos_file: {source.pos_file}")
                print(f"    tracked entries: {human(summary['entries'])}")
                print(f"    still on disk:   {human(summary['present'])}")
                if summary["malformed"]:
                    print(f"    malformed lines: {human(summary['malformed'])}")
                if summary["duplicates"]:
                    print(f"    duplicate paths: {human(summary['duplicates'])}")
        if source.archive_to:
            adir = Path(os.path.dirname(archive_target(source.archive_to, "x")) or ".")
            print(f"  archived files in {adir}: {human(count_dir(adir))}")

    # Log tail
    print(f"\nLog tail: {log_path}")
    for line in tail(log_path, lines=20):
        print("  " + line)

    print("\nDone.\n")
    return 0

if __name__ == "__main__":
    sys.exit(main(Path(sys.argv[1]) if len(sys.argv) > 1 else CONFIG_PATH))
