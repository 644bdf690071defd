"""
static_ingest: poll-based ingestion of static files, each file version once:
- watcher: per-source scan loop and CLI
- discovery: path patterns -> current file identities
- tracker: pos-file backed ledger of processed files
- identity: file identity value and ledger line codec
- pipeline: parse -> emit -> record -> archive for one file
- parsers: csv / jsonl
- sinks: parquet/sqlite/http push
- alerts: email/slack on failures
"""

__all__ = [
    "watcher",
    "discovery",
    "tracker",
    "identity",
    "registry",
    "pipeline",
    "parsers",
    "sinks",
    "alerts",
    "schemas",
    "utils",
]

__version__ = "0.1.0"
