## static_ingest/watcher.py

from __future__ import annotations
import argparse, signal, sys, threading
from typing import Dict, List, Optional
from .alerts import notify_failure
from .discovery import PathResolver
from .identity import FileIdentity, Key, same_file
from .parsers import parser_create
from .pipeline import process_file
from .registry import PosFileRegistry, pos_file_registry
from .schemas import IngestConfig, SourceConfig, SystemConfig, load_config
from .sinks import Router, SinkRouter
from .tracker import FileTracker, open_pos_file
from .utils import ConfigError, logger, setup_logging


class StaticFileInput:
    """One configured source: discovers files, ingests new ones, remembers them."""

    def __init__(
        self,
        conf: SourceConfig,
        router: Router,
        system: Optional[SystemConfig] = None,
        registry: PosFileRegistry = pos_file_registry,
        name: Optional[str] = None,
    ):
        self.conf = conf
        self.router = router
        self.system = system or SystemConfig()
        self.registry = registry
        self.name = name or conf.tag
        self.parser = parser_create(conf.parse)
        self.resolver = PathResolver(
            conf.paths,
            conf.exclude_path,
            limit_recently_modified=conf.limit_recently_modified,
            limit_oldly_modified=conf.limit_oldly_modified,
            follow_inodes=conf.follow_inodes,
            ignore_repeated_permission_error=conf.ignore_repeated_permission_error,
        )
        self.tracker: Optional[FileTracker] = None
        self.stop_event = threading.Event()

        if conf.pos_file:
            self.registry.register(conf.pos_file, self.name)
        else:
            logger.warning(f"'pos_file PATH' parameter is not set to source '{self.name}'.")
            logger.warning("this parameter is highly recommended to save the file status.")

    def start(self):
        pf = None
        if self.conf.pos_file:
            pf = open_pos_file(self.conf.pos_file, self.system.file_permission, self.system.dir_permission)
        self.tracker = FileTracker(file=pf, follow_inodes=self.conf.follow_inodes)
        self.tracker.reload()
        logger.info(f"[{self.name}] started with {len(self.tracker)} tracked file(s)")

    def shutdown(self):
        self.stop_event.set()
        if self.tracker is not None:
            self.tracker.close()
        if self.conf.pos_file:
            self.registry.unregister(self.conf.pos_file)

    def lookup(self) -> Dict[str, int]:
        """One scan: untrack stale ledger entries, then ingest what is new."""
        detected = self.resolver.resolve()
        cached = self.tracker.cache
        logger.debug(f"[{self.name}] detected: {list(detected)}")
        logger.debug(f"[{self.name}] cached: {list(cached)}")

        to_untrack = {k: v for k, v in cached.items() if not same_file(detected.get(k), v)}
        self.untrack_files(to_untrack)
        processed, failed = self.process_files(detected)
        return {"detected": len(detected), "untracked": len(to_untrack), "processed": processed, "failed": failed}

    def untrack_files(self, files: Dict[Key, FileIdentity]):
        if files:
            logger.debug(f"[{self.name}] untrack files: {list(files)}")
        for info in files.values():
            self.tracker.remove(info)

    def process_files(self, files: Dict[Key, FileIdentity]):
        processed = failed = 0
        for info in files.values():
            if self.stop_event.is_set():
                break
            try:
                if process_file(
                    info, self.tracker, self.parser, self.router, self.conf.tag,
                    path_key=self.conf.path_key,
                    archive_to=self.conf.archive_to,
                    dir_perm=self.system.dir_permission,
                ):
                    processed += 1
            except Exception as e:
                failed += 1
                logger.exception(f"[{self.name}] Failed processing {info.path}: {e}")
                notify_failure(self.conf.tag, info.path, e)
        return processed, failed

    def run(self):
        logger.info(f"[{self.name}] watching {self.conf.paths} every {self.conf.refresh_interval}s")
        while not self.stop_event.is_set():
            try:
                stats = self.lookup()
                if stats["processed"] or stats["failed"]:
                    logger.info(f"[{self.name}] scan: {stats}")
            except Exception as e:
                logger.exception(f"[{self.name}] scan failed: {e}")
            self.stop_event.wait(self.conf.refresh_interval)


def build_inputs(cfg: IngestConfig, router: Optional[Router] = None,
                 registry: PosFileRegistry = pos_file_registry) -> List[StaticFileInput]:
    router = router or SinkRouter(cfg.sinks)
    inputs: List[StaticFileInput] = []
    try:
        for i, source in enumerate(cfg.sources):
            inputs.append(StaticFileInput(source, router, cfg.system, registry, name=f"{source.tag}#{i}"))
    except ConfigError:
        for inp in inputs:
            inp.shutdown()
        raise
    return inputs


def run(cfg_path: str = "config.yaml", once: bool = False) -> int:
    cfg = load_config(cfg_path)
    inputs = build_inputs(cfg)
    for inp in inputs:
        inp.start()

    if once:
        for inp in inputs:
            logger.info(f"[{inp.name}] scan: {inp.lookup()}")
        for inp in inputs:
            inp.shutdown()
        return 0

    threads = [threading.Thread(target=inp.run, name=inp.name, daemon=True) for inp in inputs]

    def _signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down.")
        for inp in inputs:
            inp.stop_event.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    for t in threads:
        t.start()
    # a pass finishes its current file before the thread exits
    while any(t.is_alive() for t in threads):
        for t in threads:
            t.join(timeout=1.0)
    for inp in inputs:
        inp.shutdown()
    logger.info("Watcher stopped.")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Ingest static files once each, remembering them across restarts.")
    parser.add_argument("--config", default="config.yaml", help="YAML configuration file")
    parser.add_argument("--once", action="store_true", help="run a single scan for every source and exit")
    parser.add_argument("--log-file", default="logs/ingest.log", help="log file path ('' disables)")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    from dotenv import load_dotenv
    load_dotenv()
    setup_logging(args.log_file or None, args.log_level)
    try:
        return run(args.config, once=args.once)
    except ConfigError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
