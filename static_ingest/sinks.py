## static_ingest/sinks.py

from __future__ import annotations
import os, threading
from typing import Iterable, List, Tuple
import pandas as pd
import requests
from sqlalchemy import create_engine
from .schemas import SinksConfig
from .utils import ensure_dirs, logger


def unify_types(df: pd.DataFrame) -> pd.DataFrame:
    """Object columns holding more than one value type become text; parquet needs one type per column."""
    for col in df.columns[df.dtypes == object]:
        if df[col].dropna().map(type).nunique() > 1:
            df[col] = df[col].astype(str).where(df[col].notna(), None)
    return df


def to_parquet(df: pd.DataFrame, path: str, mode: str = "append"):
    ensure_dirs(os.path.dirname(path))
    if mode == "overwrite" or not os.path.exists(path):
        unify_types(df.copy()).to_parquet(path, index=False)
    else:
        old = pd.read_parquet(path)
        unify_types(pd.concat([old, df], ignore_index=True)).to_parquet(path, index=False)


def to_sqlite(df: pd.DataFrame, uri: str, table: str):
    eng = create_engine(uri)
    try:
        df.to_sql(table, eng, if_exists="append", index=False)
    finally:
        eng.dispose()


def http_push(df: pd.DataFrame, url: str, timeout: float = 10):
    payload = {"rows": df.to_dict(orient="records")}
    r = requests.post(url, json=payload, timeout=timeout)
    r.raise_for_status()


def parquet_path(template: str, tag: str) -> str:
    """``%s`` in the configured path is replaced by the tag, one file per source."""
    return template.replace("%s", tag)


def to_frame(tag: str, events: Iterable[Tuple[float, dict]]) -> pd.DataFrame:
    # naive UTC timestamps; sqlite has no timezone type
    rows = [{"tag": tag, "time": pd.Timestamp(t, unit="s"), **record} for t, record in events]
    df = pd.DataFrame(rows)
    # parquet needs string column names; headerless CSV columns are ints
    df.columns = [str(c) for c in df.columns]
    return df


class Router:
    """Receives every parsed record with the source tag."""

    def emit(self, tag: str, time: float, record: dict):
        raise NotImplementedError

    def emit_stream(self, tag: str, events: List[Tuple[float, dict]]):
        for t, record in events:
            self.emit(tag, t, record)


class SinkRouter(Router):
    """Writes each batch of records to the enabled sinks as one DataFrame."""

    def __init__(self, cfg: SinksConfig):
        self.cfg = cfg
        # sources share one router from their own threads; sinks read-modify-write files
        self._lock = threading.Lock()

    def emit(self, tag: str, time: float, record: dict):
        self.emit_stream(tag, [(time, record)])

    def emit_stream(self, tag: str, events: List[Tuple[float, dict]]):
        if not events:
            return
        df = to_frame(tag, events)
        with self._lock:
            self._write(tag, df)
        logger.debug(f"Emitted {len(df)} records for tag {tag}")

    def _write(self, tag: str, df: pd.DataFrame):
        sinks = self.cfg
        if sinks.parquet.enabled:
            to_parquet(df, parquet_path(sinks.parquet.path, tag), sinks.parquet.mode)
        if sinks.sqlite.enabled:
            to_sqlite(df, sinks.sqlite.uri, sinks.sqlite.table)
        if sinks.http_push.enabled:
            url = os.getenv(sinks.http_push.url_env, "")
            if url:
                http_push(df.assign(time=df["time"].astype(str)), url, sinks.http_push.timeout)
            else:
                logger.warning(f"http_push enabled but ${sinks.http_push.url_env} is not set")
