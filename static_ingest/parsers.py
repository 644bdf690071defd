## static_ingest/parsers.py

from __future__ import annotations
import io, time
from typing import BinaryIO, Dict, Iterator, Optional, Tuple
import pandas as pd
from .schemas import ParseConfig
from .utils import ConfigError

Event = Tuple[float, dict]


class Parser:
    """Turns a whole file into (time, record) pairs."""

    def __init__(self, conf: ParseConfig):
        self.conf = conf

    def parse(self, stream: BinaryIO) -> Iterator[Event]:
        raise NotImplementedError

    def convert(self, record: dict) -> Event:
        key = self.conf.time_key
        if key is None or record.get(key) in (None, ""):
            return time.time(), record
        value = record[key] if self.conf.keep_time_key else record.pop(key)
        # naive timestamps are read as UTC
        ts = pd.to_datetime(value, format=self.conf.time_format, utc=True)
        return ts.timestamp(), record


class CsvParser(Parser):
    def parse(self, stream: BinaryIO) -> Iterator[Event]:
        c = self.conf
        try:
            df = pd.read_csv(
                stream,
                sep=c.delimiter,
                header=0 if c.has_header else None,
                names=None if c.has_header or not c.keys else c.keys,
                index_col=False,
                dtype=str,
                keep_default_na=False,
                encoding=c.encoding,
            )
        except pd.errors.EmptyDataError:
            return
        if not c.has_header and not c.keys:
            # no names at all: number columns from 1
            df.columns = range(1, len(df.columns) + 1)
        for record in df.to_dict(orient="records"):
            yield self.convert(record)


class JsonLinesParser(Parser):
    def parse(self, stream: BinaryIO) -> Iterator[Event]:
        text = stream.read().decode(self.conf.encoding)
        if not text.strip():
            return
        df = pd.read_json(io.StringIO(text), lines=True, dtype=False, convert_dates=False)
        df = df.astype(object).where(df.notna(), None)
        for record in df.to_dict(orient="records"):
            yield self.convert(record)


PARSERS: Dict[str, type] = {"csv": CsvParser, "jsonl": JsonLinesParser}


def parser_create(conf: Optional[ParseConfig]) -> Parser:
    if conf is None:
        raise ConfigError("'parse' section is required.")
    if conf.type not in PARSERS:
        raise ConfigError(f"unknown parser type: {conf.type}")
    return PARSERS[conf.type](conf)
