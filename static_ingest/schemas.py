## static_ingest/schemas.py

from __future__ import annotations
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from .utils import ConfigError, load_yaml, parse_duration

RESERVED_CHARS = ("/", "*", "%")


class ParseConfig(BaseModel):
    type: Literal["csv", "jsonl"] = "csv"
    delimiter: str = ","
    has_header: bool = True
    keys: List[str] = Field(default_factory=list, description="column names when has_header is false")
    time_key: Optional[str] = None
    time_format: Optional[str] = None
    keep_time_key: bool = False
    encoding: str = "utf-8"

    @field_validator("keys", mode="before")
    @classmethod
    def _split_keys(cls, v):
        if isinstance(v, str):
            return [k.strip() for k in v.split(",") if k.strip()]
        return v


class SourceConfig(BaseModel):
    tag: str
    path: Union[str, List[str]]
    path_delimiter: str = ","
    exclude_path: List[str] = Field(default_factory=list)
    limit_recently_modified: Optional[float] = None
    limit_oldly_modified: Optional[float] = 5
    refresh_interval: float = 30
    path_key: Optional[str] = None
    pos_file: Optional[str] = None
    follow_inodes: bool = False
    archive_to: Optional[str] = None
    ignore_repeated_permission_error: bool = False
    parse: Optional[ParseConfig] = None

    @field_validator("limit_recently_modified", "limit_oldly_modified", "refresh_interval", mode="before")
    @classmethod
    def _duration(cls, v):
        return None if v is None else parse_duration(v)

    @field_validator("path_key", mode="before")
    @classmethod
    def _path_key(cls, v):
        if isinstance(v, str) and v.strip().lower() in ("", "none"):
            return None
        return v

    @field_validator("exclude_path", mode="before")
    @classmethod
    def _exclude_list(cls, v):
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v or []

    @model_validator(mode="after")
    def _check(self):
        if self.parse is None:
            raise ValueError("'parse' section is required")
        if self.path_delimiter in RESERVED_CHARS:
            raise ValueError(f"{', '.join(RESERVED_CHARS)} are reserved words: {self.path_delimiter}")
        if not self.paths:
            raise ValueError("'path' parameter is required")
        if self.follow_inodes and not self.pos_file:
            raise ValueError("Can't follow inodes without pos_file configuration parameter")
        return self

    @property
    def paths(self) -> List[str]:
        raw = self.path if isinstance(self.path, list) else self.path.split(self.path_delimiter)
        out: List[str] = []
        for p in (p.strip() for p in raw):
            if p and p not in out:
                out.append(p)
        return out


class ParquetSinkConfig(BaseModel):
    enabled: bool = False
    path: str = "out/records.parquet"
    mode: Literal["append", "overwrite"] = "append"


class SqliteSinkConfig(BaseModel):
    enabled: bool = False
    uri: str = "sqlite:///out/records.sqlite"
    table: str = "records"


class HttpPushSinkConfig(BaseModel):
    enabled: bool = False
    url_env: str = "INGEST_PUSH_URL"
    timeout: float = 10


class SinksConfig(BaseModel):
    parquet: ParquetSinkConfig = Field(default_factory=ParquetSinkConfig)
    sqlite: SqliteSinkConfig = Field(default_factory=SqliteSinkConfig)
    http_push: HttpPushSinkConfig = Field(default_factory=HttpPushSinkConfig)


class SystemConfig(BaseModel):
    file_permission: int = 0o600
    dir_permission: int = 0o755

    @field_validator("file_permission", "dir_permission", mode="before")
    @classmethod
    def _octal(cls, v):
        # YAML reads 0600 as an int already; quoted values arrive as strings
        return int(v, 8) if isinstance(v, str) else v


class IngestConfig(BaseModel):
    sources: List[SourceConfig] = Field(min_length=1)
    sinks: SinksConfig = Field(default_factory=SinksConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)


def parse_config(raw: dict) -> IngestConfig:
    try:
        return IngestConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e


def load_config(path: str) -> IngestConfig:
    try:
        raw = load_yaml(path)
    except FileNotFoundError as e:
        raise ConfigError(f"configuration file not found: {path}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"configuration must be a mapping: {path}")
    return parse_config(raw)
