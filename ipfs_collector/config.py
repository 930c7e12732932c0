"""Configuration objects and constants for the collector."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from .errors import ConfigError

logger = logging.getLogger("ipfs_collector")

DEFAULT_GATEWAY = "https://ipfs.io/ipfs"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/69.0.3497.100 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.9"
TRANSPORTS = ("playwright", "requests")

# Original config keys -> HarvestConfig fields. pageTimeout is milliseconds.
_FILE_KEYS = {
    "ipfsMetadataSampleUrl": "metadata_sample_url",
    "collectionName": "collection_name",
    "firstEditionId": "first_edition_id",
    "lastEditionId": "last_edition_id",
    "collectionSize": "collection_size",
    "pageTimeout": "page_timeout",
}

_NUMERIC_FIELDS = {
    "first_edition_id": int,
    "last_edition_id": int,
    "collection_size": int,
    "page_timeout": float,
}


@dataclass
class HarvestConfig:
    """Immutable inputs read once at startup."""

    metadata_sample_url: str
    collection_name: str
    first_edition_id: int
    last_edition_id: int
    collection_size: int
    page_timeout: float = 30.0
    output_root: Path = Path(".")
    gateway_base: str = DEFAULT_GATEWAY
    max_stuck_count: int = 50
    retry_delay: float = 0.1
    transport: str = "playwright"
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE

    def __post_init__(self) -> None:
        self.output_root = Path(self.output_root)
        self.gateway_base = self.gateway_base.rstrip("/")
        if not self.metadata_sample_url:
            raise ConfigError("metadata sample URL is required")
        if not self.collection_name:
            raise ConfigError("collection name is required")
        if self.first_edition_id > self.last_edition_id:
            raise ConfigError(
                f"first edition {self.first_edition_id} is after "
                f"last edition {self.last_edition_id}"
            )
        if self.collection_size < 1:
            raise ConfigError("collection size must be at least 1")
        if self.max_stuck_count < 1:
            raise ConfigError("max stuck count must be at least 1")
        if self.retry_delay < 0 or self.page_timeout < 0:
            raise ConfigError("retry delay and page timeout cannot be negative")
        if self.transport not in TRANSPORTS:
            raise ConfigError(
                f"unknown transport {self.transport!r}; expected one of {TRANSPORTS}"
            )

    @property
    def collection_dir(self) -> Path:
        return self.output_root / self.collection_name

    @property
    def metadata_dir(self) -> Path:
        return self.collection_dir / "metadata"

    @property
    def images_dir(self) -> Path:
        return self.collection_dir / "images"


def load_config_file(path: Path) -> Dict[str, Any]:
    """Read a JSON config file and map its keys to ``HarvestConfig`` fields."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    values: Dict[str, Any] = {}
    for key, value in raw.items():
        field_name = _FILE_KEYS.get(key)
        if field_name is None:
            logger.warning("Ignoring unknown config key %r in %s", key, path)
            continue
        if field_name in _NUMERIC_FIELDS:
            value = _as_number(key, value, _NUMERIC_FIELDS[field_name])
        values[field_name] = value
    if "page_timeout" in values:
        values["page_timeout"] = values["page_timeout"] / 1000.0
    return values


def _as_number(key: str, value: Any, kind: type) -> Any:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    try:
        number = kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number, got {value!r}") from exc
    if kind is int and number != float(value):
        raise ConfigError(f"{key} must be a whole number, got {value!r}")
    return number
