"""Runtime configuration model."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .models import LeakFilter
from .validation import validate_runtime_constraints

DEFAULT_INDEX = "leak_*"
DEFAULT_BREACH_PREFIX = "leak_"
DEFAULT_PAGE_SIZE = 10_000
DEFAULT_KEEP_ALIVE = "5m"
DEFAULT_CONNECT_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 15.0
DEFAULT_REQUEST_TIMEOUT = 30.0

# YAML key -> ExtractConfig field (filter keys map into LeakFilter).
FILE_KEYS = {
    "url": "url",
    "index": "index",
    "username": "username",
    "password": "password",
    "outfile": "output",
    "verbose": "verbose",
    "debug": "debug",
    "limit": "limit",
    "domain": "domain",
    "email": "email",
    "pass": "password_filter",
    "page_size": "page_size",
    "keep_alive": "keep_alive",
    "connect_attempts": "connect_attempts",
    "retry_delay": "retry_delay",
    "request_timeout": "request_timeout",
    "breach_prefix": "breach_prefix",
    "strict_decode": "strict_decode",
    "show_progress": "show_progress",
}


@dataclass(frozen=True)
class ExtractConfig:
    """Validated configuration used by the extraction pipeline."""

    url: str
    username: str
    password: str
    output: str
    leak_filter: LeakFilter = field(default_factory=LeakFilter)
    index: str = DEFAULT_INDEX
    limit: int = 0
    verbose: bool = False
    debug: bool = False
    page_size: int = DEFAULT_PAGE_SIZE
    keep_alive: str = DEFAULT_KEEP_ALIVE
    connect_attempts: int = DEFAULT_CONNECT_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    breach_prefix: str = DEFAULT_BREACH_PREFIX
    strict_decode: bool = False
    show_progress: bool = True

    def __post_init__(self) -> None:
        validate_runtime_constraints(
            url=self.url,
            index=self.index,
            username=self.username,
            password=self.password,
            leak_filter=self.leak_filter,
            limit=self.limit,
            page_size=self.page_size,
            keep_alive=self.keep_alive,
            connect_attempts=self.connect_attempts,
            retry_delay=self.retry_delay,
            request_timeout=self.request_timeout,
        )

    @property
    def effective_page_size(self) -> int:
        """Page size for the scroll cursor, never larger than a non-zero limit."""
        if self.limit and self.limit < self.page_size:
            return self.limit
        return self.page_size

    def redacted(self) -> dict[str, Any]:
        """Return the configuration as a dict with secrets masked, for debug logs."""
        values = asdict(self)
        values["password"] = "***"
        if values["leak_filter"].get("password"):
            values["leak_filter"]["password"] = "***"
        return values


def load_config_file(path: str) -> dict[str, Any]:
    """Read a YAML config file and return its values keyed by ExtractConfig field name.

    Filter keys come back as ``email``, ``domain`` and ``password_filter``.
    Keys the tool does not know are returned under ``"_unknown"`` so the caller
    can warn about them.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level.")

    values: dict[str, Any] = {}
    unknown: list[str] = []
    for key, value in raw.items():
        name = FILE_KEYS.get(str(key))
        if name is None:
            unknown.append(str(key))
            continue
        values[name] = value
    if unknown:
        values["_unknown"] = sorted(unknown)
    return values
