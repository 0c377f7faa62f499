"""Validation and runtime guardrails."""

from __future__ import annotations

import os
import re
from pathlib import Path
from urllib.parse import urlparse

from .errors import ConfigError
from .models import LeakFilter

KEEP_ALIVE_PATTERN = re.compile(r"^[1-9][0-9]*(ms|s|m|h|d)$")


def is_supported_url(url: str) -> bool:
    """Allow only absolute HTTP(S) URLs with a hostname."""
    try:
        parsed = urlparse(url)
        _ = parsed.port
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.hostname)


def validate_filter(leak_filter: LeakFilter) -> tuple[str, str]:
    """Return the single populated (name, value) pair or raise ConfigError."""
    populated = leak_filter.populated()
    if not populated:
        raise ConfigError(
            "an argument for one of the following parameters must be supplied: "
            "domain, email, or pass"
        )
    if len(populated) > 1:
        raise ConfigError(
            "domain, email, and pass parameters are mutually exclusive, "
            "i.e. only one can receive a value"
        )
    return populated[0]


def validate_runtime_constraints(
    *,
    url: str,
    index: str,
    username: str,
    password: str,
    leak_filter: LeakFilter,
    limit: int,
    page_size: int,
    keep_alive: str,
    connect_attempts: int,
    retry_delay: float,
    request_timeout: float,
) -> None:
    """Validate CLI/runtime configuration and raise ConfigError on invalid values."""
    validate_filter(leak_filter)
    if not url:
        raise ConfigError("Missing required url parameter.")
    if not index:
        raise ConfigError("Missing required index parameter.")
    if not username:
        raise ConfigError("Missing required username parameter.")
    if not password:
        raise ConfigError("Missing required password parameter.")
    if not is_supported_url(url):
        raise ConfigError(f"Error parsing url parameter: {url}")
    if limit < 0:
        raise ConfigError("--limit must be >= 0.")
    if page_size < 1:
        raise ConfigError("--page-size must be >= 1.")
    if not KEEP_ALIVE_PATTERN.match(keep_alive):
        raise ConfigError(f"--keep-alive must look like 30s, 5m or 1h, got {keep_alive!r}.")
    if connect_attempts < 1:
        raise ConfigError("--connect-attempts must be >= 1.")
    if retry_delay < 0:
        raise ConfigError("--retry-delay must be >= 0.")
    if request_timeout <= 0:
        raise ConfigError("--request-timeout must be > 0.")


def validate_output_path(path: str) -> None:
    """Fail before any network call when the output file cannot be created."""
    output = Path(path)
    if output.is_dir():
        raise ConfigError(f"Output path {path} is a directory.")
    parent = output.parent if str(output.parent) else Path(".")
    if not parent.is_dir():
        raise ConfigError(f"Output directory {parent} does not exist.")
    target = output if output.exists() else parent
    if not os.access(target, os.W_OK):
        raise ConfigError(f"Output path {path} is not writable.")
