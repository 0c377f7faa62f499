"""CLI entrypoint for leak-extractor."""

from __future__ import annotations

import argparse
import os
from collections.abc import Sequence
from typing import Any

from .config import (
    DEFAULT_BREACH_PREFIX,
    DEFAULT_CONNECT_ATTEMPTS,
    DEFAULT_INDEX,
    DEFAULT_KEEP_ALIVE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_DELAY,
    ExtractConfig,
    load_config_file,
)
from .errors import BackendError, ConfigError, DecodeError, EmptyResultError
from .io_csv import default_output_path
from .logging_utils import configure_logging, get_logger
from .models import LeakFilter, RunStatus
from .pipeline import run_pipeline
from .validation import validate_output_path

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_BACKEND_ERROR = 3
EXIT_NO_RESULTS = 4
EXIT_LIMIT_REACHED = 5
EXIT_DECODE_ERROR = 6
EXIT_INTERRUPTED = 130

STATUS_EXIT_CODES = {
    RunStatus.COMPLETED: EXIT_OK,
    RunStatus.LIMIT_REACHED: EXIT_LIMIT_REACHED,
    RunStatus.INTERRUPTED: EXIT_BACKEND_ERROR,
}

DEFAULTS: dict[str, Any] = {
    "url": "",
    "index": DEFAULT_INDEX,
    "username": "",
    "password": "",
    "output": "",
    "email": "",
    "domain": "",
    "password_filter": "",
    "limit": 0,
    "verbose": False,
    "debug": False,
    "page_size": DEFAULT_PAGE_SIZE,
    "keep_alive": DEFAULT_KEEP_ALIVE,
    "connect_attempts": DEFAULT_CONNECT_ATTEMPTS,
    "retry_delay": DEFAULT_RETRY_DELAY,
    "request_timeout": DEFAULT_REQUEST_TIMEOUT,
    "breach_prefix": DEFAULT_BREACH_PREFIX,
    "strict_decode": False,
    "show_progress": True,
}

INT_KEYS = {"limit", "page_size", "connect_attempts"}
FLOAT_KEYS = {"retry_delay", "request_timeout"}
BOOL_KEYS = {"verbose", "debug", "strict_decode", "show_progress"}


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser.

    Every option defaults to None so that only flags given on the command line
    override values from the YAML config file.
    """
    parser = argparse.ArgumentParser(
        description="Leak Extractor - export leaked credentials from an Elasticsearch index to CSV."
    )
    parser.add_argument("--config", help="Path to YAML config file.")
    parser.add_argument("--url", help="URL of the Elasticsearch endpoint.")
    parser.add_argument(
        "--index", help=f"Index name or pattern, e.g. leak_linkedin (default {DEFAULT_INDEX})."
    )
    parser.add_argument("--username", help="Elasticsearch username (or set ES_USERNAME).")
    parser.add_argument("--password", help="Elasticsearch password (or set ES_PASSWORD).")
    parser.add_argument(
        "--outfile", dest="output", help="Output CSV path (default output_<unix-time>.csv)."
    )
    filter_group = parser.add_mutually_exclusive_group()
    filter_group.add_argument("--email", help="Email address to search.")
    filter_group.add_argument("--domain", help="Email domain to search.")
    filter_group.add_argument("--pass", dest="password_filter", help="Password to search.")
    parser.add_argument(
        "--limit", type=int, help="Maximum number of records to write; 0 means no limit."
    )
    parser.add_argument(
        "--page-size", type=int, help=f"Scroll page size (default {DEFAULT_PAGE_SIZE})."
    )
    parser.add_argument(
        "--keep-alive", help=f"Scroll cursor keep-alive window (default {DEFAULT_KEEP_ALIVE})."
    )
    parser.add_argument(
        "--connect-attempts",
        type=int,
        help=f"Connection attempts before giving up (default {DEFAULT_CONNECT_ATTEMPTS}).",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        help=f"Seconds to wait between connection attempts (default {DEFAULT_RETRY_DELAY:g}).",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        help=f"Per-request timeout in seconds (default {DEFAULT_REQUEST_TIMEOUT:g}).",
    )
    parser.add_argument(
        "--breach-prefix",
        help=f"Index prefix stripped to form breach_name (default {DEFAULT_BREACH_PREFIX}).",
    )
    parser.add_argument(
        "--strict-decode",
        action="store_true",
        default=None,
        help="Abort on the first malformed hit instead of skipping it.",
    )
    parser.add_argument(
        "--no-progress",
        dest="show_progress",
        action="store_false",
        default=None,
        help="Disable tqdm progress bar.",
    )
    parser.add_argument("--verbose", action="store_true", default=None, help="Verbose output.")
    parser.add_argument("--debug", action="store_true", default=None, help="Enable debug logging.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI input."""
    return build_parser().parse_args(argv)


def _coerce(key: str, value: Any) -> Any:
    try:
        if key in INT_KEYS:
            return int(value)
        if key in FLOAT_KEYS:
            return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number, got {value!r}") from exc
    if key in BOOL_KEYS:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)
    return "" if value is None else str(value)


def merge_settings(args: argparse.Namespace) -> dict[str, Any]:
    """Merge defaults, config file values and explicitly passed flags, in that order."""
    logger = get_logger()
    settings = dict(DEFAULTS)
    if args.config:
        file_values = load_config_file(args.config)
        unknown = file_values.pop("_unknown", [])
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        for key, value in file_values.items():
            if value is not None:
                settings[key] = _coerce(key, value)

    for key in DEFAULTS:
        value = getattr(args, key, None)
        if value is not None:
            settings[key] = value

    if not settings["username"]:
        settings["username"] = os.getenv("ES_USERNAME", "")
    if not settings["password"]:
        settings["password"] = os.getenv("ES_PASSWORD", "")
    return settings


def namespace_to_config(args: argparse.Namespace) -> ExtractConfig:
    """Convert CLI args to validated ExtractConfig."""
    logger = get_logger()
    settings = merge_settings(args)
    if not settings["output"]:
        settings["output"] = default_output_path()
        logger.warning(
            "no outfile specified, automatically generating one: %s", settings["output"]
        )
    validate_output_path(settings["output"])

    leak_filter = LeakFilter(
        email=settings.pop("email"),
        domain=settings.pop("domain"),
        password=settings.pop("password_filter"),
    )
    return ExtractConfig(leak_filter=leak_filter, **settings)


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    args = parse_args(argv)
    configure_logging(bool(args.debug))
    logger = get_logger()
    try:
        config = namespace_to_config(args)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG_ERROR

    if config.debug:
        configure_logging(True)
        logger.debug("config dump: %s", config.redacted())

    try:
        result = run_pipeline(config, logger=logger)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG_ERROR
    except EmptyResultError as exc:
        logger.error("%s", exc)
        return EXIT_NO_RESULTS
    except BackendError as exc:
        logger.error("%s", exc)
        return EXIT_BACKEND_ERROR
    except DecodeError as exc:
        logger.error("Malformed hit, aborting: %s", exc)
        return EXIT_DECODE_ERROR
    except OSError as exc:
        logger.error("Cannot write output file %s: %s", config.output, exc)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        logger.warning("Interrupted, partial output kept in %s", config.output)
        return EXIT_INTERRUPTED

    if result.status is RunStatus.COMPLETED:
        logger.info("Done, wrote results to %s", result.output)
    elif result.status is RunStatus.INTERRUPTED:
        logger.error("Extraction stopped early, partial results in %s", result.output)
    return STATUS_EXIT_CODES[result.status]


if __name__ == "__main__":
    raise SystemExit(main())
