from pathlib import Path
from typing import Any

import pytest

from leak_extractor.errors import ConfigError
from leak_extractor.models import LeakFilter
from leak_extractor.validation import (
    is_supported_url,
    validate_filter,
    validate_output_path,
    validate_runtime_constraints,
)


def constraints(**overrides: Any) -> dict[str, Any]:
    values: dict[str, Any] = {
        "url": "https://search.example.com",
        "index": "leak_*",
        "username": "elastic",
        "password": "secret",
        "leak_filter": LeakFilter(email="a@example.com"),
        "limit": 0,
        "page_size": 10_000,
        "keep_alive": "5m",
        "connect_attempts": 3,
        "retry_delay": 15.0,
        "request_timeout": 30.0,
    }
    values.update(overrides)
    return values


def test_is_supported_url() -> None:
    assert is_supported_url("https://search.example.com:9200") is True
    assert is_supported_url("search.example.com") is False
    assert is_supported_url("ftp://search.example.com") is False


def test_validate_filter_returns_single_pair() -> None:
    assert validate_filter(LeakFilter(domain="example.com")) == ("domain", "example.com")


def test_validate_filter_rejects_none_and_many() -> None:
    with pytest.raises(ConfigError):
        validate_filter(LeakFilter())
    with pytest.raises(ConfigError):
        validate_filter(LeakFilter(domain="example.com", password="x"))


def test_validate_runtime_constraints_accepts_defaults() -> None:
    validate_runtime_constraints(**constraints())


@pytest.mark.parametrize(
    "overrides",
    [
        {"url": ""},
        {"url": "not a url"},
        {"index": ""},
        {"username": ""},
        {"password": ""},
        {"limit": -1},
        {"page_size": 0},
        {"keep_alive": "5 minutes"},
        {"keep_alive": "0m"},
        {"connect_attempts": 0},
        {"retry_delay": -1.0},
        {"request_timeout": 0},
        {"leak_filter": LeakFilter()},
    ],
)
def test_validate_runtime_constraints_rejects_invalid_values(overrides: dict[str, Any]) -> None:
    with pytest.raises(ConfigError):
        validate_runtime_constraints(**constraints(**overrides))


@pytest.mark.parametrize(
    "url", ["http://search.example.com:notaport", "http://[::1", "http://:9200"]
)
def test_is_supported_url_rejects_unparseable_urls(url: str) -> None:
    assert is_supported_url(url) is False


def test_validate_output_path(tmp_path: Path) -> None:
    validate_output_path(str(tmp_path / "out.csv"))
    with pytest.raises(ConfigError):
        validate_output_path(str(tmp_path / "missing" / "out.csv"))
    with pytest.raises(ConfigError):
        validate_output_path(str(tmp_path))
