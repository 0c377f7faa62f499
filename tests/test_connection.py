import logging
from pathlib import Path
from typing import Any

import pytest
from elasticsearch import ConnectionError as ESConnectionError
from elasticsearch import Elasticsearch

from leak_extractor.config import ExtractConfig
from leak_extractor.connection import check_cluster_health, connect, make_client
from leak_extractor.errors import ClusterHealthError, ConfigError, ConnectivityError
from leak_extractor.models import LeakFilter


def make_config(**overrides: Any) -> ExtractConfig:
    values: dict[str, Any] = {
        "url": "http://localhost:9200",
        "username": "elastic",
        "password": "secret",
        "output": "out.csv",
        "leak_filter": LeakFilter(email="a@example.com"),
    }
    values.update(overrides)
    return ExtractConfig(**values)


class FakeCluster:
    def __init__(self, status: str = "green", error: Exception | None = None) -> None:
        self._status = status
        self._error = error

    def health(self, *, index: str) -> dict[str, str]:
        _ = index
        if self._error:
            raise self._error
        return {"status": self._status}


class FakeClient:
    def __init__(self, *, reachable: bool = True, cluster: FakeCluster | None = None) -> None:
        self._reachable = reachable
        self.cluster = cluster or FakeCluster()

    def info(self) -> dict[str, Any]:
        if not self._reachable:
            raise ESConnectionError("connection refused")
        return {"cluster_name": "leaks"}


class FlakyFactory:
    def __init__(self, failures: int) -> None:
        self._failures = failures
        self.calls = 0

    def __call__(self, _config: ExtractConfig) -> FakeClient:
        self.calls += 1
        return FakeClient(reachable=self.calls > self._failures)


def test_connect_retries_then_succeeds() -> None:
    factory = FlakyFactory(failures=2)
    sleeps: list[float] = []
    client = connect(
        make_config(), client_factory=factory, sleep_fn=sleeps.append, logger=logging.getLogger("test")
    )
    assert isinstance(client, FakeClient)
    assert factory.calls == 3
    assert sleeps == [15.0, 15.0]


def test_connect_gives_up_after_configured_attempts() -> None:
    factory = FlakyFactory(failures=10)
    sleeps: list[float] = []
    with pytest.raises(ConnectivityError):
        connect(
            make_config(connect_attempts=3, retry_delay=0.5),
            client_factory=factory,
            sleep_fn=sleeps.append,
            logger=logging.getLogger("test"),
        )
    assert factory.calls == 3
    assert sleeps == [0.5, 0.5]


def test_check_cluster_health_accepts_yellow() -> None:
    client = FakeClient(cluster=FakeCluster("yellow"))
    status = check_cluster_health(client, "leak_*", logger=logging.getLogger("test"), verbose=True)
    assert status == "yellow"


def test_check_cluster_health_rejects_red() -> None:
    client = FakeClient(cluster=FakeCluster("red"))
    with pytest.raises(ClusterHealthError):
        check_cluster_health(client, "leak_*", logger=logging.getLogger("test"))


def test_check_cluster_health_wraps_transport_errors() -> None:
    client = FakeClient(cluster=FakeCluster(error=ESConnectionError("timed out")))
    with pytest.raises(ConnectivityError):
        check_cluster_health(client, "leak_*", logger=logging.getLogger("test"))


def test_make_client_builds_elasticsearch_client(tmp_path: Path) -> None:
    client = make_client(make_config(output=str(tmp_path / "out.csv")))
    try:
        assert isinstance(client, Elasticsearch)
    finally:
        client.close()


def test_connect_reports_unparseable_url_as_config_error() -> None:
    def rejecting_factory(_config: ExtractConfig) -> FakeClient:
        raise ValueError("Could not parse URL")

    sleeps: list[float] = []
    with pytest.raises(ConfigError):
        connect(
            make_config(),
            client_factory=rejecting_factory,
            sleep_fn=sleeps.append,
            logger=logging.getLogger("test"),
        )
    assert sleeps == []
