"""Elasticsearch connection with bounded retry and cluster-health gate."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from elasticsearch import ApiError, Elasticsearch, TransportError

from .config import ExtractConfig
from .errors import ClusterHealthError, ConfigError, ConnectivityError
from .models import SearchClient

ClientFactory = Callable[[ExtractConfig], SearchClient]
SleepFn = Callable[[float], None]


def make_client(config: ExtractConfig) -> Elasticsearch:
    """Create an authenticated client with node sniffing disabled."""
    return Elasticsearch(
        config.url,
        basic_auth=(config.username, config.password),
        node_class="requests",
        sniff_on_start=False,
        sniff_on_node_failure=False,
        request_timeout=config.request_timeout,
        retry_on_timeout=True,
    )


def connect(
    config: ExtractConfig,
    *,
    client_factory: ClientFactory = make_client,
    sleep_fn: SleepFn = time.sleep,
    logger: logging.Logger,
) -> SearchClient:
    """Return a live client, trying up to ``config.connect_attempts`` times."""
    last_error: Exception | None = None
    for attempt in range(1, config.connect_attempts + 1):
        try:
            try:
                client = client_factory(config)
            except ValueError as exc:
                raise ConfigError(f"Error parsing url parameter: {config.url}: {exc}") from exc
            client.info()
            return client
        except (ApiError, TransportError) as exc:
            last_error = exc
            if attempt == config.connect_attempts:
                logger.error(
                    "error connecting to elasticsearch (attempt %d/%d): %s",
                    attempt,
                    config.connect_attempts,
                    exc,
                )
                break
            logger.warning(
                "error connecting to elasticsearch (attempt %d/%d): %s, retrying in %.0fs",
                attempt,
                config.connect_attempts,
                exc,
                config.retry_delay,
            )
            sleep_fn(config.retry_delay)
    raise ConnectivityError(
        f"could not connect to {config.url} after {config.connect_attempts} attempts: {last_error}"
    ) from last_error


def check_cluster_health(
    client: SearchClient, index: str, *, logger: logging.Logger, verbose: bool = False
) -> str:
    """Return the cluster health status for ``index``; red is fatal."""
    try:
        response = client.cluster.health(index=index)
    except (ApiError, TransportError) as exc:
        raise ConnectivityError(f"cluster health request failed: {exc}") from exc
    status = str(response["status"]).lower()
    if verbose:
        logger.info("cluster health: %s", status)
    if status == "red":
        raise ClusterHealthError("Cluster health is red, exiting. Contact support.")
    return status
