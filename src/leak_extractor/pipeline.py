"""Core orchestration pipeline."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from typing import Any

from elasticsearch import ApiError, TransportError
from tqdm import tqdm

from .config import ExtractConfig
from .connection import ClientFactory, SleepFn, check_cluster_health, connect, make_client
from .errors import BackendError, DecodeError, EmptyResultError, PageFetchError
from .extraction import decode_hit
from .io_csv import LeakCsvWriter
from .models import LeakRecord, RunResult, RunStatus, ScrollPage, SearchClient
from .query import build_query, describe_query

ClockFn = Callable[[], float]
WriterFactory = Callable[[str], LeakCsvWriter]

MAX_MALFORMED_SAMPLES = 5


def _field(response: Any, key: str, default: Any = None) -> Any:
    return response[key] if key in response else default


def count_matches(client: SearchClient, *, index: str, query: dict[str, Any]) -> int:
    """Return the number of documents matching ``query``."""
    try:
        response = client.count(index=index, query=query)
    except (ApiError, TransportError) as exc:
        raise BackendError(f"count request failed: {exc}") from exc
    return int(response["count"])


def _clear_scroll(client: SearchClient, scroll_id: str, logger: logging.Logger) -> None:
    try:
        client.clear_scroll(scroll_id=scroll_id)
    except (ApiError, TransportError) as exc:
        logger.debug("Failed to clear scroll cursor: %s", exc)


def iter_pages(
    client: SearchClient,
    *,
    index: str,
    query: dict[str, Any],
    page_size: int,
    keep_alive: str,
    logger: logging.Logger,
    clock: ClockFn = time.monotonic,
) -> Iterator[ScrollPage]:
    """Yield scroll pages until the cursor is exhausted.

    The cursor is cleared when the generator finishes or is closed early.
    Fetch failures surface as PageFetchError; nothing is retried mid-scroll.
    """
    scroll_id: str | None = None
    number = 0
    try:
        started = clock()
        try:
            response = client.search(index=index, query=query, size=page_size, scroll=keep_alive)
        except (ApiError, TransportError) as exc:
            raise PageFetchError(f"opening scroll cursor failed: {exc}") from exc
        while True:
            scroll_id = _field(response, "_scroll_id", scroll_id)
            hits = response["hits"]["hits"]
            if not hits:
                return
            number += 1
            yield ScrollPage(
                number=number,
                hits=list(hits),
                took_ms=_field(response, "took"),
                fetch_seconds=clock() - started,
            )
            if scroll_id is None:
                raise PageFetchError("search response did not include a scroll id")
            started = clock()
            try:
                response = client.scroll(scroll_id=scroll_id, scroll=keep_alive)
            except (ApiError, TransportError) as exc:
                raise PageFetchError(f"fetching page {number + 1} failed: {exc}") from exc
    finally:
        if scroll_id is not None:
            _clear_scroll(client, scroll_id, logger)


def process_page(
    page: ScrollPage,
    *,
    config: ExtractConfig,
    result: RunResult,
    writer: LeakCsvWriter,
    progress: tqdm,
    logger: logging.Logger,
) -> bool:
    """Decode, filter and write one page. Return True once the limit is reached."""
    records: list[LeakRecord] = []
    processed = 0
    limit_reached = False
    try:
        for hit in page.hits:
            processed += 1
            if config.debug:
                logger.debug("Hit: %s", hit)
            try:
                record = decode_hit(hit, config.breach_prefix)
            except DecodeError as exc:
                if config.strict_decode:
                    raise
                result.malformed += 1
                if len(result.malformed_samples) < MAX_MALFORMED_SAMPLES:
                    result.malformed_samples.append(str(exc))
                logger.warning("Skipping malformed hit: %s", exc)
                continue
            if record is None:
                result.skipped += 1
                continue
            records.append(record)
            if config.limit and result.emitted + len(records) >= config.limit:
                limit_reached = True
                break
    finally:
        result.hits_seen += processed
        progress.update(processed)
        result.emitted += writer.write_records(records)
        writer.flush()
    return limit_reached


def extract_records(
    config: ExtractConfig,
    *,
    client: SearchClient,
    query: dict[str, Any],
    logger: logging.Logger,
    writer_factory: WriterFactory = LeakCsvWriter,
    clock: ClockFn = time.monotonic,
) -> RunResult:
    """Count, then stream every matching hit into the CSV sink."""
    started = clock()
    total = count_matches(client, index=config.index, query=query)
    if total == 0:
        raise EmptyResultError("0 results returned, check your query")
    logger.info("Query matched %d documents", total)
    if not config.limit:
        logger.warning("no limit defined, this might take a LONG time")

    result = RunResult(output=config.output, total=total)
    progress = tqdm(
        total=total, desc="extracting records", unit="hit", disable=not config.show_progress
    )
    pages = iter_pages(
        client,
        index=config.index,
        query=query,
        page_size=config.effective_page_size,
        keep_alive=config.keep_alive,
        logger=logger,
        clock=clock,
    )
    try:
        with writer_factory(config.output) as writer:
            try:
                for page in pages:
                    result.pages += 1
                    if config.verbose:
                        logger.info(
                            "Page %d: %d hits, query time %.3fs, took %sms",
                            page.number,
                            len(page.hits),
                            page.fetch_seconds,
                            page.took_ms,
                        )
                    limit_reached = process_page(
                        page,
                        config=config,
                        result=result,
                        writer=writer,
                        progress=progress,
                        logger=logger,
                    )
                    if limit_reached:
                        result.status = RunStatus.LIMIT_REACHED
                        logger.info("Limit of %d results reached, stopping", config.limit)
                        break
            except PageFetchError as exc:
                logger.error("Load error: %s", exc)
                result.status = RunStatus.INTERRUPTED
                result.error = str(exc)
    finally:
        pages.close()
        progress.close()
        result.elapsed = clock() - started

    logger.info("Total time %.2fs", result.elapsed)
    logger.info(
        "Wrote %d records from %d hits (%d without email, %d malformed) to %s",
        result.emitted,
        result.hits_seen,
        result.skipped,
        result.malformed,
        result.output,
    )
    if result.malformed_samples:
        logger.warning("Malformed hit samples: %s", "; ".join(result.malformed_samples))
    return result


def run_pipeline(
    config: ExtractConfig,
    *,
    logger: logging.Logger,
    client_factory: ClientFactory = make_client,
    sleep_fn: SleepFn = time.sleep,
) -> RunResult:
    """Connect, gate on cluster health, build the query, and extract to CSV."""
    client = connect(config, client_factory=client_factory, sleep_fn=sleep_fn, logger=logger)
    check_cluster_health(client, config.index, logger=logger, verbose=config.verbose)
    query = build_query(config.leak_filter)
    if config.verbose:
        logger.info("Raw query: %s", describe_query(query))
    logger.info("Searching %s for %s", config.index, config.leak_filter.describe())
    return extract_records(config, client=client, query=query, logger=logger)
