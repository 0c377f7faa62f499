"""Protocols and lightweight model types."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Protocol


class ClusterClient(Protocol):
    """Contract for the cluster namespace of a search client."""

    def health(self, *, index: str) -> Any:
        """Return a mapping with at least a ``status`` key."""


class SearchClient(Protocol):
    """Contract for the subset of the Elasticsearch client used here."""

    cluster: ClusterClient

    def info(self) -> Any:
        """Return node information; raises when the endpoint is unreachable."""

    def count(self, *, index: str, query: dict[str, Any]) -> Any:
        """Return a mapping with a ``count`` key."""

    def search(self, *, index: str, query: dict[str, Any], size: int, scroll: str) -> Any:
        """Open a scroll cursor and return its first page."""

    def scroll(self, *, scroll_id: str, scroll: str) -> Any:
        """Return the next page of an open scroll cursor."""

    def clear_scroll(self, *, scroll_id: str) -> Any:
        """Release a scroll cursor."""


@dataclass(frozen=True)
class LeakFilter:
    """Exactly one of email, domain or password selects the records to extract."""

    email: str = ""
    domain: str = ""
    password: str = ""

    def populated(self) -> list[tuple[str, str]]:
        """Return (name, value) pairs for every non-empty filter value."""
        return [
            (name, value)
            for name, value in (
                ("email", self.email),
                ("domain", self.domain),
                ("password", self.password),
            )
            if value
        ]

    def describe(self) -> str:
        return ", ".join(f"{name}={value}" for name, value in self.populated()) or "none"


@dataclass(frozen=True)
class LeakRecord:
    """A normalized leaked credential."""

    email: str
    password: str
    breach_name: str

    def as_row(self) -> list[str]:
        return [self.email, self.password, self.breach_name]


@dataclass(frozen=True)
class ScrollPage:
    """One page of hits returned by a scroll cursor."""

    number: int
    hits: list[dict[str, Any]]
    took_ms: int | None = None
    fetch_seconds: float = 0.0


class RunStatus(enum.Enum):
    """How an extraction run ended."""

    COMPLETED = "completed"
    LIMIT_REACHED = "limit_reached"
    INTERRUPTED = "interrupted"


@dataclass
class RunResult:
    """Counters and outcome of one extraction run."""

    output: str
    total: int
    status: RunStatus = RunStatus.COMPLETED
    emitted: int = 0
    hits_seen: int = 0
    skipped: int = 0
    malformed: int = 0
    pages: int = 0
    elapsed: float = 0.0
    error: str | None = None
    malformed_samples: list[str] = field(default_factory=list)
