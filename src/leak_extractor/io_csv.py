"""CSV serialization helpers."""

from __future__ import annotations

import csv
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from types import TracebackType

from .models import LeakRecord

CSV_FIELDS = ["email", "password", "breach_name"]


def default_output_path(now: Callable[[], float] = time.time) -> str:
    """Return the timestamped output name used when none is configured."""
    return f"output_{int(now())}.csv"


class LeakCsvWriter:
    """Owns the output file: one header, rows appended, flushed per page."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.rows_written = 0
        self._file = Path(path).open("w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._file, lineterminator="\n")
        self._writer.writerow(CSV_FIELDS)

    def write_records(self, records: Iterable[LeakRecord]) -> int:
        count = 0
        for record in records:
            self._writer.writerow(record.as_row())
            count += 1
        self.rows_written += count
        return count

    def flush(self) -> None:
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.flush()
            self._file.close()

    def __enter__(self) -> LeakCsvWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
