"""Utilities for recording per-generation evolution metrics to disk."""

from __future__ import annotations

import csv
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import IO, Any


@dataclass(frozen=True, slots=True)
class MetricsRow:
    """Row of aggregate statistics produced for each generation."""

    generation: int
    population_size: int
    species_count: int
    best_fitness: float
    mean_fitness: float
    median_fitness: float
    mean_connections: float
    eval_time_s: float
    next_innovation: int


class MetricsWriter:
    """CSV-backed writer that appends metrics rows incrementally."""

    _fieldnames = [item.name for item in fields(MetricsRow)]

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        header = self._existing_header()
        if header is not None and header != self._fieldnames:
            msg = (
                f"Metrics file {self._path} has columns {header}; "
                f"expected {self._fieldnames}."
            )
            raise ValueError(msg)
        self._handle: IO[str] = self._path.open("a", encoding="utf-8", newline="")
        self._writer = csv.DictWriter(self._handle, fieldnames=self._fieldnames)
        if header is None:
            self._writer.writeheader()
            self._handle.flush()

    def _existing_header(self) -> list[str] | None:
        if not self._path.exists():
            return None
        with self._path.open("r", encoding="utf-8", newline="") as handle:
            return next(csv.reader(handle), None)

    def __enter__(self) -> MetricsWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def append(self, row: MetricsRow) -> None:
        """Append a metrics row and flush to disk."""
        self._writer.writerow(asdict(row))
        self._handle.flush()

    def close(self) -> None:
        """Release the underlying file handle if still open."""
        if not self._handle.closed:
            self._handle.close()

    @property
    def path(self) -> Path:
        """Return the destination path for the CSV file."""
        return self._path


__all__ = ["MetricsRow", "MetricsWriter"]
