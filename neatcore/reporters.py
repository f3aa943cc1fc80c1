"""Logging/reporting helpers for long-running evolution sessions."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from .reproduction import ReproductionPlan


def format_plan(plan: ReproductionPlan) -> list[str]:
    """Describe every surviving species of a reproduction plan, one per line."""
    lines = []
    for position, item in enumerate(plan.survivors):
        lines.append(
            f"Species {position}: "
            f"size={'small' if plan.small[position] else 'large'} "
            f"count={len(item)} ({plan.original_sizes[position]}) "
            f"fitness={plan.species_fitness[position]:.4f} "
            f"multiplier={plan.multipliers[position]} "
            f"offspring={plan.offspring[position]}"
        )
    lines.append(
        f"Species fitness mean={plan.mean_fitness:.4f} "
        f"deviation={plan.deviation:.4f} total_offspring={plan.total_offspring}"
    )
    return lines


class EventLogger:
    """Append-only text logger with ISO timestamps.

    With `echo` set, every message is also printed to stdout.
    """

    def __init__(self, path: Path, *, echo: bool = False) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self._path.open("a", encoding="utf-8")
        self._echo = echo

    def __enter__(self) -> EventLogger:
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.close()

    def log(self, message: str) -> None:
        """Append a timestamped message to the log."""
        timestamp = datetime.now(timezone.utc).isoformat()
        self._handle.write(f"{timestamp} {message}\n")
        self._handle.flush()
        if self._echo:
            print(message)

    def log_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.log(line)

    def close(self) -> None:
        """Close the underlying file handle."""
        if not self._handle.closed:
            self._handle.close()

    @property
    def path(self) -> Path:
        """Return the backing log path."""
        return self._path


__all__ = ["EventLogger", "format_plan"]
