"""Innovation-id bookkeeping shared by every genome of a run."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import SupportsInt, cast


@dataclass(frozen=True, slots=True)
class InnovationSnapshot:
    """Serializable snapshot of the innovation counter.

    Attributes:
        next_innovation: The next innovation identifier that will be assigned.
    """

    next_innovation: int


@dataclass(slots=True)
class InnovationTracker:
    """Hands out globally unique, monotonically increasing innovation ids.

    A single tracker is owned by whoever runs reproduction and is passed
    explicitly into every operation that creates connection genes. Ids are
    never reused, not even for structurally identical connections created
    independently in two genomes.
    """

    next_innovation: int = 0

    def __post_init__(self) -> None:
        self.next_innovation = self._coerce_int(
            self.next_innovation, label="next_innovation"
        )
        if self.next_innovation < 0:
            msg = "next_innovation must be non-negative."
            raise ValueError(msg)

    def allocate(self) -> int:
        """Return a fresh innovation id and advance the counter."""
        innovation = self.next_innovation
        self.next_innovation += 1
        return innovation

    def observe(self, innovation: int) -> None:
        """Make sure future ids are larger than an id already in use."""
        if innovation < 0:
            msg = "innovation id must be non-negative."
            raise ValueError(msg)
        if innovation >= self.next_innovation:
            self.next_innovation = innovation + 1

    def to_snapshot(self) -> InnovationSnapshot:
        """Produce a snapshot suitable for persistence."""
        return InnovationSnapshot(next_innovation=self.next_innovation)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: InnovationSnapshot | Mapping[str, object],
    ) -> InnovationTracker:
        """Restore a tracker from a snapshot or snapshot-like mapping."""
        if isinstance(snapshot, InnovationSnapshot):
            return cls(next_innovation=snapshot.next_innovation)
        try:
            candidate = snapshot["next_innovation"]
        except KeyError as error:
            msg = f"Snapshot is missing required key: {error.args[0]}"
            raise ValueError(msg) from error
        return cls(next_innovation=cls._coerce_int(candidate, label="next_innovation"))

    @staticmethod
    def _coerce_int(value: object, *, label: str) -> int:
        if isinstance(value, bool):
            msg = f"{label} must be an integer, not a boolean."
            raise ValueError(msg)
        if isinstance(value, int):
            return value
        if isinstance(value, (str, bytes, bytearray)):
            try:
                return int(value)
            except ValueError as error:
                msg = f"{label} must be convertible to int."
                raise ValueError(msg) from error
        if hasattr(value, "__int__"):
            try:
                return int(cast(SupportsInt, value))
            except (TypeError, ValueError) as error:
                msg = f"{label} must be convertible to int."
                raise ValueError(msg) from error
        msg = f"{label} must be convertible to int."
        raise ValueError(msg)


__all__ = ["InnovationTracker", "InnovationSnapshot"]
