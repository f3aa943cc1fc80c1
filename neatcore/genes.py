"""Gene primitives (node classification and connections) for NEAT genomes."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class NodeType(str, Enum):
    """Enumeration of node categories.

    Nodes are not stored as objects: their category follows from the id and
    the genome's input/output counts.
    """

    INPUT = "input"
    BIAS = "bias"
    OUTPUT = "output"
    HIDDEN = "hidden"

    @classmethod
    def of(cls, node_id: int, n_inputs: int, n_outputs: int) -> NodeType:
        """Classify a node id within a genome of the given shape."""
        if node_id < 0:
            msg = "Node id must be non-negative."
            raise ValueError(msg)
        if node_id < n_inputs:
            return cls.INPUT
        if node_id == n_inputs:
            return cls.BIAS
        if node_id <= n_inputs + n_outputs:
            return cls.OUTPUT
        return cls.HIDDEN


@dataclass(frozen=True, slots=True)
class ConnectionGene:
    """Weighted directed connection between two nodes of a genome."""

    innovation: int
    in_node_id: int
    out_node_id: int
    weight: float
    enabled: bool = True

    def __post_init__(self) -> None:
        for field_name, value in (
            ("innovation", self.innovation),
            ("in_node_id", self.in_node_id),
            ("out_node_id", self.out_node_id),
        ):
            if value < 0:
                msg = f"{field_name} must be non-negative."
                raise ValueError(msg)
        try:
            weight = float(self.weight)
        except (TypeError, ValueError) as error:
            msg = f"weight must be convertible to float, got {self.weight!r}"
            raise ValueError(msg) from error
        if not math.isfinite(weight):
            msg = "weight must be a finite number."
            raise ValueError(msg)
        object.__setattr__(self, "weight", weight)

    @property
    def disabled(self) -> bool:
        return not self.enabled

    @property
    def pair(self) -> tuple[int, int]:
        """The `(in_node_id, out_node_id)` edge this gene encodes."""
        return self.in_node_id, self.out_node_id

    def copy(
        self,
        *,
        weight: float | None = None,
        enabled: bool | None = None,
    ) -> ConnectionGene:
        """Return a copy with optional field overrides."""
        return ConnectionGene(
            innovation=self.innovation,
            in_node_id=self.in_node_id,
            out_node_id=self.out_node_id,
            weight=self.weight if weight is None else float(weight),
            enabled=self.enabled if enabled is None else enabled,
        )


__all__ = ["NodeType", "ConnectionGene"]
