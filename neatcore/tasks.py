"""Fitness tasks that score genomes on fixed input/target tables."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from .genome import Genome
from .network import FeedForwardNetwork

Case = tuple[tuple[float, ...], tuple[float, ...]]


class Task(Protocol):
    """Anything that can turn a genome into a scalar fitness."""

    name: str
    n_inputs: int
    n_outputs: int

    def fitness(self, genome: Genome) -> float: ...

    def describe(self, genome: Genome) -> list[tuple[tuple[float, ...], list[float]]]: ...


@dataclass(frozen=True, slots=True)
class TableTask:
    """Supervised task scored as ``1 / (1 + sum of squared errors)``."""

    name: str
    cases: tuple[Case, ...]

    def __post_init__(self) -> None:
        if not self.cases:
            msg = "A table task needs at least one case."
            raise ValueError(msg)
        in_sizes = {len(inputs) for inputs, _targets in self.cases}
        out_sizes = {len(targets) for _inputs, targets in self.cases}
        if len(in_sizes) != 1 or len(out_sizes) != 1:
            msg = "All cases must share the same input and output sizes."
            raise ValueError(msg)

    @property
    def n_inputs(self) -> int:
        return len(self.cases[0][0])

    @property
    def n_outputs(self) -> int:
        return len(self.cases[0][1])

    def fitness(self, genome: Genome) -> float:
        network = FeedForwardNetwork.from_genome(genome)
        error = 0.0
        for inputs, targets in self.cases:
            outputs = network.activate(inputs)
            error += sum(
                (output - target) ** 2
                for output, target in zip(outputs, targets, strict=True)
            )
        return 1.0 / (1.0 + error)

    def describe(self, genome: Genome) -> list[tuple[tuple[float, ...], list[float]]]:
        """Return the genome's outputs for every case input."""
        return [(inputs, genome.evaluate(inputs)) for inputs, _targets in self.cases]


XOR_CASES: tuple[Case, ...] = (
    ((0.0, 0.0), (0.0,)),
    ((0.0, 1.0), (1.0,)),
    ((1.0, 0.0), (1.0,)),
    ((1.0, 1.0), (0.0,)),
)

XOR = TableTask(name="xor", cases=XOR_CASES)

TASKS: dict[str, Task] = {XOR.name: XOR}


def get_task(name: str) -> Task:
    try:
        return TASKS[name.strip().lower()]
    except KeyError as error:
        valid = ", ".join(sorted(TASKS))
        msg = f"Unknown task {name!r}. Expected one of: {valid}"
        raise ValueError(msg) from error


def format_cases(rows: Sequence[tuple[tuple[float, ...], list[float]]]) -> list[str]:
    """Render `describe()` rows as ``in1, in2 => out`` lines."""
    lines = []
    for inputs, outputs in rows:
        left = ", ".join(f"{value:g}" for value in inputs)
        right = ", ".join(f"{value:.4f}" for value in outputs)
        lines.append(f"{left} => {right}")
    return lines


__all__ = [
    "Case",
    "TASKS",
    "TableTask",
    "Task",
    "XOR",
    "XOR_CASES",
    "format_cases",
    "get_task",
]
