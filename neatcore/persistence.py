"""Checkpoint helpers for saving and resuming evolution runs."""

from __future__ import annotations

import pickle
from dataclasses import dataclass, field
from pathlib import Path
from random import Random
from typing import Any

from .genome import Genome
from .innovations import InnovationSnapshot, InnovationTracker
from .population import PopulationState
from .reproduction import ReproductionConfig
from .species import Species, SpeciesConfig, SpeciesManager


class CheckpointError(RuntimeError):
    """Raised when a checkpoint cannot be written or read back."""


def _restore_tracker(
    population: list[Genome],
    snapshot: InnovationSnapshot,
) -> InnovationTracker:
    """Rebuild the counter so it never re-issues an id the population uses."""
    tracker = InnovationTracker.from_snapshot(snapshot)
    for genome in population:
        for innovation in genome.connections:
            tracker.observe(innovation)
    return tracker


@dataclass(slots=True)
class TrainingCheckpoint:
    """Serializable representation of a training session.

    `population` and `innovation_snapshot` are what a run needs to continue;
    the remaining fields make a resumed run behave as if it never stopped.
    """

    generation: int
    population: list[Genome]
    innovation_snapshot: InnovationSnapshot
    species: list[Species] = field(default_factory=list)
    best_genome: Genome | None = None
    best_fitness: float = float("-inf")
    rng_state: Any = None

    @property
    def next_innovation(self) -> int:
        return self.innovation_snapshot.next_innovation

    @classmethod
    def from_state(cls, state: PopulationState) -> TrainingCheckpoint:
        if not state.genomes:
            msg = "Cannot persist checkpoint with empty population."
            raise ValueError(msg)
        return cls(
            generation=state.generation,
            population=[genome.copy() for genome in state.genomes],
            innovation_snapshot=state.tracker.to_snapshot(),
            species=list(state.species_manager.species()),
            best_genome=None if state.champion is None else state.champion.copy(),
            best_fitness=state.champion_fitness,
            rng_state=state.rng.getstate(),
        )

    def to_state(
        self,
        *,
        species_config: SpeciesConfig | None = None,
        reproduction_config: ReproductionConfig | None = None,
    ) -> PopulationState:
        rng = Random()
        if self.rng_state is not None:
            rng.setstate(self.rng_state)
        species_manager = SpeciesManager(species_config or SpeciesConfig())
        species_manager.restore(self.species)
        return PopulationState(
            generation=self.generation,
            genomes=[genome.copy() for genome in self.population],
            rng=rng,
            tracker=_restore_tracker(self.population, self.innovation_snapshot),
            species_manager=species_manager,
            reproduction_config=reproduction_config or ReproductionConfig(),
            champion=None if self.best_genome is None else self.best_genome.copy(),
            champion_fitness=self.best_fitness,
        )


def save_checkpoint(path: Path, checkpoint: TrainingCheckpoint) -> None:
    """Persist a training checkpoint to disk."""
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("wb") as handle:
            pickle.dump(checkpoint, handle, protocol=pickle.HIGHEST_PROTOCOL)
    except (OSError, pickle.PicklingError) as error:
        msg = f"Unable to write checkpoint {target}: {error}"
        raise CheckpointError(msg) from error


def load_checkpoint(path: Path) -> TrainingCheckpoint:
    """Load a previously saved training checkpoint."""
    source = Path(path)
    try:
        with source.open("rb") as handle:
            data: Any = pickle.load(handle)
    except (OSError, EOFError, pickle.UnpicklingError, AttributeError) as error:
        msg = f"Unable to read checkpoint {source}: {error}"
        raise CheckpointError(msg) from error
    if not isinstance(data, TrainingCheckpoint):
        msg = f"Invalid checkpoint payload in {source}"
        raise CheckpointError(msg)
    return data


def save_population(
    path: Path,
    population: list[Genome],
    next_innovation: int,
    *,
    generation: int = 0,
) -> None:
    """Persist just a population and its innovation counter."""
    save_checkpoint(
        path,
        TrainingCheckpoint(
            generation=generation,
            population=list(population),
            innovation_snapshot=InnovationSnapshot(next_innovation=next_innovation),
        ),
    )


def load_population(path: Path) -> tuple[list[Genome], int]:
    """Load a population and the next free innovation id.

    The returned id is raised past any innovation already present in the
    population, even if the stored counter is behind.
    """
    checkpoint = load_checkpoint(path)
    tracker = _restore_tracker(checkpoint.population, checkpoint.innovation_snapshot)
    return checkpoint.population, tracker.next_innovation


__all__ = [
    "CheckpointError",
    "TrainingCheckpoint",
    "load_checkpoint",
    "load_population",
    "save_checkpoint",
    "save_population",
]
