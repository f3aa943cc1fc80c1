"""Species classification and compatibility utilities for NEAT."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from .genome import Genome

FACTOR_DISJOINT = 1.0
FACTOR_WDIFF = 0.2
DIFF_THRESH = 4.0


@dataclass(frozen=True, slots=True)
class SpeciesConfig:
    """Configuration parameters controlling speciation behaviour."""

    factor_disjoint: float = FACTOR_DISJOINT
    factor_weight_diff: float = FACTOR_WDIFF
    compatibility_threshold: float = DIFF_THRESH

    def __post_init__(self) -> None:
        if self.factor_disjoint < 0 or self.factor_weight_diff < 0:
            msg = "Compatibility coefficients must be non-negative."
            raise ValueError(msg)
        if self.compatibility_threshold <= 0:
            msg = "compatibility_threshold must be positive."
            raise ValueError(msg)


def compatibility_distance(
    left: Genome,
    right: Genome,
    *,
    factor_disjoint: float = FACTOR_DISJOINT,
    factor_weight_diff: float = FACTOR_WDIFF,
) -> float:
    """Compute the compatibility distance between two genomes.

    Disjoint and excess genes are not distinguished: every innovation id
    present in exactly one genome counts once, and every shared id adds the
    absolute difference of the two weights.
    """
    shared = left.connections.keys() & right.connections.keys()
    disjoint = len(left.connections.keys() ^ right.connections.keys())
    weight_diff_sum = sum(
        abs(left.connections[innovation].weight - right.connections[innovation].weight)
        for innovation in shared
    )
    return disjoint * factor_disjoint + weight_diff_sum * factor_weight_diff


Member = tuple[Genome, int]


@dataclass(slots=True)
class Species:
    """An ordered group of genomes with their population indices.

    The first member is the representative that later genomes, including
    those of the next generation, are compared against.
    """

    members: list[Member] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[Member]:
        return iter(self.members)

    @property
    def representative(self) -> Genome:
        if not self.members:
            msg = "An empty species has no representative."
            raise ValueError(msg)
        return self.members[0][0]

    @property
    def indices(self) -> list[int]:
        """Population indices of the members, in member order."""
        return [index for _genome, index in self.members]

    def add(self, genome: Genome, index: int) -> None:
        self.members.append((genome, index))


def class_species(
    population: Sequence[Genome],
    previous_species: Sequence[Species] = (),
    config: SpeciesConfig | None = None,
) -> list[Species]:
    """Group a population into species by compatibility distance.

    Candidate species are the previous generation's species, compared through
    their representatives, followed by the species opened earlier in this
    pass. A genome joins the *last* candidate within the threshold, not the
    first; if no candidate is close enough it opens a new species. Species
    left without members are dropped.
    """
    if config is None:
        config = SpeciesConfig()

    previous = [item for item in previous_species if item.members]
    representatives = [item.representative for item in previous]
    species = [Species() for _ in previous]

    for index, genome in enumerate(population):
        match: int | None = None
        for slot, representative in enumerate(representatives):
            distance = compatibility_distance(
                representative,
                genome,
                factor_disjoint=config.factor_disjoint,
                factor_weight_diff=config.factor_weight_diff,
            )
            if distance < config.compatibility_threshold:
                match = slot

        if match is None:
            species.append(Species([(genome, index)]))
            representatives.append(genome)
        else:
            species[match].add(genome, index)

    return [item for item in species if item.members]


@dataclass(slots=True)
class SpeciesManager:
    """Carries species from one generation's classification to the next."""

    config: SpeciesConfig = field(default_factory=SpeciesConfig)
    _species: list[Species] = field(init=False, default_factory=list)

    def speciate(self, population: Sequence[Genome]) -> list[Species]:
        """Classify `population` against the previously returned species."""
        self._species = class_species(population, self._species, self.config)
        return list(self._species)

    def species(self) -> tuple[Species, ...]:
        """Return the species of the latest classification."""
        return tuple(self._species)

    def restore(self, species: Sequence[Species]) -> None:
        """Seed the manager with species loaded from a checkpoint."""
        self._species = [item for item in species if item.members]


__all__ = [
    "DIFF_THRESH",
    "FACTOR_DISJOINT",
    "FACTOR_WDIFF",
    "Species",
    "SpeciesConfig",
    "SpeciesManager",
    "class_species",
    "compatibility_distance",
]
