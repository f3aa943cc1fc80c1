"""Offspring allocation and production for NEAT reproduction."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from random import Random
from statistics import mean

from .genome import Genome, MutationConfig
from .innovations import InnovationTracker
from .species import Species


@dataclass(frozen=True, slots=True)
class ReproductionConfig:
    """Configuration controlling offspring allocation and production.

    Attributes:
        clone_rate: Probability that an offspring is a verbatim copy of one
            parent instead of a crossover child.
        mutate_rate: Probability that a crossover child is mutated.
        multipliers: Offspring multipliers for species whose fitness is below
            one deviation under the mean, below the mean, below one deviation
            over the mean, and anything higher.
        mutation: Mutation rates for small and large species.
    """

    clone_rate: float = 0.4
    mutate_rate: float = 0.4
    multipliers: tuple[float, float, float, float] = (0.1, 0.5, 1.5, 3.0)
    mutation: MutationConfig = field(default_factory=MutationConfig)

    def __post_init__(self) -> None:
        for label, value in (
            ("clone_rate", self.clone_rate),
            ("mutate_rate", self.mutate_rate),
        ):
            if not 0.0 <= value <= 1.0:
                msg = f"{label} must be in [0, 1]."
                raise ValueError(msg)
        if len(self.multipliers) != 4:
            msg = "multipliers must contain exactly four values."
            raise ValueError(msg)
        if any(value < 0.0 for value in self.multipliers):
            msg = "multipliers must be non-negative."
            raise ValueError(msg)


@dataclass(slots=True)
class ReproductionPlan:
    """Per-species statistics and offspring counts for one generation.

    All lists are aligned with `survivors`.
    """

    survivors: list[Species]
    original_sizes: list[int]
    adjusted_fitness: dict[int, float]
    species_fitness: list[float]
    mean_fitness: float
    deviation: float
    multipliers: list[float]
    offspring: list[int]
    small: list[bool]

    @property
    def total_offspring(self) -> int:
        return sum(self.offspring)


def _fitness_of(fitnesses: Sequence[float], index: int) -> float:
    try:
        return fitnesses[index]
    except IndexError as error:
        msg = f"Missing fitness for population index {index}"
        raise IndexError(msg) from error


def truncate_species(
    species: Sequence[Species],
    fitnesses: Sequence[float],
) -> list[Species]:
    """Keep the fitter `len // 2 + 1` members of every non-empty species."""
    survivors: list[Species] = []
    for item in species:
        if not item.members:
            continue
        ranked = sorted(
            item.members,
            key=lambda member: _fitness_of(fitnesses, member[1]),
            reverse=True,
        )
        survivors.append(Species(ranked[: len(ranked) // 2 + 1]))
    return survivors


def offspring_multiplier(
    value: float,
    mean_fitness: float,
    deviation: float,
    multipliers: Sequence[float],
) -> float:
    """Bucket a species fitness by its distance from the mean."""
    if value < mean_fitness - deviation:
        return multipliers[0]
    if value < mean_fitness:
        return multipliers[1]
    if value < mean_fitness + deviation:
        return multipliers[2]
    return multipliers[3]


def compute_offspring_allocation(
    species: Sequence[Species],
    fitnesses: Sequence[float],
    rng: Random,
    config: ReproductionConfig | None = None,
) -> ReproductionPlan:
    """Truncate species, share fitness and decide how many offspring each gets.

    Raw counts are proportional to species fitness scaled by its multiplier
    and sum to the population size; each fractional part is rounded up with
    a probability equal to that fraction.
    """
    if config is None:
        config = ReproductionConfig()

    non_empty = [item for item in species if item.members]
    if not non_empty:
        msg = "At least one non-empty species is required."
        raise ValueError(msg)
    original_sizes = [len(item) for item in non_empty]
    survivors = truncate_species(non_empty, fitnesses)

    adjusted_fitness: dict[int, float] = {}
    species_fitness: list[float] = []
    for item in survivors:
        size = len(item)
        total = 0.0
        for _genome, index in item:
            adjusted = _fitness_of(fitnesses, index) / size
            adjusted_fitness[index] = adjusted
            total += adjusted
        species_fitness.append(total)

    mean_fitness = mean(species_fitness)
    deviation = math.sqrt(
        sum((value - mean_fitness) ** 2 for value in species_fitness)
    )
    multipliers = [
        offspring_multiplier(value, mean_fitness, deviation, config.multipliers)
        for value in species_fitness
    ]
    weighted = [
        value * multiplier for value, multiplier in zip(species_fitness, multipliers)
    ]

    population_size = len(fitnesses)
    total_weighted = sum(weighted)
    if total_weighted <= 0.0:
        equal_share = population_size / len(survivors)
        raw_allocations = [equal_share] * len(survivors)
    else:
        raw_allocations = [
            value / total_weighted * population_size for value in weighted
        ]

    offspring: list[int] = []
    for value in raw_allocations:
        count = math.floor(value)
        if rng.random() < value - count:
            count += 1
        offspring.append(max(count, 0))

    average_size = mean(original_sizes)
    small = [size < average_size for size in original_sizes]

    return ReproductionPlan(
        survivors=survivors,
        original_sizes=original_sizes,
        adjusted_fitness=adjusted_fitness,
        species_fitness=species_fitness,
        mean_fitness=mean_fitness,
        deviation=deviation,
        multipliers=multipliers,
        offspring=offspring,
        small=small,
    )


def _other_better(first: float, second: float) -> bool | None:
    if first < second:
        return True
    if first > second:
        return False
    return None


def produce_offspring(
    plan: ReproductionPlan,
    fitnesses: Sequence[float],
    tracker: InnovationTracker,
    rng: Random,
    config: ReproductionConfig | None = None,
) -> list[Genome]:
    """Breed the offspring counted in `plan` and return them shuffled."""
    if config is None:
        config = ReproductionConfig()

    result: list[Genome] = []
    for item, count, is_small in zip(plan.survivors, plan.offspring, plan.small):
        members = item.members
        for _ in range(count):
            first, first_index = rng.choice(members)
            second, second_index = rng.choice(members)

            if rng.random() < config.clone_rate:
                result.append(first.copy())
                continue

            other_better = _other_better(
                fitnesses[first_index],
                fitnesses[second_index],
            )
            child = first.crossover(second, rng=rng, other_better=other_better)
            if rng.random() < config.mutate_rate:
                child.mutate(rng, tracker, is_small=is_small, config=config.mutation)
            result.append(child)

    rng.shuffle(result)
    return result


def next_generation(
    species: Sequence[Species],
    fitnesses: Sequence[float],
    tracker: InnovationTracker,
    rng: Random,
    config: ReproductionConfig | None = None,
) -> tuple[list[Genome], int]:
    """Turn a classified, scored population into the next generation.

    Args:
        species: Species from :func:`neatcore.species.class_species`.
        fitnesses: Raw fitness per population index.
        tracker: Innovation counter, advanced by any structural mutation.
        rng: Source of every random decision.
        config: Reproduction behaviour (optional).

    Returns:
        The shuffled new population and the next free innovation id.
    """
    plan = compute_offspring_allocation(species, fitnesses, rng, config)
    population = produce_offspring(plan, fitnesses, tracker, rng, config)
    return population, tracker.next_innovation


__all__ = [
    "ReproductionConfig",
    "ReproductionPlan",
    "compute_offspring_allocation",
    "next_generation",
    "offspring_multiplier",
    "produce_offspring",
    "truncate_species",
]
