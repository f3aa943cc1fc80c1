from __future__ import annotations

import math
from random import Random

import pytest
from neatcore.genome import Genome
from neatcore.innovations import InnovationTracker
from neatcore.reproduction import (
    ReproductionConfig,
    compute_offspring_allocation,
    next_generation,
    offspring_multiplier,
    produce_offspring,
    truncate_species,
)
from neatcore.species import Species, class_species


def _species_of(sizes: list[int], seed: int = 0) -> tuple[list[Species], list[Genome]]:
    rng = Random(seed)
    species: list[Species] = []
    population: list[Genome] = []
    for size in sizes:
        item = Species()
        for _ in range(size):
            genome, _ = Genome.init(2, 1, rng)
            item.add(genome, len(population))
            population.append(genome)
        species.append(item)
    return species, population


@pytest.mark.parametrize(
    ("size", "kept"),
    [(1, 1), (2, 2), (3, 2), (4, 3), (5, 3), (10, 6)],
)
def test_truncation_keeps_half_plus_one(size: int, kept: int) -> None:
    species, _ = _species_of([size])
    fitnesses = [float(index) for index in range(size)]

    (survivors,) = truncate_species(species, fitnesses)

    assert len(survivors) == kept
    ranked = [fitnesses[index] for index in survivors.indices]
    assert ranked == sorted(ranked, reverse=True)
    assert ranked[0] == max(fitnesses)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0.4, 0.1), (0.5, 0.5), (0.9, 0.5), (1.0, 1.5), (1.49, 1.5), (1.5, 3.0), (9.0, 3.0)],
)
def test_multiplier_buckets(value: float, expected: float) -> None:
    multipliers = ReproductionConfig().multipliers

    assert offspring_multiplier(value, 1.0, 0.5, multipliers) == expected


def test_zero_deviation_gives_every_species_top_multiplier() -> None:
    species, population = _species_of([2, 2, 2])
    fitnesses = [0.5] * len(population)

    plan = compute_offspring_allocation(species, fitnesses, Random(0))

    assert plan.deviation == 0.0
    assert plan.multipliers == [3.0, 3.0, 3.0]
    assert sum(plan.offspring) == pytest.approx(len(population), abs=len(species))


def test_deviation_is_root_of_summed_squares() -> None:
    species, _ = _species_of([1, 1, 1, 1])
    fitnesses = [1.0, 2.0, 3.0, 4.0]

    plan = compute_offspring_allocation(species, fitnesses, Random(0))

    assert plan.species_fitness == [1.0, 2.0, 3.0, 4.0]
    assert plan.mean_fitness == 2.5
    assert plan.deviation == pytest.approx(math.sqrt(5.0))
    assert plan.multipliers == [0.5, 0.5, 1.5, 1.5]


def test_allocation_shares_fitness_within_species() -> None:
    species, population = _species_of([4, 1])
    fitnesses = [0.8, 0.6, 0.4, 0.2, 0.5]

    plan = compute_offspring_allocation(species, fitnesses, Random(1))

    assert plan.original_sizes == [4, 1]
    assert [len(item) for item in plan.survivors] == [3, 1]
    assert plan.adjusted_fitness[0] == pytest.approx(0.8 / 3)
    assert plan.adjusted_fitness[4] == pytest.approx(0.5)
    assert 3 not in plan.adjusted_fitness
    assert plan.species_fitness[0] == pytest.approx((0.8 + 0.6 + 0.4) / 3)
    assert plan.small == [False, True]


def test_allocation_total_tracks_population_size() -> None:
    species, population = _species_of([10, 7, 3, 1, 9])
    rng = Random(5)
    fitnesses = [rng.random() for _ in population]

    for _ in range(20):
        plan = compute_offspring_allocation(species, fitnesses, rng)
        assert all(count >= 0 for count in plan.offspring)
        assert abs(plan.total_offspring - len(population)) <= len(species)


def test_zero_fitness_falls_back_to_equal_shares() -> None:
    species, population = _species_of([3, 3])
    fitnesses = [0.0] * len(population)

    plan = compute_offspring_allocation(species, fitnesses, Random(0))

    assert plan.offspring == [3, 3]


def test_allocation_requires_species() -> None:
    with pytest.raises(ValueError):
        compute_offspring_allocation([], [], Random(0))
    with pytest.raises(ValueError):
        compute_offspring_allocation([Species()], [], Random(0))


def test_missing_fitness_is_reported() -> None:
    species, _ = _species_of([3])

    with pytest.raises(IndexError, match="Missing fitness"):
        compute_offspring_allocation(species, [0.5], Random(0))


def test_clone_only_reproduction_copies_parents() -> None:
    species, population = _species_of([4])
    fitnesses = [0.1, 0.2, 0.3, 0.4]
    config = ReproductionConfig(clone_rate=1.0, mutate_rate=0.0)
    rng = Random(2)
    plan = compute_offspring_allocation(species, fitnesses, rng, config)
    tracker = InnovationTracker(next_innovation=3)

    offspring = produce_offspring(plan, fitnesses, tracker, rng, config)

    survivors = [population[index] for index in plan.survivors[0].indices]
    assert len(offspring) == plan.total_offspring
    for child in offspring:
        assert child.connections in [parent.connections for parent in survivors]
        assert all(child is not parent for parent in population)
    assert tracker.next_innovation == 3


def test_next_generation_keeps_population_size() -> None:
    rng = Random(9)
    population = [Genome.init(2, 1, rng)[0] for _ in range(50)]
    tracker = InnovationTracker(next_innovation=3)
    fitnesses = [rng.random() for _ in population]
    species = class_species(population)

    offspring, next_innovation = next_generation(species, fitnesses, tracker, rng)

    assert abs(len(offspring) - len(population)) <= len(species)
    assert next_innovation == tracker.next_innovation
    assert next_innovation >= 3
    assert all(isinstance(child, Genome) for child in offspring)


def test_reproduction_config_validation() -> None:
    with pytest.raises(ValueError):
        ReproductionConfig(clone_rate=1.2)
    with pytest.raises(ValueError):
        ReproductionConfig(multipliers=(0.1, 0.5, 1.5))  # type: ignore[arg-type]


def test_next_generation_is_reproducible_under_a_seed() -> None:
    config = ReproductionConfig(clone_rate=0.2, mutate_rate=1.0)

    def run() -> tuple[list[dict[int, object]], int]:
        rng = Random(21)
        population = [Genome.init(2, 1, rng)[0] for _ in range(40)]
        fitnesses = [rng.random() for _ in population]
        tracker = InnovationTracker(next_innovation=3)
        offspring, next_innovation = next_generation(
            class_species(population), fitnesses, tracker, rng, config
        )
        return [dict(child.connections) for child in offspring], next_innovation

    first_offspring, first_innovation = run()
    second_offspring, second_innovation = run()

    assert first_offspring == second_offspring
    assert first_innovation == second_innovation
