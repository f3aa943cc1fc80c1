"""Population orchestration for the NEAT evolutionary loop."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from random import Random

from .genome import Genome
from .innovations import InnovationTracker
from .reproduction import (
    ReproductionConfig,
    ReproductionPlan,
    compute_offspring_allocation,
    produce_offspring,
)
from .species import Species, SpeciesConfig, SpeciesManager

Evaluator = Callable[[Sequence[Genome]], Sequence[float]]


@dataclass(slots=True)
class PopulationState:
    """Mutable state of the NEAT population between generation boundaries."""

    generation: int
    genomes: list[Genome]
    rng: Random
    tracker: InnovationTracker
    species_manager: SpeciesManager = field(default_factory=SpeciesManager)
    reproduction_config: ReproductionConfig = field(default_factory=ReproductionConfig)
    fitnesses: list[float] = field(default_factory=list)
    champion: Genome | None = None
    champion_fitness: float = float("-inf")

    @classmethod
    def seed(
        cls,
        population_size: int,
        n_inputs: int,
        n_outputs: int,
        rng: Random,
        *,
        species_config: SpeciesConfig | None = None,
        reproduction_config: ReproductionConfig | None = None,
    ) -> PopulationState:
        """Create generation 0 from fully connected genomes."""
        if population_size <= 0:
            msg = "population_size must be positive."
            raise ValueError(msg)
        genomes: list[Genome] = []
        next_innovation = 0
        for _ in range(population_size):
            genome, next_innovation = Genome.init(n_inputs, n_outputs, rng)
            genomes.append(genome)
        return cls(
            generation=0,
            genomes=genomes,
            rng=rng,
            tracker=InnovationTracker(next_innovation=next_innovation),
            species_manager=SpeciesManager(species_config or SpeciesConfig()),
            reproduction_config=reproduction_config or ReproductionConfig(),
        )

    def record_fitnesses(self, fitnesses: Sequence[float]) -> list[float]:
        """Store one fitness per genome, in population order."""
        if len(fitnesses) != len(self.genomes):
            msg = (
                f"Expected {len(self.genomes)} fitness values "
                f"but received {len(fitnesses)}."
            )
            raise ValueError(msg)
        self.fitnesses = [float(value) for value in fitnesses]

        best_index = max(range(len(self.fitnesses)), key=self.fitnesses.__getitem__)
        best_fitness = self.fitnesses[best_index]
        if best_fitness > self.champion_fitness:
            self.champion_fitness = best_fitness
            self.champion = self.genomes[best_index].copy()
        return self.fitnesses

    def evaluate(self, evaluator: Evaluator) -> list[float]:
        """Evaluate all genomes and update fitness state."""
        return self.record_fitnesses(evaluator(self.genomes))

    def speciate(self) -> list[Species]:
        """Assign genomes to species, continuing the previous generation's."""
        return self.species_manager.speciate(self.genomes)

    def reproduce(self, species: Sequence[Species]) -> ReproductionPlan:
        """Replace the population with the next generation."""
        if len(self.fitnesses) != len(self.genomes):
            msg = "Fitnesses must be recorded before reproduction."
            raise ValueError(msg)

        plan = compute_offspring_allocation(
            species,
            self.fitnesses,
            self.rng,
            self.reproduction_config,
        )
        offspring = produce_offspring(
            plan,
            self.fitnesses,
            self.tracker,
            self.rng,
            self.reproduction_config,
        )
        if not offspring:
            msg = "Reproduction produced an empty population."
            raise RuntimeError(msg)

        self.genomes = offspring
        self.fitnesses = []
        self.generation += 1
        return plan

    def step(self, fitnesses: Sequence[float]) -> list[Genome]:
        """Advance one generation from externally supplied fitnesses."""
        self.record_fitnesses(fitnesses)
        self.reproduce(self.speciate())
        return self.genomes


__all__ = ["Evaluator", "PopulationState"]
