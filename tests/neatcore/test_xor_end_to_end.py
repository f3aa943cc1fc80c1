from __future__ import annotations

from random import Random
from statistics import mean

from neatcore.evaluator import SyncEvaluator
from neatcore.population import PopulationState
from neatcore.tasks import XOR


def test_xor_population_improves_over_a_hundred_generations() -> None:
    state = PopulationState.seed(1000, XOR.n_inputs, XOR.n_outputs, Random(1234))
    evaluator = SyncEvaluator(XOR)

    initial = mean(state.evaluate(evaluator))
    initial_best = state.champion_fitness
    for _ in range(100):
        if state.generation:
            state.evaluate(evaluator)
        size = len(state.genomes)
        species = state.speciate()
        state.reproduce(species)
        assert abs(len(state.genomes) - size) <= len(species)

    final = mean(state.evaluate(evaluator))

    assert state.generation == 100
    assert final >= initial
    assert state.champion_fitness >= initial_best
    for genome in state.genomes:
        assert len(genome.evaluate([1.0, 0.0])) == 1
