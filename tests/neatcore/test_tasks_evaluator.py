from __future__ import annotations

from dataclasses import dataclass
from random import Random

import pytest
from neatcore.evaluator import ParallelEvaluator, SyncEvaluator
from neatcore.genome import Genome
from neatcore.tasks import XOR, TableTask, format_cases, get_task


def _zero_weight_genome() -> Genome:
    genome, _ = Genome.init(2, 1, Random(0))
    for innovation, connection in list(genome.connections.items()):
        genome.connections[innovation] = connection.copy(weight=0.0)
    return genome


@dataclass(frozen=True)
class _BrokenTask:
    name: str = "broken"
    n_inputs: int = 2
    n_outputs: int = 1

    def fitness(self, genome: Genome) -> float:
        return float("nan")

    def describe(self, genome: Genome) -> list[tuple[tuple[float, ...], list[float]]]:
        return []


def test_xor_shape() -> None:
    assert XOR.n_inputs == 2
    assert XOR.n_outputs == 1
    assert len(XOR.cases) == 4


def test_zero_network_scores_one_third() -> None:
    genome = _zero_weight_genome()

    assert XOR.fitness(genome) == pytest.approx(1.0 / 3.0)


def test_fitness_is_bounded() -> None:
    rng = Random(3)
    for _ in range(20):
        genome, _ = Genome.init(2, 1, rng)
        assert 0.0 < XOR.fitness(genome) <= 1.0


def test_describe_reports_outputs_per_case() -> None:
    rows = XOR.describe(_zero_weight_genome())

    assert [inputs for inputs, _outputs in rows] == [case[0] for case in XOR.cases]
    assert format_cases(rows)[1] == "0, 1 => 0.0000"


def test_table_task_validation() -> None:
    with pytest.raises(ValueError):
        TableTask(name="empty", cases=())
    with pytest.raises(ValueError):
        TableTask(name="ragged", cases=(((0.0,), (1.0,)), ((0.0, 1.0), (1.0,))))


def test_get_task_lookup() -> None:
    assert get_task(" XOR ") is XOR
    with pytest.raises(ValueError, match="Unknown task"):
        get_task("parity")


def test_sync_evaluator_scores_in_order() -> None:
    rng = Random(5)
    population = [Genome.init(2, 1, rng)[0] for _ in range(6)]

    scores = SyncEvaluator(XOR)(population)

    assert scores == [XOR.fitness(genome) for genome in population]


def test_sync_evaluator_rejects_non_finite_fitness() -> None:
    genome = _zero_weight_genome()

    with pytest.raises(ValueError, match="finite"):
        SyncEvaluator(_BrokenTask())([genome])


def test_parallel_evaluator_matches_sync() -> None:
    rng = Random(6)
    population = [Genome.init(2, 1, rng)[0] for _ in range(8)]

    parallel = ParallelEvaluator(XOR, workers=2, timeout_s=60.0)(population)

    assert parallel == SyncEvaluator(XOR)(population)
    assert ParallelEvaluator(XOR, workers=2)([]) == []


def test_parallel_evaluator_validation() -> None:
    with pytest.raises(ValueError):
        ParallelEvaluator(XOR, workers=0)
    with pytest.raises(ValueError):
        ParallelEvaluator(XOR, workers=1, timeout_s=0.0)
