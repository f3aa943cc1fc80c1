from __future__ import annotations

from pathlib import Path

import pytest
from neatcore.config import NEATConfig, load_neat_config, load_run_config
from neatcore.genome import LARGE_MUTATION, SMALL_MUTATION


def test_load_neat_config_reads_mutation_block(tmp_path: Path) -> None:
    path = tmp_path / "neat.yml"
    path.write_text(
        """
task: xor
population_size: 40
max_generations: 12
fitness_threshold: 0.9
seed: 7
compatibility_threshold: 3.0
clone_rate: 0.25
mutation:
  small:
    weight_sd: 0.05
  large:
    add_node_rate: 0.2
    max_attempts: 10
log_species_every: 0
""",
        encoding="utf-8",
    )

    config = load_neat_config(path)

    assert config.population_size == 40
    assert config.max_generations == 12
    assert config.seed == 7
    assert config.small_mutation.weight_sd == 0.05
    assert config.small_mutation.add_node_rate == SMALL_MUTATION.add_node_rate
    assert config.large_mutation.add_node_rate == 0.2
    assert config.large_mutation.max_attempts == 10
    assert config.species_config().compatibility_threshold == 3.0
    reproduction = config.reproduction_config()
    assert reproduction.clone_rate == 0.25
    assert reproduction.mutation.large is config.large_mutation
    assert config.log_species_every == 0


def test_load_neat_config_defaults(tmp_path: Path) -> None:
    path = tmp_path / "neat.yml"
    path.write_text("population_size: 10\n", encoding="utf-8")

    config = load_neat_config(path)

    assert config.task == "xor"
    assert config.max_generations == 100
    assert config.fitness_threshold == 0.95
    assert config.seed is None
    assert config.small_mutation == SMALL_MUTATION
    assert config.large_mutation == LARGE_MUTATION


def test_load_neat_config_only_reads_population_size(tmp_path: Path) -> None:
    path = tmp_path / "neat.yml"
    path.write_text("pop_size: 7\n", encoding="utf-8")

    assert load_neat_config(path).population_size == 100


def test_load_neat_config_rejects_bad_mutation(tmp_path: Path) -> None:
    path = tmp_path / "neat.yml"
    path.write_text("mutation: [1, 2]\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_neat_config(path)


def test_load_neat_config_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "neat.yml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Expected mapping"):
        load_neat_config(path)


def test_neat_config_validation() -> None:
    with pytest.raises(ValueError):
        NEATConfig(population_size=0, max_generations=1, fitness_threshold=1.0)
    with pytest.raises(ValueError):
        NEATConfig(population_size=1, max_generations=-1, fitness_threshold=1.0)


def test_load_run_config_resolves_relative_paths(tmp_path: Path) -> None:
    path = tmp_path / "run.yml"
    path.write_text(
        "neat_config: neat.yml\noutput_dir: out\nworkers: 3\nsave_every: 5\n",
        encoding="utf-8",
    )

    run = load_run_config(path)

    assert run.neat_config == (tmp_path / "neat.yml").resolve()
    assert run.output_dir == (tmp_path / "out").resolve()
    assert run.workers == 3
    assert run.save_every == 5
    assert run.resume is None
    assert run.timeout_s is None


def test_load_run_config_requires_neat_config(tmp_path: Path) -> None:
    path = tmp_path / "run.yml"
    path.write_text("workers: 2\n", encoding="utf-8")

    with pytest.raises(ValueError, match="neat_config"):
        load_run_config(path)
