"""Configuration loading utilities for NEAT runs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .genome import LARGE_MUTATION, SMALL_MUTATION, MutationConfig, MutationRates
from .reproduction import ReproductionConfig
from .species import DIFF_THRESH, FACTOR_DISJOINT, FACTOR_WDIFF, SpeciesConfig


@dataclass(slots=True)
class NEATConfig:
    population_size: int
    max_generations: int
    fitness_threshold: float
    task: str = "xor"
    seed: int | None = None
    factor_disjoint: float = FACTOR_DISJOINT
    factor_weight_diff: float = FACTOR_WDIFF
    compatibility_threshold: float = DIFF_THRESH
    clone_rate: float = 0.4
    mutate_rate: float = 0.4
    small_mutation: MutationRates = field(default_factory=lambda: SMALL_MUTATION)
    large_mutation: MutationRates = field(default_factory=lambda: LARGE_MUTATION)
    log_species_every: int = 5

    def __post_init__(self) -> None:
        if self.population_size <= 0:
            msg = "population_size must be positive."
            raise ValueError(msg)
        if self.max_generations < 0:
            msg = "max_generations must be >= 0."
            raise ValueError(msg)
        if self.log_species_every < 0:
            msg = "log_species_every must be >= 0."
            raise ValueError(msg)

    def species_config(self) -> SpeciesConfig:
        return SpeciesConfig(
            factor_disjoint=self.factor_disjoint,
            factor_weight_diff=self.factor_weight_diff,
            compatibility_threshold=self.compatibility_threshold,
        )

    def mutation_config(self) -> MutationConfig:
        return MutationConfig(small=self.small_mutation, large=self.large_mutation)

    def reproduction_config(self) -> ReproductionConfig:
        return ReproductionConfig(
            clone_rate=self.clone_rate,
            mutate_rate=self.mutate_rate,
            mutation=self.mutation_config(),
        )


@dataclass(slots=True)
class RunConfig:
    neat_config: Path
    output_dir: Path = Path("runs")
    workers: int = 1
    timeout_s: float | None = None
    resume: Path | None = None
    save_every: int | None = None

    def resolve(self, base_path: Path) -> RunConfig:
        return RunConfig(
            neat_config=(base_path / self.neat_config).resolve(),
            output_dir=(base_path / self.output_dir).resolve(),
            workers=self.workers,
            timeout_s=self.timeout_s,
            resume=(base_path / self.resume).resolve() if self.resume else None,
            save_every=self.save_every,
        )


def _load_yaml(path: Path) -> Mapping[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, Mapping):
        msg = f"Expected mapping in YAML file: {path}"
        raise ValueError(msg)
    return data


def _mutation_rates(data: Any, defaults: MutationRates, label: str) -> MutationRates:
    if data is None:
        return defaults
    if not isinstance(data, Mapping):
        msg = f"'{label}' must be a mapping of mutation rates."
        raise ValueError(msg)
    return MutationRates(
        weight_sd=float(data.get("weight_sd", defaults.weight_sd)),
        add_connection_rate=float(
            data.get("add_connection_rate", defaults.add_connection_rate)
        ),
        add_node_rate=float(data.get("add_node_rate", defaults.add_node_rate)),
        max_attempts=int(data.get("max_attempts", defaults.max_attempts)),
    )


def load_neat_config(path: Path) -> NEATConfig:
    data = _load_yaml(path)
    mutation = data.get("mutation") or {}
    if not isinstance(mutation, Mapping):
        msg = "'mutation' must be a mapping with 'small' and 'large' entries."
        raise ValueError(msg)
    return NEATConfig(
        population_size=int(data.get("population_size", 100)),
        max_generations=int(data.get("max_generations", 100)),
        fitness_threshold=float(data.get("fitness_threshold", 0.95)),
        task=str(data.get("task", "xor")),
        seed=(int(data["seed"]) if data.get("seed") is not None else None),
        factor_disjoint=float(data.get("factor_disjoint", FACTOR_DISJOINT)),
        factor_weight_diff=float(data.get("factor_weight_diff", FACTOR_WDIFF)),
        compatibility_threshold=float(
            data.get("compatibility_threshold", DIFF_THRESH)
        ),
        clone_rate=float(data.get("clone_rate", 0.4)),
        mutate_rate=float(data.get("mutate_rate", 0.4)),
        small_mutation=_mutation_rates(
            mutation.get("small"), SMALL_MUTATION, "mutation.small"
        ),
        large_mutation=_mutation_rates(
            mutation.get("large"), LARGE_MUTATION, "mutation.large"
        ),
        log_species_every=int(data.get("log_species_every", 5)),
    )


def load_run_config(path: Path) -> RunConfig:
    data = _load_yaml(path)
    neat_path = data.get("neat_config")
    if neat_path is None:
        msg = "run.yml must specify a 'neat_config' path"
        raise ValueError(msg)
    run = RunConfig(
        neat_config=Path(neat_path),
        output_dir=Path(data.get("output_dir", "runs")),
        workers=int(data.get("workers", 1)),
        timeout_s=(
            float(data["timeout_s"])
            if data.get("timeout_s") is not None
            else None
        ),
        resume=(Path(data["resume"]) if data.get("resume") else None),
        save_every=(int(data["save_every"]) if data.get("save_every") else None),
    )
    return run.resolve(path.parent)


__all__ = ["NEATConfig", "RunConfig", "load_neat_config", "load_run_config"]
