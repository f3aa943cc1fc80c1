"""Training orchestration utilities for the NEAT CLI."""

from __future__ import annotations

import pickle
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from random import Random
from statistics import mean, median
from time import perf_counter

import yaml

from .config import NEATConfig, RunConfig
from .evaluator import ParallelEvaluator, SyncEvaluator
from .genome import Genome
from .metrics import MetricsRow, MetricsWriter
from .persistence import TrainingCheckpoint, load_checkpoint, save_checkpoint
from .population import PopulationState
from .reporters import EventLogger, format_plan
from .tasks import Task, format_cases, get_task


@dataclass(frozen=True, slots=True)
class RunArtifacts:
    """Resolved file locations used for a training run."""

    root: Path
    metrics: Path
    events: Path
    checkpoint: Path
    champion: Path
    config: Path


def _allocate_run_dir(output_root: Path, task_name: str) -> Path:
    output_root.mkdir(parents=True, exist_ok=True)
    stem = f"{task_name}_{datetime.now().strftime('%Y-%m-%d_%H-%M-%S')}"
    candidate = output_root / stem
    suffix = 1
    while candidate.exists():
        candidate = output_root / f"{stem}_{suffix:02d}"
        suffix += 1
    candidate.mkdir(parents=True, exist_ok=False)
    return candidate


def _build_artifacts(run_dir: Path) -> RunArtifacts:
    return RunArtifacts(
        root=run_dir,
        metrics=run_dir / "metrics.csv",
        events=run_dir / "events.log",
        checkpoint=run_dir / "neat_state.pkl",
        champion=run_dir / "champion.pkl",
        config=run_dir / "config.yml",
    )


def _run_snapshot(run_config: RunConfig) -> dict[str, object]:
    return {
        "neat_config": str(run_config.neat_config),
        "output_dir": str(run_config.output_dir),
        "workers": run_config.workers,
        "timeout_s": run_config.timeout_s,
        "resume": str(run_config.resume) if run_config.resume else None,
        "save_every": run_config.save_every,
    }


def _write_config_snapshot(
    artifacts: RunArtifacts,
    run_config: RunConfig,
    neat_config: NEATConfig,
) -> None:
    if artifacts.config.exists():
        return
    snapshot = {
        "run": _run_snapshot(run_config),
        "neat": asdict(neat_config),
    }
    with artifacts.config.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(snapshot, handle, sort_keys=True)


def _create_initial_state(neat_config: NEATConfig, task: Task) -> PopulationState:
    return PopulationState.seed(
        neat_config.population_size,
        task.n_inputs,
        task.n_outputs,
        Random(neat_config.seed),
        species_config=neat_config.species_config(),
        reproduction_config=neat_config.reproduction_config(),
    )


def _create_evaluator(
    run_config: RunConfig,
    task: Task,
) -> SyncEvaluator | ParallelEvaluator:
    if run_config.workers > 1:
        return ParallelEvaluator(
            task,
            workers=run_config.workers,
            timeout_s=run_config.timeout_s,
        )
    return SyncEvaluator(task)


def _normalise_checkpoint_path(path: Path) -> Path:
    candidate = Path(path)
    if candidate.is_dir():
        candidate = candidate / "neat_state.pkl"
    if not candidate.exists():
        msg = f"Checkpoint file not found: {candidate}"
        raise FileNotFoundError(msg)
    return candidate


def _restore_state(
    checkpoint_path: Path,
    neat_config: NEATConfig,
    task: Task,
) -> PopulationState:
    checkpoint = load_checkpoint(checkpoint_path)
    state = checkpoint.to_state(
        species_config=neat_config.species_config(),
        reproduction_config=neat_config.reproduction_config(),
    )
    for genome in state.genomes:
        if (genome.n_inputs, genome.n_outputs) != (task.n_inputs, task.n_outputs):
            msg = (
                f"Checkpoint genomes have shape {genome.n_inputs}x{genome.n_outputs}; "
                f"task {task.name!r} needs {task.n_inputs}x{task.n_outputs}."
            )
            raise ValueError(msg)
    return state


def _initialise_run(
    run_config: RunConfig,
    neat_config: NEATConfig,
    task: Task,
) -> tuple[RunArtifacts, PopulationState]:
    if run_config.resume:
        checkpoint_path = _normalise_checkpoint_path(run_config.resume)
        state = _restore_state(checkpoint_path, neat_config, task)
        run_dir = checkpoint_path.parent
    else:
        run_dir = _allocate_run_dir(run_config.output_dir, task.name)
        state = _create_initial_state(neat_config, task)

    artifacts = _build_artifacts(run_dir)
    _write_config_snapshot(artifacts, run_config, neat_config)
    return artifacts, state


def _save_champion(
    artifacts: RunArtifacts,
    task: Task,
    generation: int,
    fitness: float,
    genome: Genome,
) -> None:
    payload = {
        "task": task.name,
        "generation": generation,
        "fitness": fitness,
        "genome": genome.copy(),
    }
    with artifacts.champion.open("wb") as handle:
        pickle.dump(payload, handle, protocol=pickle.HIGHEST_PROTOCOL)


def _persist_state(artifacts: RunArtifacts, state: PopulationState) -> None:
    save_checkpoint(artifacts.checkpoint, TrainingCheckpoint.from_state(state))


def _should_save(generation: int, interval: int | None) -> bool:
    if interval is None or interval <= 0:
        return False
    return generation % interval == 0


def _mean_connections(genomes: list[Genome]) -> float:
    return mean(
        sum(1 for connection in genome.connections.values() if connection.enabled)
        for genome in genomes
    )


def run_training(run_config: RunConfig, neat_config: NEATConfig) -> PopulationState:
    task = get_task(neat_config.task)
    artifacts, state = _initialise_run(run_config, neat_config, task)
    evaluator = _create_evaluator(run_config, task)

    if run_config.resume:
        print(f"[train] resuming from checkpoint: {artifacts.checkpoint}")
    else:
        print(f"[train] run directory: {artifacts.root}")

    with MetricsWriter(artifacts.metrics) as metrics_writer, EventLogger(
        artifacts.events
    ) as logger:
        mode = "resumed" if run_config.resume else "started"
        logger.log(f"Training {mode} at {artifacts.root}")
        logger.log(f"Config -> neat={run_config.neat_config} task={task.name}")

        while state.generation < neat_config.max_generations:
            generation = state.generation
            previous_champion = state.champion_fitness

            start_time = perf_counter()
            fitnesses = state.evaluate(evaluator)
            eval_time = perf_counter() - start_time

            generation_best = max(fitnesses)
            if state.champion is not None and state.champion_fitness > previous_champion:
                _save_champion(
                    artifacts, task, generation, state.champion_fitness, state.champion
                )
                logger.log(
                    f"New champion at generation {generation} "
                    f"(fitness={state.champion_fitness:.4f})."
                )

            species = state.speciate()
            species_count = len(species)
            mean_fitness = mean(fitnesses)
            median_fitness = median(fitnesses)

            metrics_writer.append(
                MetricsRow(
                    generation=generation,
                    population_size=len(state.genomes),
                    species_count=species_count,
                    best_fitness=generation_best,
                    mean_fitness=mean_fitness,
                    median_fitness=median_fitness,
                    mean_connections=_mean_connections(state.genomes),
                    eval_time_s=eval_time,
                    next_innovation=state.tracker.next_innovation,
                )
            )

            logger.log(
                "Generation "
                f"{generation}: best={generation_best:.4f} "
                f"mean={mean_fitness:.4f} median={median_fitness:.4f} "
                f"species={species_count}"
            )
            print(
                f"Generation {generation}: best fitness {generation_best:.4f}, "
                f"average fitness {mean_fitness:.4f}"
            )

            if generation_best >= neat_config.fitness_threshold:
                logger.log("Fitness threshold reached; stopping.")
                print("Fitness threshold reached, stopping training.")
                break

            plan = state.reproduce(species)
            if neat_config.log_species_every and (
                generation % neat_config.log_species_every == 0
            ):
                logger.log_lines(format_plan(plan))

            if _should_save(state.generation, run_config.save_every):
                _persist_state(artifacts, state)
                logger.log(f"Checkpoint saved at generation {state.generation}.")

        _persist_state(artifacts, state)
        logger.log("Final checkpoint saved.")

        if state.champion is not None:
            logger.log(f"Champion fitness {state.champion_fitness:.4f}:")
            for line in format_cases(task.describe(state.champion)):
                logger.log(f"  {line}")
                print(f"  {line}")

    return state


__all__ = ["RunArtifacts", "run_training"]
