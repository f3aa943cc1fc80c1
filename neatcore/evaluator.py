"""Evaluators that score a population of genomes against a task."""

from __future__ import annotations

import math
import multiprocessing
from collections.abc import Sequence
from typing import Any

from .genome import Genome
from .tasks import Task


def _checked_fitness(index: int, value: float) -> float:
    fitness = float(value)
    if not math.isfinite(fitness):
        msg = f"Fitness of genome {index} must be a finite number, got {value!r}."
        raise ValueError(msg)
    return fitness


class SyncEvaluator:
    """Single-process evaluator that scores genomes sequentially."""

    def __init__(self, task: Task) -> None:
        self.task = task

    def __call__(self, population: Sequence[Genome]) -> list[float]:
        return [
            _checked_fitness(index, self.task.fitness(genome))
            for index, genome in enumerate(population)
        ]


def _worker_loop(
    worker_id: int,
    task: Task,
    task_queue: multiprocessing.queues.Queue[Any],
    result_queue: multiprocessing.queues.Queue[Any],
) -> None:
    try:
        while True:
            item = task_queue.get()
            if item is None:
                break
            index, genome = item
            result_queue.put((index, task.fitness(genome)))
    except Exception:  # pragma: no cover - propagated to parent
        result_queue.put(("__error__", worker_id))
        raise


class ParallelEvaluator:
    """Multiprocessing evaluator for concurrent genome scoring.

    Workers only compute fitness; the population and the innovation counter
    stay in the parent process.
    """

    def __init__(
        self,
        task: Task,
        *,
        workers: int,
        timeout_s: float | None = None,
    ) -> None:
        if workers <= 0:
            msg = "workers must be positive."
            raise ValueError(msg)
        if timeout_s is not None and timeout_s <= 0.0:
            msg = "timeout_s must be positive when provided."
            raise ValueError(msg)

        self.task = task
        self.workers = workers
        self.timeout_s = timeout_s

    def __call__(self, population: Sequence[Genome]) -> list[float]:
        if not population:
            return []

        ctx = multiprocessing.get_context("spawn")
        task_queue: multiprocessing.queues.Queue[Any] = ctx.Queue()
        result_queue: multiprocessing.queues.Queue[Any] = ctx.Queue()

        processes = [
            ctx.Process(
                target=_worker_loop,
                args=(worker_id, self.task, task_queue, result_queue),
            )
            for worker_id in range(self.workers)
        ]

        for proc in processes:
            proc.start()

        success = False
        try:
            for index, genome in enumerate(population):
                task_queue.put((index, genome))

            for _ in processes:
                task_queue.put(None)

            results: dict[int, float] = {}
            remaining = len(population)
            while remaining:
                if self.timeout_s is None:
                    index, fitness = result_queue.get()
                else:
                    index, fitness = result_queue.get(timeout=self.timeout_s)
                if index == "__error__":
                    raise RuntimeError(f"Worker {fitness} failed during evaluation.")
                results[index] = _checked_fitness(index, fitness)
                remaining -= 1

            success = True
            return [results[index] for index in range(len(population))]
        finally:
            for proc in processes:
                proc.join()
                if success and proc.exitcode not in (0, None):
                    raise RuntimeError(
                        f"Worker process exited with code {proc.exitcode}"
                    )


__all__ = ["ParallelEvaluator", "SyncEvaluator"]
