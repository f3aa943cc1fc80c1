"""Command-line interface for NEAT workflows."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import graphviz

from .config import NEATConfig, RunConfig, load_neat_config, load_run_config
from .export import render_genome, write_dot_source
from .genome import Genome
from .persistence import CheckpointError, load_checkpoint
from .training import run_training


def _load_bundle(config_path: Path) -> tuple[RunConfig, NEATConfig]:
    run_config = load_run_config(config_path)
    neat_config = load_neat_config(run_config.neat_config)
    return run_config, neat_config


def _cmd_train(args: argparse.Namespace) -> int:
    config_path = Path(args.config)
    run_config, neat_config = _load_bundle(config_path)

    if args.dry_run:
        print("[train] configuration validated")
        print(f"  neat_config: {run_config.neat_config}")
        print(f"  task: {neat_config.task}")
        print(f"  population_size: {neat_config.population_size}")
        print(f"  max_generations: {neat_config.max_generations}")
        print(f"  workers: {run_config.workers}")
        return 0

    try:
        run_training(run_config, neat_config)
    except (CheckpointError, FileNotFoundError, ValueError) as exc:
        print(f"[train] {exc}", file=sys.stderr)
        return 1
    return 0


def _select_genome(checkpoint_path: Path, index: int | None) -> Genome:
    checkpoint = load_checkpoint(checkpoint_path)
    if index is None:
        if checkpoint.best_genome is not None:
            return checkpoint.best_genome
        index = 0
    if not 0 <= index < len(checkpoint.population):
        msg = (
            f"Genome index {index} out of range for population of "
            f"{len(checkpoint.population)}."
        )
        raise ValueError(msg)
    return checkpoint.population[index]


def _cmd_export(args: argparse.Namespace) -> int:
    try:
        genome = _select_genome(Path(args.checkpoint), args.index)
    except (CheckpointError, ValueError) as exc:
        print(f"[export] {exc}", file=sys.stderr)
        return 1

    output = Path(args.output)
    if args.source_only:
        target = write_dot_source(genome, output)
        print(f"[export] wrote graph source to {target}")
        return 0

    try:
        target = render_genome(genome, output, format=args.format)
    except graphviz.ExecutableNotFound:
        print(
            "Graphviz 'dot' executable not found; use --source-only instead.",
            file=sys.stderr,
        )
        return 1
    print(f"[export] rendered genome to {target}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="neatcore",
        description="NEAT command-line interface",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    train = subparsers.add_parser(
        "train",
        help="Run training using a YAML configuration bundle",
    )
    train.add_argument(
        "--config",
        required=True,
        help="Path to run configuration YAML",
    )
    train.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration without training",
    )
    train.set_defaults(func=_cmd_train)

    export = subparsers.add_parser(
        "export",
        help="Draw a genome from a checkpoint as a Graphviz graph",
    )
    export.add_argument(
        "--checkpoint",
        required=True,
        help="Path to a neat_state.pkl checkpoint",
    )
    export.add_argument(
        "--output",
        required=True,
        help="Destination file (extension is replaced by the format).",
    )
    export.add_argument(
        "--index",
        type=int,
        default=None,
        help="Population index to export (defaults to the champion).",
    )
    export.add_argument(
        "--format",
        default="svg",
        help="Graphviz output format used when rendering.",
    )
    export.add_argument(
        "--source-only",
        action="store_true",
        help="Write the DOT source without invoking Graphviz.",
    )
    export.set_defaults(func=_cmd_export)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    result = args.func(args)
    return int(result)


if __name__ == "__main__":  # pragma: no cover - entry point
    raise SystemExit(main())
