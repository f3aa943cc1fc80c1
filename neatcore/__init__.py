"""Core NEAT primitives for evolving feed-forward networks."""

from __future__ import annotations

from .config import NEATConfig, RunConfig, load_neat_config, load_run_config
from .evaluator import ParallelEvaluator, SyncEvaluator
from .export import genome_to_dot, render_genome, write_dot_source
from .genes import ConnectionGene, NodeType
from .genome import (
    LARGE_MUTATION,
    SMALL_MUTATION,
    Genome,
    MutationConfig,
    MutationRates,
    creates_cycle,
)
from .innovations import InnovationSnapshot, InnovationTracker
from .metrics import MetricsRow, MetricsWriter
from .network import (
    ACTIVATION_GAIN,
    FeedForwardNetwork,
    compute_feedforward_layers,
)
from .persistence import (
    CheckpointError,
    TrainingCheckpoint,
    load_checkpoint,
    load_population,
    save_checkpoint,
    save_population,
)
from .population import PopulationState
from .reporters import EventLogger, format_plan
from .reproduction import (
    ReproductionConfig,
    ReproductionPlan,
    compute_offspring_allocation,
    next_generation,
)
from .species import (
    Species,
    SpeciesConfig,
    SpeciesManager,
    class_species,
    compatibility_distance,
)
from .tasks import TASKS, XOR, TableTask, get_task

__all__ = [
    "ConnectionGene",
    "NodeType",
    "InnovationSnapshot",
    "InnovationTracker",
    "Genome",
    "MutationRates",
    "MutationConfig",
    "SMALL_MUTATION",
    "LARGE_MUTATION",
    "creates_cycle",
    "ACTIVATION_GAIN",
    "FeedForwardNetwork",
    "compute_feedforward_layers",
    "Species",
    "SpeciesConfig",
    "SpeciesManager",
    "class_species",
    "compatibility_distance",
    "ReproductionConfig",
    "ReproductionPlan",
    "compute_offspring_allocation",
    "next_generation",
    "PopulationState",
    "TableTask",
    "XOR",
    "TASKS",
    "get_task",
    "SyncEvaluator",
    "ParallelEvaluator",
    "MetricsRow",
    "MetricsWriter",
    "EventLogger",
    "format_plan",
    "CheckpointError",
    "TrainingCheckpoint",
    "save_checkpoint",
    "load_checkpoint",
    "save_population",
    "load_population",
    "genome_to_dot",
    "render_genome",
    "write_dot_source",
    "NEATConfig",
    "RunConfig",
    "load_neat_config",
    "load_run_config",
]
