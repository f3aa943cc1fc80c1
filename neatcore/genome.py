"""Genome representation and mutation/crossover operators."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from random import Random

from .genes import ConnectionGene, NodeType
from .innovations import InnovationTracker
from .network import NodeEvaluator


@dataclass(frozen=True, slots=True)
class MutationRates:
    """Probabilities and magnitudes used by one flavour of mutation."""

    weight_sd: float
    add_connection_rate: float
    add_node_rate: float
    max_attempts: int = 40

    def __post_init__(self) -> None:
        for label, value in (
            ("add_connection_rate", self.add_connection_rate),
            ("add_node_rate", self.add_node_rate),
        ):
            if not 0.0 <= value <= 1.0:
                msg = f"{label} must be in [0, 1]."
                raise ValueError(msg)
        if self.weight_sd < 0.0:
            msg = "weight_sd must be non-negative."
            raise ValueError(msg)
        if self.max_attempts <= 0:
            msg = "max_attempts must be positive."
            raise ValueError(msg)


SMALL_MUTATION = MutationRates(weight_sd=0.02, add_connection_rate=0.1, add_node_rate=0.003)
LARGE_MUTATION = MutationRates(weight_sd=0.1, add_connection_rate=0.3, add_node_rate=0.05)


@dataclass(frozen=True, slots=True)
class MutationConfig:
    """Mutation rates for offspring of small and large species."""

    small: MutationRates = SMALL_MUTATION
    large: MutationRates = LARGE_MUTATION

    def rates(self, is_small: bool) -> MutationRates:
        return self.small if is_small else self.large


def creates_cycle(
    connections: Iterable[ConnectionGene],
    in_id: int,
    out_id: int,
) -> bool:
    """Return whether adding `in_id -> out_id` would close a directed cycle.

    Walks backwards from `in_id` over every connection, enabled or not, and
    reports a cycle if `out_id` is one of its ancestors.
    """
    predecessors: dict[int, list[int]] = defaultdict(list)
    for connection in connections:
        predecessors[connection.out_node_id].append(connection.in_node_id)

    stack = [in_id]
    visited: set[int] = set()
    while stack:
        current = stack.pop()
        if current == out_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        stack.extend(predecessors.get(current, ()))
    return False


@dataclass(slots=True)
class Genome:
    """NEAT genome: a set of innovation-keyed connection genes.

    Node ids are implicit. ``0 .. n_inputs - 1`` are inputs, ``n_inputs`` is
    the bias node, the next ``n_outputs`` ids are outputs and anything above
    is a hidden node created by mutation.
    """

    n_inputs: int
    n_outputs: int
    connections: dict[int, ConnectionGene] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.n_inputs <= 0 or self.n_outputs <= 0:
            msg = "Genome needs at least one input and one output."
            raise ValueError(msg)
        for innovation, connection in self.connections.items():
            if connection.innovation != innovation:
                msg = (
                    f"Connection innovation mismatch: key {innovation} "
                    f"!= connection.innovation {connection.innovation}"
                )
                raise ValueError(msg)
            self._check_endpoints(connection)

    @classmethod
    def init(
        cls,
        n_inputs: int,
        n_outputs: int,
        rng: Random,
    ) -> tuple[Genome, int]:
        """Create a fully connected genome without hidden nodes.

        Every input and the bias node feed every output with a weight drawn
        from a standard normal distribution. Innovation ids are assigned in a
        fixed order so that all genomes created this way share them.

        Returns:
            The genome and the first innovation id not used by it.
        """
        genome = cls(n_inputs=n_inputs, n_outputs=n_outputs)
        innovation = 0
        for out_id in genome.output_ids:
            for in_id in range(n_inputs + 1):
                genome.connections[innovation] = ConnectionGene(
                    innovation=innovation,
                    in_node_id=in_id,
                    out_node_id=out_id,
                    weight=rng.gauss(0.0, 1.0),
                )
                innovation += 1
        return genome, innovation

    @property
    def bias_id(self) -> int:
        return self.n_inputs

    @property
    def output_ids(self) -> tuple[int, ...]:
        return tuple(range(self.n_inputs + 1, self.n_inputs + self.n_outputs + 1))

    def copy(self) -> Genome:
        """Return a copy of the genome; genes are immutable and shared."""
        return Genome(
            n_inputs=self.n_inputs,
            n_outputs=self.n_outputs,
            connections=dict(self.connections),
        )

    def evaluate(self, inputs: Sequence[float]) -> list[float]:
        """Compute the output activations for one input vector."""
        evaluator = NodeEvaluator(self, inputs)
        return [evaluator.value(node_id) for node_id in self.output_ids]

    def evaluate_node(self, node: int, inputs: Sequence[float]) -> float:
        """Compute the activation of a single node for one input vector."""
        return NodeEvaluator(self, inputs).value(node)

    def node_type(self, node_id: int) -> NodeType:
        return NodeType.of(node_id, self.n_inputs, self.n_outputs)

    def max_node_id(self) -> int:
        """Return the largest node id referenced by any connection."""
        return max(
            (
                max(connection.in_node_id, connection.out_node_id)
                for connection in self.connections.values()
            ),
            default=self.n_inputs + self.n_outputs,
        )

    def contains_connection(self, in_node: int, out_node: int) -> bool:
        """Return whether a connection between the nodes exists, enabled or not."""
        return any(
            connection.in_node_id == in_node and connection.out_node_id == out_node
            for connection in self.connections.values()
        )

    def add_connection(self, connection: ConnectionGene) -> None:
        """Add a new connection gene to the genome."""
        if connection.innovation in self.connections:
            msg = f"Connection innovation {connection.innovation} already present."
            raise ValueError(msg)
        self._check_endpoints(connection)
        self.connections[connection.innovation] = connection

    def mutate_weights(self, rng: Random, sd: float) -> int:
        """Perturb every connection weight by a draw from N(0, sd).

        Returns:
            The number of connections that were perturbed.
        """
        for innovation in sorted(self.connections):
            connection = self.connections[innovation]
            delta = rng.gauss(0.0, sd)
            self.connections[innovation] = connection.copy(
                weight=connection.weight + delta
            )
        return len(self.connections)

    def mutate_add_connection(
        self,
        rng: Random,
        tracker: InnovationTracker,
        *,
        max_attempts: int = 40,
    ) -> bool:
        """Connect two already-used nodes with a zero-weight connection.

        Endpoints are drawn from the sources and targets of existing
        connections. Candidates that are self loops, duplicates or that would
        close a cycle are rejected; after `max_attempts` rejections the genome
        is left unchanged.
        """
        if not self.connections:
            return False
        ordered = [self.connections[innovation] for innovation in sorted(self.connections)]
        sources = [connection.in_node_id for connection in ordered]
        targets = [connection.out_node_id for connection in ordered]

        for _ in range(max_attempts):
            in_id = rng.choice(sources)
            out_id = rng.choice(targets)
            if in_id == out_id:
                continue
            if self.contains_connection(in_id, out_id):
                continue
            if self._introduces_cycle(in_id, out_id):
                continue
            self.add_connection(
                ConnectionGene(
                    innovation=tracker.allocate(),
                    in_node_id=in_id,
                    out_node_id=out_id,
                    weight=0.0,
                )
            )
            return True
        return False

    def mutate_add_node(self, rng: Random, tracker: InnovationTracker) -> bool:
        """Split a connection by inserting a hidden node.

        The chosen connection is disabled and replaced by `from -> new` with
        weight 1.0 and `new -> to` carrying the old weight.
        """
        if not self.connections:
            return False
        innovation = rng.choice(sorted(self.connections))
        connection = self.connections[innovation]
        self.connections[innovation] = connection.copy(enabled=False)

        new_node_id = max(self.max_node_id(), self.n_inputs + self.n_outputs) + 1
        self.add_connection(
            ConnectionGene(
                innovation=tracker.allocate(),
                in_node_id=connection.in_node_id,
                out_node_id=new_node_id,
                weight=1.0,
            )
        )
        self.add_connection(
            ConnectionGene(
                innovation=tracker.allocate(),
                in_node_id=new_node_id,
                out_node_id=connection.out_node_id,
                weight=connection.weight,
            )
        )
        return True

    def mutate(
        self,
        rng: Random,
        tracker: InnovationTracker,
        *,
        is_small: bool,
        config: MutationConfig | None = None,
    ) -> None:
        """Apply structural mutations by chance, then perturb all weights.

        Args:
            rng: Random generator controlling stochastic choices.
            tracker: Source of fresh innovation ids.
            is_small: Use the gentler rates meant for small species.
            config: Mutation rates (optional).
        """
        if config is None:
            config = MutationConfig()
        rates = config.rates(is_small)

        if rng.random() < rates.add_connection_rate:
            self.mutate_add_connection(rng, tracker, max_attempts=rates.max_attempts)
        if rng.random() < rates.add_node_rate:
            self.mutate_add_node(rng, tracker)
        self.mutate_weights(rng, rates.weight_sd)

    def crossover(
        self,
        other: Genome,
        *,
        rng: Random,
        other_better: bool | None,
    ) -> Genome:
        """Create a child genome by aligning genes on their innovation ids.

        Matching genes are taken whole from either parent with equal
        probability. Disjoint genes come from the fitter parent only; when
        neither parent is fitter (`other_better is None`) each disjoint gene
        is kept or dropped by its own coin flip, unless keeping it would close
        a cycle with the genes already inherited.

        Args:
            other: The second parent genome.
            rng: Random generator controlling stochastic choices.
            other_better: Whether `other` is fitter than this genome, or None
                when both are equally fit.
        """
        child = Genome(n_inputs=self.n_inputs, n_outputs=self.n_outputs)
        tied: list[ConnectionGene] = []

        for innovation in sorted(self.connections.keys() | other.connections.keys()):
            mine = self.connections.get(innovation)
            theirs = other.connections.get(innovation)
            if mine is not None and theirs is not None:
                child.connections[innovation] = mine if rng.random() < 0.5 else theirs
                continue

            prefer_other = other_better
            if prefer_other is None:
                prefer_other = rng.random() < 0.5
            if mine is not None and not prefer_other:
                picked = mine
            elif theirs is not None and prefer_other:
                picked = theirs
            else:
                continue

            if other_better is None:
                tied.append(picked)
            else:
                child.connections[innovation] = picked

        for connection in tied:
            if creates_cycle(
                child.connections.values(),
                connection.in_node_id,
                connection.out_node_id,
            ):
                continue
            child.connections[connection.innovation] = connection

        child.connections = dict(sorted(child.connections.items()))
        return child

    def _introduces_cycle(self, in_id: int, out_id: int) -> bool:
        return creates_cycle(self.connections.values(), in_id, out_id)

    def _check_endpoints(self, connection: ConnectionGene) -> None:
        if connection.out_node_id <= self.n_inputs:
            msg = (
                f"Connection {connection.innovation} targets input or bias node "
                f"{connection.out_node_id}."
            )
            raise ValueError(msg)
        if self.n_inputs < connection.in_node_id <= self.n_inputs + self.n_outputs:
            msg = (
                f"Connection {connection.innovation} leaves output node "
                f"{connection.in_node_id}."
            )
            raise ValueError(msg)


__all__ = [
    "Genome",
    "LARGE_MUTATION",
    "MutationConfig",
    "MutationRates",
    "SMALL_MUTATION",
    "creates_cycle",
]
