"""Network evaluation for NEAT genomes.

Two equivalent evaluation paths are provided:

* :class:`NodeEvaluator` follows the genome recursively from each output
  towards the inputs, memoizing node values for the duration of one call.
* :class:`FeedForwardNetwork` precomputes a topological layering once and then
  evaluates layer by layer, which is cheaper when the same controller is
  queried every simulation tick.

Every non-input, non-bias node computes ``tanh(ACTIVATION_GAIN * total)``
where ``total`` is the weighted sum over its enabled incoming connections.
"""

from __future__ import annotations

import math
from collections import defaultdict, deque
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .genes import ConnectionGene

if TYPE_CHECKING:
    from .genome import Genome

ACTIVATION_GAIN = 5.0

IncomingMap = Mapping[int, Sequence[tuple[int, float]]]


def activate(total: float) -> float:
    """Squash a node's pre-activation sum."""
    return math.tanh(ACTIVATION_GAIN * total)


def check_inputs(inputs: Sequence[float], n_inputs: int) -> None:
    if len(inputs) != n_inputs:
        msg = f"Expected {n_inputs} inputs but received {len(inputs)}."
        raise ValueError(msg)


def incoming_edges(
    connections: Iterable[ConnectionGene],
) -> dict[int, list[tuple[int, float]]]:
    """Group enabled connections by target node as `(source, weight)` pairs."""
    incoming: dict[int, list[tuple[int, float]]] = defaultdict(list)
    for connection in connections:
        if not connection.enabled:
            continue
        incoming[connection.out_node_id].append(
            (connection.in_node_id, connection.weight)
        )
    return incoming


class NodeEvaluator:
    """Recursive, memoized evaluation of one genome for one input vector."""

    def __init__(self, genome: Genome, inputs: Sequence[float]) -> None:
        check_inputs(inputs, genome.n_inputs)
        self._n_inputs = genome.n_inputs
        self._inputs = inputs
        self._incoming = incoming_edges(genome.connections.values())
        self._values: dict[int, float] = {}
        self._visiting: set[int] = set()

    def value(self, node_id: int) -> float:
        """Return the activation of `node_id`."""
        if node_id < self._n_inputs:
            return float(self._inputs[node_id])
        if node_id == self._n_inputs:
            return 1.0

        cached = self._values.get(node_id)
        if cached is not None:
            return cached
        if node_id in self._visiting:
            msg = f"Cycle detected while evaluating node {node_id}."
            raise ValueError(msg)

        self._visiting.add(node_id)
        total = 0.0
        for src_id, weight in self._incoming.get(node_id, ()):
            total += weight * self.value(src_id)
        self._visiting.discard(node_id)

        result = activate(total)
        self._values[node_id] = result
        return result


def compute_feedforward_layers(
    n_inputs: int,
    n_outputs: int,
    connections: Iterable[ConnectionGene],
) -> tuple[tuple[int, ...], ...]:
    """Compute topological layers over the enabled connections."""
    indegree: dict[int, int] = {
        node_id: 0 for node_id in range(n_inputs + n_outputs + 1)
    }
    outgoing: dict[int, list[int]] = defaultdict(list)

    for connection in connections:
        if not connection.enabled:
            continue
        indegree.setdefault(connection.in_node_id, 0)
        indegree[connection.out_node_id] = indegree.get(connection.out_node_id, 0) + 1
        outgoing[connection.in_node_id].append(connection.out_node_id)

    roots = [node_id for node_id, degree in indegree.items() if degree == 0]
    queue: deque[int] = deque(sorted(roots))
    processed: set[int] = set()
    layers: list[tuple[int, ...]] = []

    while queue:
        current_layer: list[int] = []
        next_queue: set[int] = set()
        while queue:
            node_id = queue.popleft()
            if node_id in processed:
                continue
            processed.add(node_id)
            current_layer.append(node_id)
            for target in outgoing.get(node_id, []):
                indegree[target] -= 1
                if indegree[target] == 0:
                    next_queue.add(target)
        if current_layer:
            layers.append(tuple(sorted(current_layer)))
        queue.extend(sorted(next_queue))

    if len(processed) != len(indegree):
        msg = "Cycle detected while computing feed-forward layers."
        raise ValueError(msg)

    return tuple(layers)


@dataclass(slots=True)
class FeedForwardNetwork:
    """Executable feed-forward network built from a NEAT genome."""

    n_inputs: int
    output_ids: tuple[int, ...]
    layers: tuple[tuple[int, ...], ...]
    incoming: Mapping[int, tuple[tuple[int, float], ...]]

    @classmethod
    def from_genome(cls, genome: Genome) -> FeedForwardNetwork:
        """Construct a feed-forward network from a genome."""
        connections = list(genome.connections.values())
        layers = compute_feedforward_layers(
            genome.n_inputs, genome.n_outputs, connections
        )
        incoming = incoming_edges(connections)
        return cls(
            n_inputs=genome.n_inputs,
            output_ids=genome.output_ids,
            layers=layers,
            incoming={node_id: tuple(edges) for node_id, edges in incoming.items()},
        )

    def activate(self, inputs: Sequence[float]) -> list[float]:
        """Run a forward pass and return outputs in node-id order."""
        check_inputs(inputs, self.n_inputs)

        values: dict[int, float] = {self.n_inputs: 1.0}
        for node_id, value in enumerate(inputs):
            values[node_id] = float(value)

        for layer in self.layers:
            for node_id in layer:
                if node_id in values:
                    continue
                total = 0.0
                for src_id, weight in self.incoming.get(node_id, ()):
                    try:
                        src_value = values[src_id]
                    except KeyError as error:
                        msg = f"Missing value for node {src_id} required by {node_id}."
                        raise RuntimeError(msg) from error
                    total += weight * src_value
                values[node_id] = activate(total)

        return [values[node_id] for node_id in self.output_ids]


__all__ = [
    "ACTIVATION_GAIN",
    "FeedForwardNetwork",
    "NodeEvaluator",
    "activate",
    "check_inputs",
    "compute_feedforward_layers",
    "incoming_edges",
]
