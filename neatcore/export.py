"""Graphviz export of genome connection graphs for inspection."""

from __future__ import annotations

from pathlib import Path

import graphviz

from .genes import NodeType
from .genome import Genome

_NODE_STYLE: dict[NodeType, dict[str, str]] = {
    NodeType.INPUT: {"color": "green", "style": "filled"},
    NodeType.BIAS: {"color": "gold", "style": "filled"},
    NodeType.OUTPUT: {"color": "red", "style": "filled"},
    NodeType.HIDDEN: {"color": "lightblue", "style": "filled"},
}


def _node_label(genome: Genome, node_id: int) -> str:
    node_type = genome.node_type(node_id)
    if node_type is NodeType.INPUT:
        return f"In{node_id}"
    if node_type is NodeType.BIAS:
        return "Bias"
    if node_type is NodeType.OUTPUT:
        return f"Out{node_id}"
    return str(node_id)


def genome_to_dot(genome: Genome, *, name: str = "genome") -> graphviz.Digraph:
    """Build a bottom-to-top Graphviz digraph of the genome.

    Edges are labelled ``innovation: weight``; enabled connections are drawn
    bold and disabled ones dashed.
    """
    dot = graphviz.Digraph(name=name, engine="dot")
    dot.attr(rankdir="BT")
    dot.attr("node", shape="circle")

    node_ids = set(range(genome.n_inputs + genome.n_outputs + 1))
    for connection in genome.connections.values():
        node_ids.update(connection.pair)
    for node_id in sorted(node_ids):
        dot.node(
            str(node_id),
            label=_node_label(genome, node_id),
            **_NODE_STYLE[genome.node_type(node_id)],
        )

    for innovation in sorted(genome.connections):
        connection = genome.connections[innovation]
        dot.edge(
            str(connection.in_node_id),
            str(connection.out_node_id),
            label=f"{innovation}: {connection.weight:.1f}",
            style="bold" if connection.enabled else "dashed",
        )
    return dot


def write_dot_source(genome: Genome, path: Path) -> Path:
    """Write the Graphviz source of the genome to `path`."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(genome_to_dot(genome, name=target.stem).source, encoding="utf-8")
    return target


def render_genome(genome: Genome, path: Path, *, format: str = "svg") -> Path:
    """Render the genome with the external `dot` tool.

    Raises:
        graphviz.ExecutableNotFound: If Graphviz is not installed.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    rendered = genome_to_dot(genome, name=target.stem).render(
        filename=target.stem,
        directory=target.parent,
        format=format,
        cleanup=True,
    )
    return Path(rendered)


__all__ = ["genome_to_dot", "render_genome", "write_dot_source"]
