from __future__ import annotations

from pathlib import Path
from random import Random

from neatcore.export import genome_to_dot, write_dot_source
from neatcore.genes import ConnectionGene
from neatcore.genome import Genome
from neatcore.innovations import InnovationTracker


def _split_genome() -> Genome:
    genome = Genome(
        n_inputs=1,
        n_outputs=1,
        connections={
            0: ConnectionGene(innovation=0, in_node_id=0, out_node_id=2, weight=0.5),
            1: ConnectionGene(innovation=1, in_node_id=1, out_node_id=2, weight=-1.25),
        },
    )
    rng = Random(0)
    while genome.connections[0].enabled:
        probe = genome.copy()
        probe.mutate_add_node(rng, InnovationTracker(next_innovation=2))
        if not probe.connections[0].enabled:
            genome = probe
    return genome


def test_dot_graph_layout_and_labels() -> None:
    source = genome_to_dot(_split_genome(), name="demo").source

    assert "digraph demo" in source
    assert "rankdir=BT" in source
    assert 'label="0: 0.5"' in source
    assert 'label="1: -1.2"' in source
    assert "style=dashed" in source
    assert "style=bold" in source
    assert "Bias" in source
    assert "In0" in source
    assert "Out2" in source


def test_hidden_nodes_are_drawn() -> None:
    source = genome_to_dot(_split_genome()).source

    assert "0 -> 3" in source
    assert "3 -> 2" in source


def test_write_dot_source(tmp_path: Path) -> None:
    target = write_dot_source(_split_genome(), tmp_path / "graphs" / "champion.gv")

    assert target.exists()
    assert target.read_text(encoding="utf-8").startswith("digraph champion")
