from __future__ import annotations

import csv
from pathlib import Path

import pytest
from neatcore.metrics import MetricsRow, MetricsWriter


def _row(generation: int) -> MetricsRow:
    return MetricsRow(
        generation=generation,
        population_size=10,
        species_count=2,
        best_fitness=0.5,
        mean_fitness=0.3,
        median_fitness=0.25,
        mean_connections=3.5,
        eval_time_s=0.01,
        next_innovation=7,
    )


def test_writer_appends_across_sessions(tmp_path: Path) -> None:
    path = tmp_path / "metrics.csv"

    with MetricsWriter(path) as writer:
        writer.append(_row(0))
    with MetricsWriter(path) as writer:
        writer.append(_row(1))
        assert writer.path == path

    with path.open("r", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert [row["generation"] for row in rows] == ["0", "1"]
    assert rows[0]["next_innovation"] == "7"


def test_writer_rejects_foreign_csv(tmp_path: Path) -> None:
    path = tmp_path / "metrics.csv"
    path.write_text("generation,score\n0,1.0\n", encoding="utf-8")

    with pytest.raises(ValueError, match="has columns"):
        MetricsWriter(path)
