import json
from pathlib import Path

import pandas as pd
import pytest

from cohesion.cli.__main__ import CSV_FILENAME, DOT_FILENAME, JSON_FILENAME, main
from cohesion.diagnostics import DIAGNOSTICS_BASENAME


@pytest.fixture
def call_graph_path(tmp_path: Path, weighted_call_graph):
    path = tmp_path / "graph.json"
    document = {caller: sorted(callees) for caller, callees in weighted_call_graph.items()}
    path.write_text(json.dumps({"call_graph": document}), encoding="utf-8")
    return path


def test_couple_writes_graph_renderings(
    tmp_path: Path,
    call_graph_path: Path,
    capsys: pytest.CaptureFixture[str],
):
    output_dir = tmp_path / "coupling"

    main(["couple", "--call-graph", str(call_graph_path), "--output-dir", str(output_dir)])

    assert (output_dir / DOT_FILENAME).read_text().startswith("digraph CouplingGraph {")
    payload = json.loads((output_dir / JSON_FILENAME).read_text())
    assert payload["metadata"]["totalInterClassEdges"] == 10
    assert len(payload["edges"]) == 3
    report = pd.read_csv(output_dir / CSV_FILENAME)
    assert list(report["Count"]) == [5, 3, 2]
    assert "=== COUPLING GRAPH SUMMARY ===" in capsys.readouterr().out


def test_cluster_writes_modules_dendrogram_report_and_diagnostics(
    tmp_path: Path,
    call_graph_path: Path,
    capsys: pytest.CaptureFixture[str],
):
    output_path = tmp_path / "out" / "modules.csv"
    dendrogram_path = tmp_path / "out" / "dendrogram.jsonl"
    report_path = tmp_path / "out" / "report.txt"

    main([
        "cluster",
        "--call-graph",
        str(call_graph_path),
        "--output",
        str(output_path),
        "--min-coupling",
        "0.4",
        "--dendrogram",
        str(dendrogram_path),
        "--report",
        str(report_path),
    ])

    modules = pd.read_csv(output_path)
    assert list(modules["classes"]) == ["app.A;app.B"]
    assert modules.loc[0, "average_coupling"] == pytest.approx(0.5)

    nodes = pd.read_json(dendrogram_path, lines=True)
    assert len(nodes) == 5
    assert set(nodes.loc[~nodes["is_leaf"], "node_id"]) == {"cluster-001", "cluster-002"}

    report = report_path.read_text()
    assert "=== HIERARCHICAL CLUSTERING REPORT ===" in report
    assert "└─ app.C" in report

    diagnostics_dir = output_path.parent
    json_path = diagnostics_dir / f"{DIAGNOSTICS_BASENAME}.json"
    assert json_path.exists()
    assert (diagnostics_dir / f"{DIAGNOSTICS_BASENAME}.html").exists()
    assert (diagnostics_dir / f"{DIAGNOSTICS_BASENAME}.parquet").exists()
    payload = json.loads(json_path.read_text())
    assert payload["clustering"]["unassigned_classes"] == ["app.C"]
    assert payload["clustering"]["max_modules"] == 1

    assert "Identified 1 modules covering 2 of 3 classes" in capsys.readouterr().out


def test_cluster_without_diagnostics(tmp_path: Path, call_graph_path: Path):
    output_path = tmp_path / "modules.jsonl"

    main([
        "cluster",
        "--call-graph",
        str(call_graph_path),
        "--output",
        str(output_path),
        "--no-diagnostics",
    ])

    records = [json.loads(line) for line in output_path.read_text().splitlines()]
    assert [record["classes"] for record in records] == ["app.A;app.B;app.C"]
    assert not (tmp_path / f"{DIAGNOSTICS_BASENAME}.json").exists()


def test_cluster_accepts_csv_edge_lists(tmp_path: Path):
    edges_path = tmp_path / "edges.csv"
    pd.DataFrame(
        {
            "caller": ["A.m1", "A.m2", "B.y", "C.w"],
            "callee": ["B.x", "B.x", "C.z", "A.m1"],
        }
    ).to_csv(edges_path, index=False)
    diagnostics_dir = tmp_path / "diagnostics"

    main([
        "cluster",
        "--call-graph",
        str(edges_path),
        "--output",
        str(tmp_path / "modules.csv"),
        "--diagnostics-dir",
        str(diagnostics_dir),
    ])

    modules = pd.read_csv(tmp_path / "modules.csv")
    assert list(modules["class_count"]) == [3]
    assert (diagnostics_dir / f"{DIAGNOSTICS_BASENAME}.json").exists()
