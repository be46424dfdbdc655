import json
from datetime import datetime, timezone

import pytest

from cohesion.clustering import ClusteringParameters, build_dendrogram, perform_clustering
from cohesion.reports import (
    CouplingGraph,
    minimum_module_coupling,
    render_csv_report,
    render_dendrogram,
    render_text_report,
)


@pytest.fixture
def graph():
    counts = {("app.A", "app.B"): 5, ("app.B", "app.C"): 3, ("app.A", "app.C"): 2}
    weights = {pair: count / 10 for pair, count in counts.items()}
    return CouplingGraph(counts, weights)


def test_dot_output_lists_nodes_and_weighted_edges(graph: CouplingGraph):
    dot = graph.to_dot()

    assert dot.startswith("digraph CouplingGraph {\n  rankdir=LR;")
    assert '  "app.A" [label="A"];' in dot
    assert '  "app.A" -> "app.B" [label="0.500 (5)", weight=0.500];' in dot
    assert "// Total edges: 3" in dot
    assert "// Total inter-class calls: 10" in dot
    assert dot.rstrip().endswith("}")


def test_dot_output_honours_limits(graph: CouplingGraph):
    dot = graph.to_dot(min_weight=0.25, max_nodes=2)

    assert '"app.C" [label' not in dot
    assert "// Total edges: 1" in dot


def test_json_payload_structure(graph: CouplingGraph):
    generated = datetime(2024, 1, 1, tzinfo=timezone.utc)

    payload = json.loads(graph.to_json(min_weight=0.25, generated_at=generated))

    assert payload["metadata"] == {
        "totalInterClassEdges": 10,
        "minWeight": 0.25,
        "generatedAt": "2024-01-01T00:00:00+00:00",
    }
    assert [node["id"] for node in payload["nodes"]] == ["app.A", "app.B", "app.C"]
    assert payload["nodes"][0] == {"id": "app.A", "label": "A", "package": "app"}
    assert payload["edges"] == [
        {"source": "app.A", "target": "app.B", "weight": 0.5, "count": 5},
        {"source": "app.B", "target": "app.C", "weight": 0.3, "count": 3},
    ]


def test_csv_report_is_sorted_by_weight(graph: CouplingGraph):
    lines = graph.to_csv().splitlines()

    assert lines[0] == "Source,Target,Weight,Count,Percentage"
    assert lines[1] == "app.A,app.B,0.500000,5,50.00%"
    assert lines[3] == "app.A,app.C,0.200000,2,20.00%"


def test_text_summary_ranks_strongest_couplings(graph: CouplingGraph):
    summary = graph.text_summary()

    assert "=== COUPLING GRAPH SUMMARY ===" in summary
    assert "Total inter-class calls: 10" in summary
    assert " 1) A -> B: 0.5000 (5 calls)" in summary
    assert " 3) A -> C: 0.2000 (2 calls)" in summary


def test_empty_graph_renders():
    graph = CouplingGraph({}, {})

    assert "// Total edges: 0" in graph.to_dot()
    assert graph.to_csv().strip() == "Source,Target,Weight,Count,Percentage"
    assert "Edges at or above threshold: 0" in graph.text_summary()


def test_dendrogram_rendering(weighted_counts, weighted_weights):
    root = build_dendrogram(weighted_counts, weighted_weights)

    text = render_dendrogram(root)

    assert text.splitlines() == [
        "├─ cluster-002 (coupling: 0.250, classes: 3)",
        "  └─ C",
        "  ├─ cluster-001 (coupling: 0.500, classes: 2)",
        "    └─ A",
        "    └─ B",
    ]
    assert render_dendrogram(None) == "(empty dendrogram)\n"


def test_clustering_reports(weighted_counts, weighted_weights):
    result = perform_clustering(
        weighted_counts,
        weighted_weights,
        ClusteringParameters(min_coupling=0.4),
    )

    text = render_text_report(result)
    assert "=== HIERARCHICAL CLUSTERING REPORT ===" in text
    assert "- Total classes: 3" in text
    assert "- Modules identified: 1" in text
    assert "- Classes without a module: 1" in text
    assert "Module 1: module-cluster-001" in text

    csv_lines = render_csv_report(result.modules).splitlines()
    assert csv_lines == [
        "Module_ID,Class_Count,Average_Coupling,Classes",
        "module-cluster-001,2,0.500,A;B",
    ]


def test_minimum_module_coupling(weighted_counts, weighted_weights):
    result = perform_clustering(weighted_counts, weighted_weights, ClusteringParameters(min_coupling=0.3))

    assert minimum_module_coupling(result.modules) == pytest.approx(1 / 3)
    assert minimum_module_coupling(()) == 0.0
