"""Renderers for the weighted inter-class coupling graph."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Mapping

import pandas as pd

from ..coupling import ClassPair, classes_in, coupling_frame, package_of, short_class_name


DEFAULT_MIN_WEIGHT = 0.001
DEFAULT_MAX_NODES = 50
TOP_COUPLINGS = 10


class CouplingGraph:
    """Read-only view over a coupling table used by the graph renderers."""

    def __init__(
        self,
        counts: Mapping[ClassPair, int],
        weights: Mapping[ClassPair, float],
        total: int | None = None,
    ) -> None:
        self.counts = counts
        self.weights = weights
        self.total = int(sum(counts.values())) if total is None else int(total)

    @property
    def classes(self) -> tuple[str, ...]:
        return classes_in(self.weights)

    def edges(self, min_weight: float = 0.0) -> pd.DataFrame:
        """Edges at or above ``min_weight`` sorted by decreasing weight."""

        frame = coupling_frame(
            {pair: self.counts.get(pair, 0) for pair in self.weights},
            self.weights,
        )
        if frame.empty:
            return frame
        return frame.loc[frame["weight"] >= min_weight].reset_index(drop=True)

    def to_dot(
        self,
        *,
        min_weight: float = DEFAULT_MIN_WEIGHT,
        max_nodes: int = DEFAULT_MAX_NODES,
    ) -> str:
        """Render a Graphviz digraph limited to the first ``max_nodes`` classes."""

        visible = self.classes[: max(max_nodes, 0)]
        shown = set(visible)
        lines = [
            "digraph CouplingGraph {",
            "  rankdir=LR;",
            "  node [shape=box, style=filled, fillcolor=lightblue];",
            "  edge [fontsize=10];",
            "",
        ]
        for name in visible:
            lines.append(f'  "{name}" [label="{short_class_name(name)}"];')
        lines.append("")

        edge_count = 0
        for (source, target), weight in sorted(self.weights.items()):
            if source not in shown or target not in shown or weight < min_weight:
                continue
            count = self.counts.get((source, target), 0)
            lines.append(
                f'  "{source}" -> "{target}" '
                f'[label="{weight:.3f} ({count})", weight={weight:.3f}];'
            )
            edge_count += 1

        lines.extend(
            [
                "",
                f"  // Total edges: {edge_count}",
                f"  // Total inter-class calls: {self.total}",
                "}",
            ]
        )
        return "\n".join(lines) + "\n"

    def to_json_payload(
        self,
        *,
        min_weight: float = DEFAULT_MIN_WEIGHT,
        generated_at: datetime | None = None,
    ) -> dict[str, object]:
        generated_at = generated_at or datetime.now(timezone.utc)
        edges = self.edges(min_weight)
        return {
            "metadata": {
                "totalInterClassEdges": self.total,
                "minWeight": float(min_weight),
                "generatedAt": generated_at.isoformat(),
            },
            "nodes": [
                {
                    "id": name,
                    "label": short_class_name(name),
                    "package": package_of(name) or "",
                }
                for name in self.classes
            ],
            "edges": [
                {
                    "source": source,
                    "target": target,
                    "weight": float(weight),
                    "count": int(count),
                }
                for source, target, count, weight in _edge_rows(edges)
            ],
        }

    def to_json(self, *, min_weight: float = DEFAULT_MIN_WEIGHT, generated_at: datetime | None = None) -> str:
        payload = self.to_json_payload(min_weight=min_weight, generated_at=generated_at)
        return json.dumps(payload, indent=2) + "\n"

    def to_csv(self, *, min_weight: float = DEFAULT_MIN_WEIGHT) -> str:
        """CSV with ``Source,Target,Weight,Count,Percentage`` sorted by weight."""

        edges = self.edges(min_weight)
        frame = pd.DataFrame(
            {
                "Source": edges["source"],
                "Target": edges["target"],
                "Weight": edges["weight"].map(lambda weight: f"{weight:.6f}"),
                "Count": edges["count"].astype(int),
                "Percentage": edges["weight"].map(lambda weight: f"{weight * 100:.2f}%"),
            }
        )
        return frame.to_csv(index=False, lineterminator="\n")

    def text_summary(self, *, min_weight: float = DEFAULT_MIN_WEIGHT) -> str:
        above = self.edges(min_weight)
        everything = self.edges(float("-inf"))
        lines = [
            "=== COUPLING GRAPH SUMMARY ===",
            "",
            f"Total inter-class calls: {self.total}",
            f"Minimum weight threshold: {min_weight:.4f}",
            f"Edges at or above threshold: {len(above)}",
            f"Total weight at or above threshold: {float(above['weight'].sum()) if not above.empty else 0.0:.4f}",
            "",
            f"=== TOP {TOP_COUPLINGS} STRONGEST COUPLINGS ===",
        ]
        for rank, (source, target, count, weight) in enumerate(
            _edge_rows(everything.head(TOP_COUPLINGS)), start=1
        ):
            lines.append(
                f"{rank:2d}) {short_class_name(source)} -> {short_class_name(target)}: "
                f"{weight:.4f} ({int(count)} calls)"
            )
        return "\n".join(lines) + "\n"


def _edge_rows(edges: pd.DataFrame):
    return edges[["source", "target", "count", "weight"]].itertuples(index=False, name=None)


__all__ = [
    "CouplingGraph",
    "DEFAULT_MAX_NODES",
    "DEFAULT_MIN_WEIGHT",
    "TOP_COUPLINGS",
]
