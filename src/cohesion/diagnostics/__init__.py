"""Diagnostics computed over clustering results."""

from __future__ import annotations

import math
from html import escape
from typing import Dict, List, Sequence, TypedDict

import numpy as np
import pandas as pd

from ..clustering import ClusteringResult
from .fingerprint import hash_payload, module_fingerprint
from .writers import (
    DIAGNOSTICS_BASENAME,
    DIAGNOSTICS_VERSION,
    DiagnosticsArtifacts,
    write_artifacts,
    write_html,
    write_json,
    write_parquet,
)


class DistributionSummary(TypedDict):
    """Summary statistics for a single series.

    Attributes
    ----------
    count:
        Number of non-null observations used to compute the summary.
    mean:
        Arithmetic mean, or ``NaN`` when ``count == 0``.
    variance:
        Population variance (``ddof=0``), or ``NaN`` when ``count == 0``.
    quantiles:
        Mapping of quantile probability -> value.
    """

    count: int
    mean: float
    variance: float
    quantiles: Dict[float, float]


class ClusteringDiagnostics(TypedDict):
    """Diagnostics payload describing one clustering run.

    Attributes
    ----------
    class_count:
        Number of classes in the dendrogram.
    module_count:
        Number of modules selected by the cut.
    max_modules:
        Module budget (``class_count // 2``).
    coverage:
        Share of classes assigned to a module (``0.0`` without classes).
    unassigned_classes:
        Classes that ended up in no module, sorted.
    module_sizes, module_couplings:
        Distribution summaries over the selected modules.
    merge_couplings:
        Winning coupling of every merge, in merge order.
    non_monotonic_merges:
        Number of merges whose coupling exceeds the previous merge's.
    constraints:
        Constraint verification record, or ``None`` when unavailable.
    parameters:
        Parameters the run was configured with.
    fingerprint:
        SHA-256 digest of module membership and averages.
    """

    class_count: int
    module_count: int
    max_modules: int
    coverage: float
    unassigned_classes: List[str]
    module_sizes: DistributionSummary
    module_couplings: DistributionSummary
    merge_couplings: List[float]
    non_monotonic_merges: int
    constraints: Dict[str, object] | None
    parameters: Dict[str, object]
    fingerprint: str


def summarize_series(
    values: Sequence[float],
    *,
    quantiles: Sequence[float] = (0.0, 0.5, 1.0),
) -> DistributionSummary:
    """Summarise ``values`` with count, mean, population variance and quantiles."""

    quantiles = tuple(sorted(dict.fromkeys(float(q) for q in quantiles)))
    for q in quantiles:
        if not 0.0 <= q <= 1.0:
            raise ValueError(f"Quantile {q} is outside the inclusive [0, 1] range")

    series = pd.Series(list(values), dtype=float).dropna()
    count = int(series.count())
    if count == 0:
        return DistributionSummary(
            count=0,
            mean=math.nan,
            variance=math.nan,
            quantiles={q: math.nan for q in quantiles},
        )
    return DistributionSummary(
        count=count,
        mean=float(series.mean()),
        variance=float(series.var(ddof=0)),
        quantiles={q: float(series.quantile(q, interpolation="linear")) for q in quantiles},
    )


def count_non_monotonic_merges(couplings: Sequence[float]) -> int:
    """Number of merges whose coupling rises above the previous merge's."""

    if len(couplings) < 2:
        return 0
    steps = np.diff(np.asarray(couplings, dtype=float))
    return int(np.sum(steps > 0))


def summarize_clustering(result: ClusteringResult) -> ClusteringDiagnostics:
    class_count = result.total_classes
    assigned = len(result.assigned_classes)
    merges = list(result.merge_couplings)
    constraints = result.constraints

    return ClusteringDiagnostics(
        class_count=class_count,
        module_count=len(result.modules),
        max_modules=class_count // 2,
        coverage=assigned / class_count if class_count else 0.0,
        unassigned_classes=list(result.unassigned_classes),
        module_sizes=summarize_series([module.class_count for module in result.modules]),
        module_couplings=summarize_series([module.average_coupling for module in result.modules]),
        merge_couplings=merges,
        non_monotonic_merges=count_non_monotonic_merges(merges),
        constraints=None if constraints is None else constraints.to_record(),
        parameters=result.parameters.to_record(),
        fingerprint=module_fingerprint(result.modules),
    )


def render_html(diagnostics: ClusteringDiagnostics) -> str:
    """Minimal HTML page listing the headline figures and dropped classes."""

    constraints = diagnostics["constraints"] or {}
    sections = [
        "<html><body>",
        "<h1>Clustering Diagnostics</h1>",
        f"<p>Classes: {diagnostics['class_count']}</p>",
        f"<p>Modules: {diagnostics['module_count']} (budget {diagnostics['max_modules']})</p>",
        f"<p>Coverage: {diagnostics['coverage']:.1%}</p>",
        f"<p>Constraints passed: {'yes' if constraints.get('passed') else 'no'}</p>",
        f"<p>Diagnostics version: {DIAGNOSTICS_VERSION}</p>",
        "<h2>Classes without a module</h2>",
        "<ul>",
    ]
    if diagnostics["unassigned_classes"]:
        sections.extend(f"<li>{escape(name)}</li>" for name in diagnostics["unassigned_classes"])
    else:
        sections.append("<li>None</li>")
    sections.extend(["</ul>", "</body></html>"])
    return "".join(sections)


def emit_diagnostics(result: ClusteringResult, target) -> DiagnosticsArtifacts:
    """Summarise ``result`` and write the versioned JSON/HTML/parquet artifacts."""

    diagnostics = summarize_clustering(result)
    payload = {
        "metadata": {"diagnostics_version": DIAGNOSTICS_VERSION},
        "clustering": diagnostics,
    }
    return write_artifacts(
        payload,
        render_html(diagnostics),
        target,
        frame=result.modules_frame(),
    )


__all__ = [
    "ClusteringDiagnostics",
    "DIAGNOSTICS_BASENAME",
    "DIAGNOSTICS_VERSION",
    "DiagnosticsArtifacts",
    "DistributionSummary",
    "count_non_monotonic_merges",
    "emit_diagnostics",
    "hash_payload",
    "module_fingerprint",
    "render_html",
    "summarize_clustering",
    "summarize_series",
    "write_artifacts",
    "write_html",
    "write_json",
    "write_parquet",
]
