"""End-to-end clustering: dendrogram construction followed by module cutting."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping

import pandas as pd

from ..coupling import CallGraph, ClassPair, ProjectPackages, compute_coupling
from .dendrogram import DendrogramNode, dendrogram_frame, internal_nodes
from .hierarchical import CancelCheck, HierarchicalClusterer
from .modules import (
    DEFAULT_MODULE_PREFIX,
    ConstraintReport,
    Module,
    ModuleCutter,
    modules_frame,
)


_log = logging.getLogger("cohesion.service")

DEFAULT_MIN_COUPLING = 0.1


@dataclass(slots=True)
class ClusteringParameters:
    """Configuration for module identification."""

    min_coupling: float = DEFAULT_MIN_COUPLING
    keep_singletons: bool = False
    module_prefix: str = DEFAULT_MODULE_PREFIX

    def to_record(self) -> Dict[str, object]:
        return {
            "min_coupling": self.min_coupling,
            "keep_singletons": self.keep_singletons,
            "module_prefix": self.module_prefix,
        }


@dataclass(frozen=True, slots=True)
class ClusteringResult:
    """Dendrogram, modules and the coupling tables they were derived from."""

    dendrogram: DendrogramNode | None
    modules: tuple[Module, ...]
    counts: Mapping[ClassPair, int]
    weights: Mapping[ClassPair, float]
    constraints: ConstraintReport | None = None
    parameters: ClusteringParameters = field(default_factory=ClusteringParameters)

    def __post_init__(self) -> None:
        object.__setattr__(self, "modules", tuple(self.modules))
        object.__setattr__(self, "counts", MappingProxyType(dict(self.counts)))
        object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))

    @property
    def total_classes(self) -> int:
        return 0 if self.dendrogram is None else self.dendrogram.class_count

    @property
    def assigned_classes(self) -> frozenset[str]:
        return frozenset(name for module in self.modules for name in module.classes)

    @property
    def unassigned_classes(self) -> tuple[str, ...]:
        """Classes left out of every module by the cut."""

        if self.dendrogram is None:
            return ()
        return tuple(sorted(self.dendrogram.classes - self.assigned_classes))

    @property
    def merge_couplings(self) -> tuple[float, ...]:
        return tuple(node.coupling for node in internal_nodes(self.dendrogram))

    def modules_frame(self) -> pd.DataFrame:
        return modules_frame(self.modules)

    def dendrogram_frame(self) -> pd.DataFrame:
        return dendrogram_frame(self.dendrogram)


def perform_clustering(
    counts: Mapping[ClassPair, int],
    weights: Mapping[ClassPair, float],
    parameters: ClusteringParameters | None = None,
    *,
    should_cancel: CancelCheck | None = None,
) -> ClusteringResult:
    """Cluster the classes of a coupling table and cut the tree into modules."""

    parameters = parameters or ClusteringParameters()

    clusterer = HierarchicalClusterer(counts, weights, should_cancel=should_cancel)
    root = clusterer.perform_clustering()

    total_classes = 0 if root is None else root.class_count
    cutter = ModuleCutter(
        root,
        total_classes,
        parameters.min_coupling,
        weights,
        keep_singletons=parameters.keep_singletons,
        prefix=parameters.module_prefix,
    )
    modules = cutter.identify_modules()

    result = ClusteringResult(
        dendrogram=root,
        modules=tuple(modules),
        counts=counts,
        weights=weights,
        constraints=cutter.verify_constraints(modules),
        parameters=parameters,
    )
    if result.unassigned_classes:
        _log.info(
            "%d of %d classes belong to no module",
            len(result.unassigned_classes),
            total_classes,
        )
    return result


def run_pipeline(
    call_graph: CallGraph,
    parameters: ClusteringParameters | None = None,
    *,
    packages: ProjectPackages | None = None,
    should_cancel: CancelCheck | None = None,
) -> ClusteringResult:
    """Aggregate ``call_graph`` into coupling weights, then cluster and cut."""

    summary = compute_coupling(call_graph, packages=packages)
    _log.info(
        "Coupling table: %d class pairs, %d inter-class calls",
        len(summary.counts),
        summary.total,
    )
    return perform_clustering(
        summary.counts,
        summary.weights,
        parameters,
        should_cancel=should_cancel,
    )


__all__ = [
    "ClusteringParameters",
    "ClusteringResult",
    "DEFAULT_MIN_COUPLING",
    "perform_clustering",
    "run_pipeline",
]
