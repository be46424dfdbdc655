"""Hierarchical clustering of classes and dendrogram cutting into modules."""

from .dendrogram import (
    DendrogramNode,
    dendrogram_frame,
    internal_nodes,
    iter_leaves,
    iter_nodes,
)
from .hierarchical import (
    ClusteringCancelled,
    HierarchicalClusterer,
    build_dendrogram,
)
from .modules import (
    ConstraintReport,
    Module,
    ModuleCutter,
    average_pairwise_coupling,
    identify_modules,
    modules_frame,
)
from .service import (
    ClusteringParameters,
    ClusteringResult,
    DEFAULT_MIN_COUPLING,
    perform_clustering,
    run_pipeline,
)

__all__ = [
    "ClusteringCancelled",
    "ClusteringParameters",
    "ClusteringResult",
    "ConstraintReport",
    "DEFAULT_MIN_COUPLING",
    "DendrogramNode",
    "HierarchicalClusterer",
    "Module",
    "ModuleCutter",
    "average_pairwise_coupling",
    "build_dendrogram",
    "dendrogram_frame",
    "identify_modules",
    "internal_nodes",
    "iter_leaves",
    "iter_nodes",
    "modules_frame",
    "perform_clustering",
    "run_pipeline",
]
