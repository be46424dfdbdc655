"""Coupling measures derived from method-level call graphs."""

from .aggregate import (
    CallGraph,
    ClassPair,
    ClassResolver,
    CouplingCounts,
    CouplingSummary,
    CouplingWeights,
    DEFAULT_PACKAGE,
    ProjectPackages,
    canonical_pair,
    class_of,
    classes_in,
    compute_coupling,
    count_inter_class_calls,
    coupling_between,
    coupling_frame,
    normalize_to_coupling_weights,
    package_of,
    short_class_name,
    total_inter_class_edges,
)

__all__ = [
    "CallGraph",
    "ClassPair",
    "ClassResolver",
    "CouplingCounts",
    "CouplingSummary",
    "CouplingWeights",
    "DEFAULT_PACKAGE",
    "ProjectPackages",
    "canonical_pair",
    "class_of",
    "classes_in",
    "compute_coupling",
    "count_inter_class_calls",
    "coupling_between",
    "coupling_frame",
    "normalize_to_coupling_weights",
    "package_of",
    "short_class_name",
    "total_inter_class_edges",
]
