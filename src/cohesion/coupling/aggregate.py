"""Inter-class coupling aggregation over method-level call graphs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Tuple

import pandas as pd


_log = logging.getLogger("cohesion.coupling")

CallGraph = Mapping[str, Iterable[str]]
ClassPair = Tuple[str, str]
CouplingCounts = Dict[ClassPair, int]
CouplingWeights = Dict[ClassPair, float]

DEFAULT_PACKAGE = ""
"""Package name assigned to classes declared without a package."""


def canonical_pair(first: str, second: str) -> ClassPair:
    """Return ``(first, second)`` ordered lexicographically."""

    if first <= second:
        return (first, second)
    return (second, first)


def package_of(class_name: str | None) -> str | None:
    """Return the package portion of ``class_name`` (``""`` for the default package)."""

    if not class_name:
        return None
    last_dot = class_name.rfind(".")
    if last_dot < 0:
        return DEFAULT_PACKAGE
    if last_dot == 0:
        return None
    return class_name[:last_dot]


def short_class_name(class_name: str) -> str:
    return class_name.rsplit(".", 1)[-1]


def _raw_class_of(identifier: str | None) -> str | None:
    if not identifier:
        return None
    last_dot = identifier.rfind(".")
    if last_dot <= 0:
        return None
    return identifier[:last_dot]


class ClassResolver:
    """Map method identifiers to class identifiers for one call graph.

    Identifiers whose class part carries no package (``Helper.run``) are
    qualified against the classes declaring caller methods, matching short
    names case-insensitively. Callers are scanned in sorted order so the first
    match is stable across runs.
    """

    def __init__(self, call_graph: CallGraph) -> None:
        qualified: Dict[str, str] = {}
        for caller in sorted(call_graph):
            owner = _raw_class_of(caller)
            if owner is None:
                continue
            qualified.setdefault(short_class_name(owner).lower(), owner)
        self._qualified = qualified

    def __call__(self, identifier: str | None) -> str | None:
        class_name = _raw_class_of(identifier)
        if class_name is None:
            return None
        if "." not in class_name:
            return self._qualified.get(class_name.lower(), class_name)
        return class_name


def class_of(identifier: str | None, call_graph: CallGraph | None = None) -> str | None:
    """Return the class owning ``identifier`` or ``None`` when it cannot be derived."""

    if call_graph is None:
        return _raw_class_of(identifier)
    return ClassResolver(call_graph)(identifier)


@dataclass(slots=True)
class ProjectPackages:
    """Packages considered part of the analysed project.

    Instances are explicit, per-run state: :func:`count_inter_class_calls`
    re-detects the package set from the call graph it is given, so one
    instance must not be shared between concurrent analyses.
    """

    packages: set[str] = field(default_factory=set)

    @property
    def detected(self) -> frozenset[str]:
        """Snapshot of the packages detected by the last run."""

        return frozenset(self.packages)

    def reset(self) -> None:
        self.packages.clear()

    def detect(self, call_graph: CallGraph, resolver: ClassResolver | None = None) -> None:
        """Replace the package set with every package seen as caller or callee.

        The default package only counts when a caller's class lives in it, so
        callee-only receivers such as ``super.run`` stay outside the project.
        """

        resolver = resolver or ClassResolver(call_graph)
        self.reset()
        for caller, callees in call_graph.items():
            package = package_of(resolver(caller))
            if package is not None:
                self.packages.add(package)
            for callee in callees:
                package = package_of(resolver(callee))
                if package:
                    self.packages.add(package)

    def contains(self, class_name: str | None) -> bool:
        """Return ``True`` when ``class_name`` belongs to a detected package.

        A package matches when it equals a detected package or when one is
        nested inside the other.
        """

        package = package_of(class_name)
        if package is None:
            return False
        for project_package in self.packages:
            if package == project_package:
                return True
            if package.startswith(project_package + ".") or project_package.startswith(package + "."):
                return True
        return False


def count_inter_class_calls(
    call_graph: CallGraph,
    *,
    packages: ProjectPackages | None = None,
) -> CouplingCounts:
    """Count distinct call relationships between pairs of project classes.

    Each ``(class pair, callee identifier)`` combination contributes at most
    once, whichever method of the calling class issues it. Self-calls and
    calls involving non-project or unresolved classes are skipped.

    When ``packages`` is supplied it is re-detected in place from
    ``call_graph`` so callers can inspect the detected package set afterwards.
    """

    resolver = ClassResolver(call_graph)
    packages = packages if packages is not None else ProjectPackages()
    packages.detect(call_graph, resolver)

    counts: CouplingCounts = {}
    seen: set[tuple[str, str, str]] = set()
    skipped = 0

    for caller in sorted(call_graph):
        caller_class = resolver(caller)
        if not packages.contains(caller_class):
            continue
        for callee in sorted(call_graph[caller]):
            callee_class = resolver(callee)
            if callee_class is None or not packages.contains(callee_class):
                skipped += 1
                continue
            if callee_class == caller_class:
                continue
            pair = canonical_pair(caller_class, callee_class)
            key = (pair[0], pair[1], callee)
            if key in seen:
                continue
            seen.add(key)
            counts[pair] = counts.get(pair, 0) + 1

    _log.debug(
        "Counted %d coupled class pairs across %d packages (%d callees skipped)",
        len(counts),
        len(packages.packages),
        skipped,
    )
    return counts


def total_inter_class_edges(counts: Mapping[ClassPair, int]) -> int:
    """Return the sum of every pair count (``0`` for an empty table)."""

    return int(sum(counts.values()))


def normalize_to_coupling_weights(
    counts: Mapping[ClassPair, int],
    total: int,
) -> CouplingWeights:
    """Divide every pair count by ``total``; empty when ``total <= 0``."""

    if total <= 0:
        return {}
    return {pair: count / float(total) for pair, count in counts.items()}


def coupling_between(weights: Mapping[ClassPair, float], first: str, second: str) -> float:
    """Look up the weight between two classes in either direction (``0.0`` if absent)."""

    value = weights.get((first, second))
    if value is None:
        value = weights.get((second, first), 0.0)
    return float(value)


def classes_in(counts: Mapping[ClassPair, object]) -> tuple[str, ...]:
    """Return every class mentioned by ``counts`` in sorted order."""

    members: set[str] = set()
    for first, second in counts:
        members.add(first)
        members.add(second)
    return tuple(sorted(members))


def coupling_frame(
    counts: Mapping[ClassPair, int],
    weights: Mapping[ClassPair, float],
) -> pd.DataFrame:
    """Return the coupling table as a dataframe sorted by decreasing weight."""

    if not counts:
        return pd.DataFrame(columns=["source", "target", "count", "weight"])

    records = [
        {
            "source": source,
            "target": target,
            "count": int(count),
            "weight": float(weights.get((source, target), 0.0)),
        }
        for (source, target), count in counts.items()
    ]
    frame = pd.DataFrame.from_records(records)
    return frame.sort_values(
        by=["weight", "source", "target"],
        ascending=[False, True, True],
        kind="mergesort",
    ).reset_index(drop=True)


@dataclass(frozen=True, slots=True)
class CouplingSummary:
    """Counts, total and weights derived from a single call graph."""

    counts: Mapping[ClassPair, int]
    total: int
    weights: Mapping[ClassPair, float]
    packages: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "counts", MappingProxyType(dict(self.counts)))
        object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))

    @property
    def classes(self) -> tuple[str, ...]:
        return classes_in(self.counts)

    def to_frame(self) -> pd.DataFrame:
        return coupling_frame(self.counts, self.weights)


def compute_coupling(
    call_graph: CallGraph,
    *,
    packages: ProjectPackages | None = None,
) -> CouplingSummary:
    """Run count, total and normalisation in one step."""

    packages = packages if packages is not None else ProjectPackages()
    counts = count_inter_class_calls(call_graph, packages=packages)
    total = total_inter_class_edges(counts)
    weights = normalize_to_coupling_weights(counts, total)
    return CouplingSummary(
        counts=counts,
        total=total,
        weights=weights,
        packages=packages.detected,
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
