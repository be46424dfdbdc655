"""Top-down dendrogram cutting into coupling-constrained modules."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, Iterable, List, Mapping

import pandas as pd

from ..coupling import ClassPair, coupling_between
from .dendrogram import DendrogramNode


_log = logging.getLogger("cohesion.modules")

DEFAULT_MODULE_PREFIX = "module"


def average_pairwise_coupling(
    classes: Iterable[str],
    weights: Mapping[ClassPair, float] | None,
) -> float:
    """Mean weight over every distinct pair of ``classes``.

    A single class (or none) has no internal pairs and averages ``0.0``.
    """

    members = sorted(set(classes))
    if len(members) < 2 or not weights:
        return 0.0
    total = 0.0
    pairs = 0
    for first, second in combinations(members, 2):
        total += coupling_between(weights, first, second)
        pairs += 1
    return total / pairs


@dataclass(frozen=True, slots=True)
class Module:
    """A dendrogram node selected as a cohesive group of classes."""

    module_id: str
    node_id: str
    classes: tuple[str, ...]
    average_coupling: float

    def __post_init__(self) -> None:
        if not self.module_id:
            raise ValueError("Module requires a non-empty identifier")
        object.__setattr__(self, "classes", tuple(sorted(self.classes)))
        object.__setattr__(self, "average_coupling", float(self.average_coupling))

    @classmethod
    def from_node(
        cls,
        node: DendrogramNode,
        average_coupling: float,
        *,
        prefix: str = DEFAULT_MODULE_PREFIX,
    ) -> Module:
        return cls(
            module_id=f"{prefix}-{node.node_id}",
            node_id=node.node_id,
            classes=tuple(node.classes),
            average_coupling=average_coupling,
        )

    @property
    def class_count(self) -> int:
        return len(self.classes)

    def __str__(self) -> str:
        return (
            f"{self.module_id} (classes: {self.class_count}, "
            f"average coupling: {self.average_coupling:.3f}, "
            f"members: [{', '.join(self.classes)}])"
        )

    def to_record(self) -> Dict[str, object]:
        return {
            "module_id": self.module_id,
            "node_id": self.node_id,
            "class_count": self.class_count,
            "average_coupling": self.average_coupling,
            "classes": list(self.classes),
        }


@dataclass(frozen=True, slots=True)
class ConstraintReport:
    """Outcome of checking the module budget and minimum coupling."""

    module_count: int
    max_modules: int
    min_coupling: float
    within_module_budget: bool
    meets_min_coupling: bool

    @property
    def passed(self) -> bool:
        return self.within_module_budget and self.meets_min_coupling

    def to_record(self) -> Dict[str, object]:
        return {
            "module_count": self.module_count,
            "max_modules": self.max_modules,
            "min_coupling": self.min_coupling,
            "within_module_budget": self.within_module_budget,
            "meets_min_coupling": self.meets_min_coupling,
            "passed": self.passed,
        }


class ModuleCutter:
    """Select module boundaries by descending the dendrogram from its root.

    A node whose average pairwise coupling reaches ``min_coupling`` becomes a
    module as a whole; otherwise both children are examined. Once
    ``total_classes // 2`` modules are accepted, further calls stop
    descending: an internal node reached at that point is still offered as a
    module, a leaf is dropped.

    Singletons average ``0.0`` and are therefore rejected whenever
    ``min_coupling > 0`` unless ``keep_singletons`` is set, in which case a
    leaf reached below the cap is always accepted and nothing is accepted
    once the cap is hit.
    """

    def __init__(
        self,
        root: DendrogramNode | None,
        total_classes: int,
        min_coupling: float,
        weights: Mapping[ClassPair, float] | None = None,
        *,
        keep_singletons: bool = False,
        prefix: str = DEFAULT_MODULE_PREFIX,
    ) -> None:
        self.root = root
        self.max_modules = total_classes // 2
        self.min_coupling = float(min_coupling)
        self.weights = weights or {}
        self.keep_singletons = keep_singletons
        self.prefix = prefix
        self._averages: Dict[frozenset[str], float] = {}

    def identify_modules(self) -> List[Module]:
        _log.info(
            "Identifying modules (max modules: %d, minimum coupling: %s)",
            self.max_modules,
            self.min_coupling,
        )
        modules: List[Module] = []
        if self.root is not None:
            self._cut(self.root, modules)

        report = self.verify_constraints(modules)
        level = logging.INFO if report.passed else logging.WARNING
        _log.log(
            level,
            "Identified %d modules (budget %s, minimum coupling %s)",
            report.module_count,
            "OK" if report.within_module_budget else "FAILED",
            "OK" if report.meets_min_coupling else "FAILED",
        )
        return modules

    def average_coupling(self, node: DendrogramNode) -> float:
        cached = self._averages.get(node.classes)
        if cached is None:
            cached = average_pairwise_coupling(node.classes, self.weights)
            self._averages[node.classes] = cached
        return cached

    def verify_constraints(self, modules: List[Module]) -> ConstraintReport:
        return ConstraintReport(
            module_count=len(modules),
            max_modules=self.max_modules,
            min_coupling=self.min_coupling,
            within_module_budget=len(modules) <= self.max_modules,
            meets_min_coupling=all(
                module.average_coupling >= self.min_coupling for module in modules
            ),
        )

    def _cut(self, node: DendrogramNode, modules: List[Module]) -> None:
        if len(modules) >= self.max_modules:
            _log.debug("Module limit (%d) reached at %s", self.max_modules, node.node_id)
            # Accepted modules hold two or more classes unless singletons are kept,
            # so a capped internal node can only be offered without exceeding the budget.
            if not node.is_leaf and not self.keep_singletons:
                self._accept_if_valid(node, modules)
            return

        if node.is_leaf:
            if self.keep_singletons:
                modules.append(Module.from_node(node, 0.0, prefix=self.prefix))
                _log.debug("Kept singleton %s", node.node_id)
            else:
                self._accept_if_valid(node, modules)
            return

        average = self.average_coupling(node)
        if average >= self.min_coupling:
            self._accept_if_valid(node, modules)
            return

        _log.debug(
            "Splitting %s (coupling %.3f below %s)",
            node.node_id,
            average,
            self.min_coupling,
        )
        self._cut(node.left, modules)  # type: ignore[arg-type]
        self._cut(node.right, modules)  # type: ignore[arg-type]

    def _accept_if_valid(self, node: DendrogramNode, modules: List[Module]) -> None:
        average = self.average_coupling(node)
        if node.class_count > 0 and average >= self.min_coupling:
            module = Module.from_node(node, average, prefix=self.prefix)
            modules.append(module)
            _log.debug("Accepted %s", module)
        else:
            _log.debug(
                "Rejected %s (coupling %.3f below %s)",
                node.node_id,
                average,
                self.min_coupling,
            )


def identify_modules(
    root: DendrogramNode | None,
    weights: Mapping[ClassPair, float] | None,
    *,
    min_coupling: float,
    total_classes: int | None = None,
    keep_singletons: bool = False,
    prefix: str = DEFAULT_MODULE_PREFIX,
) -> List[Module]:
    """Cut ``root`` into modules; ``total_classes`` defaults to the root's class count."""

    if total_classes is None:
        total_classes = root.class_count if root is not None else 0
    cutter = ModuleCutter(
        root,
        total_classes,
        min_coupling,
        weights,
        keep_singletons=keep_singletons,
        prefix=prefix,
    )
    return cutter.identify_modules()


def modules_frame(modules: Iterable[Module]) -> pd.DataFrame:
    """Return modules as a dataframe (classes joined with ``;``)."""

    records = []
    for module in modules:
        record = module.to_record()
        record["classes"] = ";".join(module.classes)
        records.append(record)
    if not records:
        return pd.DataFrame(
            columns=["module_id", "node_id", "class_count", "average_coupling", "classes"]
        )
    return pd.DataFrame.from_records(records)


__all__ = [
    "ConstraintReport",
    "DEFAULT_MODULE_PREFIX",
    "Module",
    "ModuleCutter",
    "average_pairwise_coupling",
    "identify_modules",
    "modules_frame",
]
