"""Binary merge tree produced by agglomerative class clustering."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator

import pandas as pd


@dataclass(frozen=True, slots=True, eq=False)
class DendrogramNode:
    """Leaf (single class) or internal node (merge of two sub-trees).

    Leaves carry ``coupling == 0.0`` and ``level == 0``. Internal nodes record
    the inter-cluster coupling that won the merge and the 1-based iteration at
    which the merge happened. Nodes are never modified after construction.
    """

    node_id: str
    left: DendrogramNode | None = field(default=None, repr=False)
    right: DendrogramNode | None = field(default=None, repr=False)
    coupling: float = 0.0
    level: int = 0
    classes: frozenset[str] = field(init=False)

    def __post_init__(self) -> None:
        if not self.node_id:
            raise ValueError("Dendrogram node requires a non-empty identifier")

        if self.left is None and self.right is None:
            if self.level != 0 or self.coupling != 0.0:
                raise ValueError("Leaf nodes must have level 0 and coupling 0.0")
            members = frozenset((self.node_id,))
        elif self.left is None or self.right is None:
            raise ValueError("Internal dendrogram nodes require both children")
        else:
            if self.level < 1:
                raise ValueError("Internal dendrogram nodes require a positive level")
            if not self.left.classes.isdisjoint(self.right.classes):
                raise ValueError(
                    f"Children of '{self.node_id}' share classes: "
                    + ", ".join(sorted(self.left.classes & self.right.classes))
                )
            members = self.left.classes | self.right.classes

        object.__setattr__(self, "coupling", float(self.coupling))
        object.__setattr__(self, "classes", members)

    @classmethod
    def leaf(cls, class_name: str) -> DendrogramNode:
        return cls(node_id=class_name)

    @classmethod
    def merge(
        cls,
        node_id: str,
        left: DendrogramNode,
        right: DendrogramNode,
        *,
        coupling: float,
        level: int,
    ) -> DendrogramNode:
        return cls(node_id=node_id, left=left, right=right, coupling=coupling, level=level)

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    @property
    def class_count(self) -> int:
        """Number of leaf classes below this node."""

        return len(self.classes)

    @property
    def sorted_classes(self) -> tuple[str, ...]:
        return tuple(sorted(self.classes))

    def children(self) -> tuple[DendrogramNode, ...]:
        if self.left is None or self.right is None:
            return ()
        return (self.left, self.right)

    def __str__(self) -> str:
        if self.is_leaf:
            return f"Leaf({self.node_id})"
        return f"Cluster({self.node_id}, coupling={self.coupling:.3f}, classes={self.class_count})"

    def describe(self) -> str:
        """Return a detailed one-line description including level and members."""

        if self.is_leaf:
            return str(self)
        return (
            f"Cluster({self.node_id}, coupling={self.coupling:.3f}, level={self.level}, "
            f"classes={self.class_count}, members=[{', '.join(self.sorted_classes)}])"
        )

    def to_record(self) -> Dict[str, object]:
        """Return a JSON-serialisable representation of the node."""

        return {
            "node_id": self.node_id,
            "is_leaf": self.is_leaf,
            "left": None if self.left is None else self.left.node_id,
            "right": None if self.right is None else self.right.node_id,
            "coupling": self.coupling,
            "level": self.level,
            "class_count": self.class_count,
            "classes": list(self.sorted_classes),
        }


def iter_nodes(root: DendrogramNode | None) -> Iterator[DendrogramNode]:
    """Yield every node below ``root`` depth-first, parents before children, left first."""

    if root is None:
        return
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        if not node.is_leaf:
            stack.append(node.right)  # type: ignore[arg-type]
            stack.append(node.left)  # type: ignore[arg-type]


def iter_leaves(root: DendrogramNode | None) -> Iterator[DendrogramNode]:
    return (node for node in iter_nodes(root) if node.is_leaf)


def internal_nodes(root: DendrogramNode | None) -> list[DendrogramNode]:
    """Return internal nodes ordered by merge level."""

    return sorted((node for node in iter_nodes(root) if not node.is_leaf), key=lambda node: node.level)


def dendrogram_frame(root: DendrogramNode | None) -> pd.DataFrame:
    """Return every node of the tree as a dataframe (classes joined with ``;``)."""

    records = []
    for node in iter_nodes(root):
        record = node.to_record()
        record["classes"] = ";".join(node.sorted_classes)
        records.append(record)
    if not records:
        return pd.DataFrame(
            columns=[
                "node_id",
                "is_leaf",
                "left",
                "right",
                "coupling",
                "level",
                "class_count",
                "classes",
            ]
        )
    return pd.DataFrame.from_records(records)


__all__ = [
    "DendrogramNode",
    "dendrogram_frame",
    "internal_nodes",
    "iter_leaves",
    "iter_nodes",
]
