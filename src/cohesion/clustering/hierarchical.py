"""Agglomerative average-link clustering of classes by coupling weight."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Mapping, Sequence, Tuple

import numpy as np

from ..coupling import ClassPair, classes_in
from .dendrogram import DendrogramNode


_log = logging.getLogger("cohesion.clustering")

CancelCheck = Callable[[], bool]


class ClusteringCancelled(RuntimeError):
    """Raised when a cancellation check interrupts the merge loop."""

    def __init__(self, iteration: int, remaining: int) -> None:
        super().__init__(
            f"Clustering cancelled at iteration {iteration} with {remaining} clusters remaining"
        )
        self.iteration = iteration
        self.remaining = remaining


def format_cluster_id(level: int) -> str:
    return f"cluster-{level:03d}"


def weight_matrix(
    classes: Sequence[str],
    weights: Mapping[ClassPair, float],
) -> np.ndarray:
    """Return a symmetric ``len(classes)`` square matrix of pair weights.

    Pairs absent from ``weights`` (in either direction) are ``0.0``; pairs
    naming a class outside ``classes`` are ignored.
    """

    index = {name: position for position, name in enumerate(classes)}
    matrix = np.zeros((len(classes), len(classes)), dtype=float)
    for (first, second), value in weights.items():
        row = index.get(first)
        column = index.get(second)
        if row is None or column is None or row == column:
            continue
        if matrix[row, column] == 0.0:
            matrix[row, column] = matrix[column, row] = float(value)
    return matrix


class HierarchicalClusterer:
    """Build a dendrogram by repeatedly merging the most coupled pair of clusters.

    Inter-cluster coupling is the arithmetic mean of the class-pair weights
    across the two clusters (unweighted average linkage). Classes are
    enumerated in sorted order and the active cluster list keeps the order
    in which clusters were created, so ties resolve to the first pair found
    when scanning ``(i, j)`` with ``i < j``.
    """

    def __init__(
        self,
        counts: Mapping[ClassPair, object],
        weights: Mapping[ClassPair, float],
        *,
        should_cancel: CancelCheck | None = None,
    ) -> None:
        self.classes: Tuple[str, ...] = classes_in(counts)
        self._index = {name: position for position, name in enumerate(self.classes)}
        self._matrix = weight_matrix(self.classes, weights)
        self._should_cancel = should_cancel
        self.merge_couplings: List[float] = []

    def coupling(self, first: str, second: str) -> float:
        """Weight between two classes, ``0.0`` when unknown."""

        row = self._index.get(first)
        column = self._index.get(second)
        if row is None or column is None:
            return 0.0
        return float(self._matrix[row, column])

    def cluster_coupling(self, first: Iterable[str], second: Iterable[str]) -> float:
        """Mean class-pair weight across two clusters."""

        rows = self._positions(first)
        columns = self._positions(second)
        if not rows or not columns:
            return 0.0
        return float(self._matrix[np.ix_(rows, columns)].mean())

    def perform_clustering(self) -> DendrogramNode | None:
        """Run the merge loop and return the dendrogram root.

        Returns ``None`` when no classes are present and the single leaf when
        only one class exists.
        """

        self.merge_couplings = []
        if not self.classes:
            _log.info("No classes to cluster")
            return None

        _log.info("Clustering %d classes", len(self.classes))
        clusters: List[DendrogramNode] = [DendrogramNode.leaf(name) for name in self.classes]
        # Summed cross-cluster weights and cluster sizes, both in active-list order.
        sums = self._matrix.copy()
        sizes = np.ones(len(clusters), dtype=np.int64)

        iteration = 0
        while len(clusters) > 1:
            if self._should_cancel is not None and self._should_cancel():
                raise ClusteringCancelled(iteration + 1, len(clusters))
            iteration += 1

            first, second, coupling = self._closest_pair(sums, sizes)
            left = clusters[first]
            right = clusters[second]
            merged = DendrogramNode.merge(
                format_cluster_id(iteration),
                left,
                right,
                coupling=coupling,
                level=iteration,
            )
            _log.debug(
                "Iteration %d: merged %s and %s (coupling %.3f, %d clusters left)",
                iteration,
                left.node_id,
                right.node_id,
                coupling,
                len(clusters) - 1,
            )
            self.merge_couplings.append(coupling)

            del clusters[second]
            del clusters[first]
            clusters.append(merged)
            sums, sizes = _merge_rows(sums, sizes, first, second)

        root = clusters[0]
        _log.info("Dendrogram complete after %d merges: %s", iteration, root)
        return root

    @staticmethod
    def _closest_pair(sums: np.ndarray, sizes: np.ndarray) -> Tuple[int, int, float]:
        # Upper-triangle indices come out row-major, so argmax keeps the first
        # (i, j) with i < j that reaches the maximum.
        rows, columns = np.triu_indices(len(sizes), k=1)
        means = sums[rows, columns] / (sizes[rows] * sizes[columns])
        best = int(np.argmax(means))
        return int(rows[best]), int(columns[best]), float(means[best])

    def _positions(self, names: Iterable[str]) -> List[int]:
        return [self._index[name] for name in names if name in self._index]


def _merge_rows(
    sums: np.ndarray,
    sizes: np.ndarray,
    first: int,
    second: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Drop clusters ``first`` and ``second`` and append their union last."""

    keep = np.delete(np.arange(len(sizes)), [first, second])
    merged_row = sums[first, keep] + sums[second, keep]
    size = len(keep) + 1
    updated = np.zeros((size, size), dtype=sums.dtype)
    updated[:-1, :-1] = sums[np.ix_(keep, keep)]
    updated[-1, :-1] = merged_row
    updated[:-1, -1] = merged_row
    return updated, np.append(sizes[keep], sizes[first] + sizes[second])


def build_dendrogram(
    counts: Mapping[ClassPair, object],
    weights: Mapping[ClassPair, float],
    *,
    should_cancel: CancelCheck | None = None,
) -> DendrogramNode | None:
    """Cluster every class named in ``counts`` and return the dendrogram root."""

    return HierarchicalClusterer(counts, weights, should_cancel=should_cancel).perform_clustering()


__all__ = [
    "CancelCheck",
    "ClusteringCancelled",
    "HierarchicalClusterer",
    "build_dendrogram",
    "format_cluster_id",
    "weight_matrix",
]
