import pytest

from cohesion.clustering import (
    DendrogramNode,
    dendrogram_frame,
    internal_nodes,
    iter_leaves,
    iter_nodes,
)


def _small_tree() -> DendrogramNode:
    a = DendrogramNode.leaf("A")
    b = DendrogramNode.leaf("B")
    c = DendrogramNode.leaf("C")
    ab = DendrogramNode.merge("cluster-001", a, b, coupling=0.5, level=1)
    return DendrogramNode.merge("cluster-002", c, ab, coupling=0.25, level=2)


def test_leaf_contains_only_its_class():
    leaf = DendrogramNode.leaf("pkg.Widget")

    assert leaf.is_leaf
    assert leaf.classes == frozenset({"pkg.Widget"})
    assert leaf.coupling == 0.0
    assert leaf.level == 0
    assert leaf.children() == ()
    assert str(leaf) == "Leaf(pkg.Widget)"


def test_internal_node_members_are_union_of_children():
    root = _small_tree()

    assert not root.is_leaf
    assert root.classes == frozenset({"A", "B", "C"})
    assert root.class_count == 3
    assert root.sorted_classes == ("A", "B", "C")
    assert root.left.node_id == "C"
    assert root.right.node_id == "cluster-001"
    assert str(root) == "Cluster(cluster-002, coupling=0.250, classes=3)"
    assert "members=[A, B, C]" in root.describe()


def test_internal_node_requires_both_children():
    with pytest.raises(ValueError):
        DendrogramNode("broken", left=DendrogramNode.leaf("A"), coupling=0.1, level=1)


def test_children_must_be_disjoint():
    a = DendrogramNode.leaf("A")
    with pytest.raises(ValueError, match="share classes"):
        DendrogramNode.merge("cluster-001", a, DendrogramNode.leaf("A"), coupling=0.1, level=1)


def test_leaf_with_level_is_rejected():
    with pytest.raises(ValueError):
        DendrogramNode("A", level=3)


def test_traversal_helpers():
    root = _small_tree()

    assert [node.node_id for node in iter_nodes(root)] == ["cluster-002", "C", "cluster-001", "A", "B"]
    assert [leaf.node_id for leaf in iter_leaves(root)] == ["C", "A", "B"]
    assert [node.level for node in internal_nodes(root)] == [1, 2]
    assert list(iter_nodes(None)) == []


def test_dendrogram_frame_lists_every_node():
    frame = dendrogram_frame(_small_tree())

    assert len(frame) == 5
    root_row = frame.iloc[0]
    assert root_row["node_id"] == "cluster-002"
    assert root_row["left"] == "C"
    assert root_row["right"] == "cluster-001"
    assert root_row["classes"] == "A;B;C"
    assert frame.loc[frame["node_id"] == "A", "is_leaf"].item()


def test_empty_dendrogram_frame_has_columns():
    frame = dendrogram_frame(None)

    assert frame.empty
    assert "node_id" in frame.columns
