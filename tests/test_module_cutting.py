import pytest

from cohesion.clustering import (
    Module,
    ModuleCutter,
    average_pairwise_coupling,
    build_dendrogram,
    identify_modules,
    modules_frame,
)


@pytest.fixture
def weighted_root(weighted_counts, weighted_weights):
    return build_dendrogram(weighted_counts, weighted_weights)


@pytest.fixture
def four_class_weights():
    return {("A", "B"): 0.6, ("C", "D"): 0.3, ("A", "C"): 0.1}


def test_root_meeting_threshold_is_single_module(weighted_root, weighted_weights):
    modules = identify_modules(weighted_root, weighted_weights, min_coupling=0.3)

    assert len(modules) == 1
    assert modules[0].classes == ("A", "B", "C")
    assert modules[0].average_coupling == pytest.approx(1 / 3)
    assert modules[0].module_id == "module-cluster-002"


def test_isolated_leaf_is_dropped_when_splitting(weighted_root, weighted_weights):
    modules = identify_modules(weighted_root, weighted_weights, min_coupling=0.4)

    assert [module.classes for module in modules] == [("A", "B")]
    assert modules[0].average_coupling == pytest.approx(0.5)
    assert all("C" not in module.classes for module in modules)


def test_module_count_respects_budget(four_class_weights):
    root = build_dendrogram(four_class_weights, four_class_weights)

    cutter = ModuleCutter(root, root.class_count, 0.2, four_class_weights)
    modules = cutter.identify_modules()

    assert [module.classes for module in modules] == [("A", "B"), ("C", "D")]
    report = cutter.verify_constraints(modules)
    assert report.max_modules == 2
    assert report.within_module_budget
    assert report.meets_min_coupling
    assert report.passed


def test_every_module_meets_min_coupling(four_class_weights):
    root = build_dendrogram(four_class_weights, four_class_weights)

    for min_coupling in (0.05, 0.2, 0.35, 0.7):
        modules = identify_modules(root, four_class_weights, min_coupling=min_coupling)
        assert len(modules) <= 2
        for module in modules:
            assert module.average_coupling >= min_coupling


def test_modules_are_disjoint(four_class_weights):
    root = build_dendrogram(four_class_weights, four_class_weights)

    modules = identify_modules(root, four_class_weights, min_coupling=0.2)

    seen: set[str] = set()
    for module in modules:
        assert seen.isdisjoint(module.classes)
        seen.update(module.classes)


def test_keep_singletons_reports_leftover_classes(four_class_weights):
    root = build_dendrogram(four_class_weights, four_class_weights)

    default = identify_modules(root, four_class_weights, min_coupling=0.4)
    kept = identify_modules(root, four_class_weights, min_coupling=0.4, keep_singletons=True)

    assert [module.classes for module in default] == [("A", "B")]
    assert [module.classes for module in kept] == [("A", "B"), ("C",)]
    assert kept[1].average_coupling == 0.0
    assert len(kept) <= root.class_count // 2


def test_non_positive_threshold_accepts_root(weighted_root, weighted_weights):
    for min_coupling in (0.0, -1.0):
        modules = identify_modules(weighted_root, weighted_weights, min_coupling=min_coupling)
        assert [module.classes for module in modules] == [("A", "B", "C")]


def test_threshold_above_one_yields_nothing(weighted_root, weighted_weights):
    assert identify_modules(weighted_root, weighted_weights, min_coupling=1.5) == []


def test_empty_and_single_class_trees():
    assert identify_modules(None, {}, min_coupling=0.1) == []

    leaf_root = build_dendrogram({("A", "A"): 1}, {})
    assert identify_modules(leaf_root, {}, min_coupling=0.1) == []
    assert identify_modules(leaf_root, {}, min_coupling=0.0) == []


def test_average_pairwise_coupling():
    weights = {("A", "B"): 0.5, ("A", "C"): 0.2, ("B", "C"): 0.3}

    assert average_pairwise_coupling(["A", "B", "C"], weights) == pytest.approx(1 / 3)
    assert average_pairwise_coupling(["C", "A"], weights) == pytest.approx(0.2)
    assert average_pairwise_coupling(["A"], weights) == 0.0
    assert average_pairwise_coupling([], weights) == 0.0


def test_custom_prefix_and_frame(weighted_root, weighted_weights):
    modules = identify_modules(weighted_root, weighted_weights, min_coupling=0.3, prefix="group")

    assert modules[0].module_id == "group-cluster-002"
    frame = modules_frame(modules)
    assert list(frame.columns) == ["module_id", "node_id", "class_count", "average_coupling", "classes"]
    assert frame.iloc[0]["classes"] == "A;B;C"
    assert modules_frame([]).empty


def test_module_requires_identifier():
    with pytest.raises(ValueError):
        Module(module_id="", node_id="x", classes=("A",), average_coupling=0.0)


def test_class_named_like_internal_node_keeps_its_own_average():
    weights = {("cluster-001", "x"): 0.4, ("x", "y"): 0.6}
    root = build_dendrogram(weights, weights)

    assert root.left.node_id == "cluster-001"
    assert root.left.is_leaf
    assert root.right.node_id == "cluster-001"

    modules = identify_modules(root, weights, min_coupling=0.5)

    assert [module.classes for module in modules] == [("x", "y")]
    assert modules[0].average_coupling == pytest.approx(0.6)
