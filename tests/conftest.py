import pytest


@pytest.fixture
def scenario_a_call_graph():
    return {
        "A.m1": {"B.x"},
        "A.m2": {"B.x"},
        "B.y": {"C.z"},
        "C.w": {"A.m1"},
    }


@pytest.fixture
def weighted_counts():
    return {("A", "B"): 5, ("B", "C"): 3, ("A", "C"): 2}


@pytest.fixture
def weighted_weights():
    return {("A", "B"): 0.5, ("B", "C"): 0.3, ("A", "C"): 0.2}


@pytest.fixture
def weighted_call_graph():
    """Call graph whose distinct calls reproduce ``weighted_counts``."""

    return {
        "app.A.run": {f"app.B.b{index}" for index in range(5)} | {"app.C.c0", "app.C.c1"},
        "app.B.run": {"app.C.c2", "app.C.c3", "app.C.c4"},
    }
