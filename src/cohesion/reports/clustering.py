"""Text and CSV renderings of clustering results."""

from __future__ import annotations

from typing import List, Sequence

import pandas as pd

from ..clustering import ClusteringResult, DendrogramNode, Module


def render_dendrogram(root: DendrogramNode | None) -> str:
    """Render the tree with one indented line per node."""

    if root is None:
        return "(empty dendrogram)\n"

    lines: List[str] = []
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        indent = "  " * depth
        if node.is_leaf:
            lines.append(f"{indent}└─ {node.node_id}")
            continue
        lines.append(
            f"{indent}├─ {node.node_id} "
            f"(coupling: {node.coupling:.3f}, classes: {node.class_count})"
        )
        stack.append((node.right, depth + 1))
        stack.append((node.left, depth + 1))
    return "\n".join(lines) + "\n"


def minimum_module_coupling(modules: Sequence[Module]) -> float:
    """Smallest module average coupling, ``0.0`` without modules."""

    if not modules:
        return 0.0
    return min(module.average_coupling for module in modules)


def render_text_report(result: ClusteringResult) -> str:
    modules = result.modules
    lines = [
        "=== HIERARCHICAL CLUSTERING REPORT ===",
        "",
        "GENERAL INFORMATION:",
        f"- Total classes: {result.total_classes}",
        f"- Modules identified: {len(modules)}",
        f"- Minimum coupling required: {result.parameters.min_coupling:.3f}",
        f"- Minimum module coupling: {minimum_module_coupling(modules):.3f}",
    ]
    if result.unassigned_classes:
        lines.append(f"- Classes without a module: {len(result.unassigned_classes)}")
    if result.constraints is not None:
        constraints = result.constraints
        lines.append(
            f"- Module budget: {constraints.module_count} of {constraints.max_modules} "
            f"{'OK' if constraints.within_module_budget else 'FAILED'}"
        )
        lines.append(
            f"- Minimum coupling constraint: {'OK' if constraints.meets_min_coupling else 'FAILED'}"
        )

    lines.extend(["", "MODULES:"])
    for ordinal, module in enumerate(modules, start=1):
        lines.append(f"{ordinal}. {module}")

    lines.extend(["", "=== MODULE DETAILS ==="])
    for ordinal, module in enumerate(modules, start=1):
        lines.extend(
            [
                "",
                f"Module {ordinal}: {module.module_id}",
                f"  - Class count: {module.class_count}",
                f"  - Average coupling: {module.average_coupling:.3f}",
                f"  - Classes: {', '.join(module.classes)}",
            ]
        )
    return "\n".join(lines) + "\n"


def render_csv_report(modules: Sequence[Module]) -> str:
    """CSV with ``Module_ID,Class_Count,Average_Coupling,Classes``."""

    frame = pd.DataFrame(
        {
            "Module_ID": [module.module_id for module in modules],
            "Class_Count": [module.class_count for module in modules],
            "Average_Coupling": [f"{module.average_coupling:.3f}" for module in modules],
            "Classes": [";".join(module.classes) for module in modules],
        },
        columns=["Module_ID", "Class_Count", "Average_Coupling", "Classes"],
    )
    return frame.to_csv(index=False, lineterminator="\n")


__all__ = [
    "minimum_module_coupling",
    "render_csv_report",
    "render_dendrogram",
    "render_text_report",
]
