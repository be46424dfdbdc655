"""Report renderers consuming coupling tables and clustering results."""

from .clustering import (
    minimum_module_coupling,
    render_csv_report,
    render_dendrogram,
    render_text_report,
)
from .graph import (
    DEFAULT_MAX_NODES,
    DEFAULT_MIN_WEIGHT,
    TOP_COUPLINGS,
    CouplingGraph,
)

__all__ = [
    "CouplingGraph",
    "DEFAULT_MAX_NODES",
    "DEFAULT_MIN_WEIGHT",
    "TOP_COUPLINGS",
    "minimum_module_coupling",
    "render_csv_report",
    "render_dendrogram",
    "render_text_report",
]
