"""Call-graph loading utilities for the cohesion pipeline."""

from .loaders import (
    CallGraphFormatError,
    call_graph_from_frame,
    call_graph_from_mapping,
    load_call_graph,
)
from .schema import CALL_EDGES_SCHEMA, DatasetSchema, MissingColumnsError

__all__ = [
    "CallGraphFormatError",
    "MissingColumnsError",
    "call_graph_from_frame",
    "call_graph_from_mapping",
    "load_call_graph",
    "CALL_EDGES_SCHEMA",
    "DatasetSchema",
]
