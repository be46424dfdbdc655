"""Utilities for loading call graphs produced by source analysers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Mapping, Set

import pandas as pd

from .schema import CALL_EDGES_SCHEMA, MissingColumnsError

__all__ = [
    "CallGraphFormatError",
    "MissingColumnsError",
    "call_graph_from_frame",
    "call_graph_from_mapping",
    "load_call_graph",
]


class CallGraphFormatError(ValueError):
    """Raised when a call-graph document has an unexpected shape."""


def load_call_graph(path: str | Path) -> Dict[str, Set[str]]:
    """Load a call graph from a JSON mapping or a CSV/JSON-lines edge list.

    JSON documents whose top level is an object are read as
    ``{caller: [callee, ...]}`` (optionally nested under ``"call_graph"``);
    anything else is treated as an edge list with ``caller``/``callee``
    columns.
    """

    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return call_graph_from_frame(pd.read_csv(path, dtype=CALL_EDGES_SCHEMA.read_dtypes()))
    if suffix in {".jsonl", ".ndjson"}:
        return call_graph_from_frame(_read_json_lines(path))
    if suffix == ".json":
        raw = path.read_text(encoding="utf-8").strip()
        if not raw:
            return {}
        try:
            document = json.loads(raw)
        except json.JSONDecodeError:
            return call_graph_from_frame(_read_json_lines(path))
        if isinstance(document, dict):
            return call_graph_from_mapping(document.get("call_graph", document))
        if isinstance(document, list):
            return call_graph_from_frame(pd.DataFrame.from_records(document))
        raise CallGraphFormatError(f"Unsupported call graph document in '{path}'")
    raise ValueError(f"Unsupported file type '{suffix}' for call graph data")


def call_graph_from_mapping(document: object) -> Dict[str, Set[str]]:
    """Normalise ``{caller: callees}`` into a mapping of string sets."""

    if not isinstance(document, Mapping):
        raise CallGraphFormatError("Call graph must be an object mapping callers to callees")

    graph: Dict[str, Set[str]] = {}
    for caller, callees in document.items():
        if callees is None:
            callees = []
        if isinstance(callees, (str, bytes)) or not isinstance(callees, (list, tuple, set, frozenset)):
            raise CallGraphFormatError(
                f"Callees of '{caller}' must be provided as an array of identifiers"
            )
        graph[str(caller)] = {str(callee) for callee in callees if callee is not None}
    return graph


def call_graph_from_frame(frame: pd.DataFrame) -> Dict[str, Set[str]]:
    """Build a call graph from a ``caller``/``callee`` edge dataframe.

    Rows without a caller are ignored; a caller whose callee is missing is
    still registered with an empty callee set.
    """

    edges = CALL_EDGES_SCHEMA.conform(frame)
    graph: Dict[str, Set[str]] = {}
    edges = edges.loc[edges["caller"].notna()]
    for caller, callee in edges.itertuples(index=False, name=None):
        callees = graph.setdefault(str(caller), set())
        if not pd.isna(callee):
            callees.add(str(callee))
    return graph


def _read_json_lines(path: Path) -> pd.DataFrame:
    raw = path.read_text(encoding="utf-8").strip()
    if not raw:
        return pd.DataFrame(columns=list(CALL_EDGES_SCHEMA.columns))
    return pd.read_json(path, lines=True)
