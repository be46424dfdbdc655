"""Versioned on-disk artifacts for clustering diagnostics."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Union

import numpy as np
import pandas as pd


PathLike = Union[str, Path]
"""Supported path-like inputs accepted by diagnostics writers."""

DIAGNOSTICS_VERSION = "v0.1"
"""Version tag embedded in emitted diagnostics filenames."""

DIAGNOSTICS_BASENAME = f"cohesion-diagnostics-{DIAGNOSTICS_VERSION}"
"""Base filename (without extension) used for diagnostics artifacts."""


def diagnostics_path(target: PathLike, suffix: str) -> Path:
    """Resolve ``target`` (a directory or the versioned file itself) to a file path.

    Any explicit filename other than ``<DIAGNOSTICS_BASENAME><suffix>`` is
    rejected so artifacts from different diagnostics versions never collide.
    """

    path = Path(target).expanduser()
    expected = f"{DIAGNOSTICS_BASENAME}{suffix}"

    if path.suffix:
        if path.name != expected:
            raise ValueError(f"Diagnostics artifacts must be named '{expected}', got '{path.name}'.")
    elif path.is_file():
        raise ValueError("Diagnostics target must be a directory or the versioned filename.")
    else:
        path = path / expected

    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, tuple):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serialisable")


def write_json(payload: Mapping[str, Any], target: PathLike) -> Path:
    path = diagnostics_path(target, ".json")
    text = json.dumps(payload, indent=2, sort_keys=True, default=_json_default)
    path.write_text(text + "\n", encoding="utf-8")
    return path


def write_html(html: str, target: PathLike) -> Path:
    path = diagnostics_path(target, ".html")
    path.write_text(html, encoding="utf-8")
    return path


def write_parquet(frame: pd.DataFrame, target: PathLike) -> Path:
    path = diagnostics_path(target, ".parquet")
    frame.to_parquet(path, index=False)
    return path


@dataclass(frozen=True, slots=True)
class DiagnosticsArtifacts:
    """Paths of the artifacts written for one clustering run."""

    json_path: Path
    html_path: Path
    parquet_path: Path | None = None


def write_artifacts(
    payload: Mapping[str, Any],
    html: str,
    target: PathLike,
    *,
    frame: pd.DataFrame | None = None,
) -> DiagnosticsArtifacts:
    """Write the JSON payload, the HTML page and optionally a parquet table."""

    return DiagnosticsArtifacts(
        json_path=write_json(payload, target),
        html_path=write_html(html, target),
        parquet_path=None if frame is None else write_parquet(frame, target),
    )


__all__ = [
    "DIAGNOSTICS_BASENAME",
    "DIAGNOSTICS_VERSION",
    "DiagnosticsArtifacts",
    "PathLike",
    "diagnostics_path",
    "write_artifacts",
    "write_html",
    "write_json",
    "write_parquet",
]
