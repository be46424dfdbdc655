"""Command-line entry point for coupling analysis and module identification."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from importlib import metadata
from pathlib import Path
from typing import Sequence

import pandas as pd

from cohesion.cli.schema_validation import SchemaValidationError, SchemaValidator
from cohesion.clustering import (
    DEFAULT_MIN_COUPLING,
    ClusteringCancelled,
    ClusteringParameters,
    run_pipeline,
)
from cohesion.coupling import CallGraph, compute_coupling
from cohesion.data import CallGraphFormatError, MissingColumnsError, load_call_graph
from cohesion.diagnostics import emit_diagnostics
from cohesion.reports import (
    DEFAULT_MAX_NODES,
    DEFAULT_MIN_WEIGHT,
    CouplingGraph,
    render_dendrogram,
    render_text_report,
)


_log = logging.getLogger("cohesion.cli")

DOT_FILENAME = "coupling_graph.dot"
JSON_FILENAME = "coupling_graph.json"
CSV_FILENAME = "coupling_report.csv"

_SCHEMA_VALIDATOR = SchemaValidator()


class CohesionCliError(RuntimeError):
    """Raised when CLI arguments cannot be satisfied."""


def _get_package_version() -> str:
    try:
        return metadata.version("cohesion-python")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cohesion",
        description="Identify cohesive modules from a method-level call graph",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    version = _get_package_version()
    parser.add_argument(
        "--version",
        action="store_true",
        help=f"Show the installed cohesion-python version ({version})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v for info, -vv for debug)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")

    couple = subparsers.add_parser(
        "couple",
        help="Compute the inter-class coupling graph",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    couple.add_argument(
        "--call-graph",
        required=True,
        help="Path to the call graph (JSON mapping, or CSV/JSON lines edge list)",
    )
    couple.add_argument(
        "--output-dir",
        required=True,
        help="Directory receiving the DOT, JSON and CSV renderings",
    )
    couple.add_argument(
        "--min-weight",
        type=float,
        default=DEFAULT_MIN_WEIGHT,
        help="Edges below this coupling weight are omitted from the renderings",
    )
    couple.add_argument(
        "--max-nodes",
        type=int,
        default=DEFAULT_MAX_NODES,
        help="Maximum number of classes drawn in the DOT graph",
    )
    couple.set_defaults(handler=_handle_couple)

    cluster = subparsers.add_parser(
        "cluster",
        help="Build the dendrogram and cut it into modules",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cluster.add_argument(
        "--call-graph",
        required=True,
        help="Path to the call graph (JSON mapping, or CSV/JSON lines edge list)",
    )
    cluster.add_argument(
        "--output",
        required=True,
        help="Destination for the module table (CSV or JSON lines)",
    )
    cluster.add_argument(
        "--min-coupling",
        type=float,
        default=DEFAULT_MIN_COUPLING,
        help="Minimum average pairwise coupling a module must reach",
    )
    cluster.add_argument(
        "--keep-singletons",
        action="store_true",
        help="Report classes that cannot join a module as single-class modules",
    )
    cluster.add_argument(
        "--module-prefix",
        default="module",
        help="Prefix used for generated module identifiers",
    )
    cluster.add_argument(
        "--dendrogram",
        help="Optional path for the dendrogram node table (CSV or JSON lines)",
    )
    cluster.add_argument(
        "--report",
        help="Optional path for the text clustering report",
    )
    cluster.add_argument(
        "--diagnostics-dir",
        help="Directory where diagnostics artifacts will be written (defaults to the output directory)",
    )
    cluster.add_argument(
        "--no-diagnostics",
        action="store_false",
        dest="diagnostics",
        help="Disable diagnostics sidecar outputs",
    )
    cluster.set_defaults(handler=_handle_cluster, diagnostics=True)

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        print(f"cohesion-python {_get_package_version()}")
        raise SystemExit(0)

    _configure_logging(args.verbose)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return

    try:
        handler(args)
    except CohesionCliError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(f"Error: {exc}") from exc


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _handle_couple(args: argparse.Namespace) -> None:
    if args.min_weight < 0:
        raise CohesionCliError("--min-weight must be non-negative")
    if args.max_nodes < 1:
        raise CohesionCliError("--max-nodes must be at least 1")

    call_graph = _load_call_graph(args.call_graph)
    summary = compute_coupling(call_graph)
    graph = CouplingGraph(summary.counts, summary.weights, summary.total)

    output_dir = Path(args.output_dir).expanduser().resolve()
    output_dir.mkdir(parents=True, exist_ok=True)
    _write_text(graph.to_dot(min_weight=args.min_weight, max_nodes=args.max_nodes), output_dir / DOT_FILENAME)
    _write_text(graph.to_json(min_weight=args.min_weight), output_dir / JSON_FILENAME)
    _write_text(graph.to_csv(min_weight=args.min_weight), output_dir / CSV_FILENAME)
    _log.info("Wrote coupling graph renderings to %s", output_dir)

    print(graph.text_summary(min_weight=args.min_weight), end="")


def _handle_cluster(args: argparse.Namespace) -> None:
    parameters = ClusteringParameters(
        min_coupling=args.min_coupling,
        keep_singletons=args.keep_singletons,
        module_prefix=args.module_prefix,
    )
    call_graph = _load_call_graph(args.call_graph)

    try:
        result = run_pipeline(call_graph, parameters)
    except ClusteringCancelled as exc:
        raise CohesionCliError(str(exc)) from exc

    output_path = Path(args.output)
    modules = result.modules_frame()
    _validate_frame("module", modules, "Module output", string_fields=("module_id", "node_id", "classes"))
    _write_table(modules, output_path)

    if args.dendrogram:
        nodes = result.dendrogram_frame()
        _validate_frame("dendrogram", nodes, "Dendrogram output", string_fields=("node_id", "classes"))
        _write_table(nodes, Path(args.dendrogram))

    if args.report:
        text = render_text_report(result) + "\n=== DENDROGRAM ===\n" + render_dendrogram(result.dendrogram)
        _write_text(text, Path(args.report))

    if args.diagnostics:
        target = Path(args.diagnostics_dir) if args.diagnostics_dir else output_path.expanduser().resolve().parent
        try:
            emit_diagnostics(result, target)
        except (OSError, ValueError) as exc:
            raise CohesionCliError(f"Failed to write diagnostics to '{target}': {exc}") from exc

    print(
        f"Identified {len(result.modules)} modules covering "
        f"{len(result.assigned_classes)} of {result.total_classes} classes"
    )


def _load_call_graph(location: str) -> CallGraph:
    path = Path(location)
    try:
        if path.suffix.lower() == ".json":
            _validate_call_graph_document(path)
        return load_call_graph(path)
    except FileNotFoundError as exc:
        raise CohesionCliError(f"Call graph file '{location}' was not found") from exc
    except (CallGraphFormatError, MissingColumnsError) as exc:
        raise CohesionCliError(str(exc)) from exc
    except ValueError as exc:
        raise CohesionCliError(str(exc)) from exc


def _validate_call_graph_document(path: Path) -> None:
    """Check object-shaped JSON call graphs before they are normalised."""

    raw = path.read_text(encoding="utf-8").strip()
    if not raw:
        return
    try:
        document = json.loads(raw)
    except json.JSONDecodeError:
        return
    if not isinstance(document, dict):
        return
    document = document.get("call_graph", document)
    try:
        _SCHEMA_VALIDATOR.validate_records("call_graph", [document])
    except SchemaValidationError as exc:
        raise CohesionCliError(f"Call graph failed schema validation: {exc}") from exc


def _validate_frame(
    schema: str,
    frame: pd.DataFrame,
    label: str,
    *,
    string_fields: Sequence[str] = (),
) -> None:
    try:
        _SCHEMA_VALIDATOR.validate_frame(schema, frame, string_fields=string_fields)
    except SchemaValidationError as exc:
        raise CohesionCliError(f"{label} failed schema validation: {exc}") from exc


def _write_table(frame: pd.DataFrame, path: Path) -> None:
    path = path.expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        if path.suffix.lower() in {".json", ".jsonl", ".ndjson"}:
            frame.to_json(path, orient="records", lines=True)
        else:
            frame.to_csv(path, index=False)
    except OSError as exc:  # pragma: no cover - unlikely in tests
        raise CohesionCliError(f"Failed to write output to '{path}': {exc}") from exc


def _write_text(text: str, path: Path) -> None:
    path = path.expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:  # pragma: no cover - unlikely in tests
        raise CohesionCliError(f"Failed to write output to '{path}': {exc}") from exc


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
