"""JSON-schema checks for call-graph documents and the tables the CLI writes."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Mapping, Sequence

import jsonschema
import numpy as np
import pandas as pd


SCHEMA_VERSION = "v1"
SCHEMA_NAMES = ("call_graph", "module", "dendrogram")


class SchemaValidationError(RuntimeError):
    """A record did not conform to its JSON schema."""

    def __init__(self, schema: str, index: int, message: str) -> None:
        super().__init__(f"{schema} record {index} failed validation: {message}")
        self.schema = schema
        self.index = index
        self.message = message


class SchemaValidator:
    """Validate payloads against the bundled ``schema/<version>/*.schema.json`` files."""

    def __init__(self, *, schema_version: str = SCHEMA_VERSION) -> None:
        self.schema_version = schema_version

    def validate_records(self, schema: str, records: Iterable[Mapping[str, object]]) -> None:
        validator = _validator_for(schema, self.schema_version)
        for index, record in enumerate(records):
            try:
                validator.validate(record)
            except jsonschema.ValidationError as exc:
                message = exc.message
                if exc.path:
                    message = f"{message} (path: {'.'.join(str(part) for part in exc.path)})"
                raise SchemaValidationError(schema, index, message) from exc

    def validate_frame(
        self,
        schema: str,
        frame: pd.DataFrame | None,
        *,
        string_fields: Sequence[str] = (),
    ) -> None:
        """Validate each row of ``frame``; missing values are checked as ``null``."""

        if frame is None or frame.empty:
            return
        rows = (
            {str(key): _json_value(value, as_string=key in string_fields) for key, value in row.items()}
            for row in frame.astype(object).to_dict(orient="records")
        )
        self.validate_records(schema, rows)


def schema_path(schema: str, schema_version: str = SCHEMA_VERSION) -> Path:
    if schema not in SCHEMA_NAMES:
        raise ValueError(f"Unknown schema type '{schema}'")
    path = _schema_root(schema_version) / f"{schema}.schema.json"
    if not path.exists():
        raise FileNotFoundError(f"Schema file '{path}' was not found")
    return path


@lru_cache(maxsize=None)
def _validator_for(schema: str, schema_version: str) -> jsonschema.Draft202012Validator:
    document = json.loads(schema_path(schema, schema_version).read_text(encoding="utf-8"))
    jsonschema.Draft202012Validator.check_schema(document)
    return jsonschema.Draft202012Validator(document)


@lru_cache(maxsize=None)
def _schema_root(schema_version: str) -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        candidate = parent / "schema" / schema_version
        if candidate.is_dir():
            return candidate
    raise FileNotFoundError(f"No 'schema/{schema_version}' directory above '{here}'")


def _json_value(value: object, *, as_string: bool = False) -> object:
    if isinstance(value, np.generic):
        value = value.item()
    if value is None or (isinstance(value, float) and np.isnan(value)) or value is pd.NA:
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_value(item) for item in value]
    return str(value) if as_string else value


__all__ = [
    "SCHEMA_NAMES",
    "SCHEMA_VERSION",
    "SchemaValidationError",
    "SchemaValidator",
    "schema_path",
]
