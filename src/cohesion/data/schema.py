"""Column schema for call-graph edge lists."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

import pandas as pd
from pandas._typing import DtypeArg


class MissingColumnsError(ValueError):
    """Raised when a dataset is missing required columns."""

    def __init__(self, schema: DatasetSchema, missing: list[str]):
        super().__init__(
            f"{schema.name.title()} data is missing required columns: {', '.join(missing)}. "
            f"Expected columns include: {', '.join(schema.columns)}."
        )
        self.schema = schema
        self.missing = missing


@dataclass(frozen=True)
class DatasetSchema:
    """Named set of required columns and the dtypes they are read with."""

    name: str
    columns: tuple[str, ...]
    dtypes: Mapping[str, DtypeArg] = field(default_factory=dict)

    def missing_required(self, columns: Iterable[str]) -> list[str]:
        return sorted(set(self.columns).difference(columns))

    def read_dtypes(self) -> dict[str, DtypeArg]:
        """Dtype mapping suitable for ``pandas.read_csv``."""
        return {column: self.dtypes[column] for column in self.columns if column in self.dtypes}

    def conform(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Return the schema columns of ``frame`` cast to their dtypes.

        Raises :class:`MissingColumnsError` when a column is absent. Extra
        columns are dropped.
        """

        missing = self.missing_required(frame.columns)
        if missing:
            raise MissingColumnsError(self, missing)
        return frame.loc[:, list(self.columns)].astype(self.read_dtypes())


CALL_EDGES_SCHEMA = DatasetSchema(
    name="call edges",
    columns=("caller", "callee"),
    dtypes={"caller": pd.StringDtype(), "callee": pd.StringDtype()},
)

__all__ = [
    "CALL_EDGES_SCHEMA",
    "DatasetSchema",
    "MissingColumnsError",
]
