"""Schema checks and Pydantic row validation.

Inputs reach the aggregator either as DataFrames (pandas or Dask) or as
sequences of dict / Pydantic records. Everything here normalizes them to a
pandas DataFrame and raises `SchemaError` when a required field is missing.
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Sequence

import pandas as pd
from pydantic import BaseModel, ValidationError

from covid_explorer.errors import SchemaError


def require_columns(frame: Any, fields: Sequence[str], dataset: str) -> None:
    """Raise `SchemaError` if any of `fields` is not a column of `frame`."""
    missing = [f for f in fields if f not in frame.columns]
    if missing:
        raise SchemaError(dataset, missing)


def require_keys(frame: pd.DataFrame, keys: Sequence[str], dataset: str) -> None:
    """Raise `SchemaError` if a key column is missing or holds nulls."""
    require_columns(frame, keys, dataset)
    for k in keys:
        nulls = int(frame[k].isna().sum())
        if nulls:
            raise SchemaError(dataset, [k], detail=f"{nulls} row(s) with null {k}")


def as_frame(rows: Any, required: Sequence[str], dataset: str) -> pd.DataFrame:
    """Return `rows` as a pandas DataFrame holding every `required` column.

    Args:
        rows: pandas DataFrame, Dask DataFrame (computed here) or an iterable
            of dicts / Pydantic models.
        required: Field names every row must carry.
        dataset: Input name used in error messages.

    Raises:
        SchemaError: if a column is missing, or a record lacks a required key.
    """
    if isinstance(rows, pd.DataFrame):
        frame = rows
    elif hasattr(rows, "compute"):
        frame = rows.compute()
    else:
        records: list[dict[str, Any]] = []
        for i, r in enumerate(rows):
            if isinstance(r, BaseModel):
                rec = r.model_dump()
            elif isinstance(r, Mapping):
                rec = dict(r)
            else:
                raise TypeError(f"{dataset}: unsupported row type {type(r).__name__}")
            missing = [f for f in required if f not in rec]
            if missing:
                raise SchemaError(dataset, missing, detail=f"row {i}")
            records.append(rec)
        frame = pd.DataFrame(records) if records else pd.DataFrame(columns=list(required))

    require_columns(frame, required, dataset)
    return frame


def _plain(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.date()
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NA or value is pd.NaT:
        return None
    return value


def validate_partition(
    pdf: pd.DataFrame,
    model: type[BaseModel],
) -> tuple[list[dict[str, Any]], int]:
    """Validate each row of a pandas frame against a Pydantic model.

    NaN/NA cells are mapped to None and timestamps to plain dates before
    `model.model_validate` runs.

    Returns:
        A tuple of (list_of_validated_records, bad_count).
    """
    good: list[dict[str, Any]] = []
    bad = 0

    for rec in pdf.to_dict(orient="records"):
        rec = {k: _plain(v) for k, v in rec.items()}
        try:
            m = model.model_validate(rec)
            good.append(m.model_dump(mode="python"))
        except ValidationError:
            bad += 1

    return good, bad


def to_datetime_doc(doc: dict[str, Any]) -> dict[str, Any]:
    """Convert plain dates to midnight datetimes (BSON has no date type)."""
    for k, v in list(doc.items()):
        if isinstance(v, date) and not isinstance(v, datetime):
            doc[k] = datetime.combine(v, datetime.min.time())
    return doc


def rows_from_frame(frame: pd.DataFrame, model: type[BaseModel]) -> list[Any]:
    """Build one model instance per row; raises on the first invalid row."""
    return [
        model.model_validate({k: _plain(v) for k, v in rec.items()})
        for rec in frame.to_dict(orient="records")
    ]

