"""Explicit text -> number coercion.

Several measurement columns (`total_deaths`, `new_deaths`, `new_vaccinations`)
arrive as text. They are never cast implicitly: empty text becomes null,
well-formed numerals become floats and anything else is a `CoercionError`
(strict mode) or a recorded warning with the row skipped (lenient mode).
"""
from __future__ import annotations

import logging
import math
import numbers
import re
from dataclasses import dataclass, field as dc_field
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd

from covid_explorer.errors import CoercionError

log = logging.getLogger(__name__)

NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


class CoercionMode(str, Enum):
    """How malformed numeric text is handled."""

    STRICT = "strict"
    LENIENT = "lenient"


@dataclass(frozen=True)
class CoercionWarning:
    field: str
    row: Any
    value: Any

    def __str__(self) -> str:
        return f"{self.field}={self.value!r} at row {self.row!r} is not numeric; row skipped"


@dataclass
class CoercionLog:
    """Collects the rows skipped in lenient mode."""

    warnings: list[CoercionWarning] = dc_field(default_factory=list)

    def record(self, field: str, row: Any, value: Any) -> CoercionWarning:
        w = CoercionWarning(field=field, row=row, value=value)
        self.warnings.append(w)
        return w

    def for_field(self, field: str) -> list[CoercionWarning]:
        return [w for w in self.warnings if w.field == field]

    def __len__(self) -> int:
        return len(self.warnings)


def coerce_number(value: Any, field: str = "value") -> float | None:
    """Coerce a single cell to a float, or ``None`` for missing data.

    Args:
        value: Raw cell (text, number, None/NaN).
        field: Field name used in the error message.

    Returns:
        The value as float, or None for null, NaN and blank text.

    Raises:
        CoercionError: if the value is non-empty text that is not a numeral,
            or a type that has no numeric meaning (e.g. bool).
    """
    if value is None or value is pd.NA or value is pd.NaT:
        return None
    if isinstance(value, (bool, np.bool_)):
        raise CoercionError(field, value)
    if isinstance(value, numbers.Number):
        f = float(value)  # type: ignore[arg-type]
        return None if math.isnan(f) else f
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if not NUMERIC_RE.match(text):
            raise CoercionError(field, value)
        return float(text)
    raise CoercionError(field, value)


def coerce_series(
    series: pd.Series,
    field: str,
    mode: CoercionMode = CoercionMode.STRICT,
    coercion_log: CoercionLog | None = None,
) -> tuple[pd.Series, pd.Series]:
    """Coerce a column to float64.

    Args:
        series: Column to coerce; the index is preserved.
        field: Field name used for errors and warnings.
        mode: Strict raises on the first malformed cell; lenient records it.
        coercion_log: Optional collector for lenient-mode warnings.

    Returns:
        Tuple `(values, bad)`: float64 values (NaN for null or skipped cells)
        and a boolean mask of the cells that failed coercion.

    Raises:
        CoercionError: in strict mode, for the first malformed cell.
    """
    mode = CoercionMode(mode)
    if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
        return series.astype("float64"), pd.Series(False, index=series.index, dtype=bool)

    values: list[float | None] = []
    bad: list[bool] = []

    for idx, raw in series.items():
        try:
            values.append(coerce_number(raw, field))
            bad.append(False)
        except CoercionError:
            if mode is CoercionMode.STRICT:
                raise CoercionError(field, raw, row=idx) from None
            if coercion_log is not None:
                w = coercion_log.record(field, idx, raw)
            else:
                w = CoercionWarning(field, idx, raw)
            log.warning("%s", w)
            values.append(None)
            bad.append(True)

    return (
        pd.Series(values, index=series.index, dtype="float64"),
        pd.Series(bad, index=series.index, dtype=bool),
    )
