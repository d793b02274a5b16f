"""Windowed join aggregation.

`WindowedJoinAggregator` implements the one computation every vaccination
query repeats: join cases and vaccinations on (location, date), partition by
location, order by date and carry a running sum, then derive percentages.

Expectations:
- Inputs: pandas or Dask DataFrames, or sequences of dict / Pydantic records,
  with the CovidDeaths and CovidVaccinations columns.
- Measurement columns may still be text; they are coerced on use according to
  the aggregator's `CoercionMode`.
- Outputs: pandas DataFrames. Dask inputs are computed on entry since every
  result set here is small enough to materialize.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Callable, Mapping, Sequence

import numpy as np
import pandas as pd

from covid_explorer.clean.coerce import CoercionLog, CoercionMode, coerce_series
from covid_explorer.clean.validate import as_frame, require_keys
from covid_explorer.errors import JoinKeyCollisionError

log = logging.getLogger(__name__)

JOIN_KEY = ["location", "date"]

CASE_FIELDS = [
    "location",
    "continent",
    "date",
    "population",
    "total_cases",
    "new_cases",
    "total_deaths",
    "new_deaths",
]
CASE_JOIN_FIELDS = ["location", "continent", "date", "population"]
VACCINATION_FIELDS = ["location", "date", "new_vaccinations"]

_ORDER_COL = "__input_order"

CaseFilter = Callable[[pd.DataFrame], Any]


def continent_not_null(cases: pd.DataFrame) -> pd.Series:
    """Default case filter: keep per-country rows, drop continent/world aggregates."""
    return cases["continent"].notna()


def percent_of(numerator: Any, denominator: Any) -> float | None:
    """Return `numerator / denominator * 100`, or None.

    None is returned when either operand is null/NaN or the denominator is 0,
    so "no data" never turns into a division error.
    """
    if numerator is None or denominator is None or pd.isna(numerator) or pd.isna(denominator):
        return None
    num = float(numerator)
    den = float(denominator)
    if math.isnan(num) or math.isnan(den) or den == 0:
        return None
    return (num / den) * 100.0


def percent_series(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """Vectorised `percent_of`; NaN stands for null in both inputs and output."""
    num = numerator.astype("float64")
    den = denominator.astype("float64")
    return (num / den.where(den != 0)) * 100.0


def _normalize_dates(frame: pd.DataFrame, column: str = "date") -> pd.DataFrame:
    # text / datetime.date objects -> datetime64 so both sides compare equal
    col = frame[column]
    if not (
        pd.api.types.is_datetime64_any_dtype(col) or pd.api.types.is_numeric_dtype(col)
    ):
        frame = frame.assign(**{column: pd.to_datetime(frame[column], errors="coerce")})
    return frame


class WindowedJoinAggregator:
    """Join, partition, order and accumulate.

    Args:
        mode: `CoercionMode.STRICT` raises `CoercionError` on malformed
            numeric text; `CoercionMode.LENIENT` skips the row for that
            aggregate and records a warning.
        check_collisions: Reject duplicate (location, date) keys with
            `JoinKeyCollisionError`. Defaults to True in strict mode.
        coercion_log: Collector for lenient-mode warnings; a fresh one is
            created when omitted and exposed as `self.coercion_log`.
    """

    def __init__(
        self,
        mode: CoercionMode | str = CoercionMode.STRICT,
        check_collisions: bool | None = None,
        coercion_log: CoercionLog | None = None,
    ) -> None:
        self.mode = CoercionMode(mode)
        self.check_collisions = (
            self.mode is CoercionMode.STRICT if check_collisions is None else check_collisions
        )
        self.coercion_log = coercion_log if coercion_log is not None else CoercionLog()

    # -----------------------------
    # Coercion
    # -----------------------------
    def coerce(self, series: pd.Series, field: str) -> tuple[pd.Series, pd.Series]:
        """Coerce a column with this aggregator's mode; returns `(values, bad)`."""
        return coerce_series(series, field, self.mode, self.coercion_log)

    def _check_unique(self, frame: pd.DataFrame, dataset: str) -> None:
        dup = frame.duplicated(subset=JOIN_KEY, keep=False)
        if not dup.any():
            return
        keys = list(
            frame.loc[dup, JOIN_KEY].drop_duplicates().itertuples(index=False, name=None)
        )
        if self.check_collisions:
            raise JoinKeyCollisionError(dataset, keys)
        log.warning(
            "%s: %d duplicate (location, date) key(s); keeping input order",
            dataset,
            len(keys),
        )

    # -----------------------------
    # Join
    # -----------------------------
    def join(
        self,
        cases: Any,
        vaccinations: Any,
        case_filter: CaseFilter | None = continent_not_null,
        how: str = "inner",
    ) -> pd.DataFrame:
        """Join cases with vaccinations on (location, date).

        Args:
            cases: Case rows; needs `location`, `continent`, `date`,
                `population`. Other case measurements are carried if present.
            vaccinations: Vaccination rows; needs `location`, `date`,
                `new_vaccinations`.
            case_filter: Frame predicate applied to the case side before the
                join. The default drops continent/world aggregate rows;
                None keeps every row.
            how: "inner" (default) or "left" to keep case rows that have no
                vaccination record.

        Returns:
            DataFrame of joined rows in no particular order.

        Raises:
            SchemaError: a required field is missing or a key is null.
            JoinKeyCollisionError: duplicate keys in strict mode.
        """
        if how not in ("inner", "left"):
            raise ValueError(f"unsupported join type: {how!r}")

        cases = as_frame(cases, CASE_JOIN_FIELDS, "cases")
        vaccinations = as_frame(vaccinations, VACCINATION_FIELDS, "vaccinations")

        if case_filter is not None:
            cases = cases.loc[case_filter(cases)]

        cases = _normalize_dates(cases)
        vaccinations = _normalize_dates(vaccinations)
        require_keys(cases, JOIN_KEY, "cases")
        require_keys(vaccinations, JOIN_KEY, "vaccinations")
        self._check_unique(cases, "cases")
        self._check_unique(vaccinations, "vaccinations")

        case_cols = [c for c in CASE_FIELDS if c in cases.columns]
        joined = cases[case_cols].merge(
            vaccinations[VACCINATION_FIELDS],
            on=JOIN_KEY,
            how=how,
            sort=False,
        )

        log.info(
            "Joined %d case rows with %d vaccination rows -> %d rows (%s)",
            len(cases),
            len(vaccinations),
            len(joined),
            how,
        )
        return joined.reset_index(drop=True)

    # -----------------------------
    # Running aggregate
    # -----------------------------
    def running_aggregate(
        self,
        rows: Any,
        field: str = "new_vaccinations",
        partition_key: str = "location",
        order_key: str = "date",
        output: str = "rolling_people_vaccinated",
    ) -> pd.DataFrame:
        """Cumulative sum of `field` per partition, in `order_key` order.

        Rows are sorted by (partition_key, order_key); rows with identical
        keys keep their input order. Text or date values in `order_key` are
        parsed to timestamps first; one that cannot be parsed is a null key
        and raises `SchemaError`. Null values of `field` add 0 to the running
        total, which restarts at 0 on the first row of each partition.

        Returns:
            The sorted rows with `field` coerced to float and the running
            total in `output`, index reset. Rows whose `field` fails coercion
            in lenient mode are left out.
        """
        frame = as_frame(rows, [partition_key, order_key, field], "rows")
        frame = _normalize_dates(frame, order_key)
        require_keys(frame, [partition_key, order_key], "rows")

        values, bad = self.coerce(frame[field], field)
        frame = frame.assign(**{field: values}).loc[~bad]

        frame = frame.assign(**{_ORDER_COL: np.arange(len(frame))})
        frame = frame.sort_values([partition_key, order_key, _ORDER_COL], kind="mergesort")
        frame = frame.drop(columns=_ORDER_COL).reset_index(drop=True)

        frame[output] = (
            frame[field].fillna(0.0).groupby(frame[partition_key], sort=False).cumsum()
        )
        return frame

    # -----------------------------
    # Grouped maximum
    # -----------------------------
    def group_max_frame(
        self,
        rows: Any,
        group_key: str | Sequence[str],
        fields: Mapping[str, str],
    ) -> pd.DataFrame:
        """Grouped maximum of several fields, ignoring nulls.

        Args:
            rows: Input rows.
            group_key: Column (or columns) to group by. Null keys form their
                own group.
            fields: Mapping of output column -> source field.

        Returns:
            DataFrame with the key columns and one column per output, sorted
            by key. A group whose values are all null yields NaN.
        """
        keys = [group_key] if isinstance(group_key, str) else list(group_key)
        frame = as_frame(rows, keys + list(fields.values()), "rows")

        out = frame[keys].copy()
        keep = pd.Series(True, index=frame.index)
        for name, field in fields.items():
            values, bad = self.coerce(frame[field], field)
            out[name] = values
            keep &= ~bad
        out = out.loc[keep]

        return (
            out.groupby(keys, dropna=False, sort=True)[list(fields)]
            .max()
            .reset_index()
        )

    def group_max(
        self,
        rows: Any,
        group_key: str | Sequence[str],
        value_field: str,
    ) -> dict[Any, float | None]:
        """Grouped maximum of one field as a mapping key -> max (None if all null)."""
        keys = [group_key] if isinstance(group_key, str) else list(group_key)
        g = self.group_max_frame(rows, keys, {"max": value_field})

        result: dict[Any, float | None] = {}
        for rec in g.to_dict(orient="records"):
            k = rec[keys[0]] if len(keys) == 1 else tuple(rec[c] for c in keys)
            v = rec["max"]
            result[k] = None if pd.isna(v) else float(v)
        return result
