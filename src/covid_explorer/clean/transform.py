"""Cleaning and normalization utilities.

Transformations are applied partition-wise using Dask. The output keeps only
the known columns of each table, with trimmed text, a null continent for
aggregate rows and parsed dates. Numeric columns stay text on purpose.
"""
from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from covid_explorer.aggregate.window import CASE_FIELDS, VACCINATION_FIELDS
from covid_explorer.clean.validate import require_columns

log = logging.getLogger(__name__)

CASE_REQUIRED = ["location", "continent", "date"]
VACCINATION_REQUIRED = ["location", "date"]


def _clean_text(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip() or None
    if value is None or pd.isna(value):
        return None
    return value


def _clean_partition(pdf: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """Partition-level cleaning function applied via map_partitions.

    Args:
        pdf: Pandas DataFrame for the partition.
        columns: Columns to keep, in output order.

    Returns:
        Cleaned Pandas DataFrame.
    """
    pdf = pdf[columns].copy()

    for col in columns:
        if col == "date":
            continue
        pdf[col] = pdf[col].map(_clean_text).astype(object)

    # -----------------------------
    # Standardize date
    # -----------------------------
    pdf["date"] = pd.to_datetime(pdf["date"], errors="coerce")

    return pdf


def _clean_table(ddf: Any, known: list[str], required: list[str], dataset: str) -> Any:
    require_columns(ddf, required, dataset)
    columns = [c for c in known if c in ddf.columns]
    log.info("Cleaning %s (columns: %s)", dataset, ", ".join(columns))
    meta = _clean_partition(ddf._meta, columns)
    return ddf.map_partitions(_clean_partition, columns=columns, meta=meta)


def clean_cases_ddf(ddf: Any) -> Any:
    """Clean the CovidDeaths table.

    Raises:
        SchemaError: if `location`, `continent` or `date` is missing.
    """
    return _clean_table(ddf, CASE_FIELDS, CASE_REQUIRED, "cases")


def clean_vaccinations_ddf(ddf: Any) -> Any:
    """Clean the CovidVaccinations table.

    Raises:
        SchemaError: if `location` or `date` is missing.
    """
    return _clean_table(ddf, VACCINATION_FIELDS, VACCINATION_REQUIRED, "vaccinations")


def count_unparsed_dates(pdf: pd.DataFrame) -> int:
    """Number of rows whose date could not be parsed (NaT after cleaning)."""
    return int(pdf["date"].isna().sum())
