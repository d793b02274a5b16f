"""Read the CovidDeaths / CovidVaccinations tables into Dask DataFrames.

Every column is read as text; numeric coercion happens explicitly later so
malformed cells surface as `CoercionError` instead of being guessed at by
the CSV parser.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, cast

import dask.dataframe as dd

log = logging.getLogger(__name__)

DEATHS_COLUMNS = [
    "iso_code",
    "continent",
    "location",
    "date",
    "population",
    "total_cases",
    "new_cases",
    "total_deaths",
    "new_deaths",
]
VACCINATIONS_COLUMNS = [
    "iso_code",
    "continent",
    "location",
    "date",
    "new_vaccinations",
]


def read_table_csv(path: Path, blocksize: str | int = "64MB") -> Any:
    """Read one CSV table as text columns.

    Args:
        path: CSV file path.
        blocksize: Dask partition size.

    Returns:
        Dask DataFrame with text columns; empty cells are empty strings.

    Raises:
        FileNotFoundError: if `path` does not exist.
    """
    if not path.exists():
        raise FileNotFoundError(f"{path} not found. Run `fetch` first or set the CSV path.")

    dd_mod = cast(Any, dd)
    # no NA sentinels: "N/A" must reach coercion as text, blanks are nulled in cleaning
    ddf = dd_mod.read_csv(str(path), dtype=str, keep_default_na=False, blocksize=blocksize)
    log.info("Reading %s (%d partitions)", path, ddf.npartitions)
    return ddf


def read_cases_csv(path: Path) -> Any:
    return read_table_csv(path)


def read_vaccinations_csv(path: Path) -> Any:
    return read_table_csv(path)
