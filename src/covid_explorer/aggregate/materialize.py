"""Materializing result sets: CSV export and MongoDB upserts.

Whether a result set is streamed to a caller, written to a file or kept as a
collection is only a sink decision; the computation is the same. Result sets
are small and already pandas, so rows are validated one by one with their
Pydantic model and upserted on their natural key.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
import logging

import pandas as pd
from pydantic import BaseModel
from pymongo import UpdateOne

from covid_explorer.clean.coerce import CoercionMode
from covid_explorer.clean.validate import rows_from_frame, to_datetime_doc, validate_partition
from covid_explorer.config import get_settings
from covid_explorer.db import get_client, get_db
from covid_explorer.models import RollingVaccinationRow

log = logging.getLogger(__name__)


def write_csv(frame: pd.DataFrame, out_dir: Path, name: str) -> Path:
    """Write a result set to `<out_dir>/<name>.csv` and return the path."""
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / f"{name}.csv"
    frame.to_csv(out_path, index=False, date_format="%Y-%m-%d")
    log.info("Wrote %s (%d rows)", out_path, len(frame))
    return out_path


def load_view(
    frame: pd.DataFrame,
    collection_name: str,
    key_fields: list[str] | None = None,
    model: type[BaseModel] = RollingVaccinationRow,
    collection: Any = None,
    mode: CoercionMode | str = CoercionMode.STRICT,
) -> int:
    """Upsert a result set into a MongoDB collection.

    Strategy:
    - Validate every row against `model`; in strict mode the first invalid
      row aborts the load, in lenient mode invalid rows are counted and skipped
    - Upsert on `key_fields` (default: location, date)

    Args:
        frame: pandas DataFrame holding the result set.
        collection_name: Target MongoDB collection name.
        key_fields: Fields used as the upsert selector.
        model: Pydantic model describing one row.
        collection: Pre-built collection; when omitted one is opened from
            `get_settings()`.
        mode: Coercion mode of the run that produced `frame`.

    Returns:
        Number of rows written.

    Raises:
        ValidationError: a row does not fit `model` in strict mode.
    """
    keys = key_fields or ["location", "date"]

    if frame.empty:
        log.warning("No rows to load for %s", collection_name)
        return 0

    if CoercionMode(mode) is CoercionMode.STRICT:
        docs = [m.model_dump(mode="python") for m in rows_from_frame(frame, model)]
    else:
        docs, bad = validate_partition(frame, model)
        if bad:
            log.warning("%s: %d row(s) failed %s validation", collection_name, bad, model.__name__)

    if collection is None:
        s = get_settings()
        collection = get_db(get_client(s.mongo_uri), s.mongo_db)[collection_name]

    log.info("Materializing view: %s", collection_name)

    ops = []
    for doc in docs:
        doc = to_datetime_doc(doc)
        ops.append(
            UpdateOne(
                {k: doc[k] for k in keys},
                {"$set": doc},
                upsert=True,
            )
        )

    if ops:
        collection.bulk_write(ops, ordered=False)

    log.info("View load complete for %s: %d rows", collection_name, len(ops))
    return len(ops)
