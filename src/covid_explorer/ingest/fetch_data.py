"""Download the OWID COVID-19 export and split it into the two source tables.

The combined export carries case, death and vaccination columns side by side;
the analysis works on two tables (CovidDeaths, CovidVaccinations) keyed by
(location, date), so `split_source` projects it into that layout.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from covid_explorer.ingest.load_csv import DEATHS_COLUMNS, VACCINATIONS_COLUMNS

log = logging.getLogger(__name__)


def download_source(url: str, out_dir: Path, user_agent: str, force: bool = False) -> Path:
    """Download or return the cached source export.

    Args:
        url: Source CSV URL.
        out_dir: Local directory to cache the download.
        user_agent: User-Agent header value to send with the request.
        force: Download again even if a cached copy exists.

    Returns:
        Path to the downloaded (or cached) file.

    Raises:
        requests.HTTPError if the remote request fails (non-2xx status).
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / Path(url.split("?")[0]).name

    if not force and out_path.exists() and out_path.stat().st_size > 0:
        log.info("Cache hit: %s", out_path)
        return out_path

    log.info("Downloading %s", url)
    import requests  # type: ignore[import-untyped]  # local import to avoid requiring type stubs at module import
    r = requests.get(url, headers={"User-Agent": user_agent}, timeout=120)
    r.raise_for_status()
    out_path.write_bytes(r.content)
    log.info("Saved: %s (%d bytes)", out_path, out_path.stat().st_size)
    return out_path


def split_source(source: Path, deaths_csv: Path, vaccinations_csv: Path) -> tuple[int, int]:
    """Project the combined export into the CovidDeaths / CovidVaccinations tables.

    Columns the export lacks are skipped; cleaning reports any required one
    that is missing. Values are copied as text.

    Returns:
        Row counts written to (deaths_csv, vaccinations_csv).
    """
    pdf = pd.read_csv(source, dtype=str, keep_default_na=False)

    counts = []
    for path, columns in ((deaths_csv, DEATHS_COLUMNS), (vaccinations_csv, VACCINATIONS_COLUMNS)):
        cols = [c for c in columns if c in pdf.columns]
        skipped = sorted(set(columns) - set(cols))
        if skipped:
            log.warning("%s: source has no column(s) %s", path.name, ", ".join(skipped))
        path.parent.mkdir(parents=True, exist_ok=True)
        pdf[cols].to_csv(path, index=False)
        log.info("Wrote %s (%d rows, %d columns)", path, len(pdf), len(cols))
        counts.append(len(pdf))

    return counts[0], counts[1]
