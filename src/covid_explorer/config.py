"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings`, which
reads the input/output locations, the coercion mode and the MongoDB target
from the environment (a project `.env` is loaded first).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

from covid_explorer.clean.coerce import CoercionMode

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

OWID_COVID_URL = "https://covid.ourworldindata.org/data/owid-covid-data.csv"


@dataclass(frozen=True)
class Settings:
    """Container for pipeline configuration read from the environment.

    Attributes:
        data_dir: Local directory holding the downloaded source export.
        deaths_csv: CovidDeaths table (case/death records).
        vaccinations_csv: CovidVaccinations table.
        source_url: URL of the combined OWID export split by `fetch`.
        user_agent: User-Agent header sent with downloads.
        coercion_mode: How malformed numeric text is handled.
        output_dir: Directory where result-set CSVs are written.
        mongo_uri: MongoDB connection URI for the materialized view.
        mongo_db: Target MongoDB database name.
    """
    data_dir: Path
    deaths_csv: Path
    vaccinations_csv: Path
    source_url: str
    user_agent: str
    coercion_mode: CoercionMode
    output_dir: Path
    mongo_uri: str
    mongo_db: str


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `COVID_COERCION_MODE` is neither "strict" nor "lenient".
    """
    data_dir = Path(os.getenv("COVID_DATA_DIR", "data"))
    raw_mode = os.getenv("COVID_COERCION_MODE", "strict").strip().lower()

    try:
        mode = CoercionMode(raw_mode)
    except ValueError:
        raise RuntimeError(
            f"COVID_COERCION_MODE must be 'strict' or 'lenient', got {raw_mode!r}."
        ) from None

    return Settings(
        data_dir=data_dir,
        deaths_csv=Path(os.getenv("COVID_DEATHS_CSV", str(data_dir / "CovidDeaths.csv"))),
        vaccinations_csv=Path(
            os.getenv("COVID_VACCINATIONS_CSV", str(data_dir / "CovidVaccinations.csv"))
        ),
        source_url=os.getenv("COVID_SOURCE_URL", OWID_COVID_URL),
        user_agent=os.getenv("COVID_USER_AGENT", "covid-explorer/0.1").strip(),
        coercion_mode=mode,
        output_dir=Path(os.getenv("COVID_OUTPUT_DIR", "output")),
        mongo_uri=os.getenv("MONGO_URI", "mongodb://localhost:27017"),
        mongo_db=os.getenv("MONGO_DB", "covid"),
    )
