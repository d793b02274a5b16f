from __future__ import annotations

from pathlib import Path

import pytest

from covid_explorer.clean.coerce import CoercionMode
from covid_explorer.config import get_settings

_VARS = [
    "COVID_DATA_DIR",
    "COVID_DEATHS_CSV",
    "COVID_VACCINATIONS_CSV",
    "COVID_COERCION_MODE",
    "COVID_OUTPUT_DIR",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _VARS:
        monkeypatch.delenv(var, raising=False)


def test_defaults_derive_from_data_dir(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COVID_DATA_DIR", "/tmp/covid")
    s = get_settings()
    assert s.deaths_csv == Path("/tmp/covid/CovidDeaths.csv")
    assert s.vaccinations_csv == Path("/tmp/covid/CovidVaccinations.csv")
    assert s.coercion_mode is CoercionMode.STRICT


def test_lenient_mode_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COVID_COERCION_MODE", " Lenient ")
    assert get_settings().coercion_mode is CoercionMode.LENIENT


def test_invalid_mode_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COVID_COERCION_MODE", "sloppy")
    with pytest.raises(RuntimeError):
        get_settings()
