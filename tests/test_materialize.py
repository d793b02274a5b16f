from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
import pytest
from pydantic import ValidationError

from covid_explorer.aggregate import materialize
from covid_explorer.aggregate.materialize import load_view, write_csv


class _FakeCollection:
    def __init__(self) -> None:
        self.ops: list[Any] = []

    def bulk_write(self, ops: list[Any], ordered: bool = True) -> None:
        self.ops.extend(ops)


def _view() -> pd.DataFrame:
    return pd.DataFrame([
        {"continent": "X", "location": "A", "date": pd.Timestamp("2021-01-01"),
         "population": 100.0, "new_vaccinations": 10.0,
         "rolling_people_vaccinated": 10.0, "percent_vaccinated": 10.0},
        {"continent": "X", "location": "A", "date": pd.Timestamp("2021-01-02"),
         "population": 100.0, "new_vaccinations": None,
         "rolling_people_vaccinated": 10.0, "percent_vaccinated": 10.0},
        {"continent": "X", "location": "B", "date": pd.Timestamp("2021-01-01"),
         "population": 100.0, "new_vaccinations": None,
         "rolling_people_vaccinated": -3.0, "percent_vaccinated": None},
    ])


def test_write_csv_uses_iso_dates(tmp_path: Path) -> None:
    path = write_csv(_view(), tmp_path / "out", "percent_population_vaccinated")
    text = path.read_text()
    assert path.name == "percent_population_vaccinated.csv"
    assert "2021-01-02" in text
    assert "00:00:00" not in text


def test_load_view_upserts_valid_rows(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(materialize, "UpdateOne", lambda query, update, upsert: (query, update, upsert))
    coll = _FakeCollection()
    written = load_view(
        _view(), "percent_population_vaccinated", collection=coll, mode="lenient"
    )

    # the row with a negative running total fails validation
    assert written == 2
    assert len(coll.ops) == 2
    query, update, upsert = coll.ops[0]
    doc = update["$set"]
    assert upsert is True
    assert query == {"location": "A", "date": datetime(2021, 1, 1)}
    assert isinstance(doc["date"], datetime)
    assert doc["new_vaccinations"] == 10.0


def test_load_view_skips_empty_frames() -> None:
    coll = _FakeCollection()
    assert load_view(pd.DataFrame(), "empty", collection=coll) == 0
    assert coll.ops == []


def test_load_view_strict_aborts_on_invalid_row() -> None:
    coll = _FakeCollection()

    with pytest.raises(ValidationError):
        load_view(_view(), "percent_population_vaccinated", collection=coll)
    assert coll.ops == []


def test_load_view_strict_writes_all_valid_rows(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(materialize, "UpdateOne", lambda query, update, upsert: (query, update, upsert))
    coll = _FakeCollection()

    written = load_view(_view().iloc[:2], "percent_population_vaccinated", collection=coll)

    assert written == 2
    assert [q["date"] for q, _, _ in coll.ops] == [datetime(2021, 1, 1), datetime(2021, 1, 2)]
