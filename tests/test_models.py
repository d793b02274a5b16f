from __future__ import annotations

from datetime import date

import pandas as pd
import pytest
from pydantic import ValidationError

from covid_explorer.aggregate.queries import rolling_vaccinations
from covid_explorer.clean.validate import rows_from_frame, validate_partition
from covid_explorer.models import CaseRecord, RollingVaccinationRow


def test_case_record_validates() -> None:
    rec = {
        "location": "France",
        "continent": "Europe",
        "date": date(2021, 1, 2),
        "population": 67_000_000,
        "total_cases": 2_700_000,
        "new_cases": 20_000,
        "total_deaths": None,
        "new_deaths": None,
    }
    m = CaseRecord.model_validate(rec)
    assert m.total_deaths is None


def test_case_record_rejects_negative_population() -> None:
    with pytest.raises(ValidationError):
        CaseRecord.model_validate(
            {"location": "X", "date": date(2021, 1, 2), "population": -1}
        )


def test_rolling_view_rows_validate() -> None:
    cases = pd.DataFrame([
        {"location": "A", "continent": "X", "date": "2021-01-01", "population": "100"},
        {"location": "A", "continent": "X", "date": "2021-01-02", "population": "0"},
    ])
    vax = pd.DataFrame([
        {"location": "A", "date": "2021-01-01", "new_vaccinations": "4"},
        {"location": "A", "date": "2021-01-02", "new_vaccinations": ""},
    ])

    rows = rows_from_frame(rolling_vaccinations(cases, vax), RollingVaccinationRow)

    assert [r.date for r in rows] == [date(2021, 1, 1), date(2021, 1, 2)]
    assert rows[0].percent_vaccinated == pytest.approx(4.0)
    assert rows[1].new_vaccinations is None
    assert rows[1].rolling_people_vaccinated == 4.0
    # zero population yields no percentage rather than an error
    assert rows[1].percent_vaccinated is None


def test_validate_partition_counts_bad_rows() -> None:
    pdf = pd.DataFrame([
        {"location": "A", "continent": None, "date": pd.Timestamp("2021-01-01"),
         "population": 1.0, "new_vaccinations": float("nan"),
         "rolling_people_vaccinated": 0.0, "percent_vaccinated": 0.0},
        {"location": "B", "continent": None, "date": pd.Timestamp("2021-01-01"),
         "population": 1.0, "new_vaccinations": 1.0,
         "rolling_people_vaccinated": -1.0, "percent_vaccinated": None},
    ])
    good, bad = validate_partition(pdf, RollingVaccinationRow)
    assert bad == 1
    assert good[0]["location"] == "A"
    assert good[0]["new_vaccinations"] is None
