from __future__ import annotations

import pandas as pd
import pytest

from covid_explorer.aggregate.queries import (
    death_count_by_continent,
    death_count_by_location,
    death_percentage,
    global_numbers,
    highest_infection_rate,
    infection_percentage,
    select_cases,
)
from covid_explorer.aggregate.window import WindowedJoinAggregator
from covid_explorer.clean.validate import rows_from_frame
from covid_explorer.errors import CoercionError
from covid_explorer.models import (
    ContinentDeathCount,
    DeathPercentageRow,
    GlobalSummary,
    InfectionPercentageRow,
    InfectionRateSummary,
    LocationDeathCount,
)


def _cases() -> pd.DataFrame:
    return pd.DataFrame([
        {"location": "United States", "continent": "North America", "date": "2021-01-01",
         "population": "1000", "total_cases": "100", "new_cases": "100",
         "total_deaths": "2", "new_deaths": "2"},
        {"location": "United States", "continent": "North America", "date": "2021-01-02",
         "population": "1000", "total_cases": "150", "new_cases": "50",
         "total_deaths": "5", "new_deaths": "3"},
        {"location": "Canada", "continent": "North America", "date": "2021-01-01",
         "population": "500", "total_cases": "200", "new_cases": "200",
         "total_deaths": "1", "new_deaths": None},
        {"location": "France", "continent": "Europe", "date": "2021-01-01",
         "population": "800", "total_cases": None, "new_cases": None,
         "total_deaths": "9", "new_deaths": "9"},
        {"location": "World", "continent": None, "date": "2021-01-01",
         "population": "9000", "total_cases": "9999", "new_cases": "9999",
         "total_deaths": "999", "new_deaths": "999"},
    ])


def test_select_cases_orders_and_excludes_aggregates() -> None:
    out = select_cases(_cases())
    assert list(out.columns) == [
        "location", "date", "total_cases", "new_cases", "total_deaths", "population",
    ]
    assert out["location"].tolist() == ["Canada", "France", "United States", "United States"]


def test_death_percentage_filters_location() -> None:
    out = death_percentage(_cases(), location_contains="STATES")
    assert out["location"].unique().tolist() == ["United States"]
    assert out["death_percentage"].tolist() == pytest.approx([2.0, 5 / 150 * 100])


def test_death_percentage_is_null_without_cases() -> None:
    out = death_percentage(_cases())
    france = out.loc[out["location"] == "France", "death_percentage"]
    assert france.isna().all()


def test_infection_percentage_can_include_aggregates() -> None:
    out = infection_percentage(_cases(), include_aggregates=True)
    assert "World" in out["location"].tolist()
    canada = out.loc[out["location"] == "Canada", "percent_population_infected"].iloc[0]
    assert canada == pytest.approx(40.0)


def test_highest_infection_rate_ranks_by_percent() -> None:
    out = highest_infection_rate(_cases())
    assert list(out.columns) == [
        "location", "population", "highest_infection_count", "percent_population_infected",
    ]
    assert out["location"].tolist() == ["Canada", "United States", "France"]
    us = out.loc[out["location"] == "United States"].iloc[0]
    assert us["highest_infection_count"] == 150.0
    assert us["percent_population_infected"] == pytest.approx(15.0)
    assert pd.isna(out.iloc[-1]["percent_population_infected"])


def test_death_counts() -> None:
    by_loc = death_count_by_location(_cases())
    assert list(by_loc.columns) == ["location", "total_death_count"]
    assert by_loc["location"].tolist() == ["France", "United States", "Canada"]
    assert by_loc["total_death_count"].tolist() == [9.0, 5.0, 1.0]

    by_cont = death_count_by_continent(_cases())
    assert list(by_cont.columns) == ["continent", "total_death_count"]
    assert dict(zip(by_cont["continent"], by_cont["total_death_count"])) == {
        "Europe": 9.0,
        "North America": 5.0,
    }


def test_global_numbers_treat_null_as_zero() -> None:
    out = global_numbers(_cases())
    assert list(out.columns) == ["total_cases", "total_deaths", "death_percentage"]
    row = out.iloc[0]
    assert row["total_cases"] == 350.0
    assert row["total_deaths"] == 14.0
    assert row["death_percentage"] == pytest.approx(14 / 350 * 100)


def test_global_numbers_without_cases_has_null_percentage() -> None:
    cases = _cases().assign(new_cases=None)
    row = global_numbers(cases).iloc[0]
    assert row["total_cases"] == 0.0
    assert row["death_percentage"] is None


def test_malformed_deaths_strict_raises() -> None:
    cases = _cases()
    cases.loc[1, "total_deaths"] = "N/A"

    with pytest.raises(CoercionError):
        death_count_by_location(cases)


def test_malformed_deaths_lenient_skips_row() -> None:
    cases = _cases()
    cases.loc[1, "total_deaths"] = "N/A"
    agg = WindowedJoinAggregator(mode="lenient")

    out = death_count_by_location(cases, agg)

    us = out.loc[out["location"] == "United States", "total_death_count"].iloc[0]
    assert us == 2.0
    warnings = agg.coercion_log.for_field("total_deaths")
    assert len(warnings) == 1
    assert warnings[0].value == "N/A"


@pytest.mark.parametrize(
    "query, model",
    [
        (death_percentage, DeathPercentageRow),
        (infection_percentage, InfectionPercentageRow),
        (highest_infection_rate, InfectionRateSummary),
        (death_count_by_location, LocationDeathCount),
        (death_count_by_continent, ContinentDeathCount),
        (global_numbers, GlobalSummary),
    ],
)
def test_result_sets_match_row_models(query, model) -> None:
    rows = rows_from_frame(query(_cases()), model)
    assert rows
    assert all(isinstance(r, model) for r in rows)
