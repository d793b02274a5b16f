"""Result sets built on top of `WindowedJoinAggregator`.

Each function returns a pandas DataFrame whose columns are the contract for
downstream export and dashboards:

- `rolling_vaccinations`: continent, location, date, population,
  new_vaccinations, rolling_people_vaccinated, percent_vaccinated
- `highest_infection_rate`: location, population, highest_infection_count,
  percent_population_infected
- `death_count_by_location` / `death_count_by_continent`: location or
  continent, total_death_count
- `global_numbers`: total_cases, total_deaths, death_percentage

Per-country queries drop rows with a null continent (continent and world
aggregates) unless `include_aggregates=True`.
"""
from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from covid_explorer.aggregate.window import (
    WindowedJoinAggregator,
    continent_not_null,
    percent_of,
    percent_series,
)
from covid_explorer.clean.validate import as_frame

log = logging.getLogger(__name__)

ROLLING_VIEW_COLUMNS = [
    "continent",
    "location",
    "date",
    "population",
    "new_vaccinations",
    "rolling_people_vaccinated",
    "percent_vaccinated",
]


def _aggregator(aggregator: WindowedJoinAggregator | None) -> WindowedJoinAggregator:
    return aggregator if aggregator is not None else WindowedJoinAggregator()


def _cases(cases: Any, fields: list[str], include_aggregates: bool) -> pd.DataFrame:
    """Case rows with `fields`, continent aggregates dropped unless requested."""
    required = list(dict.fromkeys(fields + ([] if include_aggregates else ["continent"])))
    frame = as_frame(cases, required, "cases")
    if not include_aggregates:
        frame = frame.loc[continent_not_null(frame)]
    return frame


def _coerced(
    agg: WindowedJoinAggregator,
    frame: pd.DataFrame,
    fields: list[str],
) -> pd.DataFrame:
    """Coerce `fields` in place of their text; drop rows any of them rejects."""
    keep = pd.Series(True, index=frame.index)
    coerced = {}
    for f in fields:
        values, bad = agg.coerce(frame[f], f)
        coerced[f] = values
        keep &= ~bad
    return frame.assign(**coerced).loc[keep]


def _by_location_date(frame: pd.DataFrame) -> pd.DataFrame:
    return frame.sort_values(["location", "date"], kind="mergesort").reset_index(drop=True)


# =========================================================
# ROW-LEVEL SELECTIONS
# =========================================================

def select_cases(
    cases: Any,
    aggregator: WindowedJoinAggregator | None = None,
    include_aggregates: bool = False,
) -> pd.DataFrame:
    """Return the core case columns ordered by location and date.

    Returns:
        DataFrame with columns: `location`, `date`, `total_cases`,
        `new_cases`, `total_deaths`, `population`.
    """
    agg = _aggregator(aggregator)
    cols = ["location", "date", "total_cases", "new_cases", "total_deaths", "population"]
    frame = _cases(cases, cols, include_aggregates)
    frame = _coerced(agg, frame, cols[2:])
    return _by_location_date(frame[cols])


def death_percentage(
    cases: Any,
    location_contains: str | None = None,
    aggregator: WindowedJoinAggregator | None = None,
    include_aggregates: bool = False,
) -> pd.DataFrame:
    """Likelihood of dying once infected, per location and day.

    Args:
        cases: Case rows.
        location_contains: Optional case-insensitive substring the location
            must contain (e.g. "states").
        aggregator: Aggregator supplying the coercion mode.
        include_aggregates: Keep continent/world aggregate rows.

    Returns:
        DataFrame with columns: `location`, `date`, `total_cases`,
        `total_deaths`, `death_percentage`.
    """
    agg = _aggregator(aggregator)
    cols = ["location", "date", "total_cases", "total_deaths"]
    frame = _cases(cases, cols, include_aggregates)
    if location_contains:
        frame = frame.loc[
            frame["location"].str.contains(location_contains, case=False, regex=False, na=False)
        ]
    frame = _coerced(agg, frame, ["total_cases", "total_deaths"])
    frame = frame[cols].assign(
        death_percentage=percent_series(frame["total_deaths"], frame["total_cases"])
    )
    return _by_location_date(frame)


def infection_percentage(
    cases: Any,
    aggregator: WindowedJoinAggregator | None = None,
    include_aggregates: bool = False,
) -> pd.DataFrame:
    """Share of the population infected, per location and day.

    Returns:
        DataFrame with columns: `location`, `date`, `population`,
        `total_cases`, `percent_population_infected`.
    """
    agg = _aggregator(aggregator)
    cols = ["location", "date", "population", "total_cases"]
    frame = _coerced(agg, _cases(cases, cols, include_aggregates), ["population", "total_cases"])
    frame = frame[cols].assign(
        percent_population_infected=percent_series(frame["total_cases"], frame["population"])
    )
    return _by_location_date(frame)


# =========================================================
# GROUPED SUMMARIES
# =========================================================

def highest_infection_rate(
    cases: Any,
    aggregator: WindowedJoinAggregator | None = None,
    include_aggregates: bool = False,
) -> pd.DataFrame:
    """Locations ranked by the highest share of their population infected.

    Returns:
        DataFrame with columns: `location`, `population`,
        `highest_infection_count`, `percent_population_infected`, sorted by
        the percentage descending with nulls last.
    """
    agg = _aggregator(aggregator)
    frame = infection_percentage(cases, agg, include_aggregates)
    out = agg.group_max_frame(
        frame,
        ["location", "population"],
        {
            "highest_infection_count": "total_cases",
            "percent_population_infected": "percent_population_infected",
        },
    )
    return out.sort_values(
        "percent_population_infected",
        ascending=False,
        na_position="last",
        kind="mergesort",
    ).reset_index(drop=True)


def _death_count(
    cases: Any,
    group_key: str,
    aggregator: WindowedJoinAggregator | None,
) -> pd.DataFrame:
    agg = _aggregator(aggregator)
    frame = _cases(cases, [group_key, "total_deaths"], include_aggregates=False)
    out = agg.group_max_frame(frame, group_key, {"total_death_count": "total_deaths"})
    return out.sort_values(
        "total_death_count",
        ascending=False,
        na_position="last",
        kind="mergesort",
    ).reset_index(drop=True)


def death_count_by_location(
    cases: Any,
    aggregator: WindowedJoinAggregator | None = None,
) -> pd.DataFrame:
    """Highest cumulative death count per country, descending.

    Returns:
        DataFrame with columns: `location`, `total_death_count`.
    """
    return _death_count(cases, "location", aggregator)


def death_count_by_continent(
    cases: Any,
    aggregator: WindowedJoinAggregator | None = None,
) -> pd.DataFrame:
    """Highest single-country cumulative death count per continent, descending.

    Returns:
        DataFrame with columns: `continent`, `total_death_count`.
    """
    return _death_count(cases, "continent", aggregator)


def global_numbers(
    cases: Any,
    aggregator: WindowedJoinAggregator | None = None,
) -> pd.DataFrame:
    """Worldwide totals summed over per-country daily rows.

    Null daily values count as 0 in the sums.

    Returns:
        Single-row DataFrame with columns: `total_cases`, `total_deaths`,
        `death_percentage` (None when there are no cases).
    """
    agg = _aggregator(aggregator)
    frame = _cases(cases, ["new_cases", "new_deaths"], include_aggregates=False)
    frame = _coerced(agg, frame, ["new_cases", "new_deaths"])

    total_cases = float(frame["new_cases"].sum())
    total_deaths = float(frame["new_deaths"].sum())
    return pd.DataFrame(
        [
            {
                "total_cases": total_cases,
                "total_deaths": total_deaths,
                "death_percentage": percent_of(total_deaths, total_cases),
            }
        ],
        columns=["total_cases", "total_deaths", "death_percentage"],
    )


# =========================================================
# ROLLING VACCINATION VIEW
# =========================================================

def rolling_vaccinations(
    cases: Any,
    vaccinations: Any,
    aggregator: WindowedJoinAggregator | None = None,
    with_percent: bool = True,
    include_aggregates: bool = False,
) -> pd.DataFrame:
    """Running total of vaccinations per location, with optional coverage.

    Args:
        cases: Case rows (continent and population come from this side).
        vaccinations: Vaccination rows.
        aggregator: Aggregator supplying mode and collision checks.
        with_percent: Add `percent_vaccinated` (running total / population).
        include_aggregates: Keep continent/world aggregate rows.

    Returns:
        DataFrame ordered by location and date with columns: `continent`,
        `location`, `date`, `population`, `new_vaccinations`,
        `rolling_people_vaccinated` and, if requested, `percent_vaccinated`.
    """
    agg = _aggregator(aggregator)
    joined = agg.join(
        cases,
        vaccinations,
        case_filter=None if include_aggregates else continent_not_null,
    )
    rolled = agg.running_aggregate(joined, field="new_vaccinations")
    view = _coerced(agg, rolled[ROLLING_VIEW_COLUMNS[:-1]], ["population"])

    if with_percent:
        view = view.assign(
            percent_vaccinated=percent_series(view["rolling_people_vaccinated"], view["population"])
        )

    log.info("Rolling vaccination view: %d rows, %d locations", len(view), view["location"].nunique())
    return view.reset_index(drop=True)

