"""Pydantic models for input records and result rows.

Input models describe the CovidDeaths / CovidVaccinations tables after numeric
coercion. Result models document the column contract of each result set and
are used to validate rows before they leave the pipeline.
"""

from __future__ import annotations

import datetime as dt
from pydantic import BaseModel, ConfigDict, Field


class CaseRecord(BaseModel):
    """Daily case/death record for one location.

    Attributes:
        location: Country (or aggregate such as "World") name.
        continent: Continent; None marks a continent/world aggregate row.
        date: Reporting date.
        population: Location population.
        total_cases: Cumulative confirmed cases.
        new_cases: Confirmed cases reported that day.
        total_deaths: Cumulative deaths (text in the source file).
        new_deaths: Deaths reported that day (text in the source file).
    """
    model_config = ConfigDict(extra="forbid")
    location: str
    continent: str | None = None
    date: dt.date
    population: float | None = Field(default=None, ge=0)
    total_cases: float | None = None
    new_cases: float | None = None
    total_deaths: float | None = None
    new_deaths: float | None = None


class VaccinationRecord(BaseModel):
    """Daily vaccination record for one location."""
    model_config = ConfigDict(extra="forbid")
    location: str
    date: dt.date
    new_vaccinations: float | None = None


class JoinedRow(BaseModel):
    """A case record joined with the vaccination record of the same day."""
    model_config = ConfigDict(extra="forbid")
    continent: str | None
    location: str
    date: dt.date
    population: float | None = None
    new_vaccinations: float | None = None
    total_cases: float | None = None
    new_cases: float | None = None
    total_deaths: float | None = None
    new_deaths: float | None = None


class RollingVaccinationRow(BaseModel):
    """Row of the rolling-vaccination view."""
    model_config = ConfigDict(extra="forbid")
    continent: str | None
    location: str
    date: dt.date
    population: float | None
    new_vaccinations: float | None
    rolling_people_vaccinated: float = Field(..., ge=0)
    percent_vaccinated: float | None = None


class DeathPercentageRow(BaseModel):
    model_config = ConfigDict(extra="forbid")
    location: str
    date: dt.date
    total_cases: float | None
    total_deaths: float | None
    death_percentage: float | None


class InfectionPercentageRow(BaseModel):
    model_config = ConfigDict(extra="forbid")
    location: str
    date: dt.date
    population: float | None
    total_cases: float | None
    percent_population_infected: float | None


class InfectionRateSummary(BaseModel):
    """Highest infection count and rate per location."""
    model_config = ConfigDict(extra="forbid")
    location: str
    population: float | None
    highest_infection_count: float | None
    percent_population_infected: float | None


class LocationDeathCount(BaseModel):
    model_config = ConfigDict(extra="forbid")
    location: str
    total_death_count: float | None


class ContinentDeathCount(BaseModel):
    model_config = ConfigDict(extra="forbid")
    continent: str
    total_death_count: float | None


class GlobalSummary(BaseModel):
    """Worldwide totals over per-country rows."""
    model_config = ConfigDict(extra="forbid")
    total_cases: float = Field(..., ge=0)
    total_deaths: float = Field(..., ge=0)
    death_percentage: float | None
