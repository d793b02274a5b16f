"""covid_explorer package.

Exploratory analysis of the two-table COVID-19 dataset (daily case/death
records and daily vaccination records per location).

Architecture:
- Raw CSV tables are read as text into Dask DataFrames and cleaned partition-wise
- Numeric text is coerced explicitly (strict or lenient) before any arithmetic
- A windowed join aggregator computes partitioned running totals and ratios
- Result sets are written to CSV, the rolling view can be upserted into MongoDB
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
