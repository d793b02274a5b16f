"""Aggregation layer.

`window` holds the windowed join aggregator (join, partitioned running sums,
grouped maxima, guarded percentages); `queries` builds the analytical result
sets on top of it and `materialize` writes them to CSV or MongoDB.
"""
