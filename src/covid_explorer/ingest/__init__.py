"""Ingestion helpers: download the OWID export and read the source tables."""
