"""Cleaning utilities for the pipeline.

Normalizes the raw CovidDeaths / CovidVaccinations tables, checks their schema
and coerces numeric text explicitly (strict or lenient).
"""
