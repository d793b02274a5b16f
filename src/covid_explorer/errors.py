"""Exceptions raised by the analysis pipeline.

None of these are swallowed inside the package: strict mode aborts the batch,
lenient mode only ever skips rows that fail coercion.
"""

from __future__ import annotations

from typing import Any, Iterable


class CovidExplorerError(Exception):
    """Base class for all pipeline errors."""


class SchemaError(CovidExplorerError):
    """A required field is absent from an input row or table.

    Attributes:
        dataset: Name of the offending input (e.g. "cases").
        fields: The missing field names.
    """

    def __init__(self, dataset: str, fields: Iterable[str], detail: str | None = None) -> None:
        self.dataset = dataset
        self.fields = tuple(fields)
        msg = f"{dataset}: missing required field(s) {', '.join(self.fields)}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class CoercionError(CovidExplorerError, ValueError):
    """Text could not be parsed as a number."""

    def __init__(self, field: str, value: Any, row: Any = None) -> None:
        self.field = field
        self.value = value
        self.row = row
        where = f" at row {row!r}" if row is not None else ""
        super().__init__(f"cannot coerce {field}={value!r}{where} to a number")


class JoinKeyCollisionError(CovidExplorerError):
    """Duplicate (location, date) keys were found within one input."""

    def __init__(self, dataset: str, keys: list[tuple[Any, ...]]) -> None:
        self.dataset = dataset
        self.keys = keys
        sample = ", ".join(repr(k) for k in keys[:5])
        super().__init__(f"{dataset}: {len(keys)} duplicate join key(s), e.g. {sample}")
