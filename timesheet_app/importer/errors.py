"""Exception hierarchy for importer failures that abort a whole file or run.

Row-scoped problems (conversion, schema, referential, uniqueness, column data) are
returned as values by the pipeline stages and never raised.
"""

from __future__ import annotations


class ImporterError(Exception):
    """Base exception for importer failures."""


class UnknownEntityKindError(ImporterError):
    """Raised when a caller names an entity kind the importer does not support."""

    def __init__(self, value: object) -> None:
        super().__init__(
            f"Unsupported entity kind '{value}'. Expected one of: PERSON, PROJECT, TASK_CATEGORY, TIME_ENTRY."
        )
        self.value = value


class DecisionParseError(ImporterError):
    """Raised when the duplicate-decision payload is malformed."""
