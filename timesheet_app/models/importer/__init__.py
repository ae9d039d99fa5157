"""Importer audit models."""

from .schema import EntityKind, ImportRowError, ImportRun, ImportRunStatus

__all__ = ["EntityKind", "ImportRowError", "ImportRun", "ImportRunStatus"]
