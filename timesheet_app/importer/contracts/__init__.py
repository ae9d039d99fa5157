"""Canonical ingest contracts for the four importable entity kinds."""

from __future__ import annotations

from typing import Mapping

from timesheet_app.importer.errors import UnknownEntityKindError
from timesheet_app.models.importer.schema import EntityKind

from .base import EntityContract, FieldSpec, FieldType
from .person import PERSON_CONTRACT
from .project import PROJECT_CONTRACT
from .task_category import TASK_CATEGORY_CONTRACT
from .time_entry import TIME_ENTRY_CONTRACT

CONTRACTS: Mapping[EntityKind, EntityContract] = {
    EntityKind.PERSON: PERSON_CONTRACT,
    EntityKind.PROJECT: PROJECT_CONTRACT,
    EntityKind.TASK_CATEGORY: TASK_CATEGORY_CONTRACT,
    EntityKind.TIME_ENTRY: TIME_ENTRY_CONTRACT,
}


def coerce_entity_kind(value: str | EntityKind | None) -> EntityKind:
    """Resolve user input (``person``, ``TIME_ENTRY``...) to an ``EntityKind``."""

    if isinstance(value, EntityKind):
        return value
    token = (value or "").strip().upper().replace("-", "_").replace(" ", "_")
    try:
        return EntityKind(token)
    except ValueError:
        raise UnknownEntityKindError(value) from None


def get_contract(kind: str | EntityKind) -> EntityContract:
    """Return the contract registered for ``kind``."""

    return CONTRACTS[coerce_entity_kind(kind)]


__all__ = [
    "CONTRACTS",
    "EntityContract",
    "FieldSpec",
    "FieldType",
    "PERSON_CONTRACT",
    "PROJECT_CONTRACT",
    "TASK_CATEGORY_CONTRACT",
    "TIME_ENTRY_CONTRACT",
    "coerce_entity_kind",
    "get_contract",
]
