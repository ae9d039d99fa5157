"""Shared building blocks for per-entity import contracts.

Each entity kind declares an explicit table of canonical fields and the CSV
header labels accepted for them. The table is the single source of truth for
header resolution, normalization, validation rules, and header templates.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal, Mapping, Tuple

from timesheet_app.models.importer.schema import EntityKind

FieldType = Literal["string", "email", "number", "date", "time", "enum", "boolean"]


@dataclass(frozen=True)
class FieldSpec:
    """Metadata describing a canonical ingest field."""

    name: str
    label: str
    description: str
    type: FieldType = "string"
    required: bool = False
    aliases: Tuple[str, ...] = ()
    choices: Tuple[str, ...] = ()
    minimum: float | None = None
    maximum: float | None = None
    max_length: int | None = None
    default: object | None = None

    def headers(self) -> Tuple[str, ...]:
        """Return the canonical label plus accepted alternates."""

        return (self.label, *self.aliases)


@dataclass(frozen=True)
class EntityContract:
    """Field table and natural key definition for one entity kind."""

    kind: EntityKind
    fields: Tuple[FieldSpec, ...]
    natural_key: Tuple[str, ...]
    conflict_fields: Tuple[str, ...]
    snapshot_fields: Tuple[str, ...]

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def labels(self) -> Tuple[str, ...]:
        """Canonical header row, in template order."""

        return tuple(spec.label for spec in self.fields)

    def required_fields(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields if spec.required)

    def header_map(self) -> Mapping[str, str]:
        """Map every accepted header label to its canonical field name."""

        mapping: dict[str, str] = {}
        for spec in self.fields:
            for header in spec.headers():
                mapping.setdefault(header, spec.name)
        return MappingProxyType(mapping)
