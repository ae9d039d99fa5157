"""CSV adapter for entity imports.

Resolves the header row against an entity contract exactly once per file,
then streams data rows as ``SourceRow`` records keyed by canonical field
name. Value normalization happens downstream in the pipeline.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import IO, Iterator, Mapping, Sequence

from timesheet_app.importer.contracts import EntityContract
from timesheet_app.importer.errors import ImporterError


class CSVParseError(ImporterError):
    """Raised when the file cannot be tokenized into rows."""

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        prefix = f"Line {line_number}: " if line_number else ""
        super().__init__(prefix + message)
        self.line_number = line_number


class CSVHeaderError(CSVParseError):
    """Raised when the CSV header row does not meet contract requirements."""

    def __init__(
        self,
        *,
        missing: Sequence[str] | None = None,
        unexpected: Sequence[str] | None = None,
        duplicates: Sequence[str] | None = None,
    ) -> None:
        details: list[str] = []
        if missing:
            details.append(f"Missing required columns: {', '.join(missing)}.")
        if duplicates:
            details.append(
                "Duplicate columns detected: " + ", ".join(duplicates) + ". Each column may appear only once."
            )
        if unexpected:
            details.append("Unrecognized columns: " + ", ".join(unexpected) + ".")
        message = "CSV header validation failed. " + " ".join(details) if details else "CSV header validation failed."
        super().__init__(message, line_number=1)
        self.missing = tuple(missing or ())
        self.unexpected = tuple(unexpected or ())
        self.duplicates = tuple(duplicates or ())


@dataclass(frozen=True)
class HeaderMapping:
    """Column index to canonical field assignment for one file."""

    raw_headers: tuple[str, ...]
    columns: tuple[tuple[int, str], ...]
    unexpected: tuple[str, ...]
    missing_required: tuple[str, ...]

    @property
    def canonical_fields(self) -> tuple[str, ...]:
        return tuple(name for _, name in self.columns)


@dataclass(frozen=True)
class SourceRow:
    """One data row with cells re-keyed to canonical field names."""

    row_number: int
    source_line: int
    values: Mapping[str, str | None]


@dataclass
class CSVStatistics:
    rows_processed: int = 0
    rows_skipped_blank: int = 0


def _sanitize_header(header: str | None) -> str:
    token = (header or "").strip()
    return token.lstrip("\ufeff").strip()


def resolve_headers(raw_headers: Sequence[str], contract: EntityContract) -> HeaderMapping:
    """Match header cells to canonical fields.

    An exact label match wins; otherwise the BOM/whitespace-stripped cell is
    compared. Columns the contract does not know about are ignored, but a
    header with none of the required columns is rejected outright.
    """

    header_map = contract.header_map()
    columns: list[tuple[int, str]] = []
    unexpected: list[str] = []
    duplicates: list[str] = []
    seen: set[str] = set()

    for index, header in enumerate(raw_headers):
        canonical = header_map.get(header)
        if canonical is None:
            canonical = header_map.get(_sanitize_header(header))
        if canonical is None:
            if _sanitize_header(header):
                unexpected.append(_sanitize_header(header))
            continue
        if canonical in seen:
            duplicates.append(contract.field(canonical).label)
            continue
        seen.add(canonical)
        columns.append((index, canonical))

    required = contract.required_fields()
    missing = tuple(contract.field(name).label for name in required if name not in seen)
    if duplicates:
        raise CSVHeaderError(duplicates=duplicates)
    if required and len(missing) == len(required):
        raise CSVHeaderError(missing=missing, unexpected=unexpected)

    return HeaderMapping(
        raw_headers=tuple(raw_headers),
        columns=tuple(columns),
        unexpected=tuple(unexpected),
        missing_required=missing,
    )


def _cell_is_blank(value: str | None) -> bool:
    return value is None or value.strip() == ""


def decode_upload(data: bytes, *, encoding: str = "utf-8") -> IO[str]:
    """Decode raw upload bytes into a text stream for ``CSVRowReader``."""

    try:
        text = data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise CSVParseError(f"File is not valid {encoding} text ({exc.reason}).") from exc
    return io.StringIO(text, newline="")


class CSVRowReader:
    """CSV reader bound to a single entity contract."""

    def __init__(self, file_obj: IO[str], contract: EntityContract, *, skip_blank_rows: bool = True) -> None:
        self._file_obj = file_obj
        self.contract = contract
        self.skip_blank_rows = skip_blank_rows
        self._header: HeaderMapping | None = None
        self.statistics = CSVStatistics()

    @property
    def header(self) -> HeaderMapping | None:
        return self._header

    def _prepare_reader(self):
        self._file_obj.seek(0)
        reader = csv.reader(self._file_obj, strict=True)
        try:
            raw_headers = next(reader, None)
        except csv.Error as exc:
            raise CSVParseError(str(exc), line_number=reader.line_num) from exc
        if not raw_headers or all(_cell_is_blank(cell) for cell in raw_headers):
            raise CSVParseError("File has no header row.")
        self._header = resolve_headers(raw_headers, self.contract)
        return reader

    def iter_rows(self) -> Iterator[SourceRow]:
        reader = self._prepare_reader()
        columns = self._header.columns if self._header else ()
        row_number = 0
        while True:
            try:
                cells = next(reader)
            except StopIteration:
                break
            except csv.Error as exc:
                raise CSVParseError(str(exc), line_number=reader.line_num) from exc

            row_number += 1
            if self.skip_blank_rows and all(_cell_is_blank(cell) for cell in cells):
                self.statistics.rows_skipped_blank += 1
                continue

            values = {name: (cells[index] if index < len(cells) else None) for index, name in columns}
            self.statistics.rows_processed += 1
            yield SourceRow(row_number=row_number, source_line=reader.line_num, values=values)

    def read_all(self) -> list[SourceRow]:
        """Materialize every row, surfacing parse errors before any work starts."""

        return list(self.iter_rows())
