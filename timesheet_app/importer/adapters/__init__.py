"""File adapters that turn uploads into canonical source rows."""

from .csv_rows import (
    CSVHeaderError,
    CSVParseError,
    CSVRowReader,
    CSVStatistics,
    HeaderMapping,
    SourceRow,
    decode_upload,
    resolve_headers,
)

__all__ = [
    "CSVHeaderError",
    "CSVParseError",
    "CSVRowReader",
    "CSVStatistics",
    "HeaderMapping",
    "SourceRow",
    "decode_upload",
    "resolve_headers",
]
