import io

import pytest

from timesheet_app.importer.adapters import CSVHeaderError, CSVParseError, CSVRowReader, decode_upload
from timesheet_app.importer.contracts import PERSON_CONTRACT, TIME_ENTRY_CONTRACT


def _make_csv(contents: str) -> io.StringIO:
    stream = io.StringIO(contents, newline="")
    stream.seek(0)
    return stream


def test_reader_maps_labels_to_canonical_fields():
    stream = _make_csv("Employee ID,Name,Email,Role\n" "E1,Alice,alice@example.com,ARCHITECT\n")

    reader = CSVRowReader(stream, PERSON_CONTRACT)
    rows = list(reader.iter_rows())

    assert reader.header is not None
    assert reader.header.canonical_fields == ("employeeId", "name", "email", "role")
    assert reader.header.missing_required == ()
    assert rows[0].values == {
        "employeeId": "E1",
        "name": "Alice",
        "email": "alice@example.com",
        "role": "ARCHITECT",
    }
    assert reader.statistics.rows_processed == 1


def test_reader_strips_bom_and_whitespace_from_headers():
    stream = _make_csv("\ufeffEmployee ID , Name,Email,Role\n" "E1,Alice,alice@example.com,ARCHITECT\n")

    reader = CSVRowReader(stream, PERSON_CONTRACT)
    rows = reader.read_all()

    assert reader.header.canonical_fields == ("employeeId", "name", "email", "role")
    assert rows[0].values["employeeId"] == "E1"


def test_stage_id_and_task_id_headers_are_equivalent():
    for header in ("Stage ID", "Task ID"):
        stream = _make_csv(f"Employee ID,Project Code,{header},Date\n" "E1,P1,TD.01.00,15/1/2024\n")
        rows = CSVRowReader(stream, TIME_ENTRY_CONTRACT).read_all()
        assert rows[0].values["taskId"] == "TD.01.00"


def test_unknown_columns_are_ignored():
    stream = _make_csv("Employee ID,Name,Email,Role,Favourite Colour\n" "E1,Alice,a@example.com,ARCHITECT,teal\n")

    reader = CSVRowReader(stream, PERSON_CONTRACT)
    rows = reader.read_all()

    assert reader.header.unexpected == ("Favourite Colour",)
    assert "Favourite Colour" not in rows[0].values


def test_missing_optional_cells_are_none():
    stream = _make_csv("Employee ID,Name,Email,Role,Position\n" "E1,Alice,a@example.com,ARCHITECT\n")

    rows = CSVRowReader(stream, PERSON_CONTRACT).read_all()

    assert rows[0].values["position"] is None


def test_reader_rejects_header_without_required_columns():
    stream = _make_csv("Colour,Shape\n" "teal,square\n")

    with pytest.raises(CSVHeaderError) as excinfo:
        CSVRowReader(stream, PERSON_CONTRACT).read_all()

    error = excinfo.value
    assert "Missing required columns" in str(error)
    assert "Employee ID" in error.missing
    assert error.line_number == 1


def test_partial_required_headers_surface_as_row_errors_later():
    stream = _make_csv("Employee ID,Name\n" "E1,Alice\n")

    reader = CSVRowReader(stream, PERSON_CONTRACT)
    rows = reader.read_all()

    assert reader.header.missing_required == ("Email", "Role")
    assert len(rows) == 1


def test_reader_rejects_duplicate_columns():
    stream = _make_csv("Employee ID,employee_id,Name,Email,Role\n" "E1,E1,Alice,a@example.com,ARCHITECT\n")

    with pytest.raises(CSVHeaderError) as excinfo:
        CSVRowReader(stream, PERSON_CONTRACT).read_all()

    assert excinfo.value.duplicates == ("Employee ID",)


def test_reader_skips_blank_rows_but_keeps_numbering():
    stream = _make_csv(
        "Employee ID,Name,Email,Role\n"
        "E1,Alice,a@example.com,ARCHITECT\n"
        ",,,\n"
        "E2,Bob,b@example.com,ASSOCIATE\n"
    )

    reader = CSVRowReader(stream, PERSON_CONTRACT)
    rows = list(reader.iter_rows())

    assert [row.row_number for row in rows] == [1, 3]
    assert reader.statistics.rows_processed == 2
    assert reader.statistics.rows_skipped_blank == 1


def test_quoted_cells_may_contain_commas_and_newlines():
    stream = _make_csv(
        "Employee ID,Project Code,Date,Description\n" 'E1,P1,15/1/2024,"Site visit, then\nclient call"\n'
    )

    rows = CSVRowReader(stream, TIME_ENTRY_CONTRACT).read_all()

    assert rows[0].values["description"] == "Site visit, then\nclient call"


def test_reader_raises_for_empty_file():
    with pytest.raises(CSVParseError):
        CSVRowReader(_make_csv(""), PERSON_CONTRACT).read_all()


def test_decode_upload_rejects_non_utf8_bytes():
    with pytest.raises(CSVParseError) as excinfo:
        decode_upload(b"Employee ID\n\xff\xfe\n")

    assert "not valid utf-8" in str(excinfo.value)
