import logging
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from db.models import ImportLog, Student
from export_engine import build_export
from import_engine import run_import, build_template, SchemaError, SqlStudentStore, StoreError
from import_engine.field_map import REQUIRED_HEADERS

from factories import StudentFactory, make_workbook


def _students(session, school):
    return session.query(Student).filter(Student.school_id == school.id).all()


def test_missing_header_rejects_whole_file(session, school):
    """A file without every required header writes nothing at all."""
    raw = make_workbook(
        [("John", "SRN001", "10", "A")],
        headers=["Student Name", "SRN No", "Class", "Section"],
    )
    with pytest.raises(SchemaError, match="Date of Birth"):
        run_import(raw, school_id=school.id, user_id="u1", filename="bad.xlsx")

    assert _students(session, school) == []
    assert session.query(ImportLog).count() == 0


def test_empty_name_in_row_two(session, school):
    raw = make_workbook([
        ("John Doe", "SRN001", "10", "A", "2005-05-15"),
        ("", "SRN002", "10", "B", "2005-03-20"),
        ("Asha Rao", "SRN003", "9", "C", "2006-01-02"),
    ])
    report = run_import(raw, school_id=school.id, user_id="u1", filename="three.xlsx")

    assert (report.total_rows, report.imported, report.failed) == (3, 2, 1)
    assert report.errors == ["Row 2: Missing required fields"]
    assert sorted(s.srn_no for s in _students(session, school)) == ["SRN001", "SRN003"]


def test_existing_srn_is_rejected_without_insert(session, school):
    StudentFactory(school=school, srn_no="SRN001", student_name="Original")
    raw = make_workbook([("Someone Else", "SRN001", "10", "A", "2005-05-15")])

    report = run_import(raw, school_id=school.id, user_id="u1")

    assert report.imported == 0
    assert report.errors == ["Row 1: SRN SRN001 already exists"]
    students = _students(session, school)
    assert [s.student_name for s in students] == ["Original"]


def test_same_srn_in_other_school_is_fine(session, school, other_school):
    StudentFactory(school=other_school, srn_no="SRN001")
    raw = make_workbook([("John", "SRN001", "10", "A", "2005-05-15")])

    report = run_import(raw, school_id=school.id, user_id="u1")

    assert report.imported == 1
    assert report.errors == []


def test_duplicate_srn_within_file(session, school):
    """First occurrence wins; later repeats are flagged before touching the store."""
    raw = make_workbook([
        ("First", "SRN001", "10", "A", "2005-05-15"),
        ("Second", "SRN001", "10", "A", "2005-05-16"),
    ])
    report = run_import(raw, school_id=school.id, user_id="u1")

    assert (report.imported, report.failed) == (1, 1)
    assert report.errors == ["Row 2: SRN SRN001 is duplicated in this file (first seen in row 1)"]
    assert [s.student_name for s in _students(session, school)] == ["First"]


def test_invalid_date_is_row_error(session, school):
    raw = make_workbook([
        ("John", "SRN001", "10", "A", "someday"),
        ("Jane", "SRN002", "10", "A", "20/03/2005"),
    ])
    report = run_import(raw, school_id=school.id, user_id="u1")

    assert report.errors == ["Row 1: Invalid date format for Date of Birth"]
    [jane] = _students(session, school)
    assert jane.date_of_birth == date(2005, 3, 20)


def test_numeric_cells_are_normalised(session, school):
    raw = make_workbook([("Ravi", 1234, 10, "A", date(2007, 8, 9))])
    report = run_import(raw, school_id=school.id, user_id="u1")

    assert report.imported == 1
    [ravi] = _students(session, school)
    assert (ravi.srn_no, ravi.class_label, ravi.date_of_birth) == ("1234", "10", date(2007, 8, 9))


def test_totals_always_add_up(session, school):
    StudentFactory(school=school, srn_no="TAKEN")
    raw = make_workbook([
        ("A", "S1", "1", "A", "2010-01-01"),
        ("B", "", "1", "A", "2010-01-01"),
        ("C", "TAKEN", "1", "A", "2010-01-01"),
        ("D", "S4", "1", "A", "bad"),
        ("E", "S1", "1", "A", "2010-01-01"),
        ("F", "S6", "1", "A", "2010-01-01"),
    ])
    report = run_import(raw, school_id=school.id, user_id="u1")

    assert report.total_rows == 6
    assert report.imported + report.failed == report.total_rows
    assert report.consistent
    assert report.imported == 2


def test_summary_log_is_written(session, school):
    raw = make_workbook([
        ("John", "SRN001", "10", "A", "2005-05-15"),
        ("", "SRN002", "10", "A", "2005-05-15"),
    ])
    report = run_import(raw, school_id=school.id, user_id="clerk-7", filename="march.xlsx")

    log = session.get(ImportLog, report.log_id)
    assert log.user_id == "clerk-7"
    assert log.filename == "march.xlsx"
    assert (log.total_records, log.successful_records, log.failed_records) == (2, 1, 1)
    assert log.errors == "Row 2: Missing required fields"
    assert log.created_at is not None


def test_clean_run_logs_no_errors(session, school):
    raw = make_workbook([("John", "SRN001", "10", "A", "2005-05-15")])
    report = run_import(raw, school_id=school.id, user_id="u1")
    assert session.get(ImportLog, report.log_id).errors is None


def test_header_only_file_is_rejected(session, school):
    with pytest.raises(SchemaError, match="empty"):
        run_import(make_workbook([]), school_id=school.id, user_id="u1")


def test_error_preview_is_capped(session, school):
    rows = [("", f"S{i}", "1", "A", "2010-01-01") for i in range(13)]
    report = run_import(make_workbook(rows), school_id=school.id, user_id="u1")

    body = report.to_dict()
    assert len(body["errors"]) == 13
    assert len(body["error_preview"]) == 10
    assert body["remaining_errors"] == 3


def test_reimporting_an_export_only_finds_duplicates(session, school):
    raw = make_workbook([
        ("John Doe", "SRN001", "10", "A", "2005-05-15"),
        ("Jane Smith", "SRN002", "10", "B", "2005-03-20"),
    ])
    assert run_import(raw, school_id=school.id, user_id="u1").imported == 2

    exported = build_export(_students(session, school))
    again = run_import(exported, school_id=school.id, user_id="u1")

    assert again.total_rows == 2
    assert again.imported == 0
    assert again.failed == 2


class FlakyStore:
    """In-memory store whose insert fails for one SRN."""

    def __init__(self, reject: str):
        self.reject = reject
        self.inserted = []
        self.logs = []

    def find_by_external_id(self, school_id, external_id):
        return None

    def insert(self, school_id, record):
        if record.srn_no == self.reject:
            raise StoreError("duplicate key value violates unique constraint")
        self.inserted.append(record)
        return f"id-{len(self.inserted)}"

    def insert_log(self, entry):
        self.logs.append(entry)
        return "log-1"


def test_insert_failure_is_recorded_and_run_continues():
    store = FlakyStore(reject="SRN002")
    raw = make_workbook([
        ("A", "SRN001", "1", "A", "2010-01-01"),
        ("B", "SRN002", "1", "A", "2010-01-01"),
        ("C", "SRN003", "1", "A", "2010-01-01"),
    ])
    report = run_import(raw, school_id="school-1", user_id="u1", store=store)

    assert [r.srn_no for r in store.inserted] == ["SRN001", "SRN003"]
    assert report.errors == ["Row 2: duplicate key value violates unique constraint"]
    [entry] = store.logs
    assert (entry.total, entry.success, entry.failure) == (3, 2, 1)


class LookupFailingStore(FlakyStore):
    """Store whose SRN lookup fails for one SRN."""

    def find_by_external_id(self, school_id, external_id):
        if external_id == self.reject:
            raise StoreError("server closed the connection")
        return None


def test_lookup_failure_is_recorded_and_run_continues():
    store = LookupFailingStore(reject="SRN002")
    raw = make_workbook([
        ("A", "SRN001", "1", "A", "2010-01-01"),
        ("B", "SRN002", "1", "A", "2010-01-01"),
        ("C", "SRN003", "1", "A", "2010-01-01"),
    ])
    report = run_import(raw, school_id="school-1", user_id="u1", store=store)

    assert (report.imported, report.failed) == (2, 1)
    assert report.errors == ["Row 2: server closed the connection"]
    assert report.log_id == "log-1"


class _DroppedConnectionSession:
    """Session stand-in whose queries fail like a lost database connection."""

    def __init__(self):
        self.rolled_back = False

    def query(self, *_args):
        raise OperationalError("SELECT", {}, Exception("server closed the connection"))

    def rollback(self):
        self.rolled_back = True


def test_sql_lookup_error_becomes_store_error():
    session = _DroppedConnectionSession()
    store = SqlStudentStore(session)

    with pytest.raises(StoreError, match="server closed the connection"):
        store.find_by_external_id("school-1", "SRN001")
    assert session.rolled_back


def test_repeat_of_failed_row_is_still_a_duplicate(session, school):
    """The first occurrence claims the SRN even when it fails itself."""
    raw = make_workbook([
        ("A", "SRN001", "1", "A", "not a date"),
        ("B", "SRN001", "1", "A", "2010-01-01"),
    ])
    report = run_import(raw, school_id=school.id, user_id="u1")

    assert report.imported == 0
    assert report.errors == [
        "Row 1: Invalid date format for Date of Birth",
        "Row 2: SRN SRN001 is duplicated in this file (first seen in row 1)",
    ]
    assert _students(session, school) == []


def test_clean_run_logs_no_tally_warning(session, school, caplog):
    raw = make_workbook([("A", "SRN001", "1", "A", "2010-01-01")])
    with caplog.at_level(logging.WARNING, logger="import_engine.importer"):
        report = run_import(raw, school_id=school.id, user_id="u1")

    assert report.consistent
    assert "tally mismatch" not in caplog.text


def test_template_headers_are_accepted(session, school):
    report = run_import(build_template(), school_id=school.id, user_id="u1",
                        filename="student_import_template.xlsx")
    assert report.imported == 2
    assert sorted(s.srn_no for s in _students(session, school)) == ["SRN001", "SRN002"]


def test_required_headers_unchanged():
    assert REQUIRED_HEADERS == ("Student Name", "SRN No", "Class", "Section", "Date of Birth")
