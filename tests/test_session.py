import pytest

from core.settings import ImportConfig
from screens.import_wizard import (
    CommitError,
    DecodeError,
    EmptyFileError,
    FieldSpec,
    ImportSession,
    Phase,
    SchemaError,
)
from screens.import_wizard.models import CellRef
from tests.conftest import csv_bytes


def _subjects_csv(rows):
    return csv_bytes(rows, ["Subject Code", "Subject Name", "Papers", "Compulsory"])


@pytest.fixture
def committed():
    return []


@pytest.fixture
def session(subject_schema, committed):
    return ImportSession("Subject Ingestion", subject_schema, on_complete=committed.extend)


def test_full_flow_hands_typed_records_to_caller(session, committed):
    data = _subjects_csv([["M101", "Math", "P1, P2", "Y"], ["B101", "Bio", None, "no"]])

    assert session.load_file(data, "subjects.csv")
    assert session.phase is Phase.MAP
    assert session.mapping == {
        "name": "Subject Name", "code": "Subject Code", "papers": "Papers", "is_compulsory": None,
    }

    session.set_mapping("is_compulsory", "Compulsory")
    assert session.proceed()
    assert session.phase is Phase.PREVIEW
    assert session.summary()["records"] == 2

    assert session.finalize()
    assert session.phase is Phase.CLOSED
    assert committed == [
        {"name": "Math", "code": "M101", "papers": ["P1", "P2"], "is_compulsory": True},
        {"name": "Bio", "code": "B101", "papers": [], "is_compulsory": False},
    ]


def test_duplicate_codes_flagged_then_fixed_by_edit(code_name_schema):
    s = ImportSession("Codes", code_name_schema, on_complete=lambda records: None)
    s.load_file(csv_bytes([["M1", "a"], ["M1", "b"], ["B1", "c"]], ["Code", "Name"]), "codes.csv")
    s.proceed()

    assert s.report.is_duplicate(0, "code") and s.report.is_duplicate(1, "code")
    assert not s.report.is_duplicate(2, "code")

    assert s.edit_cell(1, "code", "C1")
    assert not s.report.has_errors
    # raw rows keep the uploaded value
    assert s.raw_records[1]["Code"] == "M1"


def test_blank_code_flagged_missing_then_fixed_by_edit(code_name_schema):
    s = ImportSession("Codes", code_name_schema, on_complete=lambda records: None)
    s.load_file(b"code,name\n,Bio\n", "codes.csv")
    s.proceed()

    assert s.report.is_missing(0, "code")
    assert not s.report.is_duplicate(0, "code")
    assert not s.report.has_violation(0, "name")

    assert s.edit_cell(0, "code", "B101")
    assert not s.report.has_errors
    assert not s.report.has_violation(0, "name")
    assert s.drafts[0] == {"code": "B101", "name": "Bio"}


def test_missing_value_flagged_but_finalize_allowed(code_name_schema):
    received = []
    s = ImportSession("Codes", code_name_schema, on_complete=received.extend)
    s.load_file(csv_bytes([["M1", None], ["B1", "Bio"]], ["Code", "Name"]), "codes.csv")
    s.proceed()

    assert s.report.is_missing(0, "name")
    assert s.report.error_rows() == [0]
    assert s.finalize()
    assert len(received) == 2


def test_blocked_until_required_fields_mapped(code_name_schema):
    s = ImportSession("Codes", code_name_schema, on_complete=lambda records: None)
    s.load_file(csv_bytes([["M1", "Math"]], ["Code", "Title"]), "codes.csv")

    assert [f.key for f in s.missing_required] == ["name"]
    assert not s.can_proceed
    assert s.proceed() is False
    assert s.phase is Phase.MAP

    s.set_mapping("name", "Title")
    assert s.can_proceed
    assert s.proceed()


def test_set_mapping_rejects_bad_input(session):
    with pytest.raises(RuntimeError):
        session.set_mapping("code", "Subject Code")

    session.load_file(_subjects_csv([["M1", "Math", "", ""]]), "s.csv")
    with pytest.raises(KeyError):
        session.set_mapping("unknown", "Subject Code")
    with pytest.raises(ValueError):
        session.set_mapping("code", "Not A Column")

    session.set_mapping("papers", None)
    assert session.mapping["papers"] is None


def test_decode_failure_stays_in_upload(session):
    with pytest.raises(EmptyFileError):
        session.load_file(b"", "subjects.csv")
    assert session.phase is Phase.UPLOAD
    assert session.last_error
    assert session.decoding is False

    with pytest.raises(DecodeError):
        session.load_file(b"not a workbook", "subjects.xlsx")
    assert session.phase is Phase.UPLOAD


def test_second_file_ignored_while_decoding(session):
    session.decoding = True
    assert session.load_file(_subjects_csv([["M1", "Math", "", ""]]), "s.csv") is False
    assert session.phase is Phase.UPLOAD


def test_file_ignored_outside_upload(session):
    data = _subjects_csv([["M1", "Math", "", ""]])
    session.load_file(data, "s.csv")
    assert session.load_file(data, "s.csv") is False


def test_empty_schema_proceeds_immediately():
    received = []
    s = ImportSession("Nothing", [], on_complete=received.extend)
    s.load_file(csv_bytes([["x"], ["y"]], ["Anything"]), "any.csv")

    assert s.can_proceed
    s.proceed()
    s.finalize()
    assert received == [{}, {}]


def test_dict_fields_and_duplicate_keys():
    s = ImportSession("Dicts", [{"key": "roles", "label": "Roles", "type": "array", "required": True}],
                      on_complete=lambda records: None)
    assert s.schema == [FieldSpec("roles", "Roles", required=True, type="list")]

    with pytest.raises(SchemaError):
        ImportSession("Dup", [FieldSpec("a", "A"), FieldSpec("a", "B")], on_complete=lambda r: None)


def test_callback_receives_a_copy(code_name_schema):
    def mangle(records):
        records[0]["code"] = "CHANGED"

    s = ImportSession("Codes", code_name_schema, on_complete=mangle)
    s.load_file(csv_bytes([["M1", "Math"]], ["Code", "Name"]), "codes.csv")
    s.proceed()
    s.finalize()
    assert s.drafts[0]["code"] == "M1"


def test_rejected_commit_keeps_preview(code_name_schema):
    calls = []

    def reject(records):
        calls.append(records)
        if len(calls) == 1:
            raise ValueError("No new subjects detected")

    s = ImportSession("Codes", code_name_schema, on_complete=reject)
    s.load_file(csv_bytes([["M1", "Math"]], ["Code", "Name"]), "codes.csv")
    s.proceed()
    s.edit_cell(0, "name", "Maths")

    with pytest.raises(CommitError, match="No new subjects detected"):
        s.finalize()
    assert s.phase is Phase.PREVIEW
    assert s.busy is False
    assert s.drafts[0]["name"] == "Maths"
    assert s.last_error == "No new subjects detected"

    assert s.finalize()
    assert s.phase is Phase.CLOSED
    assert s.last_error is None


def test_async_callback_is_awaited(code_name_schema):
    received = []

    async def commit(records):
        received.extend(records)

    s = ImportSession("Codes", code_name_schema, on_complete=commit)
    s.load_file(csv_bytes([["M1", "Math"]], ["Code", "Name"]), "codes.csv")
    s.proceed()
    assert s.finalize()
    assert received == [{"code": "M1", "name": "Math"}]


def test_finalize_ignored_while_busy(code_name_schema):
    received = []
    s = ImportSession("Codes", code_name_schema, on_complete=received.extend)
    s.load_file(csv_bytes([["M1", "Math"]], ["Code", "Name"]), "codes.csv")
    s.proceed()

    s.busy = True
    assert s.finalize() is False
    assert received == []
    assert s.phase is Phase.PREVIEW


def test_discard_from_map_and_preview_resets(session):
    data = _subjects_csv([["M1", "Math", "", ""]])
    session.load_file(data, "s.csv")
    session.discard()
    assert session.phase is Phase.UPLOAD
    assert session.headers == [] and session.mapping == {}

    session.load_file(data, "s.csv")
    session.proceed()
    session.grid.begin_edit(0, "name")
    session.discard()
    assert session.phase is Phase.UPLOAD
    assert session.drafts == []
    assert session.cursor is None


def test_discard_from_upload_and_cancel_close(subject_schema):
    cancelled = []
    s = ImportSession("S", subject_schema, on_complete=lambda r: None, on_cancel=lambda: cancelled.append(True))
    s.discard()
    assert s.phase is Phase.CLOSED
    assert cancelled == [True]


def test_cancel_mid_edit_clears_cursor(session):
    session.load_file(_subjects_csv([["M1", "Math", "", ""]]), "s.csv")
    session.proceed()
    session.grid.begin_edit(0, "code")
    assert session.cursor == CellRef(0, "code")

    session.cancel()
    assert session.phase is Phase.CLOSED
    assert session.cursor is None


def test_config_tokens_are_used():
    schema = [FieldSpec("house", "House"), FieldSpec("active", "Active", type="boolean")]
    config = ImportConfig(identifier_tokens=["house"], affirmative_tokens=["ja"])
    s = ImportSession("Houses", schema, on_complete=lambda r: None, config=config)
    s.load_file(csv_bytes([["Red", "ja"], ["Red", "yes"]], ["House", "Active"]), "h.csv")
    s.proceed()

    assert s.drafts[0]["active"] is True
    assert s.drafts[1]["active"] is False
    assert s.report.is_duplicate(0, "house")
