import pytest

from screens.import_wizard.models import FieldSpec, FieldType
from screens.import_wizard.utils import (
    assign_placeholder_ids,
    cell_text,
    display_value,
    drafts_frame,
    issues_frame,
    template_csv,
)
from screens.import_wizard.validation import validate_records


@pytest.mark.parametrize("value, expected", [
    (None, ""), (float("nan"), ""), (101.0, "101"), (2.5, "2.5"), (7, "7"), (True, "true"), ("M1", "M1"),
])
def test_cell_text(value, expected):
    assert cell_text(value) == expected


def test_display_value():
    assert display_value(FieldSpec("c", "C", type=FieldType.BOOLEAN), True) == "YES"
    assert display_value(FieldSpec("c", "C", type=FieldType.BOOLEAN), None) == "NO"
    assert display_value(FieldSpec("p", "P", type=FieldType.LIST), ["P1", "P2"]) == "P1, P2"
    assert display_value(FieldSpec("n", "N"), "") == "-"


def test_placeholder_ids_fill_only_blank_keys():
    rows = assign_placeholder_ids([{"id": "keep"}, {"id": ""}, {}])
    assert rows[0]["id"] == "keep"
    assert rows[1]["id"] and rows[2]["id"]
    assert len({r["id"] for r in rows}) == 3


def test_template_csv_uses_labels(subject_schema):
    assert template_csv(subject_schema).splitlines() == ["Subject Name,Subject Code,Papers,Is Compulsory"]


def test_drafts_frame(subject_schema):
    drafts = [{"name": "Math", "code": 101.0, "papers": ["P1", "P2"], "is_compulsory": None}]

    shown = drafts_frame(subject_schema, drafts)
    assert list(shown.columns) == ["name", "code", "papers", "is_compulsory"]
    assert shown.iloc[0].tolist() == ["Math", "101", "P1, P2", False]

    raw = drafts_frame(subject_schema, drafts, for_display=False)
    assert raw.at[0, "papers"] == "P1, P2"


def test_issues_frame_columns(code_name_schema):
    report = validate_records([{"code": "M1", "name": ""}], code_name_schema)
    frame = issues_frame(report.issues())
    assert frame.to_dict("records") == [{"row": 1, "field": "name", "issue": "missing"}]
    assert list(issues_frame([]).columns) == ["row", "field", "issue"]
