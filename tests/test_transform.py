import copy

import pytest

from screens.import_wizard.models import FieldSpec, FieldType
from screens.import_wizard.transform import coerce_input, coerce_value, transform_records

LIST_FIELD = FieldSpec("papers", "Papers", type=FieldType.LIST)
BOOL_FIELD = FieldSpec("is_compulsory", "Is Compulsory", type=FieldType.BOOLEAN)
TEXT_FIELD = FieldSpec("name", "Name")


def test_list_field_splits_and_trims():
    assert coerce_value(LIST_FIELD, "A, B ,C") == ["A", "B", "C"]
    assert coerce_value(LIST_FIELD, "A,, ,B") == ["A", "B"]


def test_list_field_keeps_sequences_and_drops_other_types():
    assert coerce_value(LIST_FIELD, ["x", "y"]) == ["x", "y"]
    assert coerce_value(LIST_FIELD, 42) == []
    assert coerce_value(LIST_FIELD, None) == []


@pytest.mark.parametrize("raw, expected", [
    ("Y", True), ("yes", True), (" TRUE ", True), ("1", True), (1, True), (1.0, True), (True, True),
    ("no", False), ("", False), (None, False), ("maybe", False), (0, False),
])
def test_boolean_field(raw, expected):
    assert coerce_value(BOOL_FIELD, raw) is expected


def test_scalar_passes_through_unchanged():
    assert coerce_value(TEXT_FIELD, 101) == 101
    assert coerce_value(TEXT_FIELD, None) is None
    assert coerce_value(TEXT_FIELD, "  Math ") == "  Math "


def test_transform_selects_mapped_columns_in_order(subject_schema):
    records = [
        {"Subject Code": "M101", "Subject Name": "Math", "Papers": "P1, P2", "Compulsory": "Y"},
        {"Subject Code": "B101", "Subject Name": "Bio", "Papers": None, "Compulsory": "no"},
    ]
    mapping = {"name": "Subject Name", "code": "Subject Code", "papers": "Papers", "is_compulsory": "Compulsory"}

    drafts = transform_records(mapping, records, subject_schema)

    assert drafts == [
        {"name": "Math", "code": "M101", "papers": ["P1", "P2"], "is_compulsory": True},
        {"name": "Bio", "code": "B101", "papers": [], "is_compulsory": False},
    ]


def test_unmapped_fields_are_absent_or_empty(subject_schema):
    drafts = transform_records({"name": "N"}, [{"N": "Math"}], subject_schema)
    assert drafts == [{"name": "Math", "code": None, "papers": [], "is_compulsory": False}]


def test_transform_is_pure(subject_schema):
    records = [{"N": "Math", "P": ["P1"]}]
    before = copy.deepcopy(records)
    mapping = {"name": "N", "papers": "P"}

    first = transform_records(mapping, records, subject_schema)
    second = transform_records(mapping, records, subject_schema)

    assert first == second
    assert records == before
    first[0]["papers"].append("P2")
    assert records[0]["P"] == ["P1"]


def test_coerce_input_reapplies_field_type():
    assert coerce_input(LIST_FIELD, "a, b") == ["a", "b"]
    assert coerce_input(LIST_FIELD, "") == []
    assert coerce_input(BOOL_FIELD, "Yes") is True
    assert coerce_input(TEXT_FIELD, "B101") == "B101"
