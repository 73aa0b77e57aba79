# screens/import_wizard/transform.py
"""
Turns decoded rows into target-shaped draft rows.

Malformed input degrades to an empty list / False / None instead of raising:
the operator fixes bad cells in the preview grid.
"""
from __future__ import annotations

from typing import Any, List, Optional, Sequence

from screens.import_wizard.models import (
    ColumnMapping,
    DraftRecord,
    FieldSpec,
    FieldType,
    RawRecord,
    Schema,
)
from screens.import_wizard.utils import cell_text, split_list

AFFIRMATIVE_TOKENS = ("yes", "true", "y", "1")


def to_boolean(raw: Any, affirmative: Sequence[str] = AFFIRMATIVE_TOKENS) -> bool:
    if isinstance(raw, bool):
        return raw
    return cell_text(raw).strip().lower() in affirmative


def to_list(raw: Any) -> List[str]:
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, str):
        return split_list(raw)
    return []


def coerce_value(field: FieldSpec, raw: Any, affirmative: Sequence[str] = AFFIRMATIVE_TOKENS) -> Any:
    if field.type is FieldType.LIST:
        return to_list(raw)
    if field.type is FieldType.BOOLEAN:
        return to_boolean(raw, affirmative)
    return raw


def coerce_input(field: FieldSpec, text: Any, affirmative: Sequence[str] = AFFIRMATIVE_TOKENS) -> Any:
    """Coerce what an operator typed into a grid cell."""
    if field.type is FieldType.SCALAR:
        return text
    if field.type is FieldType.LIST and not isinstance(text, (list, tuple)):
        text = "" if text is None else str(text)
    return coerce_value(field, text, affirmative)


def _source_value(record: RawRecord, column: Optional[str]) -> Any:
    if not column:
        return None
    return record.get(column)


def transform_record(
    mapping: ColumnMapping,
    record: RawRecord,
    schema: Schema,
    affirmative: Sequence[str] = AFFIRMATIVE_TOKENS,
) -> DraftRecord:
    return {
        f.key: coerce_value(f, _source_value(record, mapping.get(f.key)), affirmative)
        for f in schema
    }


def transform_records(
    mapping: ColumnMapping,
    records: Sequence[RawRecord],
    schema: Schema,
    affirmative: Sequence[str] = AFFIRMATIVE_TOKENS,
) -> List[DraftRecord]:
    return [transform_record(mapping, rec, schema, affirmative) for rec in records]
