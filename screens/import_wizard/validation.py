# screens/import_wizard/validation.py
# -------------------------------------------------------------------
# Per-cell verdicts for the preview grid:
# - missing mandatory value
# - duplicate value in an identifier field (code / reg_no / id / email)
# Rebuilt from scratch on every change; no incremental state.
# -------------------------------------------------------------------
from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Sequence, Tuple

from screens.import_wizard.models import CellRef, DraftRecord, FieldSpec, Schema
from screens.import_wizard.utils import cell_text

IDENTIFIER_TOKENS = ("code", "reg_no", "id", "email")

MISSING = "missing"
DUPLICATE = "duplicate"

ROW_OK = "ok"
ROW_ERROR = "error"


def is_identifier(field: FieldSpec, tokens: Sequence[str] = IDENTIFIER_TOKENS) -> bool:
    key = field.key.lower()
    return any(tok in key for tok in tokens)


def is_missing(value: Any) -> bool:
    if value is None or value == "":
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return True
    return False


def identity_text(value: Any) -> str:
    """Trimmed string a duplicate check compares; '' means exempt."""
    if value is None or value is False:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(cell_text(v) for v in value).strip()
    return cell_text(value).strip()


@dataclass(frozen=True)
class ValidationReport:
    row_count: int = 0
    missing: FrozenSet[CellRef] = frozenset()
    duplicates: FrozenSet[CellRef] = frozenset()
    duplicate_index: Dict[str, Dict[str, Tuple[int, ...]]] = field(default_factory=dict)
    field_keys: Tuple[str, ...] = ()

    def is_missing(self, row: int, key: str) -> bool:
        return CellRef(row, key) in self.missing

    def is_duplicate(self, row: int, key: str) -> bool:
        return CellRef(row, key) in self.duplicates

    def has_violation(self, row: int, key: str) -> bool:
        return self.is_missing(row, key) or self.is_duplicate(row, key)

    def violations_at(self, row: int) -> List[Tuple[str, str]]:
        out = []
        for key in self.field_keys:
            if self.is_missing(row, key):
                out.append((key, MISSING))
            if self.is_duplicate(row, key):
                out.append((key, DUPLICATE))
        return out

    def row_status(self, row: int) -> str:
        return ROW_ERROR if self.violations_at(row) else ROW_OK

    def error_rows(self) -> List[int]:
        rows = {c.row for c in self.missing} | {c.row for c in self.duplicates}
        return sorted(rows)

    @property
    def has_errors(self) -> bool:
        return bool(self.missing or self.duplicates)

    def summary(self) -> Dict[str, int]:
        return {
            "records": self.row_count,
            "error_rows": len(self.error_rows()),
            "missing_cells": len(self.missing),
            "duplicate_cells": len(self.duplicates),
        }

    def issues(self) -> List[Dict[str, Any]]:
        """Flat issue list; rows are 1-based as operators count them."""
        out = []
        for row in self.error_rows():
            for key, kind in self.violations_at(row):
                out.append({"row": row + 1, "field": key, "issue": kind})
        return out


def build_duplicate_index(
    drafts: Sequence[DraftRecord],
    schema: Schema,
    tokens: Sequence[str] = IDENTIFIER_TOKENS,
) -> Dict[str, Dict[str, Tuple[int, ...]]]:
    index: Dict[str, Dict[str, Tuple[int, ...]]] = {}
    for f in schema:
        if not is_identifier(f, tokens):
            continue
        seen: Dict[str, List[int]] = defaultdict(list)
        for i, rec in enumerate(drafts):
            val = identity_text(rec.get(f.key))
            if val:
                seen[val].append(i)
        index[f.key] = {val: tuple(rows) for val, rows in seen.items()}
    return index


def validate_records(
    drafts: Sequence[DraftRecord],
    schema: Schema,
    identifier_tokens: Sequence[str] = IDENTIFIER_TOKENS,
) -> ValidationReport:
    missing = set()
    for i, rec in enumerate(drafts):
        for f in schema:
            if f.required and is_missing(rec.get(f.key)):
                missing.add(CellRef(i, f.key))

    index = build_duplicate_index(drafts, schema, identifier_tokens)
    duplicates = set()
    for key, by_value in index.items():
        for rows in by_value.values():
            if len(rows) > 1:
                duplicates.update(CellRef(r, key) for r in rows)

    return ValidationReport(
        row_count=len(drafts),
        missing=frozenset(missing),
        duplicates=frozenset(duplicates),
        duplicate_index=index,
        field_keys=tuple(f.key for f in schema),
    )
