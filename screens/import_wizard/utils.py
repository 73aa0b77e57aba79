# screens/import_wizard/utils.py
# -------------------------------------------------------------------
# Small helpers shared by the wizard stages and its Streamlit view
# -------------------------------------------------------------------
from __future__ import annotations

import io
import math
import secrets
from typing import Any, Dict, Iterable, List

import pandas as pd

from screens.import_wizard.models import DraftRecord, FieldSpec, Schema


def cell_text(value: Any) -> str:
    """
    Text form of a spreadsheet cell.
    Drops the '.0' pandas adds to whole numbers read from a column with blanks,
    e.g. 101.0 -> "101".
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def split_list(text: str) -> List[str]:
    return [part.strip() for part in str(text).split(",") if part.strip()]


def display_value(field: FieldSpec, value: Any) -> str:
    """How a draft value reads in the preview grid."""
    if field.is_boolean:
        return "YES" if value else "NO"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) or "-"
    text = cell_text(value)
    return text if text != "" else "-"


def placeholder_id(nbytes: int = 4) -> str:
    """Locally unique key for a row the external store has not numbered yet."""
    return secrets.token_hex(nbytes)


def assign_placeholder_ids(records: Iterable[Dict[str, Any]], key: str = "id") -> List[Dict[str, Any]]:
    out = []
    taken = set()
    for rec in records:
        item = dict(rec)
        if not item.get(key):
            new_id = placeholder_id()
            while new_id in taken:
                new_id = placeholder_id()
            item[key] = new_id
        taken.add(item[key])
        out.append(item)
    return out


def template_csv(schema: Schema) -> str:
    """Header-only CSV whose columns are the field labels."""
    df = pd.DataFrame(columns=[f.label for f in schema])
    return df.to_csv(index=False)


def drafts_frame(schema: Schema, drafts: List[DraftRecord], for_display: bool = True) -> pd.DataFrame:
    rows = []
    for rec in drafts:
        row = {}
        for f in schema:
            val = rec.get(f.key)
            if not for_display:
                row[f.key] = ", ".join(val) if isinstance(val, list) else val
            elif f.is_boolean:
                row[f.key] = bool(val)
            elif isinstance(val, list):
                row[f.key] = ", ".join(val)
            else:
                row[f.key] = cell_text(val)
        rows.append(row)
    return pd.DataFrame(rows, columns=[f.key for f in schema])


def frame_to_csv(df: pd.DataFrame) -> bytes:
    out = io.StringIO()
    df.to_csv(out, index=False)
    return out.getvalue().encode("utf-8")


def issues_frame(issues: List[Dict[str, Any]]) -> pd.DataFrame:
    """One row per flagged cell, as ValidationReport.issues() lists them."""
    return pd.DataFrame(issues, columns=["row", "field", "issue"])
