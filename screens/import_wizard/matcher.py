# screens/import_wizard/matcher.py
"""
Proposes the initial column mapping for the map step.

A header matches a field when, after normalisation, it equals the field's
label, equals its key, or contains its key. The first matching header in
file order wins. Fields nobody matches stay unmapped for the operator.
"""
from __future__ import annotations

import logging
import re
from typing import List, Sequence

from screens.import_wizard.models import ColumnMapping, FieldSpec, Schema

log = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_token(text) -> str:
    return _NON_ALNUM.sub("", str(text or "").lower())


def header_matches(header: str, field: FieldSpec) -> bool:
    h = normalize_token(header)
    if not h:
        return False
    label = normalize_token(field.label)
    key = normalize_token(field.key)
    if label and h == label:
        return True
    if key and (h == key or key in h):
        return True
    return False


def propose_mapping(headers: Sequence[str], schema: Schema) -> ColumnMapping:
    mapping: ColumnMapping = {}
    for f in schema:
        mapping[f.key] = next((h for h in headers if header_matches(h, f)), None)
    matched = sum(1 for v in mapping.values() if v)
    log.debug("Auto-mapped %d of %d fields", matched, len(schema))
    return mapping


def missing_required(mapping: ColumnMapping, schema: Schema) -> List[FieldSpec]:
    return [f for f in schema if f.required and not mapping.get(f.key)]
