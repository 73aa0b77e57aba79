# screens/registry_imports/db.py
# -------------------------------------------------------------------
# Row writers for each registry import target.
# Each writer receives the operator-approved draft rows and an open
# connection (the caller owns the transaction) and returns the number
# of rows written. Rows that cannot be stored are skipped and reported.
# -------------------------------------------------------------------
from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Set, Tuple

from sqlalchemy import text as sa_text
from sqlalchemy.engine import Connection

from screens.import_wizard.transform import to_boolean, to_list
from screens.import_wizard.utils import assign_placeholder_ids, cell_text, split_list

log = logging.getLogger(__name__)

ACTIVITY_CATEGORIES = ["Club", "Society", "Association", "Game", "Sport"]
SUBJECT_LEVELS = ["Primary", "O-Level", "A-Level"]

WriteResult = Tuple[int, List[str]]


def _text(val: Any) -> str:
    return cell_text(val).strip()


def _codes(val: Any) -> List[str]:
    """Upper-cased, trimmed, non-empty codes from a list or comma text."""
    items = val if isinstance(val, (list, tuple)) else split_list(cell_text(val))
    return [_text(c).upper() for c in items if _text(c)]


def canonical_combination_code(code: str) -> str:
    """BCM, MCB and CBM are the same combination."""
    return "".join(sorted((code or "").upper()))


def _existing(conn: Connection, sql: str, params: Optional[Dict[str, Any]] = None) -> Set[str]:
    return {r[0] for r in conn.execute(sa_text(sql), params or {}).fetchall()}


# ----------------------------- Subjects -----------------------------

def write_subjects(conn: Connection, records: List[Dict[str, Any]], level: str = "O-Level") -> WriteResult:
    errors: List[str] = []
    if level not in SUBJECT_LEVELS:
        raise ValueError(f"Unknown subject level '{level}'")

    rows = []
    for i, rec in enumerate(records):
        name, code = _text(rec.get("name")).upper(), _text(rec.get("code")).upper()
        if not name or not code:
            errors.append(f"Row {i + 1}: subject name and code are required")
            continue
        rows.append({
            "name": name,
            "code": code,
            "level": level,
            "papers": json.dumps([cell_text(p).strip() for p in to_list(rec.get("papers")) if cell_text(p).strip()]),
            "short_forms": json.dumps([cell_text(s).strip() for s in to_list(rec.get("short_forms")) if cell_text(s).strip()]),
            "comp": 1 if to_boolean(rec.get("is_compulsory")) else 0,
        })

    for row in assign_placeholder_ids(rows):
        conn.execute(sa_text("""
            INSERT INTO subjects_bank (id, code, name, level, papers_json, short_forms_json, is_compulsory)
            VALUES (:id, :code, :name, :level, :papers, :short_forms, :comp)
            ON CONFLICT(code, level) DO UPDATE SET
                name=excluded.name,
                papers_json=excluded.papers_json,
                short_forms_json=excluded.short_forms_json,
                is_compulsory=excluded.is_compulsory,
                updated_at=CURRENT_TIMESTAMP
        """), row)
    return len(rows), errors


# ----------------------------- Combinations -----------------------------

def write_combinations(conn: Connection, records: List[Dict[str, Any]]) -> WriteResult:
    """
    Principals: exactly three known subject codes not starting with S.
    Subsidiaries: at most two known subject codes starting with S.
    """
    bank = _existing(conn, "SELECT code FROM subjects_bank")
    taken = _existing(conn, "SELECT code FROM a_level_combinations")

    errors: List[str] = []
    rows = []
    for i, rec in enumerate(records):
        p_codes = _codes(rec.get("principal_codes"))
        s_codes = _codes(rec.get("subsidiary_codes"))
        code = canonical_combination_code(_text(rec.get("code")))

        problems = []
        if not code:
            problems.append("combination code is required")
        if len(p_codes) != 3:
            problems.append("exactly 3 principals required")
        if len(s_codes) > 2:
            problems.append("max 2 subsidiaries allowed")
        if not all(pc in bank and not pc.startswith("S") for pc in p_codes):
            problems.append("one or more invalid principal codes")
        if not all(sc in bank and sc.startswith("S") for sc in s_codes):
            problems.append("one or more invalid subsidiary codes")
        if problems:
            errors.extend(f"Row {i + 1}: {p}" for p in problems)
            continue
        if code in taken:
            continue
        taken.add(code)
        rows.append({"code": code, "principals": json.dumps(p_codes), "subs": json.dumps(s_codes)})

    for row in assign_placeholder_ids(rows):
        conn.execute(sa_text("""
            INSERT INTO a_level_combinations (id, code, principal_codes_json, subsidiary_codes_json)
            VALUES (:id, :code, :principals, :subs)
        """), row)
    return len(rows), errors


# ----------------------------- Calendar -----------------------------

def write_holidays(conn: Connection, records: List[Dict[str, Any]]) -> WriteResult:
    errors: List[str] = []
    rows = []
    for i, rec in enumerate(records):
        label = _text(rec.get("label")).upper()
        start, end = _text(rec.get("start_date")), _text(rec.get("end_date"))
        if not (label and start and end):
            errors.append(f"Row {i + 1}: holiday title, start and end dates are required")
            continue
        rows.append({"label": label, "start": start[:10], "end": end[:10]})

    for row in assign_placeholder_ids(rows):
        conn.execute(sa_text("""
            INSERT INTO academic_holidays (id, label, start_date, end_date)
            VALUES (:id, :label, :start, :end)
        """), row)
    return len(rows), errors


# ----------------------------- Activities -----------------------------

def write_activities(conn: Connection, records: List[Dict[str, Any]]) -> WriteResult:
    """Unknown categories fall back to Club; names already registered are skipped."""
    taken = _existing(conn, "SELECT name FROM extracurriculars")
    lookup = {c.lower(): c for c in ACTIVITY_CATEGORIES}

    errors: List[str] = []
    rows = []
    for i, rec in enumerate(records):
        name = _text(rec.get("name")).upper()
        if not name:
            errors.append(f"Row {i + 1}: activity name is required")
            continue
        if name in taken:
            continue
        taken.add(name)
        category = lookup.get((_text(rec.get("category")) or "Club").lower(), "Club")
        rows.append({"name": name, "category": category})

    for row in assign_placeholder_ids(rows):
        conn.execute(sa_text("""
            INSERT INTO extracurriculars (id, name, category) VALUES (:id, :name, :category)
        """), row)
    return len(rows), errors


# ----------------------------- FAQs -----------------------------

def write_faqs(conn: Connection, records: List[Dict[str, Any]]) -> WriteResult:
    errors: List[str] = []
    rows = []
    for i, rec in enumerate(records):
        question, answer = _text(rec.get("question")), _text(rec.get("answer"))
        if not question or not answer:
            errors.append(f"Row {i + 1}: question and answer are required")
            continue
        rows.append({"q": question, "a": answer, "c": _text(rec.get("category")) or "General"})

    for row in assign_placeholder_ids(rows):
        conn.execute(sa_text("""
            INSERT INTO faq_articles (id, question, answer, category) VALUES (:id, :q, :a, :c)
        """), row)
    return len(rows), errors


# ----------------------------- Leadership -----------------------------

def default_term_expiry(today: Optional[date] = None) -> str:
    today = today or date.today()
    return date(today.year + 1, 12, 31).isoformat()


def write_leadership(conn: Connection, records: List[Dict[str, Any]]) -> WriteResult:
    """One roster row per (student, role); expiry defaults to 31 Dec next year."""
    errors: List[str] = []
    rows = []
    fallback_expiry = default_term_expiry()
    for i, rec in enumerate(records):
        name = _text(rec.get("name")).upper()
        roles = _codes(rec.get("roles"))
        if not name or not roles:
            errors.append(f"Row {i + 1}: full name and at least one role are required")
            continue
        expiry = _text(rec.get("expiry"))[:10] or fallback_expiry
        for role in roles:
            rows.append({"name": name, "role": role, "expiry": expiry})

    for row in assign_placeholder_ids(rows):
        conn.execute(sa_text("""
            INSERT INTO school_leadership (id, full_name, role_name, term_expiry)
            VALUES (:id, :name, :role, :expiry)
        """), row)
    return len(rows), errors


# ----------------------------- Audit -----------------------------

def log_import(conn: Connection, target: str, actor: Optional[str], received: int, written: int, note: str = "") -> None:
    conn.execute(sa_text("""
        INSERT INTO import_audit (target, actor, rows_received, rows_written, note)
        VALUES (:t, :a, :r, :w, :n)
    """), {"t": target, "a": actor, "r": received, "w": written, "n": note or None})


def recent_imports(conn: Connection, limit: int = 20) -> List[Dict[str, Any]]:
    rows = conn.execute(sa_text("""
        SELECT target, actor, rows_received, rows_written, note, at
        FROM import_audit ORDER BY id DESC LIMIT :n
    """), {"n": limit}).fetchall()
    return [dict(r._mapping) for r in rows]
