# schemas/registry_imports_schema.py
"""
Tables written by the registry import screens.
List-valued fields are stored as JSON text.
"""
from __future__ import annotations

import logging

from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine

from core.schema_registry import register

logger = logging.getLogger(__name__)


def _exec(conn, sql: str, params: dict = None):
    return conn.execute(sa_text(sql), params or {})


@register("registry_subjects")
def install_subjects_bank(engine: Engine):
    """Master subject bank, one row per subject code and level."""
    with engine.begin() as conn:
        _exec(conn, """
        CREATE TABLE IF NOT EXISTS subjects_bank (
            id TEXT PRIMARY KEY,
            code TEXT NOT NULL,
            name TEXT NOT NULL,
            level TEXT NOT NULL DEFAULT 'O-Level',
            papers_json TEXT NOT NULL DEFAULT '[]',
            short_forms_json TEXT NOT NULL DEFAULT '[]',
            is_compulsory INTEGER NOT NULL DEFAULT 0,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(code, level)
        )""")


@register("registry_combinations")
def install_combinations(engine: Engine):
    """A-level subject combinations (three principals, up to two subsidiaries)."""
    with engine.begin() as conn:
        _exec(conn, """
        CREATE TABLE IF NOT EXISTS a_level_combinations (
            id TEXT PRIMARY KEY,
            code TEXT NOT NULL UNIQUE,
            principal_codes_json TEXT NOT NULL,
            subsidiary_codes_json TEXT NOT NULL DEFAULT '[]',
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )""")


@register("registry_holidays")
def install_holidays(engine: Engine):
    with engine.begin() as conn:
        _exec(conn, """
        CREATE TABLE IF NOT EXISTS academic_holidays (
            id TEXT PRIMARY KEY,
            label TEXT NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )""")


@register("registry_activities")
def install_activities(engine: Engine):
    with engine.begin() as conn:
        _exec(conn, """
        CREATE TABLE IF NOT EXISTS extracurriculars (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            category TEXT NOT NULL DEFAULT 'Club',
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )""")


@register("registry_faqs")
def install_faqs(engine: Engine):
    with engine.begin() as conn:
        _exec(conn, """
        CREATE TABLE IF NOT EXISTS faq_articles (
            id TEXT PRIMARY KEY,
            question TEXT NOT NULL,
            answer TEXT NOT NULL,
            category TEXT NOT NULL DEFAULT 'General',
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )""")


@register("registry_leadership")
def install_leadership(engine: Engine):
    """Student leadership roster; one row per (student name, role)."""
    with engine.begin() as conn:
        _exec(conn, """
        CREATE TABLE IF NOT EXISTS school_leadership (
            id TEXT PRIMARY KEY,
            full_name TEXT NOT NULL,
            role_name TEXT NOT NULL,
            term_expiry TEXT,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )""")


@register("registry_import_audit")
def install_import_audit(engine: Engine):
    """One row per finalized import."""
    with engine.begin() as conn:
        _exec(conn, """
        CREATE TABLE IF NOT EXISTS import_audit (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            target TEXT NOT NULL,
            actor TEXT,
            rows_received INTEGER NOT NULL DEFAULT 0,
            rows_written INTEGER NOT NULL DEFAULT 0,
            note TEXT,
            at DATETIME DEFAULT CURRENT_TIMESTAMP
        )""")
    logger.debug("Registry import tables ready")
