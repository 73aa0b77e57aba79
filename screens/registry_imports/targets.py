# screens/registry_imports/targets.py
"""
Registry screens that feed the import wizard: each target names its
fields and the writer that stores the approved rows.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.engine import Engine

from screens.import_wizard.models import FieldSpec, FieldType
from screens.registry_imports import db

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportTarget:
    key: str
    title: str
    noun: str
    fields: List[FieldSpec]
    writer: Callable[..., db.WriteResult]
    options: Dict[str, List[str]] = field(default_factory=dict)


SUBJECTS = ImportTarget(
    key="subjects",
    title="Subject Ingestion",
    noun="subjects",
    fields=[
        FieldSpec("name", "Subject Name", required=True),
        FieldSpec("code", "Subject Code", required=True),
        FieldSpec("papers", "Papers", type=FieldType.LIST, description="Comma separated, e.g. P1, P2"),
        FieldSpec("short_forms", "Short Forms", type=FieldType.LIST),
        FieldSpec("is_compulsory", "Is Compulsory", type=FieldType.BOOLEAN, description="Yes / No"),
    ],
    writer=db.write_subjects,
    options={"level": db.SUBJECT_LEVELS},
)

COMBINATIONS = ImportTarget(
    key="combinations",
    title="Matrix Data Mapper",
    noun="combinations",
    fields=[
        FieldSpec("code", "Combination Code", required=True, description="e.g. BCM"),
        FieldSpec("principal_codes", "Principal Codes", required=True, type=FieldType.LIST,
                  description="3 comma-separated codes"),
        FieldSpec("subsidiary_codes", "Subsidiary Codes", type=FieldType.LIST,
                  description="Max 2 codes starting with S"),
    ],
    writer=db.write_combinations,
)

HOLIDAYS = ImportTarget(
    key="holidays",
    title="Holiday Ingestion",
    noun="holidays",
    fields=[
        FieldSpec("label", "Holiday Title", required=True),
        FieldSpec("start_date", "Start Date", required=True, description="YYYY-MM-DD"),
        FieldSpec("end_date", "End Date", required=True, description="YYYY-MM-DD"),
    ],
    writer=db.write_holidays,
)

ACTIVITIES = ImportTarget(
    key="activities",
    title="Activity Standard Mapper",
    noun="activity standards",
    fields=[
        FieldSpec("name", "Activity Name", required=True),
        FieldSpec("category", "Classification", required=True,
                  description=" / ".join(db.ACTIVITY_CATEGORIES)),
    ],
    writer=db.write_activities,
)

FAQS = ImportTarget(
    key="faqs",
    title="FAQ Ingestion",
    noun="articles",
    fields=[
        FieldSpec("question", "Question", required=True),
        FieldSpec("answer", "Answer", required=True),
        FieldSpec("category", "Category"),
    ],
    writer=db.write_faqs,
)

LEADERSHIP = ImportTarget(
    key="leadership",
    title="Leadership Roster Import",
    noun="appointments",
    fields=[
        FieldSpec("name", "Full Name", required=True, description="Legal name in registry"),
        FieldSpec("roles", "Roles", required=True, type=FieldType.LIST,
                  description="E.g. Head Prefect (Comma separated for multiple)"),
        FieldSpec("expiry", "Term Expiry", description="YYYY-MM-DD (Optional)"),
    ],
    writer=db.write_leadership,
)

TARGETS: Dict[str, ImportTarget] = {
    t.key: t for t in (SUBJECTS, COMBINATIONS, HOLIDAYS, ACTIVITIES, FAQS, LEADERSHIP)
}


class RegistryCommit:
    """
    Commit callback handed to ImportSession.

    Writes every approved row in one transaction and logs the import.
    Raises ValueError (rolling back) when nothing could be written.
    """

    def __init__(self, engine: Engine, target: ImportTarget, actor: Optional[str] = None, **writer_kwargs: Any):
        self.engine = engine
        self.target = target
        self.actor = actor
        self.writer_kwargs = writer_kwargs
        self.written = 0
        self.errors: List[str] = []

    def __call__(self, records: List[Dict[str, Any]]) -> int:
        with self.engine.begin() as conn:
            written, errors = self.target.writer(conn, records, **self.writer_kwargs)
            if written == 0:
                self.errors = errors
                detail = f": {errors[0]}" if errors else ""
                raise ValueError(f"No new {self.target.noun} detected{detail}")
            db.log_import(conn, self.target.key, self.actor, len(records), written, "; ".join(errors[:3]))

        self.written, self.errors = written, errors
        if errors:
            log.warning("%s import skipped %d row(s): %s", self.target.key, len(errors), errors[:3])
        log.info("%s import wrote %d row(s)", self.target.key, written)
        return written
