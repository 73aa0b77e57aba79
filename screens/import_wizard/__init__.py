# screens/import_wizard/__init__.py
"""
Generic spreadsheet import wizard used by every registry screen.
Callers supply a field list and a commit callback; see ImportSession.
"""
from screens.import_wizard.errors import (
    CommitError,
    DecodeError,
    EmptyFileError,
    ImportWizardError,
    SchemaError,
)
from screens.import_wizard.models import CellRef, FieldSpec, FieldType, Phase, build_schema
from screens.import_wizard.session import ImportSession

__all__ = [
    "CellRef",
    "CommitError",
    "DecodeError",
    "EmptyFileError",
    "FieldSpec",
    "FieldType",
    "ImportSession",
    "ImportWizardError",
    "Phase",
    "SchemaError",
    "build_schema",
]
