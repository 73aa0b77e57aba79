# screens/import_wizard/errors.py
from __future__ import annotations


class ImportWizardError(Exception):
    """Base class for failures the import wizard reports to the operator."""


class SchemaError(ImportWizardError):
    """The caller supplied an unusable field list."""


class DecodeError(ImportWizardError):
    """The uploaded file could not be read as a table."""


class EmptyFileError(DecodeError):
    """The uploaded file parsed but held no data rows."""


class CommitError(ImportWizardError):
    """The caller's commit callback rejected the final records."""
