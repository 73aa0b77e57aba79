# screens/import_wizard/session.py
# -------------------------------------------------------------------
# One import session: upload -> map -> preview -> closed
#
# The caller hands over a title, the target fields and a commit
# callback. Everything else (raw rows, mapping, drafts, verdicts,
# editing cursor) lives here until the view closes or is reset.
# -------------------------------------------------------------------
from __future__ import annotations

import asyncio
import copy
import inspect
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from core.settings import ImportConfig
from screens.import_wizard.decoder import decode_table
from screens.import_wizard.errors import CommitError, DecodeError
from screens.import_wizard.matcher import missing_required, propose_mapping
from screens.import_wizard.models import (
    CellRef,
    ColumnMapping,
    DraftRecord,
    FieldSpec,
    Phase,
    RawRecord,
    build_schema,
)
from screens.import_wizard.review import ReviewGrid
from screens.import_wizard.transform import transform_records
from screens.import_wizard.validation import ValidationReport, validate_records

log = logging.getLogger(__name__)

CommitCallback = Callable[[List[Dict[str, Any]]], Any]


class ImportSession:
    def __init__(
        self,
        title: str,
        fields: Iterable[Union[FieldSpec, Mapping[str, Any]]],
        on_complete: CommitCallback,
        on_cancel: Optional[Callable[[], None]] = None,
        config: Optional[ImportConfig] = None,
    ):
        self.title = title
        self.schema = build_schema(fields)
        self.on_complete = on_complete
        self.on_cancel = on_cancel
        self.config = config or ImportConfig()

        self.phase = Phase.UPLOAD
        self.decoding = False
        self.busy = False
        self.last_error: Optional[str] = None
        self.filename: Optional[str] = None

        self.headers: List[str] = []
        self.raw_records: List[RawRecord] = []
        self.mapping: ColumnMapping = {}
        self.drafts: List[DraftRecord] = []
        self.report = ValidationReport()
        self.grid: Optional[ReviewGrid] = None

    # ---------------------------------------------------------------- upload

    def load_file(self, data: Any, filename: Optional[str] = None) -> bool:
        """Decode an upload and move to the map step. Errors leave the session in upload."""
        if self.phase is not Phase.UPLOAD or self.decoding:
            log.debug("Ignoring file while phase=%s decoding=%s", self.phase.value, self.decoding)
            return False

        self.decoding = True
        try:
            table = decode_table(data, filename)
        except DecodeError as e:
            self.last_error = str(e)
            log.warning("Import '%s': file rejected: %s", self.title, e)
            raise
        finally:
            self.decoding = False

        self.filename = filename or getattr(data, "name", None)
        self.headers = table.headers
        self.raw_records = table.records
        self.mapping = propose_mapping(self.headers, self.schema)
        self.last_error = None
        self.phase = Phase.MAP
        log.info("Import '%s': %d records loaded, moving to map", self.title, len(self.raw_records))
        return True

    # ------------------------------------------------------------------- map

    def set_mapping(self, key: str, column: Optional[str]) -> None:
        if self.phase is not Phase.MAP:
            raise RuntimeError("Column mapping can only change during the map step")
        if key not in {f.key for f in self.schema}:
            raise KeyError(f"Unknown field '{key}'")
        if column and column not in self.headers:
            raise ValueError(f"Column '{column}' is not in the uploaded file")
        self.mapping[key] = column or None

    @property
    def missing_required(self) -> List[FieldSpec]:
        return missing_required(self.mapping, self.schema)

    @property
    def can_proceed(self) -> bool:
        return self.phase is Phase.MAP and not self.missing_required

    def proceed(self) -> bool:
        if not self.can_proceed:
            return False
        self.mapping = dict(self.mapping)
        self.drafts = transform_records(
            self.mapping, self.raw_records, self.schema, self.config.affirmative_tokens
        )
        self.grid = ReviewGrid(
            self.schema, self.drafts, on_change=self._on_edit, affirmative=self.config.affirmative_tokens
        )
        self.revalidate()
        self.phase = Phase.PREVIEW
        log.info(
            "Import '%s': preview with %d records, %d flagged",
            self.title, len(self.drafts), len(self.report.error_rows()),
        )
        return True

    # --------------------------------------------------------------- preview

    def revalidate(self) -> ValidationReport:
        self.report = validate_records(self.drafts, self.schema, self.config.identifier_tokens)
        return self.report

    def _on_edit(self, ref: CellRef) -> None:
        self.revalidate()

    def edit_cell(self, row: int, key: str, text: Any) -> bool:
        if self.phase is not Phase.PREVIEW or self.grid is None:
            return False
        return self.grid.set_cell(row, key, text)

    def summary(self) -> Dict[str, int]:
        if self.phase is Phase.PREVIEW:
            return self.report.summary()
        return {"records": len(self.raw_records), "error_rows": 0, "missing_cells": 0, "duplicate_cells": 0}

    def final_records(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.drafts)

    def finalize(self) -> bool:
        """
        Hand the drafts to the caller. Violations do not block this.
        A rejected callback raises CommitError and keeps the preview intact.
        """
        if self.phase is not Phase.PREVIEW or self.busy:
            return False

        self.busy = True
        try:
            result = self.on_complete(self.final_records())
            if inspect.isawaitable(result):
                asyncio.run(_await(result))
        except Exception as e:
            self.last_error = str(e) or e.__class__.__name__
            log.error("Import '%s': commit callback failed", self.title, exc_info=True)
            raise CommitError(self.last_error) from e
        finally:
            self.busy = False

        self.last_error = None
        self.phase = Phase.CLOSED
        log.info("Import '%s': %d records committed", self.title, len(self.drafts))
        return True

    # ------------------------------------------------------------- exits

    def reset(self) -> None:
        """Discard everything but the schema and start again at upload."""
        self.phase = Phase.UPLOAD
        self.headers = []
        self.raw_records = []
        self.mapping = {}
        self.drafts = []
        self.report = ValidationReport()
        self.grid = None
        self.filename = None
        self.last_error = None
        log.debug("Import '%s': reset to upload", self.title)

    def cancel(self) -> None:
        self.phase = Phase.CLOSED
        if self.grid is not None:
            self.grid.cancel_edit()
        if self.on_cancel:
            self.on_cancel()

    def discard(self) -> None:
        if self.phase is Phase.UPLOAD:
            self.cancel()
        elif self.phase in (Phase.MAP, Phase.PREVIEW):
            self.reset()

    @property
    def cursor(self) -> Optional[CellRef]:
        return self.grid.cursor if self.grid else None


async def _await(awaitable):
    return await awaitable
