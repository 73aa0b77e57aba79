# screens/import_wizard/review.py
"""
Editable preview grid over the draft records.

Only one cell is in edit mode at a time. Committing an edit re-applies the
field's coercion to the typed text, writes it into the draft row and notifies
the owner so verdicts are recomputed. Raw records are never touched.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

from screens.import_wizard.models import CellRef, DraftRecord, Schema, field_index
from screens.import_wizard.transform import AFFIRMATIVE_TOKENS, coerce_input
from screens.import_wizard.utils import cell_text, display_value

log = logging.getLogger(__name__)


class ReviewGrid:
    def __init__(
        self,
        schema: Schema,
        drafts: List[DraftRecord],
        on_change: Optional[Callable[[CellRef], None]] = None,
        affirmative: Sequence[str] = AFFIRMATIVE_TOKENS,
    ):
        self.schema = schema
        self.drafts = drafts
        self.on_change = on_change
        self.affirmative = tuple(affirmative)
        self._fields = field_index(schema)
        self.cursor: Optional[CellRef] = None

    def _check(self, row: int, key: str) -> None:
        if key not in self._fields:
            raise KeyError(f"Unknown field '{key}'")
        if not 0 <= row < len(self.drafts):
            raise IndexError(f"Row {row} is out of range")

    def is_editing(self, row: int, key: str) -> bool:
        return self.cursor == CellRef(row, key)

    def begin_edit(self, row: int, key: str) -> CellRef:
        self._check(row, key)
        self.cursor = CellRef(row, key)
        return self.cursor

    def cancel_edit(self) -> None:
        self.cursor = None

    def value(self, row: int, key: str) -> Any:
        self._check(row, key)
        return self.drafts[row].get(key)

    def edit_text(self, row: int, key: str) -> str:
        """Text an inline editor starts with for this cell."""
        val = self.value(row, key)
        if self._fields[key].is_boolean:
            return "yes" if val else "no"
        if isinstance(val, (list, tuple)):
            return ", ".join(str(v) for v in val)
        return cell_text(val)

    def display(self, row: int, key: str) -> str:
        return display_value(self._fields[key], self.value(row, key))

    def commit_edit(self, text: Any) -> bool:
        if self.cursor is None:
            return False
        ref = self.cursor
        f = self._fields[ref.key]
        self.drafts[ref.row][ref.key] = coerce_input(f, text, self.affirmative)
        self.cursor = None
        log.debug("Edited row %d field %s", ref.row, ref.key)
        if self.on_change:
            self.on_change(ref)
        return True

    def set_cell(self, row: int, key: str, text: Any) -> bool:
        self.begin_edit(row, key)
        return self.commit_edit(text)
