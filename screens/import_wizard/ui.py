# screens/import_wizard/ui.py
# -------------------------------------------------------------------
# Streamlit view for an ImportSession:
#   UPLOAD -> MAP COLUMNS -> PREVIEW
# The session object holds all state; this module only renders it and
# routes widget events back into it.
# -------------------------------------------------------------------
from __future__ import annotations

import logging
from typing import Dict, List

import pandas as pd
import streamlit as st

from core.forms import error, field_label, info, step_crumbs, success, warn
from screens.import_wizard.errors import CommitError, DecodeError, EmptyFileError
from screens.import_wizard.models import Phase
from screens.import_wizard.session import ImportSession
from screens.import_wizard.utils import drafts_frame, frame_to_csv, issues_frame, template_csv
from screens.import_wizard.validation import DUPLICATE, ROW_ERROR, ValidationReport

log = logging.getLogger(__name__)

IGNORE_OPTION = "[ IGNORE ]"
STATUS_COL = "Status"
STEPS = [("UPLOAD", Phase.UPLOAD), ("MAP COLUMNS", Phase.MAP), ("PREVIEW", Phase.PREVIEW)]

MISSING_CSS = "background-color: #fef2f2; color: #dc2626"
DUPLICATE_CSS = "background-color: #ef4444; color: white"


def _handle_error(e: Exception, user_message: str, debug: bool = False):
    """Log server-side; show a friendly (or detailed, in debug) notice."""
    log.error("Import wizard error: %s", e, exc_info=True)
    if debug:
        error(f"{user_message}\n\n**Debug Info:**\n```\n{e}\n```")
    else:
        error(user_message)


def _state_key(key: str, name: str) -> str:
    return f"import_wizard_{key}_{name}"


def _bump(key: str, name: str) -> int:
    sk = _state_key(key, name)
    st.session_state[sk] = st.session_state.get(sk, 0) + 1
    return st.session_state[sk]


def _counter(key: str, name: str) -> int:
    return st.session_state.get(_state_key(key, name), 0)


# ----------------------------- header -----------------------------

def _render_header(session: ImportSession):
    st.subheader(f"📥 {session.title}")
    phases = [p for _, p in STEPS]
    current = phases.index(session.phase) if session.phase in phases else len(STEPS) - 1
    step_crumbs([label for label, _ in STEPS], current)
    if session.phase is Phase.PREVIEW:
        st.caption(f"{len(session.drafts)} Records Detected")


# ----------------------------- upload -----------------------------

def _render_upload(session: ImportSession, key: str, debug: bool):
    st.markdown("### Source Ingestion")
    st.download_button(
        "Download Template CSV",
        template_csv(session.schema),
        file_name=f"{key}_import_template.csv",
        mime="text/csv",
        key=_state_key(key, "template_dl"),
    )

    uploaded = st.file_uploader(
        "Select Spreadsheet Payload (.xlsx, .csv)",
        type=session.config.accepted_extensions,
        key=_state_key(key, f"upload_{_counter(key, 'upload_nonce')}"),
    )
    if uploaded is None:
        return

    try:
        with st.spinner("Reading file..."):
            loaded = session.load_file(uploaded, uploaded.name)
    except EmptyFileError:
        error("File is empty.")
        return
    except DecodeError as e:
        _handle_error(e, "Failed to process file. Upload a valid .xlsx or .csv table.", debug)
        return
    if loaded:
        st.rerun()


# ----------------------------- map -----------------------------

def _render_map(session: ImportSession, key: str):
    options = [IGNORE_OPTION] + list(session.headers)
    left, right = st.columns(2)
    left.markdown("**Requirement Schema**")
    right.markdown("**Source Linkage**")

    for f in session.schema:
        c1, c2 = st.columns(2)
        with c1:
            field_label(f.label, f.required, f.description)
        with c2:
            current = session.mapping.get(f.key)
            choice = st.selectbox(
                "Source Column:",
                options,
                index=options.index(current) if current in options else 0,
                key=_state_key(key, f"map_{f.key}_{_counter(key, 'upload_nonce')}"),
            )
            session.set_mapping(f.key, None if choice == IGNORE_OPTION else choice)

    missing = session.missing_required
    if missing:
        st.caption("Map every mandatory field to continue: " + ", ".join(f.label for f in missing))

    if st.button("PROCEED TO PREVIEW ➜", disabled=not session.can_proceed, type="primary",
                 key=_state_key(key, "proceed")):
        if session.proceed():
            st.rerun()


# ----------------------------- preview -----------------------------

def _highlight(report: ValidationReport, frame: pd.DataFrame):
    def styles(df: pd.DataFrame) -> pd.DataFrame:
        css = pd.DataFrame("", index=df.index, columns=df.columns)
        for row in report.error_rows():
            if row not in css.index:
                continue
            for field_key, kind in report.violations_at(row):
                if field_key in css.columns:
                    css.at[row, field_key] = DUPLICATE_CSS if kind == DUPLICATE else MISSING_CSS
        return css
    return frame.style.apply(styles, axis=None)


def _grid_frame(session: ImportSession) -> pd.DataFrame:
    df = drafts_frame(session.schema, session.drafts)
    status = ["⚠️" if session.report.row_status(i) == ROW_ERROR else "✅" for i in range(len(df))]
    df.insert(0, STATUS_COL, status)
    return df


def _collect_edits(session: ImportSession, before: pd.DataFrame, after: pd.DataFrame) -> List[Dict]:
    edits = []
    for f in session.schema:
        for row in range(min(len(before), len(after))):
            old, new = before.at[row, f.key], after.at[row, f.key]
            if f.is_boolean:
                if bool(old) != bool(new):
                    edits.append({"row": row, "key": f.key, "text": "yes" if new else "no"})
            elif ("" if pd.isna(new) else str(new)) != ("" if pd.isna(old) else str(old)):
                edits.append({"row": row, "key": f.key, "text": "" if pd.isna(new) else str(new)})
    return edits


def _render_preview(session: ImportSession, key: str):
    summary = session.summary()
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Records", summary["records"])
    m2.metric("Rows with issues", summary["error_rows"])
    m3.metric("Missing cells", summary["missing_cells"])
    m4.metric("Duplicate cells", summary["duplicate_cells"])

    before = _grid_frame(session)
    column_config = {STATUS_COL: st.column_config.TextColumn(STATUS_COL, width="small")}
    for f in session.schema:
        label = f"{f.label} *" if f.required else f.label
        if f.is_boolean:
            column_config[f.key] = st.column_config.CheckboxColumn(label)
        else:
            column_config[f.key] = st.column_config.TextColumn(label, help=f.description)

    after = st.data_editor(
        before,
        column_config=column_config,
        disabled=[STATUS_COL],
        hide_index=False,
        use_container_width=True,
        num_rows="fixed",
        key=_state_key(key, f"grid_{_counter(key, 'grid_version')}"),
    )

    edits = _collect_edits(session, before, after)
    if edits:
        for e in edits:
            session.edit_cell(e["row"], e["key"], e["text"])
        _bump(key, "grid_version")
        st.rerun()

    if session.report.has_errors:
        st.markdown(
            "**RED HIGHLIGHTS:** Resolve missing mandatory fields or duplicate identifiers before integration."
        )
        page_size = session.config.preview_page_size
        flagged = before.iloc[:page_size]
        with st.expander("Highlighted issues", expanded=True):
            st.dataframe(_highlight(session.report, flagged), use_container_width=True)
            if len(before) > page_size:
                st.caption(f"Showing the first {page_size} of {len(before)} rows.")
            issues = issues_frame(session.report.issues())
            st.download_button(
                "Download Issues CSV",
                frame_to_csv(issues),
                file_name=f"{key}_import_issues.csv",
                mime="text/csv",
                key=_state_key(key, "issues_dl"),
            )

    st.download_button(
        "Download Draft CSV",
        frame_to_csv(drafts_frame(session.schema, session.drafts, for_display=False)),
        file_name=f"{key}_import_draft.csv",
        mime="text/csv",
        key=_state_key(key, "draft_dl"),
    )


# ----------------------------- footer -----------------------------

def _render_footer(session: ImportSession, key: str, debug: bool):
    left, right = st.columns([0.5, 0.5])
    with left:
        if st.button("🔄 DISCARD & RESTART", key=_state_key(key, "discard")):
            session.discard()
            _bump(key, "upload_nonce")
            _bump(key, "grid_version")
            st.rerun()
    with right:
        if session.phase is Phase.PREVIEW:
            label = "INTEGRATING..." if session.busy else "✅ Finalize Integration"
            if st.button(label, disabled=session.busy, type="primary", key=_state_key(key, "finalize")):
                try:
                    with st.spinner("Integrating..."):
                        session.finalize()
                except CommitError as e:
                    _handle_error(e, f"Registry Integration Aborted: {e}", debug)
                else:
                    success(f"Synchronized {len(session.drafts)} records.")


def render_import_wizard(session: ImportSession, key: str, debug: bool = False) -> Phase:
    """Render ``session`` and return its phase after handling this run's events."""
    _render_header(session)

    if session.phase is Phase.UPLOAD:
        _render_upload(session, key, debug)
    elif session.phase is Phase.MAP:
        _render_map(session, key)
    elif session.phase is Phase.PREVIEW:
        _render_preview(session, key)
    else:
        info("This import is closed.")
        return session.phase

    if session.last_error and session.phase is Phase.PREVIEW:
        warn(f"Last attempt failed: {session.last_error}. Edit the rows and finalize again.")

    _render_footer(session, key, debug)
    if st.button("✖ Close", key=_state_key(key, "close")):
        session.cancel()
        st.rerun()
    return session.phase
