# screens/registry_imports/page.py
"""
Registry Imports - one wizard per registry target.
Streamlit navigation calls this file directly.
"""
from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

from core.db import get_engine
from core.forms import tagline
from core.settings import load_settings
from screens.import_wizard import ImportSession, Phase
from screens.import_wizard.ui import render_import_wizard
from screens.registry_imports.db import recent_imports
from screens.registry_imports.targets import TARGETS, RegistryCommit

log = logging.getLogger(__name__)


def _engine():
    if "engine" not in st.session_state:
        st.session_state["engine"] = get_engine(load_settings().db.url)
    return st.session_state["engine"]


def _actor() -> str:
    return ((st.session_state.get("user") or {}).get("email") or "").strip().lower() or "anonymous"


def _session_key(target_key: str) -> str:
    return f"registry_import_session_{target_key}"


def _close(target_key: str):
    st.session_state.pop(_session_key(target_key), None)


def _open_session(target_key: str, writer_kwargs: dict) -> ImportSession:
    target = TARGETS[target_key]
    settings = load_settings()
    title = target.title
    if writer_kwargs.get("level"):
        title = f"{title}: {writer_kwargs['level']}"
    session = ImportSession(
        title=title,
        fields=target.fields,
        on_complete=RegistryCommit(_engine(), target, actor=_actor(), **writer_kwargs),
        on_cancel=lambda: _close(target_key),
        config=settings.imports,
    )
    st.session_state[_session_key(target_key)] = session
    return session


def render():
    settings = load_settings()
    st.title("🗂️ Registry Imports")
    tagline()

    labels = {k: t.title for k, t in TARGETS.items()}
    target_key = st.selectbox("Registry", list(labels), format_func=labels.get, key="registry_import_target")
    target = TARGETS[target_key]

    session = st.session_state.get(_session_key(target_key))
    if session is None:
        writer_kwargs = {}
        for opt, choices in target.options.items():
            writer_kwargs[opt] = st.selectbox(opt.replace("_", " ").title(), choices,
                                              key=f"registry_import_{target_key}_{opt}")
        if st.button(f"📥 Start {target.title}", type="primary", key=f"registry_import_start_{target_key}"):
            _open_session(target_key, writer_kwargs)
            st.rerun()
    else:
        phase = render_import_wizard(session, key=target_key, debug=settings.app.debug)
        if phase is Phase.CLOSED:
            commit = session.on_complete
            if getattr(commit, "errors", None):
                st.warning(f"Skipped {len(commit.errors)} row(s): " + "; ".join(commit.errors[:3]))
            _close(target_key)

    with st.expander("Recent imports"):
        with _engine().begin() as conn:
            rows = recent_imports(conn)
        if rows:
            st.dataframe(pd.DataFrame(rows), use_container_width=True)
        else:
            st.info("No imports yet.")


render()
