# app.py
from __future__ import annotations
import logging
from pathlib import Path
import streamlit as st

from core.settings import load_settings
from core.db import get_engine, init_db

APP_FILE = Path(__file__).resolve()
APP_DIR  = APP_FILE.parent
SCREENS_DIR = APP_DIR / "screens"

log = logging.getLogger(__name__)

# (route stem, title)
PAGES = [
    ("registry_imports", "🗂️ Registry Imports"),
]

def _ensure_engine():
    if "engine" not in st.session_state:
        settings = load_settings()
        st.session_state["engine"] = get_engine(settings.db.url)
    return st.session_state["engine"]

def _page_path(stem: str) -> Path | None:
    for candidate in (SCREENS_DIR / f"{stem}.py", SCREENS_DIR / stem / "page.py"):
        if candidate.exists():
            return candidate
    return None

def _build_pages():
    pages, missing = [], []
    for i, (stem, title) in enumerate(PAGES):
        path = _page_path(stem)
        if path is None:
            missing.append(stem)
            continue
        pages.append(st.Page(
            str(path.relative_to(APP_DIR)).replace("\\", "/"),
            title=title,
            default=(i == 0),
            url_path=stem,
        ))
    if missing:
        st.sidebar.warning(f"Missing pages: {missing}")
    return pages

def main():
    settings = load_settings()
    logging.basicConfig(level=logging.DEBUG if settings.app.debug else logging.INFO)
    st.set_page_config(page_title=settings.app.name, layout="wide")

    engine = _ensure_engine()

    # Run table installers once per browser session
    if "db_initialized" not in st.session_state:
        try:
            init_db(engine)
        except Exception as e:
            st.error("Database schema initialization failed. See details below.")
            with st.expander("Diagnostics"):
                st.exception(e)
            st.stop()
        st.session_state["db_initialized"] = True

    nav = st.navigation(_build_pages())
    nav.run()

if __name__ == "__main__":
    main()
