from __future__ import annotations
from typing import Sequence
import streamlit as st

def tagline():
    st.caption("Upload → Map Columns → Preview → Finalize")

def step_crumbs(labels: Sequence[str], current: int):
    """Bold every step up to and including ``current``."""
    crumbs = [f"**{label}**" if i <= current else label for i, label in enumerate(labels)]
    st.caption("  ›  ".join(crumbs))

def field_label(label: str, required: bool = False, description: str | None = None):
    badge = " 🔴 *Mandatory*" if required else ""
    st.markdown(f"**{label}**{badge}")
    if description:
        st.caption(description)

def success(msg: str): st.success(msg)
def warn(msg: str): st.warning(msg)
def info(msg: str): st.info(msg)
def error(msg: str): st.error(msg)
