"""
Standardized feedback utilities for error, empty and loading states.

Only a total failure of a view's data load is shown as an error. Partial results
(e.g. 3 of 5 favorites resolved) are shown as they are, without a banner.
"""

from contextlib import contextmanager
from typing import Optional

import streamlit as st


def show_error(message: str, hint: Optional[str] = None) -> None:
    """
    Display a standardized error message with optional hint.

    Args:
        message: Main error message to display
        hint: Optional hint text to help users resolve the issue
    """
    st.error(f"⚠️ {message}")
    if hint:
        st.caption(f"💡 {hint}")


def show_empty_state(title: str, subtitle: Optional[str] = None) -> None:
    """
    Display a standardized empty state.

    Args:
        title: Main empty state title
        subtitle: Optional subtitle/description text
    """
    st.info(f"📭 **{title}**")
    if subtitle:
        st.caption(subtitle)


@contextmanager
def working_spinner(label: str = "Memuat…"):
    """
    Context manager wrapper for standardized loading spinners.

    Usage:
        with working_spinner("Memuat favorit…"):
            tabs.load_favorites()
    """
    with st.spinner(label):
        yield
