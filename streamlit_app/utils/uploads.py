"""
File upload helpers.

st.file_uploader returns the same file on every rerun until the user clears it.
Handlers that must run once per upload (saving an avatar) check first_upload().
"""

import base64

import streamlit as st


def first_upload(upload, state_key: str) -> bool:
    """
    Return True the first time this uploaded file is seen in the session.

    Args:
        upload: Value returned by st.file_uploader (None when empty)
        state_key: session_state key remembering the last processed file
    """
    if upload is None:
        return False
    file_id = getattr(upload, "file_id", None) or (upload.name, upload.size)
    if st.session_state.get(state_key) == file_id:
        return False
    st.session_state[state_key] = file_id
    return True


def to_data_uri(upload) -> str:
    """Encode an uploaded file as a base64 data URI."""
    encoded = base64.b64encode(upload.getvalue()).decode("ascii")
    return f"data:{upload.type};base64,{encoded}"
