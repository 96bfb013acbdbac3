"""
Utility modules for the Streamlit frontend.

This package contains:
- session: shared resources and per-tab state in st.session_state
- location: query-string binding of the navigation state machine, share links
- uploads: run-once handling of st.file_uploader results
"""
