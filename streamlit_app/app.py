"""
Resep Nusantara - Streamlit Frontend Main Entry Point.

Single-page app: which view is drawn is decided by the navigation state machine
of the current browser tab, not by Streamlit's multi-page routing. Deep links
(`?recipe=<id>&category=<category>`) open the recipe detail view directly.

Run with:
    streamlit run streamlit_app/app.py
"""

import sys
from pathlib import Path

# Ensure the streamlit_app directory is in the Python path
# This allows `utils` and `ui` imports regardless of how the app is run
streamlit_app_dir = Path(__file__).parent
if str(streamlit_app_dir) not in sys.path:
    sys.path.insert(0, str(streamlit_app_dir))

# Import config early to load .env before anything reads environment variables
from resep.config import configure_logging

import streamlit as st

from resep.navigation import MODE_CREATE, MODE_DETAIL, MODE_EDIT, MODE_LIST, PAGE_PROFILE

from ui.layout import nav_bar
from ui.views import render_form_placeholder, render_profile, render_recipe_detail, render_recipe_list
from utils.session import (
    get_api_client,
    get_favorites_store,
    get_location,
    get_navigation,
    get_profile_store,
    get_profile_tabs,
)

configure_logging()

# Page configuration - must be called before any other Streamlit commands
st.set_page_config(
    page_title="Resep Nusantara",
    page_icon="🍲",
    layout="wide",
    initial_sidebar_state="collapsed",
)

nav = get_navigation()
# Shared link opened or back/forward pressed since the last run
get_location().sync()

if nav.show_splash:
    st.markdown("# 🍲 Resep Nusantara")
    st.caption("Kumpulan resep makanan dan minuman Nusantara")
    if st.button("Mulai", type="primary"):
        nav.dismiss_splash()
        st.rerun()
    st.stop()

client = get_api_client()
favorites = get_favorites_store()
tabs = get_profile_tabs()
state = nav.state

# Results for the profile tabs must not land once the profile page is gone
if not (state.view_mode == MODE_LIST and state.active_page == PAGE_PROFILE):
    tabs.deactivate()

if state.view_mode == MODE_DETAIL:
    render_recipe_detail(client, nav, favorites, state)
elif state.view_mode == MODE_CREATE:
    render_form_placeholder(nav, "Buat Resep")
elif state.view_mode == MODE_EDIT:
    render_form_placeholder(nav, "Edit Resep")
else:
    nav_bar(state.active_page, nav.navigate_to, nav.open_create)
    if state.active_page == PAGE_PROFILE:
        render_profile(nav, get_profile_store(), favorites, tabs)
    else:
        render_recipe_list(client, nav, state.active_page)
