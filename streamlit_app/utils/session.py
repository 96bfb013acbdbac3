"""
Session management utilities for Streamlit pages.

Process-wide resources (storage backend, API client) are created once with
st.cache_resource and shared by every browser tab connected to this server.
Sharing the storage backend is what lets a favorite toggled in one tab show up
in the others.

Per-tab objects (favorites store, navigation state machine, profile tabs) live
in st.session_state and are created on first access.
"""

import streamlit as st

from resep.client import RecipeAPIClient
from resep.favorites import FavoritesStore
from resep.identity import ProfileStore
from resep.navigation import NavigationStateMachine
from resep.profile_tabs import ProfileTabs
from resep.storage import StorageBackend, create_storage

from utils.location import QueryParamsLocation

FAVORITES_STORE_KEY = "favorites_store"
NAVIGATION_KEY = "navigation"
LOCATION_KEY = "location"
PROFILE_TABS_KEY = "profile_tabs"


@st.cache_resource(show_spinner=False)
def get_storage() -> StorageBackend:
    """Storage backend shared by all sessions of this process."""
    return create_storage()


@st.cache_resource(show_spinner=False)
def get_api_client() -> RecipeAPIClient:
    """Recipe API client shared by all sessions of this process."""
    return RecipeAPIClient()


def get_profile_store() -> ProfileStore:
    return ProfileStore(get_storage())


def get_favorites_store() -> FavoritesStore:
    """
    Favorites store of this browser tab.

    Each tab gets its own store (and origin) on the shared backend, so writes
    from other tabs arrive as storage events.
    """
    if FAVORITES_STORE_KEY not in st.session_state:
        st.session_state[FAVORITES_STORE_KEY] = FavoritesStore(get_storage())
    return st.session_state[FAVORITES_STORE_KEY]


def get_location() -> QueryParamsLocation:
    if LOCATION_KEY not in st.session_state:
        st.session_state[LOCATION_KEY] = QueryParamsLocation()
    return st.session_state[LOCATION_KEY]


def get_navigation() -> NavigationStateMachine:
    """
    Navigation state machine of this browser tab.

    Created from the current query string on first access, so a shared link
    opens straight into the recipe detail view.
    """
    if NAVIGATION_KEY not in st.session_state:
        st.session_state[NAVIGATION_KEY] = NavigationStateMachine(get_location())
    return st.session_state[NAVIGATION_KEY]


def get_profile_tabs() -> ProfileTabs:
    if PROFILE_TABS_KEY not in st.session_state:
        st.session_state[PROFILE_TABS_KEY] = ProfileTabs(
            get_api_client(),
            get_favorites_store(),
            get_profile_store(),
        )
    return st.session_state[PROFILE_TABS_KEY]
