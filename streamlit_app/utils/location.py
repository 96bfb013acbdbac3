"""
Address-bar binding for the navigation state machine.

Streamlit cannot read the `#fragment` of the page URL, so deep links are carried
in query parameters instead and translated to the fragment grammar the core
understands:

    ?recipe=42&category=minuman   <->   #/recipe/42/minuman

Streamlit reruns the script when the query string changes (shared link opened,
back/forward pressed). sync() is called at the top of every run and notifies
subscribers when the query string no longer matches the last known fragment.
"""

from typing import Callable, List, Optional
from urllib.parse import urlencode

import streamlit as st

from resep.config import AppConfig
from resep.navigation import DEFAULT_CATEGORY, Location, parse_fragment, recipe_path

RECIPE_PARAM = "recipe"
CATEGORY_PARAM = "category"


def fragment_from_params(params) -> str:
    """Translate query parameters into a fragment ("" when there is no recipe link)."""
    recipe_id = params.get(RECIPE_PARAM)
    if not recipe_id:
        return ""
    category = params.get(CATEGORY_PARAM) or DEFAULT_CATEGORY
    return "#" + recipe_path(recipe_id, category)


def share_url(recipe_id: str, category: Optional[str] = None, base_url: Optional[str] = None) -> str:
    """
    Absolute link that reopens a recipe's detail view in this app.

    Args:
        recipe_id: Recipe to link to
        category: Category shown in the detail view (defaults to makanan)
        base_url: Public app URL (defaults to RESEP_APP_URL); any query string
            or fragment on it is dropped
    """
    base = (base_url or AppConfig.get_public_url()).split("#", 1)[0].split("?", 1)[0].rstrip("/")
    query = urlencode({RECIPE_PARAM: recipe_id, CATEGORY_PARAM: category or DEFAULT_CATEGORY})
    return f"{base}/?{query}"


class QueryParamsLocation(Location):
    """Location backed by st.query_params."""

    def __init__(self) -> None:
        self._listeners: List[Callable[[str], None]] = []
        self._fragment = fragment_from_params(st.query_params)

    def get_fragment(self) -> str:
        return self._fragment

    def set_fragment(self, fragment: str) -> None:
        fragment = fragment or ""
        if fragment == self._fragment:
            return
        self._fragment = fragment
        self._write_params(fragment)
        self._emit(fragment)

    def subscribe(self, listener: Callable[[str], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sync(self) -> Optional[str]:
        """
        Pick up a query-string change made outside the app.

        Returns:
            The new fragment if it changed, None otherwise
        """
        fragment = fragment_from_params(st.query_params)
        if fragment == self._fragment:
            return None
        self._fragment = fragment
        self._emit(fragment)
        return fragment

    def _write_params(self, fragment: str) -> None:
        state = parse_fragment(fragment)
        if state is None:
            st.query_params.clear()
            return
        st.query_params[RECIPE_PARAM] = state.selected_recipe_id
        st.query_params[CATEGORY_PARAM] = state.selected_category

    def _emit(self, fragment: str) -> None:
        for listener in list(self._listeners):
            listener(fragment)
