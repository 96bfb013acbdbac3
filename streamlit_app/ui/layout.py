"""
Layout primitives for consistent page structure.

Provides page headers, the top navigation bar and recipe cards.
"""

from typing import Callable, Optional

import streamlit as st

from resep.navigation import PAGE_HOME, PAGE_MAKANAN, PAGE_MINUMAN, PAGE_PROFILE

NAV_ITEMS = [
    (PAGE_HOME, "🏠 Beranda"),
    (PAGE_MAKANAN, "🍛 Makanan"),
    (PAGE_MINUMAN, "🥤 Minuman"),
    (PAGE_PROFILE, "👤 Profil"),
]


def page_header(title: str, subtitle: Optional[str] = None) -> None:
    """
    Render a consistent page header with title and optional subtitle.

    Args:
        title: Main page title
        subtitle: Optional subtitle/description text
    """
    st.markdown(f"# {title}")
    if subtitle:
        st.caption(subtitle)


def nav_bar(active_page: str, on_navigate: Callable[[str], None], on_create: Callable[[], None]) -> None:
    """
    Render the page navigation (list mode only).

    Args:
        active_page: Page currently shown
        on_navigate: Called with the page key when a page button is clicked
        on_create: Called when "Buat Resep" is clicked
    """
    cols = st.columns(len(NAV_ITEMS) + 1)
    for col, (page, label) in zip(cols, NAV_ITEMS):
        with col:
            button_type = "primary" if page == active_page else "secondary"
            if st.button(label, key=f"nav_{page}", type=button_type, use_container_width=True):
                on_navigate(page)
                st.rerun()
    with cols[-1]:
        if st.button("➕ Buat Resep", key="nav_create", use_container_width=True):
            on_create()
            st.rerun()


def recipe_card(recipe, key_prefix: str, on_open: Callable[[str, Optional[str]], None]) -> None:
    """
    Render a compact recipe card with an "open" button.

    Args:
        recipe: RecipeSummary/RecipeDetail
        key_prefix: Unique widget key prefix for this list
        on_open: Called with (recipe_id, category) when the card is opened
    """
    with st.container(border=True):
        if recipe.image_url:
            st.image(recipe.image_url, use_container_width=True)
        st.markdown(f"**{recipe.name}**")
        rating = f"{recipe.average_rating:.1f}" if recipe.average_rating is not None else "N/A"
        st.caption(f"⭐ {rating} · {(recipe.category or '').capitalize()}")
        if st.button("Lihat resep", key=f"{key_prefix}_{recipe.id}", use_container_width=True):
            on_open(recipe.id, recipe.category)
            st.rerun()
