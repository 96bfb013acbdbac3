"""
Page renderers for the recipe browser.

Each renderer draws one view of the navigation state machine. Renderers never
change ViewState directly; buttons call the state machine's transitions and
trigger a rerun.
"""

import logging
from datetime import datetime
from typing import Optional

import streamlit as st

from resep.client import RecipeAPIClient, RecipeAPIError
from resep.favorites import FavoritesStore
from resep.identity import ProfileStore
from resep.navigation import PAGE_HOME, NavigationStateMachine, ViewState
from resep.profile_tabs import TAB_FAVORITES, TAB_REVIEWS, ProfileTabs
from resep.reviews import sort_by_date

from ui.feedback import show_empty_state, show_error, working_spinner
from ui.layout import page_header, recipe_card
from utils.location import share_url
from utils.uploads import first_upload, to_data_uri

logger = logging.getLogger(__name__)

LIST_PAGE_SIZE = 12
GRID_COLUMNS = 3
AVATAR_UPLOAD_KEY = "avatar_upload"
PROCESSED_AVATAR_KEY = "processed_avatar_file_id"

PAGE_TITLES = {
    "home": ("Resep Nusantara", "Jelajahi resep makanan dan minuman khas Indonesia"),
    "makanan": ("Makanan", "Resep hidangan utama, camilan dan kue"),
    "minuman": ("Minuman", "Resep minuman segar dan hangat"),
}


def format_date(value: Optional[str]) -> str:
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%d %B %Y")
    except ValueError:
        return value


def _grid(recipes, key_prefix: str, nav: NavigationStateMachine) -> None:
    cols = st.columns(GRID_COLUMNS)
    for i, recipe in enumerate(recipes):
        with cols[i % GRID_COLUMNS]:
            recipe_card(recipe, key_prefix, nav.open_recipe)


def render_recipe_list(client: RecipeAPIClient, nav: NavigationStateMachine, page: str) -> None:
    """Catalog listing for the home, makanan and minuman pages."""
    title, subtitle = PAGE_TITLES.get(page, PAGE_TITLES[PAGE_HOME])
    page_header(title, subtitle)

    search = st.text_input("Cari resep", key=f"search_{page}", placeholder="Contoh: rendang")
    page_key = f"list_page_{page}"
    current = st.session_state.get(page_key, 1)

    category = None if page == PAGE_HOME else page
    try:
        with working_spinner("Memuat resep…"):
            result = client.get_recipes(page=current, limit=LIST_PAGE_SIZE, category=category, search=search or None)
    except RecipeAPIError as e:
        show_error("Gagal memuat resep", hint=e.message)
        return

    if not result.items:
        show_empty_state("Belum ada resep", "Coba kata kunci lain")
        return

    _grid(result.items, f"open_{page}", nav)

    total_pages = result.pagination.total_pages if result.pagination and result.pagination.total_pages else 1
    prev_col, info_col, next_col = st.columns([1, 2, 1])
    with prev_col:
        if st.button("← Sebelumnya", disabled=current <= 1, key=f"prev_{page}"):
            st.session_state[page_key] = current - 1
            st.rerun()
    with info_col:
        st.caption(f"Halaman {current} dari {total_pages}")
    with next_col:
        if st.button("Berikutnya →", disabled=current >= total_pages, key=f"next_{page}"):
            st.session_state[page_key] = current + 1
            st.rerun()


def render_recipe_detail(
    client: RecipeAPIClient,
    nav: NavigationStateMachine,
    favorites: FavoritesStore,
    state: ViewState,
) -> None:
    """Detail view of the selected recipe, with favorite toggle and share link."""
    if st.button("← Kembali"):
        nav.go_back()
        st.rerun()

    recipe_id = state.selected_recipe_id
    try:
        with working_spinner("Memuat resep…"):
            recipe = client.get_recipe(recipe_id)
    except RecipeAPIError as e:
        show_error("Resep tidak ditemukan", hint=e.message)
        return

    page_header(recipe.name, (recipe.category or state.selected_category).capitalize())
    if recipe.image_url:
        st.image(recipe.image_url, use_container_width=True)
    if recipe.description:
        st.write(recipe.description)

    fav_col, edit_col, share_col = st.columns(3)
    with fav_col:
        is_favorite = favorites.has(recipe.id)
        label = "💔 Hapus dari favorit" if is_favorite else "❤️ Tambah ke favorit"
        if st.button(label, use_container_width=True):
            favorites.toggle(recipe.id)
            st.rerun()
    with edit_col:
        if st.button("✏️ Edit resep", use_container_width=True):
            nav.open_edit(recipe.id)
            st.rerun()
    with share_col:
        st.caption("Bagikan resep")
        st.code(share_url(recipe.id, recipe.category or state.selected_category), language=None)

    if recipe.ingredients:
        st.markdown("### Bahan")
        for item in recipe.ingredients if isinstance(recipe.ingredients, list) else [recipe.ingredients]:
            st.markdown(f"- {item}")
    if recipe.steps:
        st.markdown("### Langkah")
        for i, step in enumerate(recipe.steps if isinstance(recipe.steps, list) else [recipe.steps], start=1):
            st.markdown(f"{i}. {step}")

    st.markdown("### Ulasan")
    try:
        reviews = client.get_reviews(recipe.id)
    except RecipeAPIError as e:
        logger.warning("Could not load reviews of %s: %s", recipe.id, e)
        st.caption("Ulasan tidak dapat dimuat")
        return
    if not reviews:
        st.caption("Belum ada ulasan")
    for review in reviews:
        stars = "⭐" * int(review.rating or 0)
        st.markdown(f"**{review.username or 'Anonim'}** {stars}  \n{review.comment or ''}")
        st.caption(format_date(review.created_at))


def render_form_placeholder(nav: NavigationStateMachine, title: str) -> None:
    """Create/edit views. Recipe forms are served by the recipe service itself."""
    page_header(title)
    show_empty_state("Formulir resep belum tersedia di klien ini")
    if st.button("← Kembali"):
        nav.go_back()
        st.rerun()


def _render_profile_header(profile_store: ProfileStore, favorites: FavoritesStore, tabs: ProfileTabs) -> None:
    profile = profile_store.get_profile()
    avatar_col, info_col = st.columns([1, 3])
    with avatar_col:
        if profile.avatar:
            st.image(profile.avatar, width=120)
        else:
            st.markdown("## 👤")
        upload = st.file_uploader(
            "Ganti avatar",
            type=["png", "jpg", "jpeg", "webp"],
            key=AVATAR_UPLOAD_KEY,
            label_visibility="collapsed",
        )
        if first_upload(upload, PROCESSED_AVATAR_KEY):
            result = profile_store.update_avatar(to_data_uri(upload))
            if result.success:
                st.success("Avatar berhasil diperbarui!")
            else:
                show_error(result.message or "Gagal memperbarui avatar")

    with info_col:
        st.markdown(f"# {profile.username}")
        if profile.bio:
            st.write(profile.bio)
        st.caption(f"❤️ {favorites.count()} Favorit · ⭐ {len(tabs.reviews)} Ulasan")
        with st.expander("Edit profil"):
            with st.form("profile_form"):
                username = st.text_input("Username", value=profile.username)
                bio = st.text_area("Bio", value=profile.bio)
                if st.form_submit_button("Simpan"):
                    result = profile_store.save_profile({"username": username, "bio": bio})
                    if result.success:
                        st.success("Profil berhasil diperbarui!")
                        st.rerun()
                    else:
                        show_error(f"Gagal memperbarui profil: {result.message}")
        with st.expander("Lupakan saya"):
            st.caption("Identitas lokal dan profil akan dihapus. Ulasan lama tidak lagi muncul di profil ini.")
            if st.button("Hapus identitas saya", type="secondary"):
                tabs.forget_user()
                st.rerun()


def render_profile(
    nav: NavigationStateMachine,
    profile_store: ProfileStore,
    favorites: FavoritesStore,
    tabs: ProfileTabs,
) -> None:
    """Profile page: header plus favorites / reviews tabs."""
    _render_profile_header(profile_store, favorites, tabs)

    labels = {TAB_FAVORITES: "❤️ Favorit", TAB_REVIEWS: "⭐ Ulasan"}
    choice = st.radio(
        "Tab",
        options=[TAB_FAVORITES, TAB_REVIEWS],
        format_func=labels.get,
        horizontal=True,
        label_visibility="collapsed",
    )
    with working_spinner("Memuat…"):
        tabs.select_tab(choice)

    if choice == TAB_FAVORITES:
        if tabs.favorites_error:
            show_error(tabs.favorites_error)
        elif not tabs.favorites:
            show_empty_state(
                "Belum ada resep favorit",
                "Tambahkan resep ke favorit untuk melihatnya di sini",
            )
        else:
            _grid(tabs.favorites, "fav", nav)
        return

    if st.button("🔄 Muat ulang ulasan"):
        with working_spinner("Memuat ulasan…"):
            tabs.select_tab(TAB_REVIEWS, refresh=True)

    if tabs.reviews_error:
        show_error(tabs.reviews_error)
        return
    if not tabs.reviews:
        show_empty_state("Belum ada ulasan", "Ulasan yang kamu tulis akan muncul di sini")
        report = tabs.reviews_report
        if report is not None:
            st.caption(
                f"Checked {report.total_reviews_checked} reviews across {report.total_recipes} recipes"
            )
        return

    for review in sort_by_date(tabs.reviews):
        with st.container(border=True):
            image_col, body_col = st.columns([1, 4])
            with image_col:
                if review.recipe_image:
                    st.image(review.recipe_image, use_container_width=True)
            with body_col:
                if st.button(review.recipe_name or review.recipe_id, key=f"review_{review.id}"):
                    nav.open_recipe(review.recipe_id, review.recipe_category)
                    st.rerun()
                st.caption(f"{'⭐' * int(review.rating or 0)} · {format_date(review.created_at)}")
                if review.comment:
                    st.write(review.comment)
