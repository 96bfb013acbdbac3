"""
Tests for the profile page tabs.

Covers which pipeline each tab triggers, error messages, the reviews cache
and, most importantly, that results arriving for a tab that is no longer
shown are dropped.
"""

import gc
from unittest.mock import Mock

import pytest

from resep.client import RecipeAPIError
from resep.favorites import FavoritesStore
from resep.identity import ProfileStore
from resep.models import Pagination, RecipeDetail, RecipePage, RecipeSummary, ReconciliationReport, Review
from resep.profile_tabs import (
    FAVORITES_ERROR_MESSAGE,
    REVIEWS_ERROR_MESSAGE,
    TAB_FAVORITES,
    TAB_REVIEWS,
    ProfileTabs,
)
from resep.storage import MemoryStorage
from resep.utils.cache import clear_cache, get_cached_reviews, make_reviews_cache_key


@pytest.fixture(autouse=True)
def empty_cache():
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def profile_store(storage):
    return ProfileStore(storage)


@pytest.fixture
def favorites(storage):
    store = FavoritesStore(storage)
    yield store
    store.close()


@pytest.fixture
def client(profile_store):
    identifier = profile_store.get_identifier()
    client = Mock()
    client.base_url = "http://api.test"
    client.get_recipe.side_effect = lambda recipe_id: RecipeDetail(id=recipe_id, name=f"Resep {recipe_id}")
    client.get_recipes.return_value = RecipePage(
        items=[RecipeSummary(id="1", name="Soto")],
        pagination=Pagination(page=1, total_pages=1),
    )
    client.get_reviews.return_value = [Review(id="r1", user_identifier=identifier, rating=5)]
    return client


@pytest.fixture
def tabs(client, favorites, profile_store):
    profile_tabs = ProfileTabs(client, favorites, profile_store, max_workers=2)
    yield profile_tabs
    profile_tabs.close()


class TestTabSelection:
    """Test cases for loading data when a tab is entered."""

    def test_favorites_tab_materializes_favorites(self, tabs, favorites):
        favorites.add("3")
        favorites.add("1")

        tabs.select_tab(TAB_FAVORITES)

        assert [r.id for r in tabs.favorites] == ["3", "1"]
        assert tabs.favorites_loading is False
        assert tabs.favorites_error is None

    def test_reviews_tab_reconciles_reviews(self, tabs):
        tabs.select_tab(TAB_REVIEWS)

        assert [r.id for r in tabs.reviews] == ["r1"]
        assert tabs.reviews[0].recipe_name == "Soto"
        assert tabs.reviews_report.total_recipes == 1

    def test_unknown_tab(self, tabs):
        with pytest.raises(ValueError):
            tabs.select_tab("settings")

    def test_reselecting_active_tab_does_not_reload(self, tabs, client):
        tabs.select_tab(TAB_REVIEWS)
        tabs.select_tab(TAB_REVIEWS)
        assert client.get_recipes.call_count == 1

    def test_reviews_are_served_from_cache(self, tabs, client):
        """Test that switching back to reviews reuses the recent report."""
        tabs.select_tab(TAB_REVIEWS)
        tabs.select_tab(TAB_FAVORITES)
        tabs.select_tab(TAB_REVIEWS)
        assert client.get_recipes.call_count == 1
        assert [r.id for r in tabs.reviews] == ["r1"]

    def test_refresh_bypasses_cache(self, tabs, client):
        tabs.select_tab(TAB_REVIEWS)
        tabs.select_tab(TAB_REVIEWS, refresh=True)
        assert client.get_recipes.call_count == 2

    def test_invalidate_reviews_cache(self, tabs, client):
        tabs.select_tab(TAB_REVIEWS)
        tabs.invalidate_reviews_cache()
        tabs.select_tab(TAB_FAVORITES)
        tabs.select_tab(TAB_REVIEWS)
        assert client.get_recipes.call_count == 2


class TestErrors:
    """Test cases for load failures."""

    def test_reviews_drain_failure_sets_message(self, tabs, client):
        client.get_recipes.side_effect = RecipeAPIError("Could not connect")
        tabs.select_tab(TAB_REVIEWS)
        assert tabs.reviews_error == REVIEWS_ERROR_MESSAGE
        assert tabs.reviews == []
        assert tabs.reviews_loading is False

    def test_favorites_failure_sets_message(self, tabs, favorites, monkeypatch):
        favorites.add("1")
        monkeypatch.setattr(tabs, "fetch_favorites", Mock(side_effect=RuntimeError("pool broken")))
        tabs.select_tab(TAB_FAVORITES)
        assert tabs.favorites_error == FAVORITES_ERROR_MESSAGE

    def test_missing_favorite_is_not_an_error(self, tabs, favorites, client):
        client.get_recipe.side_effect = RecipeAPIError("not found", status=404)
        favorites.add("gone")
        tabs.select_tab(TAB_FAVORITES)
        assert tabs.favorites == []
        assert tabs.favorites_error is None


class TestStaleResults:
    """Test cases for dropping results of tabs that are no longer shown."""

    def test_result_after_tab_switch_is_dropped(self, tabs):
        tabs.select_tab(TAB_FAVORITES)
        token = tabs.begin_favorites_load()

        tabs.select_tab(TAB_REVIEWS)

        assert tabs.apply_favorites(token, [RecipeDetail(id="late")]) is False
        assert [r.id for r in tabs.favorites] == []

    def test_superseded_load_is_dropped(self, tabs):
        tabs.select_tab(TAB_FAVORITES)
        first = tabs.begin_favorites_load()
        second = tabs.begin_favorites_load()

        assert tabs.apply_favorites(first, [RecipeDetail(id="old")]) is False
        assert tabs.apply_favorites(second, [RecipeDetail(id="new")]) is True
        assert [r.id for r in tabs.favorites] == ["new"]

    def test_reviews_result_after_leaving_page_is_dropped(self, tabs):
        """Test that a reconciliation finishing after the profile page closed changes nothing."""
        tabs.select_tab(TAB_REVIEWS)
        token = tabs.begin_reviews_load()

        tabs.deactivate()

        assert tabs.apply_reviews(token, ReconciliationReport(user_identifier="u")) is False
        assert tabs.active_tab is None

    def test_reviews_error_after_tab_switch_is_dropped(self, tabs):
        tabs.select_tab(TAB_REVIEWS)
        token = tabs.begin_reviews_load()
        tabs.select_tab(TAB_FAVORITES)

        assert tabs.apply_reviews(token, None, error=REVIEWS_ERROR_MESSAGE) is False
        assert tabs.reviews_error is None


class TestFavoriteChanges:
    """Test cases for re-materializing after favorites changes."""

    def test_change_marks_favorites_stale(self, tabs, favorites, client):
        """Test that a change does not fetch inside the writer's call."""
        tabs.select_tab(TAB_FAVORITES)
        favorites.add("5")

        assert tabs.favorites_dirty is True
        assert tabs.favorites == []
        client.get_recipe.assert_not_called()

    def test_stale_favorites_reload_on_next_select(self, tabs, favorites):
        tabs.select_tab(TAB_FAVORITES)
        favorites.add("5")

        tabs.select_tab(TAB_FAVORITES)

        assert [r.id for r in tabs.favorites] == ["5"]
        assert tabs.favorites_dirty is False

    def test_change_from_other_tab_marks_stale(self, tabs, storage):
        tabs.select_tab(TAB_FAVORITES)
        other_tab = FavoritesStore(storage)
        other_tab.add("8")

        assert tabs.favorites_dirty is True
        tabs.select_tab(TAB_FAVORITES)
        assert [r.id for r in tabs.favorites] == ["8"]
        other_tab.close()

    def test_writer_does_not_pay_for_other_sessions(self, storage, profile_store, client):
        """Test that a write fetches nothing for other sessions, live or dropped."""
        live = []
        for _ in range(3):
            store = FavoritesStore(storage)
            session_tabs = ProfileTabs(client, store, profile_store)
            session_tabs.select_tab(TAB_FAVORITES)
            live.append(session_tabs)
        for _ in range(5):
            store = FavoritesStore(storage)
            ProfileTabs(client, store, profile_store).select_tab(TAB_FAVORITES)
        del store
        gc.collect()
        writer = FavoritesStore(storage)

        writer.add("1")

        client.get_recipe.assert_not_called()
        assert all(session_tabs.favorites_dirty for session_tabs in live)
        assert len(storage._listeners) == 4


class TestForgetUser:
    """Test cases for resetting the local identity."""

    def test_forget_user_starts_new_identity(self, tabs, profile_store, client):
        old_identifier = profile_store.get_identifier()
        profile_store.save_profile({"username": "Sari"})
        tabs.select_tab(TAB_REVIEWS)
        assert [r.id for r in tabs.reviews] == ["r1"]

        tabs.forget_user()

        assert profile_store.get_identifier() != old_identifier
        assert profile_store.get_profile().username == "Pengguna"
        assert tabs.reviews == []
        assert tabs.active_tab is None

    def test_forget_user_drops_cached_reviews(self, tabs, client, profile_store):
        """Test that the old identity's cached report is discarded."""
        old_key = make_reviews_cache_key(profile_store.get_identifier(), client.base_url)
        tabs.select_tab(TAB_REVIEWS)
        assert get_cached_reviews(old_key) is not None

        tabs.forget_user()

        assert get_cached_reviews(old_key) is None
        tabs.select_tab(TAB_REVIEWS)
        assert client.get_recipes.call_count == 2
        assert tabs.reviews == []
