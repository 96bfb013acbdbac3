"""
Tests for the navigation state machine and the fragment codec.
"""

import pytest

from resep.navigation import (
    DEFAULT_CATEGORY,
    MODE_CREATE,
    MODE_DETAIL,
    MODE_EDIT,
    MODE_LIST,
    MemoryLocation,
    NavigationStateMachine,
    ViewState,
    parse_fragment,
    to_fragment,
)


@pytest.fixture
def location():
    return MemoryLocation()


@pytest.fixture
def nav(location):
    machine = NavigationStateMachine(location)
    yield machine
    machine.close()


class TestFragmentCodec:
    """Test cases for parse_fragment and to_fragment."""

    @pytest.mark.parametrize("fragment,recipe_id,category", [
        ("#/recipe/42/minuman", "42", "minuman"),
        ("/recipe/42/minuman", "42", "minuman"),
        ("#/recipe/42", "42", DEFAULT_CATEGORY),
        ("#/recipe/42/", "42", DEFAULT_CATEGORY),
        ("#/recipe/abc%2Fdef/makanan", "abc/def", "makanan"),
    ])
    def test_parse_recipe_links(self, fragment, recipe_id, category):
        """Test that recipe links parse into a detail state."""
        state = parse_fragment(fragment)
        assert state.view_mode == MODE_DETAIL
        assert state.selected_recipe_id == recipe_id
        assert state.selected_category == category

    @pytest.mark.parametrize("fragment", [None, "", "#", "#/", "#/profile", "#/recipe/", "#/recipe/1/2/3"])
    def test_other_fragments_are_not_links(self, fragment):
        """Test that non-recipe fragments parse to None."""
        assert parse_fragment(fragment) is None

    def test_round_trip(self):
        """Test that to_fragment and parse_fragment agree on the detail state."""
        state = ViewState(view_mode=MODE_DETAIL, selected_recipe_id="a b", selected_category="minuman")
        parsed = parse_fragment(to_fragment(state))
        assert parsed.selected_recipe_id == "a b"
        assert parsed.selected_category == "minuman"

    def test_non_detail_state_has_empty_fragment(self):
        """Test that list, create and edit states project to no fragment."""
        assert to_fragment(ViewState()) == ""
        assert to_fragment(ViewState(view_mode=MODE_CREATE)) == ""
        assert to_fragment(ViewState(view_mode=MODE_EDIT, editing_recipe_id="1")) == ""


class TestViewStateInvariants:
    """Test cases for ViewState validation."""

    def test_detail_requires_selected_recipe(self):
        with pytest.raises(ValueError):
            ViewState(view_mode=MODE_DETAIL)

    def test_selected_recipe_outside_detail_is_invalid(self):
        with pytest.raises(ValueError):
            ViewState(view_mode=MODE_LIST, selected_recipe_id="1")

    def test_edit_requires_editing_recipe(self):
        with pytest.raises(ValueError):
            ViewState(view_mode=MODE_EDIT)

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            ViewState(view_mode="grid")


class TestInitialState:
    """Test cases for the state on app start."""

    def test_no_fragment_shows_splash_on_home(self, nav):
        """Test that a cold start shows the splash over the home list."""
        assert nav.show_splash is True
        assert nav.state == ViewState()

    def test_deep_link_skips_splash(self):
        """Test that starting with a recipe link opens the detail view directly."""
        nav = NavigationStateMachine(MemoryLocation("#/recipe/7/minuman"))
        assert nav.show_splash is False
        assert nav.state.view_mode == MODE_DETAIL
        assert nav.state.selected_recipe_id == "7"
        assert nav.state.selected_category == "minuman"

    def test_unrelated_fragment_is_ignored_on_start(self):
        nav = NavigationStateMachine(MemoryLocation("#/something"))
        assert nav.show_splash is True
        assert nav.state.view_mode == MODE_LIST


class TestTransitions:
    """Test cases for user-driven transitions."""

    def test_open_recipe_writes_fragment(self, nav, location):
        """Test that opening a recipe puts its link in the fragment."""
        nav.open_recipe("42", "minuman")
        assert location.get_fragment() == "#/recipe/42/minuman"
        assert nav.state.view_mode == MODE_DETAIL
        assert nav.state.selected_recipe_id == "42"

    def test_fragment_round_trip_restores_state(self, nav, location):
        """Test that feeding the written fragment back yields the same detail state."""
        nav.open_recipe("42", "minuman")
        detail = nav.state
        fragment = location.get_fragment()
        nav.go_back()

        restored = nav.handle_fragment_change(fragment)

        assert restored.view_mode == detail.view_mode
        assert restored.selected_recipe_id == detail.selected_recipe_id
        assert restored.selected_category == detail.selected_category

    def test_open_recipe_defaults_category_to_active_page(self, nav):
        nav.navigate_to("minuman")
        nav.open_recipe("3")
        assert nav.state.selected_category == "minuman"

    def test_go_back_clears_fragment(self, nav, location):
        """Test that leaving the detail view returns to the list and clears the link."""
        nav.navigate_to("makanan")
        nav.open_recipe("42")
        nav.go_back()
        assert nav.state.view_mode == MODE_LIST
        assert nav.state.active_page == "makanan"
        assert nav.state.selected_recipe_id is None
        assert location.get_fragment() == ""

    def test_navigate_to_from_detail(self, nav, location):
        nav.open_recipe("42", "makanan")
        nav.navigate_to("profile")
        assert nav.state.active_page == "profile"
        assert nav.state.view_mode == MODE_LIST
        assert location.get_fragment() == ""

    def test_navigate_to_unknown_page(self, nav):
        with pytest.raises(ValueError):
            nav.navigate_to("dessert")

    def test_open_create_clears_fragment(self, nav, location):
        nav.open_recipe("42", "makanan")
        nav.open_create()
        assert nav.state.view_mode == MODE_CREATE
        assert location.get_fragment() == ""

    def test_open_edit_keeps_fragment(self, nav, location):
        """Test that edit mode is not reflected in the fragment."""
        nav.open_recipe("42", "makanan")
        nav.open_edit("42")
        assert nav.state.view_mode == MODE_EDIT
        assert nav.state.editing_recipe_id == "42"
        assert nav.state.selected_recipe_id is None
        assert location.get_fragment() == "#/recipe/42/makanan"

    def test_create_success_switches_to_recipe_category(self, nav):
        """Test that a created drink lands on the minuman page."""
        nav.navigate_to("home")
        nav.open_create()
        nav.on_create_success({"id": "9", "category": "minuman"})
        assert nav.state.view_mode == MODE_LIST
        assert nav.state.active_page == "minuman"

    def test_create_success_with_unknown_category_keeps_page(self, nav):
        nav.navigate_to("makanan")
        nav.open_create()
        nav.on_create_success({"id": "9", "category": "camilan"})
        assert nav.state.active_page == "makanan"

    def test_edit_success_returns_to_list(self, nav, location):
        nav.open_recipe("42", "makanan")
        nav.open_edit("42")
        nav.on_edit_success()
        assert nav.state.view_mode == MODE_LIST
        assert nav.state.editing_recipe_id is None
        assert location.get_fragment() == ""

    def test_listeners_get_each_transition(self, nav):
        states = []
        nav.on_change(states.append)
        nav.navigate_to("makanan")
        nav.open_recipe("1")
        nav.go_back()
        assert [s.view_mode for s in states] == [MODE_LIST, MODE_DETAIL, MODE_LIST]


class TestExternalFragmentChanges:
    """Test cases for links followed and back/forward navigation."""

    def test_external_link_opens_detail(self, nav, location):
        """Test that a fragment set from outside forces the detail view."""
        nav.navigate_to("profile")
        location.set_fragment("#/recipe/5/minuman")
        assert nav.state.view_mode == MODE_DETAIL
        assert nav.state.selected_recipe_id == "5"
        assert nav.state.active_page == "profile"

    def test_external_link_dismisses_splash(self, nav, location):
        """Test that a deep link takes precedence over the splash screen."""
        assert nav.show_splash is True
        location.set_fragment("#/recipe/5")
        assert nav.show_splash is False
        assert nav.state.selected_category == DEFAULT_CATEGORY

    def test_external_link_during_edit_leaves_edit(self, nav, location):
        nav.open_recipe("1", "makanan")
        nav.open_edit("1")
        location.set_fragment("#/recipe/2/makanan")
        assert nav.state.view_mode == MODE_DETAIL
        assert nav.state.editing_recipe_id is None

    def test_ignored_fragment_keeps_state(self, nav):
        nav.navigate_to("minuman")
        before = nav.state
        assert nav.handle_fragment_change("#/unknown") is None
        assert nav.state == before

    def test_own_fragment_write_does_not_double_notify(self, nav):
        """Test that open_recipe notifies listeners once."""
        states = []
        nav.on_change(states.append)
        nav.open_recipe("42", "minuman")
        assert len(states) == 1

    def test_same_link_again_does_not_notify(self, nav):
        states = []
        nav.open_recipe("42", "minuman")
        nav.on_change(states.append)
        nav.handle_fragment_change("#/recipe/42/minuman")
        assert states == []
