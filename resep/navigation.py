"""
Navigation / View State Machine.

The UI shows one of four view modes (list, detail, create, edit). In list mode
one of four pages (home, makanan, minuman, profile) is active. The address bar
fragment mirrors the detail view only, so that a recipe can be shared and
reopened with a link:

    #/recipe/<id>               (category defaults to "makanan")
    #/recipe/<id>/<category>

Any other fragment, including the empty one, means "no deep link".

ViewState and the fragment are kept in sync by two pure functions,
parse_fragment() and to_fragment(). Transitions operate on ViewState and push
the fragment through a Location; they never touch the address bar directly.
The reverse direction (user follows a shared link, or presses back/forward)
arrives as a Location change and is handled by handle_fragment_change().

# NOTE: Edit mode is not deep-linkable. open_edit() leaves the fragment as it is.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)

PAGE_HOME = "home"
PAGE_MAKANAN = "makanan"
PAGE_MINUMAN = "minuman"
PAGE_PROFILE = "profile"
PAGES = (PAGE_HOME, PAGE_MAKANAN, PAGE_MINUMAN, PAGE_PROFILE)

MODE_LIST = "list"
MODE_DETAIL = "detail"
MODE_CREATE = "create"
MODE_EDIT = "edit"
VIEW_MODES = (MODE_LIST, MODE_DETAIL, MODE_CREATE, MODE_EDIT)

DEFAULT_CATEGORY = PAGE_MAKANAN
RECIPE_ROUTE = "/recipe/"


@dataclass(frozen=True)
class ViewState:
    """
    What the UI is currently showing.

    Invariants:
        selected_recipe_id is set iff view_mode == "detail"
        editing_recipe_id is set iff view_mode == "edit"
    """
    active_page: str = PAGE_HOME
    view_mode: str = MODE_LIST
    selected_recipe_id: Optional[str] = None
    selected_category: str = DEFAULT_CATEGORY
    editing_recipe_id: Optional[str] = None

    def __post_init__(self):
        if self.view_mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {self.view_mode!r}")
        if (self.selected_recipe_id is not None) != (self.view_mode == MODE_DETAIL):
            raise ValueError("selected_recipe_id must be set exactly in detail mode")
        if (self.editing_recipe_id is not None) != (self.view_mode == MODE_EDIT):
            raise ValueError("editing_recipe_id must be set exactly in edit mode")


def parse_fragment(fragment: Optional[str]) -> Optional[ViewState]:
    """
    Parse an address-bar fragment into a detail ViewState.

    Args:
        fragment: Fragment with or without the leading "#"

    Returns:
        ViewState in detail mode, or None if the fragment is not a recipe link
    """
    if not fragment:
        return None
    path = fragment[1:] if fragment.startswith("#") else fragment
    if not path.startswith(RECIPE_ROUTE):
        return None

    parts = path[len(RECIPE_ROUTE):].split("/")
    if parts and parts[-1] == "":
        parts = parts[:-1]
    if len(parts) not in (1, 2):
        return None

    recipe_id = unquote(parts[0]).strip()
    if not recipe_id:
        return None
    category = unquote(parts[1]).strip() if len(parts) == 2 else ""

    return ViewState(
        view_mode=MODE_DETAIL,
        selected_recipe_id=recipe_id,
        selected_category=category or DEFAULT_CATEGORY,
    )


def to_fragment(state: ViewState) -> str:
    """Project a ViewState onto the fragment ("" for everything but detail)."""
    if state.view_mode != MODE_DETAIL or state.selected_recipe_id is None:
        return ""
    return "#" + recipe_path(state.selected_recipe_id, state.selected_category)


def recipe_path(recipe_id: str, category: str) -> str:
    return f"{RECIPE_ROUTE}{quote(str(recipe_id), safe='')}/{quote(str(category), safe='')}"


FragmentListener = Callable[[str], None]


class Location(ABC):
    """
    The address-bar fragment as seen by the state machine.

    Implementations must notify subscribers only when the fragment changes.
    """

    @abstractmethod
    def get_fragment(self) -> str:
        pass

    @abstractmethod
    def set_fragment(self, fragment: str) -> None:
        pass

    @abstractmethod
    def subscribe(self, listener: FragmentListener) -> Callable[[], None]:
        pass


class MemoryLocation(Location):
    """In-memory Location, also used to simulate back/forward in tests."""

    def __init__(self, fragment: str = "") -> None:
        self._fragment = fragment or ""
        self._listeners: List[FragmentListener] = []

    def get_fragment(self) -> str:
        return self._fragment

    def set_fragment(self, fragment: str) -> None:
        fragment = fragment or ""
        if fragment == self._fragment:
            return
        self._fragment = fragment
        for listener in list(self._listeners):
            listener(fragment)

    def subscribe(self, listener: FragmentListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


StateListener = Callable[[ViewState], None]
_KEEP_FRAGMENT = object()


def _category_of(recipe: Any) -> Optional[str]:
    if recipe is None:
        return None
    if isinstance(recipe, dict):
        return recipe.get("category")
    return getattr(recipe, "category", None)


class NavigationStateMachine:
    """
    Owns the ViewState of one UI session and keeps it in sync with a Location.

    Args:
        location: Fragment source/sink (defaults to an empty MemoryLocation)
    """

    def __init__(self, location: Optional[Location] = None) -> None:
        self.location = location or MemoryLocation()
        self._listeners: List[StateListener] = []

        deep_link = parse_fragment(self.location.get_fragment())
        if deep_link is not None:
            logger.info("Opening recipe from URL: %s (%s)", deep_link.selected_recipe_id, deep_link.selected_category)
            self.state = deep_link
            self.show_splash = False
        else:
            self.state = ViewState()
            self.show_splash = True

        self._unsubscribe_location = self.location.subscribe(self.handle_fragment_change)

    def on_change(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener called with the new ViewState after each transition.

        Returns:
            A function that removes the listener when called
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        self._unsubscribe_location()
        self._listeners.clear()

    def dismiss_splash(self) -> None:
        self.show_splash = False

    def navigate_to(self, page: str) -> ViewState:
        """Show the list view of page and clear any deep link."""
        if page not in PAGES:
            raise ValueError(f"Unknown page: {page!r}")
        new_state = replace(
            self.state,
            active_page=page,
            view_mode=MODE_LIST,
            selected_recipe_id=None,
            editing_recipe_id=None,
        )
        return self._transition(new_state, fragment="")

    def open_create(self) -> ViewState:
        new_state = replace(
            self.state,
            view_mode=MODE_CREATE,
            selected_recipe_id=None,
            editing_recipe_id=None,
        )
        return self._transition(new_state, fragment="")

    def open_recipe(self, recipe_id: str, category: Optional[str] = None) -> ViewState:
        """
        Show the detail view of a recipe and put its link in the fragment.

        Args:
            recipe_id: Recipe to show
            category: Category of the recipe (defaults to the active page)
        """
        new_state = replace(
            self.state,
            view_mode=MODE_DETAIL,
            selected_recipe_id=str(recipe_id),
            selected_category=category or self.state.active_page,
            editing_recipe_id=None,
        )
        return self._transition(new_state, fragment=to_fragment(new_state))

    def open_edit(self, recipe_id: str) -> ViewState:
        new_state = replace(
            self.state,
            view_mode=MODE_EDIT,
            selected_recipe_id=None,
            editing_recipe_id=str(recipe_id),
        )
        return self._transition(new_state, fragment=_KEEP_FRAGMENT)

    def go_back(self) -> ViewState:
        new_state = replace(
            self.state,
            view_mode=MODE_LIST,
            selected_recipe_id=None,
            editing_recipe_id=None,
        )
        return self._transition(new_state, fragment="")

    def on_create_success(self, new_recipe: Any = None) -> ViewState:
        """Return to the list, switching to the new recipe's category page if it has one."""
        active_page = self.state.active_page
        category = _category_of(new_recipe)
        if category in PAGES:
            active_page = category
        elif category:
            logger.debug("Created recipe has unknown category %r, staying on %s", category, active_page)
        new_state = replace(
            self.state,
            active_page=active_page,
            view_mode=MODE_LIST,
            selected_recipe_id=None,
            editing_recipe_id=None,
        )
        return self._transition(new_state, fragment="")

    def on_edit_success(self, updated_recipe: Any = None) -> ViewState:
        new_state = replace(
            self.state,
            view_mode=MODE_LIST,
            selected_recipe_id=None,
            editing_recipe_id=None,
        )
        return self._transition(new_state, fragment="")

    def handle_fragment_change(self, fragment: str) -> Optional[ViewState]:
        """
        Apply an externally changed fragment (shared link, back/forward).

        A recipe link forces the detail view whatever was shown before,
        including the splash screen. Other fragments are ignored.

        Returns:
            The new ViewState, or None if the fragment was ignored
        """
        deep_link = parse_fragment(fragment)
        if deep_link is None:
            return None

        self.show_splash = False
        new_state = replace(
            self.state,
            view_mode=MODE_DETAIL,
            selected_recipe_id=deep_link.selected_recipe_id,
            selected_category=deep_link.selected_category,
            editing_recipe_id=None,
        )
        if new_state == self.state:
            return self.state
        logger.info("Opening recipe from URL: %s (%s)", new_state.selected_recipe_id, new_state.selected_category)
        self.state = new_state
        self._notify()
        return new_state

    def _transition(self, new_state: ViewState, fragment: Any) -> ViewState:
        self.state = new_state
        if fragment is not _KEEP_FRAGMENT:
            self.location.set_fragment(fragment)
        self._notify()
        return self.state

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception as e:
                logger.error("Navigation listener failed: %s", e, exc_info=True)
