#!/usr/bin/env python3
"""
slide_nav.py - Navigation state machine for rendered slidedown decks.

Models the small piece of browser behaviour a deck needs after it has been
rendered: exactly one slide is "current", its neighbours are "previous" and
"next", and keyboard, click-zone, swipe and URL-fragment events move that
cursor around.  The browser itself is represented by ``Page``, an explicit
event dispatcher around a BeautifulSoup document, so navigation can be driven
and inspected without a real DOM.

Usage:
    page = Page(document)
    navigator = Navigator(slide_divs, page)
    bind_navigation(page, navigator)
    navigator.focus(page.location_hash)
    page.dispatch(Event(EventType.KEYDOWN, key_code=NEXT_KEY))
"""

import operator
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional

from bs4 import BeautifulSoup, Tag

# ── Input configuration ──────────────────────────────────────────────────────
NEXT_KEY = 39  # right arrow
PREVIOUS_KEY = 37  # left arrow
NEXT_CLICK_ZONE = "x > 90%"
PREVIOUS_CLICK_ZONE = "x < 10%"
NEXT_SWIPE = "left"
PREVIOUS_SWIPE = "right"

DEFAULT_VIEWPORT_WIDTH = 1280
DEFAULT_VIEWPORT_HEIGHT = 720

EMPTY_DOCUMENT = "<!DOCTYPE html><html><head></head><body></body></html>"


class ConditionError(ValueError):
    """A click-zone condition could not be parsed."""


# ── Events and the page they are dispatched on ───────────────────────────────


class EventType(Enum):
    LOAD = "load"
    KEYDOWN = "keydown"
    CLICK = "click"
    SWIPE = "swipe"
    FETCH_COMPLETE = "fetchComplete"
    HASHCHANGE = "hashchange"


@dataclass
class Event:
    """A single input or lifecycle event."""

    type: EventType
    key_code: Optional[int] = None
    client_x: Optional[float] = None
    client_y: Optional[float] = None
    direction: Optional[str] = None  # "left" | "right" for swipes
    fragment: Optional[str] = None
    body: Optional[str] = None


@dataclass
class Viewport:
    width: float = DEFAULT_VIEWPORT_WIDTH
    height: float = DEFAULT_VIEWPORT_HEIGHT
    scroll_x: float = 0
    scroll_y: float = 0


Listener = Callable[[Event], None]


class Page:
    """The document a deck is mounted in, plus the browser state around it.

    Listeners run strictly one at a time, in the order they were added.
    ``history`` holds every fragment the page has visited; ``push_fragment``
    adds entries (like ``history.pushState``) while ``back``/``forward``
    walk them and fire ``hashchange`` the way a browser does.
    """

    def __init__(
        self,
        document: Optional[BeautifulSoup] = None,
        ready_state: str = "complete",
        viewport: Optional[Viewport] = None,
        location_hash: str = "",
    ):
        self.document = document if document is not None else BeautifulSoup(EMPTY_DOCUMENT, "lxml")
        self.ready_state = ready_state
        self.viewport = viewport or Viewport()
        self.location_hash = _normalize_hash(location_hash)
        self.history: list[str] = [self.location_hash]
        self.history_index = 0
        self.listeners: dict[EventType, list[Listener]] = {t: [] for t in EventType}

    def add_listener(self, event_type: EventType, listener: Listener):
        self.listeners[event_type].append(listener)

    def remove_listener(self, event_type: EventType, listener: Listener):
        if listener in self.listeners[event_type]:
            self.listeners[event_type].remove(listener)

    def dispatch(self, event: Event):
        # Snapshot so a listener registered mid-dispatch only sees later events
        for listener in list(self.listeners[event.type]):
            listener(event)

    def load(self):
        """Finish loading the page and fire the ``load`` event."""
        self.ready_state = "complete"
        self.dispatch(Event(EventType.LOAD))

    def scroll_to(self, x: float, y: float):
        self.viewport.scroll_x = x
        self.viewport.scroll_y = y

    def push_fragment(self, fragment_id: str):
        """Record a new history entry without firing ``hashchange``."""
        self.location_hash = _normalize_hash(fragment_id)
        del self.history[self.history_index + 1 :]
        self.history.append(self.location_hash)
        self.history_index = len(self.history) - 1

    def navigate(self, fragment_id: str):
        """Change the fragment from outside the deck (address bar, link)."""
        self.push_fragment(fragment_id)
        self._fire_hashchange()

    def back(self) -> bool:
        if self.history_index == 0:
            return False
        self.history_index -= 1
        self.location_hash = self.history[self.history_index]
        self._fire_hashchange()
        return True

    def forward(self) -> bool:
        if self.history_index >= len(self.history) - 1:
            return False
        self.history_index += 1
        self.location_hash = self.history[self.history_index]
        self._fire_hashchange()
        return True

    def _fire_hashchange(self):
        self.dispatch(Event(EventType.HASHCHANGE, fragment=self.location_hash))


def _normalize_hash(fragment_id: Optional[str]) -> str:
    if not fragment_id:
        return ""
    return fragment_id if fragment_id.startswith("#") else "#" + fragment_id


def when_ready(page: Page, callback: Callable[[], None]):
    """Run ``callback`` now if the page has loaded, otherwise on ``load``."""
    if page.ready_state == "complete":
        callback()
        return

    page.add_listener(EventType.LOAD, lambda event: callback())


# ── Cursor ───────────────────────────────────────────────────────────────────


class Membership(Enum):
    NONE = "none"
    PREVIOUS = "previous"
    CURRENT = "current"
    NEXT = "next"


@dataclass(frozen=True)
class NavigationCursor:
    """Position of the current slide (0-based) within a deck of ``count``."""

    current: int
    count: int

    @property
    def previous(self) -> Optional[int]:
        return self.current - 1 if self.current > 0 else None

    @property
    def next(self) -> Optional[int]:
        return self.current + 1 if self.current + 1 < self.count else None

    def membership(self, index: int) -> Membership:
        if index == self.current:
            return Membership.CURRENT
        if index == self.previous:
            return Membership.PREVIOUS
        if index == self.next:
            return Membership.NEXT
        return Membership.NONE

    def forward(self) -> Optional["NavigationCursor"]:
        if self.next is None:
            return None
        return replace(self, current=self.next)

    def backward(self) -> Optional["NavigationCursor"]:
        if self.previous is None:
            return None
        return replace(self, current=self.previous)


# ── DOM class helpers ────────────────────────────────────────────────────────


def _classes(element: Tag) -> list[str]:
    classes = element.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return list(classes)


def add_class(element: Optional[Tag], class_name: str):
    if element is None:
        return
    classes = _classes(element)
    if class_name not in classes:
        classes.append(class_name)
    element["class"] = classes


def remove_class(element: Optional[Tag], class_name: str):
    if element is None:
        return
    element["class"] = [c for c in _classes(element) if c != class_name]


def has_class(element: Tag, class_name: str) -> bool:
    return class_name in _classes(element)


# ── Navigator ────────────────────────────────────────────────────────────────


@dataclass
class Navigator:
    """Moves the current/previous/next markers across rendered slide elements."""

    slides: list[Tag]
    page: Page = field(default_factory=Page)
    cursor: Optional[NavigationCursor] = None

    def _slide(self, index: Optional[int]) -> Optional[Tag]:
        return None if index is None else self.slides[index]

    def _mark(self, cursor: NavigationCursor, on: bool):
        toggle = add_class if on else remove_class
        toggle(self._slide(cursor.previous), Membership.PREVIOUS.value)
        toggle(self._slide(cursor.current), Membership.CURRENT.value)
        toggle(self._slide(cursor.next), Membership.NEXT.value)

    def _move_to(self, cursor: NavigationCursor):
        if self.cursor is not None:
            self._mark(self.cursor, on=False)
        self.cursor = cursor
        self._mark(cursor, on=True)

    def _find(self, fragment_id: Optional[str]) -> Optional[int]:
        target = (fragment_id or "").lstrip("#")
        if target:
            for index, slide in enumerate(self.slides):
                if slide.get("id") == target:
                    return index
        return None

    def has_slide(self, fragment_id: Optional[str]) -> bool:
        return self._find(fragment_id) is not None

    def resolve(self, fragment_id: Optional[str]) -> int:
        """Index of the slide named by ``fragment_id``, or 0 if none matches."""
        index = self._find(fragment_id)
        return 0 if index is None else index

    def focus(self, fragment_id: Optional[str] = None) -> bool:
        """Make the slide named by the fragment (or the first one) current."""
        if not self.slides:
            return False
        self._move_to(NavigationCursor(self.resolve(fragment_id), len(self.slides)))
        return True

    def jump(self, fragment_id: Optional[str]) -> bool:
        return self.focus(fragment_id)

    def advance(self) -> bool:
        if self.cursor is None:
            return False
        cursor = self.cursor.forward()
        if cursor is None:
            return False
        self._settle(cursor)
        return True

    def retreat(self) -> bool:
        if self.cursor is None:
            return False
        cursor = self.cursor.backward()
        if cursor is None:
            return False
        self._settle(cursor)
        return True

    def _settle(self, cursor: NavigationCursor):
        self._move_to(cursor)
        # Undo partial horizontal scrolling on narrow viewports
        self.page.scroll_to(0, self.page.viewport.scroll_y)
        self.page.push_fragment(self.current_slide.get("id", ""))

    @property
    def current_slide(self) -> Optional[Tag]:
        return None if self.cursor is None else self.slides[self.cursor.current]

    @property
    def current_number(self) -> Optional[int]:
        return None if self.cursor is None else self.cursor.current + 1

    def membership(self, number: int) -> Membership:
        """Membership of slide ``number`` (1-based)."""
        if self.cursor is None:
            return Membership.NONE
        return self.cursor.membership(number - 1)


# ── Input conditions ─────────────────────────────────────────────────────────

_PROPERTIES = {
    "x": ("client_x", "width"),
    "y": ("client_y", "height"),
}

_OPERATORS = {
    "<": operator.lt,
    ">": operator.gt,
}

ClickCondition = Callable[[Event, Viewport], bool]


def parse_condition(condition: str) -> ClickCondition:
    """Compile a click-zone condition such as ``"x > 90%"``.

    The threshold is either a percentage of the viewport extent along the
    property's axis or an absolute pixel count (``"y < 40"``, ``"y < 40px"``).
    Raises ``ConditionError`` for anything it does not understand.
    """
    parts = condition.split()
    if len(parts) != 3:
        raise ConditionError(f"Malformed condition: '{condition}'")
    prop, op, threshold = parts

    if prop not in _PROPERTIES:
        raise ConditionError(f"Unrecognized property: '{prop}'")
    if op not in _OPERATORS:
        raise ConditionError(f"Unrecognized operator: '{op}'")

    relative = threshold.endswith("%")
    raw = threshold[:-1] if relative else threshold.removesuffix("px")
    try:
        value = float(raw)
    except ValueError:
        raise ConditionError(f"Unrecognized threshold: '{threshold}'") from None
    if relative:
        value /= 100

    position_attr, extent_attr = _PROPERTIES[prop]
    compare = _OPERATORS[op]

    def matches(event: Event, viewport: Viewport) -> bool:
        position = getattr(event, position_attr)
        if position is None:
            return False
        limit = getattr(viewport, extent_attr) * value if relative else value
        return compare(position, limit)

    return matches


# ── Binding input to navigation ──────────────────────────────────────────────


def handle_key(page: Page, key_code: int, callback: Callable[[], object]):
    def on_keydown(event: Event):
        if event.key_code == key_code:
            callback()

    page.add_listener(EventType.KEYDOWN, on_keydown)


def handle_click(page: Page, condition: str, callback: Callable[[], object]):
    matches = parse_condition(condition)

    def on_click(event: Event):
        if matches(event, page.viewport):
            callback()

    page.add_listener(EventType.CLICK, on_click)


def handle_swipe(page: Page, direction: str, callback: Callable[[], object]):
    def on_swipe(event: Event):
        if event.direction == direction:
            callback()

    page.add_listener(EventType.SWIPE, on_swipe)


def bind_navigation(
    page: Page,
    navigator: Navigator,
    next_click: str = NEXT_CLICK_ZONE,
    previous_click: str = PREVIOUS_CLICK_ZONE,
):
    """Attach keyboard, click-zone and swipe controls for ``navigator``.

    Both click conditions are parsed before any listener is registered so a
    bad condition leaves the page untouched.
    """
    parse_condition(next_click)
    parse_condition(previous_click)

    handle_key(page, NEXT_KEY, navigator.advance)
    handle_key(page, PREVIOUS_KEY, navigator.retreat)
    handle_click(page, next_click, navigator.advance)
    handle_click(page, previous_click, navigator.retreat)
    handle_swipe(page, NEXT_SWIPE, navigator.advance)
    handle_swipe(page, PREVIOUS_SWIPE, navigator.retreat)


def follow_fragment(page: Page, navigator: Navigator):
    """Re-focus the deck whenever the URL fragment changes externally."""
    page.add_listener(EventType.HASHCHANGE, lambda event: navigator.jump(page.location_hash))
