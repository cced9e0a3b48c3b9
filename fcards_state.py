"""
fcards - interaction state
==========================
The reviewer's whole UI state as immutable values, plus the transition
function that applies one key press or resize to it and the function that
turns a state into the next frame.

    state = update(state, KeyPress("l"))
    frame = view(state)

The two modes are separate types; each holds only the fields it uses.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Callable, Optional, Union

from fcards_db import StoreError, shuffle_questions
from fcards_layout import (
    DEFAULT_CARD_WIDTH,
    card_max_scroll,
    card_width,
    clamp_index,
    clamp_scroll,
    filter_groups,
    pad_to_height,
    render_card,
    render_error,
    render_exhausted,
    render_group_list,
)

LOGGER = logging.getLogger(__name__)

QUIT_KEYS = ("q", "ctrl+c")
UP_KEYS = ("up", "k", "K")
DOWN_KEYS = ("down", "j", "J")
NEXT_KEYS = ("l", "L")
PREV_KEYS = ("h", "H")
BACKSPACE_KEYS = ("backspace", "ctrl+h")
SEARCH_DONE_KEYS = ("enter", "escape")


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CardReview:
    questions: tuple = ()
    index: int = 0
    revealed: bool = False
    scroll: int = 0

    @property
    def exhausted(self) -> bool:
        return self.index >= len(self.questions)

    @property
    def current(self):
        return None if self.exhausted else self.questions[self.index]


@dataclass(frozen=True)
class CategoryBrowser:
    groups: tuple = ()
    query: str = ""
    selected: int = 0
    searching: bool = False
    error: Optional[str] = None

    @property
    def filtered(self) -> list:
        return filter_groups(self.groups, self.query)


Mode = Union[CardReview, CategoryBrowser]


@dataclass(frozen=True)
class AppState:
    mode: Mode
    width: int = DEFAULT_CARD_WIDTH
    height: int = 0
    done: bool = False


def card_state(questions) -> AppState:
    return AppState(mode=CardReview(questions=tuple(questions)))


def browser_state(groups) -> AppState:
    return AppState(mode=CategoryBrowser(groups=tuple(groups)))


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class KeyPress:
    key: str


Event = Union[Resize, KeyPress]


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def _max_scroll(state: AppState, review: CardReview) -> int:
    if review.exhausted:
        return 0
    return card_max_scroll(review.current, review.revealed, state.width, state.height)


def _clamped(state: AppState) -> AppState:
    """Pull every cursor back into range for the current data and size."""
    mode = state.mode
    if isinstance(mode, CategoryBrowser):
        mode = replace(mode, selected=clamp_index(mode.selected, len(mode.filtered)))
    else:
        mode = replace(mode, index=clamp_scroll(mode.index, len(mode.questions)))
        mode = replace(mode, scroll=clamp_scroll(mode.scroll, _max_scroll(state, mode)))
    return replace(state, mode=mode)


def _search_key(browser: CategoryBrowser, key: str) -> CategoryBrowser:
    if key in SEARCH_DONE_KEYS:
        return replace(browser, searching=False)
    if key in BACKSPACE_KEYS:
        return replace(browser, query=browser.query[:-1])
    if len(key) == 1 and key.isprintable():
        return replace(browser, query=browser.query + key)
    return browser


def _browse_key(browser: CategoryBrowser, key: str, loader, rng) -> Mode:
    if key in UP_KEYS:
        return replace(browser, selected=browser.selected - 1)
    if key in DOWN_KEYS:
        return replace(browser, selected=browser.selected + 1)
    if key == "/":
        return replace(browser, searching=True, query="")
    if key == "enter":
        filtered = browser.filtered
        if not filtered or loader is None:
            return browser
        category = filtered[clamp_index(browser.selected, len(filtered))].category
        try:
            questions = loader(category)
        except StoreError as exc:
            LOGGER.error("loading type %r failed: %s", category, exc)
            return replace(browser, error=str(exc))
        LOGGER.info("opened type %r with %d questions", category, len(questions))
        return CardReview(questions=tuple(shuffle_questions(questions, rng)))
    return browser


def _review_key(review: CardReview, key: str) -> CardReview:
    if key in PREV_KEYS:
        if review.index > 0:
            return replace(review, index=review.index - 1, revealed=False, scroll=0)
        return review
    if review.exhausted:
        return review
    if key in UP_KEYS:
        return replace(review, scroll=review.scroll - 1)
    if key in DOWN_KEYS:
        return replace(review, scroll=review.scroll + 1)
    if key in NEXT_KEYS:
        return replace(review, index=review.index + 1, revealed=False, scroll=0)
    if key == "enter":
        return replace(review, revealed=not review.revealed, scroll=0)
    return review


def update(state: AppState, event: Event,
           loader: Optional[Callable[[str], list]] = None,
           rng: Optional[random.Random] = None) -> AppState:
    """
    Apply one event and return the new state.

    *loader* is called with a type name when a type is opened from the
    browser; a StoreError from it keeps the browser and shows the error.
    """
    if isinstance(event, Resize):
        state = replace(state, width=event.width, height=event.height)
    elif isinstance(event, KeyPress):
        key = event.key
        mode = state.mode
        if key in QUIT_KEYS:
            state = replace(state, done=True)
        elif isinstance(mode, CategoryBrowser):
            if mode.error is None:
                if mode.searching:
                    mode = _search_key(mode, key)
                else:
                    mode = _browse_key(mode, key, loader, rng)
                state = replace(state, mode=mode)
        else:
            state = replace(state, mode=_review_key(mode, key))
    return _clamped(state)


# ---------------------------------------------------------------------------
# Frames
# ---------------------------------------------------------------------------


def view(state: AppState) -> str:
    """Render the frame for *state*, sized to the terminal height."""
    mode = state.mode
    if isinstance(mode, CategoryBrowser):
        if mode.error is not None:
            frame = render_error(mode.error)
        else:
            frame = render_group_list(
                mode.groups, mode.selected, state.width, state.height,
                mode.query, mode.searching,
            ) + "\n"
        return pad_to_height(frame, state.height)

    if mode.exhausted:
        return pad_to_height(render_exhausted(), state.height)

    scroll = clamp_scroll(mode.scroll, _max_scroll(state, mode))
    frame = render_card(
        mode.current, mode.revealed, mode.index + 1, len(mode.questions),
        card_width(state.width), state.height, scroll,
    ) + "\n"
    return pad_to_height(frame, state.height)
