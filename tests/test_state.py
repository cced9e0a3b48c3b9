import random

from fcards_db import CategoryGroup, Question, StoreError
from fcards_state import (
    AppState,
    CardReview,
    CategoryBrowser,
    KeyPress,
    Resize,
    browser_state,
    card_state,
    update,
    view,
)

QUESTIONS = [
    Question(1, "What is Go's concurrency model built on?", ("Goroutines", "Channels"), "general"),
    Question(2, "Which SQL clause filters rows?", ("WHERE",), "general"),
    Question(3, "Name a Git command to list branches.", ("git branch",), "general"),
]

GROUPS = [CategoryGroup("", 2), CategoryGroup("general", 3), CategoryGroup("git", 1)]


def _press(state, *keys, **kwargs):
    for key in keys:
        state = update(state, KeyPress(key), **kwargs)
    return state


def _long_card_state(height=10):
    question = Question(9, "Long one", tuple(f"answer {i}" for i in range(30)))
    state = card_state([question])
    return update(state, Resize(80, height))


class _StubLoader:
    def __init__(self, questions=None, error=None):
        self.questions = questions or []
        self.error = error
        self.calls = []

    def __call__(self, category):
        self.calls.append(category)
        if self.error is not None:
            raise self.error
        return list(self.questions)


# ---------------------------------------------------------------------------
# Card review
# ---------------------------------------------------------------------------


def test_initial_card_state():
    state = card_state(QUESTIONS)
    assert isinstance(state.mode, CardReview)
    assert state.mode.index == 0
    assert not state.mode.revealed
    assert state.width == 64 and state.height == 0


def test_enter_toggles_reveal():
    state = _press(card_state(QUESTIONS), "enter")
    assert state.mode.revealed
    assert "ANSWERS" in view(state)
    state = _press(state, "enter")
    assert not state.mode.revealed


def test_next_and_previous_reset_card():
    state = _press(card_state(QUESTIONS), "enter", "l")
    assert state.mode.index == 1
    assert not state.mode.revealed
    state = _press(state, "enter", "H")
    assert state.mode.index == 0
    assert not state.mode.revealed


def test_previous_at_first_card_is_ignored():
    state = _press(card_state(QUESTIONS), "enter", "h")
    assert state.mode.index == 0
    assert state.mode.revealed


def test_next_past_last_card_shows_end_screen():
    state = _press(card_state(QUESTIONS), "l", "l")
    assert state.mode.index == 2
    state = _press(state, "l")
    assert state.mode.index == 3
    assert state.mode.exhausted
    assert "No more questions in this session." in view(state)
    state = _press(state, "l", "enter", "down")
    assert state.mode.index == 3
    state = _press(state, "h")
    assert state.mode.index == 2


def test_scroll_is_clamped():
    state = _press(_long_card_state(), "enter")
    state = _press(state, *["down"] * 50)
    assert state.mode.scroll == 30
    state = _press(state, *["up"] * 50)
    assert state.mode.scroll == 0
    state = _press(state, "j", "j", "k")
    assert state.mode.scroll == 1


def test_flip_resets_scroll():
    state = _press(_long_card_state(), "enter", "down", "down")
    assert state.mode.scroll == 2
    state = _press(state, "enter")
    assert state.mode.scroll == 0
    assert not state.mode.revealed


def test_resize_reclamps_scroll_but_keeps_reveal():
    state = _press(_long_card_state(), "enter", *["down"] * 40)
    state = update(state, Resize(80, 100))
    assert state.mode.scroll == 0
    assert state.mode.revealed


def test_resize_twice_gives_same_frame():
    state = _press(_long_card_state(), "enter", "down")
    once = update(state, Resize(100, 12))
    twice = update(once, Resize(100, 12))
    assert once == twice
    assert view(once) == view(twice)


def test_frame_matches_terminal_height():
    state = update(card_state(QUESTIONS), Resize(80, 24))
    assert len(view(state).split("\n")) == 24
    state = update(state, Resize(80, 3))
    assert len(view(state).split("\n")) == 3


def test_quit_from_cards():
    assert _press(card_state(QUESTIONS), "q").done
    assert _press(card_state(QUESTIONS), "ctrl+c").done


# ---------------------------------------------------------------------------
# Type browser
# ---------------------------------------------------------------------------


def test_browser_moves_without_wrapping():
    state = browser_state(GROUPS)
    state = _press(state, "up")
    assert state.mode.selected == 0
    state = _press(state, "j", "down", "J", "down")
    assert state.mode.selected == 2
    state = _press(state, "k", "K")
    assert state.mode.selected == 0


def test_search_filters_and_clamps_selection():
    state = _press(browser_state(GROUPS), "down", "down")
    assert state.mode.selected == 2
    state = _press(state, "/", "g", "e", "n")
    assert state.mode.searching
    assert state.mode.query == "gen"
    assert state.mode.filtered == [CategoryGroup("general", 3)]
    assert state.mode.selected == 0


def test_slash_resets_query():
    state = _press(browser_state(GROUPS), "/", "g", "i", "escape")
    assert state.mode.query == "gi"
    assert not state.mode.searching
    state = _press(state, "/")
    assert state.mode.query == ""


def test_search_keys():
    state = _press(browser_state(GROUPS), "/", "g", "é", "backspace", "x", "ctrl+h")
    assert state.mode.query == "g"
    state = _press(state, "up", "tab", "enter")
    assert state.mode.query == "g"
    assert not state.mode.searching


def test_search_mode_swallows_navigation_letters():
    state = _press(browser_state(GROUPS), "/", "j", "k")
    assert state.mode.query == "jk"
    assert state.mode.selected == 0


def test_quit_while_searching():
    state = _press(browser_state(GROUPS), "/", "g", "q")
    assert state.done


def test_enter_opens_selected_type():
    loader = _StubLoader(QUESTIONS)
    state = _press(browser_state(GROUPS), "down", "enter", loader=loader, rng=random.Random(3))
    assert loader.calls == ["general"]
    assert isinstance(state.mode, CardReview)
    assert sorted(q.id for q in state.mode.questions) == [1, 2, 3]
    assert state.mode.index == 0
    assert not state.mode.revealed
    assert state.mode.scroll == 0
    assert "QUESTION" in view(state)


def test_enter_on_empty_filter_does_nothing():
    loader = _StubLoader(QUESTIONS)
    state = _press(browser_state(GROUPS), "/", "z", "z", "enter", "enter", loader=loader)
    assert loader.calls == []
    assert isinstance(state.mode, CategoryBrowser)
    assert "No types found." in view(state)


def test_load_failure_stays_in_browser_with_error():
    loader = _StubLoader(error=StoreError("database is locked"))
    state = _press(browser_state(GROUPS), "enter", loader=loader)
    assert isinstance(state.mode, CategoryBrowser)
    assert state.mode.error == "database is locked"
    assert view(state).startswith("Error: database is locked\nq to quit")

    after = _press(state, "down", "/", "enter", loader=loader)
    assert after.mode == state.mode
    assert loader.calls == [""]
    assert _press(after, "q").done


def test_selection_always_in_range():
    rng = random.Random(7)
    keys = ["up", "down", "j", "k", "/", "g", "e", "n", "x", "backspace", "escape", "enter"]
    state = browser_state(GROUPS)
    for _ in range(500):
        state = update(state, KeyPress(rng.choice(keys)))
        filtered = state.mode.filtered
        assert 0 <= state.mode.selected <= max(0, len(filtered) - 1)


def test_browser_frame_lists_types():
    state = update(browser_state(GROUPS), Resize(80, 20))
    frame = view(state)
    assert "(none) - 2" in frame
    assert "general - 3" in frame
    assert len(frame.split("\n")) == 20


def test_state_is_immutable_value():
    state = AppState(mode=CardReview(questions=tuple(QUESTIONS)))
    new = update(state, KeyPress("l"))
    assert state.mode.index == 0
    assert new.mode.index == 1
