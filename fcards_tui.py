"""
fcards - Textual front end
==========================
Runs the reviewer full-screen. Every key press and resize goes through
fcards_state.update; the resulting frame is painted into a single Static
that covers the screen.
"""

from __future__ import annotations

import logging
import sys

try:
    from rich.text import Text
    from textual import events
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.widgets import Static
except ImportError:
    print("Textual not installed. Run:  pip install textual")
    sys.exit(1)

from fcards_state import AppState, KeyPress, Resize, update, view

LOGGER = logging.getLogger(__name__)


def key_name(event: events.Key) -> str:
    """Printable keys by their character, everything else by Textual's name."""
    if event.is_printable and event.character:
        return event.character
    return event.key


class CardsApp(App):
    TITLE = "fcards"
    ENABLE_COMMAND_PALETTE = False

    CSS = """
    Screen { overflow: hidden; }
    #frame { width: 100%; height: 100%; }
    """

    # Textual reserves ctrl+c for itself unless we claim it first.
    BINDINGS = [
        Binding("ctrl+c", "quit_cards", "Quit", show=False, priority=True),
    ]

    def __init__(self, state: AppState, loader=None) -> None:
        super().__init__()
        self.state = state
        self.loader = loader
        self.card_view = Static(id="frame")

    def compose(self) -> ComposeResult:
        yield self.card_view

    def on_mount(self) -> None:
        LOGGER.info("ui started at %dx%d", self.size.width, self.size.height)
        self.apply_event(Resize(self.size.width, self.size.height))

    def on_resize(self, event: events.Resize) -> None:
        self.apply_event(Resize(event.size.width, event.size.height))

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self.apply_event(KeyPress(key_name(event)))

    def action_quit_cards(self) -> None:
        self.apply_event(KeyPress("ctrl+c"))

    def apply_event(self, event) -> None:
        """Apply one event, then repaint or exit."""
        self.state = update(self.state, event, loader=self.loader)
        if self.state.done:
            LOGGER.info("ui closed")
            self.exit()
            return
        frame = view(self.state)
        self.card_view.update(Text.from_ansi(frame, no_wrap=True, overflow="crop"))


def run_ui(state: AppState, loader=None) -> AppState:
    """Run the reviewer until quit; returns the final state."""
    app = CardsApp(state, loader)
    app.run()
    return app.state
