"""
fcards - text helpers
=====================
Word wrapping, colour-aware width measurement and answer formatting for the
card view. Everything here is a pure function of its arguments.
"""

from __future__ import annotations

from typing import Callable

from pygments import highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexers import TextLexer, get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound
from rich.cells import cell_len, get_character_cell_size

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ESC = "\033"
RESET = "\033[0m"

FENCE = "```"
FIRST_PREFIX = "- "
NEXT_PREFIX = "  "

TAB_WIDTH = 4
HIGHLIGHT_STYLE = "monokai"


# ---------------------------------------------------------------------------
# Wrapping
# ---------------------------------------------------------------------------


def wrap_lines(text: str, width: int) -> list:
    """
    Greedy word wrap measured in terminal cells. Words wider than *width*
    get a line to themselves.
    """
    words = text.split()
    if not words:
        return [""]

    lines = []
    current = words[0]
    for word in words[1:]:
        if cell_len(current) + 1 + cell_len(word) > width:
            lines.append(current)
            current = word
        else:
            current += " " + word
    lines.append(current)
    return lines


def expand_tabs(text: str, tab_width: int = TAB_WIDTH) -> str:
    """Replace tabs with spaces up to the next multiple of *tab_width*."""
    if tab_width <= 0 or "\t" not in text:
        return text
    out = []
    col = 0
    for ch in text:
        if ch == "\t":
            count = tab_width - (col % tab_width)
            out.append(" " * count)
            col += count
        elif ch == "\n":
            out.append(ch)
            col = 0
        else:
            out.append(ch)
            col += 1
    return "".join(out)


# ---------------------------------------------------------------------------
# Visible width (colour escape sequences take no columns)
# ---------------------------------------------------------------------------


def visual_width(text: str) -> int:
    """Return the number of terminal cells *text* occupies."""
    width = 0
    in_escape = False
    for ch in text:
        if ch == ESC:
            in_escape = True
        elif in_escape:
            if ch == "m":
                in_escape = False
        else:
            width += get_character_cell_size(ch)
    return width


def truncate_to_visual_width(text: str, max_width: int) -> str:
    """Cut *text* to *max_width* visible cells, keeping colour sequences intact."""
    out = []
    width = 0
    in_escape = False
    styled = False
    for ch in text:
        if ch == ESC:
            in_escape = True
            styled = True
            out.append(ch)
            continue
        if in_escape:
            out.append(ch)
            if ch == "m":
                in_escape = False
            continue
        size = get_character_cell_size(ch)
        if width + size > max_width:
            break
        out.append(ch)
        width += size
    result = "".join(out)
    if styled and not result.endswith(RESET):
        result += RESET
    return result


def pad_right(text: str, width: int) -> str:
    """Pad with spaces to exactly *width* visible cells, truncating if longer."""
    current = visual_width(text)
    if current >= width:
        return truncate_to_visual_width(text, width)
    return text + " " * (width - current)


# ---------------------------------------------------------------------------
# Code highlighting
# ---------------------------------------------------------------------------


def highlight_code(code: str, lang: str = "") -> str:
    """Colour *code* for a 256-colour terminal. Unknown languages are guessed."""
    lexer = None
    if lang:
        try:
            lexer = get_lexer_by_name(lang, stripnl=False)
        except ClassNotFound:
            lexer = None
    if lexer is None:
        try:
            lexer = guess_lexer(code, stripnl=False)
        except ClassNotFound:
            lexer = TextLexer(stripnl=False)
    return highlight(code, lexer, Terminal256Formatter(style=HIGHLIGHT_STYLE))


# ---------------------------------------------------------------------------
# Answer formatting
# ---------------------------------------------------------------------------


def format_answer_lines(
    answer: str,
    width: int,
    highlighter: Callable[[str, str], str] = highlight_code,
    started: bool = False,
) -> list:
    """
    Turn one stored answer into bulleted display lines.

    The first line of content gets "- ", everything after it "  ". Fenced
    code blocks are highlighted and never wrapped; a block that is never
    closed is dropped. Pass started=True when this answer continues a block
    whose bullet was already printed.
    """
    out = []
    used = started
    in_code = False
    code_lang = ""
    code_lines = []

    def prefix():
        nonlocal used
        if used:
            return NEXT_PREFIX
        used = True
        return FIRST_PREFIX

    for raw in answer.split("\n"):
        line = raw.rstrip("\r")
        trimmed = line.strip()

        if trimmed.startswith(FENCE):
            if not in_code:
                in_code = True
                code_lang = trimmed[len(FENCE):].strip()
                code_lines = []
                continue
            in_code = False
            code = expand_tabs("\n".join(code_lines), TAB_WIDTH)
            highlighted = highlighter(code, code_lang)
            if highlighted.endswith("\n"):
                highlighted = highlighted[:-1]
            rendered = highlighted.split("\n")
            # a trailing blank code line is indistinguishable from the final newline
            rendered += [""] * (len(code_lines) - len(rendered))
            for hl in rendered:
                out.append(prefix() + hl)
            continue

        if in_code:
            code_lines.append(line)
            continue

        if not trimmed:
            if used:
                out.append("")
            continue

        space = max(1, width - cell_len(NEXT_PREFIX if used else FIRST_PREFIX))
        for piece in wrap_lines(line, space):
            out.append(prefix() + piece)

    return out
