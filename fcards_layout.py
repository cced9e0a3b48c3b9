"""
fcards - screen layout
======================
Builds the text frames shown in the terminal: the bordered question card,
the list of question types, and the small error / end-of-session screens.
None of these functions raise on odd sizes; values are clamped instead.
"""

from __future__ import annotations

from fcards_text import RESET, format_answer_lines, pad_right, wrap_lines

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ORANGE = "\033[38;5;208m"

APP_NAME = "fcards"
DEFAULT_CARD_WIDTH = 64
MIN_CARD_WIDTH = 34
FRAME_ROWS = 5          # top border, title, separator, controls, bottom border
MIN_LIST_ROWS = 6
LIST_CHROME_ROWS = 4
NO_ANSWERS = "(no answers stored)"
NO_TYPE = "(none)"

SCROLL_HINT = "Up/Down: scroll  •  "
HIDDEN_HINT = "Enter: flip  •  H/L: next card"
REVEALED_HINT = "H/L: next card  •  Enter: flip"
SEARCH_HINT = "Type to search  •  Enter/Esc: done  •  q: quit"
LIST_HINT = "J/K: move  •  Enter: open  •  /: search  •  q: quit"


# ---------------------------------------------------------------------------
# Clamping
# ---------------------------------------------------------------------------


def clamp_scroll(offset: int, maximum: int) -> int:
    """Clamp *offset* into [0, maximum] (0 when maximum is negative)."""
    if offset > maximum:
        offset = maximum
    if offset < 0:
        offset = 0
    return offset


def clamp_index(index: int, size: int) -> int:
    """Clamp a cursor into a view of *size* items; 0 for an empty view."""
    return clamp_scroll(index, size - 1)


# ---------------------------------------------------------------------------
# Card
# ---------------------------------------------------------------------------


def build_card_content_lines(question, revealed: bool, width: int) -> list:
    """
    Card body rows: the wrapped question, then (once revealed) the answers
    as a single bulleted block.
    """
    lines = ["QUESTION"]
    lines.extend(wrap_lines(question.text, width))
    lines.append("")
    if revealed:
        lines.append("ANSWERS")
        if not question.answers:
            lines.append(NO_ANSWERS)
        started = False
        for answer in question.answers:
            formatted = format_answer_lines(answer, width, started=started)
            started = started or bool(formatted)
            lines.extend(formatted)
        lines.append("")
    return lines


def visible_content_lines(total: int, height: int) -> int:
    """How many content rows fit under the card frame. Unsized shows all."""
    if total <= 0:
        return 0
    if height <= 0:
        return total
    return max(1, min(height - FRAME_ROWS, total))


def max_scroll(total: int, visible: int) -> int:
    return max(0, total - visible)


def card_width(term_width: int) -> int:
    """Cards take half the terminal, never narrower than MIN_CARD_WIDTH."""
    width = term_width // 2 if term_width > 0 else DEFAULT_CARD_WIDTH
    return max(MIN_CARD_WIDTH, width)


def _content_width(width: int) -> int:
    # Box width minus the two borders and the space inside each.
    return width - 4


def card_max_scroll(question, revealed: bool, term_width: int, term_height: int) -> int:
    lines = build_card_content_lines(question, revealed, _content_width(card_width(term_width)))
    return max_scroll(len(lines), visible_content_lines(len(lines), term_height))


def _border(inner: int) -> str:
    return ORANGE + "+" + "-" * inner + "+" + RESET


def _row(text: str, inner: int) -> str:
    bar = ORANGE + "|" + RESET
    return bar + " " + pad_right(text, inner - 2) + " " + bar


def render_card(question, revealed: bool, pos: int, total: int,
                width: int, height: int, scroll: int) -> str:
    """
    Draw *question* as a bordered box *width* columns wide.

    Only the rows between *scroll* and the visible window are shown; the
    controls line advertises scrolling when the content overflows.
    """
    inner = width - 2
    content = build_card_content_lines(question, revealed, inner - 2)
    visible = visible_content_lines(len(content), height)
    start = clamp_scroll(scroll, max_scroll(len(content), visible))
    shown = content[start:start + visible]

    controls = REVEALED_HINT if revealed else HIDDEN_HINT
    if len(content) > visible:
        controls = SCROLL_HINT + controls

    counter = f"{pos}/{total}"
    title = APP_NAME + counter.rjust(max(0, inner - 2 - len(APP_NAME)))

    rows = [_border(inner), _row(title, inner), _border(inner)]
    rows.extend(_row(line, inner) for line in shown)
    rows.append(_row(controls, inner))
    rows.append(_border(inner))
    return "\n".join(rows)


# ---------------------------------------------------------------------------
# Type list
# ---------------------------------------------------------------------------


def filter_groups(groups, query: str) -> list:
    """Case-insensitive substring filter on the type name."""
    needle = query.strip().lower()
    if not needle:
        return list(groups)
    return [g for g in groups if needle in g.category.lower()]


def render_group_list(groups, selected: int, width: int, height: int,
                      query: str = "", searching: bool = False) -> str:
    lines = [ORANGE + APP_NAME + " - group by type" + RESET, ""]

    filtered = filter_groups(groups, query)
    if searching or query.strip():
        lines.extend([f"Search: {query}", ""])

    if not filtered:
        lines.extend(["No types found.", "q to quit"])
        return "\n".join(lines)

    window = max(MIN_LIST_ROWS, height - LIST_CHROME_ROWS)
    start = selected - window + 1 if selected >= window else 0
    for i, group in enumerate(filtered[start:start + window], start):
        name = group.category.strip() or NO_TYPE
        entry = f"{name} - {group.count}"
        if i == selected:
            lines.append(ORANGE + "> " + entry + RESET)
        else:
            lines.append("  " + entry)

    lines.append("")
    lines.append(SEARCH_HINT if searching else LIST_HINT)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Other screens
# ---------------------------------------------------------------------------


def render_error(message: str) -> str:
    return f"Error: {message}\nq to quit\n"


def render_exhausted() -> str:
    return ORANGE + "No more questions in this session." + RESET + "\nq to quit\n"


def pad_to_height(frame: str, height: int) -> str:
    """Pad with blank rows or cut so the frame is exactly *height* rows."""
    if height <= 0 or not frame:
        return frame
    rows = frame.split("\n")
    if len(rows) >= height:
        return "\n".join(rows[:height])
    rows.extend([""] * (height - len(rows)))
    return "\n".join(rows)
