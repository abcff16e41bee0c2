from __future__ import annotations

"""Greedy word-wrap.

Lines are produced in logical reading order and carry their measured width,
so a right-to-left caller can anchor each line's right edge at a fixed x and
draw it at `x - line.width`. The engine itself never looks at direction; it
only needs a `measure(text, size) -> width` callable.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional


Measure = Callable[[str, float], float]

_BREAK_RE = re.compile(r"\r?\n")


@dataclass(frozen=True)
class LayoutLine:
    text: str
    width: float
    size: float

    @property
    def words(self) -> List[str]:
        return self.text.split()


def _wrap_paragraph(words: List[str], max_width: float, size: float, measure: Measure) -> List[LayoutLine]:
    lines: List[LayoutLine] = []
    cur = ""
    for w in words:
        test = f"{cur} {w}" if cur else w
        if cur and measure(test, size) > max_width:
            lines.append(LayoutLine(cur, measure(cur, size), size))
            cur = w
        else:
            # A word wider than max_width still gets a line of its own.
            cur = test
    if cur:
        lines.append(LayoutLine(cur, measure(cur, size), size))
    return lines


def wrap_text(
    text: Optional[str],
    max_width: float,
    size: float,
    measure: Measure,
    *,
    max_lines: Optional[int] = None,
    marker: str = "...",
) -> List[LayoutLine]:
    """Wrap `text` into lines no wider than `max_width`.

    Explicit line breaks split the text into paragraphs before wrapping, so
    words never move across a break. Empty or whitespace-only input gives
    no lines.

    With `max_lines`, output longer than that is cut to `max_lines` lines and
    the last one ends with `marker`, shortened from the end until it fits.
    """
    lines: List[LayoutLine] = []
    for paragraph in _BREAK_RE.split(text or ""):
        words = paragraph.split()
        if words:
            lines.extend(_wrap_paragraph(words, max_width, size, measure))

    if max_lines is not None and len(lines) > max_lines:
        lines = lines[: max(0, max_lines)]
        if lines:
            lines[-1] = _with_marker(lines[-1].text, marker, max_width, size, measure)
    return lines


def _with_marker(text: str, marker: str, max_width: float, size: float, measure: Measure) -> LayoutLine:
    while text and measure(text + marker, size) > max_width:
        text = text[:-1]
    out = text + marker
    return LayoutLine(out, measure(out, size), size)


def block_height(lines: List[LayoutLine], line_height: float) -> float:
    """Vertical space taken by `lines` at `line_height` (a factor of the size)."""
    return sum(line.size * line_height for line in lines)
