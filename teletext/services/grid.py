# FILE: teletext/services/grid.py
"""
Text-grid helpers: visible width, word wrapping and row padding for the
24x40 page grid.

Color tags such as ``{red}`` take no space on screen, emoji and East Asian
wide glyphs take two cells, combining marks and format characters none.
"""
import re
import unicodedata
from typing import Iterator, List, Sequence, Tuple

PAGE_ROWS = 24
PAGE_COLS = 40
SEPARATOR = "═" * PAGE_COLS

COLOR_TAG_RE = re.compile(r"\{(?:red|green|yellow|blue|magenta|cyan|white|black)\}", re.IGNORECASE)

# Pictographs rendered double-width by teletext terminals regardless of their
# East Asian width property
_WIDE_RANGES = (
    (0x2600, 0x27BF),
    (0x1F300, 0x1FAFF),
)


def char_width(ch: str) -> int:
    code = ord(ch)
    if unicodedata.combining(ch) or unicodedata.category(ch) in ("Mn", "Me", "Cf"):
        return 0
    for start, end in _WIDE_RANGES:
        if start <= code <= end:
            return 2
    if unicodedata.east_asian_width(ch) in ("W", "F"):
        return 2
    return 1


def _tokens(text: str) -> Iterator[Tuple[str, int]]:
    """Yield (token, width) pairs; color tags are single zero-width tokens"""
    pos = 0
    for match in COLOR_TAG_RE.finditer(text):
        for ch in text[pos:match.start()]:
            yield ch, char_width(ch)
        yield match.group(0), 0
        pos = match.end()
    for ch in text[pos:]:
        yield ch, char_width(ch)


def visible_width(text: str) -> int:
    return sum(width for _, width in _tokens(text))


def strip_tags(text: str) -> str:
    return COLOR_TAG_RE.sub("", text)


def truncate(text: str, width: int) -> str:
    """Cut text to at most `width` visible cells without splitting a glyph"""
    out = []
    used = 0
    for token, w in _tokens(text):
        if used + w > width:
            break
        out.append(token)
        used += w
    return "".join(out)


def ellipsize(text: str, width: int) -> str:
    if visible_width(text) <= width:
        return text
    return truncate(text, max(width - 3, 0)) + "..."


def pad_row(text: str, width: int = PAGE_COLS) -> str:
    """Return text truncated or space-padded to exactly `width` visible cells"""
    text = text.replace("\t", " ").replace("\n", " ")
    if visible_width(text) > width:
        text = truncate(text, width)
    return text + " " * (width - visible_width(text))


def fit_rows(rows: Sequence[str], total: int = PAGE_ROWS, width: int = PAGE_COLS) -> List[str]:
    """Pad every row to the grid width and the row list to exactly `total` rows"""
    padded = [pad_row(row, width) for row in list(rows)[:total]]
    while len(padded) < total:
        padded.append(" " * width)
    return padded


def _hard_break(word: str, width: int) -> List[str]:
    chunks = []
    current = []
    used = 0
    for token, w in _tokens(word):
        if used + w > width and current:
            chunks.append("".join(current))
            current = []
            used = 0
        current.append(token)
        used += w
    if current:
        chunks.append("".join(current))
    return chunks


def _wrap_paragraph(paragraph: str, width: int) -> List[str]:
    lines: List[str] = []
    current = ""
    current_width = 0

    for word in paragraph.split():
        word_width = visible_width(word)
        if word_width > width:
            # Word is too long, hard wrap it
            if current:
                lines.append(current)
                current, current_width = "", 0
            lines.extend(_hard_break(word, width))
        elif not current:
            current, current_width = word, word_width
        elif current_width + 1 + word_width <= width:
            current += " " + word
            current_width += 1 + word_width
        else:
            lines.append(current)
            current, current_width = word, word_width

    if current:
        lines.append(current)
    return lines


def wrap_text(text: str, width: int = PAGE_COLS) -> List[str]:
    """
    Word-wrap text to `width` visible cells.

    Explicit line breaks are kept as paragraph breaks; runs of blank lines
    collapse to one blank line and leading/trailing blank lines are dropped.
    Words are only split when a single word is wider than the line.
    """
    if width < 2:
        raise ValueError("wrap width must be at least 2 cells")

    lines: List[str] = []
    for paragraph in (text or "").splitlines():
        wrapped = _wrap_paragraph(paragraph, width)
        if wrapped:
            lines.extend(wrapped)
        elif lines and lines[-1] != "":
            lines.append("")

    while lines and lines[-1] == "":
        lines.pop()
    return lines


def title_row(page_id: str, title: str, width: int = PAGE_COLS) -> str:
    """Header row with the title on the left and the page number on the right"""
    tag = f"P{page_id}"
    room = width - visible_width(tag) - 1
    left = ellipsize(title.upper(), room)
    return left + " " * (width - visible_width(left) - visible_width(tag)) + tag


def centered(text: str, width: int = PAGE_COLS) -> str:
    text = truncate(text, width)
    spare = width - visible_width(text)
    return " " * (spare // 2) + text
