"""
Typed extraction strategies for label-adjacent-to-value HTML.

Each strategy is a pure function ``(soup) -> str | None``. A field is
extracted by trying its strategies in order and keeping the first non-empty
result, so the fallback chain stays explicit and each layer can be tested
on its own:

1. table_lookup: a <td>/<th> whose text matches the label; value is the
   adjacent cell (or an indexed cell of the parent row).
2. proximity_lookup: generic text nodes matching the label; value is looked
   up in the same row, the next few siblings, then the parent's next sibling.
3. text_regex: a label-anchored pattern over the visible document text.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from bs4 import BeautifulSoup, Comment, Tag

Strategy = Callable[[BeautifulSoup], "str | None"]

CELL_TAGS = ["td", "th"]
PROXIMITY_TAGS = ["div", "span", "p", "li", "dt", "dd", "label", "td", "th"]
MAX_LABEL_CHARS = 60
MAX_SIBLING_HOPS = 5
HIDDEN_TAGS = ("script", "style", "noscript", "template")

_ALPHA_ONLY = re.compile(r"^[A-Za-z\s()/&.,'-]+$")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def visible_text(soup: BeautifulSoup) -> str:
    """Whitespace-collapsed document text without script/style content."""
    root = soup.body or soup
    parts = [
        str(s)
        for s in root.find_all(string=True)
        if not isinstance(s, Comment) and s.parent.name not in HIDDEN_TAGS
    ]
    return " ".join(" ".join(parts).split())


def node_text(node: Tag | None) -> str:
    if node is None:
        return ""
    return " ".join(node.get_text(" ", strip=True).split())


def row_values(soup: BeautifulSoup, label: re.Pattern) -> list[str]:
    """All non-empty cell texts following the first cell matching label."""
    for cell in soup.find_all(CELL_TAGS):
        if cell.find("table") is not None:
            continue
        if not label.search(node_text(cell)):
            continue
        row = cell.find_parent("tr")
        if row is None:
            continue
        cells = row.find_all(CELL_TAGS)
        index = next(i for i, c in enumerate(cells) if c is cell)
        values = [node_text(c) for c in cells[index + 1 :]]
        values = [v for v in values if v]
        if values:
            return values
    return []


def table_lookup(label: re.Pattern, row_index: int = 1) -> Strategy:
    """Layer 1: tabular label -> adjacent cell lookup."""

    def _lookup(soup: BeautifulSoup) -> str | None:
        for cell in soup.find_all(CELL_TAGS):
            txt = node_text(cell)
            if not txt or not label.search(txt):
                continue
            if cell.find("table") is not None:
                continue
            value_cell = cell.find_next_sibling(CELL_TAGS)
            if value_cell is None:
                row = cell.parent
                if row is not None:
                    cells = row.find_all(CELL_TAGS)
                    if len(cells) > row_index:
                        value_cell = cells[row_index]
            value = node_text(value_cell)
            if value and value != txt:
                return value
        return None

    return _lookup


def _is_label_node(node: Tag, label: re.Pattern) -> bool:
    txt = node_text(node)
    if not txt or len(txt) > MAX_LABEL_CHARS or not label.search(txt):
        return False
    # Prefer the innermost element carrying the label.
    return not any(
        label.search(node_text(child)) for child in node.find_all(PROXIMITY_TAGS)
    )


def _acceptable(candidate: str, label_text: str) -> bool:
    if not candidate or candidate == label_text:
        return False
    return not _ALPHA_ONLY.match(candidate)


def _proximity_candidates(node: Tag) -> Iterable[str]:
    row = node.find_parent("tr")
    if row is not None:
        cells = row.find_all(CELL_TAGS)
        own = node if node.name in CELL_TAGS else node.find_parent(CELL_TAGS)
        after = False
        for cell in cells:
            if after:
                yield node_text(cell)
            if cell is own:
                after = True

    for sibling in node.find_next_siblings(limit=MAX_SIBLING_HOPS):
        yield node_text(sibling)

    if node.parent is not None:
        yield node_text(node.parent.find_next_sibling())


def proximity_lookup(label: re.Pattern) -> Strategy:
    """Layer 2: structural proximity lookup for non-tabular markup."""

    def _lookup(soup: BeautifulSoup) -> str | None:
        for node in soup.find_all(PROXIMITY_TAGS):
            if not _is_label_node(node, label):
                continue
            label_text = node_text(node)
            for candidate in _proximity_candidates(node):
                if _acceptable(candidate, label_text):
                    return candidate
        return None

    return _lookup


def text_regex(pattern: re.Pattern) -> Strategy:
    """Layer 3: first capture group of pattern over the visible text."""

    def _lookup(soup: BeautifulSoup) -> str | None:
        match = pattern.search(visible_text(soup))
        if match and match.group(1):
            return match.group(1).strip()
        return None

    return _lookup


def first_match(strategies: Iterable[Strategy], soup: BeautifulSoup) -> str | None:
    for strategy in strategies:
        value = strategy(soup)
        if value:
            return value
    return None


def strip_currency(value: str | None) -> str | None:
    """Drop a leading currency symbol; the only coercion parsers perform."""
    if value is None:
        return None
    return re.sub(r"^\s*[₹$€£]\s*", "", value).strip() or None
