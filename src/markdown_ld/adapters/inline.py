"""Inline link scanning.

Finds inline links, images, reference links, autolinks and wiki-links in one
span of prose. Code spans and backslash escapes are stepped over. Links are
not looked for inside link text.

A link whose syntax breaks is reported as malformed and covers only its
opening and the first token of its destination; scanning resumes right after
it so later links in the same block are still found.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from ..core.model import Block, BlockKind
from ..core.utils import normalize_label, strip_inline
from .block_scanner import REFERENCE_RE

log = logging.getLogger(__name__)

AUTOLINK_RE = re.compile(r"<([A-Za-z][A-Za-z0-9+.-]{1,31}:[^<>\s]*)>")
EMAIL_AUTOLINK_RE = re.compile(r"<([^\s@<>()\[\]\\]+@[^\s@<>()\[\]\\]+\.[A-Za-z]{2,})>")
_UNESCAPE_RE = re.compile(r"\\(.)")
# First token of a destination that failed to parse
_DEST_TOKEN_RE = re.compile(r"[ \t]*(<?[^\s<>()\[\]]*>?)")
# First token of a wiki-link that never closes
_WIKI_TOKEN_RE = re.compile(r"[ \t]*([^\s\[\]|]*)")

# Longer labels are never looked up as references
MAX_LABEL = 999
# Deeper parentheses end a destination
MAX_PAREN_DEPTH = 32


@dataclass(frozen=True)
class RawLink:
    """A link as written, before classification."""

    target: str
    display: str
    start: int
    end: int
    form: str  # "inline" | "reference" | "autolink" | "wikilink"
    malformed: bool = False
    title: str = ""
    is_image: bool = False


def collect_definitions(blocks: Iterable[Block]) -> dict[str, tuple[str, str]]:
    """
    Gather "[label]: target "title"" definitions from the whole document.

    Maps each normalized label to (target, title). The first definition of a
    label wins.
    """
    defs: dict[str, tuple[str, str]] = {}
    for block in blocks:
        if block.kind != BlockKind.REFERENCE:
            continue
        for line in block.raw.splitlines():
            m = REFERENCE_RE.match(line)
            if not m:
                continue
            label = normalize_label(_UNESCAPE_RE.sub(r"\1", m.group(1)))
            dest = m.group(2)
            if dest.startswith("<") and dest.endswith(">"):
                dest = dest[1:-1]
            title = m.group(3)[1:-1] if m.group(3) else ""
            if label and label not in defs:
                defs[label] = (dest, title)
    return defs


def _display(text: str) -> str:
    return " ".join(strip_inline(text).split())


class _Finder:
    """str.find over one text, remembering the last hit for each needle."""

    def __init__(self, text: str):
        self.text = text
        self._last: dict[str, tuple[int, int]] = {}

    def find(self, needle: str, start: int) -> int:
        last = self._last.get(needle)
        # The previous answer holds for any start between its start and its hit
        if last is not None and last[0] <= start and (last[1] < 0 or last[1] >= start):
            return last[1]
        hit = self.text.find(needle, start)
        self._last[needle] = (start, hit)
        return hit


class InlineScanner:
    def __init__(self, definitions: dict[str, tuple[str, str]] | None = None):
        self.definitions = definitions or {}

    def scan(self, text: str, base: int = 0) -> list[RawLink]:
        """Return the links in `text`, offsets shifted by `base`."""
        found: list[RawLink] = []
        finder = _Finder(text)
        pairs = _bracket_pairs(text, finder)
        n = len(text)
        i = 0
        while i < n:
            c = text[i]
            if c == "\\":
                i += 2
            elif c == "`":
                i = _skip_code(text, i, finder)
            elif text.startswith("[[", i) or text.startswith("![[", i):
                i = self._wikilink(text, i, base, found, finder)
            elif c == "!" and text.startswith("[", i + 1):
                i = self._bracket(text, i + 1, base, found, finder, pairs, image=True)
            elif c == "[":
                i = self._bracket(text, i, base, found, finder, pairs)
            elif c == "<":
                i = self._autolink(text, i, base, found)
            else:
                i += 1
        return found

    def _wikilink(self, text, i, base, found, finder) -> int:
        open_at = i + (3 if text[i] == "!" else 2)
        close = finder.find("]]", open_at)
        bracket = finder.find("[", open_at)
        newline = finder.find("\n", open_at)
        if close < 0 or 0 <= bracket < close or 0 <= newline < close:
            m = _WIKI_TOKEN_RE.match(text, open_at)
            log.debug("unclosed wiki-link at offset %d", base + i)
            found.append(
                RawLink(m.group(1), "", base + i, base + m.end(), "wikilink", malformed=True)
            )
            return max(m.end(), open_at)
        target, display = _split_wikilink(text[open_at:close])
        found.append(
            RawLink(target, display, base + i, base + close + 2, "wikilink",
                    malformed=not target)
        )
        return close + 2

    def _bracket(self, text, i, base, found, finder, pairs, image=False) -> int:
        start = i - 1 if image else i
        close = pairs.get(i, -1)
        if close < 0:
            return i + 1
        after = close + 1

        if text.startswith("(", after):
            label_text = text[i + 1:close]
            parsed = _parse_destination(text, after + 1, finder)
            if parsed is None:
                m = _DEST_TOKEN_RE.match(text, after + 1)
                log.debug("malformed inline link at offset %d", base + start)
                found.append(
                    RawLink(m.group(1).strip("<>"), _display(label_text), base + start,
                            base + m.end(), "inline", malformed=True, is_image=image)
                )
                return m.end()
            dest, title, end = parsed
            found.append(
                RawLink(dest, _display(label_text), base + start, base + end, "inline",
                        malformed=not dest, title=title, is_image=image)
            )
            return end

        close2 = pairs.get(after, -1) if text.startswith("[", after) else -1
        if close2 >= 0:
            label_text = text[i + 1:close]
            label = text[after + 1:close2]
            if not label.strip():
                label = label_text  # collapsed "[text][]"
            dest, title = self._lookup(label)
            found.append(
                RawLink(dest if dest is not None else label.strip(), _display(label_text),
                        base + start, base + close2 + 1, "reference",
                        malformed=dest is None, title=title, is_image=image)
            )
            return close2 + 1

        if self.definitions and close - i - 1 <= MAX_LABEL:
            label_text = text[i + 1:close]
            dest, title = self._lookup(label_text)
            if dest is not None:
                found.append(
                    RawLink(dest, _display(label_text), base + start, base + after,
                            "reference", title=title, is_image=image)
                )
                return after
        # Plain brackets; keep looking inside them
        return i + 1

    def _lookup(self, label: str) -> tuple[str | None, str]:
        if len(label) > MAX_LABEL:
            return None, ""
        return self.definitions.get(normalize_label(label), (None, ""))

    def _autolink(self, text: str, i: int, base: int, found: list[RawLink]) -> int:
        m = AUTOLINK_RE.match(text, i)
        if m:
            found.append(
                RawLink(m.group(1), m.group(1), base + i, base + m.end(), "autolink")
            )
            return m.end()
        m = EMAIL_AUTOLINK_RE.match(text, i)
        if m:
            found.append(
                RawLink(f"mailto:{m.group(1)}", m.group(1), base + i, base + m.end(), "autolink")
            )
            return m.end()
        return i + 1


def _split_wikilink(inner: str) -> tuple[str, str]:
    # Handles: id | id|Title | id#heading|Title | rel:foo|id|Title
    parts = inner.split("|")
    if len(parts) == 3 and parts[0].strip().startswith("rel:"):
        parts = parts[1:]
    target = parts[0].strip()
    display = parts[1].strip() if len(parts) > 1 else ""
    return target, display or target


def _skip_code(text: str, i: int, finder: _Finder) -> int:
    """Index just past the code span opening at `i`, or past its backticks."""
    n = len(text)
    k = i
    while k < n and text[k] == "`":
        k += 1
    run = "`" * (k - i)
    j = k
    while True:
        j = finder.find(run, j)
        if j < 0:
            return k
        end = j + len(run)
        if end < n and text[end] == "`":
            while end < n and text[end] == "`":
                end += 1
            j = end
            continue
        return end


def _bracket_pairs(text: str, finder: _Finder) -> dict[int, int]:
    """Map every "[" to the "]" closing it, skipping escapes and code spans."""
    pairs: dict[int, int] = {}
    stack: list[int] = []
    n = len(text)
    j = 0
    while j < n:
        ch = text[j]
        if ch == "\\":
            j += 2
            continue
        if ch == "`":
            j = _skip_code(text, j, finder)
            continue
        if ch == "[":
            stack.append(j)
        elif ch == "]" and stack:
            pairs[stack.pop()] = j
        j += 1
    return pairs


def _skip_space(text: str, j: int) -> int:
    while j < len(text) and text[j] in " \t\r\n":
        j += 1
    return j


def _parse_destination(text: str, j: int, finder: _Finder) -> tuple[str, str, int] | None:
    """
    Parse `dest "title")` starting just after "(".

    Returns (destination, title, index past ")") or None when the syntax breaks.
    """
    n = len(text)
    j = _skip_space(text, j)
    if j < n and text[j] == "<":
        k = finder.find(">", j)
        newline = finder.find("\n", j)
        if k < 0 or 0 <= newline < k:
            return None
        dest = text[j + 1:k]
        j = k + 1
    else:
        start = j
        depth = 0
        while j < n:
            ch = text[j]
            if ch == "\\" and j + 1 < n:
                j += 2
                continue
            if ch.isspace():
                break
            if ch == "(":
                depth += 1
                if depth > MAX_PAREN_DEPTH:
                    return None
            elif ch == ")":
                if depth == 0:
                    break
                depth -= 1
            j += 1
        if depth:
            return None
        dest = text[start:j]
    title = ""
    j = _skip_space(text, j)
    if j < n and text[j] in "\"'(":
        closer = ")" if text[j] == "(" else text[j]
        k = finder.find(closer, j + 1)
        if k < 0:
            return None
        title = text[j + 1:k]
        j = _skip_space(text, k + 1)
    if j < n and text[j] == ")":
        return dest, title, j + 1
    return None
