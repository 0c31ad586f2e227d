"""Text helpers shared by the extraction stages."""

import re
import unicodedata
from bisect import bisect_right
from collections import defaultdict

# Inline constructs, applied in order by strip_inline(). Bodies never contain
# their own delimiters, so each pattern fails at the next delimiter it meets.
_TICKS = re.compile(r"`+")
_IMAGE = re.compile(r"!\[([^\[\]]*)\]\([^()\[\]]*\)")
_WIKILINK = re.compile(r"\[\[([^\[\]|]*)(?:\|([^\[\]]*))?\]\]")
_INLINE_LINK = re.compile(r"\[([^\[\]]*)\]\([^()\[\]]*\)")
_REF_LINK = re.compile(r"\[([^\[\]]+)\]\[[^\[\]]*\]")
_AUTOLINK = re.compile(r"<([A-Za-z][A-Za-z0-9+.-]{1,31}:[^<>\s]*)>")
_HTML_TAG = re.compile(r"</?[A-Za-z][^<>]*>")
_EMPHASIS = re.compile(r"(?<!\\)(\*{1,3}|_{1,3}|~~)(?=[^\s*_~])([^*_~]+)(?<=[^\s\\])\1")
_ESCAPE = re.compile(r"\\([!-/:-@\[-`{-~])")

_TAB_WIDTH = 4


def slugify(text: str) -> str:
    """
    Convert text to a URL-safe slug.

    - Lowercase
    - Unicode normalize (NFKD), drop combining marks
    - Remove punctuation except spaces, hyphens and underscores
    - Convert whitespace to single `-`
    - Collapse multiple `-` to single, strip leading/trailing `-`

    Accented letters lose their accents ("Über" becomes "uber"); letters with
    no decomposition, such as "ß" or CJK, are kept.

    Examples:
        >>> slugify("Parallel transport")
        'parallel-transport'
        >>> slugify("Riemann–Christoffel symbols")
        'riemann-christoffel-symbols'
    """
    text = text.lower()

    # En dash, em dash and minus sign count as hyphens
    text = text.replace('–', '-').replace('—', '-').replace('−', '-')

    text = unicodedata.normalize('NFKD', text)
    text = ''.join(c for c in text if not unicodedata.combining(c))

    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'\s+', '-', text)
    text = re.sub(r'-+', '-', text)
    return text.strip('-')


def _strip_code_spans(text: str) -> str:
    """Replace each code span with its trimmed content."""
    runs = [(m.start(), m.end()) for m in _TICKS.finditer(text)]
    by_width: dict[int, list[int]] = defaultdict(list)
    for n, (start, end) in enumerate(runs):
        by_width[end - start].append(n)
    # Per width, the first run not yet passed
    cursor: dict[int, int] = defaultdict(int)

    out = []
    pos = 0
    n = 0
    while n < len(runs):
        start, end = runs[n]
        same = by_width[end - start]
        c = cursor[end - start]
        while c < len(same) and same[c] <= n:
            c += 1
        cursor[end - start] = c
        if c == len(same):
            n += 1
            continue
        close_start, close_end = runs[same[c]]
        out.append(text[pos:start])
        out.append(text[end:close_start].strip())
        pos = close_end
        n = same[c] + 1
    out.append(text[pos:])
    return "".join(out)


def strip_inline(text: str) -> str:
    """
    Reduce inline Markdown to the text a reader would see.

        >>> strip_inline("Use **bold** and [a link](x.md)")
        'Use bold and a link'
    """
    text = _strip_code_spans(text)
    text = _IMAGE.sub(r"\1", text)
    text = _WIKILINK.sub(lambda m: (m.group(2) or m.group(1)).strip(), text)
    text = _INLINE_LINK.sub(r"\1", text)
    text = _REF_LINK.sub(r"\1", text)
    text = _AUTOLINK.sub(r"\1", text)
    text = _HTML_TAG.sub("", text)
    # Nested emphasis needs more than one pass
    for _ in range(3):
        stripped = _EMPHASIS.sub(r"\2", text)
        if stripped == text:
            break
        text = stripped
    return _ESCAPE.sub(r"\1", text)


def indent_width(line: str) -> int:
    """Column of the first non-blank character, tabs expanded to 4."""
    col = 0
    for ch in line:
        if ch == " ":
            col += 1
        elif ch == "\t":
            col += _TAB_WIDTH - (col % _TAB_WIDTH)
        else:
            break
    return col


def strip_indent(line: str, width: int) -> str:
    """Remove up to `width` columns of leading whitespace."""
    col = 0
    i = 0
    while i < len(line) and col < width:
        if line[i] == " ":
            col += 1
        elif line[i] == "\t":
            col += _TAB_WIDTH - (col % _TAB_WIDTH)
        else:
            break
        i += 1
    return line[i:]


def normalize_label(label: str) -> str:
    """Reference labels match case-insensitively with collapsed whitespace."""
    return " ".join(label.split()).casefold()


class LineIndex:
    """
    Line numbers for many offsets into one text.

    Builds the table of line starts once; each lookup is a binary search.
    """

    def __init__(self, text: str):
        self._starts = [0]
        self._starts.extend(m.end() for m in re.finditer("\n", text))

    def line_of(self, offset: int) -> int:
        """1-based line holding `offset`."""
        return bisect_right(self._starts, max(0, offset))
