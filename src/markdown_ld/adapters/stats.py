"""Word count and reading time over prose."""

import re
from collections.abc import Iterable

from ..core.model import Block, BlockKind
from ..core.utils import strip_inline
from .extractors import split_checkbox

WORDS_PER_MINUTE = 200

_WORDLIKE = re.compile(r"\w")


def prose_spans(blocks: Iterable[Block]) -> list[str]:
    """Paragraph, heading and list item text; code and frontmatter never appear."""
    spans = []
    for block in blocks:
        if block.kind == BlockKind.PARAGRAPH:
            spans.append(block.content)
        elif block.kind == BlockKind.HEADING:
            spans.append(block.content)
        elif block.kind == BlockKind.LIST:
            for item in block.items:
                _, rest, _ = split_checkbox(item)
                spans.append(rest)
    return spans


def count_words(text: str) -> int:
    """Whitespace-separated tokens holding at least one word character."""
    return sum(1 for tok in strip_inline(text).split() if _WORDLIKE.search(tok))


def reading_time(word_count: int, words_per_minute: int = WORDS_PER_MINUTE) -> int:
    """
    Minutes to read, rounded up.

    0 for an empty document, otherwise at least 1.
    """
    if word_count <= 0:
        return 0
    return max(1, -(-word_count // words_per_minute))


def compute_stats(
    blocks: Iterable[Block], words_per_minute: int = WORDS_PER_MINUTE
) -> tuple[int, int]:
    """Return (word_count, reading_time_minutes)."""
    words = sum(count_words(span) for span in prose_spans(blocks))
    return words, reading_time(words, words_per_minute)
