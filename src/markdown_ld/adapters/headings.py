"""Heading extraction and table-of-contents construction."""

from collections.abc import Iterable, Sequence

from ..core.model import Block, BlockKind, Heading, TocNode
from ..core.utils import slugify, strip_inline

EMPTY_SLUG = "section"


class SlugRegistry:
    """
    Hand out document-unique slugs.

    The first "intro" stays "intro", later ones become "intro-2", "intro-3",
    skipping any suffixed form a real heading has already claimed.
    """

    def __init__(self) -> None:
        self._taken: set[str] = set()
        self._counts: dict[str, int] = {}

    def claim(self, base: str) -> str:
        base = base or EMPTY_SLUG
        if base not in self._taken:
            self._taken.add(base)
            self._counts[base] = 1
            return base
        n = self._counts.get(base, 1)
        while True:
            n += 1
            candidate = f"{base}-{n}"
            if candidate not in self._taken:
                break
        self._counts[base] = n
        self._taken.add(candidate)
        return candidate


def extract_headings(blocks: Iterable[Block]) -> list[Heading]:
    slugs = SlugRegistry()
    headings = []
    for block in blocks:
        if block.kind != BlockKind.HEADING:
            continue
        plain = " ".join(strip_inline(block.content).split())
        headings.append(
            Heading(
                level=block.level,
                text=block.content,
                plain_text=plain,
                slug=slugs.claim(slugify(plain)),
                start_offset=block.range.start,
                end_offset=block.range.end,
            )
        )
    return headings


class _Open:
    __slots__ = ("heading", "children")

    def __init__(self, heading: Heading):
        self.heading = heading
        self.children: list[_Open] = []

    def freeze(self) -> TocNode:
        return TocNode(self.heading, tuple(c.freeze() for c in self.children))


def build_toc(headings: Sequence[Heading]) -> tuple[TocNode, ...]:
    """
    Nest headings by level.

    A heading hangs under the nearest preceding heading of a lower level;
    skipped levels are never filled in with placeholder nodes.
    """
    roots: list[_Open] = []
    stack: list[_Open] = []
    for heading in headings:
        node = _Open(heading)
        while stack and stack[-1].heading.level >= heading.level:
            stack.pop()
        if stack:
            stack[-1].children.append(node)
        else:
            roots.append(node)
        stack.append(node)
    return tuple(r.freeze() for r in roots)
