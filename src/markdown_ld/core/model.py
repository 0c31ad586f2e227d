from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .meta import Frontmatter

DocumentId = str


class BlockKind(str, Enum):
    FRONTMATTER = "frontmatter"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    FENCE = "fence"
    INDENTED_CODE = "indented_code"
    LIST = "list"
    REFERENCE = "reference"  # "[label]: target" definitions
    RULE = "rule"
    BLANK = "blank"


class LinkKind(str, Enum):
    EXTERNAL = "external"
    INTERNAL = "internal"
    ANCHOR = "anchor"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class Range:
    start: int  # character offsets into the decoded text
    end: int


@dataclass(frozen=True)
class ListItem:
    range: Range
    depth: int
    marker: str
    content: str  # everything after the marker, continuation lines included
    content_offset: int


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    range: Range
    raw: str
    level: int | None = None  # heading level
    content: str = ""  # heading text, fence body, frontmatter body
    content_offset: int = 0
    info: str = ""  # fence info string
    closed: bool = True
    items: tuple[ListItem, ...] = ()


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    plain_text: str
    slug: str
    start_offset: int
    end_offset: int
    line: int = 0  # 1-based

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "text": self.text,
            "plain_text": self.plain_text,
            "slug": self.slug,
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
            "line": self.line,
        }


@dataclass(frozen=True)
class TocNode:
    heading: Heading
    children: tuple[TocNode, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.heading.level,
            "text": self.heading.plain_text,
            "slug": self.heading.slug,
            "children": [c.to_dict() for c in self.children],
        }


@dataclass(frozen=True)
class Link:
    kind: LinkKind
    target: str
    display_text: str
    start_offset: int
    end_offset: int
    form: str = "inline"  # "inline" | "reference" | "autolink" | "wikilink"
    title: str = ""
    is_image: bool = False
    line: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "target": self.target,
            "display_text": self.display_text,
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
            "form": self.form,
            "title": self.title,
            "is_image": self.is_image,
            "line": self.line,
        }


@dataclass(frozen=True)
class BacklinkEdge:
    source_document_id: DocumentId | None
    target_document_id: DocumentId
    link: Link

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source_document_id,
            "target": self.target_document_id,
            "link": self.link.to_dict(),
        }


@dataclass(frozen=True)
class CodeBlock:
    language: str
    content: str
    start_offset: int
    end_offset: int
    fenced: bool = True
    closed: bool = True
    line: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "language": self.language,
            "content": self.content,
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
            "fenced": self.fenced,
            "closed": self.closed,
            "line": self.line,
        }


@dataclass(frozen=True)
class Task:
    checked: bool
    depth: int
    text: str
    start_offset: int
    line: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "checked": self.checked,
            "depth": self.depth,
            "text": self.text,
            "start_offset": self.start_offset,
            "line": self.line,
        }


def _edge_sort_key(edge: BacklinkEdge) -> tuple:
    return (
        edge.target_document_id,
        edge.link.target,
        edge.link.start_offset,
        edge.source_document_id or "",
    )


@dataclass(frozen=True)
class Document:
    """
    Everything extracted from one Markdown text.

    Sequences follow source order; `backlinks` is a set and is only
    populated when an index was supplied.
    """

    frontmatter: Frontmatter | None = None
    headings: tuple[Heading, ...] = ()
    table_of_contents: tuple[TocNode, ...] = ()
    links: tuple[Link, ...] = ()
    code_blocks: tuple[CodeBlock, ...] = ()
    tasks: tuple[Task, ...] = ()
    backlinks: frozenset[BacklinkEdge] = field(default_factory=frozenset)
    word_count: int = 0
    reading_time_minutes: int = 0

    def completed_tasks(self) -> tuple[Task, ...]:
        return tuple(t for t in self.tasks if t.checked)

    def pending_tasks(self) -> tuple[Task, ...]:
        return tuple(t for t in self.tasks if not t.checked)

    def images(self) -> tuple[Link, ...]:
        return tuple(link for link in self.links if link.is_image)

    def to_dict(self) -> dict[str, Any]:
        """Canonical serializable record handed to hosts."""
        fm = self.frontmatter.to_dict() if self.frontmatter is not None else None
        return {
            "links": [link.to_dict() for link in self.links],
            "headings": [h.to_dict() for h in self.headings],
            "code_blocks": [c.to_dict() for c in self.code_blocks],
            "tasks": [t.to_dict() for t in self.tasks],
            "word_count": self.word_count,
            "reading_time_minutes": self.reading_time_minutes,
            "metadata": fm if fm is not None else {},
            "table_of_contents": [n.to_dict() for n in self.table_of_contents],
            "backlinks": [
                e.to_dict() for e in sorted(self.backlinks, key=_edge_sort_key)
            ],
            "frontmatter": fm,
        }

    def to_json(self, indent: int | None = None) -> str:
        import json

        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
