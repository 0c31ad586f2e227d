"""Structural extraction for Markdown documents."""

__version__ = "0.1.0"

from .core.errors import InvalidEncoding, MarkdownLDError, ProcessingError  # noqa: E402
from .core.model import (  # noqa: E402
    BacklinkEdge,
    CodeBlock,
    Document,
    Heading,
    Link,
    LinkKind,
    Task,
    TocNode,
)
from .engine import extract_headings, extract_links, parse_markdown  # noqa: E402
from .lint import Finding, validate_links  # noqa: E402

__all__ = [
    "parse_markdown",
    "extract_links",
    "extract_headings",
    "validate_links",
    "Document",
    "Heading",
    "TocNode",
    "Link",
    "LinkKind",
    "BacklinkEdge",
    "CodeBlock",
    "Task",
    "Finding",
    "MarkdownLDError",
    "InvalidEncoding",
    "ProcessingError",
]
