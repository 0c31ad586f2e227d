"""Document assembly: run every extraction stage over one text."""

import logging
from dataclasses import replace

from .adapters.block_scanner import scan_blocks
from .adapters.extractors import extract_code_blocks, extract_tasks, split_checkbox
from .adapters.frontmatter import parse_frontmatter
from .adapters.headings import build_toc
from .adapters.headings import extract_headings as _extract_headings
from .adapters.inline import InlineScanner, RawLink, collect_definitions
from .adapters.links import classify_links, resolve_backlinks
from .adapters.stats import compute_stats
from .config import EngineConfig
from .core.errors import InvalidEncoding, ProcessingError
from .core.model import Block, BlockKind, DocumentId, Document, Heading, Link
from .core.ports import DocumentIndex
from .core.utils import LineIndex

log = logging.getLogger(__name__)

DEFAULT_CONFIG = EngineConfig()

Source = str | bytes


def decode(source: Source) -> str:
    """
    Turn host input into text.

    Raises:
        InvalidEncoding: bytes that are not UTF-8, or a str with lone surrogates
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        try:
            return bytes(source).decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidEncoding(f"input is not UTF-8 at byte {e.start}") from e
    if not isinstance(source, str):
        raise InvalidEncoding(f"expected text or bytes, got {type(source).__name__}")
    try:
        source.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidEncoding(f"input holds an unpaired surrogate at offset {e.start}") from e
    return source


def _scan(text: str) -> list[Block]:
    blocks = scan_blocks(text)
    if "".join(b.raw for b in blocks) != text:
        raise ProcessingError("block spans do not reconstruct the input")
    return blocks


def _scan_links(blocks: list[Block]) -> list[RawLink]:
    """Links from headings, paragraphs and list items in document order."""
    scanner = InlineScanner(collect_definitions(blocks))
    found: list[RawLink] = []
    for block in blocks:
        if block.kind in (BlockKind.HEADING, BlockKind.PARAGRAPH):
            found.extend(scanner.scan(block.content, block.content_offset))
        elif block.kind == BlockKind.LIST:
            for item in block.items:
                _, rest, offset = split_checkbox(item)
                found.extend(scanner.scan(rest, offset))
    return found


def _numbered(items, lines: LineIndex) -> list:
    """Copies of `items` carrying the line their start offset falls on."""
    return [replace(item, line=lines.line_of(item.start_offset)) for item in items]


def _frontmatter(blocks: list[Block]):
    if blocks and blocks[0].kind == BlockKind.FRONTMATTER:
        return parse_frontmatter(blocks[0].content)
    return None


def parse_markdown(
    source: Source,
    document_id: DocumentId | None = None,
    index: DocumentIndex | None = None,
    config: EngineConfig | None = None,
) -> Document:
    """
    Extract the full structure of one Markdown document.

    Args:
        source: Markdown text, or UTF-8 bytes
        document_id: Identifier of this document, used as the backlink source
        index: Lookup used to resolve internal links; borrowed for this call only
        config: Engine settings (reading speed, external URI schemes)

    Returns:
        Document with every collection in source order

    Raises:
        InvalidEncoding: input is not valid text
        ProcessingError: internal invariant broken or the index misbehaved
    """
    config = config or DEFAULT_CONFIG
    text = decode(source)
    blocks = _scan(text)

    lines = LineIndex(text)
    headings = _numbered(_extract_headings(blocks), lines)
    links = _numbered(classify_links(_scan_links(blocks), config.external_schemes), lines)
    words, minutes = compute_stats(blocks, config.words_per_minute)

    doc = Document(
        frontmatter=_frontmatter(blocks),
        headings=tuple(headings),
        table_of_contents=build_toc(headings),
        links=tuple(links),
        code_blocks=tuple(_numbered(extract_code_blocks(blocks), lines)),
        tasks=tuple(_numbered(extract_tasks(blocks), lines)),
        backlinks=resolve_backlinks(links, document_id, index),
        word_count=words,
        reading_time_minutes=minutes,
    )
    log.debug(
        "parsed %s: %d blocks, %d headings, %d links, %d backlinks",
        document_id or "<anonymous>", len(blocks), len(doc.headings),
        len(doc.links), len(doc.backlinks),
    )
    return doc


def extract_links(source: Source, config: EngineConfig | None = None) -> tuple[Link, ...]:
    """Links only, classified but never resolved."""
    config = config or DEFAULT_CONFIG
    text = decode(source)
    links = classify_links(_scan_links(_scan(text)), config.external_schemes)
    return tuple(_numbered(links, LineIndex(text)))


def extract_headings(source: Source) -> tuple[Heading, ...]:
    """Headings only, with document-unique slugs."""
    text = decode(source)
    return tuple(_numbered(_extract_headings(_scan(text)), LineIndex(text)))
