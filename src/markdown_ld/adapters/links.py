"""Link classification, syntactic validation and backlink resolution."""

import logging
import re
from collections.abc import Iterable
from urllib.parse import unquote, urlsplit

from ..core.errors import ProcessingError
from ..core.model import BacklinkEdge, DocumentId, Link, LinkKind
from ..core.ports import DocumentIndex
from .inline import RawLink

log = logging.getLogger(__name__)

SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):")

DEFAULT_SCHEMES = frozenset({
    "http", "https", "ftp", "ftps", "sftp", "ssh", "git", "file", "data",
    "mailto", "tel", "sms", "irc", "ircs", "news", "xmpp", "magnet", "urn",
    "ws", "wss",
})

# Schemes whose authority part must be present to be usable
_NEEDS_HOST = frozenset({"http", "https", "ftp", "ftps", "sftp", "ws", "wss"})


def classify(target: str, schemes: frozenset[str] = DEFAULT_SCHEMES) -> LinkKind:
    if target.startswith("#"):
        return LinkKind.ANCHOR
    if target.startswith("//"):
        return LinkKind.EXTERNAL
    m = SCHEME_RE.match(target)
    if m and m.group(1).lower() in schemes:
        return LinkKind.EXTERNAL
    return LinkKind.INTERNAL


def to_link(raw: RawLink, schemes: frozenset[str] = DEFAULT_SCHEMES) -> Link:
    kind = LinkKind.MALFORMED if raw.malformed else classify(raw.target, schemes)
    return Link(
        kind=kind,
        target=raw.target,
        display_text=raw.display,
        start_offset=raw.start,
        end_offset=raw.end,
        form=raw.form,
        title=raw.title,
        is_image=raw.is_image,
    )


def classify_links(
    raw_links: Iterable[RawLink], schemes: frozenset[str] = DEFAULT_SCHEMES
) -> list[Link]:
    return [to_link(raw, schemes) for raw in raw_links]


def document_identifier(target: str) -> str:
    """
    The part of an internal target naming a document.

    "notes/other.md#usage" -> "notes/other.md", "My%20Note" -> "My Note".
    """
    path = target.split("#", 1)[0].split("?", 1)[0]
    return unquote(path).strip()


def anchor_of(target: str) -> str | None:
    """Fragment of a target, or None when it has none."""
    if "#" not in target:
        return None
    return unquote(target.split("#", 1)[1]).strip()


def external_problem(target: str) -> str | None:
    """
    Syntactic check for external targets; returns a reason or None.

    No network access happens here.
    """
    try:
        parts = urlsplit(target if not target.startswith("//") else f"http:{target}")
    except ValueError as e:
        return f"unparseable URL ({e})"
    scheme = parts.scheme.lower()
    if scheme in _NEEDS_HOST and not parts.netloc:
        return f"{scheme} URL has no host"
    if scheme == "mailto" and "@" not in parts.path:
        return "mailto link has no address"
    if any(ch.isspace() for ch in target):
        return "URL contains whitespace"
    return None


def resolve_backlinks(
    links: Iterable[Link],
    document_id: DocumentId | None,
    index: DocumentIndex | None,
) -> frozenset[BacklinkEdge]:
    """
    Ask the index about every internal link; one edge per resolved pair.

    Identical targets resolving to the same document collapse to the first
    link seen. Images never produce edges. Without an index there are no edges.
    """
    if index is None:
        return frozenset()

    cache: dict[str, DocumentId | None] = {}
    edges: dict[tuple[str, str], BacklinkEdge] = {}
    for link in links:
        if link.kind != LinkKind.INTERNAL or link.is_image:
            continue
        ident = document_identifier(link.target)
        if not ident:
            continue
        if ident not in cache:
            cache[ident] = _lookup(index, ident)
        resolved = cache[ident]
        if resolved is None:
            continue
        edges.setdefault((resolved, link.target), BacklinkEdge(document_id, resolved, link))
    return frozenset(edges.values())


def _lookup(index: DocumentIndex, ident: str) -> DocumentId | None:
    try:
        resolved = index.resolve(ident)
    except Exception as e:
        raise ProcessingError(f"index lookup failed for {ident!r}: {e}") from e
    if resolved is not None and not isinstance(resolved, str):
        raise ProcessingError(
            f"index returned {type(resolved).__name__} for {ident!r}, expected a document id"
        )
    if resolved is None:
        log.debug("internal target %r did not resolve", ident)
    return resolved
