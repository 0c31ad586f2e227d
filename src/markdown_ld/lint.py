from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from .adapters.links import anchor_of, document_identifier, external_problem
from .config import EngineConfig
from .core.model import Document, Link, LinkKind, Range
from .core.ports import DocumentIndex
from .core.utils import LineIndex, slugify
from .engine import Source, decode, parse_markdown


@dataclass
class Finding:
    severity: str  # "info" | "warn" | "error"
    message: str
    range: Range | None = None
    line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "message": self.message,
            "range": {"start": self.range.start, "end": self.range.end} if self.range else None,
            "line": self.line,
        }


class LintRule(Protocol):
    id: str

    def check(self, doc: Document, index: DocumentIndex | None) -> list[Finding]:
        pass


def _span(link: Link) -> Range:
    return Range(link.start_offset, link.end_offset)


class MalformedLinksRule:
    id = "malformed-links"

    def check(self, doc: Document, index: DocumentIndex | None) -> list[Finding]:
        return [
            Finding("error", f"Malformed link {link.target!r}", _span(link))
            for link in doc.links
            if link.kind == LinkKind.MALFORMED
        ]


class DeadLinksRule:
    id = "dead-links"

    def check(self, doc: Document, index: DocumentIndex | None) -> list[Finding]:
        if index is None:
            return []
        # every raw target that resolved shows up on at least one edge
        resolved = {e.link.target for e in doc.backlinks}
        out: list[Finding] = []
        for link in doc.links:
            if link.kind != LinkKind.INTERNAL or link.is_image or link.target in resolved:
                continue
            ident = document_identifier(link.target)
            if ident:
                out.append(Finding("error", f"Unknown document {ident}", _span(link)))
        return out


class AnchorsRule:
    id = "anchors"

    def check(self, doc: Document, index: DocumentIndex | None) -> list[Finding]:
        slugs = {h.slug for h in doc.headings}
        out: list[Finding] = []
        for link in doc.links:
            if link.kind != LinkKind.ANCHOR:
                continue
            anchor = anchor_of(link.target)
            if not anchor:
                out.append(Finding("warn", "Empty anchor", _span(link)))
            elif anchor.lower() not in slugs and slugify(anchor) not in slugs:
                out.append(Finding("warn", f"Unknown anchor #{anchor}", _span(link)))
        return out


class ExternalUrlsRule:
    id = "external-urls"

    def check(self, doc: Document, index: DocumentIndex | None) -> list[Finding]:
        out: list[Finding] = []
        for link in doc.links:
            if link.kind != LinkKind.EXTERNAL:
                continue
            problem = external_problem(link.target)
            if problem:
                out.append(Finding("warn", f"{link.target}: {problem}", _span(link)))
            elif link.target.lower().startswith("http://"):
                out.append(Finding("info", f"Insecure URL {link.target}", _span(link)))
        return out


DEFAULT_RULES: tuple[LintRule, ...] = (
    MalformedLinksRule(),
    DeadLinksRule(),
    AnchorsRule(),
    ExternalUrlsRule(),
)


def validate_links(
    source: Source,
    index: DocumentIndex | None = None,
    document_id: str | None = None,
    config: EngineConfig | None = None,
    rules: Sequence[LintRule] = DEFAULT_RULES,
) -> list[Finding]:
    """
    Check every link in a document.

    Malformed, anchor and external checks are purely syntactic; internal
    targets are only checked when an index is given.
    Findings come back ordered by position.
    """
    text = decode(source)
    doc = parse_markdown(text, document_id=document_id, index=index, config=config)
    findings: list[Finding] = []
    for rule in rules:
        findings.extend(rule.check(doc, index))
    lines = LineIndex(text)
    for f in findings:
        if f.range is not None:
            f.line = lines.line_of(f.range.start)
    findings.sort(key=lambda f: (f.range.start if f.range else -1))
    return findings
