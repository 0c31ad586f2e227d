"""Tests for backlink resolution against a document index."""

import pytest

from markdown_ld import LinkKind, ProcessingError, parse_markdown
from markdown_ld.adapters.fs_index import InMemoryIndex
from markdown_ld.adapters.links import (
    anchor_of,
    classify,
    document_identifier,
    external_problem,
)


class CountingIndex:
    """Index that records every lookup."""

    def __init__(self, known):
        self.known = set(known)
        self.calls = []

    def resolve(self, target):
        self.calls.append(target)
        return target if target in self.known else None


class BrokenIndex:
    def resolve(self, target):
        raise RuntimeError("database is locked")


class WrongTypeIndex:
    def resolve(self, target):
        return 42


def test_classify():
    """Classification depends only on the target."""
    assert classify("#top") == LinkKind.ANCHOR
    assert classify("https://x.com") == LinkKind.EXTERNAL
    assert classify("HTTPS://x.com") == LinkKind.EXTERNAL
    assert classify("//x.com") == LinkKind.EXTERNAL
    assert classify("notes/a.md") == LinkKind.INTERNAL
    assert classify("a.md#top") == LinkKind.INTERNAL
    assert classify("note:thing") == LinkKind.INTERNAL


def test_document_identifier():
    """Fragments and queries are dropped and escapes decoded."""
    assert document_identifier("notes/other.md#usage") == "notes/other.md"
    assert document_identifier("My%20Note") == "My Note"
    assert document_identifier("a.md?x=1") == "a.md"
    assert document_identifier("#only") == ""


def test_anchor_of():
    """Anchors are the decoded fragment."""
    assert anchor_of("a.md#Sec") == "Sec"
    assert anchor_of("#two%20words") == "two words"
    assert anchor_of("a.md") is None


def test_external_problem():
    """External URLs are checked syntactically."""
    assert external_problem("https://ok.com/path") is None
    assert external_problem("mailto:me@example.com") is None
    assert "no host" in external_problem("http://")
    assert "no address" in external_problem("mailto:nobody")
    assert "whitespace" in external_problem("https://a b.com")


def test_resolved_links_become_edges():
    """Resolved internal links produce one edge each."""
    index = InMemoryIndex(["other"])
    doc = parse_markdown(
        "[a](other.md) [b](missing.md) [c](https://x.com) [d](#top)\n",
        document_id="me",
        index=index,
    )
    (edge,) = doc.backlinks
    assert edge.source_document_id == "me"
    assert edge.target_document_id == "other"
    assert edge.link.target == "other.md"


def test_duplicate_targets_collapse():
    """The same raw target resolving twice gives one edge."""
    index = InMemoryIndex(["other"])
    doc = parse_markdown("[a](other.md) and [b](other.md)\n", document_id="me", index=index)
    assert len(doc.backlinks) == 1
    (edge,) = doc.backlinks
    assert edge.link.display_text == "a"


def test_different_targets_same_document():
    """Different raw targets for one document give separate edges."""
    index = InMemoryIndex(["other"])
    doc = parse_markdown("[a](other.md) [[Other]]\n", document_id="me", index=index)
    assert {e.link.target for e in doc.backlinks} == {"other.md", "Other"}
    assert {e.target_document_id for e in doc.backlinks} == {"other"}


def test_no_index_no_edges():
    """Without an index nothing is resolved."""
    doc = parse_markdown("[a](other.md)\n", document_id="me")
    assert doc.backlinks == frozenset()
    assert doc.links[0].kind == LinkKind.INTERNAL


def test_only_internal_links_are_looked_up():
    """Anchors, external and malformed links never reach the index."""
    index = CountingIndex({"x.md"})
    parse_markdown(
        "[a](x.md) [b](x.md#s) [c](#top) [d](https://e.com) [e]()\n",
        document_id="me",
        index=index,
    )
    assert index.calls == ["x.md"]


def test_images_are_not_looked_up():
    """Image targets are files, not documents."""
    index = CountingIndex({"x.md", "pic.md"})
    doc = parse_markdown("![p](pic.md) [a](x.md)\n", document_id="me", index=index)
    assert index.calls == ["x.md"]
    assert [e.target_document_id for e in doc.backlinks] == ["x.md"]


def test_self_links_are_kept():
    """A document linking to itself yields a self edge."""
    doc = parse_markdown("[me](me.md)\n", document_id="me", index=InMemoryIndex(["me"]))
    (edge,) = doc.backlinks
    assert edge.source_document_id == edge.target_document_id == "me"


def test_failing_index_raises_processing_error():
    """Index failures surface as ProcessingError."""
    with pytest.raises(ProcessingError):
        parse_markdown("[a](x.md)\n", index=BrokenIndex())


def test_wrong_index_result_raises_processing_error():
    """Index results must be document ids."""
    with pytest.raises(ProcessingError):
        parse_markdown("[a](x.md)\n", index=WrongTypeIndex())


def test_backlinks_serialize_sorted():
    """Serialized backlinks come out in a stable order."""
    index = InMemoryIndex(["b", "a"])
    doc = parse_markdown("[b](b.md) [a](a.md)\n", document_id="me", index=index)
    data = doc.to_dict()["backlinks"]
    assert [e["target"] for e in data] == ["a", "b"]
    assert data[0]["source"] == "me"
    assert data[0]["link"]["kind"] == "internal"
