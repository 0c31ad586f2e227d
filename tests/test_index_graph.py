"""Tests for document indexes and the backlink graph."""

import tempfile
from pathlib import Path

from markdown_ld import parse_markdown
from markdown_ld.adapters.fs_index import DirectoryIndex, InMemoryIndex
from markdown_ld.adapters.graph import BacklinkGraph


def write(root: Path, rel: str, text: str = "") -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


def test_directory_index_ids():
    """Ids are relative POSIX paths without the suffix."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write(root, "readme.md")
        write(root, "notes/intro.md")
        write(root, "notes/image.png")
        write(root, ".hidden.md")

        index = DirectoryIndex(root)
        assert list(index.list_all_ids()) == ["notes/intro", "readme"]


def test_directory_index_resolve():
    """Paths, bare ids and unique stems resolve."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write(root, "readme.md")
        write(root, "notes/intro.md")

        index = DirectoryIndex(root)
        assert index.resolve("notes/intro.md") == "notes/intro"
        assert index.resolve("./notes/intro") == "notes/intro"
        assert index.resolve("/readme.md") == "readme"
        assert index.resolve("intro") == "notes/intro"
        assert index.resolve("Intro") == "notes/intro"
        assert index.resolve("../readme.md") is None
        assert index.resolve("missing") is None
        assert index.resolve("") is None


def test_directory_index_ambiguous_stem():
    """A stem shared by two files does not resolve."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write(root, "a/intro.md")
        index = DirectoryIndex(root)
        assert index.resolve("intro") == "a/intro"

        write(root, "b/intro.md")
        index.refresh()
        assert index.resolve("intro") is None
        assert index.resolve("b/intro") == "b/intro"


def test_directory_index_read():
    """Documents are read as bytes."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write(root, "note.md", "# Note\n")
        index = DirectoryIndex(root)
        assert index.read("note") == b"# Note\n"
        assert index.read("absent") is None


def test_directory_index_missing_root():
    """A missing root is an empty index."""
    with tempfile.TemporaryDirectory() as tmpdir:
        index = DirectoryIndex(Path(tmpdir) / "nope")
        assert list(index.list_all_ids()) == []
        assert index.resolve("x") is None


def test_in_memory_index():
    """Ids and aliases match case-insensitively."""
    index = InMemoryIndex(["Alpha"], aliases={"The First": "Alpha"})
    assert index.resolve("alpha") == "Alpha"
    assert index.resolve("Alpha.md") == "Alpha"
    assert index.resolve("the first") == "Alpha"
    assert index.resolve("beta") is None


def build_graph(sources):
    index = InMemoryIndex(sources)
    graph = BacklinkGraph()
    for doc_id, text in sources.items():
        graph.add(doc_id, parse_markdown(text, document_id=doc_id, index=index))
    return graph


def test_graph_links_in_and_out():
    """Edges are reachable from both ends."""
    graph = build_graph({
        "a": "[b](b.md) [c](c.md)\n",
        "b": "[c](c.md)\n",
        "c": "",
        "d": "",
    })
    assert [e.source_document_id for e in graph.links_in("c")] == ["a", "b"]
    assert [e.target_document_id for e in graph.links_out("a")] == ["b", "c"]
    assert graph.links_in("a") == []


def test_graph_orphans():
    """Documents with no edges at all are orphans."""
    graph = build_graph({"a": "[b](b.md)\n", "b": "", "d": ""})
    assert graph.orphans() == ["d"]
    assert graph.orphans(["a", "b", "d", "e"]) == ["d", "e"]


def test_graph_readd_replaces_edges():
    """Adding a document again replaces its old edges."""
    graph = build_graph({"a": "[b](b.md)\n", "b": ""})
    graph.add("a", parse_markdown(""))
    assert graph.links_in("b") == []
    assert graph.links_out("a") == []


def test_graph_data():
    """Graph export lists nodes and counted edges."""
    graph = build_graph({
        "a": "[b](b.md) [[b]]\n",
        "b": "[a](a.md)\n",
    })
    data = graph.graph_data()
    assert data["nodes"] == [{"id": "a"}, {"id": "b"}]
    assert data["edges"] == [
        {"source": "a", "target": "b", "count": 2},
        {"source": "b", "target": "a", "count": 1},
    ]
