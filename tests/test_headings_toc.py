"""Tests for heading extraction and the table of contents."""

from markdown_ld import extract_headings, parse_markdown
from markdown_ld.adapters.headings import SlugRegistry


def titles(nodes):
    return [(n.heading.plain_text, titles(n.children)) for n in nodes]


def test_heading_fields():
    """Headings carry level, raw and plain text, slug and offsets."""
    text = "Intro\n\n## Use **bold** `code`\n"
    (h,) = extract_headings(text)
    assert h.level == 2
    assert h.text == "Use **bold** `code`"
    assert h.plain_text == "Use bold code"
    assert h.slug == "use-bold-code"
    assert text[h.start_offset:h.end_offset] == "## Use **bold** `code`\n"


def test_duplicate_slugs_get_suffixes():
    """Repeated headings get -2, -3 suffixes."""
    headings = extract_headings("# Intro\n## Intro\n## Intro\n")
    assert [h.slug for h in headings] == ["intro", "intro-2", "intro-3"]


def test_suffix_skips_taken_slugs():
    """A suffix already used by a real heading is skipped."""
    headings = extract_headings("# A-2\n# A\n# A\n")
    assert [h.slug for h in headings] == ["a-2", "a", "a-3"]


def test_empty_slug_fallback():
    """Headings with nothing sluggable get a placeholder slug."""
    headings = extract_headings("#\n# !!!\n")
    assert [h.slug for h in headings] == ["section", "section-2"]


def test_slugs_unique():
    """Every slug in a document is distinct."""
    text = "".join(f"# {t}\n" for t in ["A", "a", "A!", "a-2", "A", "B", "b"])
    slugs = [h.slug for h in extract_headings(text)]
    assert len(slugs) == len(set(slugs))


def test_slug_registry():
    """The registry hands out base slugs first."""
    reg = SlugRegistry()
    assert reg.claim("x") == "x"
    assert reg.claim("x") == "x-2"
    assert reg.claim("") == "section"


def test_headings_in_code_are_ignored():
    """Hashes inside code blocks are not headings."""
    text = "```\n# not a heading\n```\n\n    # nor this\n\n# Real\n"
    assert [h.plain_text for h in extract_headings(text)] == ["Real"]


def test_toc_nesting():
    """Headings nest under the nearest lower-level heading."""
    doc = parse_markdown("# A\n## B\n### C\n## D\n# E\n")
    assert titles(doc.table_of_contents) == [
        ("A", [("B", [("C", [])]), ("D", [])]),
        ("E", []),
    ]


def test_toc_level_skips():
    """Skipped levels are not filled in."""
    doc = parse_markdown("# A\n### C\n## B\n")
    assert titles(doc.table_of_contents) == [("A", [("C", []), ("B", [])])]


def test_toc_starting_below_top_level():
    """A document may start at any level."""
    doc = parse_markdown("## X\n# Y\n### Z\n")
    assert titles(doc.table_of_contents) == [("X", []), ("Y", [("Z", [])])]


def test_toc_covers_every_heading_once():
    """Flattening the TOC gives back the heading sequence."""
    doc = parse_markdown("## a\n# b\n#### c\n### d\n## e\n# f\n")

    def flatten(nodes):
        for n in nodes:
            yield n.heading
            yield from flatten(n.children)

    assert list(flatten(doc.table_of_contents)) == list(doc.headings)


def test_toc_to_dict():
    """TOC serializes with plain text and nested children."""
    doc = parse_markdown("# Top\n## Sub\n")
    assert [n.to_dict() for n in doc.table_of_contents] == [
        {
            "level": 1,
            "text": "Top",
            "slug": "top",
            "children": [{"level": 2, "text": "Sub", "slug": "sub", "children": []}],
        }
    ]
