"""Line-based frontmatter parser.

Only flat documents are understood: ``key: value`` pairs, ``- item`` arrays
under an empty key, inline ``[a, b]`` arrays and ``|``/``>`` text blocks.
Scalars are typed by PyYAML; anything that does not come out as a scalar is
kept as the raw string. An indented mapping under an empty key is kept as
its dedented source text. Lines that fit none of these shapes are skipped.
"""

import logging
import math
import re
import textwrap
from datetime import date, datetime
from typing import Any

import yaml

from ..core.meta import Frontmatter, Value

log = logging.getLogger(__name__)

KEY_RE = re.compile(r"^([^\s#:\-][^:]*?)[ \t]*:(?:[ \t]+(.*?))?[ \t]*$")
ITEM_RE = re.compile(r"^[ \t]*-(?:[ \t]+(.*?))?[ \t]*$")
TEXT_BLOCK_RE = re.compile(r"^([|>])[+-]?$")

_SCALARS = (str, int, float, bool, type(None))


def _scalar(value: Any) -> bool:
    # .nan and .inf have no JSON form
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, _SCALARS)


def _typed(raw: str | None) -> Value:
    """Type one YAML scalar; return the raw text when PyYAML disagrees."""
    if raw is None or raw == "":
        return None
    try:
        value: Any = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if _scalar(value):
        return value
    if isinstance(value, list) and all(_scalar(v) for v in value):
        return tuple(value)
    return raw


def _item(raw: str | None) -> Value:
    value = _typed(raw)
    return value if not isinstance(value, tuple) else raw


def parse_frontmatter(content: str) -> Frontmatter | None:
    """
    Parse the body of a frontmatter block (delimiters already removed).

    Returns None when no key survives parsing.
    """
    out: dict[str, Value] = {}
    pending: str | None = None  # key waiting for indented lines
    items: list[Value] = []
    nested: list[str] = []  # every line under `pending`, as written
    mapping = False
    text_key: str | None = None  # key collecting a "|" or ">" block
    text_style = "|"
    text_lines: list[str] = []

    def flush_items() -> None:
        nonlocal pending, items, nested, mapping
        if pending is not None:
            if mapping:
                out[pending] = textwrap.dedent("\n".join(nested))
            elif items:
                out[pending] = tuple(items)
        pending, items, nested, mapping = None, [], [], False

    def flush_text() -> None:
        nonlocal text_key, text_lines
        if text_key is not None:
            if text_style == "|":
                out[text_key] = "\n".join(text_lines).rstrip("\n")
            else:
                out[text_key] = " ".join(ln.strip() for ln in text_lines if ln.strip())
        text_key, text_lines = None, []

    for lineno, line in enumerate(content.splitlines(), start=1):
        if text_key is not None:
            if not line.strip() or line[:1] in (" ", "\t"):
                text_lines.append(line.strip())
                continue
            flush_text()

        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        if pending is not None:
            item = ITEM_RE.match(line)
            if item:
                items.append(_item(item.group(1)))
                nested.append(line.rstrip())
                continue
            if line[:1] in (" ", "\t"):
                mapping = True
                nested.append(line.rstrip())
                continue

        m = KEY_RE.match(line)
        if m is None:
            log.debug("frontmatter line %d skipped: %r", lineno, line)
            continue

        flush_items()
        key, raw = m.group(1).strip(), m.group(2)
        if raw is None or raw == "":
            out[key] = None
            pending = key
        elif TEXT_BLOCK_RE.match(raw):
            text_key, text_style = key, raw[0]
        else:
            out[key] = _typed(raw)

    flush_items()
    flush_text()

    return Frontmatter(out) if out else None
