"""Code block and task extraction; both read straight off the scanned blocks."""

import re
from collections.abc import Iterable

from ..core.model import Block, BlockKind, CodeBlock, ListItem, Task

CHECKBOX_RE = re.compile(r"^[ \t]*\[([ xX])\](?=[ \t\r\n]|$)[ \t]*")


def split_checkbox(item: ListItem) -> tuple[bool | None, str, int]:
    """
    Separate a leading "[ ]"/"[x]" from a list item's content.

    Returns (checked or None, remaining text, offset of remaining text).
    """
    m = CHECKBOX_RE.match(item.content)
    if m is None:
        return None, item.content, item.content_offset
    return m.group(1) in "xX", item.content[m.end():], item.content_offset + m.end()


def extract_code_blocks(blocks: Iterable[Block]) -> list[CodeBlock]:
    out = []
    for block in blocks:
        if block.kind == BlockKind.FENCE:
            language = block.info.split()[0] if block.info else ""
            out.append(
                CodeBlock(
                    language=language,
                    content=block.content,
                    start_offset=block.range.start,
                    end_offset=block.range.end,
                    fenced=True,
                    closed=block.closed,
                )
            )
        elif block.kind == BlockKind.INDENTED_CODE:
            out.append(
                CodeBlock(
                    language="",
                    content=block.content,
                    start_offset=block.range.start,
                    end_offset=block.range.end,
                    fenced=False,
                )
            )
    return out


def extract_tasks(blocks: Iterable[Block]) -> list[Task]:
    out = []
    for block in blocks:
        if block.kind != BlockKind.LIST:
            continue
        for item in block.items:
            checked, rest, _ = split_checkbox(item)
            if checked is None:
                continue
            out.append(
                Task(
                    checked=checked,
                    depth=item.depth,
                    text=" ".join(rest.split()),
                    start_offset=item.range.start,
                )
            )
    return out
