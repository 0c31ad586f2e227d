"""Line-oriented block scanner.

Splits a document into typed spans that cover the input exactly: joining
every ``Block.raw`` in order gives back the original text.
"""

import logging
import re

from ..core.model import Block, BlockKind, ListItem, Range
from ..core.utils import indent_width, strip_indent

log = logging.getLogger(__name__)

FM_OPEN_RE = re.compile(r"^\ufeff?---[ \t]*$")
FM_CLOSE_RE = re.compile(r"^(?:---|\.\.\.)[ \t]*$")
HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?=[ \t]|$)(.*)$")
HEADING_CLOSE_RE = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")
FENCE_OPEN_RE = re.compile(r"^( {0,3})(`{3,}|~{3,})(.*)$")
FENCE_CLOSE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})[ \t]*$")
RULE_RE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
LIST_RE = re.compile(r"^([ \t]*)([-*+]|\d{1,9}[.)])([ \t]+|$)")
REFERENCE_RE = re.compile(
    r"^ {0,3}\[((?:[^\]\\]|\\.)+)\]:[ \t]*(<[^>]*>|\S+)"
    r"(?:[ \t]+(\"[^\"]*\"|'[^']*'|\([^)]*\)))?[ \t]*$"
)

CODE_INDENT = 4


def _body(line: str) -> str:
    return line.rstrip("\r\n")


def _is_blank(line: str) -> bool:
    return not line.strip()


def _fence_open(line: str) -> re.Match | None:
    m = FENCE_OPEN_RE.match(line)
    if m and m.group(2)[0] == "`" and "`" in m.group(3):
        # Backtick fences cannot carry backticks in their info string
        return None
    return m


def _list_marker(line: str) -> re.Match | None:
    if RULE_RE.match(line):
        return None
    return LIST_RE.match(line)


def _starts_block(line: str) -> bool:
    """Lines that end a paragraph or a list without a blank line."""
    return bool(
        _fence_open(line) or HEADING_RE.match(line) or RULE_RE.match(line)
    )


def _interrupts_paragraph(line: str) -> bool:
    if _starts_block(line):
        return True
    m = _list_marker(line)
    if m is None or indent_width(line) >= CODE_INDENT:
        return False
    marker = m.group(2)
    rest = line[m.end():]
    # Only bullets and lists starting at 1 may interrupt, and never empty
    if not rest.strip():
        return False
    return marker in "-*+" or marker[:-1] == "1"


class _Scan:
    """State for one scan; never shared between calls."""

    def __init__(self, text: str):
        self.text = text
        self.lines = text.splitlines(keepends=True)
        self.offsets: list[int] = []
        pos = 0
        for ln in self.lines:
            self.offsets.append(pos)
            pos += len(ln)
        self.blocks: list[Block] = []

    def _start(self, i: int) -> int:
        return self.offsets[i] if i < len(self.lines) else len(self.text)

    def _emit(self, kind: BlockKind, first: int, stop: int, **fields) -> None:
        start, end = self._start(first), self._start(stop)
        self.blocks.append(
            Block(kind=kind, range=Range(start, end), raw=self.text[start:end], **fields)
        )

    def run(self) -> list[Block]:
        i = self._frontmatter()
        n = len(self.lines)
        while i < n:
            line = _body(self.lines[i])
            if _is_blank(line):
                i = self._blank(i)
            elif _fence_open(line):
                i = self._fence(i)
            elif HEADING_RE.match(line):
                i = self._heading(i)
            elif RULE_RE.match(line):
                self._emit(BlockKind.RULE, i, i + 1)
                i += 1
            elif indent_width(line) >= CODE_INDENT:
                i = self._indented_code(i)
            elif _list_marker(line):
                i = self._list(i)
            elif REFERENCE_RE.match(line):
                i = self._references(i)
            else:
                i = self._paragraph(i)
        return self.blocks

    def _frontmatter(self) -> int:
        if not self.lines or not FM_OPEN_RE.match(_body(self.lines[0])):
            return 0
        for j in range(1, len(self.lines)):
            if FM_CLOSE_RE.match(_body(self.lines[j])):
                content = "".join(self.lines[1:j])
                self._emit(
                    BlockKind.FRONTMATTER, 0, j + 1,
                    content=content, content_offset=self._start(1),
                )
                return j + 1
        log.debug("frontmatter delimiter never closed; scanning as body")
        return 0

    def _blank(self, i: int) -> int:
        j = i
        while j < len(self.lines) and _is_blank(self.lines[j]):
            j += 1
        self._emit(BlockKind.BLANK, i, j)
        return j

    def _heading(self, i: int) -> int:
        line = _body(self.lines[i])
        m = HEADING_RE.match(line)
        rest = m.group(2)
        lead = len(rest) - len(rest.lstrip(" \t"))
        content = HEADING_CLOSE_RE.sub("", rest.strip(" \t"))
        self._emit(
            BlockKind.HEADING, i, i + 1,
            level=len(m.group(1)),
            content=content,
            content_offset=self.offsets[i] + m.start(2) + lead,
        )
        return i + 1

    def _fence(self, i: int) -> int:
        m = _fence_open(_body(self.lines[i]))
        indent, fence, info = len(m.group(1)), m.group(2), m.group(3).strip()
        n = len(self.lines)
        close = None
        for j in range(i + 1, n):
            cm = FENCE_CLOSE_RE.match(_body(self.lines[j]))
            if cm and cm.group(1)[0] == fence[0] and len(cm.group(1)) >= len(fence):
                close = j
                break
        stop = n if close is None else close
        content = "".join(strip_indent(ln, indent) for ln in self.lines[i + 1:stop])
        if close is None:
            log.debug("unterminated fence at offset %d runs to end of input", self.offsets[i])
        self._emit(
            BlockKind.FENCE, i, n if close is None else close + 1,
            content=content,
            content_offset=self._start(i + 1),
            info=info,
            closed=close is not None,
        )
        return n if close is None else close + 1

    def _indented_code(self, i: int) -> int:
        j = i
        last = i
        while j < len(self.lines):
            line = _body(self.lines[j])
            if _is_blank(line):
                j += 1
                continue
            if indent_width(line) < CODE_INDENT:
                break
            last = j
            j += 1
        stop = last + 1  # trailing blank lines are not code
        content = "".join(strip_indent(ln, CODE_INDENT) for ln in self.lines[i:stop])
        self._emit(
            BlockKind.INDENTED_CODE, i, stop,
            content=content, content_offset=self.offsets[i],
        )
        return stop

    def _references(self, i: int) -> int:
        j = i
        while j < len(self.lines) and REFERENCE_RE.match(_body(self.lines[j])):
            j += 1
        self._emit(
            BlockKind.REFERENCE, i, j,
            content=self.text[self._start(i):self._start(j)],
            content_offset=self.offsets[i],
        )
        return j

    def _paragraph(self, i: int) -> int:
        j = i + 1
        while j < len(self.lines):
            line = _body(self.lines[j])
            if _is_blank(line) or _interrupts_paragraph(line):
                break
            j += 1
        self._emit(
            BlockKind.PARAGRAPH, i, j,
            content=self.text[self._start(i):self._start(j)],
            content_offset=self.offsets[i],
        )
        return j

    def _list(self, i: int) -> int:
        n = len(self.lines)
        stack: list[int] = []  # marker columns of the open items
        starts: list[tuple[int, int, str, int]] = []  # line, depth, marker, content offset
        content_col = 0
        last = i
        j = i
        while j < n:
            line = _body(self.lines[j])
            if _is_blank(line):
                k = j + 1
                while k < n and _is_blank(self.lines[k]):
                    k += 1
                if k >= n:
                    break
                nxt = _body(self.lines[k])
                if _list_marker(nxt) or (
                    indent_width(nxt) >= max(content_col, 1) and not _starts_block(nxt)
                ):
                    j = k
                    continue
                break
            m = _list_marker(line)
            if m:
                col = indent_width(m.group(1))
                while stack and stack[-1] > col:
                    stack.pop()
                if not stack or stack[-1] < col:
                    stack.append(col)
                marker = m.group(2)
                content_col = col + len(marker) + max(1, len(m.group(3).expandtabs(4)))
                starts.append((j, len(stack) - 1, marker, self.offsets[j] + m.end()))
            elif _starts_block(line):
                break
            last = j
            j += 1

        stop = last + 1
        block_end = self._start(stop)
        items = []
        for idx, (line_no, depth, marker, content_offset) in enumerate(starts):
            item_end = self._start(starts[idx + 1][0]) if idx + 1 < len(starts) else block_end
            items.append(
                ListItem(
                    range=Range(self.offsets[line_no], item_end),
                    depth=depth,
                    marker=marker,
                    content=self.text[content_offset:item_end],
                    content_offset=content_offset,
                )
            )
        self._emit(BlockKind.LIST, i, stop, items=tuple(items))
        return stop


def scan_blocks(text: str) -> list[Block]:
    """Scan `text` into an ordered, gap-free list of blocks."""
    return _Scan(text).run()
