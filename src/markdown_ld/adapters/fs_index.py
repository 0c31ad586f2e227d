"""Document indexes that resolve internal link targets to document ids."""

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from pathlib import Path, PurePosixPath

from ..core.model import DocumentId
from ..core.ports import DocumentIndex

log = logging.getLogger(__name__)


def _clean(target: str) -> str:
    target = target.replace("\\", "/").strip()
    while target.startswith("./"):
        target = target[2:]
    return target.lstrip("/")


class DirectoryIndex(DocumentIndex):
    """
    Flat or nested directory of Markdown files.

    Ids are root-relative POSIX paths without the suffix: "notes/intro.md"
    has id "notes/intro". A target naming only a file stem resolves when that
    stem is unique in the tree. The listing is a snapshot taken at
    construction or on refresh(); resolve() only reads it.
    """

    def __init__(self, root: Path, suffixes: Iterable[str] = (".md",)):
        self.root = Path(root)
        self.suffixes = tuple(suffixes)
        self._ids: frozenset[str] = frozenset()
        self._by_stem: dict[str, list[str]] = {}
        self.refresh()

    def _path(self, id: DocumentId) -> Path:
        for suffix in self.suffixes:
            p = self.root / f"{id}{suffix}"
            if p.exists():
                return p
        return self.root / f"{id}{self.suffixes[0]}"

    def list_all_ids(self) -> Iterable[DocumentId]:
        if not self.root.exists():
            return
        for p in sorted(self.root.rglob("*")):
            if p.is_file() and p.suffix in self.suffixes and not p.name.startswith("."):
                yield p.relative_to(self.root).with_suffix("").as_posix()

    def refresh(self) -> None:
        ids = frozenset(self.list_all_ids())
        by_stem: dict[str, list[str]] = defaultdict(list)
        for id in sorted(ids):
            by_stem[PurePosixPath(id).name.casefold()].append(id)
        self._ids = ids
        self._by_stem = dict(by_stem)
        log.debug("indexed %d documents under %s", len(ids), self.root)

    def read(self, id: DocumentId) -> bytes | None:
        p = self._path(id)
        return p.read_bytes() if p.exists() else None

    def resolve(self, target: str) -> DocumentId | None:
        target = _clean(target)
        if not target or ".." in PurePosixPath(target).parts:
            return None
        stem = target
        for suffix in self.suffixes:
            if target.endswith(suffix):
                stem = target[: -len(suffix)]
                break
        if stem in self._ids:
            return stem
        candidates = self._by_stem.get(PurePosixPath(stem).name.casefold(), [])
        if "/" not in stem and len(candidates) == 1:
            return candidates[0]
        return None


class InMemoryIndex(DocumentIndex):
    """
    Known ids plus optional aliases (e.g. titles), matched case-insensitively.
    """

    def __init__(self, ids: Iterable[DocumentId], aliases: Mapping[str, DocumentId] | None = None):
        self._ids = {id.casefold(): id for id in ids}
        self._aliases = {k.casefold(): v for k, v in (aliases or {}).items()}

    def resolve(self, target: str) -> DocumentId | None:
        key = _clean(target).casefold()
        if key.endswith(".md"):
            key = key[:-3]
        return self._ids.get(key) or self._aliases.get(key)
