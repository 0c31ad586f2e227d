"""Runtime wiring helper for the CLI and the API."""

import logging
from dataclasses import dataclass
from pathlib import Path

from .adapters.fs_index import DirectoryIndex
from .adapters.graph import BacklinkGraph
from .config import MarkdownLDConfig, load_config
from .core.errors import InvalidEncoding
from .core.model import Document
from .engine import parse_markdown

log = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Container for all wired components."""
    config: MarkdownLDConfig
    index: DirectoryIndex | None = None

    def parse_file(self, path: Path, document_id: str | None = None) -> Document:
        """Parse one file; its id defaults to its path relative to the index root."""
        if document_id is None:
            document_id = self.document_id_for(path)
        return parse_markdown(
            path.read_bytes(),
            document_id=document_id,
            index=self.index,
            config=self.config.engine,
        )

    def document_id_for(self, path: Path) -> str:
        if self.index is not None:
            try:
                return path.resolve().relative_to(self.index.root.resolve()).with_suffix("").as_posix()
            except ValueError:
                pass
        return path.stem

    def build_graph(self) -> BacklinkGraph:
        """Parse every indexed document into one backlink graph."""
        if self.index is None:
            raise ValueError("building a backlink graph needs an index root")
        graph = BacklinkGraph()
        for nid in self.index.list_all_ids():
            raw = self.index.read(nid)
            if raw is None:
                continue
            try:
                doc = parse_markdown(raw, document_id=nid, index=self.index, config=self.config.engine)
            except InvalidEncoding as e:
                log.warning("skipping %s: %s", nid, e)
                continue
            graph.add(nid, doc)
        return graph


def build_runtime(
    index_root: Path | None = None,
    config_path: Path | None = None,
) -> Runtime:
    """Build and wire all components."""
    config = load_config(config_path=config_path, index_root=index_root)

    # Use config values if CLI args not provided
    if index_root is None:
        index_root = config.index.root

    index = None
    if index_root is not None:
        index = DirectoryIndex(index_root, suffixes=config.index.suffixes)

    return Runtime(config=config, index=index)
