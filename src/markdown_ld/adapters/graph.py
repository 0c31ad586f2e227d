from collections import defaultdict
from collections.abc import Iterable
from typing import Any

from ..core.model import BacklinkEdge, Document, DocumentId
from ..core.ports import GraphStore


def _by_position(edge: BacklinkEdge) -> tuple:
    return (edge.source_document_id or "", edge.link.start_offset)


class BacklinkGraph(GraphStore):
    """
    Reverse link graph built from many Documents.

    Adding a document again replaces its previous outgoing edges.
    """

    def __init__(self) -> None:
        self._links_out: dict[str, list[BacklinkEdge]] = defaultdict(list)
        self._links_in: dict[str, list[BacklinkEdge]] = defaultdict(list)
        self._ids: set[str] = set()

    def add(self, document_id: DocumentId, document: Document) -> None:
        for edge in self._links_out.pop(document_id, []):
            self._links_in[edge.target_document_id].remove(edge)
        self._ids.add(document_id)
        edges = sorted(document.backlinks, key=_by_position)
        self._links_out[document_id] = edges
        for edge in edges:
            self._links_in[edge.target_document_id].append(edge)

    def links_out(self, document_id: DocumentId) -> list[BacklinkEdge]:
        return list(self._links_out.get(document_id, []))

    def links_in(self, document_id: DocumentId) -> list[BacklinkEdge]:
        return sorted(self._links_in.get(document_id, []), key=_by_position)

    def orphans(self, ids: Iterable[DocumentId] | None = None) -> list[DocumentId]:
        """Documents with neither incoming nor outgoing edges."""
        pool = self._ids if ids is None else set(ids)
        return sorted(
            nid for nid in pool
            if not self._links_in.get(nid) and not self._links_out.get(nid)
        )

    def graph_data(self) -> dict[str, Any]:
        nodes = sorted(self._ids | {t for t, edges in self._links_in.items() if edges})
        counts: dict[tuple[str, str], int] = defaultdict(int)
        for source, edges in self._links_out.items():
            for edge in edges:
                counts[(source, edge.target_document_id)] += 1
        return {
            "nodes": [{"id": nid} for nid in nodes],
            "edges": [
                {"source": s, "target": t, "count": c}
                for (s, t), c in sorted(counts.items())
            ],
        }
