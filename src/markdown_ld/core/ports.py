from typing import Iterable, Protocol

from .model import BacklinkEdge, Document, DocumentId


class DocumentIndex(Protocol):
    """
    Read-only lookup borrowed by the engine for one call.
    Must be safe for concurrent reads; the engine never writes through it.
    """

    def resolve(self, target: str) -> DocumentId | None:
        pass


class GraphStore(Protocol):
    """
    Host-side aggregate of backlink edges across many documents.
    """

    def add(self, document_id: DocumentId, document: Document) -> None:
        pass

    def links_in(self, document_id: DocumentId) -> list[BacklinkEdge]:
        pass

    def links_out(self, document_id: DocumentId) -> list[BacklinkEdge]:
        pass

    def orphans(self, ids: Iterable[DocumentId]) -> list[DocumentId]:
        pass
