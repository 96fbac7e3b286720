"""Store contracts and reference population helpers."""

from docrepo.core.store.populate import Populate, populate_documents
from docrepo.core.store.protocols import Document, DocumentCursor, DocumentStore, Filter

__all__ = [
    "Document",
    "Filter",
    "DocumentCursor",
    "DocumentStore",
    "Populate",
    "populate_documents",
]
