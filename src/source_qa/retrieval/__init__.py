"""
Retrieval — per-source collections and multi-collection search.

This module wraps the vector store behind a clean interface so that
the pipeline and agent layers never need to know which DB is backing
retrieval.

Public surface
--------------
- :class:`FanoutRetriever` — embeds a question once and searches many collections.
- :class:`CollectionManager` — create / populate / delete per-source collections.
- :class:`VectorStoreBase` — abstract backend (subclass for Qdrant, etc.).
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`Point`, :class:`RetrievedChunk`, :class:`RetrievalResult` — data models.
"""

from source_qa.retrieval.base import VectorStoreBase
from source_qa.retrieval.collections import CollectionManager
from source_qa.retrieval.models import (
    Distance,
    Point,
    PointPayload,
    RetrievalResult,
    RetrievedChunk,
    ScoredPoint,
)
from source_qa.retrieval.retriever import FanoutRetriever

__all__ = [
    "ChromaVectorStore",
    "CollectionManager",
    "Distance",
    "FanoutRetriever",
    "Point",
    "PointPayload",
    "RetrievalResult",
    "RetrievedChunk",
    "ScoredPoint",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from source_qa.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
