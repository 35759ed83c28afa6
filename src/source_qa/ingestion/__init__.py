"""
Ingestion — turning one source into one populated vector collection.

Public surface
--------------
- :func:`split_text` / :func:`chunk_source` — sentence-aware chunker.
- :class:`EmbeddingGateway` — validated wrapper around the embedding service.
- :class:`IngestionPipeline` — orchestrates a source into a collection.
- :class:`SourceDocument`, :class:`Chunk`, :class:`IngestionResult` — data models.
"""

from source_qa.ingestion.chunker import chunk_source, chunk_spans, split_text
from source_qa.ingestion.embedder import EmbeddingGateway
from source_qa.ingestion.models import Chunk, IngestionResult, SourceDocument
from source_qa.ingestion.pipeline import IngestionPipeline

__all__ = [
    "Chunk",
    "EmbeddingGateway",
    "IngestionPipeline",
    "IngestionResult",
    "SourceDocument",
    "chunk_source",
    "chunk_spans",
    "split_text",
]
