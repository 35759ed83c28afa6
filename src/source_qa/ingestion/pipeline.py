"""Ingestion pipeline — one source in, one populated collection out.

Every entry point (uploaded file, pasted text, fetched page) goes through
:meth:`IngestionPipeline.ingest`; format-specific decoding happens before
the text reaches this module.

Per-chunk failure policy
------------------------
Skip-and-continue, for every source type.  A chunk whose embedding call
fails is logged and skipped; the remaining chunks are still stored and
the result reports how many made it.  Only when *no* chunk could be
embedded does ingestion fail as a whole.  Dimension mismatches and store
failures are always fatal.
"""

from __future__ import annotations

import logging

from source_qa.config import settings
from source_qa.errors import (
    EmbeddingDimensionError,
    EmbeddingServiceError,
    EmptySourceError,
    PartialIngestionWarning,
    StoreError,
)
from source_qa.ingestion.chunker import chunk_source
from source_qa.ingestion.embedder import EmbeddingGateway
from source_qa.ingestion.models import IngestionResult, SourceDocument
from source_qa.retrieval.collections import CollectionManager
from source_qa.retrieval.models import Point, PointPayload

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Chunk → create collection → embed + upsert each chunk.

    Parameters
    ----------
    embedder:
        Gateway to the embedding service.
    collections:
        Manager owning the collection lifecycle.
    chunk_size / chunk_overlap:
        Chunker window parameters.
    """

    def __init__(
        self,
        embedder: EmbeddingGateway,
        collections: CollectionManager,
        *,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
        sentence_lookahead: int = settings.sentence_lookahead,
        newline_lookahead: int = settings.newline_lookahead,
    ) -> None:
        self._embedder = embedder
        self._collections = collections
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.sentence_lookahead = sentence_lookahead
        self.newline_lookahead = newline_lookahead

    def ingest(self, source: SourceDocument, *, kind: str | None = None) -> IngestionResult:
        """Turn *source* into a populated collection.

        Parameters
        ----------
        source:
            The decoded source text and its origin label.
        kind:
            Collection id prefix, e.g. ``"documents"``, ``"text"``, ``"url"``.

        Raises
        ------
        EmptySourceError
            The source yields no chunks; no collection is created.
        StoreUnavailable
            The collection could not be created or populated.
        EmbeddingServiceError
            Every chunk failed to embed, or a vector had the wrong size.
        """
        chunks = chunk_source(
            source,
            self.chunk_size,
            self.chunk_overlap,
            sentence_lookahead=self.sentence_lookahead,
            newline_lookahead=self.newline_lookahead,
        )
        if not chunks:
            raise EmptySourceError(f"source {source.label!r} has no chunkable content")

        collection_id = self._collections.create_collection(
            self._embedder.dimension, kind=kind
        )
        logger.info(
            "Ingesting %s: %d chunk(s) into %s", source.label, len(chunks), collection_id
        )

        stored = 0
        skipped: list[int] = []
        try:
            for chunk in chunks:
                try:
                    vector = self._embedder.embed(chunk.text)
                except EmbeddingDimensionError:
                    raise
                except EmbeddingServiceError:
                    logger.warning(
                        "Skipping chunk %d of %s: embedding failed",
                        chunk.number,
                        source.label,
                        exc_info=True,
                    )
                    skipped.append(chunk.number)
                    continue

                point = Point(
                    id=chunk.number,
                    vector=vector,
                    payload=PointPayload(
                        text=chunk.text, document=source.label, chunk=chunk.number
                    ),
                )
                stored += self._collections.upsert_points(collection_id, [point])
        except (StoreError, EmbeddingServiceError):
            logger.error("Ingestion of %s failed; discarding %s", source.label, collection_id)
            self._discard(collection_id)
            raise

        if stored == 0:
            self._discard(collection_id)
            raise EmbeddingServiceError(
                f"none of the {len(chunks)} chunk(s) of {source.label!r} could be embedded"
            )

        warnings: list[PartialIngestionWarning] = []
        if skipped:
            warnings.append(
                PartialIngestionWarning(
                    f"{len(skipped)} of {len(chunks)} chunk(s) of {source.label!r} were skipped"
                )
            )
            logger.warning("%s", warnings[0])

        logger.info("Stored %d/%d chunk(s) of %s", stored, len(chunks), source.label)
        return IngestionResult(
            collection_id=collection_id,
            chunk_count=stored,
            chunks_produced=len(chunks),
            skipped_chunks=skipped,
            source_label=source.label,
            warnings=warnings,
        )

    def _discard(self, collection_id: str) -> None:
        try:
            self._collections.delete_collection(collection_id)
        except StoreError:
            logger.warning("Could not discard collection %s", collection_id, exc_info=True)
