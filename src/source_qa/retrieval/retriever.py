"""Fan-out retriever — one question, many collections, one context.

Usage::

    from source_qa.retrieval.retriever import FanoutRetriever

    retriever = FanoutRetriever(embedder, store)
    result = retriever.retrieve("What is Paris known for?", ["text_ab12…", "url_cd34…"])
    print(result.context)

The question is embedded exactly once and that vector is reused for every
collection.  A collection whose search fails or outlives the search
timeout is logged and recorded as failed; the others still contribute.
Results are concatenated in the order the collection ids were given,
each collection's hits in the store's rank order.  There is no global
re-ranking across collections.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import TYPE_CHECKING

from source_qa.config import settings
from source_qa.errors import PartialRetrievalWarning
from source_qa.retrieval.base import VectorStoreBase
from source_qa.retrieval.models import RetrievalResult, RetrievedChunk, ScoredPoint

if TYPE_CHECKING:
    from source_qa.ingestion.embedder import EmbeddingGateway

logger = logging.getLogger(__name__)


class FanoutRetriever:
    """Queries several collections with a single question embedding.

    Parameters
    ----------
    embedder:
        Gateway used to embed the question.
    store:
        Vector store holding the collections.
    per_collection_limit:
        Default number of hits requested from each collection.
    max_workers:
        Upper bound on concurrent collection searches; ``1`` searches
        one collection at a time.
    search_timeout:
        Seconds a collection search may take before that collection is
        recorded as failed.
    """

    def __init__(
        self,
        embedder: EmbeddingGateway,
        store: VectorStoreBase,
        *,
        per_collection_limit: int = settings.per_collection_limit,
        max_workers: int = settings.retrieval_max_workers,
        search_timeout: float = settings.request_timeout,
    ) -> None:
        self._embedder = embedder
        self._store = store
        self.per_collection_limit = per_collection_limit
        self.max_workers = max(1, max_workers)
        self.search_timeout = search_timeout

    # -- public API -----------------------------------------------------------

    def retrieve(
        self,
        question: str,
        collection_ids: Sequence[str],
        per_collection_limit: int | None = None,
    ) -> RetrievalResult:
        """Embed *question* once and search every collection in *collection_ids*.

        Raises
        ------
        EmbeddingServiceError
            If the question cannot be embedded; nothing can be searched
            without a query vector.
        """
        limit = per_collection_limit or self.per_collection_limit
        query_vector = self._embedder.embed(question)

        ids = list(dict.fromkeys(collection_ids))
        if not ids:
            return RetrievalResult()

        outcomes = self._search_all(ids, query_vector, limit)

        chunks: list[RetrievedChunk] = []
        searched: list[str] = []
        failed: list[str] = []
        for collection_id, hits in zip(ids, outcomes):
            if hits is None:
                failed.append(collection_id)
                continue
            searched.append(collection_id)
            chunks.extend(_to_chunk(collection_id, hit) for hit in hits)

        warnings: list[PartialRetrievalWarning] = []
        if failed:
            warnings.append(
                PartialRetrievalWarning(
                    f"{len(failed)} of {len(ids)} collection(s) could not be searched: "
                    + ", ".join(failed)
                )
            )
            logger.warning("%s", warnings[0])

        logger.info(
            "Retrieved %d chunk(s) from %d/%d collection(s)", len(chunks), len(searched), len(ids)
        )
        return RetrievalResult(
            chunks=chunks,
            searched_collections=searched,
            failed_collections=failed,
            warnings=warnings,
        )

    # -- internals ------------------------------------------------------------

    def _search_all(
        self, ids: list[str], query_vector: list[float], limit: int
    ) -> list[list[ScoredPoint] | None]:
        """Search each collection; ``None`` marks a failed or timed-out search."""
        outcomes: list[list[ScoredPoint] | None] = []
        for start in range(0, len(ids), self.max_workers):
            wave = ids[start : start + self.max_workers]
            outcomes.extend(self._search_wave(wave, query_vector, limit))
        return outcomes

    def _search_wave(
        self, wave: list[str], query_vector: list[float], limit: int
    ) -> list[list[ScoredPoint] | None]:
        # A fresh pool per wave: a hung search keeps its own thread and
        # never holds up collections queued behind it.
        pool = ThreadPoolExecutor(max_workers=len(wave), thread_name_prefix="fanout")
        try:
            futures = [pool.submit(self._search_one, cid, query_vector, limit) for cid in wave]
            deadline = time.monotonic() + self.search_timeout
            return [self._await(cid, f, deadline) for cid, f in zip(wave, futures)]
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def _await(
        self, collection_id: str, future: Future, deadline: float
    ) -> list[ScoredPoint] | None:
        try:
            return future.result(timeout=max(0.0, deadline - time.monotonic()))
        except FutureTimeout:
            logger.warning(
                "Search of collection %s timed out after %gs", collection_id, self.search_timeout
            )
            return None

    def _search_one(
        self, collection_id: str, query_vector: list[float], limit: int
    ) -> list[ScoredPoint] | None:
        try:
            return self._store.search(collection_id, query_vector, limit)
        except Exception:
            logger.warning("Error searching collection %s", collection_id, exc_info=True)
            return None


def _to_chunk(collection_id: str, hit: ScoredPoint) -> RetrievedChunk:
    return RetrievedChunk(
        text=hit.payload.text,
        score=hit.score,
        source_label=hit.payload.document,
        collection_id=collection_id,
        chunk=hit.payload.chunk,
    )
