"""Caller-facing operations consumed by the HTTP and KServe layers.

:class:`SourceQAService` is the only object a transport layer needs.  It
is built once per process (see :meth:`SourceQAService.from_settings`)
and holds every external client; nothing in the package keeps a
module-level client handle.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from source_qa.agent.graph import build_graph, create_initial_state
from source_qa.agent.synthesizer import AnswerSynthesizer
from source_qa.errors import PartialIngestionWarning, PartialRetrievalWarning
from source_qa.ingestion.embedder import EmbeddingGateway
from source_qa.ingestion.loader import extract_text, fetch_url_text, file_extension
from source_qa.ingestion.models import PASTED_TEXT_LABEL, IngestionResult, SourceDocument
from source_qa.ingestion.pipeline import IngestionPipeline
from source_qa.retrieval.collections import CollectionManager
from source_qa.retrieval.retriever import FanoutRetriever

logger = logging.getLogger(__name__)


class TrackedItem(BaseModel):
    """The caller's record of an ingested source.

    ``id`` is the collection id to pass back on :meth:`answer_question`.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    name: str
    type: str
    size: str
    chunk_count: int
    warnings: list[PartialIngestionWarning] = Field(default_factory=list, exclude=True)


class AnswerResult(BaseModel):
    """Answer text plus what was (and was not) searched to produce it."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    answer: str
    sources: list[str] = Field(default_factory=list)
    context: str = ""
    failed_collections: list[str] = Field(default_factory=list)
    generation_failed: bool = False
    warnings: list[PartialRetrievalWarning] = Field(default_factory=list, exclude=True)


def _format_size(n_bytes: int) -> str:
    return f"{round(n_bytes / 1024)} KB"


class SourceQAService:
    """Ingest sources into collections and answer questions across them.

    Parameters
    ----------
    pipeline:
        Ingestion pipeline used by every ``ingest_*`` entry point.
    retriever:
        Fan-out retriever used when answering.
    synthesizer:
        Answer generator.
    collections:
        Collection manager, used to delete sources.
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        retriever: FanoutRetriever,
        synthesizer: AnswerSynthesizer,
        collections: CollectionManager,
    ) -> None:
        self._pipeline = pipeline
        self._collections = collections
        self._graph = build_graph(retriever, synthesizer)

    @classmethod
    def from_settings(cls) -> SourceQAService:
        """Build the service with the clients configured in ``settings``."""
        from source_qa.retrieval.chroma_store import ChromaVectorStore

        store = ChromaVectorStore()
        embedder = EmbeddingGateway()
        collections = CollectionManager(store)
        return cls(
            pipeline=IngestionPipeline(embedder, collections),
            retriever=FanoutRetriever(embedder, store),
            synthesizer=AnswerSynthesizer(),
            collections=collections,
        )

    @property
    def collections(self) -> CollectionManager:
        return self._collections

    # -- ingestion ------------------------------------------------------------

    def ingest_file(self, data: bytes, filename: str) -> TrackedItem:
        """Decode an uploaded file and ingest its text."""
        text = extract_text(data, filename)
        result = self._pipeline.ingest(SourceDocument(text=text, label=filename), kind="documents")
        return self._track(result, name=filename, type_=file_extension(filename), size=len(data))

    def ingest_text(self, text: str) -> TrackedItem:
        """Ingest pasted text."""
        result = self._pipeline.ingest(
            SourceDocument(text=text, label=PASTED_TEXT_LABEL), kind="text"
        )
        return self._track(
            result, name=PASTED_TEXT_LABEL, type_="text", size=len(text.encode("utf-8"))
        )

    def ingest_url(self, page_text: str, url: str) -> TrackedItem:
        """Ingest text already fetched from *url*."""
        result = self._pipeline.ingest(SourceDocument(text=page_text, label=url), kind="url")
        return self._track(result, name=url, type_="url", size=len(page_text.encode("utf-8")))

    def fetch_and_ingest_url(self, url: str) -> tuple[TrackedItem, str]:
        """Fetch *url*, ingest its text, and return the item plus the text."""
        page_text = fetch_url_text(url)
        return self.ingest_url(page_text, url), page_text

    # -- querying -------------------------------------------------------------

    def answer_question(
        self,
        question: str,
        collection_ids: Sequence[str],
        *,
        per_collection_limit: int | None = None,
    ) -> AnswerResult:
        """Answer *question* from the given collections.

        Generation failures come back as an apology answer with
        ``generation_failed=True``; a failure to embed the question raises
        :class:`~source_qa.errors.EmbeddingServiceError`.
        """
        state: dict[str, Any] = self._graph.invoke(
            create_initial_state(
                question, collection_ids, per_collection_limit=per_collection_limit
            )
        )
        retrieval = state.get("retrieval")
        return AnswerResult(
            answer=state.get("answer", ""),
            sources=retrieval.sources if retrieval else [],
            context=state.get("context", ""),
            failed_collections=retrieval.failed_collections if retrieval else [],
            generation_failed=state.get("failed", False),
            warnings=retrieval.warnings if retrieval else [],
        )

    # -- removal --------------------------------------------------------------

    def remove_source(self, collection_id: str) -> bool:
        """Delete the collection behind a tracked item."""
        return self._collections.delete_collection(collection_id)

    # -- internals ------------------------------------------------------------

    def _track(self, result: IngestionResult, *, name: str, type_: str, size: int) -> TrackedItem:
        return TrackedItem(
            id=result.collection_id,
            name=name,
            type=type_,
            size=_format_size(size),
            chunk_count=result.chunk_count,
            warnings=result.warnings,
        )
