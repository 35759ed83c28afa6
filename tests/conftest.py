"""Shared pytest configuration, fakes and fixtures.

Nothing here touches the network: the embedding service, vector store
and chat model are all replaced by deterministic in-memory fakes.
"""

from __future__ import annotations

import math
import re
import zlib
from collections.abc import Sequence
from typing import Any
from unittest.mock import MagicMock

import pytest
from langchain_core.embeddings import Embeddings
from langchain_core.messages import AIMessage

from source_qa.agent.synthesizer import AnswerSynthesizer
from source_qa.errors import CollectionNotFound, StoreError, StoreUnavailable
from source_qa.ingestion.embedder import EmbeddingGateway
from source_qa.ingestion.pipeline import IngestionPipeline
from source_qa.retrieval.base import VectorStoreBase
from source_qa.retrieval.collections import CollectionManager
from source_qa.retrieval.models import Distance, Point, ScoredPoint
from source_qa.retrieval.retriever import FanoutRetriever
from source_qa.service import SourceQAService

DIM = 1536


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fake embedding service ──────────────────────────────────────────────


class FakeEmbeddings(Embeddings):
    """Bag-of-words hashing embedder.

    Texts sharing words end up close under cosine similarity, which is
    enough to make retrieval tests meaningful.  ``fail_calls`` holds
    1-based call numbers that raise.
    """

    def __init__(self, dimension: int = DIM) -> None:
        self.dimension = dimension
        self.calls: list[str] = []
        self.fail_calls: set[int] = set()

    def _vector(self, text: str) -> list[float]:
        self.calls.append(text)
        if len(self.calls) in self.fail_calls:
            raise RuntimeError("rate limited")
        vec = [0.0] * self.dimension
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            vec[zlib.crc32(word.encode()) % self.dimension] += 1.0
        if not any(vec):
            vec[0] = 1.0
        return vec

    def embed_query(self, text: str) -> list[float]:
        return self._vector(text)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._vector(t) for t in texts]


# ── Fake vector store ──────────────────────────────────────────────────


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorStore(VectorStoreBase):
    """Dict-backed store with switchable failure modes."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, Any]] = {}
        self.unavailable = False
        self.failing_searches: set[str] = set()
        self.fail_upsert_after: int | None = None
        self.upsert_calls = 0
        self.search_calls: list[str] = []

    def _check(self) -> None:
        if self.unavailable:
            raise StoreUnavailable("connection refused")

    def _get(self, name: str) -> dict[str, Any]:
        self._check()
        if name not in self.collections:
            raise CollectionNotFound(name)
        return self.collections[name]

    def create_collection(self, name: str, vector_size: int, distance: Distance) -> None:
        self._check()
        if name in self.collections:
            raise StoreError(f"{name} exists")
        self.collections[name] = {"size": vector_size, "distance": distance, "points": {}}

    def upsert(self, name: str, points: Sequence[Point]) -> None:
        collection = self._get(name)
        self.upsert_calls += 1
        if self.fail_upsert_after is not None and self.upsert_calls > self.fail_upsert_after:
            raise StoreUnavailable("connection reset")
        for p in points:
            collection["points"][p.id] = p

    def search(self, name: str, query_vector: list[float], limit: int) -> list[ScoredPoint]:
        self.search_calls.append(name)
        if name in self.failing_searches:
            raise StoreError(f"search on {name} exploded")
        collection = self._get(name)
        scored = [
            ScoredPoint(id=p.id, score=_cosine(query_vector, p.vector), payload=p.payload)
            for p in collection["points"].values()
        ]
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored[:limit]

    def delete_collection(self, name: str) -> None:
        self._get(name)
        del self.collections[name]

    def collection_exists(self, name: str) -> bool:
        self._check()
        return name in self.collections

    def vector_size(self, name: str) -> int | None:
        return self._get(name)["size"]

    def health_check(self) -> bool:
        return not self.unavailable


# ── Fixtures ───────────────────────────────────────────────────────────


@pytest.fixture()
def fake_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture()
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture()
def embedder(fake_embeddings: FakeEmbeddings) -> EmbeddingGateway:
    return EmbeddingGateway(fake_embeddings, dimension=DIM)


@pytest.fixture()
def collections(store: InMemoryVectorStore) -> CollectionManager:
    return CollectionManager(store, vector_size=DIM, distance=Distance.COSINE)


@pytest.fixture()
def pipeline(embedder: EmbeddingGateway, collections: CollectionManager) -> IngestionPipeline:
    return IngestionPipeline(embedder, collections, chunk_size=1000, chunk_overlap=200)


@pytest.fixture()
def retriever(embedder: EmbeddingGateway, store: InMemoryVectorStore) -> FanoutRetriever:
    return FanoutRetriever(embedder, store, per_collection_limit=3, max_workers=1)


@pytest.fixture()
def fake_llm() -> MagicMock:
    """Chat model stub; ``fake_llm.invoke.call_args`` holds the prompt."""
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content="The Eiffel Tower.")
    return llm


@pytest.fixture()
def synthesizer(fake_llm: MagicMock) -> AnswerSynthesizer:
    return AnswerSynthesizer(fake_llm)


@pytest.fixture()
def service(
    pipeline: IngestionPipeline,
    retriever: FanoutRetriever,
    synthesizer: AnswerSynthesizer,
    collections: CollectionManager,
) -> SourceQAService:
    return SourceQAService(pipeline, retriever, synthesizer, collections)
