"""Embedding gateway — one ``embed(text) -> vector`` contract for every caller."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from langchain_openai import OpenAIEmbeddings

from source_qa.config import settings
from source_qa.errors import EmbeddingDimensionError, EmbeddingServiceError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embeddings() -> OpenAIEmbeddings:
    """Return the configured OpenAI embedding client.

    The client gets a finite per-request timeout and a single retry so a
    stalled upstream call can never hang ingestion or retrieval.
    """
    kwargs: dict = {
        "model": settings.embedding_model,
        "dimensions": settings.embedding_dimension,
        "request_timeout": settings.request_timeout,
        "max_retries": settings.max_retries,
    }
    if settings.openai_api_key:
        kwargs["api_key"] = settings.openai_api_key
    return OpenAIEmbeddings(**kwargs)


class EmbeddingGateway:
    """Wraps any LangChain :class:`Embeddings` behind a validated contract.

    Parameters
    ----------
    embeddings:
        The underlying embedding client.  When *None*, the OpenAI client
        from :func:`get_embeddings` is used.
    dimension:
        Expected vector length; every returned vector is checked against it.
    """

    def __init__(
        self,
        embeddings: Embeddings | None = None,
        *,
        dimension: int = settings.embedding_dimension,
    ) -> None:
        self._embeddings = embeddings if embeddings is not None else get_embeddings()
        self.dimension = dimension

    def embed(self, text: str) -> list[float]:
        """Embed a single piece of text.

        Raises
        ------
        EmbeddingServiceError
            On any transport / quota failure of the underlying client.
        EmbeddingDimensionError
            If the returned vector has the wrong length.
        """
        try:
            vector = self._embeddings.embed_query(text)
        except Exception as exc:
            raise EmbeddingServiceError(f"embedding request failed: {exc}") from exc
        return self._check(list(vector))

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts in one upstream call."""
        if not texts:
            return []
        try:
            vectors = self._embeddings.embed_documents(texts)
        except Exception as exc:
            raise EmbeddingServiceError(f"batch embedding request failed: {exc}") from exc
        if len(vectors) != len(texts):
            raise EmbeddingServiceError(
                f"expected {len(texts)} vectors, service returned {len(vectors)}"
            )
        return [self._check(list(v)) for v in vectors]

    def _check(self, vector: list[float]) -> list[float]:
        if len(vector) != self.dimension:
            raise EmbeddingDimensionError(
                f"embedding has dimension {len(vector)}, expected {self.dimension}"
            )
        return vector
