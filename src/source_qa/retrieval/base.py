"""Abstract base class for vector-store backends.

Adding a new backend (Qdrant, Weaviate, Pinecone …) only requires
subclassing :class:`VectorStoreBase` and implementing the abstract
methods.  The rest of the ingestion and retrieval stack is
backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from source_qa.retrieval.models import Distance, Point, ScoredPoint


class VectorStoreBase(ABC):
    """Backend-agnostic interface over a store of many named collections.

    Implementations raise :class:`~source_qa.errors.StoreUnavailable` when
    the service cannot be reached and
    :class:`~source_qa.errors.CollectionNotFound` when a named collection
    does not exist.
    """

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def create_collection(self, name: str, vector_size: int, distance: Distance) -> None:
        """Provision an empty collection called *name*."""
        ...

    @abstractmethod
    def upsert(self, name: str, points: Sequence[Point]) -> None:
        """Write *points*; an existing point with the same id is overwritten."""
        ...

    @abstractmethod
    def search(self, name: str, query_vector: list[float], limit: int) -> list[ScoredPoint]:
        """Return up to *limit* nearest points, best match first."""
        ...

    @abstractmethod
    def delete_collection(self, name: str) -> None:
        """Remove collection *name* and every point in it."""
        ...

    @abstractmethod
    def collection_exists(self, name: str) -> bool:
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- optional overrides ---------------------------------------------------

    def vector_size(self, name: str) -> int | None:
        """Declared vector size of *name*, or ``None`` when unknown."""
        return None
