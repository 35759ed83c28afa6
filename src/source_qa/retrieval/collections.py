"""Collection lifecycle — one vector collection per ingested source."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import uuid4

from source_qa.config import settings
from source_qa.errors import CollectionNotFound, EmbeddingDimensionError
from source_qa.retrieval.base import VectorStoreBase
from source_qa.retrieval.models import Distance, Point

logger = logging.getLogger(__name__)


class CollectionManager:
    """Creates, populates and deletes per-source collections.

    The manager keeps no registry of collections: the id returned by
    :meth:`create_collection` is the only handle callers ever see.

    Parameters
    ----------
    store:
        Backend the collections live in.
    vector_size:
        Default declared vector size for new collections.
    distance:
        Default distance metric for new collections.
    prefix:
        Default id prefix when no *kind* is given.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        *,
        vector_size: int = settings.embedding_dimension,
        distance: Distance = Distance(settings.distance_metric),
        prefix: str = "source",
    ) -> None:
        self._store = store
        self.vector_size = vector_size
        self.distance = distance
        self.prefix = prefix

    @property
    def store(self) -> VectorStoreBase:
        return self._store

    def create_collection(
        self,
        vector_size: int | None = None,
        distance: Distance | None = None,
        *,
        kind: str | None = None,
    ) -> str:
        """Provision an empty collection and return its id.

        Raises
        ------
        StoreUnavailable
            When the backing store cannot be reached; no id is returned.
        """
        size = vector_size or self.vector_size
        metric = distance or self.distance
        collection_id = f"{kind or self.prefix}_{uuid4().hex}"
        self._store.create_collection(collection_id, size, metric)
        logger.info("Created collection %s (size=%d, metric=%s)", collection_id, size, metric.value)
        return collection_id

    def upsert_points(self, collection_id: str, points: Sequence[Point]) -> int:
        """Write *points* one by one and return how many were written.

        Re-upserting a point id overwrites it.  Every vector is checked
        against the collection's declared size before anything is written.
        """
        expected = self._store.vector_size(collection_id)
        for point in points:
            if expected is not None and len(point.vector) != expected:
                raise EmbeddingDimensionError(
                    f"point {point.id} has dimension {len(point.vector)}, "
                    f"collection {collection_id} expects {expected}"
                )
        for point in points:
            self._store.upsert(collection_id, [point])
        return len(points)

    def delete_collection(self, collection_id: str) -> bool:
        """Remove *collection_id* from the store.

        Returns ``False`` (and does nothing) when the collection is unknown.
        """
        try:
            self._store.delete_collection(collection_id)
        except CollectionNotFound:
            logger.info("Collection %s already absent", collection_id)
            return False
        logger.info("Deleted collection %s", collection_id)
        return True

    def collection_exists(self, collection_id: str) -> bool:
        return self._store.collection_exists(collection_id)
