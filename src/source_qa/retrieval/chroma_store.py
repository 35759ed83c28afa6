"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable, Sequence
from typing import Any

import chromadb
import httpx
from chromadb.errors import NotFoundError

from source_qa.config import settings
from source_qa.errors import CollectionNotFound, StoreError, StoreUnavailable
from source_qa.retrieval.base import VectorStoreBase
from source_qa.retrieval.models import Distance, Point, PointPayload, ScoredPoint

logger = logging.getLogger(__name__)

_SPACE_MAP = {
    Distance.COSINE: "cosine",
    Distance.EUCLID: "l2",
    Distance.DOT: "ip",
}

_VECTOR_SIZE_KEY = "vector_size"

# Open collection handles kept per store; least recently used are dropped first.
_HANDLE_CACHE_SIZE = 32


def _distance_to_score(space: str, distance: float) -> float:
    """Convert a Chroma distance into a similarity (higher = closer)."""
    # Chroma reports ``1 - cos`` for cosine and ``1 - dot`` for inner product.
    if space in ("cosine", "ip"):
        return 1.0 - distance
    return 1.0 / (1.0 + distance)


def _wrap(exc: Exception, what: str) -> StoreError:
    if isinstance(exc, NotFoundError):
        return CollectionNotFound(f"{what}: {exc}")
    if isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError)):
        return StoreUnavailable(f"{what}: vector store unreachable ({exc})")
    return StoreError(f"{what}: {exc}")


def _run_with_deadline(fn: Callable[[], Any], timeout: float, what: str) -> Any:
    """Run *fn* on a daemon thread and give up after *timeout* seconds.

    The Chroma client talks to the server inside its constructor, before
    any session timeout can be applied, so connecting is bounded here.
    """
    outcome: dict[str, Any] = {}

    def target() -> None:
        try:
            outcome["value"] = fn()
        except Exception as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=target, name="chroma-connect", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise StoreUnavailable(f"{what}: no response within {timeout:g}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["value"]


def _bound_session(client: Any, timeout: float) -> None:
    """Replace the client's unbounded httpx timeout with *timeout*."""
    session = getattr(getattr(client, "_server", None), "_session", None)
    if isinstance(session, httpx.Client):
        session.timeout = httpx.Timeout(timeout)
    else:
        logger.warning("Chroma client exposes no httpx session; calls are not time-bounded")


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed store holding one Chroma collection per source.

    Parameters
    ----------
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built Chroma client; when given, *host* and *port* are ignored.
    timeout:
        Seconds allowed for connecting and for each HTTP call.
    max_retries:
        Extra attempts made after a transport error.
    """

    def __init__(
        self,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        client: Any | None = None,
        timeout: float = settings.request_timeout,
        max_retries: int = settings.max_retries,
    ) -> None:
        self._host = host
        self._port = port
        self._client = client
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self._handles: OrderedDict[str, Any] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def client(self) -> Any:
        if self._client is None:
            what = f"connect to Chroma at {self._host}:{self._port}"
            try:
                client = _run_with_deadline(
                    lambda: chromadb.HttpClient(host=self._host, port=self._port),
                    self.timeout,
                    what,
                )
            except StoreError:
                raise
            except Exception as exc:
                raise StoreUnavailable(f"cannot {what}: {exc}") from exc
            _bound_session(client, self.timeout)
            self._client = client
        return self._client

    # -- VectorStoreBase overrides --------------------------------------------

    def create_collection(self, name: str, vector_size: int, distance: Distance) -> None:
        # Collection ids are unique per source, so get-or-create behaves as create.
        metadata = {"hnsw:space": _SPACE_MAP[distance], _VECTOR_SIZE_KEY: vector_size}
        handle = self._call(
            f"create collection {name!r}",
            lambda: self.client.get_or_create_collection(name=name, metadata=metadata),
        )
        self._remember(name, handle)
        logger.info("Created Chroma collection %s (size=%d, %s)", name, vector_size, distance.value)

    def upsert(self, name: str, points: Sequence[Point]) -> None:
        if not points:
            return
        collection = self._get(name)
        try:
            self._call(
                f"upsert into {name!r}",
                lambda: collection.upsert(
                    ids=[str(p.id) for p in points],
                    embeddings=[p.vector for p in points],
                    documents=[p.payload.text for p in points],
                    metadatas=[
                        {"document": p.payload.document, "chunk": p.payload.chunk} for p in points
                    ],
                ),
            )
        except CollectionNotFound:
            self._forget(name)
            raise

    def search(self, name: str, query_vector: list[float], limit: int) -> list[ScoredPoint]:
        collection = self._get(name)
        try:
            results = self._call(
                f"search {name!r}",
                lambda: collection.query(
                    query_embeddings=[query_vector],
                    n_results=limit,
                    include=["documents", "metadatas", "distances"],
                ),
            )
        except CollectionNotFound:
            self._forget(name)
            raise

        space = (collection.metadata or {}).get("hnsw:space", "l2")
        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        hits: list[ScoredPoint] = []
        for point_id, content, meta, dist in zip(ids, docs, metas, distances):
            meta = meta or {}
            hits.append(
                ScoredPoint(
                    id=int(point_id),
                    score=_distance_to_score(space, dist),
                    payload=PointPayload(
                        text=content or "",
                        document=str(meta.get("document", "unknown")),
                        chunk=int(meta.get("chunk", point_id)),
                    ),
                )
            )
        return hits

    def delete_collection(self, name: str) -> None:
        self._forget(name)
        self._call(f"delete collection {name!r}", lambda: self.client.delete_collection(name=name))
        logger.info("Deleted Chroma collection %s", name)

    def collection_exists(self, name: str) -> bool:
        try:
            self._get(name)
        except CollectionNotFound:
            return False
        return True

    def vector_size(self, name: str) -> int | None:
        size = (self._get(name).metadata or {}).get(_VECTOR_SIZE_KEY)
        return int(size) if size is not None else None

    def health_check(self) -> bool:
        try:
            self._call("heartbeat", lambda: self.client.heartbeat())
            return True
        except StoreError:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    # -- internals ------------------------------------------------------------

    def _call(self, what: str, fn: Callable[[], Any]) -> Any:
        """Invoke *fn*, retrying transport errors and mapping failures to StoreError."""
        attempt = 0
        while True:
            try:
                return fn()
            except StoreError:
                raise
            except httpx.TransportError as exc:
                if attempt >= self.max_retries:
                    raise _wrap(exc, what) from exc
                attempt += 1
                logger.warning("%s failed (%s); retry %d/%d", what, exc, attempt, self.max_retries)
            except Exception as exc:
                raise _wrap(exc, what) from exc

    def _get(self, name: str) -> Any:
        with self._lock:
            handle = self._handles.get(name)
            if handle is not None:
                self._handles.move_to_end(name)
                return handle
        handle = self._call(
            f"open collection {name!r}", lambda: self.client.get_collection(name=name)
        )
        self._remember(name, handle)
        return handle

    def _remember(self, name: str, handle: Any) -> None:
        with self._lock:
            self._handles[name] = handle
            self._handles.move_to_end(name)
            while len(self._handles) > _HANDLE_CACHE_SIZE:
                self._handles.popitem(last=False)

    def _forget(self, name: str) -> None:
        with self._lock:
            self._handles.pop(name, None)
