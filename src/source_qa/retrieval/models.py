"""Domain models for stored points and retrieval results."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from source_qa.errors import PartialRetrievalWarning


class Distance(str, Enum):
    """Distance metric a collection is indexed with."""

    COSINE = "cosine"
    EUCLID = "euclid"
    DOT = "dot"


class PointPayload(BaseModel):
    """Payload stored next to every vector.

    Attributes
    ----------
    text:
        The chunk text.
    document:
        Origin label of the source the chunk came from.
    chunk:
        1-based chunk number within the source.
    """

    text: str
    document: str
    chunk: int = Field(ge=1)


class Point(BaseModel):
    """An embedded chunk as written to a collection."""

    id: int = Field(ge=1)
    vector: list[float] = Field(min_length=1)
    payload: PointPayload


class ScoredPoint(BaseModel):
    """A point returned by a similarity search (higher score = closer)."""

    id: int
    score: float
    payload: PointPayload


class RetrievedChunk(BaseModel):
    """One retrieved passage together with where it came from."""

    text: str
    score: float
    source_label: str
    collection_id: str
    chunk: int | None = None


class RetrievalResult(BaseModel):
    """Merged results of fanning a question out across collections.

    Chunks are ordered by the order collections were queried and, within
    a collection, by the store's rank order.  No global re-ranking.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    chunks: list[RetrievedChunk] = Field(default_factory=list)
    searched_collections: list[str] = Field(default_factory=list)
    failed_collections: list[str] = Field(default_factory=list)
    warnings: list[PartialRetrievalWarning] = Field(default_factory=list)

    @property
    def context(self) -> str:
        """Chunk texts joined into the context handed to the generator."""
        return "\n\n".join(c.text for c in self.chunks)

    @property
    def sources(self) -> list[str]:
        """Distinct source labels in first-seen order."""
        seen: dict[str, None] = {}
        for c in self.chunks:
            seen.setdefault(c.source_label, None)
        return list(seen)
