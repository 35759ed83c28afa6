"""Domain models for the ingestion path."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from source_qa.errors import PartialIngestionWarning

PASTED_TEXT_LABEL = "Pasted Text"


class SourceDocument(BaseModel):
    """Raw text plus the label of where it came from.

    Attributes
    ----------
    text:
        Decoded plain text of the source.
    label:
        Origin label: the file name, ``"Pasted Text"`` or the source URL.
    """

    text: str
    label: str = Field(min_length=1)


class Chunk(BaseModel):
    """A bounded slice of a source's text.

    ``index`` is 0-based; the point written for a chunk uses ``index + 1``.
    """

    index: int = Field(ge=0)
    text: str = Field(min_length=1)
    source_label: str

    @property
    def number(self) -> int:
        """1-based chunk number used for point ids and payloads."""
        return self.index + 1


class IngestionResult(BaseModel):
    """Outcome of ingesting one source into its own collection.

    Attributes
    ----------
    collection_id:
        Handle of the newly populated collection.
    chunk_count:
        Number of chunks actually stored (may be less than produced).
    chunks_produced:
        Number of chunks the chunker emitted.
    skipped_chunks:
        1-based numbers of chunks whose embedding failed.
    source_label:
        Origin label of the ingested source.
    warnings:
        Non-fatal conditions encountered along the way.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    collection_id: str
    chunk_count: int = Field(ge=0)
    chunks_produced: int = Field(ge=0)
    skipped_chunks: list[int] = Field(default_factory=list)
    source_label: str
    warnings: list[PartialIngestionWarning] = Field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.skipped_chunks)
