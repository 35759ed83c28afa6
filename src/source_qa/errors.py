"""Error taxonomy shared by the ingestion and retrieval layers.

Fatal conditions are exceptions deriving from :class:`SourceQAError` and
abort the current operation.  Non-fatal conditions are :class:`Warning`
subclasses; they are never raised, only recorded on result objects and
logged.
"""

from __future__ import annotations


class SourceQAError(Exception):
    """Base class for every fatal error raised by this package."""


class ConfigurationError(SourceQAError):
    """Invalid parameters, e.g. a chunk overlap that would stall the chunker."""


class EmptySourceError(SourceQAError):
    """The source produced no chunkable content."""


class UnsupportedSourceError(SourceQAError):
    """A file could not be decoded or a URL could not be fetched."""


class StoreError(SourceQAError):
    """The vector store rejected an operation."""


class StoreUnavailable(StoreError):
    """The vector store could not be reached."""


class CollectionNotFound(StoreError):
    """The requested collection does not exist in the vector store."""


class EmbeddingServiceError(SourceQAError):
    """The embedding service failed (transport, quota, malformed response)."""


class EmbeddingDimensionError(EmbeddingServiceError):
    """A vector's length does not match the declared collection size."""


class GenerationError(SourceQAError):
    """The generation service returned no usable answer text."""


class PartialIngestionWarning(UserWarning):
    """Some chunks of a source were skipped during ingestion."""


class PartialRetrievalWarning(UserWarning):
    """Some collections could not be searched while answering a question."""
