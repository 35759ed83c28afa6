"""Text chunking with sentence-aware window boundaries."""

from __future__ import annotations

from source_qa.config import settings
from source_qa.errors import ConfigurationError
from source_qa.ingestion.models import Chunk, SourceDocument


def _validate(chunk_size: int, overlap: int) -> None:
    if chunk_size <= 0:
        raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise ConfigurationError(f"overlap must be non-negative, got {overlap}")
    if overlap >= chunk_size:
        raise ConfigurationError(
            f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
        )


def chunk_spans(
    text: str,
    chunk_size: int = 1000,
    overlap: int = 200,
    *,
    sentence_lookahead: int = 100,
    newline_lookahead: int = 50,
) -> list[tuple[int, int]]:
    """Return the ``(start, end)`` offsets of every chunk of *text*.

    Windows are ``chunk_size`` characters long.  When a window stops short
    of the end of the text, its end is pushed forward to just past the
    first ``.`` found within ``sentence_lookahead`` characters, or failing
    that the first newline within ``newline_lookahead`` characters.
    Consecutive windows share ``overlap`` characters.

    Raises
    ------
    ConfigurationError
        If ``overlap >= chunk_size`` or either value is out of range.
    """
    _validate(chunk_size, overlap)

    length = len(text)
    spans: list[tuple[int, int]] = []
    start = 0
    while start < length:
        end = min(start + chunk_size, length)
        if end < length:
            period = text.find(".", end, end + sentence_lookahead)
            if period != -1:
                end = period + 1
            else:
                newline = text.find("\n", end, end + newline_lookahead)
                if newline != -1:
                    end = newline + 1

        spans.append((start, end))
        if end >= length:
            break
        # end >= start + chunk_size > start + overlap, so start always advances.
        start = max(end - overlap, 0)
    return spans


def split_text(
    text: str,
    chunk_size: int = 1000,
    overlap: int = 200,
    *,
    sentence_lookahead: int = 100,
    newline_lookahead: int = 50,
) -> list[str]:
    """Split *text* into ordered, overlapping chunks.

    Parameters
    ----------
    text:
        Source text.  Empty text yields no chunks.
    chunk_size:
        Nominal number of characters per chunk.
    overlap:
        Number of characters shared between consecutive chunks.

    Returns
    -------
    list[str]
        Non-empty chunks; a text no longer than ``chunk_size`` yields
        exactly one chunk equal to the text.
    """
    spans = chunk_spans(
        text,
        chunk_size,
        overlap,
        sentence_lookahead=sentence_lookahead,
        newline_lookahead=newline_lookahead,
    )
    return [text[start:end] for start, end in spans]


def chunk_source(
    source: SourceDocument,
    chunk_size: int = settings.chunk_size,
    overlap: int = settings.chunk_overlap,
    *,
    sentence_lookahead: int = settings.sentence_lookahead,
    newline_lookahead: int = settings.newline_lookahead,
) -> list[Chunk]:
    """Split a :class:`SourceDocument` into labelled :class:`Chunk` objects."""
    pieces = split_text(
        source.text,
        chunk_size,
        overlap,
        sentence_lookahead=sentence_lookahead,
        newline_lookahead=newline_lookahead,
    )
    return [
        Chunk(index=i, text=piece, source_label=source.label)
        for i, piece in enumerate(pieces)
    ]
