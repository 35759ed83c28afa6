"""State flowing through the question-answering graph."""

from __future__ import annotations

from typing import TypedDict

from source_qa.retrieval.models import RetrievalResult


class QAState(TypedDict, total=False):
    """Typed state shared by the ``retrieve`` and ``generate`` nodes.

    Attributes
    ----------
    question:
        The user's natural-language question.
    collection_ids:
        Collections to search, in the order their hits should appear.
    per_collection_limit:
        Optional override for the number of hits per collection.
    retrieval:
        Merged retrieval result (populated by ``retrieve``).
    context:
        Context string handed to the generator.
    answer:
        Final answer text (populated by ``generate``).
    failed:
        ``True`` when generation failed and ``answer`` is the apology text.
    """

    question: str
    collection_ids: list[str]
    per_collection_limit: int | None
    retrieval: RetrievalResult
    context: str
    answer: str
    failed: bool
