"""Graph nodes — each function is one step of the question-answering flow.

Node contract
-------------
* Accepts the full :class:`QAState` dict plus its injected collaborator.
* Returns a *partial* dict with **only the keys that changed**.
"""

from __future__ import annotations

import logging
from typing import Any

from source_qa.agent.prompts import APOLOGY_MESSAGE
from source_qa.agent.state import QAState
from source_qa.agent.synthesizer import AnswerSynthesizer
from source_qa.errors import GenerationError
from source_qa.retrieval.retriever import FanoutRetriever

logger = logging.getLogger(__name__)


# ── 1. RETRIEVE ───────────────────────────────────────────────────────


def retrieve(state: QAState, retriever: FanoutRetriever) -> dict[str, Any]:
    """Fan the question out across the tracked collections.

    Failures of individual collections are absorbed by the retriever; a
    failure to embed the question propagates and aborts the graph run.
    """
    result = retriever.retrieve(
        state["question"],
        state.get("collection_ids", []),
        state.get("per_collection_limit"),
    )
    return {"retrieval": result, "context": result.context}


# ── 2. GENERATE ───────────────────────────────────────────────────────


def generate(state: QAState, synthesizer: AnswerSynthesizer) -> dict[str, Any]:
    """Ask the generation service, even when the context is empty.

    A :class:`GenerationError` becomes the apology message instead of
    propagating to the caller.
    """
    try:
        answer = synthesizer.synthesize(state["question"], state.get("context", ""))
    except GenerationError:
        logger.exception("Answer generation failed")
        return {"answer": APOLOGY_MESSAGE, "failed": True}
    return {"answer": answer, "failed": False}
