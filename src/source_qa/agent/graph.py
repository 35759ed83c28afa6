"""LangGraph graph definition — the question-answering workflow.

Graph topology::

      ┌──────────┐
      │ retrieve │   ← embed once, search every collection
      └────┬─────┘
           ▼
      ┌──────────┐
      │ generate │   ← fixed-shape prompt → chat model
      └────┬─────┘
           ▼
        [ END ]

Collaborators are injected, so the graph runs locally against fakes.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from langgraph.graph import END, StateGraph

from source_qa.agent import nodes
from source_qa.agent.state import QAState
from source_qa.agent.synthesizer import AnswerSynthesizer
from source_qa.retrieval.retriever import FanoutRetriever


def build_graph(retriever: FanoutRetriever, synthesizer: AnswerSynthesizer) -> Any:
    """Construct and return the compiled question-answering graph.

    Returns
    -------
    CompiledGraph
        A compiled LangGraph workflow ready for ``.invoke()``.
    """

    def retrieve(state: QAState) -> dict[str, Any]:
        return nodes.retrieve(state, retriever)

    def generate(state: QAState) -> dict[str, Any]:
        return nodes.generate(state, synthesizer)

    workflow = StateGraph(QAState)
    workflow.add_node("retrieve", retrieve)
    workflow.add_node("generate", generate)

    workflow.set_entry_point("retrieve")
    workflow.add_edge("retrieve", "generate")
    workflow.add_edge("generate", END)

    return workflow.compile()


def create_initial_state(
    question: str,
    collection_ids: Sequence[str],
    *,
    per_collection_limit: int | None = None,
) -> dict[str, Any]:
    """Build the initial state dict for ``graph.invoke()``.

    Usage::

        graph = build_graph(retriever, synthesizer)
        result = graph.invoke(create_initial_state("What is Paris known for?", ids))
        print(result["answer"])
    """
    return {
        "question": question,
        "collection_ids": list(collection_ids),
        "per_collection_limit": per_collection_limit,
        "context": "",
        "answer": "",
        "failed": False,
    }
