"""
Agent — answer synthesis wired as a LangGraph state machine.

This module contains **zero** infrastructure dependencies beyond the
injected retriever and chat model, so it can be tested locally with
fakes.

Public API
----------
- :func:`build_graph` — compile the retrieve → generate workflow.
- :func:`create_initial_state` — bootstrap the state dict for ``graph.invoke()``.
- :class:`AnswerSynthesizer` — prompt construction + chat model call.
- :class:`QAState` — the TypedDict flowing through every node.
"""

from source_qa.agent.graph import build_graph, create_initial_state
from source_qa.agent.prompts import APOLOGY_MESSAGE, build_answer_prompt
from source_qa.agent.state import QAState
from source_qa.agent.synthesizer import AnswerSynthesizer

__all__ = [
    "APOLOGY_MESSAGE",
    "AnswerSynthesizer",
    "QAState",
    "build_answer_prompt",
    "build_graph",
    "create_initial_state",
]
