"""Answer synthesizer — (question, context) in, answer text out."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from source_qa.agent.prompts import build_answer_prompt
from source_qa.errors import GenerationError

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)


class AnswerSynthesizer:
    """Sends the fixed-shape answer prompt to a chat model.

    Parameters
    ----------
    llm:
        Any LangChain chat model.  When *None*, :func:`get_llm` is used.
    """

    def __init__(self, llm: BaseChatModel | None = None) -> None:
        if llm is None:
            from source_qa.agent.llm import get_llm

            llm = get_llm()
        self._llm = llm

    def synthesize(self, question: str, context: str) -> str:
        """Return the model's answer verbatim.

        Raises
        ------
        GenerationError
            When the call fails or the response carries no usable text.
        """
        prompt = build_answer_prompt(question, context)
        try:
            response = self._llm.invoke(prompt)
        except Exception as exc:
            raise GenerationError(f"generation request failed: {exc}") from exc

        content = getattr(response, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise GenerationError("generation service returned no answer text")
        return content
