"""Prompt templates for answer generation.

The answer prompt has a fixed shape: an instruction line, the retrieved
context verbatim, then the question.  An empty context still produces a
well-formed prompt so the model can say it found nothing.
"""

from __future__ import annotations

ANSWER_TEMPLATE = """\
You are an assistant. Use the following context to answer the question:

Context:
{context}

Question: {question}
Answer:
"""

APOLOGY_MESSAGE = "Sorry, I couldn't generate an answer right now. Please try again."


def build_answer_prompt(question: str, context: str) -> str:
    """Embed *context* verbatim followed by *question*.

    Parameters
    ----------
    question:
        The user's question.
    context:
        Concatenated retrieved chunk texts (may be empty).

    Returns
    -------
    str
        A single prompt string ready for ``llm.invoke()``.
    """
    return ANSWER_TEMPLATE.format(context=context, question=question)
