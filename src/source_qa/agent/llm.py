"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` to e.g. a vLLM
   service exposing ``/v1/chat/completions``; ``ChatOpenAI`` works
   unchanged.
"""

from __future__ import annotations

import logging

from langchain_openai import ChatOpenAI

from source_qa.config import settings

logger = logging.getLogger(__name__)


def get_llm(temperature: float | None = None) -> ChatOpenAI:
    """Return the configured chat model.

    Calls are bounded by ``settings.request_timeout`` and retried at most
    ``settings.max_retries`` times.
    """
    kwargs: dict = {
        "model": settings.llm_model_name,
        "temperature": settings.llm_temperature if temperature is None else temperature,
        "timeout": settings.request_timeout,
        "max_retries": settings.max_retries,
    }

    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
        # vLLM doesn't need a real key; LangChain requires a non-empty value.
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    elif settings.openai_api_key:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)
