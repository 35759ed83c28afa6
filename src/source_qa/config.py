"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="Chat model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible chat API. Leave empty to use "
            "OpenAI cloud, e.g. 'http://llm-server.default.svc.cluster.local/v1'"
        ),
    )
    llm_temperature: float = 0.0

    # Embedding
    embedding_model: str = "text-embedding-3-small"
    embedding_dimension: int = 1536

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    distance_metric: str = Field(default="cosine", description="One of cosine, euclid, dot")

    # Chunking
    chunk_size: int = 1000
    chunk_overlap: int = 200
    sentence_lookahead: int = 100
    newline_lookahead: int = 50

    # Retrieval
    per_collection_limit: int = 3
    retrieval_max_workers: int = 4

    # External calls
    request_timeout: float = Field(default=30.0, description="Per-call timeout in seconds")
    max_retries: int = Field(default=1, description="Retries on transient transport errors")
    url_fetch_timeout: float = 30.0

    # Serving
    log_level: str = "INFO"
    kserve_model_name: str = "source-qa"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton — import `settings` wherever needed.
settings = Settings()
