"""FastAPI application exposing ingestion and question answering over REST."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, File, Request, Response, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from source_qa.config import settings
from source_qa.errors import (
    ConfigurationError,
    EmbeddingServiceError,
    EmptySourceError,
    GenerationError,
    SourceQAError,
    StoreUnavailable,
    UnsupportedSourceError,
)
from source_qa.service import SourceQAService

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Source QA API",
    version="0.1.0",
    description="Ingest files, pasted text and web pages; ask questions across them.",
)


@lru_cache(maxsize=1)
def get_service() -> SourceQAService:
    """Process-wide service instance (overridable via ``app.dependency_overrides``)."""
    return SourceQAService.from_settings()


# ── Error mapping ─────────────────────────────────────────────────────

_STATUS_BY_ERROR: list[tuple[type[SourceQAError], int]] = [
    (ConfigurationError, 400),
    (EmptySourceError, 422),
    (UnsupportedSourceError, 422),
    (StoreUnavailable, 503),
    (EmbeddingServiceError, 502),
    (GenerationError, 502),
]


def status_for(exc: SourceQAError) -> int:
    for error_cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status
    return 500


@app.exception_handler(SourceQAError)
async def source_qa_error_handler(request: Request, exc: SourceQAError) -> JSONResponse:
    status = status_for(exc)
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


# ── Request / Response schemas ────────────────────────────────────────


class TextRequest(BaseModel):
    text: str = Field(min_length=1)


class TextResponse(BaseModel):
    success: bool = True
    collectionName: str  # noqa: N815
    chunks: int


class UrlRequest(BaseModel):
    url: str = Field(min_length=1)


class UrlResponse(TextResponse):
    content: str


class ProcessedFile(BaseModel):
    id: str
    name: str
    type: str
    size: str
    chunks: int


class UploadResponse(BaseModel):
    processedFiles: list[ProcessedFile]  # noqa: N815
    errors: list[dict[str, str]] = []


class ChatRequest(BaseModel):
    question: str = Field(min_length=1)
    documentIds: list[str] = []  # noqa: N815


class ChatResponse(BaseModel):
    answer: str
    sources: list[str] = []
    failedCollections: list[str] = []  # noqa: N815


# ── Routes ────────────────────────────────────────────────────────────


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/ready")
def ready(service: SourceQAService = Depends(get_service)) -> JSONResponse:
    """Readiness probe — checks the vector store."""
    if service.collections.store.health_check():
        return JSONResponse({"status": "ready"})
    return JSONResponse({"status": "unavailable"}, status_code=503)


@app.post("/upload", response_model=UploadResponse)
def upload(
    files: list[UploadFile] = File(...),
    service: SourceQAService = Depends(get_service),
) -> UploadResponse:
    """Ingest each uploaded file into its own collection.

    A file that fails is reported in ``errors``; the rest still proceed.
    """
    processed: list[ProcessedFile] = []
    errors: list[dict[str, str]] = []
    for upload_file in files:
        filename = upload_file.filename or "upload"
        try:
            item = service.ingest_file(upload_file.file.read(), filename)
        except SourceQAError as exc:
            logger.error("Error processing file %s: %s", filename, exc)
            errors.append({"file": filename, "error": type(exc).__name__, "detail": str(exc)})
            continue
        processed.append(
            ProcessedFile(
                id=item.id, name=item.name, type=item.type, size=item.size, chunks=item.chunk_count
            )
        )
    return UploadResponse(processedFiles=processed, errors=errors)


@app.post("/process-text", response_model=TextResponse)
def process_text(
    request: TextRequest, service: SourceQAService = Depends(get_service)
) -> TextResponse:
    """Ingest pasted text."""
    item = service.ingest_text(request.text)
    return TextResponse(collectionName=item.id, chunks=item.chunk_count)


@app.post("/process-url", response_model=UrlResponse)
def process_url(request: UrlRequest, service: SourceQAService = Depends(get_service)) -> UrlResponse:
    """Fetch a web page and ingest its text."""
    item, content = service.fetch_and_ingest_url(request.url)
    return UrlResponse(collectionName=item.id, chunks=item.chunk_count, content=content)


@app.post("/chat", response_model=ChatResponse)
def chat(request: ChatRequest, service: SourceQAService = Depends(get_service)) -> ChatResponse:
    """Answer a question from the given collections."""
    result = service.answer_question(request.question, request.documentIds)
    return ChatResponse(
        answer=result.answer,
        sources=result.sources,
        failedCollections=result.failed_collections,
    )


@app.delete("/collections/{collection_id}", status_code=204)
def delete_collection(
    collection_id: str, service: SourceQAService = Depends(get_service)
) -> Response:
    """Delete the collection behind a removed source."""
    service.remove_source(collection_id)
    return Response(status_code=204)
