"""Unit tests for the ingestion pipeline."""

from __future__ import annotations

import pytest

from source_qa.errors import (
    EmbeddingDimensionError,
    EmbeddingServiceError,
    EmptySourceError,
    PartialIngestionWarning,
    StoreUnavailable,
)
from source_qa.ingestion.embedder import EmbeddingGateway
from source_qa.ingestion.models import SourceDocument
from source_qa.ingestion.pipeline import IngestionPipeline


def _five_chunk_text() -> str:
    # 1000/200 windows end at 1000, 1800, 2600, 3400, 4000.
    return "z" * 4000


class TestIngest:
    def test_2500_chars_store_three_points(self, pipeline, store) -> None:
        result = pipeline.ingest(SourceDocument(text="a" * 2500, label="Pasted Text"))

        assert result.chunk_count == 3
        assert result.chunks_produced == 3
        points = store.collections[result.collection_id]["points"]
        assert sorted(points) == [1, 2, 3]

    def test_payload_carries_text_label_and_chunk_number(self, pipeline, store) -> None:
        result = pipeline.ingest(SourceDocument(text="a" * 2500, label="notes.md"))
        point = store.collections[result.collection_id]["points"][2]
        assert point.payload.document == "notes.md"
        assert point.payload.chunk == 2
        assert point.payload.text == "a" * 1000

    def test_kind_prefixes_collection_id(self, pipeline) -> None:
        result = pipeline.ingest(SourceDocument(text="hello", label="x"), kind="url")
        assert result.collection_id.startswith("url_")

    def test_one_chunk_per_embedding_call(self, pipeline, fake_embeddings) -> None:
        pipeline.ingest(SourceDocument(text="a" * 2500, label="x"))
        assert len(fake_embeddings.calls) == 3

    def test_no_warnings_when_everything_stored(self, pipeline) -> None:
        result = pipeline.ingest(SourceDocument(text="hello", label="x"))
        assert result.warnings == []
        assert not result.partial


class TestFailureIsolation:
    def test_empty_source_creates_no_collection(self, pipeline, store) -> None:
        with pytest.raises(EmptySourceError):
            pipeline.ingest(SourceDocument(text="", label="empty.txt"))
        assert store.collections == {}

    def test_store_unavailable_aborts_without_side_effects(
        self, pipeline, store, fake_embeddings
    ) -> None:
        store.unavailable = True
        with pytest.raises(StoreUnavailable):
            pipeline.ingest(SourceDocument(text="hello", label="x"))
        assert store.collections == {}
        assert fake_embeddings.calls == []

    def test_one_failed_embedding_of_five_skips_that_chunk(
        self, pipeline, store, fake_embeddings
    ) -> None:
        fake_embeddings.fail_calls = {3}
        result = pipeline.ingest(SourceDocument(text=_five_chunk_text(), label="big.txt"))

        assert result.chunks_produced == 5
        assert result.chunk_count == 4
        assert result.skipped_chunks == [3]
        assert sorted(store.collections[result.collection_id]["points"]) == [1, 2, 4, 5]
        assert len(result.warnings) == 1
        assert isinstance(result.warnings[0], PartialIngestionWarning)

    def test_every_embedding_failing_discards_collection(
        self, pipeline, store, fake_embeddings
    ) -> None:
        fake_embeddings.fail_calls = {1, 2, 3}
        with pytest.raises(EmbeddingServiceError):
            pipeline.ingest(SourceDocument(text="a" * 2500, label="x"))
        assert store.collections == {}

    def test_dimension_mismatch_is_fatal(self, collections, store, fake_embeddings) -> None:
        gateway = EmbeddingGateway(fake_embeddings, dimension=8)
        pipeline = IngestionPipeline(gateway, collections)
        with pytest.raises(EmbeddingDimensionError):
            pipeline.ingest(SourceDocument(text="hello", label="x"))
        assert store.collections == {}

    def test_store_failure_mid_run_discards_collection(self, pipeline, store) -> None:
        store.fail_upsert_after = 1
        with pytest.raises(StoreUnavailable):
            pipeline.ingest(SourceDocument(text="a" * 2500, label="x"))
        assert store.collections == {}

    def test_sources_get_independent_collections(self, pipeline, store) -> None:
        first = pipeline.ingest(SourceDocument(text="alpha", label="a"))
        second = pipeline.ingest(SourceDocument(text="beta", label="b"))
        assert first.collection_id != second.collection_id
        assert len(store.collections) == 2
