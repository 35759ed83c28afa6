"""Unit tests for the KServe runtime wrapper."""

from __future__ import annotations

import pytest

pytest.importorskip("kserve")

from source_qa.serving.kserve_runtime import SourceQAModel  # noqa: E402

PARIS = "Paris is the capital of France. It is known for the Eiffel Tower."


def test_predict_answers_each_instance(service) -> None:
    cid = service.ingest_text(PARIS).id
    model = SourceQAModel(service=service)

    out = model.predict(
        {
            "instances": [
                {"question": "What is Paris known for?", "collection_ids": [cid]},
                {"question": "Anything else?", "collection_ids": ["gone"]},
            ]
        }
    )

    first, second = out["predictions"]
    assert first["answer"] == "The Eiffel Tower."
    assert first["sources"] == ["Pasted Text"]
    assert second["failed_collections"] == ["gone"]


def test_injected_service_is_ready(service) -> None:
    assert SourceQAModel(service=service).ready is True
