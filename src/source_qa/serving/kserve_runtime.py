"""KServe custom model runtime for question answering."""

from __future__ import annotations

import logging
from typing import Any

import kserve

from source_qa.config import settings
from source_qa.service import SourceQAService

logger = logging.getLogger(__name__)


class SourceQAModel(kserve.Model):
    """KServe-compatible model that wraps :meth:`SourceQAService.answer_question`.

    Ingestion is not exposed here; collections are populated through the
    REST API and referenced by id in each instance.
    """

    def __init__(
        self,
        name: str = settings.kserve_model_name,
        service: SourceQAService | None = None,
    ) -> None:
        super().__init__(name)
        self.service = service
        self.ready = service is not None

    def load(self) -> bool:
        """Build the service (called once at startup)."""
        if self.service is None:
            self.service = SourceQAService.from_settings()
        self.ready = True
        return self.ready

    def predict(self, payload: dict[str, Any], headers: dict[str, str] | None = None) -> dict:
        """Run inference — called on every request.

        Parameters
        ----------
        payload:
            ``{"instances": [{"question": "...", "collection_ids": [...]}]}``
        headers:
            Optional HTTP headers.

        Returns
        -------
        dict
            ``{"predictions": [{"answer": "...", "sources": [...], "failed_collections": [...]}]}``
        """
        instances = payload.get("instances", [])
        predictions = []

        for instance in instances:
            result = self.service.answer_question(
                instance.get("question", ""),
                instance.get("collection_ids", []),
            )
            predictions.append(
                {
                    "answer": result.answer,
                    "sources": result.sources,
                    "failed_collections": result.failed_collections,
                }
            )

        return {"predictions": predictions}


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    model = SourceQAModel()
    model.load()
    kserve.ModelServer().start([model])
