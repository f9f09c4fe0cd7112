"""Model endpoints and the view-local model catalog."""

import logging
from pathlib import Path
from typing import Any

from modelwhiz.core.client import file_part
from modelwhiz.metrics.models import Model
from modelwhiz.services.base import BaseService
from modelwhiz.utils.validation import (
    require_fields,
    validate_file_path,
    validate_metric_value,
    validate_model_name,
)

logger = logging.getLogger(__name__)


class ModelService(BaseService):
    """Thin wrappers around the ``/models`` and ``/metrics`` endpoints."""

    async def list_models(self, user_id: str | None = None) -> list[Model]:
        """List models, optionally scoped to one user."""
        if user_id:
            data = await self.client.get("/models", params={"user_id": user_id})
        else:
            data = await self.client.get("/models/")

        models = []
        for item in data if isinstance(data, list) else []:
            if not isinstance(item, dict):
                logger.warning(f"Skipping malformed entry: {item!r}")
                continue
            try:
                models.append(Model.from_dict(item))
            except (KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed model entry: {e}")
        return models

    async def upload_model(
        self,
        file: Path | str,
        name: str,
        test_file: Path | str | None = None,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Upload a model file with an optional test CSV.

        Raises:
            ValidationError: If the file or name is missing
        """
        require_fields({"model file": file, "model name": name})
        name = validate_model_name(name)
        model_path = validate_file_path(file, must_exist=True)

        files = {"file": file_part(model_path)}
        if test_file:
            test_path = validate_file_path(test_file, must_exist=True)
            files["test_file"] = file_part(test_path, "text/csv")

        data = {"name": name}
        if user_id:
            data["user_id"] = user_id

        created = await self.client.post("/models/upload", data=data, files=files)
        logger.info(f"Uploaded model {name}")
        return created

    async def evaluate_model(
        self, model_id: int, test_file: Path | str
    ) -> dict[str, Any]:
        """Evaluate an existing model against a test CSV."""
        require_fields({"test file": test_file})
        test_path = validate_file_path(test_file, must_exist=True)
        return await self.client.post(
            f"/models/{model_id}/evaluate",
            files={"test_file": file_part(test_path, "text/csv")},
        )

    async def delete_model(self, model_id: int) -> None:
        await self.client.delete(f"/models/{model_id}")
        logger.info(f"Deleted model {model_id}")

    async def update_metrics(
        self,
        model_id: int,
        accuracy: float | None,
        f1_score: float | None,
        auc: float | None,
    ) -> Any:
        """Manually set a model's latest classification metrics."""
        form = _metric_fields(accuracy, f1_score, auc)
        # Filename-less parts force a multipart body without any file
        return await self.client.post(
            f"/models/{model_id}/metrics",
            files={key: (None, str(value)) for key, value in form.items()},
        )

    async def log_metrics(
        self,
        model_id: int,
        accuracy: float | None,
        f1_score: float | None,
        auc: float | None,
    ) -> Any:
        """Append a metric history entry for a model."""
        payload = {"model_id": model_id, **_metric_fields(accuracy, f1_score, auc)}
        return await self.client.post("/metrics/log", json=payload)

    async def get_insights(self, model_id: int) -> list[str]:
        data = await self.client.get(f"/models/{model_id}/insights")
        insights = (data or {}).get("insights") if isinstance(data, dict) else None
        return [str(item) for item in insights or []]


def _metric_fields(
    accuracy: float | None, f1_score: float | None, auc: float | None
) -> dict[str, float]:
    values = {
        "accuracy": validate_metric_value("accuracy", accuracy),
        "f1_score": validate_metric_value("f1_score", f1_score),
        "auc": validate_metric_value("auc", auc),
    }
    require_fields(values)
    return values


class ModelCatalog:
    """The model list owned by one view.

    The list is only ever replaced wholesale by a refetch. Mutations go to
    the server first and are followed by exactly one refresh; nothing is
    patched locally.
    """

    def __init__(self, service: ModelService, user_id: str | None = None):
        self.service = service
        self.user_id = user_id
        self.models: list[Model] = []
        self.loaded = False

    async def refresh(self) -> list[Model]:
        self.models = await self.service.list_models(self.user_id)
        self.loaded = True
        return self.models

    def find(self, model_id: int) -> Model | None:
        for model in self.models:
            if str(model.id) == str(model_id):
                return model
        return None

    async def delete(self, model_id: int) -> list[Model]:
        await self.service.delete_model(model_id)
        return await self.refresh()

    async def upload(
        self,
        file: Path | str,
        name: str,
        test_file: Path | str | None = None,
    ) -> dict[str, Any]:
        created = await self.service.upload_model(file, name, test_file, self.user_id)
        await self.refresh()
        return created

    async def evaluate(self, model_id: int, test_file: Path | str) -> dict[str, Any]:
        result = await self.service.evaluate_model(model_id, test_file)
        await self.refresh()
        return result

    async def update_metrics(
        self,
        model_id: int,
        accuracy: float | None,
        f1_score: float | None,
        auc: float | None,
    ) -> None:
        await self.service.update_metrics(model_id, accuracy, f1_score, auc)
        await self.refresh()

    async def log_metrics(
        self,
        model_id: int,
        accuracy: float | None,
        f1_score: float | None,
        auc: float | None,
    ) -> None:
        await self.service.log_metrics(model_id, accuracy, f1_score, auc)
        await self.refresh()
