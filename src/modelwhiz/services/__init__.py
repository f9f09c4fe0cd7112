"""API service layer for ModelWhiz."""

from modelwhiz.services.container import ServiceContainer
from modelwhiz.services.evaluation_service import EvaluationService
from modelwhiz.services.model_service import ModelCatalog, ModelService

__all__ = ["EvaluationService", "ModelCatalog", "ModelService", "ServiceContainer"]
