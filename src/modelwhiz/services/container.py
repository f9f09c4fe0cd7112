"""Service container for centralized API service management."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modelwhiz.core.client import ApiClient
    from modelwhiz.core.session import SessionStore

from modelwhiz.services.evaluation_service import EvaluationService
from modelwhiz.services.model_service import ModelCatalog, ModelService


class ServiceContainer:
    """Central container for all ModelWhiz API services.

    Services are initialized lazily and share one ApiClient.
    """

    def __init__(
        self,
        client: "ApiClient",
        session_store: "SessionStore | None" = None,
        user_id: str | None = None,
    ):
        """Initialize ServiceContainer.

        Args:
            client: ApiClient used by every service
            session_store: Source of the signed-in user id
            user_id: Explicit user id that overrides the session
        """
        self.client = client
        self.session_store = session_store
        self._user_id_override = user_id

        self._model_service = None
        self._evaluation_service = None

    @property
    def user_id(self) -> str | None:
        """Explicit override first, then the signed-in session."""
        if self._user_id_override:
            return self._user_id_override
        if self.session_store is not None:
            return self.session_store.user_id
        return None

    @property
    def models(self) -> ModelService:
        """Get the model service."""
        if self._model_service is None:
            self._model_service = ModelService(self.client)
        return self._model_service

    @property
    def evaluations(self) -> EvaluationService:
        """Get the evaluation service."""
        if self._evaluation_service is None:
            self._evaluation_service = EvaluationService(self.client)
        return self._evaluation_service

    def catalog(self, scoped: bool = False) -> ModelCatalog:
        """Create a fresh model catalog for one view.

        Args:
            scoped: List only the current user's models
        """
        return ModelCatalog(self.models, self.user_id if scoped else None)

    async def aclose(self) -> None:
        await self.client.aclose()
