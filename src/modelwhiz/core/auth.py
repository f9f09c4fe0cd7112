"""Client for the external identity provider (Supabase GoTrue API).

Sign-in, sign-up and sign-out are delegated entirely to the provider. This
module only forwards credentials and stores what comes back in the
SessionStore.
"""

import logging
from typing import Any

import httpx

from modelwhiz.core.session import Session, SessionStore
from modelwhiz.error_handling import AuthError

logger = logging.getLogger(__name__)


class SignUpResult:
    """Outcome of a sign-up: a live session or a pending email confirmation."""

    def __init__(self, session: Session | None, email: str):
        self.session = session
        self.email = email

    @property
    def needs_confirmation(self) -> bool:
        return self.session is None


class AuthProvider:
    """Email/password auth against a GoTrue-compatible endpoint."""

    def __init__(
        self,
        auth_url: str,
        api_key: str,
        store: SessionStore,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.auth_url = auth_url.rstrip("/")
        self.store = store
        self._client = httpx.AsyncClient(
            base_url=f"{self.auth_url}/auth/v1",
            headers={"apikey": api_key, "Content-Type": "application/json"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "AuthProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(
        self,
        path: str,
        payload: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.post(
                path, json=payload or {}, params=params, headers=headers
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Could not reach identity provider: {e}", e) from e

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {"message": response.text}

        if response.is_error:
            raise AuthError(_provider_message(body, response.status_code))
        return body

    async def sign_in(self, email: str, password: str) -> Session:
        """Sign in with email and password and store the session."""
        body = await self._post(
            "/token",
            {"email": email, "password": password},
            params={"grant_type": "password"},
        )
        session = Session.from_provider(body)
        self.store.set(session)
        logger.info(f"Signed in as {session.email or session.user_id}")
        return session

    async def sign_up(self, email: str, password: str) -> SignUpResult:
        """Register a new account.

        Projects that require email confirmation return no session; the user
        has to confirm and then sign in.
        """
        body = await self._post("/signup", {"email": email, "password": password})
        session = None
        if body.get("access_token"):
            session = Session.from_provider(body)
            self.store.set(session)
        logger.info(f"Signed up {email}")
        return SignUpResult(session, email)

    async def sign_out(self) -> None:
        """Revoke the session at the provider and forget it locally."""
        session = self.store.current()
        if session is not None:
            try:
                await self._post(
                    "/logout",
                    headers={"Authorization": f"Bearer {session.access_token}"},
                )
            except AuthError as e:
                # Local session is cleared regardless
                logger.warning(f"Provider sign-out failed: {e.message}")
        self.store.clear()

    def get_session(self) -> Session | None:
        return self.store.current()


def _provider_message(body: dict[str, Any], status_code: int) -> str:
    for key in ("error_description", "msg", "message", "error"):
        value = body.get(key)
        if value:
            return str(value)
    return f"Identity provider returned status {status_code}"
