"""In-process record of who is signed in to the exhibition service.

The service keeps the real session; this store only remembers the last answer
it gave so pages and the access gate can ask "is there a current user" without
a round trip. It listens on the ``SessionSignal`` and forgets the user as soon
as the transport reports a 401.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

import httpx

from ..api.client import ApiClient, get_api_client
from ..api.session_signal import SessionExpired, SessionSignal
from ..schemas.auth import AuthState, CurrentUser, LoginRequest, LoginResult

logger = logging.getLogger(__name__)

CHECK_AUTH_ENDPOINT = "/api/auth/check-auth"
LOGIN_ENDPOINT = "/api/auth/login"
LOGOUT_ENDPOINT = "/api/auth/logout"


def error_message(exc: Exception, default: str) -> str:
    """Pull the service's ``message`` out of a failed response if it sent one."""

    if isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
        except ValueError:
            return default
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
    return default


class AuthStore:
    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.state = AuthState()

    def current_user(self) -> Optional[CurrentUser]:
        return self.state.user

    def set_credentials(self, user: CurrentUser) -> None:
        self.state = AuthState(user=user, is_authenticated=True, loading=False)

    def clear(self) -> None:
        self.state = AuthState(user=None, is_authenticated=False, loading=False)

    async def check_auth_status(self) -> Optional[CurrentUser]:
        """Ask the service whether the shared cookie jar holds a live session."""

        self.state = self.state.model_copy(update={"loading": True})
        try:
            response = await self.client.get(CHECK_AUTH_ENDPOINT)
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Failed to check auth: %s", error_message(exc, str(exc)))
            self.clear()
            return None

        if isinstance(body, dict) and body.get("isAuthenticated") and body.get("user"):
            self.set_credentials(CurrentUser.model_validate(body["user"]))
        else:
            self.clear()
        return self.state.user

    async def login(self, email: str, password: str) -> LoginResult:
        """Sign in; the service's session cookie lands in the shared client.

        Raises the transport's own exception when the service rejects the
        credentials so the caller can show ``error_message``.
        """

        payload = LoginRequest(email=email, password=password)
        response = await self.client.post(LOGIN_ENDPOINT, json=payload.model_dump())
        result = LoginResult.model_validate(response.json())
        self.set_credentials(result.user)
        self.client.signal.reset()
        logger.info("Signed in", extra={"extra_data": {"principal": result.user.email}})
        return result

    async def logout(self) -> None:
        try:
            await self.client.post(LOGOUT_ENDPOINT)
        except httpx.HTTPError as exc:
            logger.error("Logout error: %s", exc)
        finally:
            self.clear()

    def handle_session_expired(self, event: SessionExpired) -> None:
        if self.state.user is not None:
            logger.info("Clearing signed-in viewer after session expiry")
        self.clear()


def build_auth_store(client: ApiClient, signal: Optional[SessionSignal] = None) -> AuthStore:
    store = AuthStore(client)
    (signal or client.signal).subscribe(store.handle_session_expired)
    return store


@lru_cache(maxsize=1)
def get_auth_store() -> AuthStore:
    return build_auth_store(get_api_client())
