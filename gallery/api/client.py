"""Shared HTTP transport for every call to the exhibition service.

One ``ApiClient`` lives for the whole process. It owns the cookie jar that holds
the service's session cookie, so a login performed through it authenticates
every later request. Callers never set credentials or content types
themselves.

Errors are observed, never rewritten: a 401 is announced on the
``SessionSignal`` and then the original ``httpx`` exception is re-raised for the
caller to handle.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

import httpx

from ..core.config import GallerySettings, get_settings
from ..middlewares import location_ctx_var
from .session_signal import SessionExpired, SessionSignal, get_session_signal

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Content-Type": "application/json"}


class ApiClient:
    """Thin wrapper around ``httpx.AsyncClient`` with a global interceptor."""

    def __init__(
        self,
        base_url: str,
        *,
        signal: Optional[SessionSignal] = None,
        login_path: str = "/login",
        cookies: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self.signal = signal if signal is not None else get_session_signal()
        self.login_path = login_path
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=DEFAULT_HEADERS,
            cookies=cookies,
            transport=transport,
            follow_redirects=True,
            event_hooks={"response": [self._observe_response]},
        )

    @classmethod
    def from_settings(
        cls,
        settings: GallerySettings,
        *,
        signal: Optional[SessionSignal] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ApiClient":
        return cls(
            settings.API_URL,
            signal=signal,
            login_path=settings.LOGIN_PATH,
            transport=transport,
        )

    async def _observe_response(self, response: httpx.Response) -> None:
        request = response.request
        if response.status_code in {401, 403}:
            logger.warning(
                "Service refused %s %s (%s)", request.method, request.url.path, response.status_code
            )
        elif response.status_code >= 500:
            logger.error("Service error %s during %s %s", response.status_code, request.method, request.url.path)
        elif response.status_code >= 400:
            logger.error("Request error %s during %s %s", response.status_code, request.method, request.url.path)
        else:
            logger.debug("%s %s -> %s", request.method, request.url.path, response.status_code)

    def _intercept_error(self, method: str, url: str, exc: httpx.HTTPError) -> None:
        if not isinstance(exc, httpx.HTTPStatusError):
            logger.error("Transport failure during %s %s: %s", method, url, exc)
            return
        if exc.response.status_code != 401:
            return
        location = location_ctx_var.get()
        at_login = location is not None and location.rstrip("/") == self.login_path.rstrip("/")
        self.signal.publish(
            SessionExpired(
                status_code=401,
                method=method,
                url=str(exc.request.url),
                location=location,
                redirect_to=None if at_login else self.login_path,
            )
        )

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            self._intercept_error(method, url, exc)
            raise
        return response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()


@lru_cache(maxsize=1)
def get_api_client() -> ApiClient:
    """Return the process-wide client, building it on first use."""

    return ApiClient.from_settings(get_settings(), signal=get_session_signal())
