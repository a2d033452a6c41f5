from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


def _login_redirect_for(request: Request) -> RedirectResponse | None:
    """Send browsers to the login page, except from the login page itself."""

    accept = (request.headers.get("accept") or "").lower()
    path = request.url.path
    if "text/html" not in accept or path.startswith(settings.LOGIN_PATH):
        return None
    return RedirectResponse(url=f"{settings.LOGIN_PATH}?next={quote(path)}", status_code=302)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        redirect = _login_redirect_for(request)
        if redirect is not None:
            return redirect
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(status_code=exc.status_code, code="http_error", message=message, details=details)


async def upstream_exception_handler(request: Request, exc: httpx.HTTPError):
    """Map exhibition-service failures that escaped a page handler."""

    if isinstance(exc, httpx.HTTPStatusError):
        upstream_status = exc.response.status_code
        if upstream_status == status.HTTP_401_UNAUTHORIZED:
            redirect = _login_redirect_for(request)
            if redirect is not None:
                return redirect
            return ErrorEnvelope(status_code=401, code="session_expired", message="Login required")
        if upstream_status == status.HTTP_404_NOT_FOUND:
            return ErrorEnvelope(status_code=404, code="not_found", message="Exhibition not found.")
        if upstream_status == status.HTTP_403_FORBIDDEN:
            return ErrorEnvelope(status_code=403, code="forbidden", message="Access denied.")
        return ErrorEnvelope(
            status_code=status.HTTP_502_BAD_GATEWAY,
            code="upstream_error",
            message="Exhibition service request failed",
            details={"status": upstream_status},
        )
    return ErrorEnvelope(
        status_code=status.HTTP_502_BAD_GATEWAY,
        code="upstream_unavailable",
        message="Exhibition service unavailable",
        details={"error": str(exc)},
    )
