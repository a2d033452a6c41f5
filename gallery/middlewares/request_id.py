from __future__ import annotations

import logging
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
principal_ctx_var: ContextVar[str | None] = ContextVar("principal_id", default=None)
# Path of the page currently being served; the transport reads it to avoid
# pointing a viewer at the login page while they are already on it.
location_ctx_var: ContextVar[str | None] = ContextVar("location", default=None)
logger = logging.getLogger("gallery.request")

# Probes and scrapes; served but not logged.
QUIET_PATHS = frozenset({"/health", "/metrics"})


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Give every page view a correlation id and the viewer's current location.

    The id is echoed back in ``X-Request-ID``. Redirects (gate activations,
    login bounces) are logged with their target so a viewer's path through the
    vault can be followed in the logs.
    """

    def __init__(self, app, header_name: str = "X-Request-ID") -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self.header_name) or uuid4().hex
        path = request.url.path
        tokens = (
            (request_id_ctx_var, request_id_ctx_var.set(request_id)),
            (principal_ctx_var, principal_ctx_var.set(None)),
            (location_ctx_var, location_ctx_var.set(path)),
        )
        request.state.request_id = request_id
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            for var, token in tokens:
                var.reset(token)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[self.header_name] = request_id
        response.headers.setdefault("X-Response-Time", f"{elapsed_ms:.2f}ms")

        if path in QUIET_PATHS:
            return response
        page = {
            "request_id": request_id,
            "method": request.method,
            "path": path,
            "status": response.status_code,
            "duration_ms": elapsed_ms,
            "viewer": getattr(request.state, "principal", None) or "anonymous",
        }
        if 300 <= response.status_code < 400:
            page["redirect_to"] = response.headers.get("location")
        logger.info("page.served", extra={"extra_data": page})
        return response
