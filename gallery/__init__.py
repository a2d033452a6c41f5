"""Application wiring for the Gallery Vault client.

This module brings together configuration, middlewares, page routers and error
handling. The process stands in for one viewer's browser: it owns one HTTP
client (and so one service session), one auth store listening for session
expiry, and renders the gallery pages on top of them.
"""

from __future__ import annotations

import httpx
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.client import get_api_client
from .core.config import settings
from .core.errors import http_exception_handler, upstream_exception_handler
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware

# ---------- App init ----------
app = FastAPI(title=settings.APP_NAME)

# ---------- Middlewares ----------
# Added last runs first: the request id/location context must wrap everything.
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

# ---------- Routers ----------
from .routers import auth_ui as auth_ui_router  # noqa: E402

app.include_router(auth_ui_router.router)

from .routers import ui as ui_router  # noqa: E402

app.include_router(ui_router.router)

# ---------- Exception handling ----------
# HTML 401s (ours or the service's) become a login redirect; everything else
# gets the JSON envelope.
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(httpx.HTTPError, upstream_exception_handler)


@app.on_event("shutdown")
async def _close_transport() -> None:
    if get_api_client.cache_info().currsize:
        await get_api_client().aclose()


__all__ = ["app"]
