from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ..core.jinja import get_templates
from ..deps.auth import current_viewer
from ..schemas.auth import CurrentUser
from ..services.auth_store import AuthStore, error_message, get_auth_store

logger = logging.getLogger(__name__)

router = APIRouter()
templates = get_templates()


def _safe_next(next_path: Optional[str]) -> str:
    # Only same-site paths; anything else falls back to the home page.
    if next_path and next_path.startswith("/") and not next_path.startswith("//"):
        return next_path
    return "/"


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    next: str = "/",
    user: Optional[CurrentUser] = Depends(current_viewer),
):
    if user is not None:
        return RedirectResponse(url=_safe_next(next), status_code=302)
    return templates.TemplateResponse(request, "login.html", {"next": next, "error": ""})


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form("/"),
    store: AuthStore = Depends(get_auth_store),
):
    if not email or not password:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"next": next, "error": "Please provide email and password"},
            status_code=400,
        )
    try:
        result = await store.login(email, password)
    except httpx.HTTPStatusError as exc:
        logger.warning("Login rejected: %s", exc.response.status_code)
        return templates.TemplateResponse(
            request,
            "login.html",
            {"next": next, "error": error_message(exc, "Invalid email or password.")},
            status_code=401,
        )
    # An explicit ``next`` wins over the service's role-based landing page.
    target = _safe_next(next) if next and next != "/" else _safe_next(result.redirect_path)
    return RedirectResponse(url=target, status_code=302)


@router.get("/logout")
async def logout(next: str = "/", store: AuthStore = Depends(get_auth_store)):
    await store.logout()
    return RedirectResponse(url=_safe_next(next), status_code=302)
