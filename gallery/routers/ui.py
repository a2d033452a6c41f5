"""Gallery pages: the catalog, preset browse pages, the vault gate and details."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from ..api.client import ApiClient, get_api_client
from ..core.jinja import get_templates
from ..core.themes import BROWSE_PRESETS, get_preset
from ..deps.access import AccessGate, RedirectNavigator
from ..deps.auth import current_viewer, require_viewer
from ..schemas.auth import CurrentUser
from ..schemas.exhibition import DisplayExhibition
from ..services.auth_store import AuthStore, get_auth_store
from ..services.exhibitions import ExhibitionFeed, fetch_exhibition

templates = get_templates()

router = APIRouter()


async def _load_feed(client: ApiClient, matchers: Optional[List[str]] = None) -> ExhibitionFeed:
    feed = ExhibitionFeed(client, matchers)
    try:
        await feed.activate()
    finally:
        feed.close()
    return feed


@router.get("/", response_class=HTMLResponse)
async def index_page(
    request: Request,
    client: ApiClient = Depends(get_api_client),
    store: AuthStore = Depends(get_auth_store),
    user: Optional[CurrentUser] = Depends(current_viewer),
):
    feed = await _load_feed(client)
    navigator = RedirectNavigator()
    cards = [AccessGate(exhibition, store, navigator).render() for exhibition in feed.exhibitions]
    context = {
        "user": user,
        "state": feed.state,
        "cards": cards,
        "presets": list(BROWSE_PRESETS.values()),
    }
    return templates.TemplateResponse(request, "index.html", context)


@router.get("/browse/{slug}", response_class=HTMLResponse)
async def browse_page(
    request: Request,
    slug: str,
    client: ApiClient = Depends(get_api_client),
    user: Optional[CurrentUser] = Depends(current_viewer),
):
    preset = get_preset(slug)
    if preset is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Unknown category")
    feed = await _load_feed(client, preset.matchers)
    context = {
        "user": user,
        "preset": preset,
        "state": feed.state,
        "exhibitions": feed.exhibitions,
    }
    return templates.TemplateResponse(request, "browse.html", context)


@router.get("/vault/{exhibition_id}")
async def open_vault(
    exhibition_id: str,
    store: AuthStore = Depends(get_auth_store),
    _user: Optional[CurrentUser] = Depends(current_viewer),
):
    navigator = RedirectNavigator()
    target = AccessGate({"id": exhibition_id}, store, navigator).activate()
    return RedirectResponse(url=navigator.target or target, status_code=302)


@router.get("/exhibitions/{exhibition_id}", response_class=HTMLResponse)
async def exhibition_detail(
    request: Request,
    exhibition_id: str,
    client: ApiClient = Depends(get_api_client),
    user: CurrentUser = Depends(require_viewer),
):
    exhibition: DisplayExhibition = await fetch_exhibition(client, exhibition_id)
    return templates.TemplateResponse(
        request, "detail.html", {"user": user, "exhibition": exhibition}
    )
