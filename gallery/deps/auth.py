from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from ..middlewares import principal_ctx_var
from ..schemas.auth import CurrentUser
from ..services.auth_store import AuthStore, get_auth_store


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


async def current_viewer(
    request: Request,
    store: AuthStore = Depends(get_auth_store),
) -> Optional[CurrentUser]:
    """Resolve the signed-in viewer, asking the service once per process."""

    if store.state.loading:
        await store.check_auth_status()
    user = store.current_user()
    if user is not None:
        _set_principal(request, user.email or user.id or "viewer")
    return user


async def require_viewer(user: Optional[CurrentUser] = Depends(current_viewer)) -> CurrentUser:
    """Gate for members-only pages; the 401 handler turns this into a login redirect."""

    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    return user
