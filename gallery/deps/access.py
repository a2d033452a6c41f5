"""Access gate for members-only exhibitions.

The gate always shows the teaser treatment; what changes with the viewer is
where activating the card leads. Both collaborators are injected:

* a ``ViewerSource`` answers "who is signed in";
* a ``Navigator`` performs the move to another location.

That keeps the decision itself (``resolve_target``) a pure function.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol
from urllib.parse import quote

from ..core.config import settings
from ..core.jinja import get_templates
from ..schemas.auth import CurrentUser

RESTRICTED_CARD_TEMPLATE = "_restricted_card.html"


class ViewerSource(Protocol):
    def current_user(self) -> Optional[CurrentUser]: ...


class Navigator(Protocol):
    def navigate(self, path: str) -> None: ...


class RedirectNavigator:
    """Navigator for request handlers: remembers the target for a redirect response."""

    def __init__(self) -> None:
        self.target: Optional[str] = None

    def navigate(self, path: str) -> None:
        self.target = path


def exhibition_id_of(item: Any) -> Optional[str]:
    if isinstance(item, Mapping):
        value = item.get("id") or item.get("_id")
    else:
        value = getattr(item, "id", None)
    return str(value) if value not in (None, "") else None


def resolve_target(
    user: Optional[CurrentUser],
    exhibition_id: Optional[str],
    *,
    login_path: Optional[str] = None,
    detail_path: Optional[str] = None,
) -> str:
    """Return where activating a restricted card should take this viewer."""

    if user is None:
        return login_path or settings.LOGIN_PATH
    if not exhibition_id:
        return "/"
    template = detail_path or settings.DETAIL_PATH
    return template.format(id=quote(exhibition_id, safe=""))


def _field(item: Any, name: str, alias: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(alias, item.get(name))
    return getattr(item, name, None)


class AccessGate:
    """Teaser card plus the navigation decision for one exhibition."""

    def __init__(self, exhibition: Any, viewer: ViewerSource, navigator: Navigator) -> None:
        self.exhibition = exhibition
        self.viewer = viewer
        self.navigator = navigator

    @property
    def exhibition_id(self) -> Optional[str]:
        return exhibition_id_of(self.exhibition)

    def target(self) -> str:
        return resolve_target(self.viewer.current_user(), self.exhibition_id)

    def activate(self) -> str:
        target = self.target()
        self.navigator.navigate(target)
        return target

    def context(self) -> Dict[str, Any]:
        signed_in = self.viewer.current_user() is not None
        cover_image = _field(self.exhibition, "cover_image", "coverImage")
        exhibition_id = self.exhibition_id
        return {
            "id": exhibition_id,
            "title": _field(self.exhibition, "title", "title") or "",
            "cover_image": cover_image if isinstance(cover_image, str) else "",
            "badge": "Exclusive",
            "caption": "Members Only Access",
            "action_label": "Enter Vault" if signed_in else "Login to Access",
            "href": f"/vault/{quote(exhibition_id, safe='')}" if exhibition_id else settings.LOGIN_PATH,
        }

    def render(self) -> str:
        template = get_templates().env.get_template(RESTRICTED_CARD_TEMPLATE)
        return template.render(card=self.context())
