"""Process-wide "session invalid" notification channel.

The transport publishes here whenever the service answers 401. Anything that
cares about session expiry (the auth store, a page controller) subscribes.
``invalid`` mirrors the last publish so late readers can still ask.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class SessionExpired(BaseModel):
    status_code: int = 401
    method: str
    url: str
    location: Optional[str] = None
    # ``None`` when the viewer is already on the login page.
    redirect_to: Optional[str] = None
    observed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


SessionListener = Callable[[SessionExpired], None]


class SessionSignal:
    """Publish/subscribe channel with last-writer-wins state."""

    def __init__(self) -> None:
        self._listeners: List[SessionListener] = []
        self.invalid = False
        self.last_event: Optional[SessionExpired] = None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: SessionExpired) -> None:
        self.invalid = True
        self.last_event = event
        logger.warning(
            "Session invalid after %s %s",
            event.method,
            event.url,
            extra={"extra_data": {"redirect_to": event.redirect_to}},
        )
        for listener in list(self._listeners):
            # Listeners observe only; one failing must not replace the
            # transport error the caller is about to receive.
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener %r failed", listener)

    def reset(self) -> None:
        self.invalid = False
        self.last_event = None


@lru_cache(maxsize=1)
def get_session_signal() -> SessionSignal:
    return SessionSignal()
