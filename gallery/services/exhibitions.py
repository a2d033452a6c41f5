"""Fetch, filter and normalize the exhibition catalog.

``ExhibitionFeed`` binds a set of category matchers to an up-to-date list of
``DisplayExhibition`` objects and exposes the loading/error/data lifecycle to
whichever page owns it. The catalog is always fetched whole; filtering happens
here after the response arrives.
"""

from __future__ import annotations

import logging
from typing import Any, FrozenSet, Iterable, List, Optional, Sequence
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

from ..api.client import ApiClient
from ..core.config import settings
from ..schemas.exhibition import DisplayExhibition, to_display

logger = logging.getLogger(__name__)


class FetchState(BaseModel):
    """Snapshot of a feed; ``loading`` is tracked apart from data and error."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    exhibitions: List[DisplayExhibition] = Field(default_factory=list)
    loading: bool = True
    error: Optional[BaseException] = None

    @property
    def status(self) -> str:
        if self.loading:
            return "loading"
        if self.error is not None:
            return "error"
        return "ready"


def normalize_matchers(matchers: Optional[Iterable[str]]) -> FrozenSet[str]:
    if not matchers:
        return frozenset()
    if isinstance(matchers, str):
        return frozenset([matchers])
    return frozenset(matchers)


def filter_by_category(records: Sequence[Any], matchers: FrozenSet[str]) -> List[Any]:
    """Keep records whose category is one of ``matchers``; empty keeps all."""

    if not matchers:
        return list(records)
    kept = []
    for record in records:
        category = record.get("category") if isinstance(record, dict) else getattr(record, "category", None)
        if category in matchers:
            kept.append(record)
    return kept


def transform_catalog(payload: Any, matchers: FrozenSet[str]) -> List[DisplayExhibition]:
    if not isinstance(payload, list):
        raise TypeError(f"Expected a list of exhibitions, got {type(payload).__name__}")
    return [to_display(record) for record in filter_by_category(payload, matchers)]


class ExhibitionFeed:
    """Category-filtered view of the catalog with a loading/error/data lifecycle.

    Each fetch cycle takes a ticket. Only the cycle holding the newest ticket may
    publish results or clear ``loading``, so a slow response for an old set of
    matchers can never overwrite a newer one. Responses arriving after
    ``close()`` are dropped.
    """

    def __init__(
        self,
        client: ApiClient,
        matchers: Optional[Iterable[str]] = None,
        *,
        endpoint: Optional[str] = None,
    ) -> None:
        self.client = client
        self.endpoint = endpoint or settings.EXHIBITIONS_ENDPOINT
        self.matchers = normalize_matchers(matchers)
        self.exhibitions: List[DisplayExhibition] = []
        self.loading = True
        self.error: Optional[BaseException] = None
        self._ticket = 0
        self._activated = False
        self._closed = False

    @property
    def state(self) -> FetchState:
        return FetchState(exhibitions=list(self.exhibitions), loading=self.loading, error=self.error)

    @property
    def closed(self) -> bool:
        return self._closed

    async def activate(self) -> FetchState:
        self._activated = True
        await self.refresh()
        return self.state

    async def update_matchers(self, matchers: Optional[Iterable[str]]) -> bool:
        """Re-fetch when the matcher values changed; return whether a fetch ran."""

        new_matchers = normalize_matchers(matchers)
        if self._activated and new_matchers == self.matchers:
            return False
        self.matchers = new_matchers
        self._activated = True
        await self.refresh()
        return True

    async def refresh(self) -> None:
        if self._closed:
            return
        self._ticket += 1
        ticket = self._ticket
        matchers = self.matchers
        self.loading = True
        try:
            response = await self.client.get(self.endpoint)
            payload = response.json()
            if payload is None:
                result = None
            else:
                result = transform_catalog(payload, matchers)
            if not self._is_current(ticket):
                logger.debug("Discarding stale exhibitions response (ticket %s)", ticket)
                return
            if result is not None:
                self.exhibitions = result
            self.error = None
            logger.info(
                "Loaded exhibitions",
                extra={"extra_data": {"count": len(self.exhibitions), "matchers": sorted(matchers)}},
            )
        except Exception as exc:
            if not self._is_current(ticket):
                logger.debug("Ignoring failure of stale exhibitions request: %s", exc)
                return
            logger.error("Fetch error: %s", exc)
            self.error = exc
        finally:
            if self._is_current(ticket):
                self.loading = False

    def _is_current(self, ticket: int) -> bool:
        return not self._closed and ticket == self._ticket

    def close(self) -> None:
        self._closed = True


async def fetch_exhibition(client: ApiClient, exhibition_id: str) -> DisplayExhibition:
    """Load and normalize a single exhibition for the detail page."""

    response = await client.get(f"{settings.EXHIBITIONS_ENDPOINT}/{quote(exhibition_id, safe='')}")
    return to_display(response.json())
