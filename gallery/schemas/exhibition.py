"""Pydantic schemas for exhibition records and their display form."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping, Optional, Union
from urllib.parse import urlparse

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

FALLBACK_YEAR = "2024"
FALLBACK_EXHIBITOR = "Curator"
LEADING_YEAR = re.compile(r"^\s*(\d{4})-")

Number = Union[int, float]


class ExhibitionRecord(BaseModel):
    """An exhibition exactly as the service sends it."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    title: Optional[str] = None
    category: Optional[str] = None
    cover_image: Any = None
    created_at: Any = None
    # Either a populated ``{"name": ...}`` object or a bare reference id.
    created_by: Any = None
    is_for_sale: Any = None
    price: Any = None

    @field_validator("id", "title", "category", mode="before")
    @classmethod
    def scalar_to_text(cls, value: Any) -> Optional[str]:
        # Numeric ids and titles are shown as text; nested values are dropped.
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (bool, int, float)):
            return str(value)
        return None


class DisplayExhibition(ExhibitionRecord):
    """Display-ready exhibition; built fresh on every fetch."""

    theme: Optional[str] = None
    cover_image: str = ""
    start_date: str = FALLBACK_YEAR
    exhibitor: str = FALLBACK_EXHIBITOR
    price: Number = 0

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def _absolute_url(value: Any) -> str:
    if not isinstance(value, str) or not value:
        return ""
    parsed = urlparse(value.strip())
    if parsed.scheme.lower() in {"http", "https"} and parsed.netloc:
        return value
    return ""


def _year_of(value: Any) -> str:
    if isinstance(value, datetime):
        return str(value.year)
    if isinstance(value, bool):
        return FALLBACK_YEAR
    if isinstance(value, (int, float)):
        # Service timestamps in numeric form are epoch milliseconds.
        try:
            return str(datetime.fromtimestamp(value / 1000, tz=timezone.utc).year)
        except (OverflowError, OSError, ValueError):
            return FALLBACK_YEAR
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return str(datetime.fromisoformat(text).year)
        except ValueError:
            pass
        # Older interpreters reject odd fraction widths; also accept RFC 2822 dates.
        try:
            return str(parsedate_to_datetime(value.strip()).year)
        except (TypeError, ValueError, IndexError):
            pass
        match = LEADING_YEAR.match(text)
        if match:
            return match.group(1)
    return FALLBACK_YEAR


def _exhibitor_of(created_by: Any) -> str:
    if isinstance(created_by, Mapping):
        name = created_by.get("name")
    else:
        name = getattr(created_by, "name", None)
    if isinstance(name, str) and name.strip():
        return name
    return FALLBACK_EXHIBITOR


def _price_of(value: Any) -> Number:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return 0
    if isinstance(value, (int, float)) and value > 0:
        return value
    # NaN, zero and negatives all land here.
    return 0


def to_display(raw: Union[Mapping[str, Any], ExhibitionRecord]) -> DisplayExhibition:
    """Build the display form of one raw record.

    Every field that can be missing or malformed falls back to a documented
    default instead of raising, so the result always has a usable
    ``coverImage``, ``exhibitor`` and non-negative ``price``.
    """

    if isinstance(raw, ExhibitionRecord):
        record = raw
    else:
        record = ExhibitionRecord.model_validate(dict(raw) if isinstance(raw, Mapping) else {})
    data = record.model_dump(by_alias=True)
    data.update(
        {
            "id": record.id,
            "theme": record.category,
            "coverImage": _absolute_url(record.cover_image),
            "startDate": _year_of(record.created_at),
            "exhibitor": _exhibitor_of(record.created_by),
            "isForSale": record.is_for_sale,
            "price": _price_of(record.price),
        }
    )
    return DisplayExhibition.model_validate(data)
