"""Jinja2 environment shared by every gallery page and the restricted card."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from fastapi.templating import Jinja2Templates

from .config import settings
from .themes import theme_for


def _fmt_price(value: Any) -> str:
    """Show a sale price with the configured currency, or "Inquire" when unpriced."""

    try:
        number = float(value)
    except (TypeError, ValueError):
        return "Inquire"
    if number <= 0:
        return "Inquire"
    if number.is_integer():
        return f"{settings.CURRENCY_SYMBOL}{int(number):,}"
    return f"{settings.CURRENCY_SYMBOL}{number:,.2f}"


def _theme_label(category: Any) -> str:
    return theme_for(category if isinstance(category, str) else None).label


def _theme_color(category: Any) -> str:
    return theme_for(category if isinstance(category, str) else None).color


@lru_cache(maxsize=1)
def get_templates() -> Jinja2Templates:
    """Create a ``Jinja2Templates`` instance with our standard filters registered."""

    templates = Jinja2Templates(directory=str(settings.templates_dir))
    env = templates.env
    env.filters["fmt_price"] = _fmt_price
    env.filters["theme_label"] = _theme_label
    env.filters["theme_color"] = _theme_color
    return templates
