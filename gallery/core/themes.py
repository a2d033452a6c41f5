"""Category labels and the browse presets built on them."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel


class Theme(BaseModel):
    label: str
    color: str


class BrowsePreset(BaseModel):
    slug: str
    title: str
    matchers: List[str]


THEMES: Dict[str, Theme] = {
    "Art": Theme(label="Art", color="purple"),
    "Fashion": Theme(label="Fashion", color="pink"),
    "Historic": Theme(label="Historic", color="amber"),
    "Antique": Theme(label="Antique", color="amber"),
    "Science": Theme(label="Science", color="blue"),
    "Technology": Theme(label="Technology", color="blue"),
    "Culture": Theme(label="Culture", color="red"),
    "Heritage": Theme(label="Heritage", color="red"),
    "Photography": Theme(label="Photography", color="pink"),
    "Media": Theme(label="Media", color="indigo"),
    "Architecture": Theme(label="Architecture", color="yellow"),
    "Design": Theme(label="Design", color="orange"),
}
DEFAULT_THEME = Theme(label="Exhibition", color="primary")


def _preset(slug: str, first: str, second: str) -> BrowsePreset:
    combined = f"{first} & {second}"
    return BrowsePreset(slug=slug, title=combined, matchers=[first, second, combined])


BROWSE_PRESETS: Dict[str, BrowsePreset] = {
    preset.slug: preset
    for preset in (
        _preset("art-fashion", "Art", "Fashion"),
        _preset("historic-antique", "Historic", "Antique"),
        _preset("science-technology", "Science", "Technology"),
        _preset("culture-heritage", "Culture", "Heritage"),
        _preset("photography-media", "Photography", "Media"),
        _preset("architecture-design", "Architecture", "Design"),
    )
}


def theme_for(category: Optional[str]) -> Theme:
    if not category:
        return DEFAULT_THEME
    if category in THEMES:
        return THEMES[category]
    # Combined categories such as "Art & Fashion" take the first half's theme.
    head = category.split("&", 1)[0].strip()
    return THEMES.get(head, DEFAULT_THEME)


def get_preset(slug: str) -> Optional[BrowsePreset]:
    return BROWSE_PRESETS.get(slug)
