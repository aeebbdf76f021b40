"""Presentation metadata pulled from page and database objects."""

from __future__ import annotations

from typing import Any, Mapping

from .elements import PageIcon
from .properties import extract_property_value

UNTITLED = "Untitled"
UNTITLED_DATABASE = "Untitled Database"


def extract_page_title(page: Mapping[str, Any]) -> str:
    """Return the value of the property whose id is ``"title"``.

    Database rows name their title column freely, so the lookup goes by the
    property id rather than by name.
    """

    properties = page.get("properties")
    if isinstance(properties, Mapping):
        for prop in properties.values():
            if isinstance(prop, Mapping) and prop.get("id") == "title":
                value = extract_property_value(prop)
                if value:
                    return value
    return UNTITLED


def extract_database_title(database: Mapping[str, Any]) -> str:
    title = database.get("title")
    if not isinstance(title, list):
        return UNTITLED_DATABASE
    text = "".join(
        item.get("plain_text") or "" for item in title if isinstance(item, Mapping)
    )
    return text or UNTITLED_DATABASE


def extract_cover_url(obj: Mapping[str, Any]) -> str | None:
    cover = obj.get("cover")
    if not isinstance(cover, Mapping):
        return None
    variant = cover.get("type")
    if variant in ("external", "file"):
        source = cover.get(variant) or {}
        return source.get("url") or None
    return None


def extract_icon(obj: Mapping[str, Any]) -> PageIcon | None:
    icon = obj.get("icon")
    if not isinstance(icon, Mapping):
        return None
    variant = icon.get("type")
    if variant == "emoji" and icon.get("emoji"):
        return PageIcon(type="emoji", emoji=icon["emoji"])
    if variant in ("external", "file"):
        url = (icon.get(variant) or {}).get("url")
        if url:
            return PageIcon(type=variant, url=url)
    return None


def extract_database_description(database: Mapping[str, Any]) -> str | None:
    description = database.get("description")
    if not isinstance(description, list):
        return None
    text = "".join(
        item.get("plain_text") or "" for item in description if isinstance(item, Mapping)
    )
    return text or None


__all__ = [
    "UNTITLED",
    "UNTITLED_DATABASE",
    "extract_cover_url",
    "extract_database_description",
    "extract_database_title",
    "extract_icon",
    "extract_page_title",
]
