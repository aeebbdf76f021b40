"""Extract display values from database property objects.

Every function here is total: missing properties, unknown types, and
malformed payloads produce an empty value instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .elements import DateRange

STATUS_COLORS = frozenset(
    {
        "default",
        "gray",
        "brown",
        "orange",
        "yellow",
        "green",
        "blue",
        "purple",
        "pink",
        "red",
    }
)

CHECKMARK = "✓"


@dataclass(frozen=True)
class StatusValue:
    """Status option name plus a color token from :data:`STATUS_COLORS`."""

    name: str
    color: str


def _join_plain_text(items: Any) -> str:
    if not isinstance(items, list):
        return ""
    return "".join(
        (item.get("plain_text") or "") for item in items if isinstance(item, Mapping)
    )


def _format_number(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _format_date(date: Any) -> str:
    if not isinstance(date, Mapping):
        return ""
    start = date.get("start") or ""
    end = date.get("end")
    if start and end:
        return f"{start} → {end}"
    return start


def _user_name(user: Any) -> str:
    if not isinstance(user, Mapping):
        return ""
    return user.get("name") or user.get("id") or ""


def _formula_value(formula: Any) -> str:
    if not isinstance(formula, Mapping):
        return ""
    kind = formula.get("type")
    if kind == "string":
        return formula.get("string") or ""
    if kind == "number":
        return _format_number(formula.get("number"))
    if kind == "boolean":
        return CHECKMARK if formula.get("boolean") else ""
    if kind == "date":
        return _format_date(formula.get("date"))
    return ""


def _rollup_value(rollup: Any) -> str:
    if not isinstance(rollup, Mapping):
        return ""
    kind = rollup.get("type")
    if kind == "number":
        return _format_number(rollup.get("number"))
    if kind == "date":
        return _format_date(rollup.get("date"))
    if kind == "array":
        values = (extract_property_value(item) for item in rollup.get("array") or ())
        return ", ".join(value for value in values if value)
    return ""


def extract_property_value(prop: Mapping[str, Any] | None) -> str:
    """Return the display string for a single typed property.

    Args:
        prop: Property object from a page's ``properties`` mapping.

    Returns:
        str: Display text, or ``""`` for missing or unsupported properties.
    """

    if not isinstance(prop, Mapping):
        return ""

    kind = prop.get("type")
    value = prop.get(kind) if isinstance(kind, str) else None

    if kind in ("title", "rich_text"):
        return _join_plain_text(value)
    if kind == "number":
        return _format_number(value)
    if kind in ("select", "status"):
        if not isinstance(value, Mapping):
            return ""
        return value.get("name") or ""
    if kind == "multi_select":
        if not isinstance(value, list):
            return ""
        return ", ".join(
            option.get("name") or "" for option in value if isinstance(option, Mapping)
        )
    if kind == "date":
        return _format_date(value)
    if kind == "checkbox":
        return CHECKMARK if value else ""
    if kind in ("url", "email", "phone_number", "created_time", "last_edited_time"):
        return value or ""
    if kind == "people":
        if not isinstance(value, list):
            return ""
        return ", ".join(name for name in (_user_name(user) for user in value) if name)
    if kind in ("created_by", "last_edited_by"):
        return _user_name(value)
    if kind == "formula":
        return _formula_value(value)
    if kind == "rollup":
        return _rollup_value(value)
    if kind == "relation":
        if not isinstance(value, list):
            return ""
        return ", ".join(
            item.get("id") or "" for item in value if isinstance(item, Mapping)
        )
    if kind == "unique_id":
        if not isinstance(value, Mapping) or value.get("number") is None:
            return ""
        prefix = value.get("prefix")
        number = _format_number(value.get("number"))
        return f"{prefix}-{number}" if prefix else number
    if kind == "files":
        if not isinstance(value, list):
            return ""
        return ", ".join(
            item.get("name") or "" for item in value if isinstance(item, Mapping)
        )
    return ""


def extract_date_range(prop: Mapping[str, Any] | None) -> DateRange:
    """Return the raw start/end pair of a date property."""

    if not isinstance(prop, Mapping) or prop.get("type") != "date":
        return DateRange()
    date = prop.get("date")
    if not isinstance(date, Mapping):
        return DateRange()
    return DateRange(start=date.get("start"), end=date.get("end"))


def extract_status(prop: Mapping[str, Any] | None) -> StatusValue:
    """Return the status name and color token of a status property.

    Unknown colors collapse to ``"default"``; mapping tokens to concrete colors
    belongs to whoever paints the table.
    """

    if not isinstance(prop, Mapping):
        return StatusValue(name="", color="default")
    status = prop.get("status")
    if not isinstance(status, Mapping):
        return StatusValue(name="", color="default")
    color = status.get("color") or "default"
    if color not in STATUS_COLORS:
        color = "default"
    return StatusValue(name=status.get("name") or "", color=color)


def escape_table_cell(value: str) -> str:
    """Escape pipes and flatten newlines so a value fits in one table cell."""

    return value.replace("|", "\\|").replace("\r\n", " ").replace("\n", " ")


__all__ = [
    "CHECKMARK",
    "STATUS_COLORS",
    "StatusValue",
    "escape_table_cell",
    "extract_date_range",
    "extract_property_value",
    "extract_status",
]
