"""Date formatting helpers shared by the repository and the templates."""

from __future__ import annotations

from datetime import date


def format_iso_date(value: date) -> str:
    """Storage format: ``yyyy-MM-dd``."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def ordinal(n: int) -> str:
    """1 -> '1st', 12 -> '12th', 22 -> '22nd'."""
    if 11 <= n % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def format_long_date(value: date | str) -> str:
    """Long display form, e.g. ``March 15th, 2024``."""
    if isinstance(value, str):
        value = date.fromisoformat(value)
    return f"{value.strftime('%B')} {ordinal(value.day)}, {value.year}"


def parse_form_date(raw: str | None, default: date) -> date:
    """Parse a ``yyyy-MM-dd`` form value; blank means ``default``.

    Raises:
        ValueError: If ``raw`` is not blank and not a valid ISO date.
    """
    if raw is None or not raw.strip():
        return default
    return date.fromisoformat(raw.strip())
