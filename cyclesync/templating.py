"""Jinja2 templates for the server-rendered pages.

The templates live in the templates/ subdirectory.
"""

from __future__ import annotations

from pathlib import Path

from fastapi.templating import Jinja2Templates

from cyclesync.formatting import format_iso_date, format_long_date

# Template directory relative to this module
TEMPLATE_DIR = Path(__file__).parent / "templates"


def _create_templates() -> Jinja2Templates:
    """Create the template renderer with the app's custom filters."""
    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
    templates.env.trim_blocks = True
    templates.env.lstrip_blocks = True

    # Register custom filters
    templates.env.filters["long_date"] = format_long_date
    templates.env.filters["iso_date"] = format_iso_date

    return templates


templates = _create_templates()
