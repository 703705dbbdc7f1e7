"""Jinja2 template configuration."""

from decimal import Decimal
from pathlib import Path

from fastapi.templating import Jinja2Templates

# Template directory is at bill_calculator/templates/
BASE_DIR = Path(__file__).resolve().parent.parent


def format_number(value: Decimal | float, places: int = 2) -> str:
    """Format a number with thousands separators and fixed decimal places."""
    return f"{value:,.{places}f}"


templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
templates.env.filters["number"] = format_number
