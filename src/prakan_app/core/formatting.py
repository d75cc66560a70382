"""Display helpers for amounts and dates."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

BUDDHIST_ERA_OFFSET = 543


def format_currency(amount: Decimal | float | int | str | None) -> str:
    """Format an amount with thousands separators and two decimals: 1,234.50."""
    try:
        value = Decimal(str(amount)) if amount not in (None, "") else Decimal("0")
    except InvalidOperation:
        value = Decimal("0")
    return f"{value:,.2f}"


def format_date(value: str | None) -> str:
    """Render an ISO date or timestamp as a Thai short date, e.g. 18/10/2569."""
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(value[:10]), datetime.min.time())
        except ValueError:
            return value
    return f"{parsed.day}/{parsed.month}/{parsed.year + BUDDHIST_ERA_OFFSET}"
