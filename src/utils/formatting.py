from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from domain.amounts import to_plain_text


def format_decimal(value: Decimal) -> str:
    return to_plain_text(value)


def format_percentage(value: Decimal) -> str:
    return f"{format_decimal(value)}%"


def format_minutes(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M %Z").strip()
