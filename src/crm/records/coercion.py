"""Lenient coercion of client-supplied field values.

Clients of the CRM API send a mix of legacy and current shapes: a combined
"name" instead of first/last, dates with or without a time part, numbers as
strings or numbers, pagination parameters as arbitrary query strings. These
helpers turn them into storage values without raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

# Date-only closing dates are pinned to midday UTC so the calendar day
# survives conversion into any client time zone between UTC-12 and UTC+11.
_DATE_ONLY_TIME = time(12, 0, tzinfo=timezone.utc)

# OFFSET is a signed 64-bit integer on Postgres.
_MAX_OFFSET = 2**63 - 1


def split_full_name(
    name: str | None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> tuple[str, str]:
    """Derive (first, last) from explicit parts, falling back to a full name.

    "Jane Van Doe" -> ("Jane", "Van Doe"). Explicit parts win per side.
    """
    parts = name.split() if name else []
    first = first_name or (parts[0] if parts else "")
    last = last_name or " ".join(parts[1:])
    return first, last


def parse_closing_date(value: Any) -> datetime | None:
    """Parse a closing date from a date-only or full timestamp value.

    Accepts ``datetime``/``date`` objects, ISO timestamps ("2024-06-30T09:00:00Z")
    and ISO dates ("2024-06-30"). Anything unparseable is dropped to None and
    logged; it never raises.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, _DATE_ONLY_TIME)
    if not isinstance(value, str):
        logger.warning("crm.invalid_closing_date", value=repr(value))
        return None

    text = value.strip()
    try:
        if "T" in text:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
        return datetime.combine(date.fromisoformat(text), _DATE_ONLY_TIME)
    except ValueError:
        logger.warning("crm.invalid_closing_date", value=text)
        return None


def stringify_figure(value: Any) -> str | None:
    """Store numeric deal figures as text ("50000", "75%") as entered."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip() or None


def coerce_positive_int(raw: Any, default: int) -> int:
    """Parse a positive integer, returning default for anything else."""
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class PageParams:
    """Resolved pagination request."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit) if total else 0


def parse_page_params(
    page: Any,
    limit: Any,
    default_limit: int = 10,
    max_limit: int = 100,
) -> PageParams:
    """Coerce raw page/limit query strings, never failing."""
    resolved_limit = min(coerce_positive_int(limit, default_limit), max_limit)
    resolved_page = min(coerce_positive_int(page, 1), _MAX_OFFSET // resolved_limit + 1)
    return PageParams(page=resolved_page, limit=resolved_limit)
