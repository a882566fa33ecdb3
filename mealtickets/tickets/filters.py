"""Parsing of caller supplied date bounds and owner attribute matching."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo

from mealtickets.core.errors import InvalidDate, InvalidDateRange
from mealtickets.owners.directory import Owner


@dataclass(frozen=True, slots=True)
class IssuedRange:
    """Inclusive UTC bounds for ``issued_at``."""

    start: datetime | None = None
    end: datetime | None = None


def parse_day(raw: str, *, field: str, zone: tzinfo) -> date:
    """Parse an ISO date or datetime string and return its calendar day in ``zone``."""

    text = raw.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidDate(f"'{raw}' is not a valid date for {field}") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(zone)
    return parsed.date()


def resolve_issued_range(date_from: str | None, date_to: str | None, *, zone: tzinfo) -> IssuedRange:
    """Turn raw ``from``/``to`` strings into start-of-day and end-of-day UTC bounds.

    Both strings are parsed before the range is checked, so a malformed value is
    reported as ``InvalidDate`` even when the other bound would also be wrong.
    """

    start_day = parse_day(date_from, field="from", zone=zone) if date_from else None
    end_day = parse_day(date_to, field="to", zone=zone) if date_to else None

    if start_day is not None and end_day is not None and start_day > end_day:
        raise InvalidDateRange("The start date must be on or before the end date")

    start = None
    if start_day is not None:
        start = datetime.combine(start_day, time.min, tzinfo=zone).astimezone(timezone.utc)
    end = None
    if end_day is not None:
        end = datetime.combine(end_day, time.max, tzinfo=zone).astimezone(timezone.utc)
    return IssuedRange(start=start, end=end)


def contains(haystack: str, needle: str | None) -> bool:
    if not needle:
        return True
    return needle.casefold() in haystack.casefold()


def owner_matches_all(owner: Owner, *, name: str | None, email: str | None) -> bool:
    return contains(owner.name, name) and contains(owner.email, email)


def owner_matches_any(owner: Owner, *, name: str | None, email: str | None) -> bool:
    """OR semantics used by statistics; no filters means everything matches."""

    if not name and not email:
        return True
    return (bool(name) and contains(owner.name, name)) or (bool(email) and contains(owner.email, email))
