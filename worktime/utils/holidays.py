"""Public and company holiday calendar.

Public holidays follow the Polish statutory calendar: ten fixed dates plus the
four movable feasts derived from Easter Sunday. Company holidays are stored on
the settings document as ``{"date": "YYYY-MM-DD", "name": ...}`` entries.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Optional


FIXED_HOLIDAYS: list[tuple[int, int, str]] = [
    (1, 1, "New Year's Day"),
    (1, 6, "Epiphany"),
    (5, 1, "Labour Day"),
    (5, 3, "Constitution Day"),
    (8, 15, "Assumption Day"),
    (11, 1, "All Saints' Day"),
    (11, 11, "Independence Day"),
    (12, 24, "Christmas Eve"),
    (12, 25, "Christmas Day"),
    (12, 26, "Second Day of Christmas"),
]


def calculate_easter(year: int) -> date:
    """Easter Sunday, anonymous Gregorian algorithm (Meeus/Jones/Butcher)."""
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = ((h + l - 7 * m + 114) % 31) + 1
    return date(year, month, day)


def public_holidays_for_year(year: int) -> list[dict]:
    holidays = [{"date": date(year, m, d).isoformat(), "name": name, "type": "public"} for m, d, name in FIXED_HOLIDAYS]
    easter = calculate_easter(year)
    holidays.extend([
        {"date": easter.isoformat(), "name": "Easter Sunday", "type": "public"},
        {"date": (easter + timedelta(days=1)).isoformat(), "name": "Easter Monday", "type": "public"},
        {"date": (easter + timedelta(days=49)).isoformat(), "name": "Pentecost", "type": "public"},
        {"date": (easter + timedelta(days=60)).isoformat(), "name": "Corpus Christi", "type": "public"},
    ])
    holidays.sort(key=lambda h: h["date"])
    return holidays


def _custom_holidays(settings: dict) -> list[dict]:
    if not settings.get("include_custom_holidays"):
        return []
    return [
        {"date": h["date"], "name": h["name"], "type": "custom"}
        for h in settings.get("custom_holidays") or []
        if h and h.get("date") and h.get("name")
    ]


def is_holiday(day: date, settings: Optional[dict]) -> Optional[dict]:
    """Return the matching holiday entry, or None. Company holidays win over public ones."""
    if not settings:
        return None
    day_str = day.isoformat()
    for h in _custom_holidays(settings):
        if h["date"] == day_str:
            return h
    if settings.get("include_public_holidays"):
        for h in public_holidays_for_year(day.year):
            if h["date"] == day_str:
                return h
    return None


def holidays_in_range(start: date, end: date, settings: Optional[dict]) -> list[dict]:
    """Enabled holidays between ``start`` and ``end`` inclusive, one per date."""
    if not settings or end < start:
        return []
    candidates: list[dict] = list(_custom_holidays(settings))
    if settings.get("include_public_holidays"):
        for year in range(start.year, end.year + 1):
            candidates.extend(public_holidays_for_year(year))
    start_str, end_str = start.isoformat(), end.isoformat()
    seen: set[str] = set()
    out: list[dict] = []
    for h in candidates:
        if start_str <= h["date"] <= end_str and h["date"] not in seen:
            seen.add(h["date"])
            out.append(h)
    out.sort(key=lambda h: h["date"])
    return out
