"""Schedule calendar: which city the artist works in on a given day and
whether that day can still be booked.

Months are zero-based (0 = January) throughout, matching the tables in
``data/schedule.json``. Callers that speak 1-12 convert at the edge.
"""
from __future__ import annotations

import calendar
import json
import logging
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from services.errors import ScheduleTableError


logger = logging.getLogger(__name__)

CityRanges = Dict[str, Tuple[int, int]]


class CalendarDay(BaseModel):
    day: Optional[int] = None
    in_month: bool
    city: str = ""
    fully_booked: bool = False
    available: bool = False


class CalendarMonth(BaseModel):
    year: int
    month: int
    month_name: str
    cities: List[str]
    days: List[CalendarDay]


def _normalize_ranges(month: int, ranges: Mapping[str, object]) -> CityRanges:
    normalized: CityRanges = {}
    for city, bounds in ranges.items():
        if isinstance(bounds, Mapping):
            start, end = bounds.get("start"), bounds.get("end")
        else:
            start, end = bounds  # type: ignore[misc]
        if not isinstance(start, int) or not isinstance(end, int) or not 1 <= start <= end <= 31:
            raise ScheduleTableError(f"month {month}: bad range for {city!r}: {bounds!r}")
        normalized[city] = (start, end)
    return normalized


def _check_overlaps(month: int, ranges: CityRanges) -> None:
    ordered = sorted(ranges.items(), key=lambda item: item[1][0])
    for (city_a, (_, end_a)), (city_b, (start_b, _)) in zip(ordered, ordered[1:]):
        if start_b <= end_a:
            raise ScheduleTableError(f"month {month}: {city_a!r} and {city_b!r} overlap")


class ScheduleCalendar:
    def __init__(
        self,
        city_schedule: Mapping[int, Mapping[str, object]],
        fully_booked: Mapping[int, Iterable[int]] | None = None,
    ) -> None:
        self.city_schedule: Dict[int, CityRanges] = {}
        for month, ranges in city_schedule.items():
            month = int(month)
            if not 0 <= month <= 11:
                raise ScheduleTableError(f"month index out of range: {month}")
            normalized = _normalize_ranges(month, ranges)
            _check_overlaps(month, normalized)
            self.city_schedule[month] = normalized
        self.fully_booked: Dict[int, frozenset[int]] = {
            int(month): frozenset(int(d) for d in days) for month, days in (fully_booked or {}).items()
        }

    @classmethod
    def from_file(cls, path: str | Path) -> "ScheduleCalendar":
        with Path(path).open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
        # JSON object keys arrive as strings
        return cls(
            {int(m): ranges for m, ranges in raw.get("citySchedule", {}).items()},
            {int(m): days for m, days in raw.get("fullyBookedDays", {}).items()},
        )

    def cities(self) -> List[str]:
        seen: Dict[str, None] = {}
        for ranges in self.city_schedule.values():
            for city in ranges:
                seen.setdefault(city, None)
        return list(seen)

    def city_for_day(self, month: int, day: int) -> str:
        for city, (start, end) in self.city_schedule.get(month, {}).items():
            if start <= day <= end:
                return city
        return ""

    def is_fully_booked(self, month: int, day: int) -> bool:
        return day in self.fully_booked.get(month, frozenset())

    def day_status(self, month: int, day: int) -> CalendarDay:
        city = self.city_for_day(month, day)
        fully_booked = self.is_fully_booked(month, day)
        return CalendarDay(
            day=day,
            in_month=True,
            city=city,
            fully_booked=fully_booked,
            available=not fully_booked and city != "",
        )

    def month_grid(self, year: int, month: int) -> CalendarMonth:
        """Cells for a Sunday-first calendar page, blanks first."""
        first_weekday = (date(year, month + 1, 1).weekday() + 1) % 7
        days_in_month = calendar.monthrange(year, month + 1)[1]
        days = [CalendarDay(in_month=False) for _ in range(first_weekday)]
        days.extend(self.day_status(month, d) for d in range(1, days_in_month + 1))
        return CalendarMonth(
            year=year,
            month=month,
            month_name=calendar.month_name[month + 1],
            cities=list(self.city_schedule.get(month, {})),
            days=days,
        )

    def select_day(self, year: int, month: int, day: int) -> Optional[str]:
        """ISO date for an available day, None for anything that cannot be booked."""
        if day < 1 or day > calendar.monthrange(year, month + 1)[1]:
            return None
        if not self.day_status(month, day).available:
            return None
        return date(year, month + 1, day).isoformat()
