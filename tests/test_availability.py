from pathlib import Path

import pytest

from services.availability import ScheduleCalendar
from services.errors import ScheduleTableError


DATA_DIR = Path(__file__).resolve().parents[1] / "data"


@pytest.fixture
def calendar():
    return ScheduleCalendar({8: {"New York": {"start": 1, "end": 14}}}, {8: [6]})


def test_fully_booked_day_is_not_available(calendar):
    day = calendar.day_status(8, 6)
    assert day.city == "New York"
    assert day.fully_booked is True
    assert day.available is False


def test_open_day_in_city_range_is_available(calendar):
    day = calendar.day_status(8, 5)
    assert day.city == "New York"
    assert day.fully_booked is False
    assert day.available is True


def test_day_outside_any_range_has_no_city(calendar):
    day = calendar.day_status(8, 20)
    assert day.city == ""
    assert day.available is False


def test_month_without_table_is_never_available(calendar):
    assert calendar.city_for_day(3, 5) == ""
    assert calendar.day_status(3, 5).available is False


def test_tuple_ranges_are_accepted():
    cal = ScheduleCalendar({0: {"Berlin": (1, 10)}})
    assert cal.city_for_day(0, 10) == "Berlin"
    assert cal.city_for_day(0, 11) == ""


def test_overlapping_ranges_rejected_at_load():
    with pytest.raises(ScheduleTableError):
        ScheduleCalendar(
            {
                8: {
                    "New York": {"start": 1, "end": 14},
                    "Los Angeles": {"start": 14, "end": 28},
                }
            }
        )


@pytest.mark.parametrize("bounds", [{"start": 10, "end": 5}, {"start": 0, "end": 5}, {"start": 1, "end": 32}])
def test_bad_ranges_rejected_at_load(bounds):
    with pytest.raises(ScheduleTableError):
        ScheduleCalendar({8: {"New York": bounds}})


def test_month_index_out_of_range_rejected():
    with pytest.raises(ScheduleTableError):
        ScheduleCalendar({12: {"New York": {"start": 1, "end": 5}}})


def test_month_grid_pads_leading_blanks_sunday_first(calendar):
    # 1 September 2025 is a Monday
    grid = calendar.month_grid(2025, 8)
    assert grid.month_name == "September"
    assert grid.cities == ["New York"]
    assert grid.days[0].in_month is False
    assert grid.days[0].day is None
    assert grid.days[0].available is False
    assert grid.days[1].day == 1
    assert len([d for d in grid.days if d.in_month]) == 30


def test_select_day_returns_iso_date_only_when_available(calendar):
    assert calendar.select_day(2025, 8, 5) == "2025-09-05"
    assert calendar.select_day(2025, 8, 6) is None
    assert calendar.select_day(2025, 8, 20) is None
    assert calendar.select_day(2025, 8, 31) is None


def test_shipped_schedule_loads_and_is_consistent():
    cal = ScheduleCalendar.from_file(DATA_DIR / "schedule.json")
    assert cal.cities() == ["New York", "Los Angeles", "Las Vegas"]
    assert cal.city_for_day(9, 31) == "Las Vegas"
    assert cal.is_fully_booked(8, 29) is True
    for month, ranges in cal.city_schedule.items():
        for day in range(1, 32):
            matches = [city for city, (start, end) in ranges.items() if start <= day <= end]
            assert len(matches) <= 1
