from datetime import date, datetime, timezone

import pytest

from src.api.models import HabitIcon
from src.api.utils.color_utils import darken_color
from src.api.utils.date_utils import (
    calendar_months_between,
    calendar_weeks_between,
    calendar_years_between,
    get_today_date,
    iter_dates,
    js_weekday,
    parse_iso_date,
    start_of_week,
    week_window,
)
from src.api.utils.timer_utils import convert_elapsed_to_unit, is_time_unit, round_half_up

# --- Цвета ---


@pytest.mark.parametrize(
    ("color", "amount", "expected"),
    [
        ("#FFFFFF", 0.5, "#808080"),
        ("#C8C8C8", 0.3, "#8c8c8c"),
        ("#ABCDEF", 0, "#abcdef"),
        ("#123456", 1, "#000000"),
        ("red", 0.3, "red"),
        ("#FFF", 0.3, "#FFF"),
    ],
)
def test_darken_color(color: str, amount: float, expected: str):
    assert darken_color(color, amount) == expected


# --- Таймер ---


@pytest.mark.parametrize(
    ("seconds", "unit", "expected"),
    [
        (90, "minutes", 2),
        (150, "mins", 3),
        (29, "min", 0),
        (5400, "hours", 1.5),
        (600, "hr", 0.2),
        (42, "seconds", 42),
        (120, "pages", 2),
        (120, None, 2),
    ],
)
def test_convert_elapsed_to_unit(seconds: float, unit: str | None, expected: float):
    assert convert_elapsed_to_unit(seconds, unit) == pytest.approx(expected)


def test_is_time_unit():
    assert is_time_unit("Minutes") is True
    assert is_time_unit(" hrs ") is True
    assert is_time_unit("pages") is False
    assert is_time_unit(None) is False


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(66.666) == 67
    assert round_half_up(0.25, 1) == pytest.approx(0.3)


# --- Даты ---


def test_js_weekday_starts_on_sunday():
    assert js_weekday(date(2024, 3, 10)) == 0  # Воскресенье
    assert js_weekday(date(2024, 3, 11)) == 1
    assert js_weekday(date(2024, 3, 16)) == 6  # Суббота


def test_week_window():
    assert start_of_week(date(2024, 3, 13)) == date(2024, 3, 10)
    assert start_of_week(date(2024, 3, 10)) == date(2024, 3, 10)

    window = week_window(date(2024, 3, 16))
    assert window[0] == date(2024, 3, 10)
    assert window[-1] == date(2024, 3, 16)
    assert len(window) == 7


def test_calendar_differences():
    assert calendar_weeks_between(date(2024, 1, 6), date(2024, 1, 7)) == 1
    assert calendar_weeks_between(date(2024, 1, 7), date(2024, 1, 13)) == 0
    assert calendar_months_between(date(2024, 1, 31), date(2024, 3, 1)) == 2
    assert calendar_months_between(date(2023, 11, 1), date(2024, 2, 1)) == 3
    assert calendar_years_between(date(2023, 12, 31), date(2024, 1, 1)) == 1


def test_iter_dates():
    assert list(iter_dates(date(2024, 2, 28), date(2024, 3, 1))) == [
        date(2024, 2, 28),
        date(2024, 2, 29),
        date(2024, 3, 1),
    ]
    assert list(iter_dates(date(2024, 3, 2), date(2024, 3, 1))) == []


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2024-01-05", date(2024, 1, 5)),
        ("2024-01-05T23:00:00.000Z", date(2024, 1, 5)),
        ("garbage", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_iso_date(value: str | None, expected: date | None):
    assert parse_iso_date(value) == expected


def test_get_today_date_falls_back_to_utc():
    assert get_today_date("Not/AZone") == datetime.now(timezone.utc).date()


# --- Иконки ---


def test_icon_legacy_names():
    assert HabitIcon.from_legacy_name("DollarSign") is HabitIcon.DOLLAR_SIGN
    assert HabitIcon.from_legacy_name("Droplet") is HabitIcon.DROPLET
    assert HabitIcon.from_legacy_name("Rocket") is None
    assert HabitIcon.from_legacy_name(None) is None
    assert HabitIcon.BOOK_OPEN.legacy_name == "BookOpen"
