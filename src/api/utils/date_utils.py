"""Модуль вспомогательных утилит для работы с календарными датами и таймзонами."""

from datetime import date, datetime, timedelta, timezone
from typing import Iterator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.api.core.logging import api_log as log

# Дни в неделе
DAYS_IN_WEEK = 7


def get_today_date(timezone_name: str | None) -> date:
    """
    Вычисляет текущую календарную дату ("сегодня") в заданном часовом поясе.

    Если часовой пояс некорректен, используется UTC.

    Args:
        timezone_name (str | None): Имя часового пояса IANA (например, "Europe/Moscow").

    Returns:
        date: Объект даты (YYYY-MM-DD), соответствующий "сегодня" в часовом поясе.
    """
    # Получаем текущее абсолютное время в UTC
    utc_now = datetime.now(timezone.utc)

    try:
        # Пытаемся создать объект информации о часовом поясе (IANA time zone)
        local_timezone = ZoneInfo(timezone_name or "UTC")

    except (ZoneInfoNotFoundError, ValueError):
        # Если указана несуществующая таймзона (например, опечатка),
        # не роняем запрос, а логируем проблему и откатываемся к UTC
        log.warning(f"Некорректный часовой пояс '{timezone_name}'. Используется UTC по умолчанию.")
        local_timezone = ZoneInfo("UTC")

    # Извлекаем и возвращаем дату "сегодня" в локальном времени
    return utc_now.astimezone(local_timezone).date()


def js_weekday(day: date) -> int:
    """
    Возвращает индекс дня недели, где 0 - воскресенье, 6 - суббота.

    В Python `date.weekday()` считает понедельник нулем, поэтому сдвигаем на один день.
    """
    return (day.weekday() + 1) % DAYS_IN_WEEK


def start_of_week(day: date) -> date:
    """Возвращает воскресенье календарной недели, в которую входит дата."""
    return day - timedelta(days=js_weekday(day))


def week_window(day: date) -> list[date]:
    """Возвращает 7 дат календарной недели (с воскресенья по субботу), содержащей дату."""
    first_day = start_of_week(day)
    return [first_day + timedelta(days=offset) for offset in range(DAYS_IN_WEEK)]


def calendar_weeks_between(start: date, end: date) -> int:
    """
    Количество целых календарных недель между датами (неделя начинается с воскресенья).

    Считается разница между неделями, а не число прошедших дней: суббота и следующее
    за ней воскресенье отличаются на одну неделю.
    """
    return (start_of_week(end) - start_of_week(start)).days // DAYS_IN_WEEK


def calendar_months_between(start: date, end: date) -> int:
    """Количество календарных месяцев между датами (без учета дня месяца)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def calendar_years_between(start: date, end: date) -> int:
    """Количество календарных лет между датами (без учета месяца и дня)."""
    return end.year - start.year


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Перебирает даты от start до end включительно."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def parse_iso_date(value: str | None) -> date | None:
    """
    Разбирает дату из ISO-строки (YYYY-MM-DD или полный ISO datetime).

    Для строк datetime берется только календарная часть, без перевода между часовыми поясами.

    Returns:
        date | None: Дата или None, если строка пустая или некорректная.
    """
    if not value or not isinstance(value, str):
        return None

    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        log.warning(f"Некорректная дата '{value}', значение пропущено.")
        return None
