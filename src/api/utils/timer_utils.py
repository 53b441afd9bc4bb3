"""Перевод времени таймера в единицы цели привычки."""

from math import floor

HOUR_UNITS = frozenset({"hours", "hrs", "hr"})
MINUTE_UNITS = frozenset({"minutes", "mins", "min"})
SECOND_UNITS = frozenset({"seconds", "secs", "sec"})

TIME_UNITS = HOUR_UNITS | MINUTE_UNITS | SECOND_UNITS


def round_half_up(value: float, digits: int = 0) -> float:
    """Округление половины вверх (2.5 -> 3), в отличие от банковского round()."""
    multiplier = 10**digits
    return floor(value * multiplier + 0.5) / multiplier


def is_time_unit(unit: str | None) -> bool:
    """Проверяет, что единица цели является единицей времени (без учета регистра)."""
    return bool(unit) and unit.strip().lower() in TIME_UNITS


def convert_elapsed_to_unit(seconds: float, unit: str | None) -> float:
    """
    Переводит прошедшие секунды в единицы цели привычки.

    Часы округляются до десятых, минуты до целых. Для неизвестной единицы
    результат считается в минутах.

    Args:
        seconds (float): Прошедшее время в секундах.
        unit (str | None): Единица цели привычки.

    Returns:
        float: Количество в единицах цели.
    """
    normalized = (unit or "").strip().lower()

    if normalized in HOUR_UNITS:
        return round_half_up(seconds / 3600, 1)

    if normalized in SECOND_UNITS:
        return float(seconds)

    # Минуты и все остальные единицы
    return round_half_up(seconds / 60)
