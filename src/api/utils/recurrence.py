"""
Проверка правила повторения привычки на конкретную дату.

Функции модуля чистые: не обращаются к базе данных и не учитывают исключения
(удаленные вхождения, переопределения). Их накладывает OccurrenceResolver.
"""

from datetime import date
from typing import Protocol, Sequence

from src.api.models import RepeatFrequency

from .date_utils import (
    calendar_months_between,
    calendar_weeks_between,
    calendar_years_between,
    js_weekday,
)


class RecurrenceRule(Protocol):
    """Поля правила повторения (модель Habit или схема с теми же атрибутами)."""

    start_date: date
    end_date: date | None
    repeat_frequency: RepeatFrequency
    repeat_every: int
    repeat_days: Sequence[int]


def is_one_time_rule(rule: RecurrenceRule) -> bool:
    """Однократное событие: ежедневное правило с интервалом 1 и без дней недели."""
    return rule.repeat_frequency == RepeatFrequency.DAY and rule.repeat_every == 1 and not rule.repeat_days


def occurs_on(rule: RecurrenceRule, target_date: date) -> bool:
    """
    Определяет, выпадает ли вхождение правила на указанную дату.

    Порядок проверок:
    1. Однократное событие совпадает только со своей start_date (end_date не учитывается).
    2. Дата должна попадать в интервал [start_date, end_date] включительно,
       end_date = None означает отсутствие верхней границы.
    3. Проверка по частоте повторения:
       - week: день недели выбран в repeat_days и разница в календарных неделях
         (неделя с воскресенья) кратна repeat_every;
       - month: разница в месяцах кратна repeat_every и совпадает число месяца
         (31 января не переносится на 29 февраля);
       - year: разница в годах кратна repeat_every и совпадают месяц и число;
       - day: каждый день в интервале.

    Args:
        rule (RecurrenceRule): Правило повторения.
        target_date (date): Проверяемая календарная дата.

    Returns:
        bool: True, если правило дает вхождение на эту дату.
    """
    start = rule.start_date

    if is_one_time_rule(rule):
        return target_date == start

    if target_date < start:
        return False

    if rule.end_date is not None and target_date > rule.end_date:
        return False

    every = max(rule.repeat_every, 1)
    frequency = rule.repeat_frequency

    if frequency == RepeatFrequency.WEEK:
        if js_weekday(target_date) not in rule.repeat_days:
            return False
        return calendar_weeks_between(start, target_date) % every == 0

    if frequency == RepeatFrequency.MONTH:
        if target_date.day != start.day:
            return False
        return calendar_months_between(start, target_date) % every == 0

    if frequency == RepeatFrequency.YEAR:
        if (target_date.month, target_date.day) != (start.month, start.day):
            return False
        return calendar_years_between(start, target_date) % every == 0

    # Повторяющееся ежедневное правило: каждый день в интервале
    return True


def schedule_label(rule: RecurrenceRule) -> str:
    """
    Краткое описание расписания для сводки по задачам.

    Например: "Once", "3x / week", "2x / 2 weeks", "0x / month".
    """
    units = {
        RepeatFrequency.WEEK: ("week", "weeks"),
        RepeatFrequency.MONTH: ("month", "months"),
        RepeatFrequency.YEAR: ("year", "years"),
    }

    if rule.repeat_frequency not in units:
        return "Once"

    singular, plural = units[rule.repeat_frequency]
    times_per_cycle = len(rule.repeat_days or [])

    if rule.repeat_every == 1:
        return f"{times_per_cycle}x / {singular}"
    return f"{times_per_cycle}x / {rule.repeat_every} {plural}"
