"""Схемы Pydantic для модели Habit."""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import Field, field_validator, model_validator

from src.api.core.config import settings
from src.api.models import PALE_COLORS, HabitIcon, RepeatFrequency

from .base_schema import BaseSchema

# Время в формате "ЧЧ:ММ" (с ведущими нулями, чтобы строки сортировались корректно)
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
ALL_WEEKDAYS = tuple(range(7))

# Поля, которые нельзя сбросить явным null при частичном обновлении
OVERRIDE_FIELDS_NOT_NULL = ("name", "icon", "color", "goal_amount", "goal_unit", "is_all_day")
RULE_FIELDS_NOT_NULL = (*OVERRIDE_FIELDS_NOT_NULL, "start_date", "repeat_frequency", "repeat_every", "repeat_days")


class OccurrenceScope(str, Enum):
    """Область изменения или удаления серии вхождений."""

    ALL = "all"  # Вся серия (правило целиком)
    FOLLOWING = "following"  # Это вхождение и все следующие
    THIS = "this"  # Только это вхождение


def _strip_name(value: str | None) -> str | None:
    """Обрезает пробелы в названии и запрещает пустое название."""
    if value is None:
        return value

    stripped = value.strip()
    if not stripped:
        raise ValueError("Название привычки не может быть пустым.")
    return stripped


def _reject_null(value: Any) -> Any:
    """Запрещает явный null для полей, у которых нет значения "не задано"."""
    if value is None:
        raise ValueError("Значение не может быть null.")
    return value


def _normalize_repeat_days(value: list[int] | None) -> list[int] | None:
    """Удаляет дубли и сортирует дни недели, проверяя диапазон 0-6."""
    if value is None:
        return value

    for day in value:
        if not 0 <= day <= 6:
            raise ValueError(f"День недели должен быть в диапазоне 0-6 (0 = воскресенье), получено: {day}.")
    return sorted(set(value))


class HabitSchemaCreate(BaseSchema):
    """
    Схема для создания новой привычки.

    Для привычки на весь день время начала и окончания сбрасывается,
    для привычки со временем обязательно время начала.
    """

    name: str = Field(..., max_length=255, description="Название привычки")
    icon: HabitIcon = Field(HabitIcon.DROPLET, description="Иконка привычки")
    color: str = Field(PALE_COLORS[0], pattern=COLOR_PATTERN, description="Цвет привычки (#RRGGBB)")
    goal_amount: float = Field(..., gt=0, description="Цель на день")
    goal_unit: str = Field(
        default_factory=lambda: settings.DEFAULT_GOAL_UNIT,
        min_length=1,
        max_length=64,
        description="Единица измерения цели",
    )
    is_all_day: bool = Field(False, description="Привычка на весь день")
    start_time: str | None = Field(None, pattern=TIME_PATTERN, description="Время начала (ЧЧ:ММ)")
    end_time: str | None = Field(None, pattern=TIME_PATTERN, description="Время окончания (ЧЧ:ММ)")
    start_date: date = Field(..., description="Дата начала правила")
    end_date: date | None = Field(None, description="Дата окончания правила включительно (None - без ограничения)")
    repeat_frequency: RepeatFrequency = Field(RepeatFrequency.WEEK, description="Единица интервала повторения")
    repeat_every: int = Field(1, ge=1, description="Множитель интервала повторения")
    repeat_days: list[int] = Field(
        default_factory=lambda: list(ALL_WEEKDAYS),
        description="Дни недели 0-6 (0 = воскресенье), по умолчанию все дни",
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        return _strip_name(value)

    @field_validator("repeat_days")
    @classmethod
    def validate_repeat_days(cls, value: list[int] | None) -> list[int] | None:
        return _normalize_repeat_days(value)

    @model_validator(mode="after")
    def check_schedule(self) -> "HabitSchemaCreate":
        """Проверяет согласованность времени и интервала дат."""
        if self.is_all_day:
            self.start_time = None
            self.end_time = None
        elif self.start_time is None:
            raise ValueError("Для привычки не на весь день требуется время начала (start_time).")

        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("Дата окончания (end_date) не может быть раньше даты начала (start_date).")

        return self


class HabitSchemaUpdate(BaseSchema):
    """
    Схема для обновления существующей привычки.
    Все поля опциональны.
    """

    name: str | None = Field(None, max_length=255, description="Новое название привычки")
    icon: HabitIcon | None = Field(None, description="Новая иконка")
    color: str | None = Field(None, pattern=COLOR_PATTERN, description="Новый цвет (#RRGGBB)")
    goal_amount: float | None = Field(None, gt=0, description="Новая цель на день")
    goal_unit: str | None = Field(None, min_length=1, max_length=64, description="Новая единица измерения цели")
    is_all_day: bool | None = Field(None, description="Привычка на весь день")
    start_time: str | None = Field(None, pattern=TIME_PATTERN, description="Новое время начала (ЧЧ:ММ)")
    end_time: str | None = Field(None, pattern=TIME_PATTERN, description="Новое время окончания (ЧЧ:ММ)")
    start_date: date | None = Field(None, description="Новая дата начала правила")
    end_date: date | None = Field(None, description="Новая дата окончания (явный null снимает ограничение)")
    repeat_frequency: RepeatFrequency | None = Field(None, description="Новая единица интервала повторения")
    repeat_every: int | None = Field(None, ge=1, description="Новый множитель интервала")
    repeat_days: list[int] | None = Field(None, description="Новые дни недели 0-6")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        return _strip_name(value)

    @field_validator("repeat_days")
    @classmethod
    def validate_repeat_days(cls, value: list[int] | None) -> list[int] | None:
        return _normalize_repeat_days(value)

    @field_validator(*RULE_FIELDS_NOT_NULL)
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        # Валидатор вызывается только для явно переданных полей
        return _reject_null(value)

    def changes(self) -> dict[str, Any]:
        """Возвращает только явно переданные поля (для частичного обновления)."""
        return self.model_dump(exclude_unset=True)


class HabitSchemaRead(BaseSchema):
    """Схема для чтения данных привычки (ответа API)."""

    id: str = Field(..., description="ID привычки")
    name: str
    icon: HabitIcon
    color: str
    goal_amount: float
    goal_unit: str
    is_all_day: bool
    start_time: str | None = None
    end_time: str | None = None
    start_date: date
    end_date: date | None = None
    repeat_frequency: RepeatFrequency
    repeat_every: int
    repeat_days: list[int]
    is_one_time: bool = Field(..., description="Однократное событие (только в start_date)")
    created_at: datetime = Field(..., description="Время создания привычки")
    updated_at: datetime = Field(..., description="Время последнего обновления привычки")
