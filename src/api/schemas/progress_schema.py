"""Схемы Pydantic для прогресса привычки."""

from datetime import date

from pydantic import Field

from .base_schema import BaseSchema


class ProgressSchemaSet(BaseSchema):
    """Схема для установки прогресса за день."""

    amount: float = Field(..., ge=0, description="Достигнутое количество в единицах цели")


class TimerSchemaAdd(BaseSchema):
    """Схема для добавления времени таймера к прогрессу."""

    elapsed_seconds: float = Field(..., ge=0, description="Прошедшее время таймера в секундах")


class ProgressSchemaRead(BaseSchema):
    """Схема для чтения прогресса привычки за день."""

    habit_id: str = Field(..., description="ID привычки")
    progress_date: date = Field(..., description="Календарная дата")
    amount: float = Field(..., description="Достигнутое количество (0, если записи нет)")
    goal_amount: float = Field(..., description="Цель привычки на день")
    progress_percent: float = Field(..., description="Процент выполнения цели (не больше 100)")
    is_completed: bool = Field(..., description="Цель на день достигнута")
