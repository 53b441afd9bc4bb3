"""Схемы Pydantic для исключений из правила повторения."""

from datetime import date
from typing import Any

from pydantic import Field, field_validator

from src.api.models import HabitIcon

from .base_schema import BaseSchema
from .habit_schema import COLOR_PATTERN, OVERRIDE_FIELDS_NOT_NULL, TIME_PATTERN, _reject_null, _strip_name


class FieldOverrideSchemaUpdate(BaseSchema):
    """
    Поля одного вхождения, которые можно переопределить ("изменить только это").

    Сохраняются только явно переданные поля, остальные берутся из правила.
    """

    name: str | None = Field(None, max_length=255)
    icon: HabitIcon | None = None
    color: str | None = Field(None, pattern=COLOR_PATTERN)
    goal_amount: float | None = Field(None, gt=0)
    goal_unit: str | None = Field(None, min_length=1, max_length=64)
    is_all_day: bool | None = None
    start_time: str | None = Field(None, pattern=TIME_PATTERN)
    end_time: str | None = Field(None, pattern=TIME_PATTERN)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        return _strip_name(value)

    @field_validator(*OVERRIDE_FIELDS_NOT_NULL)
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        return _reject_null(value)

    def changes(self) -> dict[str, Any]:
        """Явно переданные поля в JSON-совместимом виде (Enum -> строка)."""
        return self.model_dump(exclude_unset=True, mode="json")


class FieldOverrideSchemaRead(BaseSchema):
    """Сохраненное переопределение вхождения."""

    habit_id: str
    exception_date: date
    modified_fields: dict[str, Any]


class DeletionExceptionSchemaRead(BaseSchema):
    """Маркер удаленного вхождения."""

    habit_id: str
    exception_date: date
