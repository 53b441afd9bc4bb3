"""Схемы Pydantic для вычисленных вхождений и статистики."""

from datetime import date

from pydantic import Field

from src.api.models import HabitIcon

from .base_schema import BaseSchema
from .habit_schema import HabitSchemaRead


class EffectiveFieldsSchema(BaseSchema):
    """Отображаемые поля вхождения после наложения переопределения на правило."""

    name: str
    icon: HabitIcon
    color: str
    goal_amount: float = Field(..., gt=0)
    goal_unit: str
    is_all_day: bool
    start_time: str | None = None
    end_time: str | None = None


class ResolvedOccurrenceSchema(BaseSchema):
    """Вхождение привычки на конкретную дату, готовое к отображению."""

    habit_id: str
    occurrence_date: date
    rule: HabitSchemaRead = Field(..., description="Базовое правило (без переопределений)")
    effective: EffectiveFieldsSchema = Field(..., description="Поля с учетом переопределения")
    progress: float = 0
    progress_percent: float = 0
    is_completed: bool = False
    has_override: bool = False


class DayOccurrencesSchema(BaseSchema):
    """Вхождения одного дня."""

    day: date
    occurrences: list[ResolvedOccurrenceSchema] = Field(default_factory=list)


class StreakSchemaRead(BaseSchema):
    """Текущая серия полностью выполненных дней."""

    today: date
    current_streak: int


class WeeklySummarySchema(BaseSchema):
    """Сводка выполнения за календарную неделю (с воскресенья)."""

    week_start: date
    week_end: date
    total: int = Field(..., description="Всего вхождений за неделю")
    completed: int = Field(..., description="Выполненных вхождений за неделю")
    completion_rate: int = Field(..., description="Процент выполнения (округленный)")
    current_streak: int


class WeeklyCompletionDaySchema(BaseSchema):
    """Данные одного дня графика выполнения (сначала выполненные вхождения)."""

    day: date
    total: int
    completed: int
    occurrences: list[ResolvedOccurrenceSchema] = Field(default_factory=list)


class TaskBreakdownCellSchema(BaseSchema):
    """Ячейка привычки за один день недели."""

    day: date
    occurs: bool
    progress: float = 0
    is_completed: bool = False
    fill_color: str | None = None
    border_color: str | None = None


class TaskBreakdownRowSchema(BaseSchema):
    """Строка сводки по привычке за неделю."""

    habit_id: str
    name: str
    icon: HabitIcon
    color: str
    schedule: str = Field(..., description='Описание расписания ("Once", "3x / week")')
    cells: list[TaskBreakdownCellSchema]


class TaskBreakdownSchema(BaseSchema):
    """Сводка по привычкам, встречающимся на неделе."""

    week_start: date
    week_end: date
    tasks: list[TaskBreakdownRowSchema] = Field(default_factory=list)
