"""Инициализация модуля схем Pydantic."""

# Экспортируем Enum
from src.api.models import HabitIcon, RepeatFrequency

from .base_schema import BaseSchema
from .habit_schema import HabitSchemaCreate, HabitSchemaRead, HabitSchemaUpdate, OccurrenceScope
from .occurrence_schema import (
    DayOccurrencesSchema,
    EffectiveFieldsSchema,
    ResolvedOccurrenceSchema,
    StreakSchemaRead,
    TaskBreakdownCellSchema,
    TaskBreakdownRowSchema,
    TaskBreakdownSchema,
    WeeklyCompletionDaySchema,
    WeeklySummarySchema,
)
from .override_schema import (
    DeletionExceptionSchemaRead,
    FieldOverrideSchemaRead,
    FieldOverrideSchemaUpdate,
)
from .progress_schema import ProgressSchemaRead, ProgressSchemaSet, TimerSchemaAdd
from .storage_schema import StorageImportResultSchema, StorageSnapshotSchema

__all__ = [
    "BaseSchema",
    "HabitSchemaCreate",
    "HabitSchemaRead",
    "HabitSchemaUpdate",
    "OccurrenceScope",
    "FieldOverrideSchemaUpdate",
    "FieldOverrideSchemaRead",
    "DeletionExceptionSchemaRead",
    "ProgressSchemaSet",
    "ProgressSchemaRead",
    "TimerSchemaAdd",
    "EffectiveFieldsSchema",
    "ResolvedOccurrenceSchema",
    "DayOccurrencesSchema",
    "StreakSchemaRead",
    "WeeklySummarySchema",
    "WeeklyCompletionDaySchema",
    "TaskBreakdownCellSchema",
    "TaskBreakdownRowSchema",
    "TaskBreakdownSchema",
    "StorageSnapshotSchema",
    "StorageImportResultSchema",
    "HabitIcon",  # Экспорт Enum
    "RepeatFrequency",  # Экспорт Enum
]
