from .base import Base, metadata_obj
from .habit import PALE_COLORS, Habit, HabitIcon, RepeatFrequency
from .occurrence_exception import OVERRIDABLE_FIELDS, DeletionException, FieldOverrideException
from .progress import ProgressRecord

__all__ = [
    "metadata_obj",
    "Base",
    "Habit",
    "HabitIcon",
    "RepeatFrequency",
    "PALE_COLORS",
    "ProgressRecord",
    "DeletionException",
    "FieldOverrideException",
    "OVERRIDABLE_FIELDS",
]
