"""
Вычисление вхождений привычек и статистики выполнения.

OccurrenceResolver - чистый вычислитель над заранее загруженными данными
(привычки, удаленные вхождения, переопределения, прогресс).
OccurrenceService загружает эти данные одним набором запросов на интервал дат
и отдает результат всем поверхностям чтения: день, неделя, статистика.
"""

from datetime import date, timedelta
from typing import Any, Sequence

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.config import settings
from src.api.core.logging import api_log as log
from src.api.models import Habit
from src.api.repositories import (
    DeletionExceptionRepository,
    FieldOverrideRepository,
    HabitRepository,
    ProgressRepository,
)
from src.api.schemas import (
    DayOccurrencesSchema,
    EffectiveFieldsSchema,
    HabitSchemaCreate,
    HabitSchemaRead,
    HabitSchemaUpdate,
    ResolvedOccurrenceSchema,
    TaskBreakdownCellSchema,
    TaskBreakdownRowSchema,
    TaskBreakdownSchema,
    WeeklyCompletionDaySchema,
    WeeklySummarySchema,
)
from src.api.utils.color_utils import darken_color
from src.api.utils.date_utils import iter_dates, week_window
from src.api.utils.recurrence import occurs_on, schedule_label
from src.api.utils.timer_utils import round_half_up

from .base_service import BaseService
from .exception_service import apply_override
from .progress_service import calculate_progress_percent

# Затемнение рамки выполненной ячейки
COMPLETED_BORDER_DARKEN = 0.3


class OccurrenceResolver:
    """
    Вычисляет вхождения привычек по загруженным данным.

    Порядок разрешения для пары (привычка, дата):
    правило повторения -> маркер удаления -> переопределение полей -> прогресс.
    """

    def __init__(
        self,
        habits: Sequence[Habit],
        deleted: set[tuple[str, date]] | None = None,
        overrides: dict[tuple[str, date], dict[str, Any]] | None = None,
        progress: dict[tuple[str, date], float] | None = None,
    ):
        self.habits = list(habits)
        self.deleted = deleted or set()
        self.overrides = overrides or {}
        self.progress = progress or {}
        self._rules: dict[str, HabitSchemaRead] = {}

    def occurs(self, habit: Habit, day: date) -> bool:
        """Вхождение есть, если правило совпадает и вхождение не удалено."""
        return occurs_on(habit, day) and (habit.id, day) not in self.deleted

    def habits_on(self, day: date) -> list[Habit]:
        """Привычки, у которых есть вхождение на дату."""
        return [habit for habit in self.habits if self.occurs(habit, day)]

    def effective_fields(self, habit: Habit, day: date) -> tuple[EffectiveFieldsSchema, bool]:
        """
        Поля вхождения с учетом переопределения.

        Переопределение побеждает поле за полем. Некорректное переопределение
        игнорируется с предупреждением.

        Returns:
            tuple[EffectiveFieldsSchema, bool]: Поля и признак наличия переопределения.
        """
        override = self.overrides.get((habit.id, day))

        if override:
            try:
                return apply_override(habit, override), True
            except ValidationError:
                log.warning(f"Некорректное переопределение привычки ID: {habit.id} за {day}, оно не применено.")

        return apply_override(habit, None), False

    def effective_goal(self, habit: Habit, day: date) -> float:
        """Цель на день с учетом переопределения, по тем же правилам, что и effective_fields."""
        if not self.overrides.get((habit.id, day)):
            return habit.goal_amount
        return self.effective_fields(habit, day)[0].goal_amount

    def progress_on(self, habit_id: str, day: date) -> float:
        return self.progress.get((habit_id, day), 0.0)

    def is_completed(self, habit: Habit, day: date) -> bool:
        return self.progress_on(habit.id, day) >= self.effective_goal(habit, day)

    def _rule(self, habit: Habit) -> HabitSchemaRead:
        if habit.id not in self._rules:
            self._rules[habit.id] = HabitSchemaRead.model_validate(habit)
        return self._rules[habit.id]

    def resolve(self, habit: Habit, day: date) -> ResolvedOccurrenceSchema:
        """Собирает вхождение привычки на дату (без проверки правила)."""
        effective, has_override = self.effective_fields(habit, day)
        progress = self.progress_on(habit.id, day)

        return ResolvedOccurrenceSchema(
            habit_id=habit.id,
            occurrence_date=day,
            rule=self._rule(habit),
            effective=effective,
            progress=progress,
            progress_percent=calculate_progress_percent(progress, effective.goal_amount),
            is_completed=progress >= effective.goal_amount,
            has_override=has_override,
        )

    def resolve_on(self, day: date) -> list[ResolvedOccurrenceSchema]:
        """
        Вхождения на дату в порядке отображения.

        Сначала привычки на весь день (по названию), затем по времени начала
        (строки "ЧЧ:ММ" сравниваются лексически), при равном времени - по названию.
        """
        occurrences = [self.resolve(habit, day) for habit in self.habits_on(day)]

        return sorted(occurrences, key=self._sort_key)

    @staticmethod
    def _sort_key(occurrence: ResolvedOccurrenceSchema) -> tuple[int, str, str]:
        effective = occurrence.effective
        if effective.is_all_day:
            return 0, "", effective.name
        return 1, effective.start_time or "", effective.name

    def day_status(self, day: date) -> tuple[int, int]:
        """Количество вхождений и выполненных вхождений за день."""
        habits = self.habits_on(day)
        completed = sum(1 for habit in habits if self.is_completed(habit, day))
        return len(habits), completed

    def current_streak(self, today: date, lower_bound: date) -> int:
        """
        Серия полностью выполненных дней, заканчивающаяся сегодня.

        День засчитывается, если в нем есть вхождения и все они выполнены.
        Невыполненный сегодняшний день серию не прерывает (день еще идет), но и не засчитывается.
        День без вхождений пропускается. Любой другой невыполненный день прерывает серию.

        Args:
            today (date): Текущая дата.
            lower_bound (date): Самая ранняя проверяемая дата.

        Returns:
            int: Длина серии в днях.
        """
        streak = 0
        day = today

        while day >= lower_bound:
            total, completed = self.day_status(day)

            if total and completed == total:
                streak += 1
            elif total and day != today:
                break

            day -= timedelta(days=1)

        return streak


class OccurrenceService(BaseService[Habit, HabitRepository, HabitSchemaCreate, HabitSchemaUpdate]):
    """
    Сервис чтения вхождений привычек и статистики.

    Данные загружаются пакетно на нужный интервал дат, вычисления выполняет OccurrenceResolver.
    """

    def __init__(
        self,
        habit_repository: HabitRepository,
        progress_repository: ProgressRepository,
        deletion_repository: DeletionExceptionRepository,
        override_repository: FieldOverrideRepository,
    ):
        """
        Инициализирует сервис вхождений.

        Args:
            habit_repository (HabitRepository): Репозиторий привычек.
            progress_repository (ProgressRepository): Репозиторий прогресса.
            deletion_repository (DeletionExceptionRepository): Репозиторий маркеров удаления.
            override_repository (FieldOverrideRepository): Репозиторий переопределений.
        """
        super().__init__(repository=habit_repository)
        self.progress_repository = progress_repository
        self.deletion_repository = deletion_repository
        self.override_repository = override_repository

    async def load_resolver(self, db_session: AsyncSession, *, start: date, end: date) -> OccurrenceResolver:
        """
        Загружает все данные для вычисления вхождений за интервал [start, end].

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            start (date): Начало интервала включительно.
            end (date): Конец интервала включительно.

        Returns:
            OccurrenceResolver: Вычислитель над загруженными данными.
        """
        habits = await self.repository.get_all_habits(db_session)
        deleted = await self.deletion_repository.get_deleted_pairs(db_session, start=start, end=end)
        overrides = await self.override_repository.get_overrides_map(db_session, start=start, end=end)
        progress = await self.progress_repository.get_progress_map(db_session, start=start, end=end)

        log.debug(
            f"Данные для вхождений {start}..{end}: привычек {len(habits)}, удалено {len(deleted)}, "
            f"переопределений {len(overrides)}, записей прогресса {len(progress)}."
        )
        return OccurrenceResolver(habits, deleted=deleted, overrides=overrides, progress=progress)

    async def occurrences_on(self, db_session: AsyncSession, *, day: date) -> list[ResolvedOccurrenceSchema]:
        """Вхождения привычек на дату."""
        resolver = await self.load_resolver(db_session, start=day, end=day)
        return resolver.resolve_on(day)

    async def occurrences_in_week(self, db_session: AsyncSession, *, day: date) -> list[DayOccurrencesSchema]:
        """Вхождения по дням календарной недели (с воскресенья), содержащей дату."""
        days = week_window(day)
        resolver = await self.load_resolver(db_session, start=days[0], end=days[-1])

        return [DayOccurrencesSchema(day=week_day, occurrences=resolver.resolve_on(week_day)) for week_day in days]

    async def current_streak(self, db_session: AsyncSession, *, today: date) -> int:
        """
        Текущая серия полностью выполненных дней.

        Обратный проход ограничен STREAK_MAX_LOOKBACK_DAYS и самой ранней датой начала привычек.
        """
        earliest_start = await self.repository.get_earliest_start_date(db_session)

        if earliest_start is None or earliest_start > today:
            return 0

        lookback_start = today - timedelta(days=settings.STREAK_MAX_LOOKBACK_DAYS - 1)
        lower_bound = max(earliest_start, lookback_start)

        resolver = await self.load_resolver(db_session, start=lower_bound, end=today)
        streak = resolver.current_streak(today, lower_bound)

        log.debug(f"Текущая серия на {today}: {streak} дн. (проверено с {lower_bound}).")
        return streak

    async def weekly_summary(self, db_session: AsyncSession, *, day: date, today: date) -> WeeklySummarySchema:
        """
        Сводка выполнения за неделю, содержащую дату.

        Процент выполнения округляется до целого, для недели без вхождений равен 0.
        """
        days = week_window(day)
        resolver = await self.load_resolver(db_session, start=days[0], end=days[-1])

        total = 0
        completed = 0
        for week_day in days:
            day_total, day_completed = resolver.day_status(week_day)
            total += day_total
            completed += day_completed

        completion_rate = int(round_half_up(completed / total * 100)) if total else 0

        return WeeklySummarySchema(
            week_start=days[0],
            week_end=days[-1],
            total=total,
            completed=completed,
            completion_rate=completion_rate,
            current_streak=await self.current_streak(db_session, today=today),
        )

    async def weekly_completion(self, db_session: AsyncSession, *, day: date) -> list[WeeklyCompletionDaySchema]:
        """Данные графика выполнения за неделю: по каждому дню сначала выполненные вхождения."""
        days = week_window(day)
        resolver = await self.load_resolver(db_session, start=days[0], end=days[-1])

        result = []
        for week_day in days:
            occurrences = resolver.resolve_on(week_day)
            # sorted стабилен: внутри групп сохраняется порядок отображения
            occurrences = sorted(occurrences, key=lambda occurrence: not occurrence.is_completed)
            result.append(
                WeeklyCompletionDaySchema(
                    day=week_day,
                    total=len(occurrences),
                    completed=sum(1 for occurrence in occurrences if occurrence.is_completed),
                    occurrences=occurrences,
                )
            )

        return result

    async def task_breakdown(self, db_session: AsyncSession, *, day: date) -> TaskBreakdownSchema:
        """
        Сводка по привычкам, у которых есть хотя бы одно вхождение на неделе.

        Для каждой привычки - описание расписания и ячейки по дням недели.
        Выполненная ячейка окрашивается цветом вхождения, рамка - тем же цветом, затемненным на 30%.
        """
        days = week_window(day)
        resolver = await self.load_resolver(db_session, start=days[0], end=days[-1])

        # Привычки в порядке первого появления на неделе
        week_habits: dict[str, Habit] = {}
        for week_day in days:
            for habit in resolver.habits_on(week_day):
                week_habits.setdefault(habit.id, habit)

        tasks = []
        for habit in week_habits.values():
            cells = []
            for week_day in days:
                if not resolver.occurs(habit, week_day):
                    cells.append(TaskBreakdownCellSchema(day=week_day, occurs=False))
                    continue

                occurrence = resolver.resolve(habit, week_day)
                color = occurrence.effective.color
                cells.append(
                    TaskBreakdownCellSchema(
                        day=week_day,
                        occurs=True,
                        progress=occurrence.progress,
                        is_completed=occurrence.is_completed,
                        fill_color=color if occurrence.is_completed else None,
                        border_color=darken_color(color, COMPLETED_BORDER_DARKEN) if occurrence.is_completed else None,
                    )
                )

            tasks.append(
                TaskBreakdownRowSchema(
                    habit_id=habit.id,
                    name=habit.name,
                    icon=habit.icon,
                    color=habit.color,
                    schedule=schedule_label(habit),
                    cells=cells,
                )
            )

        return TaskBreakdownSchema(week_start=days[0], week_end=days[-1], tasks=tasks)

    async def days_in_range(self, db_session: AsyncSession, *, start: date, end: date) -> list[DayOccurrencesSchema]:
        """Вхождения по дням произвольного интервала (для календаря)."""
        resolver = await self.load_resolver(db_session, start=start, end=end)
        return [DayOccurrencesSchema(day=day, occurrences=resolver.resolve_on(day)) for day in iter_dates(start, end)]
