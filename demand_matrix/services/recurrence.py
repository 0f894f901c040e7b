"""Calendar-accurate conversion of recurring tasks into monthly hours."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta

from demand_matrix.core.errors import RecurrenceCalculationError
from demand_matrix.models.entities import RecurrenceType, RecurringTaskDefinition
from demand_matrix.services.months import clamp_day, month_bounds, month_index

PERIOD_MONTHS: dict[RecurrenceType, int] = {
    RecurrenceType.MONTHLY: 1,
    RecurrenceType.QUARTERLY: 3,
    RecurrenceType.ANNUALLY: 12,
}


@dataclass(frozen=True, slots=True)
class MonthlyDemand:
    task_id: str
    occurrences: float
    hours: float


class RecurrenceCalculator:
    """Hours a recurring task contributes to one calendar month.

    The month is clipped to the task's active range ``[due_date, end_date]``.
    Weekly and daily tasks count actual calendar days in that window and
    divide by the interval. Monthly, quarterly and annual tasks recur on a
    cadence anchored on the due-date month and land on the due day, clamped to
    the month length. Custom tasks recur every ``interval`` days from the due
    date.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    def monthly_hours(self, task: RecurringTaskDefinition, month_key: str) -> float:
        return self.monthly_demand(task, month_key).hours

    def monthly_demand(self, task: RecurringTaskDefinition, month_key: str) -> MonthlyDemand:
        self._validate(task)
        try:
            month_start, month_end = month_bounds(month_key)
        except ValueError as exc:
            raise RecurrenceCalculationError(task.id, str(exc)) from exc

        window = self._active_window(task, month_start, month_end)
        if window is None:
            return MonthlyDemand(task_id=task.id, occurrences=0.0, hours=0.0)

        recurrence = RecurrenceType.parse(task.recurrence_type)
        if recurrence is None:
            self.logger.warning(
                "Unknown recurrence type %r for task %s; using estimated hours.",
                task.recurrence_type,
                task.id,
            )
            return MonthlyDemand(task_id=task.id, occurrences=1.0, hours=float(task.estimated_hours))

        occurrences = self._occurrences(task, recurrence, month_start, window)
        return MonthlyDemand(
            task_id=task.id,
            occurrences=occurrences,
            hours=float(task.estimated_hours) * occurrences,
        )

    @staticmethod
    def _validate(task: RecurringTaskDefinition) -> None:
        hours = task.estimated_hours
        if isinstance(hours, bool) or not isinstance(hours, (int, float)):
            raise RecurrenceCalculationError(task.id, f"estimated_hours must be numeric, got {hours!r}.")
        if not math.isfinite(hours) or hours <= 0:
            raise RecurrenceCalculationError(task.id, f"estimated_hours must be positive, got {hours!r}.")
        interval = task.recurrence_interval
        if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
            raise RecurrenceCalculationError(
                task.id, f"recurrence_interval must be a positive integer, got {interval!r}."
            )
        if not isinstance(task.due_date, date):
            raise RecurrenceCalculationError(task.id, "due_date is required.")

    @staticmethod
    def _active_window(
        task: RecurringTaskDefinition,
        month_start: date,
        month_end: date,
    ) -> tuple[date, date] | None:
        start = max(month_start, task.due_date)
        end = month_end if task.end_date is None else min(month_end, task.end_date)
        if start > end:
            return None
        return start, end

    def _occurrences(
        self,
        task: RecurringTaskDefinition,
        recurrence: RecurrenceType,
        month_start: date,
        window: tuple[date, date],
    ) -> float:
        start, end = window
        interval = task.recurrence_interval

        if recurrence is RecurrenceType.DAILY:
            return ((end - start).days + 1) / interval

        if recurrence is RecurrenceType.WEEKLY:
            weekdays = self._weekdays(task)
            matching = sum(
                1
                for offset in range((end - start).days + 1)
                if (start + timedelta(days=offset)).weekday() in weekdays
            )
            return matching / interval

        if recurrence is RecurrenceType.CUSTOM:
            return float(self._custom_occurrences(task.due_date, interval, start, end))

        return self._periodic_occurrence(task, recurrence, month_start, window)

    @staticmethod
    def _weekdays(task: RecurringTaskDefinition) -> frozenset[int]:
        if not task.weekdays:
            return frozenset({task.due_date.weekday()})
        invalid = [day for day in task.weekdays if not isinstance(day, int) or not 0 <= day <= 6]
        if invalid:
            raise RecurrenceCalculationError(task.id, f"weekdays must be within 0-6, got {invalid!r}.")
        return frozenset(task.weekdays)

    @staticmethod
    def _custom_occurrences(anchor: date, step_days: int, start: date, end: date) -> int:
        offset = (start - anchor).days
        first_step = -(-offset // step_days) if offset > 0 else 0
        first = anchor + timedelta(days=first_step * step_days)
        if first > end:
            return 0
        return (end - first).days // step_days + 1

    def _periodic_occurrence(
        self,
        task: RecurringTaskDefinition,
        recurrence: RecurrenceType,
        month_start: date,
        window: tuple[date, date],
    ) -> float:
        period = PERIOD_MONTHS[recurrence] * task.recurrence_interval
        anchor = date(task.due_date.year, task.due_date.month, 1)
        if recurrence is RecurrenceType.ANNUALLY and task.month_of_year is not None:
            if not 1 <= task.month_of_year <= 12:
                raise RecurrenceCalculationError(
                    task.id, f"month_of_year must be within 1-12, got {task.month_of_year!r}."
                )
            if task.month_of_year != task.due_date.month:
                self.logger.debug(
                    "Annual task %s anchored on month_of_year=%s instead of due date month %s.",
                    task.id,
                    task.month_of_year,
                    task.due_date.month,
                )
            anchor = date(task.due_date.year, task.month_of_year, 1)

        elapsed = month_index(month_start) - month_index(anchor)
        if elapsed < 0 or elapsed % period:
            return 0.0

        occurrence = clamp_day(month_start.year, month_start.month, task.due_date.day)
        start, end = window
        return 1.0 if start <= occurrence <= end else 0.0
