"""Construction of per-(skill, month) demand data points."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence

from demand_matrix.core.errors import TransformCancelled
from demand_matrix.models.entities import (
    UNASSIGNED,
    AssignedStaff,
    AssignmentFilter,
    ClientTaskDemand,
    DemandDataPoint,
    ForecastPeriod,
    MonthInfo,
    RecurrencePattern,
    RecurringTaskDefinition,
    StaffAssignment,
    StaffRecord,
)
from demand_matrix.services.months import month_label, normalize_month_key
from demand_matrix.services.recurrence import RecurrenceCalculator
from demand_matrix.services.task_matcher import matching_tasks

logger = logging.getLogger(__name__)


def extract_months(
    periods: Iterable[ForecastPeriod],
    *,
    log: logging.Logger | None = None,
) -> tuple[MonthInfo, ...]:
    log = log or logger
    keys: set[str] = set()
    for period in periods:
        try:
            keys.add(normalize_month_key(period.period))
        except ValueError:
            log.warning("Skipping forecast period with invalid month key %r.", period.period)
    return tuple(MonthInfo(key=key, label=month_label(key)) for key in sorted(keys))


def extract_skills(periods: Iterable[ForecastPeriod]) -> tuple[str, ...]:
    skills = {entry.skill for period in periods for entry in period.demand if entry.skill}
    return tuple(sorted(skills))


def resolve_available_staff(
    tasks: Iterable[RecurringTaskDefinition],
    staff: Iterable[StaffRecord] | None = None,
) -> tuple[StaffRecord, ...]:
    """Staff roster for the matrix.

    An explicit roster wins. Without one, staff are derived from the tasks'
    preferred staff so every assigned task resolves to a known member.
    """

    if staff is not None:
        roster: dict[str, StaffRecord] = {}
        for record in staff:
            roster.setdefault(record.id, record)
        return tuple(roster.values())

    names: dict[str, str] = {}
    skills: dict[str, set[str]] = {}
    for task in tasks:
        if task.is_unassigned:
            continue
        staff_id = task.preferred_staff_id
        if task.preferred_staff_name and staff_id not in names:
            names[staff_id] = task.preferred_staff_name
        names.setdefault(staff_id, f"Staff {_short_id(staff_id)}")
        skills.setdefault(staff_id, set()).update(task.required_skills)
    return tuple(
        StaffRecord(id=staff_id, display_name=name, assigned_skills=frozenset(skills[staff_id]))
        for staff_id, name in names.items()
    )


def _short_id(value: object) -> str:
    return str(value)[:8]


def _client_name(task: RecurringTaskDefinition) -> str:
    return task.client_name or f"Client {_short_id(task.client_id)}"


def _assignment(task: RecurringTaskDefinition, staff_names: dict[str, str]) -> StaffAssignment:
    if task.is_unassigned:
        return UNASSIGNED
    staff_id = task.preferred_staff_id
    name = staff_names.get(staff_id) or task.preferred_staff_name or f"Unknown Staff ({_short_id(staff_id)})"
    return AssignedStaff(staff_id=staff_id, staff_name=name)


class DataPointBuilder:
    """Walks the month x skill cross-product in month batches."""

    def __init__(
        self,
        calculator: RecurrenceCalculator | None = None,
        *,
        batch_size: int = 6,
        assignment_filter: AssignmentFilter = AssignmentFilter.ALL,
        debug_mode: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1.")
        self.logger = logger or logging.getLogger(__name__)
        self.calculator = calculator or RecurrenceCalculator(logger=self.logger)
        self.batch_size = batch_size
        self.assignment_filter = AssignmentFilter(assignment_filter)
        self.debug_mode = debug_mode

    async def build(
        self,
        tasks: Sequence[RecurringTaskDefinition],
        months: Sequence[MonthInfo],
        skills: Sequence[str],
        available_staff: Iterable[StaffRecord] = (),
        cancel_event: asyncio.Event | None = None,
    ) -> tuple[DemandDataPoint, ...]:
        staff_names = {record.id: record.display_name for record in available_staff}
        points: list[DemandDataPoint] = []

        for batch_start in range(0, len(months), self.batch_size):
            if cancel_event is not None and cancel_event.is_set():
                raise TransformCancelled(
                    f"Demand matrix build cancelled after {batch_start} of {len(months)} months."
                )
            batch = months[batch_start : batch_start + self.batch_size]
            for month in batch:
                for skill in skills:
                    point = self.build_cell(tasks, month, skill, staff_names)
                    if point is not None:
                        points.append(point)
            # Let other coroutines run between batches.
            await asyncio.sleep(0)

        return tuple(points)

    def build_cell(
        self,
        tasks: Sequence[RecurringTaskDefinition],
        month: MonthInfo,
        skill: str,
        staff_names: dict[str, str],
    ) -> DemandDataPoint | None:
        demand_hours = 0.0
        assigned_hours = 0.0
        unassigned_hours = 0.0
        client_ids: set[str] = set()
        breakdown: list[ClientTaskDemand] = []

        for task in matching_tasks(tasks, skill, month.key, self.assignment_filter):
            try:
                line = self._task_demand(task, month, skill, staff_names)
            except Exception:
                self.logger.exception(
                    "Failed to calculate demand for task %s in %s; counting 0.", task.id, month.key
                )
                continue
            if line is None:
                continue

            if line.is_unassigned:
                unassigned_hours += line.monthly_hours
            else:
                assigned_hours += line.monthly_hours
            demand_hours += line.monthly_hours
            client_ids.add(line.client_id)
            breakdown.append(line)

        if demand_hours <= 0 and not breakdown:
            return None

        if self.debug_mode:
            self.logger.debug(
                "Cell %s/%s: %.2fh from %d tasks (%.2fh unassigned).",
                skill,
                month.key,
                demand_hours,
                len(breakdown),
                unassigned_hours,
            )

        return DemandDataPoint(
            skill_type=skill,
            month=month.key,
            month_label=month.label,
            demand_hours=demand_hours,
            task_count=len(breakdown),
            client_count=len(client_ids),
            task_breakdown=tuple(breakdown),
            assigned_hours=assigned_hours,
            unassigned_hours=unassigned_hours,
        )

    def _task_demand(
        self,
        task: RecurringTaskDefinition,
        month: MonthInfo,
        skill: str,
        staff_names: dict[str, str],
    ) -> ClientTaskDemand | None:
        if not task.client_id:
            raise ValueError(f"Task {task.id!r} has no client_id.")
        hours = self.calculator.monthly_hours(task, month.key)
        if hours <= 0:
            return None
        return ClientTaskDemand(
            task_id=task.id,
            task_name=task.name or f"Task {_short_id(task.id)}",
            client_id=task.client_id,
            client_name=_client_name(task),
            skill_type=skill,
            estimated_hours=float(task.estimated_hours),
            monthly_hours=hours,
            recurrence_pattern=RecurrencePattern(
                type=task.recurrence_type,
                interval=task.recurrence_interval,
            ),
            assignment=_assignment(task, staff_names),
        )
