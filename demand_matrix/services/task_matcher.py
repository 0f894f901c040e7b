"""Selection of tasks relevant to one (skill, month) cell."""

from __future__ import annotations

from collections.abc import Iterable

from demand_matrix.models.entities import AssignmentFilter, RecurringTaskDefinition


def _passes_assignment_filter(task: RecurringTaskDefinition, assignment_filter: AssignmentFilter) -> bool:
    if assignment_filter is AssignmentFilter.UNASSIGNED:
        return task.is_unassigned
    if assignment_filter is AssignmentFilter.ASSIGNED:
        return not task.is_unassigned
    return True


def matching_tasks(
    tasks: Iterable[RecurringTaskDefinition],
    skill: str,
    month_key: str,
    assignment_filter: AssignmentFilter = AssignmentFilter.ALL,
) -> list[RecurringTaskDefinition]:
    """Active tasks requiring ``skill`` that pass the assignment filter.

    ``month_key`` is accepted for call-site symmetry with the recurrence
    calculator; date-range exclusion happens there.
    """

    assignment_filter = AssignmentFilter(assignment_filter)
    return [
        task
        for task in tasks
        if task.is_active is True
        and skill in task.required_skills
        and _passes_assignment_filter(task, assignment_filter)
    ]
