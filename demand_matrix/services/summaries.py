"""Summaries derived from revenue-enhanced data points.

Every builder is a pure fold: accumulators are local and the result is a new
read-only mapping or record.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from demand_matrix.models.entities import (
    UNASSIGNED_STAFF_KEY,
    UNASSIGNED_STAFF_NAME,
    AssignedStaff,
    ClientMaps,
    DemandDataPoint,
    RevenueTotals,
    SkillSummary,
    StaffRecord,
    StaffSummary,
    UnassignedSummary,
    frozen_map,
)


def build_skill_summary(data_points: Iterable[DemandDataPoint]) -> Mapping[str, SkillSummary]:
    totals: dict[str, dict[str, float]] = {}
    clients: dict[str, set[str]] = {}

    for point in data_points:
        bucket = totals.setdefault(
            point.skill_type,
            {
                "total_hours": 0.0,
                "task_count": 0,
                "suggested": 0.0,
                "expected": 0.0,
                "expected_less_suggested": 0.0,
                "assigned_hours": 0.0,
                "unassigned_hours": 0.0,
                "assigned_tasks": 0,
                "unassigned_tasks": 0,
            },
        )
        bucket["total_hours"] += point.demand_hours
        bucket["task_count"] += point.task_count
        bucket["suggested"] += point.suggested_revenue
        bucket["expected"] += point.expected_revenue
        bucket["expected_less_suggested"] += point.expected_less_suggested
        bucket["assigned_hours"] += point.assigned_hours
        bucket["unassigned_hours"] += point.unassigned_hours
        skill_clients = clients.setdefault(point.skill_type, set())
        for line in point.task_breakdown:
            skill_clients.add(line.client_id)
            if line.is_unassigned:
                bucket["unassigned_tasks"] += 1
            else:
                bucket["assigned_tasks"] += 1

    return frozen_map(
        (
            skill,
            SkillSummary(
                skill=skill,
                total_hours=bucket["total_hours"],
                task_count=int(bucket["task_count"]),
                client_count=len(clients[skill]),
                total_suggested_revenue=bucket["suggested"],
                total_expected_revenue=bucket["expected"],
                total_expected_less_suggested=bucket["expected_less_suggested"],
                average_fee_rate=bucket["suggested"] / bucket["total_hours"] if bucket["total_hours"] > 0 else 0.0,
                assigned_hours=bucket["assigned_hours"],
                unassigned_hours=bucket["unassigned_hours"],
                assigned_tasks=int(bucket["assigned_tasks"]),
                unassigned_tasks=int(bucket["unassigned_tasks"]),
            ),
        )
        for skill, bucket in totals.items()
    )


def build_staff_summary(
    data_points: Iterable[DemandDataPoint],
    available_staff: Sequence[StaffRecord] = (),
) -> Mapping[str, StaffSummary]:
    """Hours per staff member, always including the ``UNASSIGNED`` bucket.

    Roster members without demand are listed with zero hours so callers can
    rely on a stable key set.
    """

    names: dict[str, str] = {UNASSIGNED_STAFF_KEY: UNASSIGNED_STAFF_NAME}
    for record in available_staff:
        names.setdefault(record.id, record.display_name)
    hours: dict[str, float] = {key: 0.0 for key in names}
    tasks: dict[str, int] = {key: 0 for key in names}
    skill_hours: dict[str, dict[str, float]] = {key: {} for key in names}
    client_hours: dict[str, dict[str, float]] = {key: {} for key in names}

    for point in data_points:
        for line in point.task_breakdown:
            key = line.staff_key
            if key not in names:
                names[key] = (
                    line.assignment.staff_name if isinstance(line.assignment, AssignedStaff) else key
                )
                hours[key] = 0.0
                tasks[key] = 0
                skill_hours[key] = {}
                client_hours[key] = {}
            hours[key] += line.monthly_hours
            tasks[key] += 1
            skill_hours[key][line.skill_type] = skill_hours[key].get(line.skill_type, 0.0) + line.monthly_hours
            client_hours[key][line.client_id] = client_hours[key].get(line.client_id, 0.0) + line.monthly_hours

    return frozen_map(
        (
            key,
            StaffSummary(
                staff_id=key,
                staff_name=name,
                total_hours=hours[key],
                total_tasks=tasks[key],
                skill_breakdown=frozen_map(skill_hours[key]),
                client_breakdown=frozen_map(client_hours[key]),
                is_unassigned=key == UNASSIGNED_STAFF_KEY,
            ),
        )
        for key, name in names.items()
    )


def build_client_maps(
    data_points: Iterable[DemandDataPoint],
    client_monthly_revenue: Mapping[str, float] | None = None,
) -> ClientMaps:
    """Per-client hours and revenue keyed by client id.

    Expected revenue, hourly rate and the expected-less-suggested gap are only
    filled for clients whose expected monthly revenue is known; expected
    revenue covers the months in which the client has demand.
    """

    client_monthly_revenue = client_monthly_revenue or {}
    totals: dict[str, float] = {}
    suggested: dict[str, float] = {}
    names: dict[str, str] = {}
    months: dict[str, set[str]] = {}

    for point in data_points:
        for line in point.task_breakdown:
            totals[line.client_id] = totals.get(line.client_id, 0.0) + line.monthly_hours
            suggested[line.client_id] = suggested.get(line.client_id, 0.0) + line.suggested_revenue
            names.setdefault(line.client_id, line.client_name)
            months.setdefault(line.client_id, set()).add(point.month)

    revenue: dict[str, float] = {}
    hourly_rates: dict[str, float] = {}
    expected_less_suggested: dict[str, float] = {}
    for client_id, client_hours in totals.items():
        monthly = client_monthly_revenue.get(client_id)
        if monthly is None:
            continue
        expected = float(monthly) * len(months[client_id])
        revenue[client_id] = expected
        hourly_rates[client_id] = expected / client_hours if client_hours > 0 else 0.0
        expected_less_suggested[client_id] = expected - suggested[client_id]

    return ClientMaps(
        client_totals=frozen_map(totals),
        client_suggested_revenue=frozen_map(suggested),
        client_revenue=frozen_map(revenue),
        client_hourly_rates=frozen_map(hourly_rates),
        client_expected_less_suggested=frozen_map(expected_less_suggested),
        client_names=frozen_map(names),
    )


def calculate_revenue_totals(data_points: Iterable[DemandDataPoint]) -> RevenueTotals:
    # Points whose expected revenue lookup failed contribute 0 expected revenue,
    # so the difference is taken over the totals rather than summed per point.
    total_suggested = 0.0
    total_expected = 0.0
    for point in data_points:
        total_suggested += point.suggested_revenue
        total_expected += point.expected_revenue
    return RevenueTotals(
        total_suggested_revenue=total_suggested,
        total_expected_revenue=total_expected,
        total_expected_less_suggested=total_expected - total_suggested,
    )


def build_unassigned_summary(data_points: Iterable[DemandDataPoint]) -> UnassignedSummary:
    total_tasks = 0
    total_hours = 0.0
    by_skill: dict[str, float] = {}
    for point in data_points:
        if point.unassigned_hours > 0:
            total_hours += point.unassigned_hours
            by_skill[point.skill_type] = by_skill.get(point.skill_type, 0.0) + point.unassigned_hours
        total_tasks += sum(1 for line in point.task_breakdown if line.is_unassigned)
    return UnassignedSummary(
        total_unassigned_tasks=total_tasks,
        total_unassigned_hours=total_hours,
        skill_breakdown=frozen_map(by_skill),
    )
