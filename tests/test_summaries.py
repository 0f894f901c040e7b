from __future__ import annotations

from dataclasses import replace

from demand_matrix.models.entities import (
    UNASSIGNED,
    UNASSIGNED_STAFF_KEY,
    AssignedStaff,
    ClientTaskDemand,
    DemandDataPoint,
    RecurrencePattern,
    StaffRecord,
)
from demand_matrix.services.summaries import (
    build_client_maps,
    build_skill_summary,
    build_staff_summary,
    build_unassigned_summary,
    calculate_revenue_totals,
)


def _line(task_id: str, client_id: str, skill: str, hours: float, staff_id: str | None = None) -> ClientTaskDemand:
    return ClientTaskDemand(
        task_id=task_id,
        task_name=task_id,
        client_id=client_id,
        client_name=f"Client {client_id}",
        skill_type=skill,
        estimated_hours=hours,
        monthly_hours=hours,
        recurrence_pattern=RecurrencePattern(type="monthly", interval=1),
        assignment=AssignedStaff(staff_id=staff_id, staff_name=staff_id.title()) if staff_id else UNASSIGNED,
        suggested_revenue=hours * 100,
    )


def _point(skill: str, month: str, *lines: ClientTaskDemand, expected: float = 0.0) -> DemandDataPoint:
    hours = sum(line.monthly_hours for line in lines)
    unassigned = sum(line.monthly_hours for line in lines if line.is_unassigned)
    return DemandDataPoint(
        skill_type=skill,
        month=month,
        month_label=month,
        demand_hours=hours,
        task_count=len(lines),
        client_count=len({line.client_id for line in lines}),
        task_breakdown=lines,
        assigned_hours=hours - unassigned,
        unassigned_hours=unassigned,
        suggested_revenue=hours * 100,
        expected_revenue=expected,
        expected_less_suggested=expected - hours * 100,
    )


POINTS = (
    _point("Audit", "2024-01", _line("t1", "c1", "Audit", 10), _line("t2", "c2", "Audit", 5, "ada"), expected=2000),
    _point("Audit", "2024-02", _line("t1", "c1", "Audit", 10), expected=800),
    _point("Tax", "2024-01", _line("t3", "c1", "Tax", 2, "ada")),
)


def test_skill_summary_totals_per_skill() -> None:
    summary = build_skill_summary(POINTS)

    audit = summary["Audit"]
    assert audit.total_hours == 25
    assert audit.task_count == 3
    assert audit.client_count == 2
    assert audit.total_suggested_revenue == 2500
    assert audit.total_expected_revenue == 2800
    assert audit.total_expected_less_suggested == 300
    assert audit.average_fee_rate == 100
    assert (audit.assigned_hours, audit.unassigned_hours) == (5, 20)
    assert (audit.assigned_tasks, audit.unassigned_tasks) == (1, 2)
    assert summary["Tax"].total_hours == 2


def test_staff_summary_always_has_unassigned_and_roster_members() -> None:
    roster = (StaffRecord(id="ada", display_name="Ada L."), StaffRecord(id="idle", display_name="Idle"))

    summary = build_staff_summary(POINTS, roster)

    assert summary[UNASSIGNED_STAFF_KEY].total_hours == 20
    assert summary[UNASSIGNED_STAFF_KEY].is_unassigned is True
    assert summary["ada"].staff_name == "Ada L."
    assert summary["ada"].total_hours == 7
    assert dict(summary["ada"].skill_breakdown) == {"Audit": 5, "Tax": 2}
    assert dict(summary["ada"].client_breakdown) == {"c2": 5, "c1": 2}
    assert summary["idle"].total_hours == 0
    assert build_staff_summary(())[UNASSIGNED_STAFF_KEY].total_tasks == 0


def test_client_maps_use_known_monthly_revenue() -> None:
    maps = build_client_maps(POINTS, {"c1": 900.0})

    assert dict(maps.client_totals) == {"c1": 22, "c2": 5}
    assert maps.client_suggested_revenue["c1"] == 2200
    assert maps.client_revenue == {"c1": 1800.0}
    assert maps.client_hourly_rates["c1"] == 1800 / 22
    assert maps.client_expected_less_suggested["c1"] == -400
    assert maps.client_names["c2"] == "Client c2"


def test_revenue_totals_sum_expected_revenue_across_points() -> None:
    totals = calculate_revenue_totals(POINTS)

    assert totals.total_suggested_revenue == 2700
    assert totals.total_expected_less_suggested == 100
    assert totals.total_expected_revenue == 2800


def test_unassigned_summary() -> None:
    summary = build_unassigned_summary(POINTS)

    assert summary.total_unassigned_tasks == 2
    assert summary.total_unassigned_hours == 20
    assert dict(summary.skill_breakdown) == {"Audit": 20}


def test_revenue_totals_count_unknown_expected_revenue_as_zero() -> None:
    known = POINTS[0]
    unknown = replace(
        _point("Tax", "2024-02", _line("t4", "c2", "Tax", 3)),
        expected_less_suggested=0.0,
        expected_revenue_known=False,
    )

    totals = calculate_revenue_totals((known, unknown))

    assert totals.total_suggested_revenue == 1800
    assert totals.total_expected_revenue == 2000
    assert totals.total_expected_less_suggested == 200
