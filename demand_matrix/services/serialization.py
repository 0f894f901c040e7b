"""JSON-ready rendering of matrix records."""

from __future__ import annotations

from demand_matrix.models.entities import (
    AssignedStaff,
    ClientMaps,
    ClientTaskDemand,
    DemandDataPoint,
    DemandMatrix,
    SkillSummary,
    StaffRecord,
    StaffSummary,
    ValidationResult,
)


def serialize_task_demand(line: ClientTaskDemand) -> dict[str, object]:
    assigned = isinstance(line.assignment, AssignedStaff)
    return {
        "task_id": line.task_id,
        "task_name": line.task_name,
        "client_id": line.client_id,
        "client_name": line.client_name,
        "skill_type": line.skill_type,
        "estimated_hours": line.estimated_hours,
        "monthly_hours": line.monthly_hours,
        "recurrence_pattern": {
            "type": line.recurrence_pattern.type,
            "interval": line.recurrence_pattern.interval,
        },
        "preferred_staff_id": line.assignment.staff_id if assigned else None,
        "preferred_staff_name": line.assignment.staff_name if assigned else None,
        "is_unassigned": not assigned,
        "suggested_revenue": line.suggested_revenue,
    }


def serialize_data_point(point: DemandDataPoint) -> dict[str, object]:
    return {
        "skill_type": point.skill_type,
        "month": point.month,
        "month_label": point.month_label,
        "demand_hours": point.demand_hours,
        "task_count": point.task_count,
        "client_count": point.client_count,
        "assigned_hours": point.assigned_hours,
        "unassigned_hours": point.unassigned_hours,
        "suggested_revenue": point.suggested_revenue,
        "expected_revenue": point.expected_revenue,
        "expected_less_suggested": point.expected_less_suggested,
        "expected_revenue_known": point.expected_revenue_known,
        "task_breakdown": [serialize_task_demand(line) for line in point.task_breakdown],
    }


def serialize_skill_summary(summary: SkillSummary) -> dict[str, object]:
    return {
        "total_hours": summary.total_hours,
        "task_count": summary.task_count,
        "client_count": summary.client_count,
        "total_suggested_revenue": summary.total_suggested_revenue,
        "total_expected_revenue": summary.total_expected_revenue,
        "total_expected_less_suggested": summary.total_expected_less_suggested,
        "average_fee_rate": summary.average_fee_rate,
        "assigned_hours": summary.assigned_hours,
        "unassigned_hours": summary.unassigned_hours,
        "assigned_tasks": summary.assigned_tasks,
        "unassigned_tasks": summary.unassigned_tasks,
    }


def serialize_staff_summary(summary: StaffSummary) -> dict[str, object]:
    return {
        "staff_id": summary.staff_id,
        "staff_name": summary.staff_name,
        "total_hours": summary.total_hours,
        "total_tasks": summary.total_tasks,
        "skill_breakdown": dict(summary.skill_breakdown),
        "client_breakdown": dict(summary.client_breakdown),
        "is_unassigned": summary.is_unassigned,
    }


def serialize_client_maps(maps: ClientMaps) -> dict[str, object]:
    return {
        "client_totals": dict(maps.client_totals),
        "client_suggested_revenue": dict(maps.client_suggested_revenue),
        "client_revenue": dict(maps.client_revenue),
        "client_hourly_rates": dict(maps.client_hourly_rates),
        "client_expected_less_suggested": dict(maps.client_expected_less_suggested),
        "client_names": dict(maps.client_names),
    }


def serialize_staff_record(record: StaffRecord) -> dict[str, object]:
    return {
        "id": record.id,
        "display_name": record.display_name,
        "assigned_skills": sorted(record.assigned_skills),
    }


def serialize_matrix(matrix: DemandMatrix) -> dict[str, object]:
    return {
        "months": [{"key": month.key, "label": month.label} for month in matrix.months],
        "skills": list(matrix.skills),
        "data_points": [serialize_data_point(point) for point in matrix.data_points],
        "total_demand": matrix.total_demand,
        "total_tasks": matrix.total_tasks,
        "total_clients": matrix.total_clients,
        "skill_summary": {
            skill: serialize_skill_summary(summary) for skill, summary in matrix.skill_summary.items()
        },
        "staff_summary": {
            staff_id: serialize_staff_summary(summary) for staff_id, summary in matrix.staff_summary.items()
        },
        "client_maps": serialize_client_maps(matrix.client_maps),
        "revenue_totals": {
            "total_suggested_revenue": matrix.revenue_totals.total_suggested_revenue,
            "total_expected_revenue": matrix.revenue_totals.total_expected_revenue,
            "total_expected_less_suggested": matrix.revenue_totals.total_expected_less_suggested,
        },
        "unassigned_summary": {
            "total_unassigned_tasks": matrix.unassigned_summary.total_unassigned_tasks,
            "total_unassigned_hours": matrix.unassigned_summary.total_unassigned_hours,
            "skill_breakdown": dict(matrix.unassigned_summary.skill_breakdown),
        },
        "skill_fee_rates": dict(matrix.skill_fee_rates),
        "available_staff": [serialize_staff_record(record) for record in matrix.available_staff],
    }


def serialize_validation(result: ValidationResult) -> dict[str, object]:
    return {
        "is_valid": result.is_valid,
        "issues": list(result.issues),
        "warnings": list(result.warnings),
        "staff_related_issues": list(result.staff_related_issues),
    }
