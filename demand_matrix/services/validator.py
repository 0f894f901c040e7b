"""Structural and arithmetic cross-checks for an assembled demand matrix."""

from __future__ import annotations

import logging
import math

from demand_matrix.models.entities import (
    UNASSIGNED_STAFF_KEY,
    AssignedStaff,
    DemandMatrix,
    ValidationResult,
)

DEFAULT_TOLERANCE = 0.01

logger = logging.getLogger(__name__)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_matrix(
    matrix: DemandMatrix,
    *,
    tolerance: float = DEFAULT_TOLERANCE,
    log: logging.Logger | None = None,
) -> ValidationResult:
    """Cross-check a matrix.

    Only ``issues`` invalidate the matrix. ``warnings`` and
    ``staff_related_issues`` are informational and returned for the caller to
    surface.
    """

    log = log or logger
    issues: list[str] = []
    warnings: list[str] = []
    staff_issues: list[str] = []

    if not matrix.months:
        issues.append("Matrix has no months.")
    if not matrix.skills:
        issues.append("Matrix has no skills.")
    if not matrix.data_points:
        issues.append("Matrix has no data points.")

    seen_keys: set[tuple[str, str]] = set()
    for point in matrix.data_points:
        label = f"{point.skill_type}/{point.month}"
        if point.key in seen_keys:
            issues.append(f"Duplicate data point for {label}.")
        seen_keys.add(point.key)

        if not _is_number(point.demand_hours) or point.demand_hours < 0:
            issues.append(f"Data point {label}: invalid demand_hours {point.demand_hours!r}.")
            continue
        if abs(point.assigned_hours + point.unassigned_hours - point.demand_hours) > tolerance:
            issues.append(
                f"Data point {label}: assigned ({point.assigned_hours:.2f}) and unassigned "
                f"({point.unassigned_hours:.2f}) hours do not add up to {point.demand_hours:.2f}."
            )

        revenue_fields = {
            "suggested_revenue": point.suggested_revenue,
            "expected_revenue": point.expected_revenue,
            "expected_less_suggested": point.expected_less_suggested,
        }
        non_numeric = [name for name, value in revenue_fields.items() if not _is_number(value)]
        if non_numeric:
            issues.append(f"Data point {label}: non-numeric revenue fields {', '.join(non_numeric)}.")
        elif not point.expected_revenue_known:
            warnings.append(f"Data point {label}: expected revenue unavailable, suggested revenue only.")
        elif abs(point.expected_revenue - point.suggested_revenue - point.expected_less_suggested) > tolerance:
            issues.append(
                f"Data point {label}: expected_less_suggested {point.expected_less_suggested:.2f} "
                f"does not match expected minus suggested revenue."
            )

    totals = matrix.revenue_totals
    total_values = (
        totals.total_suggested_revenue,
        totals.total_expected_revenue,
        totals.total_expected_less_suggested,
    )
    if not all(_is_number(value) for value in total_values):
        issues.append("Revenue totals contain non-numeric values.")
    else:
        if abs(
            totals.total_expected_revenue
            - totals.total_suggested_revenue
            - totals.total_expected_less_suggested
        ) > tolerance:
            issues.append("Revenue totals: expected revenue is not suggested revenue plus difference.")
        recomputed_suggested = sum(point.suggested_revenue for point in matrix.data_points)
        if _is_number(recomputed_suggested) and abs(recomputed_suggested - totals.total_suggested_revenue) > tolerance:
            issues.append(
                f"Inconsistent total_suggested_revenue: calculated {recomputed_suggested:.2f}, "
                f"declared {totals.total_suggested_revenue:.2f}."
            )
        recomputed_expected = sum(point.expected_revenue for point in matrix.data_points)
        if _is_number(recomputed_expected) and abs(recomputed_expected - totals.total_expected_revenue) > tolerance:
            issues.append(
                f"Inconsistent total_expected_revenue: calculated {recomputed_expected:.2f}, "
                f"declared {totals.total_expected_revenue:.2f}."
            )

    recomputed_demand = sum(point.demand_hours for point in matrix.data_points)
    if not _is_number(matrix.total_demand) or abs(recomputed_demand - matrix.total_demand) > tolerance:
        issues.append(
            f"Inconsistent total_demand: calculated {recomputed_demand:.2f}, declared {matrix.total_demand!r}."
        )

    recomputed_tasks = sum(point.task_count for point in matrix.data_points)
    if recomputed_tasks != matrix.total_tasks:
        issues.append(f"Inconsistent total_tasks: calculated {recomputed_tasks}, declared {matrix.total_tasks}.")

    recomputed_clients = len(
        {line.client_id for point in matrix.data_points for line in point.task_breakdown}
    )
    if recomputed_clients != matrix.total_clients:
        warnings.append(
            f"Client count mismatch: calculated {recomputed_clients}, declared {matrix.total_clients}."
        )

    for skill in {point.skill_type for point in matrix.data_points}:
        summary = matrix.skill_summary.get(skill)
        if summary is None:
            issues.append(f"Skill {skill!r} found in data points but missing from skill summary.")
            continue
        skill_hours = sum(point.demand_hours for point in matrix.data_points if point.skill_type == skill)
        if abs(skill_hours - summary.total_hours) > tolerance:
            issues.append(
                f"Inconsistent hours for skill {skill!r}: calculated {skill_hours:.2f}, "
                f"summary {summary.total_hours:.2f}."
            )

    roster = {record.id for record in matrix.available_staff}
    orphans: dict[str, set[str]] = {}
    for point in matrix.data_points:
        for line in point.task_breakdown:
            if isinstance(line.assignment, AssignedStaff) and line.assignment.staff_id not in roster:
                orphans.setdefault(line.assignment.staff_id, set()).add(line.task_id)
    for staff_id in sorted(orphans):
        task_ids = ", ".join(sorted(orphans[staff_id]))
        staff_issues.append(
            f"Orphan assignment: staff {staff_id!r} is not in available staff (tasks: {task_ids})."
        )

    unassigned_hours = sum(point.unassigned_hours for point in matrix.data_points)
    unassigned_bucket = matrix.staff_summary.get(UNASSIGNED_STAFF_KEY)
    if unassigned_bucket is None:
        staff_issues.append(f"Staff summary is missing the {UNASSIGNED_STAFF_KEY} bucket.")
    elif abs(unassigned_bucket.total_hours - unassigned_hours) > tolerance:
        staff_issues.append(
            f"Unassigned hours not reflected in staff summary: data points {unassigned_hours:.2f}, "
            f"summary {unassigned_bucket.total_hours:.2f}."
        )

    result = ValidationResult(
        is_valid=not issues,
        issues=tuple(issues),
        warnings=tuple(warnings),
        staff_related_issues=tuple(staff_issues),
    )
    if issues:
        log.warning("Demand matrix failed validation with %d issues: %s", len(issues), "; ".join(issues[:5]))
    elif warnings or staff_issues:
        log.info(
            "Demand matrix valid with %d warnings and %d staff-related issues.",
            len(warnings),
            len(staff_issues),
        )
    return result
