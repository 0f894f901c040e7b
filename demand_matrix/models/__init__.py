"""Domain model package."""

from demand_matrix.models.entities import (
    UNASSIGNED,
    UNASSIGNED_STAFF_KEY,
    UNASSIGNED_STAFF_NAME,
    AssignedStaff,
    AssignmentFilter,
    ClientMaps,
    ClientTaskDemand,
    DemandDataPoint,
    DemandMatrix,
    ForecastPeriod,
    MonthInfo,
    RecurrencePattern,
    RecurrenceType,
    RecurringTaskDefinition,
    RevenueTotals,
    SkillHours,
    SkillSummary,
    StaffAssignment,
    StaffRecord,
    StaffSummary,
    Unassigned,
    UnassignedSummary,
    ValidationResult,
)

__all__ = [
    "UNASSIGNED",
    "UNASSIGNED_STAFF_KEY",
    "UNASSIGNED_STAFF_NAME",
    "AssignedStaff",
    "AssignmentFilter",
    "ClientMaps",
    "ClientTaskDemand",
    "DemandDataPoint",
    "DemandMatrix",
    "ForecastPeriod",
    "MonthInfo",
    "RecurrencePattern",
    "RecurrenceType",
    "RecurringTaskDefinition",
    "RevenueTotals",
    "SkillHours",
    "SkillSummary",
    "StaffAssignment",
    "StaffRecord",
    "StaffSummary",
    "Unassigned",
    "UnassignedSummary",
    "ValidationResult",
]
