"""Immutable domain records for demand forecasting."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType

UNASSIGNED_STAFF_KEY = "UNASSIGNED"
UNASSIGNED_STAFF_NAME = "Unassigned Tasks"


def frozen_map(values: Mapping | Iterable[tuple] = ()) -> Mapping:
    """Read-only snapshot of a mapping."""

    return MappingProxyType(dict(values))


class RecurrenceType(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: str | None) -> RecurrenceType | None:
        """Resolve a stored recurrence string, or None when unrecognised."""

        if not value:
            return None
        normalized = value.strip().lower()
        if normalized == "annual":
            return cls.ANNUALLY
        try:
            return cls(normalized)
        except ValueError:
            return None


class AssignmentFilter(str, enum.Enum):
    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class SkillHours:
    skill: str
    hours: float


@dataclass(frozen=True, slots=True)
class ForecastPeriod:
    """Forecast summary for one month with per-skill demand and capacity."""

    period: str
    demand: tuple[SkillHours, ...] = ()
    capacity: tuple[SkillHours, ...] = ()


@dataclass(frozen=True, slots=True)
class StaffRecord:
    id: str
    display_name: str
    assigned_skills: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if self.id == UNASSIGNED_STAFF_KEY:
            raise ValueError(f"Staff id {UNASSIGNED_STAFF_KEY!r} is reserved.")
        object.__setattr__(self, "assigned_skills", frozenset(self.assigned_skills))


@dataclass(frozen=True, slots=True)
class RecurringTaskDefinition:
    id: str
    client_id: str
    required_skills: frozenset[str]
    estimated_hours: float
    recurrence_type: str
    recurrence_interval: int
    due_date: date
    end_date: date | None = None
    preferred_staff_id: str | None = None
    is_active: bool = True
    name: str | None = None
    client_name: str | None = None
    preferred_staff_name: str | None = None
    # Monday=0 .. Sunday=6, only meaningful for weekly recurrence.
    weekdays: tuple[int, ...] = ()
    month_of_year: int | None = None

    def __post_init__(self) -> None:
        if self.preferred_staff_id == UNASSIGNED_STAFF_KEY:
            raise ValueError(f"Staff id {UNASSIGNED_STAFF_KEY!r} is reserved.")
        object.__setattr__(self, "required_skills", frozenset(self.required_skills))
        object.__setattr__(self, "weekdays", tuple(self.weekdays))

    @property
    def is_unassigned(self) -> bool:
        return not self.preferred_staff_id


@dataclass(frozen=True, slots=True)
class AssignedStaff:
    staff_id: str
    staff_name: str


@dataclass(frozen=True, slots=True)
class Unassigned:
    """Assignment marker for tasks without a preferred staff member."""


UNASSIGNED = Unassigned()

StaffAssignment = AssignedStaff | Unassigned


@dataclass(frozen=True, slots=True)
class RecurrencePattern:
    type: str
    interval: int


@dataclass(frozen=True, slots=True)
class ClientTaskDemand:
    """One task's contribution to a (skill, month) cell."""

    task_id: str
    task_name: str
    client_id: str
    client_name: str
    skill_type: str
    estimated_hours: float
    monthly_hours: float
    recurrence_pattern: RecurrencePattern
    assignment: StaffAssignment = UNASSIGNED
    suggested_revenue: float = 0.0

    @property
    def is_unassigned(self) -> bool:
        return isinstance(self.assignment, Unassigned)

    @property
    def staff_key(self) -> str:
        if isinstance(self.assignment, AssignedStaff):
            return self.assignment.staff_id
        return UNASSIGNED_STAFF_KEY


@dataclass(frozen=True, slots=True)
class MonthInfo:
    key: str
    label: str


@dataclass(frozen=True, slots=True)
class DemandDataPoint:
    skill_type: str
    month: str
    month_label: str
    demand_hours: float
    task_count: int
    client_count: int
    task_breakdown: tuple[ClientTaskDemand, ...] = ()
    assigned_hours: float = 0.0
    unassigned_hours: float = 0.0
    suggested_revenue: float = 0.0
    expected_revenue: float = 0.0
    expected_less_suggested: float = 0.0
    # False when the revenue collaborator failed and only suggested revenue is set.
    expected_revenue_known: bool = True

    @property
    def key(self) -> tuple[str, str]:
        return (self.skill_type, self.month)


@dataclass(frozen=True, slots=True)
class SkillSummary:
    skill: str
    total_hours: float
    task_count: int
    client_count: int
    total_suggested_revenue: float
    total_expected_revenue: float
    total_expected_less_suggested: float
    average_fee_rate: float
    assigned_hours: float
    unassigned_hours: float
    assigned_tasks: int
    unassigned_tasks: int


@dataclass(frozen=True, slots=True)
class StaffSummary:
    staff_id: str
    staff_name: str
    total_hours: float
    total_tasks: int
    skill_breakdown: Mapping[str, float] = field(default_factory=frozen_map)
    client_breakdown: Mapping[str, float] = field(default_factory=frozen_map)
    is_unassigned: bool = False


@dataclass(frozen=True, slots=True)
class ClientMaps:
    """Per-client totals keyed by client id."""

    client_totals: Mapping[str, float] = field(default_factory=frozen_map)
    client_suggested_revenue: Mapping[str, float] = field(default_factory=frozen_map)
    client_revenue: Mapping[str, float] = field(default_factory=frozen_map)
    client_hourly_rates: Mapping[str, float] = field(default_factory=frozen_map)
    client_expected_less_suggested: Mapping[str, float] = field(default_factory=frozen_map)
    client_names: Mapping[str, str] = field(default_factory=frozen_map)


@dataclass(frozen=True, slots=True)
class RevenueTotals:
    total_suggested_revenue: float = 0.0
    total_expected_revenue: float = 0.0
    total_expected_less_suggested: float = 0.0


@dataclass(frozen=True, slots=True)
class UnassignedSummary:
    total_unassigned_tasks: int = 0
    total_unassigned_hours: float = 0.0
    skill_breakdown: Mapping[str, float] = field(default_factory=frozen_map)


@dataclass(frozen=True, slots=True)
class DemandMatrix:
    """Aggregate (skill x month) demand with revenue and staff breakdowns."""

    months: tuple[MonthInfo, ...]
    skills: tuple[str, ...]
    data_points: tuple[DemandDataPoint, ...]
    total_demand: float
    total_tasks: int
    total_clients: int
    skill_summary: Mapping[str, SkillSummary]
    staff_summary: Mapping[str, StaffSummary]
    client_maps: ClientMaps
    revenue_totals: RevenueTotals
    unassigned_summary: UnassignedSummary
    skill_fee_rates: Mapping[str, float]
    available_staff: tuple[StaffRecord, ...]

    @property
    def month_keys(self) -> tuple[str, ...]:
        return tuple(month.key for month in self.months)

    def data_point(self, skill_type: str, month: str) -> DemandDataPoint | None:
        for point in self.data_points:
            if point.skill_type == skill_type and point.month == month:
                return point
        return None


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    issues: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    staff_related_issues: tuple[str, ...] = ()
