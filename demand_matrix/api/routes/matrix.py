"""Demand matrix endpoint."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field, field_validator

from demand_matrix.core.config import TransformOptions, get_settings
from demand_matrix.models.entities import (
    UNASSIGNED_STAFF_KEY,
    AssignmentFilter,
    ForecastPeriod,
    RecurringTaskDefinition,
    SkillHours,
    StaffRecord,
)
from demand_matrix.services.matrix_service import DemandMatrixService
from demand_matrix.services.revenue import StaticSkillFeeRateProvider
from demand_matrix.services.serialization import serialize_matrix, serialize_validation

router = APIRouter(tags=["matrix"])


def _reject_reserved_staff_id(value: str | None) -> str | None:
    if value == UNASSIGNED_STAFF_KEY:
        raise ValueError(f"Staff id {UNASSIGNED_STAFF_KEY!r} is reserved.")
    return value


class SkillHoursPayload(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    skill: str
    hours: float


class ForecastPeriodPayload(BaseModel):
    period: str
    demand: list[SkillHoursPayload] = Field(default_factory=list)
    capacity: list[SkillHoursPayload] = Field(default_factory=list)


class RecurringTaskPayload(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    id: str
    client_id: str
    required_skills: list[str]
    estimated_hours: float
    recurrence_type: str
    recurrence_interval: int = 1
    due_date: date
    end_date: date | None = None
    preferred_staff_id: str | None = None
    is_active: bool = True
    name: str | None = None
    client_name: str | None = None
    preferred_staff_name: str | None = None
    weekdays: list[int] = Field(default_factory=list)
    month_of_year: int | None = None

    @field_validator("preferred_staff_id")
    @classmethod
    def reject_reserved_staff_id(cls, value: str | None) -> str | None:
        return _reject_reserved_staff_id(value)


class StaffPayload(BaseModel):
    id: str
    display_name: str
    assigned_skills: list[str] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def reject_reserved_id(cls, value: str) -> str:
        return _reject_reserved_staff_id(value)


class DemandMatrixPayload(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    forecast_periods: list[ForecastPeriodPayload]
    tasks: list[RecurringTaskPayload]
    staff: list[StaffPayload] | None = None
    skill_fee_rates: dict[str, float] = Field(default_factory=dict)
    client_monthly_revenue: dict[str, float] = Field(default_factory=dict)
    assignment_filter: AssignmentFilter = AssignmentFilter.ALL


def _to_period(payload: ForecastPeriodPayload) -> ForecastPeriod:
    return ForecastPeriod(
        period=payload.period,
        demand=tuple(SkillHours(skill=entry.skill, hours=entry.hours) for entry in payload.demand),
        capacity=tuple(SkillHours(skill=entry.skill, hours=entry.hours) for entry in payload.capacity),
    )


def _to_task(payload: RecurringTaskPayload) -> RecurringTaskDefinition:
    return RecurringTaskDefinition(
        id=payload.id,
        client_id=payload.client_id,
        required_skills=frozenset(payload.required_skills),
        estimated_hours=payload.estimated_hours,
        recurrence_type=payload.recurrence_type,
        recurrence_interval=payload.recurrence_interval,
        due_date=payload.due_date,
        end_date=payload.end_date,
        preferred_staff_id=payload.preferred_staff_id or None,
        is_active=payload.is_active,
        name=payload.name,
        client_name=payload.client_name,
        preferred_staff_name=payload.preferred_staff_name,
        weekdays=tuple(payload.weekdays),
        month_of_year=payload.month_of_year,
    )


def _matrix_service(payload: DemandMatrixPayload) -> DemandMatrixService:
    return DemandMatrixService(
        StaticSkillFeeRateProvider(payload.skill_fee_rates),
        client_monthly_revenue=payload.client_monthly_revenue,
        options=TransformOptions.from_settings(get_settings(), assignment_filter=payload.assignment_filter),
    )


@router.post("/demand-matrix")
async def build_demand_matrix(payload: DemandMatrixPayload) -> dict[str, object]:
    service = _matrix_service(payload)
    staff = None
    if payload.staff is not None:
        staff = [
            StaffRecord(
                id=record.id,
                display_name=record.display_name,
                assigned_skills=frozenset(record.assigned_skills),
            )
            for record in payload.staff
        ]
    matrix, validation = await service.transform_and_validate(
        [_to_period(period) for period in payload.forecast_periods],
        [_to_task(task) for task in payload.tasks],
        staff=staff,
    )
    return {
        "matrix": serialize_matrix(matrix),
        "validation": serialize_validation(validation),
    }
