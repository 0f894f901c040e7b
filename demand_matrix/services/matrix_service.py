"""Application service that turns forecast periods and recurring tasks into a demand matrix."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping, Sequence

from demand_matrix.core.config import TransformOptions
from demand_matrix.core.errors import TransformCancelled
from demand_matrix.models.entities import (
    ClientMaps,
    DemandDataPoint,
    DemandMatrix,
    ForecastPeriod,
    MonthInfo,
    RecurringTaskDefinition,
    RevenueTotals,
    StaffRecord,
    UnassignedSummary,
    ValidationResult,
    frozen_map,
)
from demand_matrix.services.data_points import (
    DataPointBuilder,
    extract_months,
    extract_skills,
    resolve_available_staff,
)
from demand_matrix.services.recurrence import RecurrenceCalculator
from demand_matrix.services.revenue import (
    FALLBACK_FEE_RATE,
    ApportionedClientRevenue,
    ClientRevenueApportioner,
    RevenueEnhancer,
    SkillFeeRateProvider,
    fee_rate_for,
    load_fee_rates,
)
from demand_matrix.services.summaries import (
    build_client_maps,
    build_skill_summary,
    build_staff_summary,
    build_unassigned_summary,
    calculate_revenue_totals,
)
from demand_matrix.services.validator import validate_matrix


def empty_matrix() -> DemandMatrix:
    return DemandMatrix(
        months=(),
        skills=(),
        data_points=(),
        total_demand=0.0,
        total_tasks=0,
        total_clients=0,
        skill_summary=frozen_map(),
        staff_summary=frozen_map(),
        client_maps=ClientMaps(),
        revenue_totals=RevenueTotals(),
        unassigned_summary=UnassignedSummary(),
        skill_fee_rates=frozen_map(),
        available_staff=(),
    )


def assemble_matrix(
    *,
    months: Sequence[MonthInfo],
    skills: Sequence[str],
    data_points: Sequence[DemandDataPoint],
    available_staff: Sequence[StaffRecord] = (),
    fee_rates: Mapping[str, float] | None = None,
    fallback_fee_rate: float = FALLBACK_FEE_RATE,
    client_monthly_revenue: Mapping[str, float] | None = None,
) -> DemandMatrix:
    """Fold enhanced data points into the final matrix.

    ``skill_fee_rates`` records the rate actually applied to each skill, so
    skills priced at the fallback rate show it explicitly.
    """

    fee_rates = fee_rates or {}
    points = tuple(data_points)
    client_ids = {line.client_id for point in points for line in point.task_breakdown}

    return DemandMatrix(
        months=tuple(months),
        skills=tuple(skills),
        data_points=points,
        total_demand=sum(point.demand_hours for point in points),
        total_tasks=sum(point.task_count for point in points),
        total_clients=len(client_ids),
        skill_summary=build_skill_summary(points),
        staff_summary=build_staff_summary(points, available_staff),
        client_maps=build_client_maps(points, client_monthly_revenue),
        revenue_totals=calculate_revenue_totals(points),
        unassigned_summary=build_unassigned_summary(points),
        skill_fee_rates=frozen_map(
            (skill, fee_rate_for(skill, fee_rates, fallback_fee_rate)) for skill in skills
        ),
        available_staff=tuple(available_staff),
    )


class DemandMatrixService:
    """Runs the full transformation pipeline.

    The service holds only its collaborators and default options; every call
    works on fresh local state, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        fee_rate_provider: SkillFeeRateProvider | None = None,
        revenue_apportioner: ClientRevenueApportioner | None = None,
        *,
        client_monthly_revenue: Mapping[str, float] | None = None,
        options: TransformOptions | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.fee_rate_provider = fee_rate_provider
        self.revenue_apportioner = revenue_apportioner
        self.client_monthly_revenue = frozen_map(client_monthly_revenue or {})
        self.options = options or TransformOptions()
        self.logger = logger or logging.getLogger(__name__)

    async def transform(
        self,
        forecast_periods: Iterable[ForecastPeriod],
        tasks: Iterable[RecurringTaskDefinition],
        *,
        staff: Iterable[StaffRecord] | None = None,
        options: TransformOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> DemandMatrix:
        options = options or self.options
        started = time.perf_counter()
        periods = tuple(forecast_periods)
        task_list = tuple(tasks)

        if not periods or not task_list:
            self.logger.warning(
                "Empty input for demand matrix (%d periods, %d tasks); returning empty matrix.",
                len(periods),
                len(task_list),
            )
            return empty_matrix()

        months = extract_months(periods, log=self.logger)
        skills = extract_skills(periods)
        if not months or not skills:
            self.logger.warning(
                "Forecast periods yield %d valid months and %d skills; returning empty matrix.",
                len(months),
                len(skills),
            )
            return empty_matrix()

        available_staff = resolve_available_staff(task_list, staff)
        builder = DataPointBuilder(
            RecurrenceCalculator(logger=self.logger),
            batch_size=options.batch_size,
            assignment_filter=options.assignment_filter,
            debug_mode=options.debug_mode,
            logger=self.logger,
        )
        data_points = await builder.build(task_list, months, skills, available_staff, cancel_event)

        if cancel_event is not None and cancel_event.is_set():
            raise TransformCancelled("Demand matrix build cancelled before revenue enhancement.")

        fee_rates = await load_fee_rates(self.fee_rate_provider, log=self.logger)
        enhancer = RevenueEnhancer(
            self._apportioner_for(data_points),
            fallback_fee_rate=options.fallback_fee_rate,
            concurrency_limit=options.revenue_concurrency_limit,
            logger=self.logger,
        )
        enhanced = await enhancer.enhance(data_points, fee_rates)

        matrix = assemble_matrix(
            months=months,
            skills=skills,
            data_points=enhanced,
            available_staff=available_staff,
            fee_rates=fee_rates,
            fallback_fee_rate=options.fallback_fee_rate,
            client_monthly_revenue=self.client_monthly_revenue,
        )

        elapsed = time.perf_counter() - started
        if elapsed > options.slow_transform_warning_seconds:
            self.logger.warning(
                "Demand matrix transform took %.2fs (threshold %.2fs).",
                elapsed,
                options.slow_transform_warning_seconds,
            )
        self.logger.info(
            "Built demand matrix: %d months, %d skills, %d data points, %.2f total hours.",
            len(matrix.months),
            len(matrix.skills),
            len(matrix.data_points),
            matrix.total_demand,
        )
        return matrix

    async def transform_and_validate(
        self,
        forecast_periods: Iterable[ForecastPeriod],
        tasks: Iterable[RecurringTaskDefinition],
        *,
        staff: Iterable[StaffRecord] | None = None,
        options: TransformOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> tuple[DemandMatrix, ValidationResult]:
        options = options or self.options
        matrix = await self.transform(
            forecast_periods,
            tasks,
            staff=staff,
            options=options,
            cancel_event=cancel_event,
        )
        validation = validate_matrix(matrix, tolerance=options.total_demand_tolerance, log=self.logger)
        return matrix, validation

    def _apportioner_for(self, data_points: Sequence[DemandDataPoint]) -> ClientRevenueApportioner | None:
        if self.revenue_apportioner is not None:
            return self.revenue_apportioner
        if self.client_monthly_revenue:
            return ApportionedClientRevenue.from_data_points(self.client_monthly_revenue, data_points)
        return None
