"""Revenue attribution for demand data points.

Suggested revenue prices demand hours at the skill's fee rate. Expected revenue
comes from an apportioner that spreads a client's known billing over its
demand. Both collaborators are injected so the pipeline itself never touches
the network.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from typing import Protocol

from demand_matrix.core.errors import RevenueLookupError
from demand_matrix.models.entities import DemandDataPoint, frozen_map

FALLBACK_FEE_RATE = 150.0

logger = logging.getLogger(__name__)


class SkillFeeRateProvider(Protocol):
    async def get_rates(self) -> Mapping[str, float]: ...


class ClientRevenueApportioner(Protocol):
    async def expected_revenue_for(self, data_point: DemandDataPoint) -> float: ...


class StaticSkillFeeRateProvider:
    """Fee rates known up front, e.g. loaded by the caller from its skill catalogue."""

    def __init__(self, rates: Mapping[str, float] | None = None) -> None:
        self._rates = frozen_map(rates or {})

    async def get_rates(self) -> Mapping[str, float]:
        return self._rates


class NoExpectedRevenue:
    """Apportioner for callers with no client billing data."""

    async def expected_revenue_for(self, data_point: DemandDataPoint) -> float:
        return 0.0


class ApportionedClientRevenue:
    """Distributes each client's expected monthly revenue across its demand.

    A client's revenue for a month is split over every breakdown line of that
    client in the month in proportion to the line's hours, so summing a
    client's share over all skills of a month gives back its monthly revenue.
    """

    def __init__(
        self,
        client_monthly_revenue: Mapping[str, float],
        client_month_hours: Mapping[tuple[str, str], float],
    ) -> None:
        self._client_monthly_revenue = frozen_map(client_monthly_revenue)
        self._client_month_hours = frozen_map(client_month_hours)

    @classmethod
    def from_data_points(
        cls,
        client_monthly_revenue: Mapping[str, float],
        data_points: Iterable[DemandDataPoint],
    ) -> ApportionedClientRevenue:
        hours: dict[tuple[str, str], float] = {}
        for point in data_points:
            for line in point.task_breakdown:
                key = (line.client_id, point.month)
                hours[key] = hours.get(key, 0.0) + line.monthly_hours
        return cls(client_monthly_revenue, hours)

    async def expected_revenue_for(self, data_point: DemandDataPoint) -> float:
        total = 0.0
        for line in data_point.task_breakdown:
            monthly_revenue = self._client_monthly_revenue.get(line.client_id)
            if monthly_revenue is None:
                continue
            client_hours = self._client_month_hours.get((line.client_id, data_point.month), 0.0)
            if client_hours <= 0:
                continue
            total += float(monthly_revenue) * line.monthly_hours / client_hours
        return total


def fee_rate_for(skill: str, fee_rates: Mapping[str, float], fallback: float = FALLBACK_FEE_RATE) -> float:
    rate = fee_rates.get(skill)
    if rate is None:
        return fallback
    return float(rate)


async def load_fee_rates(
    provider: SkillFeeRateProvider | None,
    *,
    log: logging.Logger | None = None,
) -> Mapping[str, float]:
    """Fetch fee rates, dropping unusable entries.

    A failing provider yields an empty map so every skill is priced at the
    fallback rate.
    """

    log = log or logger
    if provider is None:
        return frozen_map()
    try:
        raw = await provider.get_rates()
    except Exception:
        log.exception("Skill fee rate lookup failed; using fallback rates for all skills.")
        return frozen_map()

    rates: dict[str, float] = {}
    for skill, rate in (raw or {}).items():
        if isinstance(rate, bool) or not isinstance(rate, (int, float)) or not math.isfinite(rate) or rate < 0:
            log.warning("Ignoring invalid fee rate %r for skill %r.", rate, skill)
            continue
        rates[skill] = float(rate)
    return frozen_map(rates)


class RevenueEnhancer:
    """Attaches suggested and expected revenue to data points."""

    def __init__(
        self,
        apportioner: ClientRevenueApportioner | None = None,
        *,
        fallback_fee_rate: float = FALLBACK_FEE_RATE,
        concurrency_limit: int = 5,
        logger: logging.Logger | None = None,
    ) -> None:
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1.")
        self.apportioner = apportioner or NoExpectedRevenue()
        self.fallback_fee_rate = fallback_fee_rate
        self.concurrency_limit = concurrency_limit
        self.logger = logger or logging.getLogger(__name__)

    async def enhance(
        self,
        data_points: Sequence[DemandDataPoint],
        fee_rates: Mapping[str, float],
    ) -> tuple[DemandDataPoint, ...]:
        semaphore = asyncio.Semaphore(self.concurrency_limit)

        async def guarded(point: DemandDataPoint) -> DemandDataPoint:
            async with semaphore:
                return await self.enhance_point(point, fee_rates)

        # gather keeps input order, so output order matches data_points.
        return tuple(await asyncio.gather(*(guarded(point) for point in data_points)))

    async def enhance_point(
        self,
        point: DemandDataPoint,
        fee_rates: Mapping[str, float],
    ) -> DemandDataPoint:
        rate = fee_rate_for(point.skill_type, fee_rates, self.fallback_fee_rate)
        suggested = point.demand_hours * rate
        breakdown = tuple(
            replace(line, suggested_revenue=line.monthly_hours * rate) for line in point.task_breakdown
        )

        try:
            expected = await self._expected_revenue(point)
        except RevenueLookupError as exc:
            self.logger.warning("%s; keeping suggested revenue only.", exc)
            return replace(
                point,
                task_breakdown=breakdown,
                suggested_revenue=suggested,
                expected_revenue=0.0,
                expected_less_suggested=0.0,
                expected_revenue_known=False,
            )

        return replace(
            point,
            task_breakdown=breakdown,
            suggested_revenue=suggested,
            expected_revenue=expected,
            expected_less_suggested=expected - suggested,
            expected_revenue_known=True,
        )

    async def _expected_revenue(self, point: DemandDataPoint) -> float:
        try:
            value = await self.apportioner.expected_revenue_for(point)
            expected = float(value)
        except Exception as exc:
            raise RevenueLookupError(point.skill_type, point.month, exc) from exc
        if not math.isfinite(expected):
            raise RevenueLookupError(point.skill_type, point.month, ValueError(f"non-finite value {value!r}"))
        return expected
