from __future__ import annotations

import logging
from datetime import date

import pytest

from demand_matrix.core.errors import RecurrenceCalculationError
from demand_matrix.models.entities import RecurringTaskDefinition
from demand_matrix.services.months import month_label, normalize_month_key, parse_month_key
from demand_matrix.services.recurrence import RecurrenceCalculator


def _task(
    recurrence_type: str,
    *,
    hours: float = 2.0,
    interval: int = 1,
    due: date = date(2024, 1, 1),
    end: date | None = None,
    weekdays: tuple[int, ...] = (),
    month_of_year: int | None = None,
) -> RecurringTaskDefinition:
    return RecurringTaskDefinition(
        id="task-1",
        client_id="client-1",
        required_skills=frozenset({"Bookkeeping"}),
        estimated_hours=hours,
        recurrence_type=recurrence_type,
        recurrence_interval=interval,
        due_date=due,
        end_date=end,
        weekdays=weekdays,
        month_of_year=month_of_year,
    )


def test_monthly_task_counts_once_per_month_from_due_date() -> None:
    calculator = RecurrenceCalculator()
    task = _task("monthly", hours=12, due=date(2024, 1, 15))

    assert calculator.monthly_hours(task, "2024-01") == 12
    assert calculator.monthly_hours(task, "2024-02") == 12
    assert calculator.monthly_hours(task, "2023-12") == 0


def test_monthly_interval_skips_off_months() -> None:
    calculator = RecurrenceCalculator()
    task = _task("monthly", hours=5, interval=2, due=date(2024, 1, 10))

    assert calculator.monthly_hours(task, "2024-01") == 5
    assert calculator.monthly_hours(task, "2024-02") == 0
    assert calculator.monthly_hours(task, "2024-03") == 5


def test_monthly_due_day_is_clamped_to_short_months() -> None:
    task = _task("monthly", hours=3, due=date(2024, 1, 31))

    assert RecurrenceCalculator().monthly_hours(task, "2024-02") == 3


def test_end_date_excludes_occurrence_after_it() -> None:
    calculator = RecurrenceCalculator()
    task = _task("monthly", hours=4, due=date(2024, 1, 15), end=date(2024, 3, 10))

    assert calculator.monthly_hours(task, "2024-02") == 4
    assert calculator.monthly_hours(task, "2024-03") == 0
    assert calculator.monthly_hours(task, "2024-04") == 0


def test_quarterly_task_lands_every_third_month() -> None:
    calculator = RecurrenceCalculator()
    task = _task("quarterly", hours=8, due=date(2024, 1, 10))

    assert [calculator.monthly_hours(task, f"2024-{month:02d}") for month in range(1, 8)] == [
        8, 0, 0, 8, 0, 0, 8,
    ]


def test_annual_task_uses_month_of_year_anchor() -> None:
    calculator = RecurrenceCalculator()
    plain = _task("annually", hours=20, due=date(2024, 3, 5))
    anchored = _task("annual", hours=20, due=date(2024, 3, 5), month_of_year=6)

    assert calculator.monthly_hours(plain, "2025-03") == 20
    assert calculator.monthly_hours(plain, "2024-09") == 0
    assert calculator.monthly_hours(anchored, "2024-03") == 0
    assert calculator.monthly_hours(anchored, "2024-06") == 20
    assert calculator.monthly_hours(anchored, "2025-06") == 20


def test_weekly_task_counts_calendar_weekdays() -> None:
    calculator = RecurrenceCalculator()
    # 2024-01-01 is a Monday: January has five Mondays, February four.
    task = _task("weekly", hours=2, due=date(2024, 1, 1))

    assert calculator.monthly_hours(task, "2024-01") == 10
    assert calculator.monthly_hours(task, "2024-02") == 8


def test_weekly_task_with_interval_and_explicit_weekdays() -> None:
    calculator = RecurrenceCalculator()
    biweekly = _task("weekly", hours=2, interval=2, due=date(2024, 1, 1))
    twice_a_week = _task("weekly", hours=1, due=date(2024, 1, 1), weekdays=(0, 2))

    assert calculator.monthly_hours(biweekly, "2024-01") == 5
    assert calculator.monthly_hours(twice_a_week, "2024-01") == 10


def test_daily_task_counts_days_in_window() -> None:
    calculator = RecurrenceCalculator()

    assert calculator.monthly_hours(_task("daily", hours=1, due=date(2024, 2, 1)), "2024-02") == 29
    assert calculator.monthly_hours(_task("daily", hours=1, interval=2, due=date(2024, 2, 1)), "2024-02") == 14.5
    assert calculator.monthly_hours(_task("daily", hours=1, due=date(2024, 2, 20)), "2024-02") == 10


def test_custom_task_recurs_every_interval_days() -> None:
    calculator = RecurrenceCalculator()
    task = _task("custom", hours=3, interval=10, due=date(2024, 1, 1))

    demand = calculator.monthly_demand(task, "2024-01")
    assert demand.occurrences == 4
    assert demand.hours == 12
    assert calculator.monthly_hours(task, "2024-02") == 6


def test_unknown_recurrence_type_falls_back_to_estimated_hours(caplog: pytest.LogCaptureFixture) -> None:
    task = _task("fortnightly", hours=7)

    with caplog.at_level(logging.WARNING):
        hours = RecurrenceCalculator().monthly_hours(task, "2024-01")

    assert hours == 7
    assert "Unknown recurrence type" in caplog.text


def test_task_outside_month_contributes_nothing_even_when_type_unknown() -> None:
    task = _task("fortnightly", hours=7, due=date(2024, 5, 1))

    assert RecurrenceCalculator().monthly_hours(task, "2024-01") == 0


@pytest.mark.parametrize(
    ("hours", "interval"),
    [(0, 1), (-3, 1), (float("nan"), 1), (2, 0)],
)
def test_invalid_task_raises_calculation_error(hours: float, interval: int) -> None:
    task = _task("monthly", hours=hours, interval=interval)

    with pytest.raises(RecurrenceCalculationError) as exc_info:
        RecurrenceCalculator().monthly_hours(task, "2024-01")

    assert exc_info.value.task_id == "task-1"


def test_invalid_month_key_raises_calculation_error() -> None:
    with pytest.raises(RecurrenceCalculationError):
        RecurrenceCalculator().monthly_hours(_task("monthly"), "January")


def test_month_key_helpers() -> None:
    assert parse_month_key("2024-03-17") == date(2024, 3, 1)
    assert normalize_month_key("2024-03-01") == "2024-03"
    assert month_label("2024-01") == "Jan 2024"
    with pytest.raises(ValueError):
        parse_month_key("2024-13")
