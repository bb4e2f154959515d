"""Quarterly estimated-tax aggregation.

Buckets a year's vesting income and planned ISO exercises into the four IRS
estimated-payment periods. Periods follow the payment due dates, not calendar
quarters.
"""

from datetime import date
from decimal import Decimal

from equityplan.engines.brackets import AMT_FLAT_RATE, ESTIMATED_PAYMENT_QUARTERS
from equityplan.engines.vesting import VestingScheduleGenerator
from equityplan.models.client import Client, Grant, PlannedExercise
from equityplan.models.enums import EquityType
from equityplan.models.results import (
    QuarterlyBreakdown,
    QuarterlyEvent,
    QuarterlyTotals,
    TaxRates,
)

ZERO = Decimal("0")

EVENT_KINDS = {
    EquityType.RSU: "RSU Vest",
    EquityType.ESPP: "ESPP Purchase",
}


class QuarterlyTaxAggregator:
    """Computes per-period estimated tax and payment shortfalls."""

    def __init__(self, generator: VestingScheduleGenerator | None = None):
        self.generator = generator or VestingScheduleGenerator()

    def aggregate_quarterly_tax(
        self,
        grants: list[Grant],
        client: Client,
        planned_exercises: list[PlannedExercise],
        amt_room: Decimal,
        rates: TaxRates,
        year: int,
        as_of: date,
    ) -> list[QuarterlyBreakdown]:
        buckets = [
            QuarterlyBreakdown(
                quarter=label,
                due_date=due,
                months=list(months),
                is_past=self._is_past(months, year, as_of),
            )
            for label, due, months in ESTIMATED_PAYMENT_QUARTERS
        ]

        for grant in grants:
            for event in self.generator.generate_vesting_schedule(grant, client, as_of):
                if event.date.year != year:
                    continue
                bucket = self._bucket_for(buckets, event.date)
                if grant.type in EVENT_KINDS:
                    bucket.vesting_income += event.gross_value
                    bucket.withholding_credit += event.withholding_amount
                    bucket.events.append(
                        QuarterlyEvent(
                            date=event.date, kind=EVENT_KINDS[grant.type], amount=event.gross_value
                        )
                    )
                elif grant.type == EquityType.ISO and event.amt_exposure > 0:
                    # Vesting creates no income; listed as exercisable spread only
                    bucket.events.append(
                        QuarterlyEvent(
                            date=event.date, kind="ISO Vest (potential)", amount=event.amt_exposure
                        )
                    )

        for exercise in planned_exercises:
            if exercise.type != EquityType.ISO or exercise.exercise_date.year != year:
                continue
            bucket = self._bucket_for(buckets, exercise.exercise_date)
            bucket.iso_spread += exercise.amt_exposure
            bucket.events.append(
                QuarterlyEvent(
                    date=exercise.exercise_date, kind="ISO Exercise", amount=exercise.amt_exposure
                )
            )

        ordinary_with_niit = rates.ordinary_rate + rates.niit_rate
        for bucket in buckets:
            # AMT approximation is applied per period, not against the annual room
            amt_excess = max(bucket.iso_spread - amt_room, ZERO)
            # ISO spread is an AMT preference item, not ordinary income
            bucket.total_income = bucket.vesting_income
            bucket.estimated_tax = bucket.vesting_income * ordinary_with_niit + amt_excess * AMT_FLAT_RATE
            bucket.payment_due = max(bucket.estimated_tax - bucket.withholding_credit, ZERO)
            bucket.events.sort(key=lambda e: e.date)

        return buckets

    def quarterly_totals(self, buckets: list[QuarterlyBreakdown]) -> QuarterlyTotals:
        return QuarterlyTotals(
            total_income=sum((b.vesting_income for b in buckets), ZERO),
            total_iso_spread=sum((b.iso_spread for b in buckets), ZERO),
            total_tax=sum((b.estimated_tax for b in buckets), ZERO),
            total_withholding=sum((b.withholding_credit for b in buckets), ZERO),
            total_payments=sum((b.payment_due for b in buckets), ZERO),
            upcoming_payments=sum((b.payment_due for b in buckets if not b.is_past), ZERO),
        )

    @staticmethod
    def _bucket_for(buckets: list[QuarterlyBreakdown], day: date) -> QuarterlyBreakdown:
        for bucket in buckets:
            if day.month in bucket.months:
                return bucket
        raise ValueError(f"No estimated-payment period for month {day.month}")

    @staticmethod
    def _is_past(months: tuple[int, int, int], year: int, as_of: date) -> bool:
        if year < as_of.year:
            return True
        if year > as_of.year:
            return False
        return months[-1] < as_of.month
