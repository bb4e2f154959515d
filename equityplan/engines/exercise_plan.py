"""Multi-year ISO exercise planning within the annual AMT safe harbor.

Assumes a constant per-share spread and constant AMT room across the horizon.
This is a planning simplification, not a price forecast.
"""

import logging
import uuid
from datetime import date
from decimal import ROUND_FLOOR, Decimal

from equityplan.engines.brackets import MAX_PLANNING_YEARS, MIN_PLANNING_YEARS
from equityplan.exceptions import DataValidationError
from equityplan.models.client import Grant, PlannedExercise
from equityplan.models.enums import EquityType, ExerciseStrategy
from equityplan.models.results import ExercisePlan, GrantStatus, TaxRates, YearPlan

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class MultiYearExerciseOptimizer:
    """Greedily spreads ISO exercises across years, filling AMT room first."""

    def plan_multi_year_exercise(
        self,
        grant: Grant,
        status: GrantStatus,
        amt_room: Decimal,
        rates: TaxRates,
        years: int,
        start_year: int,
    ) -> ExercisePlan:
        """Allocate ``status.available`` shares over ``years`` starting at ``start_year``.

        Args:
            grant: The ISO grant to plan.
            status: Current status of the grant; only ``available`` is used.
            amt_room: Annual AMT safe harbor in dollars of spread.
            rates: Resolved client rates.
            years: Planning horizon, clamped to 2-5.
            start_year: First calendar year of the plan.

        Returns:
            ExercisePlan with one YearPlan per year that receives shares.
            Unallocated shares are reported in ``remaining_shares``.
        """
        years = min(max(years, MIN_PLANNING_YEARS), MAX_PLANNING_YEARS)
        strike = grant.strike_price or ZERO
        spread = grant.spread_per_share
        max_per_year = self.max_safe_shares_per_year(amt_room, spread)
        savings_rate = rates.ordinary_rate - rates.ltcg_rate

        remaining = status.available
        year_plans: list[YearPlan] = []
        for year in range(start_year, start_year + years):
            if remaining <= 0 or max_per_year <= 0:
                break
            shares = min(remaining, max_per_year)
            year_spread = shares * spread
            year_plans.append(
                YearPlan(
                    year=year,
                    amt_room=amt_room,
                    planned_shares=shares,
                    planned_spread=year_spread,
                    amt_used=year_spread,
                    amt_remaining=max(amt_room - year_spread, ZERO),
                    exercise_cost=shares * strike,
                    potential_tax_savings=year_spread * savings_rate,
                )
            )
            remaining -= shares

        if remaining > 0:
            logger.debug(
                "Grant %s: %s shares left after %d-year horizon", grant.id, remaining, years
            )

        return ExercisePlan(
            grant_id=grant.id,
            spread_per_share=spread,
            max_safe_shares_per_year=max_per_year,
            year_plans=year_plans,
            total_savings=sum((yp.potential_tax_savings for yp in year_plans), ZERO),
            single_year_tax=status.available * spread * rates.ordinary_rate,
            max_tax_savings=status.available * spread * savings_rate,
            remaining_shares=remaining,
        )

    @staticmethod
    def max_safe_shares_per_year(amt_room: Decimal, spread_per_share: Decimal) -> Decimal:
        if spread_per_share <= 0:
            return ZERO
        return (amt_room / spread_per_share).to_integral_value(rounding=ROUND_FLOOR)

    def build_planned_exercise(
        self,
        grant: Grant,
        shares: Decimal,
        status: GrantStatus,
        exercise_date: date,
        strategy: ExerciseStrategy = ExerciseStrategy.BUY_HOLD,
    ) -> PlannedExercise:
        """Validate and build a planned exercise record for an ISO grant."""
        if grant.type != EquityType.ISO:
            raise DataValidationError("grant", f"{grant.id} is a {grant.type} grant, not ISO")
        if shares <= 0:
            raise DataValidationError("shares", "must be greater than 0")
        if shares > status.available:
            raise DataValidationError(
                "shares", f"{shares} exceeds {status.available} available shares"
            )

        strike = grant.strike_price or ZERO
        # A cashless exercise sells immediately, so no spread is carried into AMT
        amt_exposure = ZERO
        if strategy == ExerciseStrategy.BUY_HOLD:
            amt_exposure = grant.spread_per_share * shares

        return PlannedExercise(
            id=uuid.uuid4().hex,
            grant_id=grant.id,
            grant_ticker=grant.ticker,
            shares=shares,
            exercise_date=exercise_date,
            exercise_price=strike,
            fmv_at_exercise=grant.current_price,
            amt_exposure=amt_exposure,
            estimated_cost=shares * strike,
        )
