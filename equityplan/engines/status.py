"""Grant status and holdings.

Status (vested/unvested/available) is driven only by the vesting timeline and
planned exercises. Holdings summaries additionally honor the display
overrides ``custom_held_shares`` and ``average_cost_basis``.
"""

from datetime import date
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from equityplan.engines.vesting import VestingScheduleGenerator
from equityplan.models.client import Client, Grant, PlannedExercise
from equityplan.models.results import GrantStatus, HoldingsSummary

ZERO = Decimal("0")


class GrantStatusResolver:
    """Reduces a grant's timeline and planned exercises to share counts."""

    def __init__(self, generator: VestingScheduleGenerator | None = None):
        self.generator = generator or VestingScheduleGenerator()

    def get_grant_status(
        self,
        grant: Grant,
        planned_exercises: list[PlannedExercise],
        as_of: date,
    ) -> GrantStatus:
        vested_total = sum(
            (shares for vest_date, shares in self.generator.vesting_tranches(grant)
             if vest_date <= as_of),
            ZERO,
        )
        planned = sum(
            (pe.shares for pe in planned_exercises if pe.grant_id == grant.id),
            ZERO,
        )
        return GrantStatus(
            total=grant.total_shares,
            vested_total=vested_total,
            unvested=grant.total_shares - vested_total,
            available=max(vested_total - planned, ZERO),
        )


class HoldingsCalculator:
    """Computes held shares, value and short/long-term split for a grant."""

    def __init__(self, generator: VestingScheduleGenerator | None = None):
        self.generator = generator or VestingScheduleGenerator()

    def compute_holdings(self, grant: Grant, client: Client, as_of: date) -> HoldingsSummary:
        events = [e for e in self.generator.generate_vesting_schedule(grant, client, as_of) if e.is_past]
        long_term_cutoff = as_of - relativedelta(years=1)

        if grant.custom_held_shares is not None:
            held = grant.custom_held_shares
            # FIFO: the oldest vests account for the held shares first
            long_term = short_term = ZERO
            remaining = held
            for event in events:
                if remaining <= 0:
                    break
                take = min(event.shares, remaining)
                if event.date < long_term_cutoff:
                    long_term += take
                else:
                    short_term += take
                remaining -= take
            short_term += max(remaining, ZERO)

            unrealized = None
            if grant.average_cost_basis is not None:
                unrealized = (grant.current_price - grant.average_cost_basis) * held
            return HoldingsSummary(
                grant_id=grant.id,
                shares_held=held,
                current_value=held * grant.current_price,
                short_term_shares=short_term,
                long_term_shares=long_term,
                unrealized_gain=unrealized,
                is_override=True,
            )

        lots = [[e.date, e.net_shares, e.price_at_vest] for e in events]
        sold = sum((s.shares_sold for s in grant.sales if s.sale_date <= as_of), ZERO)
        # Recorded sales come out of the newest lots first
        for lot in reversed(lots):
            if sold <= 0:
                break
            take = min(lot[1], sold)
            lot[1] -= take
            sold -= take

        held = sum((lot[1] for lot in lots), ZERO)
        long_term = sum((lot[1] for lot in lots if lot[0] < long_term_cutoff), ZERO)
        basis = sum((lot[1] * lot[2] for lot in lots), ZERO)
        # Vest-date FMV is the cost basis for stock; options have none until exercise
        unrealized = None if grant.is_option else held * grant.current_price - basis
        return HoldingsSummary(
            grant_id=grant.id,
            shares_held=held,
            current_value=held * grant.current_price,
            short_term_shares=held - long_term,
            long_term_shares=long_term,
            unrealized_gain=unrealized,
        )
