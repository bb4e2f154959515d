"""Vesting schedule expansion.

Turns a grant's schedule policy into dated vesting events with value,
withholding and tax-gap figures. Output depends only on the inputs and the
injected evaluation date.
"""

from datetime import date
from decimal import ROUND_CEILING, Decimal

from dateutil.relativedelta import relativedelta

from equityplan.engines.brackets import DEFAULT_WITHHOLDING_RATE
from equityplan.engines.rates import RateResolver
from equityplan.models.client import Client, Grant
from equityplan.models.enums import EquityType, VestingSchedule
from equityplan.models.results import (
    AggregatedVestingEvent,
    TaxBreakdown,
    TaxRates,
    VestingEvent,
)

ZERO = Decimal("0")

# (months after grant, fraction of total shares)
CLIFF_TRANCHES: list[tuple[int, Decimal]] = [(12, Decimal("0.25"))] + [
    (months, Decimal("1") / Decimal("16")) for months in range(15, 49, 3)
]
QUARTERLY_TRANCHES: list[tuple[int, Decimal]] = [
    (months, Decimal("1") / Decimal("16")) for months in range(3, 49, 3)
]


class VestingScheduleGenerator:
    """Expands grants into ordered vesting events."""

    def __init__(self, rate_resolver: RateResolver | None = None):
        self.rate_resolver = rate_resolver or RateResolver()

    def generate_vesting_schedule(
        self, grant: Grant, client: Client, as_of: date
    ) -> list[VestingEvent]:
        rates = self.rate_resolver.resolve_rates(client)
        events = [
            self._build_event(grant, vest_date, shares, rates, as_of)
            for vest_date, shares in self.vesting_tranches(grant)
        ]
        events.sort(key=lambda e: e.date)
        return events

    def vesting_tranches(self, grant: Grant) -> list[tuple[date, Decimal]]:
        """Dates and share counts of each vest, before pricing."""
        total = grant.total_shares
        schedule = grant.vesting_schedule

        if schedule == VestingSchedule.STANDARD_4Y_1Y_CLIFF:
            return self._from_tranches(grant.grant_date, total, CLIFF_TRANCHES)
        if schedule == VestingSchedule.STANDARD_4Y_QUARTERLY:
            return self._from_tranches(grant.grant_date, total, QUARTERLY_TRANCHES)
        if schedule == VestingSchedule.IMMEDIATE:
            return [(grant.grant_date, total)]
        # Custom dates are used as-is, without normalizing to total_shares
        custom = sorted(grant.custom_vesting_dates or [], key=lambda c: c.date)
        return [(c.date, c.shares) for c in custom]

    def upcoming_events(
        self, events: list[VestingEvent], as_of: date, months: int = 12
    ) -> list[VestingEvent]:
        """Future events vesting within ``months`` of ``as_of``."""
        horizon = as_of + relativedelta(months=months)
        return [e for e in events if as_of < e.date <= horizon]

    def aggregate_vesting_events(
        self, clients: list[Client], as_of: date
    ) -> list[AggregatedVestingEvent]:
        """Every client's events, tagged with the owning client, in date order."""
        aggregated: list[AggregatedVestingEvent] = []
        for client in clients:
            for grant in client.grants:
                for event in self.generate_vesting_schedule(grant, client, as_of):
                    aggregated.append(
                        AggregatedVestingEvent(
                            **event.model_dump(),
                            client_id=client.id,
                            client_name=client.name,
                        )
                    )
        aggregated.sort(key=lambda e: (e.date, e.client_name, e.grant_id))
        return aggregated

    @staticmethod
    def _from_tranches(
        grant_date: date, total: Decimal, tranches: list[tuple[int, Decimal]]
    ) -> list[tuple[date, Decimal]]:
        return [
            (grant_date + relativedelta(months=months), total * fraction)
            for months, fraction in tranches
        ]

    def _build_event(
        self,
        grant: Grant,
        vest_date: date,
        shares: Decimal,
        rates: TaxRates,
        as_of: date,
    ) -> VestingEvent:
        price = self.price_at_vest(grant, vest_date)
        gross = shares * price
        common = {
            "grant_id": grant.id,
            "grant_type": grant.type,
            "ticker": grant.ticker,
            "company_name": grant.company_name,
            "external_grant_id": grant.external_grant_id,
            "date": vest_date,
            "shares": shares,
            "price_at_vest": price,
            "gross_value": gross,
            "is_past": vest_date <= as_of,
        }

        if grant.type in (EquityType.RSU, EquityType.ESPP):
            rate = (
                grant.withholding_rate
                if grant.withholding_rate is not None
                else DEFAULT_WITHHOLDING_RATE
            )
            withholding = gross * rate / Decimal("100")
            sold_to_cover = ZERO
            if price > 0:
                sold_to_cover = (withholding / price).to_integral_value(rounding=ROUND_CEILING)
            net_shares = shares - sold_to_cover
            breakdown = TaxBreakdown(
                fed=gross * rates.federal_rate,
                state=gross * rates.state_rate,
                niit=gross * rates.niit_rate,
                total_liability=gross * rates.vesting_rate,
            )
            return VestingEvent(
                **common,
                withholding_amount=withholding,
                elected_withholding_rate=rate,
                net_shares=net_shares,
                net_value=net_shares * price,
                shares_sold_to_cover=sold_to_cover,
                tax_gap=breakdown.total_liability - withholding,
                tax_breakdown=breakdown,
            )

        # Options: no withholding at vest, tax arises at exercise or sale
        amt_exposure = ZERO
        if grant.type == EquityType.ISO:
            strike = grant.strike_price or ZERO
            amt_exposure = max(price - strike, ZERO) * shares
        return VestingEvent(
            **common,
            net_shares=shares,
            net_value=gross,
            amt_exposure=amt_exposure,
        )

    @staticmethod
    def price_at_vest(grant: Grant, vest_date: date) -> Decimal:
        """Recorded price for the vest date, falling back to the current price."""
        for recorded in grant.vesting_prices:
            if recorded.vest_date == vest_date:
                return recorded.price_at_vest
        return grant.current_price
