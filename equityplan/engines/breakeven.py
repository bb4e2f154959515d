"""ISO breakeven analysis: sell at exercise vs. hold for a qualifying disposition."""

from decimal import Decimal

from equityplan.engines.brackets import BREAKEVEN_DECLINE_STEPS
from equityplan.engines.disposition import DispositionQualificationEngine
from equityplan.models.client import Grant
from equityplan.models.results import BreakevenAnalysis, BreakevenScenario, TaxRates

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class BreakevenAnalyzer:
    """How far can the stock fall before holding stops beating a same-day sale?"""

    def __init__(self, disposition_engine: DispositionQualificationEngine | None = None):
        self.disposition_engine = disposition_engine or DispositionQualificationEngine()

    def analyze(self, grant: Grant, rates: TaxRates, shares: Decimal) -> BreakevenAnalysis:
        current = grant.current_price
        strike = grant.strike_price or ZERO
        spread = current - strike
        if shares <= 0 or spread <= 0:
            return BreakevenAnalysis(
                shares=shares,
                breakeven_price=ZERO,
                breakeven_decline=ZERO,
                tax_savings_at_current=ZERO,
            )

        sell_now = self.disposition_engine.compute_iso_scenario(
            grant, rates, shares, current, current, qualifying=False
        )
        hold = self.disposition_engine.compute_iso_scenario(
            grant, rates, shares, current, current, qualifying=True
        )

        # Same-day sale: whole spread at ordinary rates plus NIIT
        sell_now_net = spread * shares * (1 - rates.vesting_rate)
        hold_factor = 1 - rates.ltcg_rate

        if hold_factor > 0:
            breakeven_price = strike + sell_now_net / (shares * hold_factor)
            breakeven_price = min(max(breakeven_price, strike), current)
        else:
            breakeven_price = current
        breakeven_decline = (current - breakeven_price) / current * HUNDRED

        scenarios = []
        for decline in BREAKEVEN_DECLINE_STEPS:
            price = current * (1 - Decimal(decline) / HUNDRED)
            if price < strike:
                continue
            hold_net = max(price - strike, ZERO) * shares * hold_factor
            scenarios.append(
                BreakevenScenario(
                    price_decline=Decimal(decline),
                    stock_price=price,
                    sell_now_net=sell_now_net,
                    hold_net=hold_net,
                    difference=hold_net - sell_now_net,
                )
            )

        return BreakevenAnalysis(
            shares=shares,
            breakeven_price=breakeven_price,
            breakeven_decline=breakeven_decline,
            tax_savings_at_current=hold.net_profit - sell_now.net_profit,
            scenarios=scenarios,
        )
