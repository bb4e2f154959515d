"""Single-stock concentration risk across a client's grants."""

from datetime import date
from decimal import Decimal

from equityplan.engines.brackets import CONCENTRATION_RISK_THRESHOLDS
from equityplan.engines.status import GrantStatusResolver
from equityplan.models.client import Client
from equityplan.models.enums import RiskLevel
from equityplan.models.results import ConcentrationReport, StockConcentration

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class ConcentrationAnalyzer:
    def __init__(self, status_resolver: GrantStatusResolver | None = None):
        self.status_resolver = status_resolver or GrantStatusResolver()

    def analyze_concentration(
        self,
        client: Client,
        as_of: date,
        other_investments: Decimal = ZERO,
        net_worth: Decimal = ZERO,
    ) -> ConcentrationReport:
        """Group equity value by ticker and rate the largest position.

        Options count at intrinsic value on available shares. Stock counts
        held shares (``custom_held_shares`` when set, else vested shares) at
        the current price.
        """
        by_ticker: dict[str, StockConcentration] = {}
        for grant in client.grants:
            status = self.status_resolver.get_grant_status(grant, client.planned_exercises, as_of)
            if grant.is_option:
                shares = status.available
                value = grant.spread_per_share * shares
            else:
                shares = (
                    grant.custom_held_shares
                    if grant.custom_held_shares is not None
                    else status.vested_total
                )
                value = shares * grant.current_price

            entry = by_ticker.get(grant.ticker)
            if entry is None:
                by_ticker[grant.ticker] = StockConcentration(
                    ticker=grant.ticker,
                    company_name=grant.company_name,
                    total_value=value,
                    shares=shares,
                    grant_types=[grant.type],
                )
                continue
            entry.total_value += value
            entry.shares += shares
            if grant.type not in entry.grant_types:
                entry.grant_types.append(grant.type)

        total_equity = sum((c.total_value for c in by_ticker.values()), ZERO)
        total_portfolio = total_equity + other_investments
        concentrations = sorted(by_ticker.values(), key=lambda c: c.total_value, reverse=True)
        for c in concentrations:
            if total_portfolio > 0:
                c.percentage = c.total_value / total_portfolio * HUNDRED
            if total_equity > 0:
                c.percent_of_equity = c.total_value / total_equity * HUNDRED

        max_concentration = max((c.percentage for c in concentrations), default=ZERO)
        return ConcentrationReport(
            concentrations=concentrations,
            total_equity_value=total_equity,
            other_investments=other_investments,
            total_portfolio=total_portfolio,
            max_concentration=max_concentration,
            equity_percent_of_net_worth=(
                total_equity / net_worth * HUNDRED if net_worth > 0 else ZERO
            ),
            risk_level=self.risk_level(max_concentration),
        )

    @staticmethod
    def risk_level(max_concentration: Decimal) -> RiskLevel:
        for threshold, level in CONCENTRATION_RISK_THRESHOLDS:
            if max_concentration >= threshold:
                return level
        return RiskLevel.LOW
