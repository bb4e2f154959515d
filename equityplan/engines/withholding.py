"""RSU withholding gap analysis.

Compares the elected supplemental withholding on a year's RSU vests with the
client's actual marginal liability.
"""

from datetime import date
from decimal import Decimal

from equityplan.engines.brackets import DEFAULT_WITHHOLDING_RATE
from equityplan.engines.vesting import VestingScheduleGenerator
from equityplan.models.client import Client, Grant
from equityplan.models.enums import EquityType
from equityplan.models.results import GrantWithholding, TaxRates, WithholdingAnalysis

ZERO = Decimal("0")
HUNDRED = Decimal("100")
QUARTERS = Decimal("4")


class WithholdingAnalyzer:
    def __init__(self, generator: VestingScheduleGenerator | None = None):
        self.generator = generator or VestingScheduleGenerator()

    def analyze_withholding(
        self,
        grants: list[Grant],
        client: Client,
        rates: TaxRates,
        year: int,
        as_of: date,
        default_rate: Decimal = DEFAULT_WITHHOLDING_RATE,
    ) -> WithholdingAnalysis:
        """Per-grant and total withholding gaps for RSU vests in ``year``.

        ``default_rate`` (percent) applies to grants without an elected rate.
        Grants with nothing vesting in the year are left out of the per-grant
        list.
        """
        actual_rate = rates.vesting_rate
        analysis = WithholdingAnalysis(year=year)

        for grant in grants:
            if grant.type != EquityType.RSU:
                continue
            vesting_value = sum(
                (
                    e.gross_value
                    for e in self.generator.generate_vesting_schedule(grant, client, as_of)
                    if e.date.year == year
                ),
                ZERO,
            )
            elected_rate = (
                grant.withholding_rate if grant.withholding_rate is not None else default_rate
            )
            withholding = vesting_value * elected_rate / HUNDRED
            actual_tax = vesting_value * actual_rate
            gap = actual_tax - withholding

            analysis.total_vesting_value += vesting_value
            analysis.total_withholding += withholding
            analysis.total_actual_tax += actual_tax

            if vesting_value > 0:
                analysis.grants.append(
                    GrantWithholding(
                        grant_id=grant.id,
                        ticker=grant.ticker,
                        total_vesting_value=vesting_value,
                        elected_withholding=withholding,
                        elected_rate=elected_rate,
                        actual_tax_liability=actual_tax,
                        actual_rate=actual_rate * HUNDRED,
                        gap=gap,
                        gap_percent=gap / vesting_value * HUNDRED,
                        recommended_supplemental=max(gap, ZERO),
                        quarterly_payment=max(gap / QUARTERS, ZERO),
                    )
                )

        analysis.total_gap = analysis.total_actual_tax - analysis.total_withholding
        if analysis.total_vesting_value > 0:
            analysis.effective_withholding_rate = (
                analysis.total_withholding / analysis.total_vesting_value * HUNDRED
            )
            analysis.effective_tax_rate = (
                analysis.total_actual_tax / analysis.total_vesting_value * HUNDRED
            )
        analysis.quarterly_payment = max(analysis.total_gap / QUARTERS, ZERO)
        return analysis
