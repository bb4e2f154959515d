"""Qualifying vs. disqualifying disposition engine for ISO and ESPP positions.

ISO holding test: sale at least 2 years after grant and 1 year after exercise.
ESPP holding test: sale at least 2 years after offering start and 1 year after
purchase. See IRS Pub. 525.
"""

from datetime import date
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from equityplan.engines.brackets import DEFAULT_ESPP_DISCOUNT, ESPP_DEFAULT_OFFERING_MONTHS
from equityplan.models.client import Grant
from equityplan.models.enums import DispositionType, EquityType
from equityplan.models.results import (
    ESPPQualification,
    ISOQualification,
    ISOScenario,
    ISOScenarioTaxes,
    TaxRates,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class DispositionQualificationEngine:
    """Computes qualifying dates and tax splits for ISO and ESPP grants."""

    def compute_disposition_qualification(
        self, grant: Grant, rates: TaxRates, as_of: date
    ) -> ESPPQualification | ISOQualification | None:
        """Dispatch on grant type. RSU and NSO have no qualifying disposition."""
        if grant.type == EquityType.ESPP:
            return self.compute_espp_qualification(grant, rates, as_of)
        if grant.type == EquityType.ISO:
            return self.compute_iso_qualification(grant.grant_date, as_of, as_of)
        return None

    def compute_espp_qualification(
        self, grant: Grant, rates: TaxRates, as_of: date
    ) -> ESPPQualification:
        purchase_date = grant.grant_date
        offering_start = grant.espp_offering_start_date or (
            purchase_date - relativedelta(months=ESPP_DEFAULT_OFFERING_MONTHS)
        )
        qualifying_date = max(
            offering_start + relativedelta(years=2),
            purchase_date + relativedelta(years=1),
        )

        shares = grant.total_shares
        purchase_price = grant.espp_purchase_price or grant.grant_price or ZERO
        fmv_at_purchase = grant.espp_fmv_at_purchase or grant.current_price
        fmv_at_offering = grant.espp_fmv_at_offering_start or fmv_at_purchase
        discount = (
            grant.espp_discount_percent
            if grant.espp_discount_percent is not None
            else DEFAULT_ESPP_DISCOUNT
        )
        total_gain = (grant.current_price - purchase_price) * shares

        # Disqualifying: bargain element at purchase is ordinary income
        disq_ordinary = (fmv_at_purchase - purchase_price) * shares
        disq_capital = max((grant.current_price - fmv_at_purchase) * shares, ZERO)
        disq_tax = disq_ordinary * rates.ordinary_rate + disq_capital * rates.ltcg_rate

        # Qualifying: ordinary income limited to the offering discount.
        # Capital gain is not floored here.
        qual_ordinary = min(fmv_at_purchase, fmv_at_offering) * (discount / HUNDRED) * shares
        qual_capital = total_gain - qual_ordinary
        qual_tax = qual_ordinary * rates.ordinary_rate + qual_capital * rates.ltcg_rate

        return ESPPQualification(
            grant_id=grant.id,
            company_name=grant.company_name,
            ticker=grant.ticker,
            purchase_date=purchase_date,
            offering_start_date=offering_start,
            shares=shares,
            purchase_price=purchase_price,
            fmv_at_purchase=fmv_at_purchase,
            fmv_at_offering_start=fmv_at_offering,
            current_price=grant.current_price,
            discount_percent=discount,
            qualifying_date=qualifying_date,
            is_qualified=as_of >= qualifying_date,
            days_remaining=max((qualifying_date - as_of).days, 0),
            progress_percent=self._progress(purchase_date, qualifying_date, as_of),
            total_gain=total_gain,
            disqualified_ordinary_income=disq_ordinary,
            disqualified_capital_gain=disq_capital,
            disqualified_tax=disq_tax,
            qualified_ordinary_income=qual_ordinary,
            qualified_capital_gain=qual_capital,
            qualified_tax=qual_tax,
            tax_savings=disq_tax - qual_tax,
        )

    def compute_iso_qualification(
        self, grant_date: date, exercise_date: date | None, as_of: date
    ) -> ISOQualification:
        """Qualifying date for ISO shares. Unexercised shares assume exercise on ``as_of``."""
        exercise_date = exercise_date or as_of
        qualifying_date = max(
            grant_date + relativedelta(years=2),
            exercise_date + relativedelta(years=1),
        )
        return ISOQualification(
            grant_date=grant_date,
            exercise_date=exercise_date,
            qualifying_date=qualifying_date,
            is_qualified=as_of >= qualifying_date,
            days_remaining=max((qualifying_date - as_of).days, 0),
        )

    def compute_iso_scenario(
        self,
        grant: Grant,
        rates: TaxRates,
        shares: Decimal,
        fmv_at_exercise: Decimal,
        sale_price: Decimal,
        qualifying: bool,
    ) -> ISOScenario:
        """Tax outcome of exercising and selling ``shares`` at ``sale_price``.

        Disqualifying: exercise spread is ordinary income and later movement is
        short-term gain or loss at ordinary rates. Qualifying: the whole gain
        over strike is long-term. The exercise spread is an AMT preference item
        either way.
        """
        strike = grant.strike_price or ZERO
        spread = (fmv_at_exercise - strike) * shares
        amt_preference = max(spread, ZERO)

        if qualifying:
            ordinary = ZERO
            capital = (sale_price - strike) * shares
            fed_rate = rates.fed_ltcg_rate
            taxable = capital
        else:
            ordinary = spread
            capital = (sale_price - fmv_at_exercise) * shares
            fed_rate = rates.federal_rate
            taxable = ordinary + capital

        taxable = max(taxable, ZERO)
        fed_amount = taxable * fed_rate
        state_amount = taxable * rates.state_rate
        niit_amount = taxable * rates.niit_rate
        total_tax = fed_amount + state_amount + niit_amount

        return ISOScenario(
            name="Qualifying Disposition" if qualifying else "Disqualifying Disposition",
            description=(
                "Hold 1+ year after exercise and 2+ years after grant"
                if qualifying
                else "Sell before the holding periods are met"
            ),
            disposition_type=(
                DispositionType.QUALIFYING if qualifying else DispositionType.DISQUALIFYING
            ),
            shares=shares,
            strike_price=strike,
            fmv_at_exercise=fmv_at_exercise,
            sale_price=sale_price,
            ordinary_income=ordinary,
            capital_gain=capital,
            amt_preference=amt_preference,
            taxes=ISOScenarioTaxes(
                fed_rate=fed_rate,
                fed_amount=fed_amount,
                niit_rate=rates.niit_rate,
                niit_amount=niit_amount,
                state_rate=rates.state_rate,
                state_amount=state_amount,
                total_tax=total_tax,
            ),
            net_profit=(sale_price - strike) * shares - total_tax,
        )

    @staticmethod
    def _progress(start: date, end: date, as_of: date) -> Decimal:
        total_days = (end - start).days
        if total_days <= 0:
            return HUNDRED
        pct = Decimal((as_of - start).days) / Decimal(total_days) * HUNDRED
        return min(max(pct, ZERO), HUNDRED)
