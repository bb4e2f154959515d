"""Derived engine output models. Recomputed per request, never persisted."""

from datetime import date
from decimal import Decimal

from pydantic import Field

from equityplan.models.client import CamelModel
from equityplan.models.enums import DispositionType, EquityType, RiskLevel


class TaxRates(CamelModel):
    """Effective rates for a client, all expressed as fractions."""

    federal_rate: Decimal
    state_rate: Decimal
    fed_ltcg_rate: Decimal
    niit_rate: Decimal

    @property
    def ordinary_rate(self) -> Decimal:
        return self.federal_rate + self.state_rate

    @property
    def ltcg_rate(self) -> Decimal:
        return self.fed_ltcg_rate + self.state_rate + self.niit_rate

    @property
    def vesting_rate(self) -> Decimal:
        """Combined ordinary + state + NIIT rate applied to vest income."""
        return self.ordinary_rate + self.niit_rate


class TaxBreakdown(CamelModel):
    fed: Decimal = Decimal("0")
    state: Decimal = Decimal("0")
    niit: Decimal = Decimal("0")
    total_liability: Decimal = Decimal("0")


class VestingEvent(CamelModel):
    grant_id: str
    grant_type: EquityType
    ticker: str
    company_name: str
    external_grant_id: str | None = None
    date: date
    shares: Decimal
    price_at_vest: Decimal
    gross_value: Decimal
    withholding_amount: Decimal = Decimal("0")
    elected_withholding_rate: Decimal = Decimal("0")
    net_shares: Decimal
    net_value: Decimal
    shares_sold_to_cover: Decimal = Decimal("0")
    tax_gap: Decimal = Decimal("0")
    amt_exposure: Decimal = Decimal("0")
    tax_breakdown: TaxBreakdown = Field(default_factory=TaxBreakdown)
    is_past: bool


class AggregatedVestingEvent(VestingEvent):
    client_id: str
    client_name: str


class GrantStatus(CamelModel):
    total: Decimal
    vested_total: Decimal
    unvested: Decimal
    available: Decimal

    @property
    def label(self) -> str:
        if self.vested_total >= self.total:
            return "Fully Vested"
        if self.vested_total > 0:
            return "Partially Vested"
        return "Not Vested"


class HoldingsSummary(CamelModel):
    grant_id: str
    shares_held: Decimal
    current_value: Decimal
    short_term_shares: Decimal
    long_term_shares: Decimal
    unrealized_gain: Decimal | None = None
    is_override: bool = False


class AMTUsage(CamelModel):
    year: int
    room: Decimal
    used: Decimal
    remaining: Decimal

    @property
    def is_exceeded(self) -> bool:
        return self.used > self.room


class ESPPQualification(CamelModel):
    grant_id: str
    company_name: str
    ticker: str
    purchase_date: date
    offering_start_date: date
    shares: Decimal
    purchase_price: Decimal
    fmv_at_purchase: Decimal
    fmv_at_offering_start: Decimal
    current_price: Decimal
    discount_percent: Decimal
    qualifying_date: date
    is_qualified: bool
    days_remaining: int
    progress_percent: Decimal
    total_gain: Decimal
    disqualified_ordinary_income: Decimal
    disqualified_capital_gain: Decimal
    disqualified_tax: Decimal
    qualified_ordinary_income: Decimal
    qualified_capital_gain: Decimal
    qualified_tax: Decimal
    tax_savings: Decimal


class ISOQualification(CamelModel):
    grant_date: date
    exercise_date: date
    qualifying_date: date
    is_qualified: bool
    days_remaining: int


class ISOScenarioTaxes(CamelModel):
    fed_rate: Decimal
    fed_amount: Decimal
    niit_rate: Decimal
    niit_amount: Decimal
    state_rate: Decimal
    state_amount: Decimal
    total_tax: Decimal


class ISOScenario(CamelModel):
    name: str
    description: str
    disposition_type: DispositionType
    shares: Decimal
    strike_price: Decimal
    fmv_at_exercise: Decimal
    sale_price: Decimal
    ordinary_income: Decimal
    capital_gain: Decimal
    amt_preference: Decimal
    taxes: ISOScenarioTaxes
    net_profit: Decimal


class BreakevenScenario(CamelModel):
    price_decline: Decimal
    stock_price: Decimal
    sell_now_net: Decimal
    hold_net: Decimal
    difference: Decimal

    @property
    def label(self) -> str:
        return f"-{self.price_decline}%"


class BreakevenAnalysis(CamelModel):
    shares: Decimal
    breakeven_price: Decimal
    breakeven_decline: Decimal
    tax_savings_at_current: Decimal
    scenarios: list[BreakevenScenario] = Field(default_factory=list)


class YearPlan(CamelModel):
    year: int
    amt_room: Decimal
    planned_shares: Decimal
    planned_spread: Decimal
    amt_used: Decimal
    amt_remaining: Decimal
    exercise_cost: Decimal
    potential_tax_savings: Decimal


class ExercisePlan(CamelModel):
    grant_id: str | None = None
    spread_per_share: Decimal = Decimal("0")
    max_safe_shares_per_year: Decimal = Decimal("0")
    year_plans: list[YearPlan] = Field(default_factory=list)
    total_savings: Decimal = Decimal("0")
    single_year_tax: Decimal = Decimal("0")
    max_tax_savings: Decimal = Decimal("0")
    remaining_shares: Decimal = Decimal("0")

    @property
    def needs_longer_horizon(self) -> bool:
        """True when shares are left over after the planning horizon."""
        return self.remaining_shares > 0


class QuarterlyEvent(CamelModel):
    date: date
    kind: str
    amount: Decimal


class QuarterlyBreakdown(CamelModel):
    quarter: str
    due_date: str
    months: list[int]
    vesting_income: Decimal = Decimal("0")
    iso_spread: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    estimated_tax: Decimal = Decimal("0")
    withholding_credit: Decimal = Decimal("0")
    payment_due: Decimal = Decimal("0")
    is_past: bool = False
    events: list[QuarterlyEvent] = Field(default_factory=list)


class QuarterlyTotals(CamelModel):
    total_income: Decimal
    total_iso_spread: Decimal
    total_tax: Decimal
    total_withholding: Decimal
    total_payments: Decimal
    upcoming_payments: Decimal


class GrantWithholding(CamelModel):
    grant_id: str
    ticker: str
    total_vesting_value: Decimal
    elected_withholding: Decimal
    elected_rate: Decimal
    actual_tax_liability: Decimal
    actual_rate: Decimal
    gap: Decimal
    gap_percent: Decimal
    recommended_supplemental: Decimal
    quarterly_payment: Decimal

    @property
    def is_underpaid(self) -> bool:
        return self.gap > 0


class WithholdingAnalysis(CamelModel):
    year: int
    grants: list[GrantWithholding] = Field(default_factory=list)
    total_vesting_value: Decimal = Decimal("0")
    total_withholding: Decimal = Decimal("0")
    total_actual_tax: Decimal = Decimal("0")
    total_gap: Decimal = Decimal("0")
    effective_withholding_rate: Decimal = Decimal("0")
    effective_tax_rate: Decimal = Decimal("0")
    quarterly_payment: Decimal = Decimal("0")


class StockConcentration(CamelModel):
    ticker: str
    company_name: str
    total_value: Decimal
    shares: Decimal
    grant_types: list[EquityType]
    percentage: Decimal = Decimal("0")
    percent_of_equity: Decimal = Decimal("0")


class ConcentrationReport(CamelModel):
    concentrations: list[StockConcentration] = Field(default_factory=list)
    total_equity_value: Decimal = Decimal("0")
    other_investments: Decimal = Decimal("0")
    total_portfolio: Decimal = Decimal("0")
    max_concentration: Decimal = Decimal("0")
    equity_percent_of_net_worth: Decimal = Decimal("0")
    risk_level: RiskLevel = RiskLevel.LOW

    @property
    def largest_position(self) -> StockConcentration | None:
        return self.concentrations[0] if self.concentrations else None
