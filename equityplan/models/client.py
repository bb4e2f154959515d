"""Client, grant, exercise and sale records.

Field names serialize to the camelCase keys used by the persisted JSON
records (``totalShares``, ``vestingSchedule``, ``customAmtSafeHarbor``...).
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from equityplan.models.enums import (
    EquityType,
    FilingStatus,
    PriceSource,
    VestingSchedule,
)


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase record keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CustomVestingDate(CamelModel):
    date: date
    shares: Decimal = Field(ge=0)


class VestingPrice(CamelModel):
    """Recorded price on a historical vest date."""

    id: str
    grant_id: str
    vest_date: date
    price_at_vest: Decimal = Field(ge=0)
    shares_vested: Decimal = Field(default=Decimal("0"), ge=0)
    source: PriceSource = PriceSource.MANUAL


class StockSale(CamelModel):
    id: str
    grant_id: str
    sale_date: date
    shares_sold: Decimal = Field(gt=0)
    sale_price: Decimal = Field(ge=0)
    total_proceeds: Decimal
    reason: str = ""
    notes: str | None = None
    created_at: str | None = None


class PlannedExercise(CamelModel):
    """An ISO exercise scheduled by the advisor."""

    id: str
    grant_id: str
    grant_ticker: str = ""
    shares: Decimal = Field(ge=0)
    exercise_date: date
    exercise_price: Decimal = Field(ge=0)
    fmv_at_exercise: Decimal = Field(ge=0)
    type: EquityType = EquityType.ISO
    amt_exposure: Decimal = Decimal("0")
    estimated_cost: Decimal = Decimal("0")


class Grant(CamelModel):
    id: str
    type: EquityType
    ticker: str = ""
    company_name: str = ""
    current_price: Decimal = Field(ge=0)
    grant_price: Decimal | None = None
    strike_price: Decimal | None = None
    grant_date: date
    total_shares: Decimal = Field(gt=0)
    vesting_schedule: VestingSchedule = VestingSchedule.STANDARD_4Y_1Y_CLIFF
    custom_vesting_dates: list[CustomVestingDate] | None = None
    withholding_rate: Decimal | None = Field(default=None, ge=0, le=100)

    # Display-only overrides for holdings summaries
    custom_held_shares: Decimal | None = None
    average_cost_basis: Decimal | None = None

    external_grant_id: str | None = None

    espp_discount_percent: Decimal | None = None
    espp_purchase_price: Decimal | None = None
    espp_offering_start_date: date | None = None
    espp_offering_end_date: date | None = None
    espp_fmv_at_offering_start: Decimal | None = None
    espp_fmv_at_purchase: Decimal | None = None

    plan_notes: str | None = None
    sales: list[StockSale] = Field(default_factory=list)
    vesting_prices: list[VestingPrice] = Field(default_factory=list)
    last_updated: str | None = None

    @property
    def is_option(self) -> bool:
        return self.type in (EquityType.ISO, EquityType.NSO)

    @property
    def spread_per_share(self) -> Decimal:
        """Intrinsic value per option share, never negative."""
        return max(self.current_price - (self.strike_price or Decimal("0")), Decimal("0"))


class Client(CamelModel):
    id: str
    name: str
    state: str = ""
    filing_status: FilingStatus = FilingStatus.SINGLE
    tax_bracket: Decimal = Field(gt=0, le=100)
    estimated_income: Decimal | None = None
    custom_state_tax_rate: Decimal | None = None
    custom_ltcg_tax_rate: Decimal | None = None
    custom_amt_safe_harbor: Decimal | None = None
    grants: list[Grant] = Field(default_factory=list)
    planned_exercises: list[PlannedExercise] = Field(default_factory=list)

    def get_grant(self, grant_id: str) -> Grant | None:
        for grant in self.grants:
            if grant.id == grant_id:
                return grant
        return None
