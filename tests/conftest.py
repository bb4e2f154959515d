"""Shared test fixtures for the equity planning engine."""

from datetime import date
from decimal import Decimal

import pytest

from equityplan.engines.rates import RateResolver
from equityplan.models.client import Client, Grant
from equityplan.models.enums import EquityType, FilingStatus, VestingSchedule
from equityplan.models.results import TaxRates


@pytest.fixture
def rsu_grant() -> Grant:
    return Grant(
        id="g-rsu",
        type=EquityType.RSU,
        ticker="ACME",
        company_name="Acme Corp",
        current_price=Decimal("100"),
        grant_date=date(2023, 1, 15),
        total_shares=Decimal("4800"),
        vesting_schedule=VestingSchedule.STANDARD_4Y_1Y_CLIFF,
        withholding_rate=Decimal("22"),
    )


@pytest.fixture
def iso_grant() -> Grant:
    return Grant(
        id="g-iso",
        type=EquityType.ISO,
        ticker="ACME",
        company_name="Acme Corp",
        current_price=Decimal("50"),
        strike_price=Decimal("10"),
        grant_date=date(2022, 3, 1),
        total_shares=Decimal("8000"),
        vesting_schedule=VestingSchedule.STANDARD_4Y_QUARTERLY,
    )


@pytest.fixture
def espp_grant() -> Grant:
    return Grant(
        id="g-espp",
        type=EquityType.ESPP,
        ticker="ACME",
        company_name="Acme Corp",
        current_price=Decimal("180"),
        grant_date=date(2024, 6, 30),
        total_shares=Decimal("50"),
        vesting_schedule=VestingSchedule.IMMEDIATE,
        espp_discount_percent=Decimal("15"),
        espp_purchase_price=Decimal("127.50"),
        espp_offering_start_date=date(2024, 1, 1),
        espp_offering_end_date=date(2024, 6, 30),
        espp_fmv_at_offering_start=Decimal("140"),
        espp_fmv_at_purchase=Decimal("150"),
    )


@pytest.fixture
def ca_client(rsu_grant: Grant, iso_grant: Grant, espp_grant: Grant) -> Client:
    return Client(
        id="c-1",
        name="Jane Doe",
        state="CA",
        filing_status=FilingStatus.SINGLE,
        tax_bracket=Decimal("35"),
        grants=[rsu_grant, iso_grant, espp_grant],
    )


@pytest.fixture
def ca_rates(ca_client: Client) -> TaxRates:
    # federal 0.35, state 0.133, LTCG 0.15, NIIT 0.038
    return RateResolver().resolve_rates(ca_client)
