"""Tests for client, grant and result models."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from equityplan.models.client import Client, Grant
from equityplan.models.enums import EquityType, VestingSchedule
from equityplan.models.results import BreakevenScenario, GrantStatus, TaxRates


class TestGrant:
    def test_reads_camel_case_record(self):
        grant = Grant.model_validate(
            {
                "id": "g-1",
                "type": "ISO",
                "ticker": "ACME",
                "companyName": "Acme Corp",
                "currentPrice": 50,
                "strikePrice": "10.25",
                "grantDate": "2022-03-01",
                "totalShares": 8000,
                "vestingSchedule": "standard_4y_quarterly",
            }
        )
        assert grant.type == EquityType.ISO
        assert grant.company_name == "Acme Corp"
        assert grant.strike_price == Decimal("10.25")
        assert grant.grant_date == date(2022, 3, 1)
        assert grant.vesting_schedule == VestingSchedule.STANDARD_4Y_QUARTERLY

    def test_dumps_camel_case(self, rsu_grant):
        data = rsu_grant.model_dump(by_alias=True)
        assert "totalShares" in data
        assert "withholdingRate" in data
        assert "total_shares" not in data

    def test_total_shares_must_be_positive(self):
        with pytest.raises(ValidationError):
            Grant(
                id="g",
                type=EquityType.RSU,
                current_price=Decimal("1"),
                grant_date=date(2024, 1, 1),
                total_shares=Decimal("0"),
            )

    def test_withholding_rate_range(self):
        with pytest.raises(ValidationError):
            Grant(
                id="g",
                type=EquityType.RSU,
                current_price=Decimal("1"),
                grant_date=date(2024, 1, 1),
                total_shares=Decimal("10"),
                withholding_rate=Decimal("101"),
            )

    def test_defaults(self):
        grant = Grant(
            id="g",
            type=EquityType.RSU,
            current_price=Decimal("1"),
            grant_date=date(2024, 1, 1),
            total_shares=Decimal("10"),
        )
        assert grant.vesting_schedule == VestingSchedule.STANDARD_4Y_1Y_CLIFF
        assert grant.sales == []
        assert grant.vesting_prices == []

    def test_spread_per_share(self, iso_grant, rsu_grant):
        assert iso_grant.spread_per_share == Decimal("40")
        iso_grant.current_price = Decimal("5")
        assert iso_grant.spread_per_share == Decimal("0")
        assert rsu_grant.spread_per_share == Decimal("100")

    def test_is_option(self, iso_grant, rsu_grant, espp_grant):
        assert iso_grant.is_option
        assert not rsu_grant.is_option
        assert not espp_grant.is_option


class TestClient:
    def test_get_grant(self, ca_client):
        assert ca_client.get_grant("g-iso").type == EquityType.ISO
        assert ca_client.get_grant("missing") is None

    def test_tax_bracket_required_positive(self):
        with pytest.raises(ValidationError):
            Client(id="c", name="A", tax_bracket=Decimal("0"))

    def test_reads_planned_exercises(self):
        client = Client.model_validate(
            {
                "id": "c",
                "name": "A",
                "taxBracket": 32,
                "filingStatus": "married_joint",
                "plannedExercises": [
                    {
                        "id": "pe-1",
                        "grantId": "g-iso",
                        "shares": 100,
                        "exerciseDate": "2025-03-01",
                        "exercisePrice": 10,
                        "fmvAtExercise": 50,
                        "amtExposure": 4000,
                    }
                ],
            }
        )
        assert client.planned_exercises[0].amt_exposure == Decimal("4000")


class TestResults:
    def test_tax_rates(self):
        rates = TaxRates(
            federal_rate=Decimal("0.24"),
            state_rate=Decimal("0.05"),
            fed_ltcg_rate=Decimal("0.15"),
            niit_rate=Decimal("0.038"),
        )
        assert rates.ordinary_rate == Decimal("0.29")
        assert rates.ltcg_rate == Decimal("0.238")
        assert rates.vesting_rate == Decimal("0.328")

    def test_grant_status_label(self):
        status = GrantStatus(
            total=Decimal("100"), vested_total=Decimal("100"), unvested=Decimal("0"), available=Decimal("100")
        )
        assert status.label == "Fully Vested"

    def test_breakeven_label(self):
        row = BreakevenScenario(
            price_decline=Decimal("15"),
            stock_price=Decimal("85"),
            sell_now_net=Decimal("1"),
            hold_net=Decimal("2"),
            difference=Decimal("1"),
        )
        assert row.label == "-15%"
