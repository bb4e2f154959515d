"""Tests for normalizing raw extraction output."""

from datetime import date
from decimal import Decimal

import pytest

from equityplan.exceptions import DataValidationError
from equityplan.models.enums import EquityType, VestingSchedule
from equityplan.parsing.extraction import ExtractedGrantData, ExtractionNormalizer

AS_OF = date(2025, 6, 1)


def _raw(**overrides) -> dict:
    grant = {
        "grantType": "ISO",
        "shares": "8,000",
        "strikePrice": "$10.25",
        "grantDate": "03/01/2022",
        "companyName": "Acme Corp",
        "ticker": "acme",
        "cliffMonths": 12,
        "vestingMonths": 48,
        "grantId": "ISO-001",
    }
    grant.update(overrides)
    return grant


class TestNormalize:
    def setup_method(self):
        self.normalizer = ExtractionNormalizer()

    def test_clean_grant(self):
        result = self.normalizer.normalize({"grants": [_raw()]}, AS_OF)
        assert result.issues == []
        assert result.warnings == []
        grant = result.grants[0]
        assert grant.type == EquityType.ISO
        assert grant.total_shares == Decimal("8000")
        assert grant.strike_price == Decimal("10.25")
        assert grant.grant_date == date(2022, 3, 1)
        assert grant.ticker == "ACME"
        assert grant.cliff_months == 12
        assert grant.external_grant_id == "ISO-001"

    def test_accepts_list_and_single_object(self):
        assert len(self.normalizer.normalize([_raw(), _raw()], AS_OF).grants) == 2
        assert len(self.normalizer.normalize(_raw(), AS_OF).grants) == 1

    def test_rejects_non_json_container(self):
        with pytest.raises(DataValidationError):
            self.normalizer.normalize("grants", AS_OF)
        with pytest.raises(DataValidationError):
            self.normalizer.normalize({"grants": "none"}, AS_OF)

    def test_bad_fields_are_dropped_and_reported(self):
        raw = _raw(shares="-5", strikePrice="ten", grantDate="sometime", cliffMonths=1.5)
        result = self.normalizer.normalize([raw], AS_OF)
        grant = result.grants[0]
        assert grant.total_shares is None
        assert grant.strike_price is None
        assert grant.grant_date is None
        assert grant.cliff_months is None
        assert len(result.issues) == 4
        assert any("shares" in issue for issue in result.issues)

    def test_non_object_items_are_skipped(self):
        result = self.normalizer.normalize([_raw(), "oops"], AS_OF)
        assert len(result.grants) == 1
        assert result.issues == ["Grant 2: not an object, skipped"]

    def test_empty_result_warns(self):
        result = self.normalizer.normalize({"grants": []}, AS_OF)
        assert result.grants == []
        assert result.warnings == ["No grants were found in the document"]

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Restricted Stock Units", EquityType.RSU),
            ("incentive stock option", EquityType.ISO),
            ("NQSO", EquityType.NSO),
            ("Non-Qualified Stock Option", EquityType.NSO),
            ("Employee Stock Purchase Plan", EquityType.ESPP),
            ("phantom units", EquityType.RSU),
        ],
    )
    def test_grant_type_synonyms(self, text, expected):
        assert ExtractionNormalizer.normalize_grant_type(text) == expected

    def test_unknown_type_is_reported(self):
        result = self.normalizer.normalize([_raw(grantType="phantom units")], AS_OF)
        assert result.grants[0].type == EquityType.RSU
        assert "unrecognized grant type" in result.issues[0]

    def test_missed_grants_warning(self):
        text = "Grant ID: A-1\nGrant ID: A-2\nGrant ID: A-3\n"
        result = self.normalizer.normalize([_raw()], AS_OF, source_text=text)
        assert any("approximately 3 grants" in w for w in result.warnings)

    def test_estimate_grant_count(self):
        text = "Award Number 11\naward # 12\nPlan ID: X\n"
        assert ExtractionNormalizer.estimate_grant_count(text) == 2
        assert ExtractionNormalizer.estimate_grant_count("") == 0


class TestPlausibilityWarnings:
    def setup_method(self):
        self.normalizer = ExtractionNormalizer()

    def _warnings(self, **overrides) -> list[str]:
        return self.normalizer.normalize([_raw(**overrides)], AS_OF).warnings

    def test_future_grant_date(self):
        warnings = self._warnings(grantDate="2026-01-01")
        assert warnings == [
            "Grant 1 (ISO-001): Grant date is in the future (2026-01-01). "
            "This is likely a vesting date, not a grant date."
        ]

    def test_old_grant_date(self):
        assert "more than 10 years old" in self._warnings(grantDate="2010-01-01")[0]

    def test_share_count_bounds(self):
        assert "Very large share count" in self._warnings(shares="2000000")[0]
        assert "Unusually small share count" in self._warnings(shares="0.5")[0]

    def test_missing_identity(self):
        warnings = self._warnings(companyName=None, ticker=None, grantId=None)
        assert warnings[0].startswith("Grant 1 (no ID): No company name or ticker")

    def test_vesting_months(self):
        assert "Unusual cliff period" in self._warnings(cliffMonths=60, vestingMonths=72)[0]
        assert "Unusual vesting period" in self._warnings(vestingMonths=180)[0]
        assert "less than cliff months" in self._warnings(cliffMonths=24, vestingMonths=12)[0]
        assert "No vesting schedule months" in self._warnings(cliffMonths=None, vestingMonths=None)[0]

    def test_option_without_strike(self):
        assert "missing strike" in self._warnings(strikePrice=None)[0]

    def test_espp_skips_vesting_checks(self):
        warnings = self._warnings(grantType="ESPP", strikePrice=None, cliffMonths=None, vestingMonths=None)
        assert warnings == []


class TestToGrant:
    def test_schedule_mapping(self):
        assert ExtractedGrantData(cliff_months=12, vesting_months=48).vesting_schedule == (
            VestingSchedule.STANDARD_4Y_1Y_CLIFF
        )
        assert ExtractedGrantData(cliff_months=0, vesting_months=48).vesting_schedule == (
            VestingSchedule.STANDARD_4Y_QUARTERLY
        )
        assert ExtractedGrantData(vesting_months=36).vesting_schedule == (
            VestingSchedule.STANDARD_4Y_1Y_CLIFF
        )

    def test_rsu_gets_default_withholding(self):
        data = ExtractedGrantData(
            type=EquityType.RSU,
            total_shares=Decimal("100"),
            grant_date=date(2024, 1, 1),
            ticker="ACME",
        )
        grant = data.to_grant(grant_id="g-1", current_price=Decimal("120"))
        assert grant.id == "g-1"
        assert grant.withholding_rate == Decimal("22")
        assert grant.current_price == Decimal("120")

    def test_option_price_defaults_to_strike(self):
        data = ExtractedGrantData(
            type=EquityType.ISO,
            total_shares=Decimal("100"),
            grant_date=date(2024, 1, 1),
            strike_price=Decimal("4"),
        )
        grant = data.to_grant()
        assert grant.current_price == Decimal("4")
        assert grant.withholding_rate is None
        assert grant.id

    def test_missing_required_field(self):
        with pytest.raises(DataValidationError, match="total_shares"):
            ExtractedGrantData(type=EquityType.RSU, grant_date=date(2024, 1, 1)).to_grant()
