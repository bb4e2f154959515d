"""Tests for effective tax rate resolution."""

from decimal import Decimal

from equityplan.engines.rates import RateResolver
from equityplan.models.client import Client


def _client(**overrides) -> Client:
    fields = {"id": "c", "name": "Test", "state": "CA", "tax_bracket": Decimal("35")}
    fields.update(overrides)
    return Client(**fields)


class TestRateResolver:
    def setup_method(self):
        self.resolver = RateResolver()

    def test_california_top_bracket(self):
        rates = self.resolver.resolve_rates(_client())
        assert rates.federal_rate == Decimal("0.35")
        assert rates.state_rate == Decimal("0.133")
        assert rates.fed_ltcg_rate == Decimal("0.15")
        assert rates.niit_rate == Decimal("0.038")

    def test_combined_rates(self):
        rates = self.resolver.resolve_rates(_client())
        assert rates.ordinary_rate == Decimal("0.483")
        assert rates.ltcg_rate == Decimal("0.321")
        assert rates.vesting_rate == Decimal("0.521")

    def test_state_code_is_case_insensitive(self):
        assert self.resolver.state_rate(_client(state=" ca ")) == Decimal("0.133")

    def test_no_income_tax_state(self):
        assert self.resolver.state_rate(_client(state="TX")) == Decimal("0")
        assert self.resolver.state_rate(_client(state="WA")) == Decimal("0")

    def test_unknown_state_is_zero(self):
        assert self.resolver.state_rate(_client(state="ZZ")) == Decimal("0")
        assert self.resolver.state_rate(_client(state="")) == Decimal("0")

    def test_custom_state_rate_overrides_table(self):
        client = _client(custom_state_tax_rate=Decimal("5"))
        assert self.resolver.state_rate(client) == Decimal("0.05")

    def test_ltcg_tiers(self):
        assert self.resolver.federal_ltcg_rate(_client(tax_bracket=Decimal("10"))) == Decimal("0")
        assert self.resolver.federal_ltcg_rate(_client(tax_bracket=Decimal("12"))) == Decimal("0")
        assert self.resolver.federal_ltcg_rate(_client(tax_bracket=Decimal("22"))) == Decimal("0.15")
        assert self.resolver.federal_ltcg_rate(_client(tax_bracket=Decimal("35"))) == Decimal("0.15")
        assert self.resolver.federal_ltcg_rate(_client(tax_bracket=Decimal("37"))) == Decimal("0.20")

    def test_custom_ltcg_rate_overrides_tiers(self):
        client = _client(custom_ltcg_tax_rate=Decimal("10"))
        assert self.resolver.federal_ltcg_rate(client) == Decimal("0.10")
