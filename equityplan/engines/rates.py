"""Effective tax rate resolution for a client profile."""

import logging
from decimal import Decimal

from equityplan.engines.brackets import FEDERAL_LTCG_TIERS, NIIT_RATE, STATE_TAX_RATES
from equityplan.models.client import Client
from equityplan.models.results import TaxRates

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


class RateResolver:
    """Resolves state, federal ordinary and LTCG rates, honoring overrides."""

    def resolve_rates(self, client: Client) -> TaxRates:
        return TaxRates(
            federal_rate=client.tax_bracket / HUNDRED,
            state_rate=self.state_rate(client),
            fed_ltcg_rate=self.federal_ltcg_rate(client),
            niit_rate=NIIT_RATE,
        )

    def state_rate(self, client: Client) -> Decimal:
        if client.custom_state_tax_rate is not None:
            return client.custom_state_tax_rate / HUNDRED
        code = client.state.strip().upper()
        if code not in STATE_TAX_RATES:
            logger.debug("No state rate for %r on client %s, using 0", client.state, client.id)
            return Decimal("0")
        return STATE_TAX_RATES[code]

    def federal_ltcg_rate(self, client: Client) -> Decimal:
        if client.custom_ltcg_tax_rate is not None:
            return client.custom_ltcg_tax_rate / HUNDRED
        for max_bracket, rate in FEDERAL_LTCG_TIERS:
            if max_bracket is None or client.tax_bracket <= max_bracket:
                return rate
        return FEDERAL_LTCG_TIERS[-1][1]
