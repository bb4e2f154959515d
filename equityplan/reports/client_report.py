"""Plain-text client planning summary."""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from equityplan.engines.amt import AMTRoomCalculator
from equityplan.engines.disposition import DispositionQualificationEngine
from equityplan.engines.quarterly import QuarterlyTaxAggregator
from equityplan.engines.rates import RateResolver
from equityplan.engines.status import GrantStatusResolver, HoldingsCalculator
from equityplan.engines.vesting import VestingScheduleGenerator
from equityplan.models.client import Client
from equityplan.models.results import ESPPQualification

TEMPLATE_DIR = Path(__file__).parent / "templates"


def money(value: Decimal | None) -> str:
    if value is None:
        return "-"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def shares(value: Decimal | None) -> str:
    if value is None:
        return "-"
    if value == value.to_integral_value():
        return f"{value:,.0f}"
    return f"{value:,.2f}"


def pct(value: Decimal | None) -> str:
    """Format a fraction as a percentage."""
    if value is None:
        return "-"
    return f"{value * 100:.2f}%"


class ClientReportGenerator:
    """Generates a human-readable planning summary for one client."""

    def __init__(self) -> None:
        self.env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)))
        self.env.filters.update(money=money, shares=shares, pct=pct)
        self.vesting = VestingScheduleGenerator()
        self.status_resolver = GrantStatusResolver(self.vesting)
        self.holdings = HoldingsCalculator(self.vesting)
        self.disposition = DispositionQualificationEngine()
        self.quarterly = QuarterlyTaxAggregator(self.vesting)

    def build_context(self, client: Client, as_of: date, year: int) -> dict[str, Any]:
        rates = RateResolver().resolve_rates(client)
        amt_calc = AMTRoomCalculator()
        amt_room = amt_calc.calculate_amt_room(client)

        grants = []
        upcoming = []
        for grant in client.grants:
            events = self.vesting.generate_vesting_schedule(grant, client, as_of)
            upcoming.extend(self.vesting.upcoming_events(events, as_of))
            qualification = self.disposition.compute_disposition_qualification(grant, rates, as_of)
            grants.append(
                {
                    "grant": grant,
                    "status": self.status_resolver.get_grant_status(
                        grant, client.planned_exercises, as_of
                    ),
                    "holdings": self.holdings.compute_holdings(grant, client, as_of),
                    "espp": qualification if isinstance(qualification, ESPPQualification) else None,
                }
            )
        upcoming.sort(key=lambda e: e.date)

        buckets = self.quarterly.aggregate_quarterly_tax(
            client.grants, client, client.planned_exercises, amt_room, rates, year, as_of
        )
        return {
            "client": client,
            "as_of": as_of,
            "year": year,
            "rates": rates,
            "amt": amt_calc.amt_usage(client, year),
            "grants": grants,
            "upcoming": upcoming,
            "quarters": buckets,
            "quarterly_totals": self.quarterly.quarterly_totals(buckets),
        }

    def render(self, client: Client, as_of: date, year: int) -> str:
        """Render the client summary report."""
        template = self.env.get_template("client_report.txt")
        return template.render(**self.build_context(client, as_of, year))
