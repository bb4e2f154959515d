"""Typer CLI interface for the equity planning engine."""

import json
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from equityplan.engines import (
    AMTRoomCalculator,
    BreakevenAnalyzer,
    ConcentrationAnalyzer,
    DispositionQualificationEngine,
    GrantStatusResolver,
    HoldingsCalculator,
    MultiYearExerciseOptimizer,
    QuarterlyTaxAggregator,
    RateResolver,
    VestingScheduleGenerator,
    WithholdingAnalyzer,
)
from equityplan.exceptions import EquityPlanError
from equityplan.ingestion.store import ClientStore, DecimalEncoder
from equityplan.models.client import Client, Grant
from equityplan.models.enums import EquityType, ExerciseStrategy

app = typer.Typer(
    name="equityplan",
    help="Equity compensation tax planning for RSU, ISO, NSO and ESPP grants.",
)
console = Console()

DEFAULT_DATA = Path.home() / ".equityplan" / "clients.json"

DataOption = typer.Option(DEFAULT_DATA, "--data", "-d", help="Path to the clients JSON file")
AsOfOption = typer.Option(None, "--as-of", help="Evaluation date (YYYY-MM-DD), default today")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Equity compensation tax planning for RSU, ISO, NSO and ESPP grants."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# --- helpers ---


def _fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _as_of(value: str | None, name: str = "--as-of") -> date:
    if value is None:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid date {value!r}. Use YYYY-MM-DD.", param_hint=name)


def _decimal(value: str, name: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise typer.BadParameter(f"Invalid number {value!r}", param_hint=name)


def _load_client(data: Path, client_id: str) -> Client:
    try:
        return ClientStore(data).get_client(client_id)
    except EquityPlanError as exc:
        _fail(str(exc))


def _load_grant(client: Client, grant_id: str) -> Grant:
    grant = client.get_grant(grant_id)
    if grant is None:
        _fail(f"Grant not found: {grant_id}")
    return grant


def _money(value: Decimal | None) -> str:
    if value is None:
        return "-"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def _num(value: Decimal) -> str:
    if value == value.to_integral_value():
        return f"{value:,.0f}"
    return f"{value:,.2f}"


def _pct(value: Decimal) -> str:
    return f"{value:.1f}%"


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, cls=DecimalEncoder))


# --- commands ---


@app.command()
def vesting(
    client_id: str = typer.Argument(..., help="Client id"),
    grant_id: str | None = typer.Option(None, "--grant", "-g", help="Only this grant"),
    upcoming: bool = typer.Option(False, "--upcoming", help="Only the next 12 months"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
    data: Path = DataOption,
    as_of: str | None = AsOfOption,
) -> None:
    """Show the vesting schedule for a client's grants."""
    as_of_date = _as_of(as_of)
    client = _load_client(data, client_id)
    grants = [_load_grant(client, grant_id)] if grant_id else client.grants

    generator = VestingScheduleGenerator()
    events = []
    for grant in grants:
        grant_events = generator.generate_vesting_schedule(grant, client, as_of_date)
        if upcoming:
            grant_events = generator.upcoming_events(grant_events, as_of_date)
        events.extend(grant_events)
    events.sort(key=lambda e: e.date)

    if as_json:
        _echo_json([e.model_dump(by_alias=True) for e in events])
        return

    table = Table(title=f"Vesting schedule: {client.name}")
    for column in ("Date", "Type", "Ticker", "Shares", "Price", "Gross", "Withheld", "Net Shares", "Tax Gap", ""):
        table.add_column(column)
    for e in events:
        table.add_row(
            e.date.isoformat(),
            e.grant_type,
            e.ticker,
            _num(e.shares),
            _money(e.price_at_vest),
            _money(e.gross_value),
            _money(e.withholding_amount),
            _num(e.net_shares),
            _money(e.tax_gap),
            "vested" if e.is_past else "",
        )
    console.print(table)


@app.command()
def status(
    client_id: str = typer.Argument(..., help="Client id"),
    data: Path = DataOption,
    as_of: str | None = AsOfOption,
) -> None:
    """Show vested, unvested and available shares plus holdings per grant."""
    as_of_date = _as_of(as_of)
    client = _load_client(data, client_id)
    resolver = GrantStatusResolver()
    holdings = HoldingsCalculator()

    table = Table(title=f"Grant status: {client.name}")
    for column in ("Grant", "Type", "Ticker", "Status", "Vested", "Unvested", "Available", "Held", "Value"):
        table.add_column(column)
    for grant in client.grants:
        st = resolver.get_grant_status(grant, client.planned_exercises, as_of_date)
        held = holdings.compute_holdings(grant, client, as_of_date)
        table.add_row(
            grant.external_grant_id or grant.id,
            grant.type,
            grant.ticker,
            st.label,
            _num(st.vested_total),
            _num(st.unvested),
            _num(st.available),
            _num(held.shares_held) + ("*" if held.is_override else ""),
            _money(held.current_value),
        )
    console.print(table)


@app.command()
def rates(
    client_id: str = typer.Argument(..., help="Client id"),
    data: Path = DataOption,
) -> None:
    """Show a client's effective tax rates."""
    client = _load_client(data, client_id)
    r = RateResolver().resolve_rates(client)

    table = Table(title=f"Tax rates: {client.name}")
    table.add_column("Rate")
    table.add_column("Value", justify="right")
    for label, value in (
        ("Federal ordinary", r.federal_rate),
        ("State", r.state_rate),
        ("Federal LTCG", r.fed_ltcg_rate),
        ("NIIT", r.niit_rate),
        ("Ordinary combined", r.ordinary_rate),
        ("LTCG combined", r.ltcg_rate),
        ("Vesting (ordinary + NIIT)", r.vesting_rate),
    ):
        table.add_row(label, _pct(value * 100))
    console.print(table)


@app.command()
def amt(
    client_id: str = typer.Argument(..., help="Client id"),
    year: int | None = typer.Option(None, "--year", "-y", help="Tax year, default current"),
    data: Path = DataOption,
) -> None:
    """Show AMT safe-harbor room and how much planned exercises use."""
    client = _load_client(data, client_id)
    usage = AMTRoomCalculator().amt_usage(client, year or date.today().year)
    typer.echo(f"AMT room {usage.year}: {_money(usage.room)}")
    typer.echo(f"Planned ISO spread: {_money(usage.used)}")
    typer.echo(f"Remaining: {_money(usage.remaining)}")
    if usage.is_exceeded:
        typer.echo("Warning: planned exercises exceed the AMT safe harbor", err=True)


@app.command()
def espp(
    client_id: str = typer.Argument(..., help="Client id"),
    data: Path = DataOption,
    as_of: str | None = AsOfOption,
) -> None:
    """Track ESPP lots toward qualifying disposition."""
    as_of_date = _as_of(as_of)
    client = _load_client(data, client_id)
    r = RateResolver().resolve_rates(client)
    engine = DispositionQualificationEngine()

    table = Table(title=f"ESPP qualification: {client.name}")
    for column in ("Ticker", "Purchased", "Qualifies", "Progress", "Days Left", "Disq. Tax", "Qual. Tax", "Savings"):
        table.add_column(column)
    rows = 0
    for grant in client.grants:
        if grant.type != EquityType.ESPP:
            continue
        q = engine.compute_espp_qualification(grant, r, as_of_date)
        rows += 1
        table.add_row(
            q.ticker,
            q.purchase_date.isoformat(),
            q.qualifying_date.isoformat(),
            _pct(q.progress_percent),
            "qualified" if q.is_qualified else str(q.days_remaining),
            _money(q.disqualified_tax),
            _money(q.qualified_tax),
            _money(q.tax_savings),
        )
    if not rows:
        typer.echo(f"No ESPP grants for {client.name}")
        return
    console.print(table)


@app.command()
def iso(
    client_id: str = typer.Argument(..., help="Client id"),
    grant_id: str = typer.Argument(..., help="ISO grant id"),
    shares: str | None = typer.Option(None, "--shares", "-n", help="Shares to exercise, default all available"),
    sale_price: str | None = typer.Option(None, "--sale-price", help="Assumed sale price, default current"),
    data: Path = DataOption,
    as_of: str | None = AsOfOption,
) -> None:
    """Compare disqualifying and qualifying ISO dispositions with a breakeven table."""
    as_of_date = _as_of(as_of)
    client = _load_client(data, client_id)
    grant = _load_grant(client, grant_id)
    if grant.type != EquityType.ISO:
        _fail(f"Grant {grant_id} is {grant.type}, not ISO")

    r = RateResolver().resolve_rates(client)
    st = GrantStatusResolver().get_grant_status(grant, client.planned_exercises, as_of_date)
    n = _decimal(shares, "--shares") if shares else st.available
    price = _decimal(sale_price, "--sale-price") if sale_price else grant.current_price

    engine = DispositionQualificationEngine()
    qualification = engine.compute_iso_qualification(grant.grant_date, as_of_date, as_of_date)
    typer.echo(f"Exercising {_num(n)} shares on {as_of_date} qualifies on {qualification.qualifying_date}")

    table = Table(title="Disposition scenarios")
    for column in ("Scenario", "Ordinary", "Capital Gain", "AMT Pref.", "Tax", "Net Profit"):
        table.add_column(column)
    for qualifying in (False, True):
        s = engine.compute_iso_scenario(grant, r, n, grant.current_price, price, qualifying)
        table.add_row(
            s.name,
            _money(s.ordinary_income),
            _money(s.capital_gain),
            _money(s.amt_preference),
            _money(s.taxes.total_tax),
            _money(s.net_profit),
        )
    console.print(table)

    analysis = BreakevenAnalyzer(engine).analyze(grant, r, n)
    if not analysis.scenarios:
        typer.echo("No breakeven analysis: option is underwater or no shares selected")
        return
    typer.echo(
        f"Breakeven price {_money(analysis.breakeven_price)} "
        f"({_pct(analysis.breakeven_decline)} decline)"
    )
    breakeven = Table(title="Hold vs. sell now")
    for column in ("Decline", "Price", "Sell Now", "Hold", "Difference"):
        breakeven.add_column(column)
    for row in analysis.scenarios:
        breakeven.add_row(
            row.label,
            _money(row.stock_price),
            _money(row.sell_now_net),
            _money(row.hold_net),
            _money(row.difference),
        )
    console.print(breakeven)


@app.command()
def plan(
    client_id: str = typer.Argument(..., help="Client id"),
    grant_id: str = typer.Argument(..., help="ISO grant id"),
    years: int = typer.Option(3, "--years", help="Planning horizon (2-5 years)"),
    start_year: int | None = typer.Option(None, "--start-year", help="First year, default current"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
    data: Path = DataOption,
    as_of: str | None = AsOfOption,
) -> None:
    """Spread ISO exercises across years within the AMT safe harbor."""
    as_of_date = _as_of(as_of)
    client = _load_client(data, client_id)
    grant = _load_grant(client, grant_id)

    st = GrantStatusResolver().get_grant_status(grant, client.planned_exercises, as_of_date)
    room = AMTRoomCalculator().calculate_amt_room(client)
    r = RateResolver().resolve_rates(client)
    result = MultiYearExerciseOptimizer().plan_multi_year_exercise(
        grant, st, room, r, years, start_year or as_of_date.year
    )

    if as_json:
        _echo_json(result.model_dump(by_alias=True))
        return

    typer.echo(
        f"Spread/share {_money(result.spread_per_share)}, "
        f"max {_num(result.max_safe_shares_per_year)} shares/year within {_money(room)} AMT room"
    )
    table = Table(title=f"Exercise plan: {grant.ticker or grant.id}")
    for column in ("Year", "Shares", "Spread", "AMT Left", "Cost", "Tax Savings"):
        table.add_column(column)
    for yp in result.year_plans:
        table.add_row(
            str(yp.year),
            _num(yp.planned_shares),
            _money(yp.planned_spread),
            _money(yp.amt_remaining),
            _money(yp.exercise_cost),
            _money(yp.potential_tax_savings),
        )
    console.print(table)
    typer.echo(f"Total savings: {_money(result.total_savings)}")
    if result.needs_longer_horizon:
        typer.echo(
            f"{_num(result.remaining_shares)} shares remain. Consider a longer horizon.", err=True
        )


@app.command()
def exercise(
    client_id: str = typer.Argument(..., help="Client id"),
    grant_id: str = typer.Argument(..., help="ISO grant id"),
    shares: str = typer.Option(..., "--shares", "-n", help="Shares to exercise"),
    exercise_date: str = typer.Option(..., "--date", help="Exercise date (YYYY-MM-DD)"),
    strategy: ExerciseStrategy = typer.Option(ExerciseStrategy.BUY_HOLD, "--strategy", help="buy_hold or cashless"),
    data: Path = DataOption,
    as_of: str | None = AsOfOption,
) -> None:
    """Save a planned ISO exercise."""
    as_of_date = _as_of(as_of)
    client = _load_client(data, client_id)
    grant = _load_grant(client, grant_id)
    st = GrantStatusResolver().get_grant_status(grant, client.planned_exercises, as_of_date)
    try:
        planned = MultiYearExerciseOptimizer().build_planned_exercise(
            grant,
            _decimal(shares, "--shares"),
            st,
            _as_of(exercise_date, "--date"),
            strategy,
        )
        ClientStore(data).add_planned_exercise(client_id, planned)
    except EquityPlanError as exc:
        _fail(str(exc))
    typer.echo(
        f"Planned exercise of {_num(planned.shares)} shares on {planned.exercise_date}: "
        f"cost {_money(planned.estimated_cost)}, AMT exposure {_money(planned.amt_exposure)}"
    )


@app.command()
def sale(
    client_id: str = typer.Argument(..., help="Client id"),
    grant_id: str = typer.Argument(..., help="Grant id"),
    shares: str = typer.Option(..., "--shares", "-n", help="Shares sold"),
    price: str = typer.Option(..., "--price", help="Sale price per share"),
    sale_date: str | None = typer.Option(None, "--date", help="Sale date (YYYY-MM-DD), default today"),
    reason: str = typer.Option("", "--reason", help="Why the shares were sold"),
    data: Path = DataOption,
) -> None:
    """Record a realized stock sale."""
    try:
        recorded = ClientStore(data).record_sale(
            client_id,
            grant_id,
            _as_of(sale_date, "--date"),
            _decimal(shares, "--shares"),
            _decimal(price, "--price"),
            reason=reason,
        )
    except EquityPlanError as exc:
        _fail(str(exc))
    typer.echo(
        f"Recorded sale of {_num(recorded.shares_sold)} shares for {_money(recorded.total_proceeds)}"
    )


@app.command()
def quarterly(
    client_id: str = typer.Argument(..., help="Client id"),
    year: int | None = typer.Option(None, "--year", "-y", help="Tax year, default current"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
    data: Path = DataOption,
    as_of: str | None = AsOfOption,
) -> None:
    """Estimated tax payments by IRS payment period."""
    as_of_date = _as_of(as_of)
    client = _load_client(data, client_id)
    tax_year = year or as_of_date.year
    aggregator = QuarterlyTaxAggregator()
    buckets = aggregator.aggregate_quarterly_tax(
        client.grants,
        client,
        client.planned_exercises,
        AMTRoomCalculator().calculate_amt_room(client),
        RateResolver().resolve_rates(client),
        tax_year,
        as_of_date,
    )
    totals = aggregator.quarterly_totals(buckets)

    if as_json:
        _echo_json(
            {
                "quarters": [b.model_dump(by_alias=True) for b in buckets],
                "totals": totals.model_dump(by_alias=True),
            }
        )
        return

    table = Table(title=f"Estimated payments {tax_year}: {client.name}")
    for column in ("Period", "Due", "Vesting Income", "ISO Spread", "Est. Tax", "Withheld", "Payment Due", ""):
        table.add_column(column)
    for b in buckets:
        table.add_row(
            b.quarter,
            b.due_date,
            _money(b.vesting_income),
            _money(b.iso_spread),
            _money(b.estimated_tax),
            _money(b.withholding_credit),
            _money(b.payment_due),
            "past" if b.is_past else "",
        )
    console.print(table)
    typer.echo(f"Total payments: {_money(totals.total_payments)}")
    typer.echo(f"Upcoming payments: {_money(totals.upcoming_payments)}")


@app.command()
def withholding(
    client_id: str = typer.Argument(..., help="Client id"),
    year: int | None = typer.Option(None, "--year", "-y", help="Tax year, default current"),
    rate: str = typer.Option("22", "--rate", help="Withholding rate (percent) for grants without one"),
    data: Path = DataOption,
    as_of: str | None = AsOfOption,
) -> None:
    """Compare elected RSU withholding with actual liability."""
    as_of_date = _as_of(as_of)
    client = _load_client(data, client_id)
    analysis = WithholdingAnalyzer().analyze_withholding(
        client.grants,
        client,
        RateResolver().resolve_rates(client),
        year or as_of_date.year,
        as_of_date,
        default_rate=_decimal(rate, "--rate"),
    )
    if not analysis.grants:
        typer.echo(f"No RSU vesting for {client.name} in {analysis.year}")
        return

    table = Table(title=f"RSU withholding {analysis.year}: {client.name}")
    for column in ("Ticker", "Vesting Value", "Withheld", "Elected", "Actual Tax", "Gap", "Quarterly"):
        table.add_column(column)
    for g in analysis.grants:
        table.add_row(
            g.ticker,
            _money(g.total_vesting_value),
            _money(g.elected_withholding),
            _pct(g.elected_rate),
            _money(g.actual_tax_liability),
            _money(g.gap),
            _money(g.quarterly_payment),
        )
    console.print(table)
    typer.echo(f"Total gap: {_money(analysis.total_gap)}")
    typer.echo(f"Suggested quarterly payment: {_money(analysis.quarterly_payment)}")


@app.command()
def concentration(
    client_id: str = typer.Argument(..., help="Client id"),
    other_investments: str = typer.Option("0", "--other-investments", help="Value of non-equity holdings"),
    net_worth: str = typer.Option("0", "--net-worth", help="Estimated net worth"),
    data: Path = DataOption,
    as_of: str | None = AsOfOption,
) -> None:
    """Single-stock concentration risk across a client's grants."""
    as_of_date = _as_of(as_of)
    client = _load_client(data, client_id)
    report = ConcentrationAnalyzer().analyze_concentration(
        client,
        as_of_date,
        _decimal(other_investments, "--other-investments"),
        _decimal(net_worth, "--net-worth"),
    )

    table = Table(title=f"Concentration: {client.name}")
    for column in ("Ticker", "Types", "Shares", "Value", "% Portfolio", "% Equity"):
        table.add_column(column)
    for c in report.concentrations:
        table.add_row(
            c.ticker,
            ", ".join(c.grant_types),
            _num(c.shares),
            _money(c.total_value),
            _pct(c.percentage),
            _pct(c.percent_of_equity),
        )
    console.print(table)
    typer.echo(f"Risk level: {report.risk_level.upper()}")
    if report.equity_percent_of_net_worth:
        typer.echo(f"Equity is {_pct(report.equity_percent_of_net_worth)} of net worth")


@app.command()
def report(
    client_id: str = typer.Argument(..., help="Client id"),
    year: int | None = typer.Option(None, "--year", "-y", help="Tax year, default current"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the report to this file"),
    data: Path = DataOption,
    as_of: str | None = AsOfOption,
) -> None:
    """Generate a plain-text planning summary for a client."""
    from equityplan.reports import ClientReportGenerator

    as_of_date = _as_of(as_of)
    client = _load_client(data, client_id)
    text = ClientReportGenerator().render(client, as_of_date, year or as_of_date.year)
    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text)
    typer.echo(f"Report written to {output}")


@app.command()
def calendar(
    output: Path = typer.Argument(..., help="Output .ics file"),
    client_id: str | None = typer.Option(None, "--client", "-c", help="Only this client"),
    months: int = typer.Option(12, "--months", help="Months ahead to include"),
    data: Path = DataOption,
    as_of: str | None = AsOfOption,
) -> None:
    """Export upcoming vesting events as an iCalendar file."""
    from equityplan.reports import write_ics_calendar

    as_of_date = _as_of(as_of)
    if client_id:
        clients = [_load_client(data, client_id)]
    else:
        try:
            clients = ClientStore(data).load()
        except EquityPlanError as exc:
            _fail(str(exc))

    generator = VestingScheduleGenerator()
    events = generator.upcoming_events(
        generator.aggregate_vesting_events(clients, as_of_date), as_of_date, months
    )
    write_ics_calendar(events, output)
    typer.echo(f"Wrote {len(events)} vesting event(s) to {output}")


@app.command()
def extract(
    file_path: Path = typer.Argument(..., help="Grant document (.pdf, .csv, .tsv, .txt)"),
    client_id: str | None = typer.Option(None, "--client", "-c", help="Add the extracted grants to this client"),
    current_price: str | None = typer.Option(None, "--current-price", help="Current share price for new grants"),
    data: Path = DataOption,
    as_of: str | None = AsOfOption,
) -> None:
    """Extract grants from a document with the AI extraction service.

    Requires ANTHROPIC_API_KEY and the ``extraction`` extra.
    """
    from equityplan.parsing import AnthropicGrantTransport, ExtractionClient, extract_document_text

    as_of_date = _as_of(as_of)
    price = _decimal(current_price, "--current-price") if current_price else None
    try:
        text = extract_document_text(file_path)
        result = ExtractionClient(AnthropicGrantTransport()).extract(text, as_of_date)
    except EquityPlanError as exc:
        _fail(str(exc))

    for issue in result.issues:
        typer.echo(f"Dropped: {issue}", err=True)
    for warning in result.warnings:
        typer.echo(f"Warning: {warning}", err=True)

    table = Table(title=f"Extracted grants: {file_path.name}")
    for column in ("#", "Type", "Company", "Ticker", "Grant ID", "Shares", "Strike", "Grant Date", "Schedule"):
        table.add_column(column)
    for index, g in enumerate(result.grants, start=1):
        table.add_row(
            str(index),
            g.type or "?",
            g.company_name or "",
            g.ticker or "",
            g.external_grant_id or "",
            _num(g.total_shares) if g.total_shares is not None else "?",
            _money(g.strike_price),
            g.grant_date.isoformat() if g.grant_date else "?",
            g.vesting_schedule,
        )
    console.print(table)

    if client_id is None:
        return
    store = ClientStore(data)
    try:
        client = store.get_client(client_id)
        for g in result.grants:
            client.grants.append(g.to_grant(current_price=price))
    except EquityPlanError as exc:
        _fail(str(exc))
    store.upsert_client(client)
    typer.echo(f"Added {len(result.grants)} grant(s) to {client.name}")
