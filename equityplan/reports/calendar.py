"""iCalendar (RFC 5545) export of vesting events."""

from datetime import datetime, timedelta
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from equityplan.models.results import VestingEvent
from equityplan.reports.client_report import TEMPLATE_DIR, money, shares

MAX_LINE_OCTETS = 75


def ics_escape(value: object) -> str:
    text = str(value)
    for char, escaped in (("\\", "\\\\"), (";", "\\;"), (",", "\\,"), ("\n", "\\n")):
        text = text.replace(char, escaped)
    return text


def fold_line(line: str) -> str:
    """Fold a content line at 75 octets; continuation lines start with a space."""
    if len(line.encode("utf-8")) <= MAX_LINE_OCTETS:
        return line
    parts: list[str] = []
    current = ""
    limit = MAX_LINE_OCTETS
    for char in line:
        if len((current + char).encode("utf-8")) > limit:
            parts.append(current)
            current = ""
            limit = MAX_LINE_OCTETS - 1
        current += char
    parts.append(current)
    return "\r\n ".join(parts)


class VestingCalendarGenerator:
    """Renders vesting events as all-day calendar entries."""

    def __init__(self) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)), trim_blocks=True, lstrip_blocks=True
        )
        self.env.filters["ics"] = ics_escape

    def render(self, events: list[VestingEvent], generated_at: datetime | None = None) -> str:
        generated_at = generated_at or datetime.now()
        template = self.env.get_template("vesting_calendar.ics")
        body = template.render(
            events=[self._entry(e) for e in events],
            stamp=f"{generated_at:%Y%m%dT%H%M%S}",
        )
        # RFC 5545 requires CRLF line endings
        return "\r\n".join(fold_line(line) for line in body.splitlines() if line) + "\r\n"

    @staticmethod
    def _entry(event: VestingEvent) -> dict[str, str]:
        summary = f"{event.grant_type} Vest: {shares(event.shares)} shares {event.ticker}".rstrip()
        client_name = getattr(event, "client_name", None)
        if client_name:
            summary += f" ({client_name})"
        description = "\n".join(
            [
                f"Company: {event.company_name or event.ticker}",
                f"Shares: {shares(event.shares)}",
                f"Estimated value: {money(event.gross_value)}",
                f"Withholding: {money(event.withholding_amount)}",
            ]
        )
        return {
            "uid": f"{event.grant_id}-{event.date:%Y%m%d}@equityplan",
            "start": f"{event.date:%Y%m%d}",
            "end": f"{event.date + timedelta(days=1):%Y%m%d}",
            "summary": summary,
            "description": description,
        }


def build_ics_calendar(events: list[VestingEvent], generated_at: datetime | None = None) -> str:
    return VestingCalendarGenerator().render(events, generated_at)


def write_ics_calendar(
    events: list[VestingEvent], path: Path, generated_at: datetime | None = None
) -> Path:
    path = Path(path)
    path.write_text(build_ics_calendar(events, generated_at), newline="")
    return path
