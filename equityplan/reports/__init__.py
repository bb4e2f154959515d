"""Report generation."""

from equityplan.reports.calendar import VestingCalendarGenerator, build_ics_calendar, write_ics_calendar
from equityplan.reports.client_report import ClientReportGenerator

__all__ = [
    "ClientReportGenerator",
    "VestingCalendarGenerator",
    "build_ics_calendar",
    "write_ics_calendar",
]
