"""AMT safe-harbor room.

Uses a flat annual exemption per filing status as a planning heuristic.
The real Form 6251 phase-out is not modeled.
"""

from decimal import Decimal

from equityplan.engines.brackets import AMT_SAFE_HARBOR
from equityplan.models.client import Client
from equityplan.models.enums import FilingStatus
from equityplan.models.results import AMTUsage


class AMTRoomCalculator:
    """Computes how much ISO spread a client can recognize per year."""

    def calculate_amt_room(self, client: Client) -> Decimal:
        if client.custom_amt_safe_harbor is not None:
            return client.custom_amt_safe_harbor
        return AMT_SAFE_HARBOR.get(client.filing_status, AMT_SAFE_HARBOR[FilingStatus.SINGLE])

    def amt_usage(self, client: Client, year: int) -> AMTUsage:
        """Room consumed by the client's planned exercises dated in ``year``."""
        room = self.calculate_amt_room(client)
        used = sum(
            (pe.amt_exposure for pe in client.planned_exercises if pe.exercise_date.year == year),
            Decimal("0"),
        )
        return AMTUsage(year=year, room=room, used=used, remaining=max(room - used, Decimal("0")))
