"""JSON file persistence for client records.

The file holds ``{"clients": [...]}`` with the camelCase record keys the rest
of the system exchanges (``totalShares``, ``plannedExercises``...).
"""

import json
import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from equityplan.exceptions import (
    ClientNotFoundError,
    DataValidationError,
    GrantNotFoundError,
)
from equityplan.models.client import Client, PlannedExercise, StockSale

logger = logging.getLogger(__name__)


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that writes Decimal as a plain JSON number."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            if obj == obj.to_integral_value():
                return int(obj)
            return float(obj)
        if isinstance(obj, (date, datetime)):
            return obj.isoformat()
        return super().default(obj)


class ClientStore:
    """Loads and saves the advisor's clients from a single JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> list[Client]:
        if not self.path.exists():
            logger.debug("No client file at %s, starting empty", self.path)
            return []
        try:
            raw = json.loads(self.path.read_text())
        except json.JSONDecodeError as exc:
            raise DataValidationError("clients", f"{self.path} is not valid JSON: {exc}") from exc

        records = raw.get("clients", []) if isinstance(raw, dict) else raw
        if not isinstance(records, list):
            raise DataValidationError("clients", "expected a list of client records")

        clients = []
        for index, record in enumerate(records):
            try:
                clients.append(Client.model_validate(record))
            except ValidationError as exc:
                raise DataValidationError(f"clients[{index}]", str(exc)) from exc
        return clients

    def save(self, clients: list[Client]) -> None:
        payload = {
            "clients": [c.model_dump(by_alias=True, exclude_none=True) for c in clients]
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2, cls=DecimalEncoder) + "\n")
        logger.debug("Saved %d client(s) to %s", len(clients), self.path)

    def get_client(self, client_id: str) -> Client:
        for client in self.load():
            if client.id == client_id:
                return client
        raise ClientNotFoundError(client_id)

    def upsert_client(self, client: Client) -> None:
        clients = [c for c in self.load() if c.id != client.id]
        clients.append(client)
        self.save(clients)

    def add_planned_exercise(self, client_id: str, exercise: PlannedExercise) -> Client:
        clients = self.load()
        client = self._find(clients, client_id)
        if client.get_grant(exercise.grant_id) is None:
            raise GrantNotFoundError(exercise.grant_id)
        client.planned_exercises.append(exercise)
        self.save(clients)
        return client

    def record_sale(
        self,
        client_id: str,
        grant_id: str,
        sale_date: date,
        shares: Decimal,
        price: Decimal,
        reason: str = "",
        notes: str | None = None,
    ) -> StockSale:
        """Append a realized sale to a grant.

        Raises:
            DataValidationError: shares <= 0 or price < 0.
        """
        if shares <= 0:
            raise DataValidationError("shares", "must be greater than 0")
        if price < 0:
            raise DataValidationError("price", "must not be negative")

        clients = self.load()
        client = self._find(clients, client_id)
        grant = client.get_grant(grant_id)
        if grant is None:
            raise GrantNotFoundError(grant_id)

        sale = StockSale(
            id=uuid.uuid4().hex,
            grant_id=grant_id,
            sale_date=sale_date,
            shares_sold=shares,
            sale_price=price,
            total_proceeds=shares * price,
            reason=reason,
            notes=notes,
            created_at=datetime.now().isoformat(timespec="seconds"),
        )
        grant.sales.append(sale)
        self.save(clients)
        return sale

    @staticmethod
    def _find(clients: list[Client], client_id: str) -> Client:
        for client in clients:
            if client.id == client_id:
                return client
        raise ClientNotFoundError(client_id)
