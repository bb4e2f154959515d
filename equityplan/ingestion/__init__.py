"""Client record persistence."""

from equityplan.ingestion.store import ClientStore, DecimalEncoder

__all__ = ["ClientStore", "DecimalEncoder"]
