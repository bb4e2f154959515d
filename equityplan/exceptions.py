"""Custom exceptions for the equity planning engine."""


class EquityPlanError(Exception):
    """Base exception for equity planning errors."""


class DataValidationError(EquityPlanError):
    """Raised when input data fails validation at a form or import boundary."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error on '{field}': {message}")


class ClientNotFoundError(EquityPlanError):
    """Raised when a client id is not present in the store."""

    def __init__(self, client_id: str):
        self.client_id = client_id
        super().__init__(f"Client not found: {client_id}")


class GrantNotFoundError(EquityPlanError):
    """Raised when a grant id is not present on the client."""

    def __init__(self, grant_id: str):
        self.grant_id = grant_id
        super().__init__(f"Grant not found: {grant_id}")


class DocumentParseError(EquityPlanError):
    """Raised when a grant document cannot be read."""

    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        super().__init__(f"Document parse error for {file_path}: {message}")


class ExtractionServiceError(EquityPlanError):
    """Raised when the grant extraction service fails."""

    def __init__(self, message: str):
        super().__init__(f"Extraction failed: {message}")


class RateLimitError(ExtractionServiceError):
    """Raised by a transport when the extraction service rate-limits a call."""
