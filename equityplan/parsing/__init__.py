"""Grant document parsing and AI extraction."""

from equityplan.parsing.client import (
    AnthropicGrantTransport,
    ExtractionClient,
    RetryPolicy,
    parse_json_response,
)
from equityplan.parsing.documents import extract_document_text
from equityplan.parsing.extraction import (
    ExtractedGrantData,
    ExtractionNormalizer,
    ExtractionResult,
)

__all__ = [
    "AnthropicGrantTransport",
    "ExtractedGrantData",
    "ExtractionClient",
    "ExtractionNormalizer",
    "ExtractionResult",
    "RetryPolicy",
    "extract_document_text",
    "parse_json_response",
]
