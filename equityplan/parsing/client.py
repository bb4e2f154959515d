"""Grant extraction service client with an explicit retry/throttle policy."""

import json
import logging
import os
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Protocol

from equityplan.exceptions import ExtractionServiceError, RateLimitError
from equityplan.parsing.extraction import ExtractionNormalizer, ExtractionResult
from equityplan.parsing.prompts import EXTRACTION_PROMPT, SYSTEM_PROMPT

logger = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    """Retry and throttle settings for extraction calls.

    ``backoff_schedule`` holds the wait in seconds before retry N (the last
    entry repeats). ``min_interval`` is the minimum spacing between calls made
    through one client. ``clock`` and ``sleep`` are injectable for tests.
    """

    max_attempts: int = 3
    backoff_schedule: tuple[float, ...] = (2.0, 4.0, 8.0)
    min_interval: float = 3.0
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def backoff(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        if not self.backoff_schedule:
            return 0.0
        return self.backoff_schedule[min(attempt, len(self.backoff_schedule)) - 1]


class GrantTransport(Protocol):
    def extract_grants(self, text: str) -> Any:
        """Return raw extraction JSON for ``text``; raise RateLimitError on 429."""
        ...


class ExtractionClient:
    """Sends document text to a transport, retrying only on rate limits."""

    def __init__(
        self,
        transport: GrantTransport,
        policy: RetryPolicy | None = None,
        normalizer: ExtractionNormalizer | None = None,
    ):
        self.transport = transport
        self.policy = policy or RetryPolicy()
        self.normalizer = normalizer or ExtractionNormalizer()
        self._last_request_at: float | None = None

    def extract(self, text: str, as_of: date) -> ExtractionResult:
        raw = self.request(text)
        return self.normalizer.normalize(raw, as_of, source_text=text)

    def request(self, text: str) -> Any:
        policy = self.policy
        last_error: Exception | None = None
        for attempt in range(1, policy.max_attempts + 1):
            self._throttle()
            try:
                return self.transport.extract_grants(text)
            except RateLimitError as exc:
                last_error = exc
                if attempt >= policy.max_attempts:
                    break
                wait = policy.backoff(attempt)
                logger.warning(
                    "Extraction rate limited (attempt %d/%d). Retrying in %.1fs...",
                    attempt, policy.max_attempts, wait,
                )
                policy.sleep(wait)
            except ExtractionServiceError:
                raise
            except Exception as exc:
                raise ExtractionServiceError(str(exc)) from exc

        raise ExtractionServiceError(
            f"rate limited after {policy.max_attempts} attempts: {last_error}"
        )

    def _throttle(self) -> None:
        policy = self.policy
        if self._last_request_at is not None:
            elapsed = policy.clock() - self._last_request_at
            if elapsed < policy.min_interval:
                wait = policy.min_interval - elapsed
                logger.info("Throttling: waiting %.1fs before the next extraction call", wait)
                policy.sleep(wait)
        self._last_request_at = policy.clock()


class AnthropicGrantTransport:
    """Extracts grants from document text with the Anthropic Messages API."""

    MODEL = "claude-sonnet-4-20250514"
    MAX_TEXT_CHARS = 100_000

    def __init__(self, api_key: str | None = None, max_tokens: int = 4096):
        self._api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not self._api_key:
            raise ExtractionServiceError("ANTHROPIC_API_KEY not set. Export it or pass an API key.")
        self.max_tokens = max_tokens
        self._client = None

    @property
    def client(self):
        if self._client is None:
            try:
                import anthropic
            except ImportError:
                raise ExtractionServiceError(
                    "anthropic package not installed. Run: pip install 'equityplan[extraction]'"
                )
            self._client = anthropic.Anthropic(api_key=self._api_key)
        return self._client

    def extract_grants(self, text: str) -> Any:
        client = self.client
        import anthropic

        if len(text) > self.MAX_TEXT_CHARS:
            logger.warning(
                "Document text truncated from %d to %d characters", len(text), self.MAX_TEXT_CHARS
            )
            text = text[: self.MAX_TEXT_CHARS]

        logger.info("Calling extraction model with %d characters of text", len(text))
        try:
            response = client.messages.create(
                model=self.MODEL,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": EXTRACTION_PROMPT.format(text=text)}],
            )
        except anthropic.RateLimitError as exc:
            raise RateLimitError(str(exc)) from exc
        except anthropic.APIError as exc:
            raise ExtractionServiceError(str(exc)) from exc

        if response.stop_reason == "max_tokens":
            logger.warning(
                "Extraction response was truncated (hit max_tokens=%d)", self.max_tokens
            )
        response_text = response.content[0].text
        result = parse_json_response(response_text)
        if result is None:
            logger.error(
                "Extraction returned no parseable JSON. Raw response (first 2000 chars):\n%s",
                response_text[:2000],
            )
            raise ExtractionServiceError(
                f"model returned no parseable JSON. Response preview: {response_text[:300]}"
            )
        return result


def _strip_code_fence(text: str) -> str:
    if not text.startswith("```"):
        return text
    # Drop the opening line, which may carry a language tag
    body = text.partition("\n")[2]
    return body.rstrip().removesuffix("```").rstrip()


def parse_json_response(response_text: str) -> dict | list | None:
    """Decode the grant payload from a model reply.

    Replies are expected to be bare JSON but sometimes arrive inside a
    markdown code fence or with a sentence of prose around the payload. The
    fence is removed first. If the remainder does not decode, the widest
    ``{...}`` span is tried, then the widest ``[...]`` span.

    Returns:
        The decoded object or list, or ``None`` when no candidate decodes.
    """
    text = _strip_code_fence(response_text.strip())

    candidates = [text]
    for opener, closer in (("{", "}"), ("[", "]")):
        start, end = text.find(opener), text.rfind(closer)
        if 0 <= start < end:
            candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None
