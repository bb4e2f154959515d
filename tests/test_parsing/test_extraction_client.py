"""Tests for the extraction client retry/throttle policy and JSON parsing."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from equityplan.exceptions import ExtractionServiceError, RateLimitError
from equityplan.parsing.client import (
    AnthropicGrantTransport,
    ExtractionClient,
    RetryPolicy,
    parse_json_response,
)


class FakeClock:
    """Monotonic clock that only moves when the client sleeps."""

    def __init__(self):
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def policy(clock: FakeClock) -> RetryPolicy:
    return RetryPolicy(clock=clock, sleep=clock.sleep)


GRANTS_JSON = {
    "grants": [
        {
            "grantType": "RSU",
            "shares": 400,
            "grantDate": "2024-02-01",
            "companyName": "Acme Corp",
            "cliffMonths": 12,
            "vestingMonths": 48,
        }
    ]
}


class TestRetryPolicy:
    def test_backoff_schedule(self):
        policy = RetryPolicy()
        assert [policy.backoff(n) for n in (1, 2, 3, 4)] == [2.0, 4.0, 8.0, 8.0]

    def test_empty_schedule(self):
        assert RetryPolicy(backoff_schedule=()).backoff(1) == 0.0


class TestExtractionClient:
    def test_extract_normalizes(self, policy):
        transport = MagicMock()
        transport.extract_grants.return_value = GRANTS_JSON
        result = ExtractionClient(transport, policy).extract("doc text", date(2025, 1, 1))
        assert len(result.grants) == 1
        assert result.grants[0].company_name == "Acme Corp"
        transport.extract_grants.assert_called_once_with("doc text")

    def test_retries_rate_limits_with_backoff(self, policy, clock):
        transport = MagicMock()
        transport.extract_grants.side_effect = [
            RateLimitError("429"),
            RateLimitError("429"),
            GRANTS_JSON,
        ]
        raw = ExtractionClient(transport, policy).request("doc")
        assert raw == GRANTS_JSON
        assert transport.extract_grants.call_count == 3
        # The 2s backoff is topped up to the 3s minimum interval
        assert clock.sleeps == [2.0, 1.0, 4.0]

    def test_gives_up_after_max_attempts(self, policy, clock):
        transport = MagicMock()
        transport.extract_grants.side_effect = RateLimitError("429")
        with pytest.raises(ExtractionServiceError, match="rate limited after 3 attempts"):
            ExtractionClient(transport, policy).request("doc")
        assert transport.extract_grants.call_count == 3
        assert clock.sleeps == [2.0, 1.0, 4.0]

    def test_other_service_errors_are_not_retried(self, policy):
        transport = MagicMock()
        transport.extract_grants.side_effect = ExtractionServiceError("bad request")
        with pytest.raises(ExtractionServiceError, match="bad request"):
            ExtractionClient(transport, policy).request("doc")
        assert transport.extract_grants.call_count == 1

    def test_unexpected_errors_are_wrapped(self, policy):
        transport = MagicMock()
        transport.extract_grants.side_effect = ConnectionError("reset")
        with pytest.raises(ExtractionServiceError, match="reset"):
            ExtractionClient(transport, policy).request("doc")

    def test_throttles_back_to_back_calls(self, policy, clock):
        transport = MagicMock()
        transport.extract_grants.return_value = GRANTS_JSON
        client = ExtractionClient(transport, policy)
        client.request("first")
        clock.now += 1.0
        client.request("second")
        assert clock.sleeps == [2.0]

    def test_no_throttle_after_interval(self, policy, clock):
        transport = MagicMock()
        transport.extract_grants.return_value = GRANTS_JSON
        client = ExtractionClient(transport, policy)
        client.request("first")
        clock.now += 5.0
        client.request("second")
        assert clock.sleeps == []


class TestAnthropicTransport:
    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ExtractionServiceError, match="ANTHROPIC_API_KEY"):
            AnthropicGrantTransport()

    def test_explicit_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        transport = AnthropicGrantTransport(api_key="test-key")
        assert transport.max_tokens == 4096


class TestParseJsonResponse:
    def test_plain_json(self):
        assert parse_json_response('{"grants": []}') == {"grants": []}

    def test_code_fence(self):
        text = '```json\n{"grants": [{"shares": 1}]}\n```'
        assert parse_json_response(text) == {"grants": [{"shares": 1}]}

    def test_surrounding_prose(self):
        text = 'Here are the grants:\n{"grants": []}\nLet me know if you need more.'
        assert parse_json_response(text) == {"grants": []}

    def test_array(self):
        assert parse_json_response('[{"shares": 2}, {"shares": 3}]') == [{"shares": 2}, {"shares": 3}]

    def test_bare_fence_without_language_tag(self):
        assert parse_json_response('```\n[{"shares": 4}]\n```') == [{"shares": 4}]

    def test_unclosed_fence(self):
        assert parse_json_response('```json\n{"grants": []}') == {"grants": []}

    def test_unparseable(self):
        assert parse_json_response("no json here") is None
