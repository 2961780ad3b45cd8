"""
Tests for the oracle submission client.

These tests verify:
1. Status code classification (202 / 401 / other)
2. Transport failures become TransportError outcomes
3. Request shape: method, URL, API key header, JSON body, timeout
"""

import asyncio
import json

import httpx
import pytest

from erwin_guesser.engine.models import (
    Accepted,
    AuthFailed,
    Credential,
    GuessBatch,
    Rejected,
    TransportError,
)
from erwin_guesser.engine.submission import (
    DEFAULT_ORACLE_URL,
    MAX_BODY_CHARS,
    SubmissionClient,
    classify_response,
)


CREDENTIAL = Credential(api_key="test-key", wallet_address="Wallet111")
BATCH = GuessBatch(phrases=("alpha beta", "gamma delta"))


def _submit_with(handler, timeout_s=120.0):
    client = SubmissionClient(
        DEFAULT_ORACLE_URL,
        timeout_s=timeout_s,
        transport=httpx.MockTransport(handler),
    )
    return asyncio.run(client.submit(BATCH, CREDENTIAL))


# =============================================================================
# CLASSIFICATION TESTS
# =============================================================================

class TestClassifyResponse:
    """Test the status → outcome mapping."""

    def test_202_is_accepted(self):
        assert classify_response(202, "") == Accepted()

    def test_401_is_auth_failed(self):
        outcome = classify_response(401, "bad key")

        assert isinstance(outcome, AuthFailed)
        assert outcome.fatal

    @pytest.mark.parametrize("status", [200, 400, 403, 429, 500, 503])
    def test_other_status_is_rejected(self, status):
        """Even 200 is a rejection: only 202 means queued."""
        outcome = classify_response(status, "nope")

        assert outcome == Rejected(status=status, body="nope")
        assert not outcome.fatal


# =============================================================================
# HTTP TESTS
# =============================================================================

class TestSubmissionClient:
    """Test the client against a mock transport."""

    def test_accepted_response(self):
        outcome = _submit_with(lambda request: httpx.Response(202))

        assert isinstance(outcome, Accepted)

    def test_unauthorized_response(self):
        outcome = _submit_with(lambda request: httpx.Response(401, text="invalid api key"))

        assert outcome == AuthFailed(body="invalid api key")

    def test_server_error_is_rejected_with_body(self):
        outcome = _submit_with(lambda request: httpx.Response(500, text="overloaded"))

        assert outcome == Rejected(status=500, body="overloaded")

    def test_long_body_is_truncated(self):
        outcome = _submit_with(lambda request: httpx.Response(400, text="x" * 5000))

        assert isinstance(outcome, Rejected)
        assert len(outcome.body) == MAX_BODY_CHARS

    def test_connection_failure_is_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        outcome = _submit_with(handler)

        assert isinstance(outcome, TransportError)
        assert "connection refused" in outcome.cause

    def test_timeout_is_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        outcome = _submit_with(handler)

        assert isinstance(outcome, TransportError)
        assert not outcome.fatal

    def test_undecodable_body_is_transport_error(self):
        """A body that fails content decoding yields no usable response."""
        outcome = _submit_with(
            lambda request: httpx.Response(
                500, headers={"content-encoding": "gzip"}, content=b"not gzip"
            )
        )

        assert isinstance(outcome, TransportError)
        assert outcome.cause

    def test_redirect_loop_is_transport_error(self):
        def handler(request):
            raise httpx.TooManyRedirects("redirect loop", request=request)

        outcome = _submit_with(handler)

        assert isinstance(outcome, TransportError)
        assert "redirect loop" in outcome.cause

    def test_request_shape(self):
        """One POST with the key header and a JSON array of phrases."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(202)

        _submit_with(handler)

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == DEFAULT_ORACLE_URL
        assert request.headers["x-api-key"] == "test-key"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == ["alpha beta", "gamma delta"]

    def test_request_carries_timeout(self):
        seen = []

        def handler(request):
            seen.append(request.extensions["timeout"])
            return httpx.Response(202)

        _submit_with(handler, timeout_s=120.0)

        assert seen[0]["read"] == 120.0
        assert seen[0]["connect"] == 120.0

    def test_no_retry_on_failure(self):
        """One submit is exactly one request, even on a 5xx."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        _submit_with(handler)

        assert len(calls) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
