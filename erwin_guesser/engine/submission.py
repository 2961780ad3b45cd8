"""Async client for the guess oracle.

Sends one GuessBatch per call as the JSON body of an authenticated POST and
classifies what came back:

  202            -> Accepted
  401            -> AuthFailed (the caller stops the engine)
  anything else  -> Rejected(status, body)
  no usable response (network, timeout, undecodable body)
                 -> TransportError(cause)

No retries here: one call is exactly one request. Pacing and retry belong to
the loop controller's fixed cadence.
"""

from __future__ import annotations

import logging

import httpx

from erwin_guesser.engine.models import (
    Accepted,
    AuthFailed,
    Credential,
    GuessBatch,
    Rejected,
    SubmissionOutcome,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_ORACLE_URL = "https://api.erwin.lol/submit_guesses"
DEFAULT_TIMEOUT_S = 120.0
API_KEY_HEADER = "x-api-key"

# Response bodies are echoed into the user log; keep them short.
MAX_BODY_CHARS = 500


def classify_response(status_code: int, body: str) -> SubmissionOutcome:
    if status_code == 202:
        return Accepted()
    if status_code == 401:
        return AuthFailed(body=body)
    return Rejected(status=status_code, body=body)


class SubmissionClient:
    def __init__(
        self,
        oracle_url: str = DEFAULT_ORACLE_URL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._oracle_url = oracle_url
        self._timeout_s = timeout_s
        self._transport = transport

    @property
    def oracle_url(self) -> str:
        return self._oracle_url

    async def submit(self, batch: GuessBatch, credential: Credential) -> SubmissionOutcome:
        """POST the batch and return the classified outcome.

        Never raises for HTTP or network failures; those come back as
        Rejected / AuthFailed / TransportError values.
        """
        headers = {
            API_KEY_HEADER: credential.api_key,
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s, transport=self._transport
            ) as client:
                response = await client.post(
                    self._oracle_url, json=batch.to_payload(), headers=headers
                )
        except httpx.RequestError as exc:
            # Transport failures, undecodable bodies and redirect loops alike.
            cause = str(exc) or type(exc).__name__
            logger.warning("Oracle request failed without a usable response: %s", cause)
            return TransportError(cause=cause)

        outcome = classify_response(response.status_code, response.text[:MAX_BODY_CHARS])
        logger.debug(
            "Oracle responded %d for %d phrases -> %s",
            response.status_code,
            len(batch),
            type(outcome).__name__,
        )
        return outcome
