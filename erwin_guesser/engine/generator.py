"""Candidate phrase generator.

Each candidate is a 12-word BIP-39 English mnemonic built from 16 bytes
(128 bits) drawn from ``secrets``, the OS cryptographic random source. The
word-list conversion itself is deterministic and handled by the ``mnemonic``
package, which also provides the checksum validation used by the tests.

A batch is built concurrently, one worker-thread call per phrase, and
returned as a single GuessBatch once every phrase is ready.
"""

from __future__ import annotations

import asyncio
import logging
import secrets

from mnemonic import Mnemonic

from erwin_guesser.engine.models import GuessBatch
from erwin_guesser.errors import GenerationError

logger = logging.getLogger(__name__)

ENTROPY_BYTES = 16  # 128 bits -> 12 words
WORDLIST_LANGUAGE = "english"

_MNEMO = Mnemonic(WORDLIST_LANGUAGE)


def generate_phrase() -> str:
    """Draw fresh entropy and encode it as a checksummed phrase."""
    try:
        entropy = secrets.token_bytes(ENTROPY_BYTES)
    except (OSError, NotImplementedError) as exc:
        raise GenerationError(f"secure random source unavailable: {exc}") from exc
    return _MNEMO.to_mnemonic(entropy)


def is_valid_phrase(phrase: str) -> bool:
    return _MNEMO.check(phrase)


class MnemonicGenerator:
    """Produces GuessBatch values of independent random phrases."""

    def __init__(self, phrase_factory=generate_phrase):
        self._phrase_factory = phrase_factory

    async def generate(self, batch_size: int) -> GuessBatch:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        results = await asyncio.gather(
            *(asyncio.to_thread(self._phrase_factory) for _ in range(batch_size)),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, GenerationError):
                raise result
            if isinstance(result, Exception):
                raise GenerationError(f"phrase generation failed: {result}") from result
            if isinstance(result, BaseException):
                raise result

        logger.debug("Generated batch of %d phrases", len(results))
        return GuessBatch(phrases=tuple(results))
