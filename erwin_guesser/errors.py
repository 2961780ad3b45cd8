"""Exception hierarchy shared by the engine, stats client and CLI."""

from __future__ import annotations


class ErwinGuesserError(Exception):
    """Base class for all errors raised by this package."""


class GenerationError(ErwinGuesserError):
    """Raised when the secure random source cannot produce entropy.

    Aborts the current cycle only; the loop keeps running and tries again
    after the usual delay.
    """


class MissingCredentialError(ErwinGuesserError):
    """Raised by ``LoopController.start`` when no usable API key is set.

    This is the one engine error the UI is expected to show the user
    directly. The engine stays stopped.
    """


class StatsApiError(ErwinGuesserError):
    """Raised when a stats service request fails or returns a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
