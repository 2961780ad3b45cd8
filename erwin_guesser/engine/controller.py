"""
controller.py - Start/stop state machine for the guessing loop.

Responsibility: own EngineState, and while it is RUNNING repeat the cycle

    generate batch → submit to oracle → log outcome → wait cycle delay

Cycles never overlap. The delay is measured from the end of a cycle, so a
slow oracle pushes the next cycle back instead of piling requests up.

Stopping is cooperative. ``stop()`` flips the state and wakes the delay;
the loop notices at its next checkpoint (before generating, after the
delay). A submission already in flight is allowed to finish and its outcome
is still logged, but no further cycle starts. A 401 from the oracle forces
the state to STOPPED the same way; the user has to start again.

Usage from a UI shell (inside a running event loop):

    controller = LoopController(generator, client, log, load_credential)
    controller.start_background()   # or: controller.toggle() + await run()
    ...
    controller.stop()
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, Optional

from erwin_guesser.config import EngineConfig
from erwin_guesser.engine.generator import MnemonicGenerator
from erwin_guesser.engine.log_buffer import LogBuffer
from erwin_guesser.engine.models import (
    Accepted,
    AuthFailed,
    Credential,
    EngineState,
    Rejected,
    SubmissionOutcome,
    TransportError,
)
from erwin_guesser.engine.submission import SubmissionClient
from erwin_guesser.errors import GenerationError, MissingCredentialError

logger = logging.getLogger(__name__)

CredentialProvider = Callable[[], Optional[Credential]]
StateListener = Callable[[EngineState], None]

MISSING_CREDENTIAL_MESSAGE = (
    "Please set your API key (ERWIN_API_KEY) before starting."
)


class LoopController:
    def __init__(
        self,
        generator: MnemonicGenerator,
        client: SubmissionClient,
        log: LogBuffer,
        credential_provider: CredentialProvider,
        config: EngineConfig | None = None,
    ):
        self._generator = generator
        self._client = client
        self._log = log
        self._credential_provider = credential_provider
        self._config = config or EngineConfig()

        self._lock = threading.Lock()
        self._state = EngineState.STOPPED
        self._listeners: list[StateListener] = []

        self._loop_active = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._wakeup: asyncio.Event | None = None
        self._task: asyncio.Task | None = None
        self._cycles_completed = 0
        self._last_outcome: SubmissionOutcome | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is EngineState.RUNNING

    @property
    def cycles_completed(self) -> int:
        with self._lock:
            return self._cycles_completed

    @property
    def last_outcome(self) -> SubmissionOutcome | None:
        """Outcome of the most recent submission, if any."""
        with self._lock:
            return self._last_outcome

    @property
    def config(self) -> EngineConfig:
        return self._config

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` on every state change. Returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _transition(self, expected: EngineState, new: EngineState) -> bool:
        with self._lock:
            if self._state is not expected:
                return False
            self._state = new
            listeners = list(self._listeners)
        logger.info("Engine state: %s -> %s", expected.value, new.value)
        for listener in listeners:
            listener(new)
        return True

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """STOPPED -> RUNNING.

        Raises MissingCredentialError (and stays STOPPED) when no API key is
        available. Returns False without doing anything if already running.
        """
        if self.is_running:
            logger.debug("start() ignored: already running")
            return False

        credential = self._credential_provider()
        if credential is None or not credential.is_complete:
            logger.error("Refusing to start: no API key configured")
            raise MissingCredentialError(MISSING_CREDENTIAL_MESSAGE)

        if not self._transition(EngineState.STOPPED, EngineState.RUNNING):
            return False
        with self._lock:
            self._last_outcome = None
        self._record(logging.INFO, "Guessing started")
        return True

    def stop(self) -> bool:
        """RUNNING -> STOPPED. Safe to call from any thread."""
        if not self._transition(EngineState.RUNNING, EngineState.STOPPED):
            return False
        self._record(logging.INFO, "Guessing stopped")
        self._wake()
        return True

    def toggle(self) -> EngineState:
        """Start when stopped, stop when running. Returns the new state."""
        if self.is_running:
            self.stop()
        else:
            self.start()
        return self.state

    def start_background(self) -> asyncio.Task | None:
        """Start and schedule ``run()`` on the current event loop.

        Returns the loop task, or None if the engine did not end up running.
        A call while the loop task is still alive returns that same task.
        """
        self.start()
        if self._task is not None and not self._task.done():
            return self._task
        if not self.is_running:
            return None
        self._task = asyncio.get_running_loop().create_task(
            self.run(), name="guess-loop"
        )
        return self._task

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Cycle until the state leaves RUNNING.

        Returns immediately if the engine is stopped or another ``run()``
        is already cycling.
        """
        if self._loop_active:
            logger.debug("run() ignored: loop already active")
            return
        self._loop_active = True
        self._loop = asyncio.get_running_loop()
        self._wakeup = asyncio.Event()
        try:
            while self.is_running:
                credential = self._credential_provider()
                if credential is None or not credential.is_complete:
                    self._record(logging.ERROR, "API key missing, guessing stopped")
                    self._transition(EngineState.RUNNING, EngineState.STOPPED)
                    break

                try:
                    await self._cycle(credential)
                except asyncio.CancelledError:
                    if self._transition(EngineState.RUNNING, EngineState.STOPPED):
                        self._record(logging.INFO, "Guessing stopped")
                    raise
                except Exception as exc:
                    self._record(logging.ERROR, f"Unknown error occurred: {exc!r}")
                    if self._transition(EngineState.RUNNING, EngineState.STOPPED):
                        self._record(logging.INFO, "Guessing stopped")
                    raise
                with self._lock:
                    self._cycles_completed += 1

                if not self.is_running:
                    break
                await self._pause()
        finally:
            self._loop_active = False
            self._wakeup = None
            self._loop = None
        logger.info("Guess loop exited after %d cycles", self.cycles_completed)

    async def _cycle(self, credential: Credential) -> None:
        try:
            batch = await self._generator.generate(self._config.batch_size)
        except GenerationError as exc:
            self._record(logging.ERROR, f"Error generating guesses: {exc}")
            return
        self._record(logging.INFO, f"Generated {len(batch)} guesses")

        self._record(logging.INFO, "Submitting to oracle")
        outcome = await self._client.submit(batch, credential)
        self._handle_outcome(outcome)

    def _handle_outcome(self, outcome: SubmissionOutcome) -> None:
        with self._lock:
            self._last_outcome = outcome
        if isinstance(outcome, Accepted):
            self._record(logging.INFO, "Guesses accepted")
        elif isinstance(outcome, Rejected):
            self._record(
                logging.WARNING,
                f"Guesses rejected ({outcome.status}): {outcome.body}",
            )
        elif isinstance(outcome, TransportError):
            self._record(logging.WARNING, f"Error occurred: {outcome.cause}")
        elif isinstance(outcome, AuthFailed):
            detail = f": {outcome.body}" if outcome.body else ""
            self._record(
                logging.ERROR,
                f"Authentication failed (401){detail}. "
                "Guessing stopped, check your API key and start again",
            )
            self._transition(EngineState.RUNNING, EngineState.STOPPED)
        else:
            raise TypeError(f"Unknown submission outcome: {outcome!r}")

    async def _pause(self) -> None:
        wakeup = self._wakeup
        if wakeup is None:
            return
        wakeup.clear()
        if not self.is_running:
            return
        try:
            await asyncio.wait_for(wakeup.wait(), timeout=self._config.cycle_delay_s)
        except asyncio.TimeoutError:
            pass

    def _wake(self) -> None:
        loop, wakeup = self._loop, self._wakeup
        if loop is None or wakeup is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(wakeup.set)

    def _record(self, level: int, message: str) -> None:
        logger.log(level, message)
        self._log.append(message)
