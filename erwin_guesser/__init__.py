"""erwin_guesser - terminal client for the Erwin box game.

Two halves:
  engine/  - the guessing loop: mnemonic generation, oracle submission,
             in-memory log, and the start/stop state machine.
  stats/   - read-only box, leaderboard and wallet statistics polled
             from the public stats service for display.
"""

__version__ = "0.1.0"
