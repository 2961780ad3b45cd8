# erwin_guesser.engine - the guess generation & submission loop
#
# Modules:
#   models.py      - GuessBatch, Credential, SubmissionOutcome variants, LogEntry, EngineState
#   generator.py   - BIP-39 candidate phrases from secure random entropy
#   submission.py  - POSTs a batch to the oracle and classifies the response
#   log_buffer.py  - in-memory, hourly-cleared log shown to the user
#   controller.py  - start/stop state machine that drives the cycle
