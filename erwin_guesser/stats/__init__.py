# erwin_guesser.stats - read-only display data
#
# Modules:
#   models.py  - box / leaderboard / wallet dataclasses parsed from JSON
#   client.py  - async GETs against the stats service
#   poller.py  - fixed-interval refresh, independent of the guessing loop
