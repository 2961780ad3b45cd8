"""Entry point for `python -m erwin_guesser`."""

import sys

from dotenv import load_dotenv

load_dotenv()

from erwin_guesser.cli import main

if __name__ == "__main__":
    sys.exit(main())
