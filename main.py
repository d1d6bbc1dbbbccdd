"""
Client Manager - command line entry point

Runs the auto-start (unless `noclient` is passed), then an interactive
command prompt. Clients started here are stopped when the prompt exits.
"""

import sys

from client_manager.logger import setup_logger
from client_manager.commands import main


if __name__ == "__main__":
    setup_logger()
    sys.exit(main())
