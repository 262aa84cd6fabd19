"""
Command-line interface utilities for solsys.

Logging configuration shared by all commands.
"""

import logging
from typing import Any, Dict

from ..logging import set_log_level


def configure_logging(args: Dict[str, Any]) -> None:
    """
    Configure logging based on command line flags.

    Args:
        args: Dictionary with "quiet", "debug" and "verbose" entries
    """
    quiet = args.get("quiet", False)
    debug = args.get("debug", False)
    verbosity = args.get("verbose", 0)

    if quiet:
        log_level = logging.ERROR
    elif debug:
        log_level = logging.DEBUG
    else:
        # 0 -> WARNING, 1 -> INFO, 2+ -> DEBUG
        if verbosity == 0:
            log_level = logging.WARNING
        elif verbosity == 1:
            log_level = logging.INFO
        else:
            log_level = logging.DEBUG

    set_log_level(log_level)
    logging.getLogger("solsys").debug(
        f"Logging configured with level {logging.getLevelName(log_level)}"
    )
