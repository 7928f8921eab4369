"""Logging configuration for the tcping console tool."""

import logging
import os
import sys

LOG_LEVEL_ENV = "TCPING_LOG_LEVEL"


def configure_logging() -> None:
    """Send diagnostics to stderr at the level named by TCPING_LOG_LEVEL.

    Attempt lines and statistics are written to stdout, so logging never
    shares that stream. The default level is WARNING: engine start/stop and
    worker lifecycle messages are INFO and DEBUG, and would otherwise break
    up the per-attempt lines. Unknown level names fall back to WARNING.

    Example:
        $ TCPING_LOG_LEVEL=DEBUG tcping example.com -p 443 2>tcping.log
    """
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    logging.getLogger(__name__).info(
        "Logging configured: level=%s", logging.getLevelName(level)
    )
