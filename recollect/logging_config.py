"""
Logging setup.

Every module logs to its own "recollect.<module>" logger. Only the parent
"recollect" logger gets a handler, and it writes to stderr: stdout carries
the MCP protocol and must never see a log line.
"""

import logging
import sys


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach the stderr handler (once) and set the level. Safe to call again."""
    logger = logging.getLogger("recollect")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    return logger
