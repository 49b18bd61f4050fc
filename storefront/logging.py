"""
Logging setup for the storefront.

The root logger is configured once, on first import. Modules then do:

    from storefront.logging import get_logger
    logger = get_logger(__name__)

Session ids and server-provided text pass through the ``sanitize_*``
helpers before they are logged.
"""

import logging
import os
import sys
from functools import cache

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CLI_FORMAT = "%(levelname)s - %(name)s - %(message)s"

# Control characters that would let a value start a fake log line
_ESCAPES = str.maketrans({"\n": "\\n", "\r": "\\r", "\t": "\\t", "\x00": None})


def _setup() -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    cli_mode = os.environ.get("STOREFRONT_CLI") == "1"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(CLI_FORMAT if cli_mode else DETAILED_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)

    # One request log line per reconciliation step is noise
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


_setup()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def sanitize_id_for_logging(id_value: str | None) -> str:
    """Short, single-line prefix of a session id or token ("N/A" when empty)."""
    if not id_value:
        return "N/A"
    return str(id_value).translate(_ESCAPES)[:8]


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """Single-line, length-capped rendering of server error text or item ids."""
    if not value:
        return "N/A"
    text = str(value).translate(_ESCAPES)
    return text if len(text) <= max_length else f"{text[:max_length]}..."
