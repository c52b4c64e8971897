"""Shared runtime constants for the projector controller.

This is the canonical source of truth for serial parameters, framing sizes
and service defaults.  Other modules should import from here rather than
defining their own copies.
"""

# ---------------------------------------------------------------------------
# Serial link
# ---------------------------------------------------------------------------

DEFAULT_DEVICE = "/dev/ttyUSB0"
DEFAULT_BAUD = 115200
DEFAULT_TIMEOUT = 2.0

# ---------------------------------------------------------------------------
# Framing
# ---------------------------------------------------------------------------

HEADER_LENGTH = 5
LENGTH_BYTE_INDEX = 3  # header byte carrying the payload length

# ---------------------------------------------------------------------------
# HTTP service defaults
# ---------------------------------------------------------------------------

DEFAULT_HOST = "0.0.0.0"
DEFAULT_HTTP_PORT = 43880
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
