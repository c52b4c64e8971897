"""
Exception hierarchy for the projector controller.

All exceptions inherit from :class:`ProjectorError` so callers can catch
broadly (``except ProjectorError``) or narrowly (``except PowerIsDownError``).
Errors raised by the controller carry a :class:`ControllerErr` ``kind`` that
the CLI and HTTP adapters use to pick an exit or status code.
"""

from __future__ import annotations

from enum import Enum


class ControllerErr(str, Enum):
    """Closed set of controller failure kinds."""

    SERIAL_PORT_ERROR = "SerialPortError"
    UNSUPPORTED_COMMAND = "UnsupportedCommand"
    POWER_IS_DOWN = "PowerIsDown"


class ProjectorError(Exception):
    """Base exception for all projector controller errors."""

    kind: ControllerErr | None = None


class SerialPortError(ProjectorError):
    """Raised when the serial port cannot be opened, written or read."""

    kind = ControllerErr.SERIAL_PORT_ERROR


class MalformedReplyError(SerialPortError):
    """Raised when a response frame is too short for its decode rule."""


class UnsupportedCommandError(ProjectorError):
    """Raised for a command/sub-command pair outside the protocol table."""

    kind = ControllerErr.UNSUPPORTED_COMMAND


class UnknownCommandError(UnsupportedCommandError):
    """Raised when a command or sub-command name is not recognised."""


class PowerIsDownError(ProjectorError):
    """Raised when a status read is attempted while the projector is off."""

    kind = ControllerErr.POWER_IS_DOWN


class ConfigError(ProjectorError):
    """Raised when a configuration file is malformed."""
