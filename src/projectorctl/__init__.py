"""Projector serial controller: protocol core, CLI and HTTP façade"""

from .controller import ProjectorController, get_controller
from .exceptions import (
    ConfigError,
    ControllerErr,
    MalformedReplyError,
    PowerIsDownError,
    ProjectorError,
    SerialPortError,
    UnknownCommandError,
    UnsupportedCommandError,
)
from .protocol import Command, CommandKind, Reply, ReplyKind, SubCommand, parse_command

__all__ = [
    "Command",
    "CommandKind",
    "ConfigError",
    "ControllerErr",
    "MalformedReplyError",
    "PowerIsDownError",
    "ProjectorController",
    "ProjectorError",
    "Reply",
    "ReplyKind",
    "SerialPortError",
    "SubCommand",
    "UnknownCommandError",
    "UnsupportedCommandError",
    "get_controller",
    "parse_command",
]
__version__ = "0.1.0"
