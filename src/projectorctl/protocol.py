"""
Projector serial protocol: command model, frame tables, and reply decoding.

This module sits between the transport (raw serial I/O) and the controller
(user-facing API).  It knows how to:

* describe the closed set of projector commands,
* look up the literal request frame for a command,
* size a response from its header,
* decode typed values out of a response payload.

Request frames carry pre-computed checksums and are kept as literal
constants.  It does **not** own the serial port; that belongs to
:class:`~projectorctl.transport.SerialTransport`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from .constants import HEADER_LENGTH, LENGTH_BYTE_INDEX
from .exceptions import MalformedReplyError, UnknownCommandError, UnsupportedCommandError

# ---------------------------------------------------------------------------
# Enums & Data
# ---------------------------------------------------------------------------


class CommandKind(str, Enum):
    """Projector properties, keyed by their wire name."""

    POWER = "power"
    ECO = "eco"
    BRIGHTNESS = "brightness"
    VOLUME = "volume"
    MUTE = "mute"
    SOURCE = "source"
    LAMP_TIME = "lamp_time"


class SubCommand(str, Enum):
    """Direction qualifier attached to a command."""

    UP = "Up"
    DOWN = "Down"
    STATUS = "Status"


class ReplyKind(str, Enum):
    """Variants of a decoded reply."""

    STATE = "State"
    VALUE_U8 = "ValueU8"
    VALUE_U32 = "ValueU32"


@dataclass(frozen=True)
class Command:
    """A single projector request.

    Every kind except :attr:`CommandKind.LAMP_TIME` carries a
    :class:`SubCommand`; lamp time is read-only and carries none.
    """

    kind: CommandKind
    sub: Optional[SubCommand] = None

    def __post_init__(self) -> None:
        if self.kind is CommandKind.LAMP_TIME:
            if self.sub is not None:
                raise ValueError("lamp_time takes no sub-command")
        elif self.sub is None:
            raise ValueError(f"{self.kind.value} requires a sub-command")

    def is_readable(self) -> bool:
        """Return ``True`` if this command is served by a status read."""
        return self.kind is CommandKind.LAMP_TIME or self.sub is SubCommand.STATUS

    def __str__(self) -> str:
        if self.sub is None:
            return self.kind.value
        return f"{self.kind.value}({self.sub.value})"


@dataclass(frozen=True)
class Reply:
    """Decoded result of a status read."""

    kind: ReplyKind
    value: Union[bool, int]

    @classmethod
    def state(cls, value: bool) -> Reply:
        return cls(ReplyKind.STATE, bool(value))

    @classmethod
    def value_u8(cls, value: int) -> Reply:
        return cls(ReplyKind.VALUE_U8, value & 0xFF)

    @classmethod
    def value_u32(cls, value: int) -> Reply:
        return cls(ReplyKind.VALUE_U32, value & 0xFFFFFFFF)

    def to_dict(self) -> dict[str, Union[bool, int]]:
        """Return the externally tagged form, e.g. ``{"State": True}``."""
        return {self.kind.value: self.value}

    def __str__(self) -> str:
        if self.kind is ReplyKind.STATE:
            return "true" if self.value else "false"
        return str(self.value)


# ---------------------------------------------------------------------------
# Frame tables
# ---------------------------------------------------------------------------

READ_FRAMES: dict[CommandKind, bytes] = {
    CommandKind.POWER: bytes.fromhex("07 14 00 05 00 34 00 00 11 00 5E"),
    CommandKind.ECO: bytes.fromhex("07 14 00 05 00 34 00 00 11 10 6E"),
    CommandKind.BRIGHTNESS: bytes.fromhex("07 14 00 05 00 34 00 00 12 03 62"),
    CommandKind.VOLUME: bytes.fromhex("07 14 00 05 00 34 00 00 14 03 64"),
    CommandKind.MUTE: bytes.fromhex("07 14 00 05 00 34 00 00 14 00 61"),
    CommandKind.SOURCE: bytes.fromhex("07 14 00 05 00 34 00 00 13 01 61"),
    CommandKind.LAMP_TIME: bytes.fromhex("07 14 00 05 00 34 00 00 15 01 63"),
}

WRITE_FRAMES: dict[tuple[CommandKind, SubCommand], bytes] = {
    (CommandKind.POWER, SubCommand.UP): bytes.fromhex("06 14 00 04 00 34 11 00 00 5D"),
    (CommandKind.POWER, SubCommand.DOWN): bytes.fromhex("06 14 00 04 00 34 11 01 00 5E"),
    (CommandKind.SOURCE, SubCommand.UP): bytes.fromhex("06 14 00 04 00 34 13 01 03 63"),
    (CommandKind.SOURCE, SubCommand.DOWN): bytes.fromhex("06 14 00 04 00 34 13 01 07 67"),
    (CommandKind.ECO, SubCommand.UP): bytes.fromhex("06 14 00 04 00 34 11 10 03 70"),
    (CommandKind.ECO, SubCommand.DOWN): bytes.fromhex("06 14 00 04 00 34 11 10 02 6F"),
    (CommandKind.VOLUME, SubCommand.UP): bytes.fromhex("06 14 00 04 00 34 14 01 00 61"),
    (CommandKind.VOLUME, SubCommand.DOWN): bytes.fromhex("06 14 00 04 00 34 14 02 00 62"),
    (CommandKind.MUTE, SubCommand.UP): bytes.fromhex("06 14 00 04 00 34 14 00 01 61"),
    (CommandKind.MUTE, SubCommand.DOWN): bytes.fromhex("06 14 00 04 00 34 14 00 00 60"),
    (CommandKind.BRIGHTNESS, SubCommand.UP): bytes.fromhex("06 14 00 04 00 34 12 03 01 62"),
    (CommandKind.BRIGHTNESS, SubCommand.DOWN): bytes.fromhex("06 14 00 04 00 34 12 03 00 61"),
}

POWER_STATUS = Command(CommandKind.POWER, SubCommand.STATUS)


def read_frame(command: Command) -> bytes:
    """Return the status frame for *command*."""
    if not command.is_readable():
        raise UnsupportedCommandError(f"{command} cannot be read")
    return READ_FRAMES[command.kind]


def write_frame(command: Command) -> bytes:
    """Return the write frame for *command*."""
    if command.sub is None:
        raise UnsupportedCommandError(f"{command} cannot be written")
    try:
        return WRITE_FRAMES[(command.kind, command.sub)]
    except KeyError:
        raise UnsupportedCommandError(f"{command} cannot be written") from None


def payload_length(header: bytes) -> int:
    """Return the payload length announced by a response *header*."""
    if len(header) != HEADER_LENGTH:
        raise MalformedReplyError(
            f"Response header must be {HEADER_LENGTH} bytes, got {len(header)}"
        )
    return header[LENGTH_BYTE_INDEX]


# ---------------------------------------------------------------------------
# Decode rules
# ---------------------------------------------------------------------------


def _value_byte(payload: bytes) -> int:
    if len(payload) < 3:
        raise MalformedReplyError(f"Payload too short for a value byte: {payload.hex(' ')!r}")
    return payload[2]


def _decode_state(payload: bytes) -> Reply:
    return Reply.state(_value_byte(payload) > 0)


def _decode_eco(payload: bytes) -> Reply:
    return Reply.state(_value_byte(payload) == 3)


def _decode_u8(payload: bytes) -> Reply:
    return Reply.value_u8(_value_byte(payload))


def _decode_u32(payload: bytes) -> Reply:
    # The counter is sent least significant byte first.
    if len(payload) < 4:
        raise MalformedReplyError(f"Payload too short for lamp time: {payload.hex(' ')!r}")
    return Reply.value_u32(int.from_bytes(payload[::-1][:4], "big"))


_DECODERS: dict[CommandKind, Callable[[bytes], Reply]] = {
    CommandKind.POWER: _decode_state,
    CommandKind.MUTE: _decode_state,
    CommandKind.ECO: _decode_eco,
    CommandKind.BRIGHTNESS: _decode_u8,
    CommandKind.VOLUME: _decode_u8,
    CommandKind.SOURCE: _decode_u8,
    CommandKind.LAMP_TIME: _decode_u32,
}


def decode(command: Command, payload: bytes) -> Reply:
    """Decode a response *payload* for *command* into a typed :class:`Reply`."""
    return _DECODERS[command.kind](payload)


# ---------------------------------------------------------------------------
# Name parsing
# ---------------------------------------------------------------------------


def parse_kind(name: str) -> CommandKind:
    """Return the :class:`CommandKind` for a wire *name* (``power``, ``lamp-time``...)."""
    try:
        return CommandKind(name.strip().lower().replace("-", "_"))
    except ValueError:
        raise UnknownCommandError(f"Unknown command {name!r}") from None


def parse_command(name: str, sub: Optional[str] = None) -> Command:
    """Build a :class:`Command` from a wire name and optional sub-command.

    Names are case-insensitive and accept ``-`` for ``_``.  *sub* defaults
    to ``Status`` for every kind except ``lamp_time``, which rejects one
    other than ``Status``.

    Raises:
        UnsupportedCommandError: If *name* or *sub* is unknown.
    """
    kind = parse_kind(name)
    sub_command = _parse_sub(sub) if sub is not None else SubCommand.STATUS
    if kind is CommandKind.LAMP_TIME:
        if sub_command is not SubCommand.STATUS:
            raise UnsupportedCommandError("lamp_time is read-only")
        return Command(kind)
    return Command(kind, sub_command)


def _parse_sub(sub: str) -> SubCommand:
    for candidate in SubCommand:
        if candidate.value.lower() == sub.strip().lower():
            return candidate
    raise UnknownCommandError(
        f"Unknown sub-command {sub!r}; expected one of {[s.value for s in SubCommand]}"
    )
