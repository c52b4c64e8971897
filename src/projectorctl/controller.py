"""
Projector Controller Interface

Clean Python API for controlling a projector over its RS232 service port.
Composes :class:`~projectorctl.transport.SerialTransport` (raw I/O) and the
frame tables in :mod:`~projectorctl.protocol`.

Protocol details:
    - Baud: 115200, 8N1, no flow control
    - Requests: literal 11-byte (read) or 10-byte (write) frames
    - Responses: 5-byte header, byte 3 = payload length, then the payload
"""

from __future__ import annotations

import logging
from typing import Optional

from .constants import DEFAULT_BAUD, DEFAULT_DEVICE, DEFAULT_TIMEOUT, HEADER_LENGTH
from .exceptions import PowerIsDownError, UnsupportedCommandError
from .protocol import (
    POWER_STATUS,
    Command,
    Reply,
    decode,
    payload_length,
    read_frame,
    write_frame,
)
from .transport import SerialTransport

logger = logging.getLogger(__name__)


class ProjectorController:
    """Interface for the projector via RS232.

    Use as a context manager for automatic connection handling::

        with ProjectorController('/dev/ttyUSB0') as projector:
            projector.write(Command(CommandKind.POWER, SubCommand.UP))

    The controller is the only user of its transport.  It is not thread-safe;
    callers sharing one instance must serialize whole calls.
    """

    def __init__(
        self,
        port: str = DEFAULT_DEVICE,
        baud: int = DEFAULT_BAUD,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._tx = SerialTransport(port, baud, timeout)

    @property
    def port(self) -> str:
        return self._tx.port

    # -- Context manager ----------------------------------------------------

    def __enter__(self) -> ProjectorController:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    # -- Connection ---------------------------------------------------------

    def connect(self) -> None:
        """Open the serial connection."""
        self._tx.open()

    def disconnect(self) -> None:
        """Close the serial connection (safe to call multiple times)."""
        self._tx.close()

    def reconnect(self) -> None:
        """Close and reopen the serial connection.

        A timed-out read leaves the byte stream mid-frame, so the connection
        is reopened rather than reused.
        """
        logger.info("Reconnecting to %s", self._tx.port)
        self._tx.close()
        self._tx.open()

    @property
    def is_connected(self) -> bool:
        """Return True if the serial port is open."""
        return self._tx.is_open

    # -- Operations ---------------------------------------------------------

    def read(self, command: Command) -> Reply:
        """Query a property and return its decoded value.

        The power state is always queried first.  A power-status request is
        answered from that query; any other read is refused while the
        projector is off.

        Raises:
            UnsupportedCommandError: If *command* is not a status read.
            PowerIsDownError: If the projector is off.
            SerialPortError: On any transport failure.
        """
        if not command.is_readable():
            raise UnsupportedCommandError(f"{command} cannot be read")

        power = decode(POWER_STATUS, self._exchange(read_frame(POWER_STATUS)))
        if command == POWER_STATUS:
            logger.debug("%s -> %s", command, power)
            return power
        if not power.value:
            logger.info("Refusing %s: projector power is down", command)
            raise PowerIsDownError(f"Cannot read {command}: projector power is down")

        reply = decode(command, self._exchange(read_frame(command)))
        logger.debug("%s -> %s", command, reply)
        return reply

    def write(self, command: Command) -> None:
        """Send an ``Up``/``Down`` command.

        The projector's acknowledgement is read to the end of its frame and
        discarded without decoding, so the next request starts on a frame
        boundary.

        Raises:
            UnsupportedCommandError: For ``Status`` sub-commands and lamp time.
            SerialPortError: On any transport failure, including a missing
                acknowledgement.
        """
        ack = self._exchange(write_frame(command))
        logger.debug("%s acknowledged: %s", command, ack.hex(" "))

    def execute(self, command: Command) -> Optional[Reply]:
        """Read *command* if it is readable, otherwise write it."""
        if command.is_readable():
            return self.read(command)
        self.write(command)
        return None

    # -- Low-level I/O ------------------------------------------------------

    def _exchange(self, frame: bytes) -> bytes:
        """Send *frame* and return the payload of the response.

        The header is read first; its length byte sizes the payload read.
        """
        self._tx.send(frame)
        header = self._tx.receive_exact(HEADER_LENGTH)
        return self._tx.receive_exact(payload_length(header))


# ---------------------------------------------------------------------------
# Convenience factory
# ---------------------------------------------------------------------------


def get_controller(port: str = DEFAULT_DEVICE, timeout: float = DEFAULT_TIMEOUT) -> ProjectorController:
    """Return a controller instance (use as a context manager).

    Example::

        with get_controller('/dev/ttyUSB0') as projector:
            print(projector.read(parse_command("lamp_time")))
    """
    return ProjectorController(port, timeout=timeout)
