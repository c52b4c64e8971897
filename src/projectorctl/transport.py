"""
Serial transport layer for the projector controller.

Handles the physical serial connection and byte-exact I/O.  Knows nothing
about what frames mean, which is :mod:`protocol`'s job.

Typical usage (via :class:`~projectorctl.controller.ProjectorController`)::

    transport = SerialTransport("/dev/ttyUSB0")
    transport.open()
    transport.send(frame)
    header = transport.receive_exact(5)
    transport.close()
"""

from __future__ import annotations

import logging

import serial

from .constants import DEFAULT_BAUD, DEFAULT_DEVICE, DEFAULT_TIMEOUT
from .exceptions import SerialPortError

logger = logging.getLogger(__name__)


class SerialTransport:
    """Manages a serial connection to the projector.

    Args:
        port: Serial port path (e.g. ``/dev/ttyUSB0``).
        baudrate: Baud rate (default 115200).
        timeout: Read and write timeout in seconds.  Also the upper bound
            on how long :meth:`receive_exact` will block.
    """

    def __init__(
        self,
        port: str = DEFAULT_DEVICE,
        baudrate: int = DEFAULT_BAUD,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self._ser: serial.Serial | None = None

    # -- Context manager ----------------------------------------------------

    def __enter__(self) -> SerialTransport:
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -- Lifecycle ----------------------------------------------------------

    def open(self) -> None:
        """Open and configure the serial port (8N1, no flow control).

        Raises:
            SerialPortError: If the port cannot be opened or configured.
        """
        logger.info("Opening serial port %s at %d baud", self.port, self.baudrate)
        try:
            self._ser = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
                timeout=self.timeout,
                write_timeout=self.timeout,
            )
        except (serial.SerialException, ValueError) as exc:
            raise SerialPortError(f"Cannot open {self.port}: {exc}") from exc

    def close(self) -> None:
        """Close the serial port (safe to call multiple times)."""
        if self._ser and self._ser.is_open:
            self._ser.close()
            logger.info("Serial port %s closed", self.port)

    @property
    def is_open(self) -> bool:
        """Return ``True`` if the serial port is currently open."""
        return self._ser is not None and self._ser.is_open

    # -- I/O ----------------------------------------------------------------

    def send(self, data: bytes) -> None:
        """Write *data* to the port, byte for byte.

        Stale input (e.g. an unread acknowledgement from a previous write)
        is discarded first so the next response read starts on a frame
        boundary.

        Raises:
            SerialPortError: If the port is not open, the write fails, or
                fewer than ``len(data)`` bytes were written.
        """
        ser = self._require_open()
        logger.debug("TX: %s", data.hex(" "))
        try:
            ser.reset_input_buffer()
            written = ser.write(data)
            ser.flush()
        except serial.SerialException as exc:
            raise SerialPortError(f"Cannot write to {self.port}: {exc}") from exc

        if written != len(data):
            raise SerialPortError(
                f"Partial write to {self.port}: {written} of {len(data)} bytes"
            )

    def receive_exact(self, n: int) -> bytes:
        """Read exactly *n* bytes or fail.

        Raises:
            SerialPortError: If the port is not open, the read fails, or the
                timeout elapses before *n* bytes arrive.
        """
        ser = self._require_open()
        if n == 0:
            return b""
        try:
            data = ser.read(n)
        except serial.SerialException as exc:
            raise SerialPortError(f"Cannot read from {self.port}: {exc}") from exc

        logger.debug("RX: %s", data.hex(" "))
        if len(data) != n:
            raise SerialPortError(
                f"Timed out reading from {self.port}: got {len(data)} of {n} bytes"
            )
        return data

    # -- Internal -----------------------------------------------------------

    def _require_open(self) -> serial.Serial:
        """Return the open serial port or raise."""
        if not self.is_open:
            raise SerialPortError("Serial port not open, call open() first.")
        assert self._ser is not None  # for type-checker
        return self._ser
