"""Shared pytest fixtures for projector controller tests."""

from __future__ import annotations

from collections import deque
from unittest.mock import patch

import pytest

from projectorctl import ProjectorController
from projectorctl.transport import SerialTransport


class FakeSerial:
    """Lightweight stand-in for ``serial.Serial``.

    Implements the subset of the pyserial API used by
    :class:`~projectorctl.transport.SerialTransport`: ``write``, ``read``,
    ``flush``, ``reset_input_buffer``, ``close``, and ``is_open``.

    Call :meth:`queue_reply` to stage a response frame.  Each :meth:`write`
    hands the next staged frame (if any) to the device side; it reaches the
    read buffer on the next :meth:`read`, as a real reply arrives after the
    request.  ``reset_input_buffer`` only discards bytes that have already
    arrived, so an acknowledgement nobody reads stays in the stream.  With
    nothing staged, reads come back short, which the transport treats as a
    timeout.
    """

    def __init__(self) -> None:
        self.is_open: bool = True
        self.written: list[bytes] = []
        self.max_write: int | None = None  # simulate partial writes
        self._buffer: bytes = b""
        self._pending: bytes = b""
        self._replies: deque[bytes] = deque()

    # -- Helpers for tests --------------------------------------------------

    def queue_reply(self, payload: bytes, header: bytes | None = None) -> None:
        """Stage a response frame; the header announces ``len(payload)``."""
        if header is None:
            header = bytes([0x05, 0x14, 0x00, len(payload), 0x00])
        self._replies.append(header + payload)

    def queue_raw(self, data: bytes) -> None:
        """Stage raw bytes as the response to the next write."""
        self._replies.append(data)

    # -- pyserial interface -------------------------------------------------

    def write(self, data: bytes) -> int:
        self.written.append(bytes(data))
        if self._replies:
            self._pending += self._replies.popleft()
        if self.max_write is not None:
            return min(len(data), self.max_write)
        return len(data)

    def read(self, size: int = 1) -> bytes:
        self._buffer += self._pending
        self._pending = b""
        data = self._buffer[:size]
        self._buffer = self._buffer[size:]
        return data

    def flush(self) -> None:
        pass

    def reset_input_buffer(self) -> None:
        self._buffer = b""

    def close(self) -> None:
        self.is_open = False


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_serial() -> FakeSerial:
    """Return a fresh ``FakeSerial`` instance."""
    return FakeSerial()


@pytest.fixture()
def transport(fake_serial: FakeSerial) -> SerialTransport:
    """Return a ``SerialTransport`` wired to a fake serial port."""
    with patch("projectorctl.transport.serial.Serial", return_value=fake_serial):
        tx = SerialTransport("/dev/fake")
        tx.open()
        return tx


@pytest.fixture()
def controller(fake_serial: FakeSerial) -> ProjectorController:
    """Return a connected ``ProjectorController`` wired to a fake serial port."""
    with patch("projectorctl.transport.serial.Serial", return_value=fake_serial):
        projector = ProjectorController("/dev/fake")
        projector.connect()
        return projector
