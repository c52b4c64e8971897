"""
Tests for the HTTP façade.

Covers:
* GET/PUT routing onto controller reads and writes
* Error kinds mapped to distinct status codes
* Exclusive access and reconnect after serial failures
* Startup/shutdown of the serial connection
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from projectorctl import Command, CommandKind, Reply, SerialPortError, SubCommand
from projectorctl.config import ServerConfig
from projectorctl.server import SharedController, create_app

POWER_ON = bytes([0x00, 0x00, 0x01])
POWER_OFF = bytes([0x00, 0x00, 0x00])
ACK = bytes([0x00, 0x00, 0x00])


@pytest.fixture()
def client(controller) -> TestClient:
    """Return a test client around a controller wired to a fake serial port."""
    return TestClient(create_app(controller))


# ══════════════════════════════════════════════════════════════════════════
#  Reads
# ══════════════════════════════════════════════════════════════════════════


class TestRead:
    def test_power_state(self, client, fake_serial):
        fake_serial.queue_reply(POWER_ON)
        response = client.get("/power")
        assert response.status_code == 200
        assert response.json() == {"State": True}

    def test_volume_value(self, client, fake_serial):
        fake_serial.queue_reply(POWER_ON)
        fake_serial.queue_reply(bytes([0x00, 0x00, 0x1E]))
        assert client.get("/volume").json() == {"ValueU8": 30}

    def test_lamp_time(self, client, fake_serial):
        fake_serial.queue_reply(POWER_ON)
        fake_serial.queue_reply(bytes([0xE8, 0x03, 0x00, 0x00]))
        response = client.get("/lamp_time")
        assert response.status_code == 200
        assert response.json() == {"ValueU32": 1000}
        assert fake_serial.written[-1] == bytes.fromhex("07 14 00 05 00 34 00 00 15 01 63")

    def test_power_is_down(self, client, fake_serial):
        fake_serial.queue_reply(POWER_OFF)
        response = client.get("/brightness")
        assert response.status_code == 409
        assert response.json()["error"] == "PowerIsDown"
        assert len(fake_serial.written) == 1

    def test_unknown_command(self, client, fake_serial):
        response = client.get("/contrast")
        assert response.status_code == 404
        assert response.json()["error"] == "UnsupportedCommand"
        assert fake_serial.written == []

    def test_list_commands(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "lamp_time" in response.json()["commands"]


# ══════════════════════════════════════════════════════════════════════════
#  Writes
# ══════════════════════════════════════════════════════════════════════════


class TestWrite:
    def test_volume_up(self, client, fake_serial):
        fake_serial.queue_reply(ACK)
        response = client.put("/volume", json={"State": "Up"})
        assert response.status_code == 204
        assert fake_serial.written == [bytes.fromhex("06 14 00 04 00 34 14 01 00 61")]

    def test_power_down(self, client, fake_serial):
        fake_serial.queue_reply(ACK)
        response = client.put("/power", json={"State": "Down"})
        assert response.status_code == 204
        assert fake_serial.written == [bytes.fromhex("06 14 00 04 00 34 11 01 00 5E")]

    def test_status_not_acceptable(self, client, fake_serial):
        response = client.put("/power", json={"State": "Status"})
        assert response.status_code == 406
        assert response.json()["error"] == "UnsupportedCommand"
        assert fake_serial.written == []

    def test_lamp_time_not_implemented(self, client, fake_serial):
        response = client.put("/lamp_time", json={"State": "Up"})
        assert response.status_code == 501
        assert response.json()["error"] == "UnsupportedCommand"
        assert fake_serial.written == []

    def test_unknown_command(self, client):
        assert client.put("/contrast", json={"State": "Up"}).status_code == 404

    def test_invalid_body(self, client):
        assert client.put("/volume", json={"State": "Sideways"}).status_code == 422

    def test_write_then_read(self, client, fake_serial):
        fake_serial.queue_reply(ACK)
        fake_serial.queue_reply(POWER_ON)
        fake_serial.queue_reply(bytes([0x00, 0x00, 0x07]))
        assert client.put("/brightness", json={"State": "Up"}).status_code == 204
        assert client.get("/brightness").json() == {"ValueU8": 7}


# ══════════════════════════════════════════════════════════════════════════
#  Serial failures & exclusive access
# ══════════════════════════════════════════════════════════════════════════


class TestSerialFailures:
    def test_timeout_is_internal_error(self, client, fake_serial):
        response = client.get("/power")
        assert response.status_code == 500
        assert response.json()["error"] == "SerialPortError"

    def test_missing_write_ack_is_internal_error(self, client, controller):
        response = client.put("/mute", json={"State": "Down"})
        assert response.status_code == 500
        assert response.json()["error"] == "SerialPortError"
        assert not controller.is_connected

    def test_failure_closes_connection(self, client, controller):
        client.get("/power")
        assert not controller.is_connected

    def test_next_request_reconnects(self, client, controller, fake_serial):
        client.get("/power")
        fresh = type(fake_serial)()
        fresh.queue_reply(POWER_ON)
        with patch("projectorctl.transport.serial.Serial", return_value=fresh):
            response = client.get("/power")
        assert response.status_code == 200
        assert controller.is_connected

    def test_reconnect_failure_is_internal_error(self, client):
        import serial

        client.get("/power")
        with patch(
            "projectorctl.transport.serial.Serial",
            side_effect=serial.SerialException("unplugged"),
        ):
            response = client.get("/power")
        assert response.status_code == 500


class TestSharedController:
    def test_lock_held_during_read(self):
        controller = MagicMock()
        controller.is_connected = True
        shared = SharedController(controller)
        controller.read.side_effect = lambda command: Reply.state(shared._lock.locked())

        assert shared.read(Command(CommandKind.POWER, SubCommand.STATUS)) == Reply.state(True)
        assert not shared._lock.locked()

    def test_lock_held_during_write(self):
        controller = MagicMock()
        controller.is_connected = True
        shared = SharedController(controller)
        seen = []
        controller.write.side_effect = lambda command: seen.append(shared._lock.locked())

        shared.write(Command(CommandKind.MUTE, SubCommand.UP))
        assert seen == [True]

    def test_serial_error_disconnects_and_releases(self):
        controller = MagicMock()
        controller.is_connected = True
        controller.read.side_effect = SerialPortError("boom")
        shared = SharedController(controller)

        with pytest.raises(SerialPortError):
            shared.read(Command(CommandKind.POWER, SubCommand.STATUS))
        controller.disconnect.assert_called_once()
        assert not shared._lock.locked()

    def test_connects_lazily(self):
        controller = MagicMock()
        controller.is_connected = False
        controller.read.return_value = Reply.state(False)
        SharedController(controller).read(Command(CommandKind.POWER, SubCommand.STATUS))
        controller.connect.assert_called_once()


# ══════════════════════════════════════════════════════════════════════════
#  Lifespan
# ══════════════════════════════════════════════════════════════════════════


class TestLifespan:
    def test_first_request_opens_configured_device(self, fake_serial):
        fake_serial.queue_reply(POWER_ON)
        config = ServerConfig(device="/dev/fake-projector", timeout=0.5)
        with patch("projectorctl.transport.serial.Serial", return_value=fake_serial) as ctor:
            with TestClient(create_app(config=config)) as client:
                assert not ctor.called
                assert client.get("/power").json() == {"State": True}
                assert ctor.call_args.kwargs["port"] == "/dev/fake-projector"
                assert ctor.call_args.kwargs["timeout"] == 0.5
        assert not fake_serial.is_open

    def test_starts_without_device(self):
        import serial

        with patch(
            "projectorctl.transport.serial.Serial",
            side_effect=serial.SerialException("unplugged"),
        ):
            with TestClient(create_app(config=ServerConfig(device="/dev/missing"))) as client:
                assert client.get("/").status_code == 200
                response = client.get("/power")
        assert response.status_code == 500
        assert response.json()["error"] == "SerialPortError"
