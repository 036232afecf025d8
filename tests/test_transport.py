"""Tests for the simulated and serial transports"""

import logging
import threading
import time

import pytest
import serial

from roomba_oi import OpCode
from roomba_core.decoder import build_buffer
from roomba_core.errors import TransportError
from roomba_core.transport import SimulatedTransport, serial_port, wrap_counter
from roomba_core.types import EncoderReading


REQUEST = bytes([OpCode.SENSORS, 100])


class FakeSerial:
    """Stands in for serial.Serial; replies are queued by the test"""

    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.is_open = True
        self.dsr = True
        self.written = bytearray()
        self.replies = []
        self.resets = 0
        self._lock = threading.Lock()
        FakeSerial.instances.append(self)

    def read(self, size):
        with self._lock:
            if self.replies:
                return self.replies.pop(0)
        time.sleep(0.005)
        return b""

    def write(self, data):
        self.written.extend(data)
        return len(data)

    def flush(self):
        pass

    def reset_input_buffer(self):
        self.resets += 1

    def close(self):
        self.is_open = False

    def reply(self, data):
        with self._lock:
            self.replies.append(data)


@pytest.fixture
def fake_serial(monkeypatch):
    FakeSerial.instances = []
    monkeypatch.setattr(serial_port.serial, "Serial", FakeSerial)
    return FakeSerial


@pytest.fixture
def port(fake_serial):
    transport = serial_port.SerialTransport("/dev/ttyFAKE", read_timeout=0.05)
    assert transport.connect()
    yield transport
    transport.disconnect()


def wait_for_frame(transport, timeout=1.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        frame = transport.poll_frame()
        if frame is not None:
            return frame
        time.sleep(0.005)
    return None


# Simulated transport

def test_wrap_counter():
    assert wrap_counter(0) == 0
    assert wrap_counter(32767) == 32767
    assert wrap_counter(32768) == -32768
    assert wrap_counter(-32769) == 32767


def test_simulated_answers_sensor_requests():
    transport = SimulatedTransport(script=[(10, 20)])
    transport.connect()
    transport.send(REQUEST)

    frame = transport.poll_frame()
    assert frame is not None
    assert frame.packet_group == 100
    assert len(frame.raw) == 93
    assert frame.encoders == EncoderReading(10, 20)
    assert transport.poll_frame() is None


def test_simulated_script_repeats_last_step():
    transport = SimulatedTransport(script=[(1, 1), (5, -5)])
    transport.connect()
    for _ in range(4):
        transport.send(REQUEST)

    assert transport.encoder_counts == (1 + 5 * 3, 1 - 5 * 3)


def test_simulated_counters_roll_over():
    transport = SimulatedTransport(script=[(100, -100)], start_counts=(32700, -32700))
    transport.connect()
    transport.send(REQUEST)

    assert transport.encoder_counts == (-32736, 32736)


def test_simulated_hazards():
    transport = SimulatedTransport()
    transport.connect()
    transport.set_hazard("cliff_front_right")
    transport.set_hazard("overcurrent_left_wheel")
    transport.send(REQUEST)

    frame = transport.poll_frame()
    assert sorted(frame.hazards) == ["cliff_front_right", "overcurrent_left_wheel"]

    transport.set_hazard("cliff_front_right", active=False)
    transport.send(REQUEST)
    assert transport.poll_frame().hazards == ["overcurrent_left_wheel"]


def test_simulated_rejects_unknown_hazard():
    with pytest.raises(ValueError):
        SimulatedTransport().set_hazard("on_fire")


def test_simulated_mute():
    transport = SimulatedTransport()
    transport.connect()
    transport.mute = True
    transport.send(REQUEST)

    assert transport.poll_frame() is None
    assert transport.sent == [REQUEST]


def test_simulated_ignores_commands_when_disconnected(caplog):
    transport = SimulatedTransport()
    with caplog.at_level(logging.WARNING):
        transport.send(REQUEST)

    assert transport.poll_frame() is None
    assert "not connected" in caplog.text


def test_simulated_other_groups():
    transport = SimulatedTransport(script=[(3, 4)])
    transport.connect()
    transport.send(bytes([OpCode.SENSORS, 101]))

    frame = transport.poll_frame()
    assert frame.packet_group == 101
    assert frame.encoders == EncoderReading(3, 4)


# Serial transport

def test_serial_connect_opens_port(port, fake_serial):
    ser = fake_serial.instances[-1]
    assert port.is_connected
    assert ser.kwargs["port"] == "/dev/ttyFAKE"
    assert ser.kwargs["baudrate"] == 115200
    assert ser.kwargs["dsrdtr"] is False
    assert ser.resets == 1


def test_serial_send_writes_bytes(port, fake_serial):
    port.send(bytes([OpCode.START]))
    port.send(REQUEST)
    assert bytes(fake_serial.instances[-1].written) == bytes([128, 142, 100])


def test_serial_reader_decodes_responses(port, fake_serial):
    buffer = build_buffer(100, {"left_encoder_counts": 42, "cliff_left": 1})
    fake_serial.instances[-1].reply(buffer)

    frame = wait_for_frame(port)
    assert frame is not None
    assert frame.encoders.left == 42
    assert frame.cliff_left is True


def test_serial_reader_drops_bad_length(port, fake_serial, caplog):
    ser = fake_serial.instances[-1]
    with caplog.at_level(logging.ERROR):
        ser.reply(bytes(40))
        ser.reply(build_buffer(100))
        frame = wait_for_frame(port)

    assert frame is not None
    assert len(frame.raw) == 93
    assert port.poll_frame() is None
    assert ser.resets == 2
    assert "Dropping sensor data" in caplog.text


def test_serial_expect_packets_changes_read_length(port, fake_serial):
    port.expect_packets(1, 10)
    fake_serial.instances[-1].reply(bytes(10))

    frame = wait_for_frame(port)
    assert frame is not None
    assert frame.packet_group == 1


def test_serial_disconnect(port, fake_serial):
    ser = fake_serial.instances[-1]
    port.disconnect()

    assert not port.is_connected
    assert not ser.is_open
    with pytest.raises(TransportError):
        port.send(REQUEST)


def test_serial_send_before_connect(fake_serial):
    transport = serial_port.SerialTransport("/dev/ttyFAKE")
    with pytest.raises(TransportError):
        transport.send(REQUEST)


def test_serial_connect_failure(monkeypatch):
    def refuse(**kwargs):
        raise serial.SerialException("could not open port")

    monkeypatch.setattr(serial_port.serial, "Serial", refuse)
    transport = serial_port.SerialTransport("/dev/ttyMISSING")

    assert transport.connect() is False
    assert not transport.is_connected


def test_serial_handshake_waits_for_dsr(fake_serial):
    transport = serial_port.SerialTransport("/dev/ttyFAKE", hw_handshake=True, read_timeout=0.05)
    assert transport.connect()
    assert fake_serial.instances[-1].kwargs["dsrdtr"] is True
    transport.disconnect()


def test_serial_handshake_times_out(monkeypatch):
    class NoDsr(FakeSerial):
        def __init__(self, **kwargs):
            super().__init__(**kwargs)
            self.dsr = False

    monkeypatch.setattr(serial_port.serial, "Serial", NoDsr)
    transport = serial_port.SerialTransport("/dev/ttyFAKE", hw_handshake=True, dsr_timeout=0.1)

    assert transport.connect() is False
    assert not transport.is_connected


def test_serial_write_failure_is_transport_error(port, fake_serial):
    def broken(data):
        raise serial.SerialException("device reports readiness to read but returned no data")

    fake_serial.instances[-1].write = broken
    with pytest.raises(TransportError):
        port.send(REQUEST)


def test_simulated_ignores_empty_and_short_commands():
    transport = SimulatedTransport()
    transport.connect()
    transport.send(b"")
    transport.send(bytes([OpCode.SENSORS]))

    assert transport.poll_frame() is None
    assert transport.sent == [b"", bytes([OpCode.SENSORS])]


def test_pending_frames_counts_queue():
    transport = SimulatedTransport()
    transport.connect()
    assert transport.pending_frames() == 0

    transport.send(REQUEST)
    transport.send(REQUEST)
    assert transport.pending_frames() == 2


def test_serial_pending_frames(port, fake_serial):
    fake_serial.instances[-1].reply(build_buffer(100))
    assert wait_for_frame(port) is not None
    assert port.pending_frames() == 0
