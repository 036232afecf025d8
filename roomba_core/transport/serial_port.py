"""
Serial Transport - Roomba OI over a serial port.

A reader thread pulls fixed-length sensor responses off the port,
decodes them and queues the frames. The acquisition loop drains the
queue from its own thread; the queue is the only thing they share.
"""

import logging
import queue
import threading
import time
from typing import Optional

import serial

import roomba_oi
from roomba_core.decoder import DEFAULT_PACKET_GROUPS, FrameDecoder, PacketGroupTable
from roomba_core.errors import DecodeError, TransportError
from roomba_core.types import SensorFrame


logger = logging.getLogger(__name__)


class SerialTransport:
    """
    Transport for a Roomba on a serial port.

    Optionally waits for DSR before talking (hardware handshake cables).
    """

    def __init__(
        self,
        port: str,
        baudrate: int = roomba_oi.DEFAULT_BAUDRATE,
        hw_handshake: bool = False,
        table: PacketGroupTable = DEFAULT_PACKET_GROUPS,
        read_timeout: float = 0.5,
        dsr_timeout: float = 5.0,
    ) -> None:
        """
        Initialize serial transport.

        Args:
            port: Serial device (/dev/ttyUSB0, COM3, ...)
            baudrate: Line speed (OI default 115200)
            hw_handshake: Wait for DSR before sending
            table: Packet group size table
            read_timeout: Max seconds to wait for one response
            dsr_timeout: Max seconds to wait for DSR on connect
        """
        self.port = port
        self.baudrate = baudrate
        self.hw_handshake = hw_handshake
        self.read_timeout = read_timeout
        self.dsr_timeout = dsr_timeout

        self._decoder = FrameDecoder(table)
        self._ser: Optional[serial.Serial] = None
        self._frames: "queue.Queue[SensorFrame]" = queue.Queue()
        self._write_lock = threading.Lock()
        self._reader: Optional[threading.Thread] = None
        self._running = threading.Event()

        self._group = roomba_oi.STREAMING_PACKET_GROUP
        self._length = table.size(self._group)

    def connect(self) -> bool:
        """Open the port and start the reader thread"""
        if self.is_connected:
            return True

        logger.info(f"Opening {self.port} at {self.baudrate} baud")
        try:
            self._ser = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                timeout=self.read_timeout,
                write_timeout=self.read_timeout,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                dsrdtr=self.hw_handshake,
            )
        except serial.SerialException as e:
            logger.error(f"Couldn't connect to {self.port}: {e}")
            return False

        if self.hw_handshake and not self._wait_for_dsr():
            logger.error(f"No DSR from {self.port} after {self.dsr_timeout}s")
            self._close_port()
            return False

        self._ser.reset_input_buffer()
        self._running.set()
        self._reader = threading.Thread(target=self._read_loop, name="roomba-reader", daemon=True)
        self._reader.start()
        logger.info(f"Connected to {self.port}")
        return True

    def disconnect(self) -> None:
        """Stop the reader and close the port"""
        self._running.clear()
        if self._reader is not None:
            self._reader.join(timeout=self.read_timeout * 2)
            self._reader = None
        self._close_port()
        logger.info(f"Disconnected from {self.port}")

    def expect_packets(self, group: int, length: int) -> None:
        self._group = group
        self._length = length

    def send(self, data: bytes) -> None:
        """
        Write command bytes.

        Raises:
            TransportError: port closed or write failed
        """
        if not self.is_connected:
            raise TransportError(f"Serial port {self.port} is not open")
        with self._write_lock:
            try:
                self._ser.write(bytes(data))
                self._ser.flush()
            except serial.SerialException as e:
                raise TransportError(f"Write to {self.port} failed: {e}") from e
        logger.debug(f"TX: {bytes(data).hex()}")

    def poll_frame(self) -> Optional[SensorFrame]:
        try:
            return self._frames.get_nowait()
        except queue.Empty:
            return None

    def pending_frames(self) -> int:
        return self._frames.qsize()

    @property
    def is_connected(self) -> bool:
        return bool(self._ser and self._ser.is_open)

    def _read_loop(self) -> None:
        """Reader thread: one response at a time, decode, queue"""
        while self._running.is_set():
            try:
                buffer = self._ser.read(self._length)
            except serial.SerialException as e:
                logger.error(f"Read from {self.port} failed: {e}")
                self._running.clear()
                break

            if not buffer:
                continue

            group = self._group
            try:
                frame = self._decoder.decode(buffer, group)
            except DecodeError as e:
                logger.error(f"Dropping sensor data: {e}")
                self._ser.reset_input_buffer()
                continue

            logger.debug(f"RX: {buffer.hex()}")
            self._frames.put(frame)

    def _wait_for_dsr(self) -> bool:
        deadline = time.monotonic() + self.dsr_timeout
        while time.monotonic() < deadline:
            if self._ser.dsr:
                return True
            time.sleep(0.05)
        return False

    def _close_port(self) -> None:
        if self._ser and self._ser.is_open:
            self._ser.close()
        self._ser = None
