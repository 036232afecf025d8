"""
Simulated Transport - For running the loop without a robot.

Answers every sensor request with a synthesized packet group buffer and
decodes it through the real FrameDecoder, so the whole pipeline runs.
"""

import logging
import queue
from typing import List, Optional, Sequence, Tuple

import roomba_oi
from roomba_oi import OpCode
from roomba_core.decoder import DEFAULT_PACKET_GROUPS, FrameDecoder, PacketGroupTable, build_buffer
from roomba_core.errors import DecodeError
from roomba_core.types import HAZARD_FLAGS, SensorFrame

from .serial_port import SerialTransport


logger = logging.getLogger(__name__)

__all__ = ["SimulatedTransport", "SerialTransport", "wrap_counter"]


def wrap_counter(value: int) -> int:
    """Wrap an integer into the signed 16-bit encoder range"""
    return ((value + 0x8000) & 0xFFFF) - 0x8000


class SimulatedTransport:
    """
    In-memory robot.

    Wheel motion comes from a script of per-request encoder increments;
    the last step repeats once the script runs out. Hazards can be set
    and cleared at any time.
    """

    def __init__(
        self,
        script: Optional[Sequence[Tuple[int, int]]] = None,
        table: PacketGroupTable = DEFAULT_PACKET_GROUPS,
        start_counts: Tuple[int, int] = (0, 0),
    ) -> None:
        """
        Initialize simulated transport.

        Args:
            script: (left, right) encoder counts to add per sensor request
            table: Packet group size table
            start_counts: Initial encoder counter values
        """
        self._decoder = FrameDecoder(table)
        self._table = table
        self._frames: "queue.Queue[SensorFrame]" = queue.Queue()
        self._connected = False
        self._group = roomba_oi.STREAMING_PACKET_GROUP

        self._script = list(script or [])
        self._step = 0
        self._left, self._right = start_counts
        self._hazards: set = set()

        self.mute = False       # Stop answering sensor requests
        self.sent: List[bytes] = []

    def connect(self) -> bool:
        logger.info("[SIM] Connected")
        self._connected = True
        return True

    def disconnect(self) -> None:
        logger.info("[SIM] Disconnecting")
        self._connected = False

    def expect_packets(self, group: int, length: int) -> None:
        self._group = group
        logger.debug(f"[SIM] Expecting group {group} ({length} bytes)")

    def send(self, data: bytes) -> None:
        """Record the command and answer sensor requests"""
        self.sent.append(bytes(data))
        if not self._connected:
            logger.warning("[SIM] Cannot send command - not connected")
            return

        if len(data) == 2 and data[0] == OpCode.SENSORS and not self.mute:
            self._advance()
            self.feed(self._buffer_for(data[1]), data[1])

    def poll_frame(self) -> Optional[SensorFrame]:
        try:
            return self._frames.get_nowait()
        except queue.Empty:
            return None

    def pending_frames(self) -> int:
        return self._frames.qsize()

    def feed(self, buffer: bytes, group: int) -> None:
        """Decode raw bytes as if they arrived on the wire"""
        try:
            frame = self._decoder.decode(buffer, group)
        except DecodeError as e:
            logger.error(f"[SIM] Dropping frame: {e}")
            return
        self._frames.put(frame)

    def set_hazard(self, name: str, active: bool = True) -> None:
        if name not in HAZARD_FLAGS:
            raise ValueError(f"Unknown hazard flag: {name}")
        if active:
            self._hazards.add(name)
        else:
            self._hazards.discard(name)

    def _advance(self) -> None:
        if not self._script:
            return
        left, right = self._script[min(self._step, len(self._script) - 1)]
        self._step += 1
        self._left = wrap_counter(self._left + left)
        self._right = wrap_counter(self._right + right)

    def _buffer_for(self, group: int) -> bytes:
        bumps = 0
        if "wheel_drop_left" in self._hazards:
            bumps |= roomba_oi.WHEEL_DROP_LEFT_BIT
        if "wheel_drop_right" in self._hazards:
            bumps |= roomba_oi.WHEEL_DROP_RIGHT_BIT
        overcurrents = 0
        for name, bit in (
            ("overcurrent_left_wheel", roomba_oi.OVERCURRENT_LEFT_WHEEL_BIT),
            ("overcurrent_right_wheel", roomba_oi.OVERCURRENT_RIGHT_WHEEL_BIT),
            ("overcurrent_main_brush", roomba_oi.OVERCURRENT_MAIN_BRUSH_BIT),
            ("overcurrent_side_brush", roomba_oi.OVERCURRENT_SIDE_BRUSH_BIT),
        ):
            if name in self._hazards:
                overcurrents |= bit

        values = {
            "bumps_wheel_drops": bumps,
            "wheel_overcurrents": overcurrents,
            "oi_mode": 1,
            "voltage": 14800,
            "battery_charge": 2500,
            "battery_capacity": 2696,
            "left_encoder_counts": self._left,
            "right_encoder_counts": self._right,
        }
        for name in ("cliff_left", "cliff_right", "cliff_front_left", "cliff_front_right"):
            values[name] = 1 if name in self._hazards else 0
        return build_buffer(group, values, self._table)

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def encoder_counts(self) -> Tuple[int, int]:
        return (self._left, self._right)
