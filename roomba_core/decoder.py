"""
Frame Decoder - Turns raw OI sensor buffers into SensorFrames.

Pure and stateless. The only things it knows are the packet-group size
table it was handed and the packet layout in roomba_oi.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

import roomba_oi
from .errors import DecodeError, UnknownPacketGroupError
from .types import EncoderReading, SensorFrame


logger = logging.getLogger(__name__)


class PacketGroupTable:
    """
    Read-only mapping of packet group id -> expected byte length.

    Built once at startup and passed to whoever needs it.
    """

    def __init__(self, sizes: Optional[Mapping[int, int]] = None) -> None:
        self._sizes = MappingProxyType(dict(
            roomba_oi.PACKET_GROUP_SIZES if sizes is None else sizes
        ))

    def size(self, group: int) -> int:
        """
        Expected buffer length for a packet group.

        Raises:
            UnknownPacketGroupError: group isn't in the table
        """
        try:
            return self._sizes[group]
        except KeyError:
            raise UnknownPacketGroupError(group) from None

    def __contains__(self, group: object) -> bool:
        return group in self._sizes

    def __iter__(self) -> Iterator[int]:
        return iter(self._sizes)

    def __len__(self) -> int:
        return len(self._sizes)


DEFAULT_PACKET_GROUPS = PacketGroupTable()


def _group_layout(group: int) -> List[Tuple[str, int, int, bool]]:
    """(name, offset, size, signed) for every packet in a group"""
    first, last = roomba_oi.PACKET_GROUP_RANGES[group]
    layout = []
    offset = 0
    for packet_id in range(first, last + 1):
        name, size, signed = roomba_oi.PACKETS[packet_id]
        layout.append((name, offset, size, signed))
        offset += size
    return layout


def build_buffer(
    group: int,
    values: Optional[Mapping[str, int]] = None,
    table: Optional[PacketGroupTable] = None,
) -> bytes:
    """
    Lay out packet values the way the robot would send them.

    Missing fields are zero; the buffer is padded to the table length.
    Used by the simulated transport and by tests.
    """
    table = table or DEFAULT_PACKET_GROUPS
    values = values or {}
    buffer = bytearray(table.size(group))
    for name, offset, size, signed in _group_layout(group):
        value = values.get(name, 0)
        if size == 1:
            buffer[offset] = value & 0xFF
        else:
            buffer[offset] = (value >> 8) & 0xFF
            buffer[offset + 1] = value & 0xFF
    return bytes(buffer)


def to_signed16(hi: int, lo: int) -> int:
    """Combine big-endian bytes into a signed 16-bit value."""
    value = (hi << 8) | lo
    return value - 0x10000 if value & 0x8000 else value


class FrameDecoder:
    """
    Decodes fixed-layout sensor buffers.

    A buffer whose length differs from the group's table entry is
    rejected outright; there are no partially populated frames.
    """

    def __init__(self, table: PacketGroupTable = DEFAULT_PACKET_GROUPS) -> None:
        self.table = table
        self._layouts: Dict[int, List[Tuple[str, int, int, bool]]] = {}

    def decode(self, buffer: bytes, group: int) -> SensorFrame:
        """
        Decode one sensor packet group.

        Args:
            buffer: Raw bytes as received from the robot
            group: Packet group id that was requested

        Returns:
            Immutable SensorFrame

        Raises:
            DecodeError: unknown group or wrong buffer length
        """
        expected = self.table.size(group)
        if len(buffer) != expected:
            raise DecodeError(
                f"Packet group {group} expects {expected} bytes, got {len(buffer)}"
            )

        values = self._read_values(bytes(buffer), group)

        bumps = values.get("bumps_wheel_drops", 0)
        overcurrents = values.get("wheel_overcurrents", 0)
        encoders = None
        if "left_encoder_counts" in values and "right_encoder_counts" in values:
            encoders = EncoderReading(
                left=values["left_encoder_counts"],
                right=values["right_encoder_counts"],
            )

        return SensorFrame(
            packet_group=group,
            raw=bytes(buffer),
            values=MappingProxyType(values),
            cliff_left=bool(values.get("cliff_left", 0)),
            cliff_right=bool(values.get("cliff_right", 0)),
            cliff_front_left=bool(values.get("cliff_front_left", 0)),
            cliff_front_right=bool(values.get("cliff_front_right", 0)),
            wheel_drop_left=bool(bumps & roomba_oi.WHEEL_DROP_LEFT_BIT),
            wheel_drop_right=bool(bumps & roomba_oi.WHEEL_DROP_RIGHT_BIT),
            overcurrent_left_wheel=bool(overcurrents & roomba_oi.OVERCURRENT_LEFT_WHEEL_BIT),
            overcurrent_right_wheel=bool(overcurrents & roomba_oi.OVERCURRENT_RIGHT_WHEEL_BIT),
            overcurrent_main_brush=bool(overcurrents & roomba_oi.OVERCURRENT_MAIN_BRUSH_BIT),
            overcurrent_side_brush=bool(overcurrents & roomba_oi.OVERCURRENT_SIDE_BRUSH_BIT),
            bump_left=bool(bumps & roomba_oi.BUMP_LEFT_BIT),
            bump_right=bool(bumps & roomba_oi.BUMP_RIGHT_BIT),
            encoders=encoders,
        )

    def _read_values(self, buffer: bytes, group: int) -> Dict[str, int]:
        layout = self._layouts.get(group)
        if layout is None:
            if group not in roomba_oi.PACKET_GROUP_RANGES:
                raise DecodeError(f"No packet layout for group {group}")
            layout = self._layouts[group] = _group_layout(group)

        name, offset, size, _ = layout[-1]
        if offset + size > len(buffer):
            raise DecodeError(
                f"Packet group {group} layout needs {offset + size} bytes, table says {len(buffer)}"
            )

        values: Dict[str, int] = {}
        for name, offset, size, signed in layout:
            if size == 1:
                value = buffer[offset]
                if signed and value & 0x80:
                    value -= 0x100
            elif signed:
                value = to_signed16(buffer[offset], buffer[offset + 1])
            else:
                value = (buffer[offset] << 8) | buffer[offset + 1]
            values[name] = value
        return values
