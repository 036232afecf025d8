"""
Core interfaces (protocols) for pluggable components.

These define the contracts the acquisition loop relies on.
Serial and simulated transports are interchangeable as long as
they provide these methods; the loop never checks which one it has.
"""

from typing import Protocol, Optional
from .types import Pose, SensorFrame


class FrameSource(Protocol):
    """Producer side of the telemetry queue"""

    def poll_frame(self) -> Optional[SensorFrame]:
        """
        Take the next decoded frame, if any.

        Must be thread-safe and must not block.
        Returns None when nothing is queued; that is not an error.
        """
        ...

    def pending_frames(self) -> int:
        """Approximate number of frames waiting to be polled"""
        ...


class CommandSink(Protocol):
    """Anything that accepts OI command bytes"""

    def send(self, data: bytes) -> None:
        """
        Send a command (opcode or short byte sequence).

        Fire-and-forget; no acknowledgment.
        """
        ...


class Transport(FrameSource, CommandSink, Protocol):
    """
    Interface for robot communication (serial, simulated, ...).

    Connect, send bytes, provide decoded frames.
    """

    def connect(self) -> bool:
        """
        Open the link and start producing frames.

        Returns:
            True if the link is up
        """
        ...

    def disconnect(self) -> None:
        """Close the link and stop the producer"""
        ...

    def expect_packets(self, group: int, length: int) -> None:
        """
        Tell the producer which packet group responses to expect.

        Args:
            group: Packet group id being requested
            length: Byte length of one response
        """
        ...

    @property
    def is_connected(self) -> bool:
        ...


class TelemetrySink(Protocol):
    """Receives every evaluated frame, in arrival order"""

    def record(self, frame: SensorFrame, pose: Pose) -> None:
        ...

    def close(self) -> None:
        ...


class NullTelemetrySink:
    """Telemetry sink that drops everything"""

    def record(self, frame: SensorFrame, pose: Pose) -> None:
        pass

    def close(self) -> None:
        pass
