"""
Roomba odometry core - telemetry decoding, dead reckoning, safety interlock.

This package contains the core logic for tracking a Roomba's pose:
- Types: Sensor frames, encoder readings, poses, configuration
- Decoder: Fixed-layout sensor buffers -> SensorFrame
- Kinematics: Encoder and circular-arc math
- Odometry: Integrates encoder deltas into a pose
- Safety: Hazard flag check
- Acquisition: Polling loop tying it all together
"""

from .types import (
    AcquisitionConfig,
    EncoderReading,
    OdometryState,
    Pose,
    RobotGeometry,
    SafetyVerdict,
    SensorFrame,
)
from .errors import (
    DecodeError,
    RoombaError,
    TransportError,
    UnknownPacketGroupError,
    UnmonitoredPacketGroupError,
)
from .interfaces import (
    FrameSource,
    CommandSink,
    TelemetrySink,
    Transport,
)
from .decoder import FrameDecoder, PacketGroupTable
from .odometry import OdometryIntegrator
from .safety import is_safe
from .acquisition import AcquisitionLoop

__all__ = [
    "AcquisitionConfig",
    "EncoderReading",
    "OdometryState",
    "Pose",
    "RobotGeometry",
    "SafetyVerdict",
    "SensorFrame",
    "DecodeError",
    "RoombaError",
    "TransportError",
    "UnknownPacketGroupError",
    "UnmonitoredPacketGroupError",
    "FrameSource",
    "CommandSink",
    "TelemetrySink",
    "Transport",
    "FrameDecoder",
    "PacketGroupTable",
    "OdometryIntegrator",
    "is_safe",
    "AcquisitionLoop",
]
