"""
Core data types for the odometry core.

All the data structures that flow between decoder, integrator,
safety monitor and acquisition loop, fully typed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple
import math
import time

import roomba_oi


# The ten sensor flags that make it unsafe to keep driving
HAZARD_FLAGS: Tuple[str, ...] = (
    "cliff_left",
    "cliff_right",
    "cliff_front_left",
    "cliff_front_right",
    "wheel_drop_left",
    "wheel_drop_right",
    "overcurrent_left_wheel",
    "overcurrent_right_wheel",
    "overcurrent_main_brush",
    "overcurrent_side_brush",
)


class Side(Enum):
    """Which way the robot is turning"""
    LEFT = "left"
    RIGHT = "right"


class Direction(Enum):
    """Whether the robot is driving forwards or backwards"""
    FORWARDS = "forwards"
    BACKWARDS = "backwards"


class LoopState(Enum):
    """Acquisition loop lifecycle"""
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class EncoderReading:
    """Raw left/right wheel encoder counters (signed 16-bit, wrapping)"""
    left: int = 0
    right: int = 0

    def __post_init__(self) -> None:
        """Validate ranges"""
        assert -32768 <= self.left <= 32767, f"left out of range: {self.left}"
        assert -32768 <= self.right <= 32767, f"right out of range: {self.right}"


@dataclass(frozen=True)
class SensorFrame:
    """
    One decoded telemetry packet.

    Built only by the FrameDecoder from a buffer whose length matched
    the packet group exactly. Groups that don't carry a given sensor
    leave its flag False and `encoders` None.
    """
    packet_group: int
    raw: bytes = b""
    values: Mapping[str, int] = field(default_factory=dict)
    cliff_left: bool = False
    cliff_right: bool = False
    cliff_front_left: bool = False
    cliff_front_right: bool = False
    wheel_drop_left: bool = False
    wheel_drop_right: bool = False
    overcurrent_left_wheel: bool = False
    overcurrent_right_wheel: bool = False
    overcurrent_main_brush: bool = False
    overcurrent_side_brush: bool = False
    bump_left: bool = False
    bump_right: bool = False
    encoders: Optional[EncoderReading] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def hazards(self) -> List[str]:
        """Names of the hazard flags that are set"""
        return [name for name in HAZARD_FLAGS if getattr(self, name)]

    @property
    def raw_hex(self) -> str:
        return self.raw.hex()

    def as_record(self) -> Dict[str, object]:
        """Flat dict for telemetry sinks"""
        record: Dict[str, object] = dict(self.values)
        record["timestamp"] = self.timestamp
        record["packet_group"] = self.packet_group
        # Decoded flags win over the raw cliff bytes of the same name
        for name in HAZARD_FLAGS:
            record[name] = getattr(self, name)
        record["bump_left"] = self.bump_left
        record["bump_right"] = self.bump_right
        record["left_encoder"] = self.encoders.left if self.encoders else None
        record["right_encoder"] = self.encoders.right if self.encoders else None
        return record


@dataclass(frozen=True)
class Pose:
    """Position in millimeters plus heading in radians (0 = facing +y)"""
    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def degrees(self) -> float:
        """Heading in degrees"""
        return math.degrees(self.heading)


@dataclass
class OdometryState:
    """
    Mutable integrator state for one session.

    Owned by a single OdometryIntegrator; never shared across threads.
    """
    last_reading: EncoderReading = field(default_factory=EncoderReading)
    pose: Pose = field(default_factory=Pose)
    seeded: bool = False
    frames_integrated: int = 0


@dataclass(frozen=True)
class SafetyVerdict:
    """Result of checking one frame's hazard flags"""
    safe: bool
    tripped: Tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return self.safe


@dataclass(frozen=True)
class RobotGeometry:
    """Calibration constants for encoder-to-distance conversion"""
    wheel_diameter_mm: float = roomba_oi.WHEEL_DIAMETER_MM
    counts_per_wheel_turn: float = roomba_oi.ENCODER_COUNTS_PER_WHEEL_TURN
    wheelbase_mm: float = roomba_oi.WHEELBASE_MM
    max_encoder_count: int = roomba_oi.MAX_ENCODER_COUNT
    rollover_margin: int = roomba_oi.ROLLOVER_GUARD_MARGIN

    def __post_init__(self) -> None:
        if self.wheel_diameter_mm <= 0 or self.counts_per_wheel_turn <= 0:
            raise ValueError("Wheel diameter and counts per turn must be positive")
        if self.wheelbase_mm <= 0:
            raise ValueError(f"Wheelbase must be positive, got {self.wheelbase_mm}")
        if not 0 <= self.rollover_margin < self.max_encoder_count:
            raise ValueError(f"Rollover margin out of range: {self.rollover_margin}")

    @property
    def mm_per_count(self) -> float:
        return math.pi * self.wheel_diameter_mm / self.counts_per_wheel_turn


DEFAULT_GEOMETRY = RobotGeometry()


@dataclass
class AcquisitionConfig:
    """Configuration for the AcquisitionLoop"""
    poll_interval: float = 0.05        # Sleep between sensor requests (seconds)
    silence_threshold: float = 5.0     # Warn after this long without telemetry
    packet_group: int = roomba_oi.STREAMING_PACKET_GROUP

    def __post_init__(self) -> None:
        """Validate ranges"""
        assert self.poll_interval >= 0, f"poll_interval out of range: {self.poll_interval}"
        assert self.silence_threshold > 0, f"silence_threshold out of range: {self.silence_threshold}"
