"""
Odometry Integrator - Dead reckoning from wheel encoder deltas.

Each frame's encoder counts are diffed against the previous frame
(rollover safe), converted to wheel travel, and integrated along a
circular arc so large single-step turns stay geometrically consistent.

Frame convention: heading 0 faces +y, positive heading is
counter-clockwise. A 90 degree forward right turn ends at heading -pi/2.
"""

import logging
import math
from typing import Optional, Tuple

from . import kinematics
from .types import (
    DEFAULT_GEOMETRY,
    Direction,
    EncoderReading,
    OdometryState,
    Pose,
    RobotGeometry,
    SensorFrame,
    Side,
)


logger = logging.getLogger(__name__)

# Below this heading change (radians) motion is treated as a straight line
STRAIGHT_LINE_EPSILON = 1e-6


def normalize_angle(radians: float) -> float:
    """Wrap an angle into [-pi, pi]."""
    return math.remainder(radians, 2 * math.pi)


class OdometryIntegrator:
    """
    Integrates encoder readings into a Pose.

    Not thread-safe; the acquisition loop is the only caller.
    """

    def __init__(self, geometry: RobotGeometry = DEFAULT_GEOMETRY) -> None:
        """
        Initialize integrator at the origin, heading 0.

        Args:
            geometry: Wheel and encoder calibration
        """
        self.geometry = geometry
        self.state = OdometryState()

    @property
    def pose(self) -> Pose:
        return self.state.pose

    def reset(self) -> None:
        """Back to the origin; the next frame seeds the encoders again"""
        self.state = OdometryState()

    def process(self, frame: SensorFrame) -> Pose:
        """
        Integrate one frame.

        The first frame with encoder data only seeds the baseline.
        Frames without encoder data leave the pose alone.

        Returns:
            Updated Pose snapshot
        """
        if frame.encoders is None:
            logger.debug(f"Packet group {frame.packet_group} has no encoder data")
            return self.state.pose
        return self.update(frame.encoders)

    def update(self, reading: EncoderReading) -> Pose:
        """Integrate a raw encoder reading"""
        state = self.state
        if not state.seeded:
            state.last_reading = reading
            state.seeded = True
            logger.debug(f"Encoder baseline L={reading.left} R={reading.right}")
            return state.pose

        left_counts = kinematics.change_in_encoder_counts(
            state.last_reading.left, reading.left, self.geometry
        )
        right_counts = kinematics.change_in_encoder_counts(
            state.last_reading.right, reading.right, self.geometry
        )
        state.last_reading = reading

        left_mm = kinematics.encoder_counts_to_mm(left_counts, self.geometry)
        right_mm = kinematics.encoder_counts_to_mm(right_counts, self.geometry)

        state.pose = self._advance(state.pose, left_mm, right_mm)
        state.frames_integrated += 1

        logger.debug(
            f"dL={left_counts:+d} dR={right_counts:+d} -> "
            f"x={state.pose.x:.1f} y={state.pose.y:.1f} heading={state.pose.degrees:.1f}"
        )
        return state.pose

    def _advance(self, pose: Pose, left_mm: float, right_mm: float) -> Pose:
        """New pose after the wheels travel left_mm / right_mm"""
        delta = kinematics.heading_delta_from_wheel_travel(left_mm, right_mm, self.geometry)
        distance = (left_mm + right_mm) / 2

        if abs(delta) < STRAIGHT_LINE_EPSILON:
            local = (0.0, distance)
        else:
            local = self._arc_displacement(delta, distance)

        dx, dy = kinematics.rotate(local[0], local[1], pose.heading)
        return Pose(
            x=pose.x + dx,
            y=pose.y + dy,
            heading=normalize_angle(pose.heading + delta),
        )

    @staticmethod
    def _arc_displacement(delta: float, distance: float) -> Tuple[float, float]:
        """
        Displacement in the robot frame (x right, y forward) along an arc.

        Start and end points are taken on the circle the robot's center
        follows, then differenced.
        """
        side = Side.RIGHT if delta < 0 else Side.LEFT
        direction = Direction.BACKWARDS if distance < 0 else Direction.FORWARDS
        radius = abs(kinematics.turn_radius_from_arc(delta, distance))

        start_x, start_y = kinematics.point_on_circle(0.0, radius, side, direction)
        end_x, end_y = kinematics.point_on_circle(delta, radius, side, direction)
        return (end_x - start_x, end_y - start_y)


def integrate(readings, geometry: Optional[RobotGeometry] = None) -> Pose:
    """Run a sequence of encoder readings through a fresh integrator."""
    integrator = OdometryIntegrator(geometry or DEFAULT_GEOMETRY)
    pose = integrator.pose
    for reading in readings:
        pose = integrator.update(reading)
    return pose
