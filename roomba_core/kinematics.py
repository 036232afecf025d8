"""
Kinematics - Encoder and circular-arc math for a differential drive.

Every function here is pure. All angles are radians.

Arc model: when the wheels travel different distances the robot sweeps
an arc around a center point. Left/right travel, wheelbase, turn radius
and swept angle are related by plain circle geometry. Several of the
radius relations divide by the angle, so straight-line motion (angle ~ 0)
has to be handled by the caller.
"""

import math
from typing import Tuple

from .types import DEFAULT_GEOMETRY, Direction, RobotGeometry, Side


def encoder_counts_to_mm(counts: int, geometry: RobotGeometry = DEFAULT_GEOMETRY) -> float:
    """Convert an encoder count delta into millimeters of wheel travel."""
    return counts * (math.pi * geometry.wheel_diameter_mm / geometry.counts_per_wheel_turn)


def heading_delta_from_wheel_travel(
    left_mm: float,
    right_mm: float,
    geometry: RobotGeometry = DEFAULT_GEOMETRY,
) -> float:
    """
    Heading change for the given wheel travel.

    Positive when the right wheel travels further (counter-clockwise,
    turning left); a forward right turn comes out negative.
    """
    return (right_mm - left_mm) / geometry.wheelbase_mm


def turn_radius_from_arc(radians: float, arc_distance: float) -> float:
    """Radius of the circle on which `arc_distance` sweeps `radians`."""
    return arc_distance / radians


def arc_distance_from_radius(radians: float, radius: float) -> float:
    return radius * radians


def chord_distance(radians: float, radius: float) -> float:
    """Straight-line distance between the ends of an arc (law of cosines)."""
    return math.sqrt((2 * radius ** 2) - (2 * radius ** 2 * math.cos(radians)))


def turn_angle_from_chord(arc_radians: float, chord: float, radius: float) -> float:
    """
    Interior angle between the chord and the radius at the arc's far end.

    Law of sines on the triangle (center, start, end).
    """
    return math.pi - arc_radians - math.asin(radius * (math.sin(arc_radians) / chord))


def near_side_length(radians: float, hypotenuse: float) -> float:
    return hypotenuse * math.cos(radians)


def far_side_length(radians: float, hypotenuse: float) -> float:
    return hypotenuse * math.sin(radians)


def point_on_circle(
    radians: float,
    radius: float,
    side: Side,
    direction: Direction,
) -> Tuple[float, float]:
    """
    (x, y) on a circle of `radius` at `radians`, relative to its center.

    A forward right turn (or a backward left turn) pivots around a center
    on the other side of the robot, so those combinations are shifted by
    half a turn.
    """
    if (side == Side.RIGHT and direction == Direction.FORWARDS) or \
            (side == Side.LEFT and direction == Direction.BACKWARDS):
        radians += math.pi
    return (near_side_length(radians, radius), far_side_length(radians, radius))


def rotate(x: float, y: float, radians: float) -> Tuple[float, float]:
    """Rotate a vector counter-clockwise by `radians`."""
    cos_a = math.cos(radians)
    sin_a = math.sin(radians)
    return (x * cos_a - y * sin_a, x * sin_a + y * cos_a)


def is_same_sign(first: int, second: int) -> bool:
    """Zero counts as positive."""
    return (first ^ second) >= 0


def change_in_encoder_counts(
    last_count: int,
    current_count: int,
    geometry: RobotGeometry = DEFAULT_GEOMETRY,
) -> int:
    """
    Encoder delta that survives 16-bit counter rollover.

    A rollover shows up as a sign flip between the naive delta and the
    delta computed with one full counter range added back. Only trust the
    flip when the naive delta is already within `rollover_margin` of the
    full range; ordinary large deltas are left alone.
    """
    max_count = geometry.max_encoder_count
    count = current_count - last_count
    backwards_roll = current_count - (last_count + max_count)
    forwards_roll = (current_count + max_count) - last_count
    near_full_range = abs(count) > max_count - geometry.rollover_margin

    if not is_same_sign(count, forwards_roll) and near_full_range:
        return forwards_roll
    if not is_same_sign(count, backwards_roll) and near_full_range:
        return backwards_roll
    return count
