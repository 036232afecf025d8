#!/usr/bin/env python3
"""
Roomba Open Interface (OI) constants.

Opcodes, sensor packet ids and the packet groups that bundle them.
Everything the decoder needs to know about byte layout lives here.
"""

from enum import IntEnum


class OpCode(IntEnum):
    """OI command opcodes we actually send"""
    START = 128       # Enter Passive mode; also halts the drive motors
    SAFE = 131
    FULL = 132
    DRIVE = 137
    SENSORS = 142     # Request a single sensor packet/group
    STREAM = 148
    STOP = 173        # Leave the OI entirely


# Sensor packet ids -> (field name, byte size, signed)
# Sizes and signedness follow the OI reference. Encoder counts are treated as
# signed 16-bit counters that wrap modulo 65536.
PACKETS = {
    7: ("bumps_wheel_drops", 1, False),
    8: ("wall", 1, False),
    9: ("cliff_left", 1, False),
    10: ("cliff_front_left", 1, False),
    11: ("cliff_front_right", 1, False),
    12: ("cliff_right", 1, False),
    13: ("virtual_wall", 1, False),
    14: ("wheel_overcurrents", 1, False),
    15: ("dirt_detect", 1, False),
    16: ("unused_16", 1, False),
    17: ("ir_opcode", 1, False),
    18: ("buttons", 1, False),
    19: ("distance", 2, True),
    20: ("angle", 2, True),
    21: ("charging_state", 1, False),
    22: ("voltage", 2, False),
    23: ("current", 2, True),
    24: ("temperature", 1, True),
    25: ("battery_charge", 2, False),
    26: ("battery_capacity", 2, False),
    27: ("wall_signal", 2, False),
    28: ("cliff_left_signal", 2, False),
    29: ("cliff_front_left_signal", 2, False),
    30: ("cliff_front_right_signal", 2, False),
    31: ("cliff_right_signal", 2, False),
    32: ("unused_32", 1, False),
    33: ("unused_33", 2, False),
    34: ("charging_sources", 1, False),
    35: ("oi_mode", 1, False),
    36: ("song_number", 1, False),
    37: ("song_playing", 1, False),
    38: ("stream_packet_count", 1, False),
    39: ("requested_velocity", 2, True),
    40: ("requested_radius", 2, True),
    41: ("requested_right_velocity", 2, True),
    42: ("requested_left_velocity", 2, True),
    43: ("left_encoder_counts", 2, True),
    44: ("right_encoder_counts", 2, True),
    45: ("light_bumper", 1, False),
    46: ("light_bump_left_signal", 2, False),
    47: ("light_bump_front_left_signal", 2, False),
    48: ("light_bump_center_left_signal", 2, False),
    49: ("light_bump_center_right_signal", 2, False),
    50: ("light_bump_front_right_signal", 2, False),
    51: ("light_bump_right_signal", 2, False),
    52: ("ir_opcode_left", 1, False),
    53: ("ir_opcode_right", 1, False),
    54: ("left_motor_current", 2, True),
    55: ("right_motor_current", 2, True),
    56: ("main_brush_motor_current", 2, True),
    57: ("side_brush_motor_current", 2, True),
    58: ("stasis", 1, False),
}

# Packet groups -> (first packet id, last packet id), inclusive
PACKET_GROUP_RANGES = {
    0: (7, 26),
    1: (7, 16),
    2: (17, 20),
    3: (21, 26),
    4: (27, 34),
    5: (35, 42),
    6: (7, 42),
    100: (7, 58),
    101: (43, 58),
    106: (46, 51),
    107: (54, 58),
}

# Packet group -> byte length the robot actually sends back.
# The OI docs say group 100 is 80 bytes, but the device returns 93.
PACKET_GROUP_SIZES = {
    0: 26,
    1: 10,
    2: 6,
    3: 10,
    4: 14,
    5: 12,
    6: 52,
    100: 93,
    101: 28,
    106: 12,
    107: 9,
}

STREAMING_PACKET_GROUP = 100

# Bumps/wheel drops, the four cliff sensors and the overcurrents
HAZARD_PACKET_IDS = (7, 9, 10, 11, 12, 14)

# Bits of packet 7 (bumps and wheel drops)
BUMP_RIGHT_BIT = 0x01
BUMP_LEFT_BIT = 0x02
WHEEL_DROP_RIGHT_BIT = 0x04
WHEEL_DROP_LEFT_BIT = 0x08

# Bits of packet 14 (wheel overcurrents)
OVERCURRENT_SIDE_BRUSH_BIT = 0x01
OVERCURRENT_MAIN_BRUSH_BIT = 0x04
OVERCURRENT_RIGHT_WHEEL_BIT = 0x08
OVERCURRENT_LEFT_WHEEL_BIT = 0x10

# OI mode values (packet 35)
OI_MODE_NAMES = {
    0: "OFF",
    1: "PASSIVE",
    2: "SAFE",
    3: "FULL",
}

# Drive geometry defaults (millimeters)
WHEEL_DIAMETER_MM = 72.0
ENCODER_COUNTS_PER_WHEEL_TURN = 508.8
WHEELBASE_MM = 258.0

# Encoder counters are 16 bits wide
MAX_ENCODER_COUNT = 65536
ROLLOVER_GUARD_MARGIN = 10000

DEFAULT_BAUDRATE = 115200


def sensor_request(group: int) -> bytes:
    """Build the two-byte SENSORS request for a packet group."""
    return bytes([OpCode.SENSORS, group])


def carries_hazard_packets(group: int) -> bool:
    """True if a packet group includes every packet the safety check reads."""
    if group not in PACKET_GROUP_RANGES:
        return False
    first, last = PACKET_GROUP_RANGES[group]
    return all(first <= packet_id <= last for packet_id in HAZARD_PACKET_IDS)
