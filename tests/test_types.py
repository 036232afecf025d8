"""Tests for core types"""

import math

import pytest

from roomba_core.types import (
    AcquisitionConfig,
    EncoderReading,
    HAZARD_FLAGS,
    LoopState,
    OdometryState,
    Pose,
    RobotGeometry,
    SafetyVerdict,
    SensorFrame,
)


def test_encoder_reading_valid():
    """Test valid encoder reading creation"""
    reading = EncoderReading(left=-32768, right=32767)
    assert reading.left == -32768
    assert reading.right == 32767


def test_encoder_reading_validation():
    """Test encoder reading validates 16-bit range"""
    with pytest.raises(AssertionError):
        EncoderReading(left=32768, right=0)

    with pytest.raises(AssertionError):
        EncoderReading(left=0, right=-32769)


def test_encoder_reading_is_immutable():
    reading = EncoderReading(1, 2)
    with pytest.raises(AttributeError):
        reading.left = 5


def test_pose_defaults_to_origin():
    pose = Pose()
    assert pose.position == (0.0, 0.0)
    assert pose.heading == 0.0
    assert pose.degrees == 0.0


def test_pose_degrees():
    """Test derived heading in degrees"""
    assert Pose(heading=-math.pi / 2).degrees == pytest.approx(-90.0)
    assert Pose(heading=math.pi).degrees == pytest.approx(180.0)


def test_odometry_state_starts_unseeded():
    state = OdometryState()
    assert state.last_reading == EncoderReading(0, 0)
    assert state.pose == Pose()
    assert state.seeded is False


def test_sensor_frame_hazards():
    """Test hazard flag listing"""
    frame = SensorFrame(packet_group=100, cliff_left=True, overcurrent_main_brush=True)
    assert frame.hazards == ["cliff_left", "overcurrent_main_brush"]

    assert SensorFrame(packet_group=100).hazards == []


def test_sensor_frame_as_record():
    frame = SensorFrame(
        packet_group=100,
        raw=b"\x01\x02",
        values={"voltage": 14800},
        wheel_drop_right=True,
        encoders=EncoderReading(10, -10),
        timestamp=12.5,
    )
    record = frame.as_record()

    assert record["timestamp"] == 12.5
    assert record["packet_group"] == 100
    assert record["wheel_drop_right"] is True
    assert record["cliff_left"] is False
    assert record["left_encoder"] == 10
    assert record["right_encoder"] == -10
    assert record["voltage"] == 14800
    assert frame.raw_hex == "0102"
    for name in HAZARD_FLAGS:
        assert name in record


def test_safety_verdict_truthiness():
    assert bool(SafetyVerdict(safe=True)) is True
    assert bool(SafetyVerdict(safe=False, tripped=("cliff_left",))) is False


def test_robot_geometry_defaults():
    """Test calibration defaults"""
    geometry = RobotGeometry()
    assert geometry.wheel_diameter_mm == 72.0
    assert geometry.counts_per_wheel_turn == 508.8
    assert geometry.wheelbase_mm == 258.0
    assert geometry.max_encoder_count == 65536
    assert geometry.rollover_margin == 10000
    assert geometry.mm_per_count == pytest.approx(math.pi * 72.0 / 508.8)


def test_robot_geometry_validation():
    with pytest.raises(ValueError):
        RobotGeometry(wheelbase_mm=0)

    with pytest.raises(ValueError):
        RobotGeometry(counts_per_wheel_turn=-1)

    with pytest.raises(ValueError):
        RobotGeometry(rollover_margin=70000)


def test_acquisition_config_defaults():
    config = AcquisitionConfig()
    assert config.silence_threshold == 5.0
    assert config.packet_group == 100
    assert config.poll_interval > 0


def test_acquisition_config_validation():
    """Test acquisition config validates ranges"""
    with pytest.raises(AssertionError):
        AcquisitionConfig(poll_interval=-0.1)

    with pytest.raises(AssertionError):
        AcquisitionConfig(silence_threshold=0)


def test_loop_state_enum():
    assert LoopState.IDLE.value == "idle"
    assert LoopState.RUNNING.value == "running"
    assert LoopState.STOPPED.value == "stopped"
