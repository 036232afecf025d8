"""Shared fixtures for the odometry core tests"""

from typing import List, Tuple

import pytest

from roomba_core.decoder import FrameDecoder, build_buffer
from roomba_core.types import Pose, SensorFrame


class FakeClock:
    """Monotonic clock the test moves by hand"""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSink:
    """Telemetry sink that remembers everything"""

    def __init__(self) -> None:
        self.records: List[Tuple[SensorFrame, Pose]] = []
        self.closed = False

    def record(self, frame: SensorFrame, pose: Pose) -> None:
        self.records.append((frame, pose))

    def close(self) -> None:
        self.closed = True


def make_frame(group: int = 100, **values) -> SensorFrame:
    """Decode a synthesized buffer with the given packet values"""
    return FrameDecoder().decode(build_buffer(group, values), group)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return RecordingSink()
