"""
Safety Monitor - Decides whether a frame is safe to keep driving on.

Cliff sensors, wheel drops and motor overcurrents. Any one of them set
means stop. There are no severity levels and no memory between frames.
"""

from .types import HAZARD_FLAGS, SafetyVerdict, SensorFrame


def evaluate(frame: SensorFrame) -> SafetyVerdict:
    """Check every hazard flag on a frame"""
    tripped = tuple(name for name in HAZARD_FLAGS if getattr(frame, name))
    return SafetyVerdict(safe=not tripped, tripped=tripped)


def is_safe(frame: SensorFrame) -> bool:
    """False if any of the ten hazard flags is set"""
    return evaluate(frame).safe
