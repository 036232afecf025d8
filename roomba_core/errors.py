"""
Exceptions raised by the odometry core and its transports.
"""


class RoombaError(Exception):
    """Base class for everything this package raises on purpose"""


class DecodeError(RoombaError):
    """A telemetry buffer could not be turned into a SensorFrame"""


class UnknownPacketGroupError(DecodeError, KeyError):
    """A packet group id is not in the size table"""

    def __init__(self, group: int) -> None:
        super().__init__(f"Unknown sensor packet group: {group}")
        self.group = group

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class UnmonitoredPacketGroupError(RoombaError, ValueError):
    """A packet group that leaves out the cliff, wheel drop or overcurrent sensors"""

    def __init__(self, group: int) -> None:
        super().__init__(
            f"Packet group {group} does not carry the hazard sensors; "
            f"the safety check would never trip"
        )
        self.group = group


class TransportError(RoombaError):
    """The link to the robot could not be opened or written"""
