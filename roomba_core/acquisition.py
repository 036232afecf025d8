"""
Acquisition Loop - Polling, draining, safety and odometry orchestration.

The loop is the sole consumer of the transport's frame queue. Each cycle:
- Requests one sensor packet group
- Drains every frame that is queued (the producer may run ahead)
- Checks each frame for hazards, sends a stop when one is found
- Feeds safe frames to the odometry integrator
- Hands every evaluated frame to the telemetry sink
- Warns once when telemetry goes silent
- Sleeps

This is safety-critical code.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional

import roomba_oi
from roomba_oi import OpCode
from .decoder import DEFAULT_PACKET_GROUPS, PacketGroupTable
from .errors import UnmonitoredPacketGroupError
from .interfaces import NullTelemetrySink, TelemetrySink, Transport
from .odometry import OdometryIntegrator
from .safety import evaluate
from .types import AcquisitionConfig, LoopState, Pose, SensorFrame


logger = logging.getLogger(__name__)


class AcquisitionLoop:
    """
    Main telemetry loop and safety interlock.

    Owns the OdometryIntegrator exclusively; nothing here is shared
    with the producer thread except the transport's queue.
    """

    def __init__(
        self,
        transport: Transport,
        config: AcquisitionConfig,
        table: PacketGroupTable = DEFAULT_PACKET_GROUPS,
        integrator: Optional[OdometryIntegrator] = None,
        sink: Optional[TelemetrySink] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize acquisition loop.

        Args:
            transport: Frame source and command sink
            config: Poll interval, silence threshold, packet group
            table: Packet group size table
            integrator: Odometry integrator (a fresh one if omitted)
            sink: Telemetry recorder (drops everything if omitted)
            clock: Monotonic time source, seconds
        """
        self.transport = transport
        self.config = config
        self.table = table
        self.integrator = integrator or OdometryIntegrator()
        self.sink = sink or NullTelemetrySink()
        self._clock = clock

        self.state = LoopState.IDLE
        self._stop_requested = False
        self._request = roomba_oi.sensor_request(config.packet_group)

        # Silence detection
        self._last_frame_time: float = clock()
        self._silence_reported = False

        # Counters for monitoring
        self.frames_received = 0
        self.unsafe_frames = 0
        self.silence_warnings = 0

        self._pose_callbacks: list[Callable[[SensorFrame, Pose], Any]] = []

    def add_pose_callback(self, callback: Callable[[SensorFrame, Pose], Any]) -> None:
        """
        Register callback for every integrated frame.

        Callback signature: callback(frame, pose)
        """
        self._pose_callbacks.append(callback)

    async def run(self) -> None:
        """
        Main loop - runs until stop() is called.

        Raises:
            UnknownPacketGroupError: configured group has no known size
            UnmonitoredPacketGroupError: configured group has no hazard sensors
        """
        logger.info("Acquisition loop starting")

        try:
            self.start()
            while not self._stop_requested:
                try:
                    self.run_once()
                except Exception as e:
                    logger.error(f"Error in acquisition cycle: {e}", exc_info=True)
                    self._send_stop_after_error()
                await asyncio.sleep(self.config.poll_interval)
        finally:
            logger.info("Acquisition loop stopping")
            self._cleanup()

    def stop(self) -> None:
        """Request shutdown; takes effect at the next cycle boundary"""
        self._stop_requested = True

    def start(self) -> None:
        """Look up the response length, prime the transport, wake the robot"""
        group = self.config.packet_group
        length = self.table.size(group)
        if not roomba_oi.carries_hazard_packets(group):
            raise UnmonitoredPacketGroupError(group)
        self.transport.expect_packets(group, length)

        logger.info("Roomba startup")
        self.transport.send(bytes([OpCode.START]))

        self._last_frame_time = self._clock()
        self._silence_reported = False
        self.state = LoopState.RUNNING

    def run_once(self) -> int:
        """
        One cycle: request, drain everything queued, check silence.

        Only the frames queued when the drain begins are taken; anything
        the producer adds meanwhile waits for the next cycle.

        Returns:
            Number of frames processed
        """
        self.transport.send(self._request)

        processed = 0
        for _ in range(self.transport.pending_frames()):
            frame = self.transport.poll_frame()
            if frame is None:
                break
            self.handle_frame(frame)
            processed += 1

        self._check_silence()
        return processed

    def handle_frame(self, frame: SensorFrame) -> Pose:
        """Safety first, then odometry, then the telemetry sink"""
        self._last_frame_time = self._clock()
        self._silence_reported = False
        self.frames_received += 1
        logger.debug(f"Sensor data {self.frames_received}: {frame.raw_hex}")

        verdict = evaluate(frame)
        if not verdict:
            self.unsafe_frames += 1
            self.transport.send(bytes([OpCode.START]))
            logger.warning(
                f"Unsafe condition detected by sensors ({', '.join(verdict.tripped)}). "
                f"Stopping Roomba"
            )
            pose = self.integrator.pose
        else:
            pose = self.integrator.process(frame)
            for callback in self._pose_callbacks:
                try:
                    callback(frame, pose)
                except Exception as e:
                    logger.error(f"Error in pose callback: {e}", exc_info=True)

        self.sink.record(frame, pose)
        return pose

    def _check_silence(self) -> None:
        """Warn once per silent stretch; a new frame re-arms it"""
        if self._silence_reported:
            return
        silent_for = self._clock() - self._last_frame_time
        if silent_for > self.config.silence_threshold:
            self._silence_reported = True
            self.silence_warnings += 1
            logger.warning(
                f"No sensor data in over {self.config.silence_threshold:g} seconds. "
                f"Make sure the Roomba is on."
            )

    def _send_stop_after_error(self) -> None:
        try:
            self.transport.send(bytes([OpCode.START]))
        except Exception as e:
            logger.error(f"Could not send stop command: {e}")

    def _cleanup(self) -> None:
        """Orderly teardown: stop the robot, close the sink, drop the link"""
        try:
            if self.transport.is_connected:
                try:
                    self.transport.send(bytes([OpCode.STOP]))
                except Exception as e:
                    logger.error(f"Could not send OI stop: {e}", exc_info=True)
                logger.info("Disconnecting")
                self.transport.disconnect()
        except Exception as e:
            logger.error(f"Error during cleanup: {e}", exc_info=True)
        finally:
            self.sink.close()
            self.state = LoopState.STOPPED
            logger.info("Done")

    @property
    def pose(self) -> Pose:
        """Current pose estimate"""
        return self.integrator.pose

    @property
    def is_running(self) -> bool:
        return self.state == LoopState.RUNNING
