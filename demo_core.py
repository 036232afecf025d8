#!/usr/bin/env python3
"""
Roomba Core Demo - Simple example application.

Drives a simulated Roomba through a short script (straight, left arc,
cliff scare, right spin) and logs the pose as it goes.
"""

import asyncio
import logging
import sys

from roomba_core.acquisition import AcquisitionLoop
from roomba_core.transport import SimulatedTransport
from roomba_core.types import AcquisitionConfig


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout
)

logger = logging.getLogger(__name__)

# (left, right) encoder counts per sensor request
DEMO_SCRIPT = (
    [(0, 0)]            # Baseline
    + [(40, 40)] * 10   # Straight ahead
    + [(30, 45)] * 10   # Left arc
    + [(20, -20)] * 10  # Spin right in place
    + [(0, 0)]
)


async def run_demo():
    """Run a simple demo with the simulated transport"""

    logger.info("=" * 60)
    logger.info("Roomba Odometry Core Demo")
    logger.info("=" * 60)

    transport = SimulatedTransport(script=DEMO_SCRIPT)
    transport.connect()

    acquisition = AcquisitionLoop(
        transport=transport,
        config=AcquisitionConfig(poll_interval=0.05, silence_threshold=1.0),
    )

    def on_pose(frame, pose):
        logger.info(
            f"📍 x={pose.x:8.1f}mm  y={pose.y:8.1f}mm  heading={pose.degrees:7.1f}°"
        )

    acquisition.add_pose_callback(on_pose)

    logger.info("Starting acquisition loop...")
    loop_task = asyncio.create_task(acquisition.run())

    await asyncio.sleep(0.8)

    logger.info("Simulating a cliff under the front left sensor...")
    transport.set_hazard("cliff_front_left")
    await asyncio.sleep(0.2)
    transport.set_hazard("cliff_front_left", active=False)

    logger.info("Simulating telemetry silence...")
    transport.mute = True
    await asyncio.sleep(1.3)
    transport.mute = False

    await asyncio.sleep(1.0)

    logger.info("-" * 60)
    logger.info("Demo complete. Shutting down...")
    acquisition.stop()
    await loop_task

    pose = acquisition.pose
    logger.info(
        f"Frames: {acquisition.frames_received}, unsafe: {acquisition.unsafe_frames}, "
        f"silence warnings: {acquisition.silence_warnings}"
    )
    logger.info(f"Final pose: ({pose.x:.1f}, {pose.y:.1f}) mm at {pose.degrees:.1f}°")
    logger.info("=" * 60)


def main():
    """Main entry point"""
    try:
        asyncio.run(run_demo())
    except KeyboardInterrupt:
        logger.info("\nDemo interrupted by user")
    except Exception as e:
        logger.error(f"Demo failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
