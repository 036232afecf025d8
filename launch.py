#!/usr/bin/env python3
"""
Roomba odometry launcher

Usage:
    python launch.py --port /dev/ttyUSB0          # Track a real Roomba
    python launch.py --port COM3 --csv drive.csv  # ...and record telemetry
    python launch.py --mock                       # Simulated Roomba
    python launch.py --demo                       # Run core demo

Press Return (or Ctrl+C) to stop.
"""

import sys
import argparse
import asyncio
import logging
import threading
from typing import Optional


logger = logging.getLogger("launch")


def setup_logging(level: str = "INFO") -> None:
    """Configure logging"""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )


def build_transport(args, config):
    """Serial transport, or the simulated one with --mock"""
    if args.mock:
        from roomba_core.transport import SimulatedTransport
        print("Using SIMULATED transport (no actual hardware)")
        # Gentle left arc
        return SimulatedTransport(script=[(20, 24)])

    from roomba_core.transport import SerialTransport
    port = args.port or config.port
    if not port:
        print("ERROR: No serial port given (use --port or ROOMBA_PORT)")
        sys.exit(1)
    return SerialTransport(
        port=port,
        baudrate=args.baudrate or config.baudrate,
        hw_handshake=args.hw_handshake or config.hw_handshake,
    )


def build_sink(csv_path: Optional[str]):
    if not csv_path:
        return None
    from roomba_record import CsvTelemetryRecorder
    return CsvTelemetryRecorder(csv_path)


def watch_for_keypress(loop: asyncio.AbstractEventLoop, on_key) -> threading.Thread:
    """Call on_key (in the event loop) when Return is pressed"""
    def wait():
        try:
            sys.stdin.readline()
        except (OSError, ValueError):
            return
        loop.call_soon_threadsafe(on_key)

    thread = threading.Thread(target=wait, name="keypress", daemon=True)
    thread.start()
    return thread


def launch_tracker(args) -> None:
    """Connect, then poll telemetry until a key is pressed"""
    import roomba_oi
    from roomba_config import get_config
    from roomba_core.acquisition import AcquisitionLoop
    from roomba_core.types import AcquisitionConfig

    config = get_config(env_file=args.env_file)
    transport = build_transport(args, config)

    pause_ms = args.pause if args.pause is not None else config.poll_interval_ms
    acq_config = AcquisitionConfig(
        poll_interval=pause_ms / 1000.0,
        silence_threshold=config.silence_threshold_ms / 1000.0,
        packet_group=config.packet_group,
    )
    sink = build_sink(args.csv or config.csv_path)

    if not transport.connect():
        print(f"Couldn't connect to {args.port or config.port}")
        sys.exit(1)

    acquisition = AcquisitionLoop(transport=transport, config=acq_config, sink=sink)

    def on_pose(frame, pose):
        mode = roomba_oi.OI_MODE_NAMES.get(frame.values.get("oi_mode"), "?")
        logger.info(
            f"Pose: x={pose.x:.1f}mm y={pose.y:.1f}mm heading={pose.degrees:.1f}deg [{mode}]"
        )

    if args.verbose:
        acquisition.add_pose_callback(on_pose)

    async def run():
        watch_for_keypress(asyncio.get_running_loop(), acquisition.stop)
        print("Press return to exit.")
        await acquisition.run()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        print("\nShutting down...")
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)

    pose = acquisition.pose
    print(f"Final pose: x={pose.x:.1f}mm y={pose.y:.1f}mm heading={pose.degrees:.1f}deg")


def launch_demo() -> None:
    """Launch core architecture demo"""
    print("Starting core architecture demo...")
    from demo_core import main
    main()


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="Roomba odometry and safety interlock",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python launch.py --port /dev/ttyUSB0            Track a Roomba
  python launch.py --port COM3 --pause 100        Poll every 100 ms
  python launch.py --mock --csv drive.csv         Record a simulated drive
  python launch.py --demo                         Run core demo
        """
    )

    parser.add_argument("--port", help="Serial port the Roomba is on")
    parser.add_argument("--baudrate", type=int, help="Serial baudrate (default 115200)")
    parser.add_argument(
        "--hw-handshake",
        action="store_true",
        help="Wait for DSR before talking to the Roomba"
    )
    parser.add_argument("--pause", type=int, help="Milliseconds between sensor requests")
    parser.add_argument("--csv", help="Record telemetry to this CSV file")
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use a simulated Roomba (no hardware needed)"
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Run core architecture demo"
    )
    parser.add_argument("--env-file", help="Path to .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every pose update")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level"
    )

    args = parser.parse_args()

    setup_logging(args.log_level)

    if args.demo:
        launch_demo()
    else:
        launch_tracker(args)


if __name__ == "__main__":
    main()
