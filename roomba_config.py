#!/usr/bin/env python3
"""
Roomba Environment Configuration Helper

Provides easy access to .env configuration for all roomba tools.
Automatically loads .env file and provides defaults.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

import roomba_oi


class RoombaConfig:
    """Configuration manager for roomba tools"""

    def __init__(self, env_file: Optional[str] = None):
        """
        Initialize configuration

        Args:
            env_file: Path to .env file (default: .env in current directory)
        """
        self._loaded = False

        env_path = Path(".env") if env_file is None else Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            self._loaded = True

    @property
    def port(self) -> Optional[str]:
        """Serial device the Roomba is on"""
        return os.getenv("ROOMBA_PORT")

    @property
    def baudrate(self) -> int:
        """Serial line speed (default: 115200)"""
        return int(os.getenv("ROOMBA_BAUDRATE", str(roomba_oi.DEFAULT_BAUDRATE)))

    @property
    def hw_handshake(self) -> bool:
        """Wait for DSR before talking (default: off)"""
        return os.getenv("ROOMBA_HW_HANDSHAKE", "0").strip().lower() in ("1", "true", "yes", "on")

    @property
    def poll_interval_ms(self) -> int:
        """Pause between sensor requests in milliseconds (default: 50)"""
        return int(os.getenv("ROOMBA_POLL_INTERVAL_MS", "50"))

    @property
    def silence_threshold_ms(self) -> int:
        """Warn after this long without sensor data (default: 5000)"""
        return int(os.getenv("ROOMBA_SILENCE_THRESHOLD_MS", "5000"))

    @property
    def packet_group(self) -> int:
        """Sensor packet group to poll (default: 100)"""
        return int(os.getenv("ROOMBA_PACKET_GROUP", str(roomba_oi.STREAMING_PACKET_GROUP)))

    @property
    def csv_path(self) -> Optional[str]:
        """Where to record telemetry (unset: don't record)"""
        return os.getenv("ROOMBA_CSV_PATH") or None

    @property
    def is_configured(self) -> bool:
        """Check if basic configuration is present"""
        return bool(self.port)

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate configuration

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if not self.port:
            errors.append("ROOMBA_PORT not set")

        for name, getter in [
            ("ROOMBA_BAUDRATE", lambda: self.baudrate),
            ("ROOMBA_POLL_INTERVAL_MS", lambda: self.poll_interval_ms),
            ("ROOMBA_SILENCE_THRESHOLD_MS", lambda: self.silence_threshold_ms),
            ("ROOMBA_PACKET_GROUP", lambda: self.packet_group),
        ]:
            try:
                value = getter()
            except ValueError:
                errors.append(f"{name} must be an integer")
                continue
            if name == "ROOMBA_PACKET_GROUP":
                if value not in roomba_oi.PACKET_GROUP_SIZES:
                    errors.append(f"{name} is not a known packet group: {value}")
                elif not roomba_oi.carries_hazard_packets(value):
                    errors.append(f"{name} {value} does not carry the cliff/wheel drop/overcurrent sensors")
            elif name == "ROOMBA_POLL_INTERVAL_MS":
                if value < 0:
                    errors.append(f"{name} must not be negative")
            elif value <= 0:
                errors.append(f"{name} must be positive")

        return len(errors) == 0, errors

    def print_status(self):
        """Print configuration status"""
        print("Roomba Configuration Status:")
        print(f"  .env loaded:   {'Yes' if self._loaded else 'No'}")
        print(f"  Port:          {self.port or '(not set)'}")
        print(f"  Baudrate:      {os.getenv('ROOMBA_BAUDRATE', roomba_oi.DEFAULT_BAUDRATE)}")
        print(f"  HW handshake:  {'Yes' if self.hw_handshake else 'No'}")
        print(f"  Poll interval: {os.getenv('ROOMBA_POLL_INTERVAL_MS', '50')} ms")
        print(f"  Silence warn:  {os.getenv('ROOMBA_SILENCE_THRESHOLD_MS', '5000')} ms")
        print(f"  Packet group:  {os.getenv('ROOMBA_PACKET_GROUP', roomba_oi.STREAMING_PACKET_GROUP)}")
        print(f"  CSV path:      {self.csv_path or '(not recording)'}")

        is_valid, errors = self.validate()
        if is_valid:
            print("\n  Status: Configuration is valid")
        else:
            print("\n  Status: Configuration has errors:")
            for error in errors:
                print(f"    - {error}")


# Global config instance
_config = None

def get_config(reload: bool = False, env_file: Optional[str] = None) -> RoombaConfig:
    """
    Get the global configuration instance

    Args:
        reload: Force reload of .env file
        env_file: Path to .env file

    Returns:
        RoombaConfig instance
    """
    global _config
    if _config is None or reload:
        _config = RoombaConfig(env_file)
    return _config


def main():
    """Command-line utility to check configuration"""
    import argparse

    parser = argparse.ArgumentParser(
        description="Roomba Configuration Utility",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Check current configuration:
    python roomba_config.py

  Validate configuration:
    python roomba_config.py --validate

  Use custom .env file:
    python roomba_config.py --env-file /path/to/.env
        """
    )

    parser.add_argument("--env-file", help="Path to .env file")
    parser.add_argument("--validate", action="store_true",
                       help="Validate configuration and exit with error if invalid")

    args = parser.parse_args()

    config = RoombaConfig(args.env_file)
    config.print_status()

    if args.validate:
        is_valid, errors = config.validate()
        if not is_valid:
            print("\nValidation failed!")
            import sys
            sys.exit(1)
        else:
            print("\nValidation passed!")


if __name__ == "__main__":
    main()
