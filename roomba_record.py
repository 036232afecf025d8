#!/usr/bin/env python3
"""
Roomba Telemetry Recorder - One CSV row per sensor frame.

Plugs into the acquisition loop as its telemetry sink. Rows are flushed
as they're written so a crash doesn't lose the tail of a drive.
"""

import csv
import logging
from pathlib import Path
from typing import Optional, TextIO, Union

from roomba_core.types import HAZARD_FLAGS, Pose, SensorFrame


logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "timestamp",
    "packet_group",
    "x_mm",
    "y_mm",
    "heading_deg",
    "left_encoder",
    "right_encoder",
    *HAZARD_FLAGS,
    "bump_left",
    "bump_right",
    "raw",
]


class CsvTelemetryRecorder:
    """Writes frames and the pose they produced to a CSV file"""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._file: Optional[TextIO] = None
        self._writer = None
        self.rows_written = 0

    def open(self) -> None:
        if self._file is not None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.path.open("w", newline="")
        self._writer = csv.DictWriter(self._file, fieldnames=CSV_COLUMNS)
        self._writer.writeheader()
        logger.info(f"Recording telemetry to {self.path}")

    def record(self, frame: SensorFrame, pose: Pose) -> None:
        if self._file is None:
            self.open()

        record = frame.as_record()
        row = {
            "timestamp": f"{frame.timestamp:.3f}",
            "packet_group": frame.packet_group,
            "x_mm": f"{pose.x:.2f}",
            "y_mm": f"{pose.y:.2f}",
            "heading_deg": f"{pose.degrees:.2f}",
            "left_encoder": record["left_encoder"],
            "right_encoder": record["right_encoder"],
            "bump_left": int(frame.bump_left),
            "bump_right": int(frame.bump_right),
            "raw": frame.raw_hex,
        }
        for name in HAZARD_FLAGS:
            row[name] = int(record[name])

        self._writer.writerow(row)
        self._file.flush()
        self.rows_written += 1

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None
            logger.info(f"Wrote {self.rows_written} rows to {self.path}")

    def __enter__(self) -> "CsvTelemetryRecorder":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()
