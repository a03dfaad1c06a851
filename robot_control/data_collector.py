"""Data collection and CSV logging for control-cycle data.

This module provides CSV data logging for:
- Pose estimates (position, heading, field velocity, odometry diagnostics)
- Zone classification (label, distance to nearest zone)
- Flywheel control (target/measured velocity, voltage, power)
"""

import csv
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from .config import TERM_BLUE, TERM_RESET
from .robot import RobotSnapshot

POSE_COLUMNS = ["timestamp", "x", "y", "theta", "v_x", "v_y", "omega"]
ZONE_COLUMNS = ["timestamp", "zone", "zone_distance"]
FLYWHEEL_COLUMNS = [
    "timestamp",
    "target_velocity",
    "measured_velocity",
    "filtered_voltage",
    "voltage_ratio",
    "base_power",
    "power",
    "running",
    "at_target",
]


class DataCollector:
    """Manages CSV file creation and logging for a control session.

    Attributes:
        run_dir: Directory path for this run's output files.
        pose_csv_file: File handle for pose estimates CSV.
        zone_csv_file: File handle for zone classification CSV.
        flywheel_csv_file: File handle for flywheel control CSV.
    """

    def __init__(self, output_dir: str = ".", run_dir: Optional[str] = None) -> None:
        """Initialize the data collector.

        Args:
            output_dir: Base directory for output files (default: current directory).
            run_dir: Optional specific run directory. If None, creates timestamped
                directory. Can also be set via RUN_DIR environment variable.

        Raises:
            ValueError: If output_dir is not a valid directory.
        """
        output_path = Path(output_dir)
        if output_path.exists() and not output_path.is_dir():
            raise ValueError(f"Output path exists but is not a directory: {output_dir}")

        # CSV file handles
        self.pose_csv_file: Optional[TextIO] = None
        self.pose_csv_writer: Any = None
        self.zone_csv_file: Optional[TextIO] = None
        self.zone_csv_writer: Any = None
        self.flywheel_csv_file: Optional[TextIO] = None
        self.flywheel_csv_writer: Any = None

        if run_dir:
            self.run_dir: Path = Path(run_dir)
        elif env_run_dir := os.environ.get("RUN_DIR"):
            self.run_dir = Path(env_run_dir)
        else:
            # Create timestamped directory: results/run_YYYYMMDD_HHMMSS/
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.run_dir = output_path / "results" / f"run_{timestamp}"

        self.run_dir.mkdir(parents=True, exist_ok=True)

        self.pose_output_path: Path = self.run_dir / "pose_data.csv"
        self.zone_output_path: Path = self.run_dir / "zone_data.csv"
        self.flywheel_output_path: Path = self.run_dir / "flywheel_data.csv"

    def setup(self) -> None:
        """Initialize CSV files with headers.

        Must be called before writing data.
        """
        self.pose_csv_file = open(self.pose_output_path, "w", newline="")
        self.pose_csv_writer = csv.writer(self.pose_csv_file)
        self.pose_csv_writer.writerow(POSE_COLUMNS)

        self.zone_csv_file = open(self.zone_output_path, "w", newline="")
        self.zone_csv_writer = csv.writer(self.zone_csv_file)
        self.zone_csv_writer.writerow(ZONE_COLUMNS)

        self.flywheel_csv_file = open(self.flywheel_output_path, "w", newline="")
        self.flywheel_csv_writer = csv.writer(self.flywheel_csv_file)
        self.flywheel_csv_writer.writerow(FLYWHEEL_COLUMNS)

        logging.info(f"{TERM_BLUE}✓ Initialized data collection to {self.run_dir}/{TERM_RESET}")

    def log_pose(self, timestamp: float, state: Dict[str, float]) -> None:
        """Log a pose estimate.

        Args:
            timestamp: Cycle time (seconds).
            state: Dictionary from PoseEstimator.get_state().
        """
        self.pose_csv_writer.writerow(
            [
                timestamp,
                state["x"],
                state["y"],
                state["theta"],
                state["v_x"],
                state["v_y"],
                state["omega"],
            ]
        )

    def log_zone(self, timestamp: float, zone: str, zone_distance: float) -> None:
        """Log the zone label and distance to the nearest zone (inches)."""
        self.zone_csv_writer.writerow([timestamp, zone, zone_distance])

    def log_flywheel(self, timestamp: float, diagnostics: Dict[str, float]) -> None:
        """Log flywheel diagnostics.

        Args:
            timestamp: Cycle time (seconds).
            diagnostics: Dictionary from VelocityController.get_diagnostics().
        """
        self.flywheel_csv_writer.writerow(
            [timestamp] + [diagnostics[column] for column in FLYWHEEL_COLUMNS[1:]]
        )

    def log_snapshot(self, snapshot: RobotSnapshot) -> None:
        """Log every CSV row for one control cycle."""
        pose = snapshot.pose
        velocity = snapshot.velocity
        self.log_pose(
            snapshot.timestamp,
            {
                "x": pose.x,
                "y": pose.y,
                "theta": pose.heading,
                "v_x": velocity.vx,
                "v_y": velocity.vy,
                "omega": velocity.omega,
            },
        )
        self.log_zone(snapshot.timestamp, snapshot.zone, snapshot.zone_distance)
        self.log_flywheel(snapshot.timestamp, snapshot.flywheel)

    def cleanup(self) -> None:
        """Flush and close all CSV files."""
        for handle in (self.pose_csv_file, self.zone_csv_file, self.flywheel_csv_file):
            if handle:
                handle.close()
        self.pose_csv_file = None
        self.zone_csv_file = None
        self.flywheel_csv_file = None

        logging.info(f"{TERM_BLUE}✓ Saved run data to {self.run_dir}/{TERM_RESET}")

    def __enter__(self) -> "DataCollector":
        """Context manager entry point.

        Returns:
            Self reference for use in with statement.
        """
        self.setup()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit point - ensures cleanup is called."""
        self.cleanup()
