#!/usr/bin/env python3
"""
Offline control session against simulated hardware.

This module builds the robot from config parameters, drives the simulated
chassis with a constant twist while the flywheel spins to a preset, runs
the fixed control cycle and logs every cycle to CSV files. At the end it
reports estimation error against the simulator's true pose and how long
the flywheel took to reach its target.
"""

import argparse
import logging
import sys
from collections import Counter
from typing import List, Optional

from .component_modes import ComponentMode, parse_component_flags
from .config import (
    FLYWHEEL_PRESETS,
    LOOP_PERIOD,
    START_POSE,
    TERM_BLUE,
    TERM_ORANGE,
    TERM_RESET,
)
from .data_collector import DataCollector
from .flywheel import VelocityController, preset
from .localizer import PoseEstimator
from .model import Pose
from .robot import Robot
from .simulation import SimulatedChassis, SimulatedFlywheel
from .zones import default_zones


class CustomFormatter(logging.Formatter):
    """Custom logging formatter that removes timestamps from INFO messages.

    This formatter provides clean console output by showing INFO messages without
    timestamps while preserving full context for WARNING, ERROR, and DEBUG messages.
    """

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno == logging.INFO:
            return record.getMessage()
        return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
        logger = logging.getLogger()
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)


def build_robot(
    chassis: SimulatedChassis,
    flywheel_plant: SimulatedFlywheel,
    component_mode: Optional[ComponentMode] = None,
) -> Robot:
    """Wire the control core to hardware handles using config defaults.

    Args:
        chassis: Odometry sensor source.
        flywheel_plant: Flywheel actuator and battery voltage source.
        component_mode: Optional corrections to enable (default: all).

    Returns:
        Robot ready for periodic().
    """
    if component_mode is None:
        component_mode = ComponentMode()

    localizer = PoseEstimator(
        sensors=chassis,
        correct_rotation=component_mode.use_rotation_correction,
        guard_encoder_resets=component_mode.use_reset_guard,
    )
    flywheel = VelocityController(
        actuator=flywheel_plant,
        voltage_sensor=flywheel_plant,
        voltage_compensation=component_mode.use_voltage_compensation,
        use_feedforward=component_mode.use_feedforward,
    )
    return Robot(localizer, default_zones(), flywheel)


def run_session(
    duration: float = 5.0,
    period: float = LOOP_PERIOD,
    forward: float = 20.0,
    strafe: float = 0.0,
    turn: float = 0.5,
    preset_name: str = "close",
    reset_at: Optional[float] = None,
    start_pose: Optional[Pose] = None,
    component_mode: Optional[ComponentMode] = None,
    data_collector: Optional[DataCollector] = None,
) -> Robot:
    """Run a closed-loop session on simulated hardware.

    Args:
        duration: Session length (seconds).
        period: Control cycle period (seconds).
        forward: Chassis forward speed (in/s).
        strafe: Chassis strafe speed (in/s, +left).
        turn: Chassis turn rate (rad/s, counter-clockwise).
        preset_name: Flywheel preset to spin up to.
        reset_at: Time at which to zero the encoders mid-run, optional.
        start_pose: Starting pose (default: config.START_POSE).
        component_mode: Optional corrections to enable.
        data_collector: CSV logger, optional (must already be set up).

    Returns:
        The robot after the final cycle.

    Raises:
        ValueError: If duration or period is not positive.
    """
    if duration <= 0 or period <= 0:
        raise ValueError(f"duration and period must be positive, got {duration}, {period}")

    if start_pose is None:
        start_pose = Pose(*START_POSE)

    chassis = SimulatedChassis(start_pose=start_pose)
    flywheel_plant = SimulatedFlywheel()
    robot = build_robot(chassis, flywheel_plant, component_mode)

    robot.reset_pose(start_pose)
    robot.apply(preset(preset_name))
    chassis.drive(forward, strafe, turn)

    zone_cycles: Counter = Counter()
    at_target_time: Optional[float] = None
    reset_done = False

    steps = int(round(duration / period))
    for step in range(steps + 1):
        timestamp = step * period

        if reset_at is not None and not reset_done and timestamp >= reset_at:
            logging.info(f"{TERM_ORANGE}Zeroing encoders at t={timestamp:.2f}s{TERM_RESET}")
            chassis.reset_encoders()
            reset_done = True

        snapshot = robot.periodic(timestamp)
        zone_cycles[snapshot.zone] += 1
        if at_target_time is None and robot.flywheel.is_running and robot.is_at_target():
            at_target_time = timestamp

        if data_collector is not None:
            data_collector.log_snapshot(snapshot)

        chassis.step(period)
        flywheel_plant.step(period)

    robot.stop()

    estimate = robot.pose()
    truth = chassis.true_pose
    logging.info(f"{TERM_BLUE}Session complete: {steps} cycles over {duration:.1f}s{TERM_RESET}")
    logging.info(
        f"  Estimated pose: ({estimate.x:.2f}, {estimate.y:.2f}, {estimate.heading_degrees:.1f} deg)"
    )
    logging.info(f"  True pose:      ({truth.x:.2f}, {truth.y:.2f}, {truth.heading_degrees:.1f} deg)")
    logging.info(f"  Position error: {estimate.distance_to(truth):.3f} in")
    logging.info(f"  Encoder resets absorbed: {robot.localizer.encoder_resets}")
    logging.info(f"  Cycles per zone: {dict(zone_cycles)}")
    logging.info(f"  Zone for a shot on the move: {robot.shot_zone()}")
    if at_target_time is not None:
        logging.info(f"  Flywheel at target after {at_target_time:.2f}s")
    else:
        logging.warning("Flywheel never reached its target band")

    return robot


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point.

    Returns:
        Process exit code.
    """
    component_mode, remaining = parse_component_flags(argv)

    parser = argparse.ArgumentParser(
        description="Run the control core against simulated hardware and log to CSV"
    )
    parser.add_argument("--duration", type=float, default=5.0, help="Session length (s)")
    parser.add_argument("--period", type=float, default=LOOP_PERIOD, help="Cycle period (s)")
    parser.add_argument("--forward", type=float, default=20.0, help="Forward speed (in/s)")
    parser.add_argument("--strafe", type=float, default=0.0, help="Strafe speed (in/s)")
    parser.add_argument("--turn", type=float, default=0.5, help="Turn rate (rad/s)")
    parser.add_argument(
        "--preset",
        default="close",
        choices=sorted(FLYWHEEL_PRESETS),
        help="Flywheel preset (default: close)",
    )
    parser.add_argument(
        "--reset-at", type=float, default=None, help="Zero the encoders at this time (s)"
    )
    parser.add_argument("--output-dir", default=".", help="Base directory for results/")
    parser.add_argument("--no-log", action="store_true", help="Do not write CSV files")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps"
    )
    args = parser.parse_args(remaining)

    setup_logging(args.verbose)
    logging.info(f"{TERM_BLUE}Component Configuration: {component_mode}{TERM_RESET}")
    logging.debug(f"Component flags: {component_mode.to_dict()}")

    session_kwargs = dict(
        duration=args.duration,
        period=args.period,
        forward=args.forward,
        strafe=args.strafe,
        turn=args.turn,
        preset_name=args.preset,
        reset_at=args.reset_at,
        component_mode=component_mode,
    )

    try:
        if args.no_log:
            run_session(**session_kwargs)
        else:
            with DataCollector(output_dir=args.output_dir) as collector:
                run_session(data_collector=collector, **session_kwargs)
    except ValueError as e:
        logging.error(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
