"""Localization module for robot pose estimation.

This module provides field pose estimation by fusing dead-wheel odometry
with an absolute IMU heading:
- Two forward pods and one strafe pod give robot-centric translation
- The IMU gives the heading change (immune to wheel scrub)
- Translation is rotated into the field frame with the pre-update heading
- Field velocity is low-pass filtered to hide encoder quantization
"""

import logging
import math
from typing import Dict, Optional

import numpy as np

from .config import (
    LEFT_POD_Y,
    ODOMETRY_CORRECT_ROTATION,
    ODOMETRY_GUARD_RESETS,
    ODOMETRY_MAX_TICK_DELTA,
    ODOMETRY_VELOCITY_ALPHA,
    RIGHT_POD_Y,
    STRAFE_POD_X,
    TICKS_PER_INCH,
)
from .hardware import OdometrySensors
from .model import (
    EncoderSample,
    Pose,
    Velocity,
    angle_difference,
    normalize_heading,
    robot_to_field,
)


class PoseEstimator:
    """Three-wheel odometry pose estimator with IMU heading.

    State:
        - pose: Field pose (x, y in inches, heading in [0, 2*pi))
        - velocity: Smoothed field velocity (vx, vy in in/s, omega in rad/s)
        - baseline: Encoder ticks and IMU heading from the previous cycle

    Sensors:
        - Left/right forward pods at lateral offsets left_pod_y/right_pod_y
        - Strafe pod at forward offset strafe_pod_x
        - IMU absolute heading (own wrap convention, only deltas are used)

    Exactly one caller may drive update()/periodic() per cycle. The pose is
    published by a single attribute assignment after all three fields are
    computed, so readers never see a half-updated pose.
    """

    def __init__(
        self,
        sensors: Optional[OdometrySensors] = None,
        ticks_per_inch: float = TICKS_PER_INCH,
        left_pod_y: float = LEFT_POD_Y,
        right_pod_y: float = RIGHT_POD_Y,
        strafe_pod_x: float = STRAFE_POD_X,
        correct_rotation: bool = ODOMETRY_CORRECT_ROTATION,
        velocity_alpha: float = ODOMETRY_VELOCITY_ALPHA,
        max_tick_delta: float = ODOMETRY_MAX_TICK_DELTA,
        guard_encoder_resets: bool = ODOMETRY_GUARD_RESETS,
        start_pose: Optional[Pose] = None,
    ):
        """Initialize the pose estimator.

        Args:
            sensors: Hardware handle used by periodic() and reset_pose().
                May be None when samples are always passed to update().
            ticks_per_inch: Encoder calibration (ticks per inch of travel).
            left_pod_y: Lateral offset of the left forward pod (inches, +left).
            right_pod_y: Lateral offset of the right forward pod (inches, +left).
            strafe_pod_x: Forward offset of the strafe pod (inches, +forward).
            correct_rotation: Remove rotation-induced pod travel using the
                pod offsets and the heading delta.
            velocity_alpha: Smoothing factor in [0, 1] (weight of the new sample).
            max_tick_delta: Largest plausible per-cycle tick delta on any pod.
            guard_encoder_resets: If True, larger deltas are treated as a
                counter reset instead of motion.
            start_pose: Initial pose. Default: field origin, heading 0.

        Raises:
            ValueError: If a calibration value is out of range.
        """
        if ticks_per_inch <= 0:
            raise ValueError(f"ticks_per_inch must be positive, got {ticks_per_inch}")
        if not 0.0 <= velocity_alpha <= 1.0:
            raise ValueError(f"velocity_alpha must be in [0, 1], got {velocity_alpha}")
        if max_tick_delta <= 0:
            raise ValueError(f"max_tick_delta must be positive, got {max_tick_delta}")

        self.sensors = sensors

        # Calibration
        self.ticks_per_inch = ticks_per_inch
        self.left_pod_y = left_pod_y
        self.right_pod_y = right_pod_y
        self.strafe_pod_x = strafe_pod_x
        self.correct_rotation = correct_rotation
        self.velocity_alpha = velocity_alpha
        self.max_tick_delta = max_tick_delta
        self.guard_encoder_resets = guard_encoder_resets

        # Published state
        self._pose = (start_pose or Pose()).normalized()
        self._velocity = Velocity()

        # Baseline readings from the previous cycle (None = take on next update)
        self.prev_ticks: Optional[np.ndarray] = None
        self.prev_heading: Optional[float] = None
        self.t_prev: Optional[float] = None

        # Diagnostics
        self.encoder_resets = 0
        self.velocity_skips = 0
        self.last_heading_delta = 0.0
        self.last_forward = 0.0
        self.last_lateral = 0.0

    @property
    def pose(self) -> Pose:
        """Latest published pose (immutable snapshot)."""
        return self._pose

    @property
    def velocity(self) -> Velocity:
        """Latest smoothed field velocity (immutable snapshot)."""
        return self._velocity

    def update(self, encoders: EncoderSample, heading: float, dt: float) -> None:
        """Advance the pose by one cycle of sensor readings.

        Args:
            encoders: Current raw tick counters.
            heading: Current absolute IMU heading (radians).
            dt: Time since the previous update (seconds). Values <= 0 skip
                the velocity recompute for this cycle.
        """
        ticks = np.array([encoders.left, encoders.right, encoders.strafe], dtype=float)

        if not (np.all(np.isfinite(ticks)) and math.isfinite(heading)):
            # Disconnected sensor: drop the cycle and re-baseline on the next good sample
            self.encoder_resets += 1
            self.velocity_skips += 1
            logging.warning(
                f"Non-finite odometry reading (ticks {ticks.tolist()}, heading {heading}), "
                f"dropping this cycle"
            )
            self.prev_ticks = None
            self.prev_heading = None
            return

        if self.prev_ticks is None or self.prev_heading is None:
            # First sample after construction or reset: baseline only
            self.prev_ticks = ticks
            self.prev_heading = heading
            return

        tick_deltas = ticks - self.prev_ticks
        d_theta = angle_difference(self.prev_heading, heading)

        encoder_reset = self.guard_encoder_resets and bool(
            np.any(np.abs(tick_deltas) > self.max_tick_delta)
        )
        if encoder_reset:
            self.encoder_resets += 1
            logging.warning(
                f"Encoder reset detected: tick deltas {tick_deltas.astype(int).tolist()} "
                f"exceed {self.max_tick_delta}, dropping translation for this cycle"
            )
            forward = 0.0
            lateral = 0.0
        else:
            left, right, strafe = (float(v) for v in tick_deltas / self.ticks_per_inch)
            forward = (left + right) / 2.0
            lateral = strafe
            if self.correct_rotation:
                # Pods off the centre of rotation roll while turning in place
                forward += 0.5 * (self.left_pod_y + self.right_pod_y) * d_theta
                lateral -= self.strafe_pod_x * d_theta

        prev_pose = self._pose
        dx, dy = robot_to_field(forward, lateral, prev_pose.heading)
        self._pose = Pose(
            prev_pose.x + dx,
            prev_pose.y + dy,
            normalize_heading(prev_pose.heading + d_theta),
        )

        if dt > 0 and not encoder_reset:
            a = self.velocity_alpha
            old = self._velocity
            self._velocity = Velocity(
                a * (dx / dt) + (1.0 - a) * old.vx,
                a * (dy / dt) + (1.0 - a) * old.vy,
                a * (d_theta / dt) + (1.0 - a) * old.omega,
            )
        else:
            self.velocity_skips += 1
            if dt <= 0:
                logging.debug(f"Non-positive dt ({dt}), keeping last velocity estimate")

        self.last_heading_delta = d_theta
        self.last_forward = forward
        self.last_lateral = lateral
        self.prev_ticks = ticks
        self.prev_heading = heading

    def periodic(self, timestamp: float) -> None:
        """Read the sensors handle and run one update.

        Args:
            timestamp: Monotonic time of this cycle (seconds).

        Raises:
            RuntimeError: If the estimator was built without sensors.
        """
        if self.sensors is None:
            raise RuntimeError("PoseEstimator.periodic() needs a sensors handle")

        dt = 0.0 if self.t_prev is None else timestamp - self.t_prev
        self.t_prev = timestamp
        self.update(self.sensors.read_encoders(), self.sensors.read_heading(), dt)

    def reset_pose(
        self,
        pose: Pose,
        encoders: Optional[EncoderSample] = None,
        heading: Optional[float] = None,
    ) -> None:
        """Relocalize to a known pose and re-baseline the sensors.

        The next update produces a zero delta. Readings are taken from the
        arguments if given, else from the sensors handle. With neither, or
        with a non-finite reading, the next update becomes the baseline.

        Args:
            pose: New field pose.
            encoders: Current encoder readings, optional.
            heading: Current IMU heading, optional.
        """
        if encoders is None and self.sensors is not None:
            encoders = self.sensors.read_encoders()
        if heading is None and self.sensors is not None:
            heading = self.sensors.read_heading()

        ticks = None
        if encoders is not None:
            ticks = np.array([encoders.left, encoders.right, encoders.strafe], dtype=float)

        if ticks is None or heading is None or not (
            np.all(np.isfinite(ticks)) and math.isfinite(heading)
        ):
            self.prev_ticks = None
            self.prev_heading = None
        else:
            self.prev_ticks = ticks
            self.prev_heading = heading

        self._pose = pose.normalized()
        self._velocity = Velocity()
        logging.info(
            f"Pose reset to ({self._pose.x:.1f}, {self._pose.y:.1f}, "
            f"{self._pose.heading_degrees:.1f} deg)"
        )

    def shooter_pose(self, offset: float) -> Pose:
        """Pose of a turret mounted ``offset`` inches forward of the centre."""
        pose = self._pose
        return Pose(
            pose.x + offset * math.cos(pose.heading),
            pose.y + offset * math.sin(pose.heading),
            pose.heading,
        )

    def predicted_pose(self, lookahead: float, offset: float = 0.0) -> Pose:
        """Extrapolate the shooter pose ``lookahead`` seconds ahead.

        Assumes constant field velocity over the lookahead; used to lead a
        shot taken while driving.
        """
        base = self.shooter_pose(offset)
        v = self._velocity
        return Pose(
            base.x + v.vx * lookahead,
            base.y + v.vy * lookahead,
            normalize_heading(base.heading + v.omega * lookahead),
        )

    def get_state(self) -> Dict[str, float]:
        """Get current state estimate.

        Returns:
            Dictionary containing:
                - x, y: Position (inches)
                - theta: Heading (radians, [0, 2*pi))
                - v_x, v_y: Field velocity (in/s)
                - omega: Angular velocity (rad/s)
        """
        pose = self._pose
        vel = self._velocity
        return {
            "x": pose.x,
            "y": pose.y,
            "theta": pose.heading,
            "v_x": vel.vx,
            "v_y": vel.vy,
            "omega": vel.omega,
        }

    def get_diagnostics(self) -> Dict[str, float]:
        """Get odometry diagnostics for tuning and monitoring.

        Returns:
            Dictionary containing:
                - forward, lateral: Last robot-centric displacement (inches)
                - heading_delta: Last heading change (radians)
                - speed: Smoothed linear speed (in/s)
                - encoder_resets: Total counter resets absorbed
                - velocity_skips: Cycles where velocity was not recomputed
        """
        return {
            "forward": self.last_forward,
            "lateral": self.last_lateral,
            "heading_delta": self.last_heading_delta,
            "speed": self._velocity.speed,
            "encoder_resets": self.encoder_resets,
            "velocity_skips": self.velocity_skips,
        }
