"""Simulated hardware for running the control core off the robot.

Provides drop-in implementations of the hardware ABCs:
- SimulatedChassis: holonomic chassis with three dead-wheel pods and an IMU
  that wraps in [-pi, pi) like the real one
- SimulatedFlywheel: first-order flywheel plant on a battery that sags
  under load

The plant is stepped explicitly with step(dt) so runs are deterministic.
"""

import math
from typing import Optional

import numpy as np

from .config import (
    LEFT_POD_Y,
    NOMINAL_VOLTAGE,
    RIGHT_POD_Y,
    SIM_BATTERY_SAG,
    SIM_BATTERY_VOLTAGE,
    SIM_ENCODER_NOISE,
    SIM_FLYWHEEL_FREE_SPEED,
    SIM_FLYWHEEL_TIME_CONSTANT,
    SIM_HEADING_NOISE,
    SIM_SEED,
    STRAFE_POD_X,
    TICKS_PER_INCH,
)
from .hardware import OdometrySensors, VelocityActuator, VoltageSensor
from .model import EncoderSample, Pose, robot_to_field


class SimulatedChassis(OdometrySensors):
    """Holonomic chassis driven by a robot-frame twist.

    Pod readings follow rigid-body kinematics: a forward pod at lateral
    offset y reads forward - y * dtheta, the strafe pod at forward offset x
    reads lateral + x * dtheta.
    """

    def __init__(
        self,
        start_pose: Optional[Pose] = None,
        ticks_per_inch: float = TICKS_PER_INCH,
        left_pod_y: float = LEFT_POD_Y,
        right_pod_y: float = RIGHT_POD_Y,
        strafe_pod_x: float = STRAFE_POD_X,
        encoder_noise: float = SIM_ENCODER_NOISE,
        heading_noise: float = SIM_HEADING_NOISE,
        imu_offset: float = 0.0,
        seed: int = SIM_SEED,
    ):
        pose = start_pose or Pose()
        self.x = pose.x
        self.y = pose.y
        self.theta = pose.heading

        self.ticks_per_inch = ticks_per_inch
        self.pod_offsets = np.array([left_pod_y, right_pod_y, strafe_pod_x])
        self.encoder_noise = encoder_noise
        self.heading_noise = heading_noise
        self.imu_offset = imu_offset
        self.rng = np.random.default_rng(seed)

        # Robot-frame twist command (in/s, in/s, rad/s)
        self.forward_speed = 0.0
        self.lateral_speed = 0.0
        self.turn_rate = 0.0

        # Pod travel in inches (exact); ticks are derived on read
        self.pod_travel = np.zeros(3)

    @property
    def true_pose(self) -> Pose:
        return Pose(self.x, self.y, self.theta).normalized()

    def drive(self, forward: float, lateral: float = 0.0, turn: float = 0.0) -> None:
        """Set the robot-frame twist the chassis follows."""
        self.forward_speed = forward
        self.lateral_speed = lateral
        self.turn_rate = turn

    def step(self, dt: float) -> None:
        """Advance the chassis by dt seconds (exact for a constant twist)."""
        if dt <= 0:
            return

        d_theta = self.turn_rate * dt
        forward = self.forward_speed * dt
        lateral = self.lateral_speed * dt

        # Integrate at the midpoint heading for an arc instead of a chord
        dx, dy = robot_to_field(forward, lateral, self.theta + 0.5 * d_theta)
        self.x += dx
        self.y += dy
        self.theta += d_theta

        left_y, right_y, strafe_x = self.pod_offsets
        self.pod_travel += np.array(
            [
                forward - left_y * d_theta,
                forward - right_y * d_theta,
                lateral + strafe_x * d_theta,
            ]
        )

    def reset_encoders(self) -> None:
        """Zero the pod counters, as a hub re-init would."""
        self.pod_travel = np.zeros(3)

    def read_encoders(self) -> EncoderSample:
        ticks = self.pod_travel * self.ticks_per_inch
        if self.encoder_noise > 0:
            ticks = ticks + self.rng.normal(0.0, self.encoder_noise, size=3)
        left, right, strafe = np.round(ticks).astype(int).tolist()
        return EncoderSample(left, right, strafe)

    def read_heading(self) -> float:
        heading = self.theta + self.imu_offset
        if self.heading_noise > 0:
            heading += self.rng.normal(0.0, self.heading_noise)
        # IMU reports [-pi, pi)
        return (heading + math.pi) % (2.0 * math.pi) - math.pi


class SimulatedFlywheel(VelocityActuator, VoltageSensor):
    """First-order flywheel on a sagging battery.

    Steady-state speed = free_speed * power * (V_battery / V_nominal); the
    wheel approaches it with time constant tau. Battery voltage drops
    linearly with |power|.
    """

    def __init__(
        self,
        free_speed: float = SIM_FLYWHEEL_FREE_SPEED,
        time_constant: float = SIM_FLYWHEEL_TIME_CONSTANT,
        battery_voltage: float = SIM_BATTERY_VOLTAGE,
        battery_sag: float = SIM_BATTERY_SAG,
        nominal_voltage: float = NOMINAL_VOLTAGE,
    ):
        self.free_speed = free_speed
        self.time_constant = time_constant
        self.battery_voltage = battery_voltage
        self.battery_sag = battery_sag
        self.nominal_voltage = nominal_voltage

        self.velocity = 0.0
        self.power = 0.0

    @property
    def voltage(self) -> float:
        return self.battery_voltage - self.battery_sag * abs(self.power)

    def step(self, dt: float) -> None:
        if dt <= 0:
            return
        steady_state = self.free_speed * self.power * (self.voltage / self.nominal_voltage)
        blend = 1.0 - math.exp(-dt / self.time_constant)
        self.velocity += blend * (steady_state - self.velocity)

    def read_velocity(self) -> float:
        return self.velocity

    def set_power(self, power: float) -> None:
        self.power = max(-1.0, min(1.0, power))

    def read_voltage(self) -> float:
        return self.voltage
