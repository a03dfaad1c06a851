"""Flywheel velocity controller with battery voltage compensation.

This module regulates a spinning actuator to a target angular velocity:
- Feedforward on the target (kV, kA, kS) does most of the work
- PID feedback on velocity error corrects what feedforward misses
- The command is scaled by nominal/filtered battery voltage so the wheel
  holds speed as the battery sags
- The final power is clamped below full scale
"""

import enum
import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Union

from .config import (
    FLYWHEEL_INTEGRAL_LIMIT,
    FLYWHEEL_KA,
    FLYWHEEL_KD,
    FLYWHEEL_KI,
    FLYWHEEL_KP,
    FLYWHEEL_KS,
    FLYWHEEL_KV,
    FLYWHEEL_MAX_POWER,
    FLYWHEEL_PRESETS,
    FLYWHEEL_TOLERANCE_ABOVE,
    FLYWHEEL_TOLERANCE_BELOW,
    MIN_VOLTAGE,
    NOMINAL_VOLTAGE,
    VOLTAGE_COMPENSATION,
    VOLTAGE_FILTER_ALPHA,
)
from .hardware import VelocityActuator, VoltageSensor


def _sign(value: float) -> float:
    if value > 0:
        return 1.0
    if value < 0:
        return -1.0
    return 0.0


class ControllerState(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(frozen=True)
class Stop:
    """Cut power immediately."""


@dataclass(frozen=True)
class SetVelocity:
    """Run closed loop at ``velocity`` ticks/s."""

    velocity: float
    acceleration: float = 0.0


@dataclass(frozen=True)
class SetCompensation:
    """Turn voltage compensation on or off."""

    enabled: bool


FlywheelCommand = Union[Stop, SetVelocity, SetCompensation]


def preset(name: str) -> SetVelocity:
    """Command for a named target from config.FLYWHEEL_PRESETS.

    Raises:
        KeyError: If the preset does not exist.
    """
    try:
        return SetVelocity(FLYWHEEL_PRESETS[name])
    except KeyError:
        raise KeyError(
            f"Unknown flywheel preset {name!r}, expected one of {sorted(FLYWHEEL_PRESETS)}"
        ) from None


class VelocityController:
    """PID + feedforward velocity controller with voltage compensation.

    Control law (RUNNING):
        base = kV * v_target + kA * a_target + kS * sign(v_target)
               + kP * e + kI * integral(e) + kD * de/dt
        power = clamp(base * V_nominal / V_filtered, -max_power, max_power)

    In STOPPED the actuator is held at zero power and the controller is
    bypassed. The battery filter runs in both states so it is settled by
    the time the wheel is spun up.
    """

    def __init__(
        self,
        actuator: VelocityActuator,
        voltage_sensor: VoltageSensor,
        kv: float = FLYWHEEL_KV,
        ka: float = FLYWHEEL_KA,
        ks: float = FLYWHEEL_KS,
        kp: float = FLYWHEEL_KP,
        ki: float = FLYWHEEL_KI,
        kd: float = FLYWHEEL_KD,
        integral_limit: float = FLYWHEEL_INTEGRAL_LIMIT,
        nominal_voltage: float = NOMINAL_VOLTAGE,
        min_voltage: float = MIN_VOLTAGE,
        voltage_alpha: float = VOLTAGE_FILTER_ALPHA,
        max_power: float = FLYWHEEL_MAX_POWER,
        tolerance_below: float = FLYWHEEL_TOLERANCE_BELOW,
        tolerance_above: float = FLYWHEEL_TOLERANCE_ABOVE,
        voltage_compensation: bool = VOLTAGE_COMPENSATION,
        use_feedforward: bool = True,
    ):
        """Initialize the flywheel controller.

        Args:
            actuator: Motor (or ActuatorGroup) driving the flywheel.
            voltage_sensor: Battery voltage source.
            kv: Velocity feedforward gain (power per tick/s).
            ka: Acceleration feedforward gain (power per tick/s^2).
            ks: Static feedforward (power).
            kp: Proportional gain on velocity error.
            ki: Integral gain on velocity error.
            kd: Derivative gain on velocity error.
            integral_limit: Anti-windup clamp on the integrated error.
            nominal_voltage: Voltage the gains were tuned at (volts).
            min_voltage: Floor applied to raw and filtered voltage (volts).
            voltage_alpha: Battery low-pass coefficient in (0, 1].
            max_power: Output clamp in (0, 1).
            tolerance_below: At-target band below the target (ticks/s).
            tolerance_above: At-target band above the target (ticks/s).
            voltage_compensation: Start with compensation enabled.
            use_feedforward: If False, the feedforward terms are dropped.

        Raises:
            ValueError: If a limit or filter coefficient is out of range.
        """
        if not 0.0 < max_power < 1.0:
            raise ValueError(f"max_power must be in (0, 1), got {max_power}")
        if min_voltage <= 0 or nominal_voltage <= 0:
            raise ValueError(
                f"Voltages must be positive, got nominal={nominal_voltage} min={min_voltage}"
            )
        if not 0.0 < voltage_alpha <= 1.0:
            raise ValueError(f"voltage_alpha must be in (0, 1], got {voltage_alpha}")
        if tolerance_below < 0 or tolerance_above < 0:
            raise ValueError(
                f"Tolerances must be non-negative, got (-{tolerance_below}, +{tolerance_above})"
            )

        self.actuator = actuator
        self.voltage_sensor = voltage_sensor

        # Feedforward gains
        self.kv = kv
        self.ka = ka
        self.ks = ks
        self.use_feedforward = use_feedforward

        # Feedback gains
        self.kp = kp
        self.ki = ki
        self.kd = kd
        self.integral_limit = integral_limit

        # Voltage compensation
        self.nominal_voltage = nominal_voltage
        self.min_voltage = min_voltage
        self.voltage_alpha = voltage_alpha
        self.voltage_compensation = voltage_compensation
        self.filtered_voltage: float = max(nominal_voltage, min_voltage)

        self.max_power = max_power
        self.tolerance_below = tolerance_below
        self.tolerance_above = tolerance_above

        # Goal
        self.state = ControllerState.STOPPED
        self.target_velocity: float = 0.0
        self.target_acceleration: float = 0.0

        # PID state
        self.integral: float = 0.0
        self.prev_error: Optional[float] = None

        # Observability
        self.measured_velocity: float = 0.0
        self.voltage_ratio: float = 1.0
        self.base_power: float = 0.0
        self.power: float = 0.0

    @property
    def is_running(self) -> bool:
        return self.state is ControllerState.RUNNING

    def set_target(self, velocity: float, acceleration: float = 0.0) -> None:
        """Run closed loop towards ``velocity`` ticks/s."""
        if not self.is_running:
            self.reset()
        self.state = ControllerState.RUNNING
        self.target_velocity = velocity
        self.target_acceleration = acceleration

    def stop(self) -> None:
        """Stop and write zero power immediately, bypassing the controller."""
        self.state = ControllerState.STOPPED
        self.target_velocity = 0.0
        self.target_acceleration = 0.0
        self.reset()
        self.base_power = 0.0
        self.power = 0.0
        self.actuator.set_power(0.0)

    def set_voltage_compensation(self, enabled: bool) -> None:
        self.voltage_compensation = enabled

    def apply(self, command: FlywheelCommand) -> None:
        """Apply a command through the public mutators.

        Raises:
            TypeError: If ``command`` is not a known flywheel command.
        """
        if isinstance(command, Stop):
            self.stop()
        elif isinstance(command, SetVelocity):
            self.set_target(command.velocity, command.acceleration)
        elif isinstance(command, SetCompensation):
            self.set_voltage_compensation(command.enabled)
        else:
            raise TypeError(f"Unsupported flywheel command: {command!r}")

    def update_voltage(self) -> float:
        """Read the battery, clamp it to the floor and low-pass it.

        Returns:
            Filtered voltage (volts), never below min_voltage.
        """
        raw = self.voltage_sensor.read_voltage()
        if not math.isfinite(raw) or raw < self.min_voltage:
            logging.debug(f"Battery reading {raw} below floor, using {self.min_voltage} V")
            raw = self.min_voltage
        self.filtered_voltage += self.voltage_alpha * (raw - self.filtered_voltage)
        self.filtered_voltage = max(self.filtered_voltage, self.min_voltage)
        return self.filtered_voltage

    def compute_power(self, measured: float, dt: float) -> float:
        """Feedforward + PID command before voltage compensation.

        Args:
            measured: Current flywheel velocity (ticks/s).
            dt: Time since the previous control update (seconds).

        Returns:
            Base power command (unclamped).
        """
        error = self.target_velocity - measured

        if dt > 0:
            # No derivative on the first cycle after a reset
            error_derivative = 0.0 if self.prev_error is None else (error - self.prev_error) / dt
            self.integral += error * dt
            self.integral = max(-self.integral_limit, min(self.integral_limit, self.integral))
        else:
            error_derivative = 0.0
        self.prev_error = error

        feedback = self.kp * error + self.ki * self.integral + self.kd * error_derivative

        feedforward = 0.0
        if self.use_feedforward:
            feedforward = (
                self.kv * self.target_velocity
                + self.ka * self.target_acceleration
                + self.ks * _sign(self.target_velocity)
            )

        return feedforward + feedback

    def periodic(self, dt: float) -> float:
        """Run one control cycle and write the actuator.

        Args:
            dt: Time since the previous cycle (seconds).

        Returns:
            Power written to the actuator.
        """
        voltage = self.update_voltage()
        self.voltage_ratio = self.nominal_voltage / voltage
        measured = self.actuator.read_velocity()
        if math.isfinite(measured):
            self.measured_velocity = measured
        else:
            logging.warning(
                f"Flywheel velocity reading {measured} is not finite, "
                f"holding last value {self.measured_velocity}"
            )

        if not self.is_running:
            self.base_power = 0.0
            self.power = 0.0
            self.actuator.set_power(0.0)
            return 0.0

        self.base_power = self.compute_power(self.measured_velocity, dt)
        command = self.base_power
        if self.voltage_compensation:
            command *= self.voltage_ratio

        self.power = max(-self.max_power, min(self.max_power, command))
        self.actuator.set_power(self.power)
        return self.power

    def is_at_target(self) -> bool:
        """True when the live measured velocity is inside the asymmetric tolerance band."""
        measured = self.actuator.read_velocity()
        return (
            self.target_velocity - self.tolerance_below
            < measured
            < self.target_velocity + self.tolerance_above
        )

    def reset(self) -> None:
        """Clear integral and derivative state."""
        self.integral = 0.0
        self.prev_error = None

    def get_diagnostics(self) -> Dict[str, float]:
        """Get diagnostic information for logging and debugging.

        Returns:
            Dictionary containing target/measured velocity, error, filtered
            voltage, compensation ratio, base and final power, integral and
            running flag.
        """
        return {
            "target_velocity": self.target_velocity,
            "measured_velocity": self.measured_velocity,
            "error": self.target_velocity - self.measured_velocity,
            "filtered_voltage": self.filtered_voltage,
            "voltage_ratio": self.voltage_ratio,
            "base_power": self.base_power,
            "power": self.power,
            "integral": self.integral,
            "running": float(self.is_running),
            "at_target": float(self.is_at_target()),
        }
