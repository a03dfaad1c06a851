"""Hardware boundary for the control core.

The components never look hardware up by name. Whoever builds the robot
(op-mode glue on the real hub, ``simulation.py`` offline, fakes in tests)
constructs these handles and passes them in.

All reads and writes are register accesses: fast and non-blocking.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from .model import EncoderSample


class OdometrySensors(ABC):
    """Three dead-wheel encoders plus an absolute heading source."""

    @abstractmethod
    def read_encoders(self) -> EncoderSample:
        """Current tick counts of the left, right and strafe pods."""

    @abstractmethod
    def read_heading(self) -> float:
        """Absolute IMU heading in radians (any wrap convention)."""


class VoltageSensor(ABC):
    """Battery voltage on the hub."""

    @abstractmethod
    def read_voltage(self) -> float:
        """Supply voltage in volts."""


class VelocityActuator(ABC):
    """A motor (or motor group) with a velocity encoder."""

    @abstractmethod
    def read_velocity(self) -> float:
        """Measured velocity in ticks/s."""

    @abstractmethod
    def set_power(self, power: float) -> None:
        """Write a power command in [-1, 1]."""


class ActuatorGroup(VelocityActuator):
    """Several motors on one shaft, driven with the same power.

    Velocity is measured on the first motor; the others are assumed to be
    mechanically coupled to it.
    """

    def __init__(self, motors: Sequence[VelocityActuator]) -> None:
        if not motors:
            raise ValueError("ActuatorGroup needs at least one motor")
        self.motors: List[VelocityActuator] = list(motors)

    def read_velocity(self) -> float:
        return self.motors[0].read_velocity()

    def set_power(self, power: float) -> None:
        for motor in self.motors:
            motor.set_power(power)
