"""Shared fakes for the control core tests."""

import matplotlib
import pytest

matplotlib.use("Agg")

from robot_control.hardware import OdometrySensors, VelocityActuator, VoltageSensor  # noqa: E402
from robot_control.model import EncoderSample  # noqa: E402


class FakeSensors(OdometrySensors):
    """Odometry source whose readings are set directly by the test."""

    def __init__(self, left=0, right=0, strafe=0, heading=0.0):
        self.encoders = EncoderSample(left, right, strafe)
        self.heading = heading

    def set(self, left, right, strafe, heading=None):
        self.encoders = EncoderSample(left, right, strafe)
        if heading is not None:
            self.heading = heading

    def read_encoders(self):
        return self.encoders

    def read_heading(self):
        return self.heading


class FakeActuator(VelocityActuator):
    """Records every power write; velocity is set by the test."""

    def __init__(self, velocity=0.0):
        self.velocity = velocity
        self.powers = []

    @property
    def last_power(self):
        return self.powers[-1] if self.powers else None

    def read_velocity(self):
        return self.velocity

    def set_power(self, power):
        self.powers.append(power)


class FakeBattery(VoltageSensor):
    def __init__(self, voltage=12.0):
        self.voltage = voltage

    def read_voltage(self):
        return self.voltage


@pytest.fixture
def sensors():
    return FakeSensors()


@pytest.fixture
def actuator():
    return FakeActuator()


@pytest.fixture
def battery():
    return FakeBattery()


@pytest.fixture
def unit_square():
    return [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]


@pytest.fixture
def make_actuator():
    return FakeActuator
