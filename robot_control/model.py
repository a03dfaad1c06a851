"""
Field-frame data model and planar kinematics helpers.

This module provides the value types shared by every component (pose,
velocity, encoder sample) and the angle arithmetic used by the odometry.

Frames:
    Field frame: fixed origin in a field corner, x/y in inches.
    Robot frame: +x forward, +y to the robot's left.
    Heading: counter-clockwise from field +x, canonical range [0, 2*pi).
"""

import math
from dataclasses import dataclass
from typing import Tuple

TWO_PI = 2.0 * math.pi


def normalize_heading(angle: float) -> float:
    """Wrap an angle into the canonical heading range [0, 2*pi).

    Args:
        angle: Angle in radians, any magnitude.

    Returns:
        Equivalent angle in [0, 2*pi).
    """
    wrapped = math.fmod(angle, TWO_PI)
    if wrapped < 0.0:
        wrapped += TWO_PI
    # fmod of a tiny negative number rounds back up to exactly 2*pi
    if wrapped >= TWO_PI:
        wrapped = 0.0
    return wrapped


def angle_difference(previous: float, current: float) -> float:
    """Shortest signed rotation from ``previous`` to ``current``.

    Both inputs may be in any range (the IMU reports [-pi, pi), the pose
    stores [0, 2*pi)). The result is always in (-pi, pi], so a sensor
    crossing its wrap point registers as a small step:

        >>> round(math.degrees(angle_difference(math.radians(359), math.radians(1))), 6)
        2.0

    Args:
        previous: Earlier angle (radians).
        current: Later angle (radians).

    Returns:
        Signed difference in radians, in (-pi, pi].
    """
    delta = math.remainder(current - previous, TWO_PI)
    if delta <= -math.pi:
        delta += TWO_PI
    return delta


def robot_to_field(forward: float, lateral: float, heading: float) -> Tuple[float, float]:
    """Rotate a robot-centric displacement into the field frame.

    Args:
        forward: Displacement along robot +x (inches).
        lateral: Displacement along robot +y (inches).
        heading: Robot heading the displacement is expressed against (radians).

    Returns:
        (dx, dy) field-frame displacement in inches.
    """
    cos_h = math.cos(heading)
    sin_h = math.sin(heading)
    return (
        forward * cos_h - lateral * sin_h,
        forward * sin_h + lateral * cos_h,
    )


@dataclass(frozen=True)
class Pose:
    """Field pose. Frozen so that readers always get a whole snapshot."""

    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0

    @property
    def heading_degrees(self) -> float:
        return math.degrees(self.heading)

    def distance_to(self, other: "Pose") -> float:
        """Euclidean distance to another pose, ignoring heading."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def normalized(self) -> "Pose":
        """Copy with heading wrapped into [0, 2*pi)."""
        return Pose(self.x, self.y, normalize_heading(self.heading))


@dataclass(frozen=True)
class Velocity:
    """Field-relative velocity.

    Attributes:
        vx: Velocity along field x (in/s)
        vy: Velocity along field y (in/s)
        omega: Angular velocity, counter-clockwise positive (rad/s)
    """

    vx: float = 0.0
    vy: float = 0.0
    omega: float = 0.0

    @property
    def speed(self) -> float:
        return math.hypot(self.vx, self.vy)


@dataclass(frozen=True)
class EncoderSample:
    """Raw tick counters of the three dead-wheel pods."""

    left: int
    right: int
    strafe: int
