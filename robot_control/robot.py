"""Robot composition: one fixed control cycle over all components.

Each cycle runs, in order:
1. Pose estimation from the odometry sensors
2. Zone classification of the freshly published pose
3. Flywheel closed-loop update

Callers drive periodic() from a single thread, once per cycle.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from .config import SHOOTER_OFFSET, SHOT_PREDICTION_TIME
from .flywheel import FlywheelCommand, VelocityController
from .localizer import PoseEstimator
from .model import Pose, Velocity
from .zones import NONE_LABEL, ZoneClassifier


@dataclass(frozen=True)
class RobotSnapshot:
    """Everything one cycle produced, captured after all components ran."""

    timestamp: float
    pose: Pose
    velocity: Velocity
    zone: str
    zone_distance: float
    flywheel: Dict[str, float]


class Robot:
    """Owns the three components and runs them in a fixed order.

    Attributes:
        localizer: Pose estimator (odometry + IMU).
        classifier: Zone registry.
        flywheel: Flywheel velocity controller.
        last_snapshot: Result of the most recent periodic(), or None.
    """

    def __init__(
        self,
        localizer: PoseEstimator,
        classifier: ZoneClassifier,
        flywheel: VelocityController,
    ) -> None:
        self.localizer = localizer
        self.classifier = classifier
        self.flywheel = flywheel
        self.last_snapshot: Optional[RobotSnapshot] = None
        self.t_prev: Optional[float] = None

    def periodic(self, timestamp: float) -> RobotSnapshot:
        """Run one control cycle.

        Args:
            timestamp: Monotonic time of this cycle (seconds).

        Returns:
            Snapshot of pose, zone and flywheel state for this cycle.
        """
        dt = 0.0 if self.t_prev is None else timestamp - self.t_prev
        self.t_prev = timestamp

        self.localizer.periodic(timestamp)

        # Read the pose once so zone and distance use the same snapshot
        pose = self.localizer.pose
        zone = self.classifier.classify(pose)
        zone_distance = 0.0 if zone != NONE_LABEL else self.classifier.distance_to_nearest_zone(pose)

        self.flywheel.periodic(dt)

        self.last_snapshot = RobotSnapshot(
            timestamp=timestamp,
            pose=pose,
            velocity=self.localizer.velocity,
            zone=zone,
            zone_distance=zone_distance,
            flywheel=self.flywheel.get_diagnostics(),
        )
        return self.last_snapshot

    # ==================== POSE ====================

    def pose(self) -> Pose:
        return self.localizer.pose

    def velocity(self) -> Velocity:
        return self.localizer.velocity

    def reset_pose(self, pose: Pose) -> None:
        self.localizer.reset_pose(pose)

    # ==================== ZONES ====================

    def classify(self, pose: Optional[Pose] = None) -> str:
        """Zone label of ``pose`` (default: current pose)."""
        return self.classifier.classify(pose or self.localizer.pose)

    def distance_to_nearest_zone(self, pose: Optional[Pose] = None) -> float:
        """Distance from ``pose`` (default: current pose) to the nearest zone."""
        return self.classifier.distance_to_nearest_zone(pose or self.localizer.pose)

    def shot_pose(self, lookahead: float = SHOT_PREDICTION_TIME) -> Pose:
        """Turret pose extrapolated ``lookahead`` seconds along the current velocity."""
        return self.localizer.predicted_pose(lookahead, offset=SHOOTER_OFFSET)

    def shot_zone(self, lookahead: float = SHOT_PREDICTION_TIME) -> str:
        """Zone the ball will leave from when shooting on the move."""
        return self.classifier.classify(self.shot_pose(lookahead))

    # ==================== FLYWHEEL ====================

    def set_target(self, velocity: float) -> None:
        self.flywheel.set_target(velocity)

    def stop(self) -> None:
        self.flywheel.stop()

    def is_at_target(self) -> bool:
        return self.flywheel.is_at_target()

    def apply(self, command: FlywheelCommand) -> None:
        self.flywheel.apply(command)
