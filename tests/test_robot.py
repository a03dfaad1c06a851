import math

import pytest

from robot_control.component_modes import ComponentMode
from robot_control.config import SHOOTER_OFFSET
from robot_control.flywheel import SetVelocity, VelocityController
from robot_control.localizer import PoseEstimator
from robot_control.model import Pose
from robot_control.robot import Robot
from robot_control.runner import run_session
from robot_control.zones import NONE_LABEL, default_zones


@pytest.fixture
def robot(sensors, actuator, battery):
    localizer = PoseEstimator(sensors=sensors, ticks_per_inch=100.0, velocity_alpha=1.0)
    flywheel = VelocityController(actuator, battery)
    return Robot(localizer, default_zones(), flywheel)


def test_cycle_classifies_the_fresh_pose(robot, sensors):
    robot.reset_pose(Pose(20.0, 12.0, 0.0))
    robot.periodic(0.0)

    # 10 in forward crosses from CLOSE into MID within one cycle
    sensors.set(1000, 1000, 0)
    snapshot = robot.periodic(0.02)

    assert snapshot.pose.x == pytest.approx(30.0)
    assert snapshot.zone == "MID"
    assert snapshot.zone == robot.classify(snapshot.pose)
    assert snapshot.zone_distance == 0.0
    assert robot.last_snapshot is snapshot


def test_snapshot_outside_all_zones(robot):
    robot.reset_pose(Pose(100.0, 36.0, 0.0))
    snapshot = robot.periodic(0.0)

    assert snapshot.zone == NONE_LABEL
    assert snapshot.zone_distance == pytest.approx(28.0)
    assert robot.distance_to_nearest_zone() == pytest.approx(28.0)


def test_flywheel_runs_in_the_same_cycle(robot, actuator):
    robot.apply(SetVelocity(1000.0))
    snapshot = robot.periodic(0.0)

    assert actuator.last_power > 0
    assert snapshot.flywheel["target_velocity"] == 1000.0
    assert not robot.is_at_target()

    robot.stop()
    assert actuator.last_power == 0.0


def test_shot_pose_leads_the_robot(robot, sensors):
    robot.reset_pose(Pose(10.0, 10.0, 0.0))
    robot.periodic(0.0)
    sensors.set(100, 100, 0)
    robot.periodic(0.1)

    # 1 in forward in 0.1 s is 10 in/s along field +x
    shot = robot.shot_pose(0.5)
    assert shot.x == pytest.approx(11.0 + SHOOTER_OFFSET + 5.0)
    assert shot.y == pytest.approx(10.0)
    assert robot.shot_zone(0.5) == "CLOSE"


def test_session_tracks_truth_and_spins_up():
    robot = run_session(duration=3.0, forward=20.0, strafe=4.0, turn=0.5, preset_name="close")

    truth = robot.localizer.sensors.true_pose
    assert robot.pose().distance_to(truth) < 1.0
    assert robot.last_snapshot.flywheel["at_target"] == 1.0
    assert not robot.flywheel.is_running


def test_session_absorbs_mid_run_encoder_reset():
    robot = run_session(duration=5.0, turn=0.5, reset_at=4.0)

    truth = robot.localizer.sensors.true_pose
    assert robot.localizer.encoder_resets == 1
    # Only the motion of the reset cycle is lost
    assert robot.pose().distance_to(truth) < 2.0


def test_session_without_reset_guard_jumps():
    robot = run_session(
        duration=5.0, turn=0.5, reset_at=4.0, component_mode=ComponentMode(use_reset_guard=False)
    )

    truth = robot.localizer.sensors.true_pose
    assert robot.localizer.encoder_resets == 0
    assert robot.pose().distance_to(truth) > 20.0


@pytest.mark.parametrize("kwargs", [{"duration": 0.0}, {"period": -0.02}])
def test_session_rejects_bad_timing(kwargs):
    with pytest.raises(ValueError):
        run_session(**kwargs)


def test_session_heading_matches_truth():
    robot = run_session(duration=2.0, forward=0.0, turn=-1.0)
    truth = robot.localizer.sensors.true_pose
    assert math.cos(robot.pose().heading - truth.heading) == pytest.approx(1.0)
