import math

import pytest

from robot_control.localizer import PoseEstimator
from robot_control.model import EncoderSample, Pose
from robot_control.simulation import SimulatedChassis


def make_estimator(**kwargs):
    params = dict(
        ticks_per_inch=100.0,
        left_pod_y=6.0,
        right_pod_y=-6.0,
        strafe_pod_x=0.0,
        velocity_alpha=1.0,
    )
    params.update(kwargs)
    return PoseEstimator(**params)


def test_first_update_only_sets_baseline():
    estimator = make_estimator()
    estimator.update(EncoderSample(5000, 5000, 5000), 1.0, 0.02)

    assert estimator.pose == Pose()
    assert estimator.velocity.speed == 0.0


def test_straight_forward_motion():
    estimator = make_estimator()
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    estimator.update(EncoderSample(1000, 1000, 0), 0.0, 0.1)

    assert estimator.pose.x == pytest.approx(10.0)
    assert estimator.pose.y == pytest.approx(0.0)
    assert estimator.pose.heading == pytest.approx(0.0)
    assert estimator.velocity.vx == pytest.approx(100.0)
    assert estimator.velocity.vy == pytest.approx(0.0)


def test_motion_is_rotated_into_field_frame():
    estimator = make_estimator(start_pose=Pose(0.0, 0.0, math.pi / 2))
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    estimator.update(EncoderSample(1000, 1000, 500), 0.0, 0.1)

    # 10 in forward is field +y, 5 in left is field -x
    assert estimator.pose.x == pytest.approx(-5.0)
    assert estimator.pose.y == pytest.approx(10.0)


def test_translation_uses_heading_before_the_update():
    estimator = make_estimator(correct_rotation=False)
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    estimator.update(EncoderSample(1000, 1000, 0), math.pi / 2, 0.1)

    assert estimator.pose.x == pytest.approx(10.0)
    assert estimator.pose.y == pytest.approx(0.0, abs=1e-9)
    assert estimator.pose.heading == pytest.approx(math.pi / 2)


def test_heading_wrap_from_imu():
    estimator = make_estimator()
    estimator.update(EncoderSample(0, 0, 0), math.radians(359), 0.0)
    estimator.update(EncoderSample(0, 0, 0), math.radians(1), 0.02)

    assert math.degrees(estimator.pose.heading) == pytest.approx(2.0)


def test_heading_stays_in_canonical_range():
    estimator = make_estimator()
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    estimator.update(EncoderSample(0, 0, 0), -0.5, 0.02)

    assert estimator.pose.heading == pytest.approx(2 * math.pi - 0.5)


def test_pose_reset_round_trip():
    estimator = make_estimator()
    target = Pose(12.0, -3.0, 1.25)
    estimator.reset_pose(target, EncoderSample(10, 20, 30), 0.7)
    estimator.update(EncoderSample(10, 20, 30), 0.7, 0.02)

    assert estimator.pose.x == pytest.approx(12.0)
    assert estimator.pose.y == pytest.approx(-3.0)
    assert estimator.pose.heading == pytest.approx(1.25)


def test_reset_without_readings_rebaselines_on_next_update():
    estimator = make_estimator()
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    estimator.reset_pose(Pose(1.0, 1.0, 0.0))
    estimator.update(EncoderSample(9000, 9000, 9000), 2.0, 0.02)

    assert estimator.pose == Pose(1.0, 1.0, 0.0)


def test_reset_reads_baseline_from_sensors(sensors):
    sensors.set(400, 400, 0, heading=0.3)
    estimator = make_estimator(sensors=sensors)
    estimator.reset_pose(Pose(5.0, 5.0, 0.0))
    estimator.periodic(0.0)

    assert estimator.pose.x == pytest.approx(5.0)
    assert estimator.pose.y == pytest.approx(5.0)
    assert estimator.pose.heading == pytest.approx(0.0)


def test_zero_motion_keeps_pose_and_decays_velocity():
    estimator = make_estimator(velocity_alpha=0.5)
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    estimator.update(EncoderSample(200, 200, 0), 0.0, 0.1)
    pose = estimator.pose
    speeds = [estimator.velocity.speed]

    for _ in range(5):
        estimator.update(EncoderSample(200, 200, 0), 0.0, 0.1)
        assert estimator.pose == pose
        speeds.append(estimator.velocity.speed)

    assert speeds == sorted(speeds, reverse=True)
    assert speeds[-1] < speeds[0]
    assert speeds[1] == pytest.approx(0.5 * speeds[0])


@pytest.mark.parametrize("dt", [0.0, -0.02])
def test_non_positive_dt_integrates_pose_but_keeps_velocity(dt):
    estimator = make_estimator()
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    estimator.update(EncoderSample(100, 100, 0), 0.0, 0.1)
    velocity = estimator.velocity

    estimator.update(EncoderSample(300, 300, 0), 0.0, dt)

    assert estimator.pose.x == pytest.approx(3.0)
    assert estimator.velocity == velocity
    assert estimator.velocity_skips == 1


def test_encoder_overflow_is_not_integrated():
    estimator = make_estimator(max_tick_delta=20000)
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    estimator.update(EncoderSample(50000, 0, 0), 0.1, 0.02)

    assert estimator.pose.x == pytest.approx(0.0)
    assert estimator.pose.y == pytest.approx(0.0)
    assert estimator.pose.heading == pytest.approx(0.1)
    assert estimator.encoder_resets == 1

    # Baseline was re-taken, so the next small delta integrates normally
    estimator.update(EncoderSample(50100, 100, 0), 0.1, 0.02)
    assert estimator.pose.x == pytest.approx(math.cos(0.1))
    assert estimator.pose.y == pytest.approx(math.sin(0.1))


def test_counter_reset_to_zero_is_absorbed():
    estimator = make_estimator(max_tick_delta=20000)
    estimator.update(EncoderSample(30000, 30000, 0), 0.0, 0.0)
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.02)

    assert estimator.pose.x == pytest.approx(0.0)
    assert estimator.encoder_resets == 1


def test_overflow_integrates_when_guard_disabled():
    estimator = make_estimator(max_tick_delta=20000, guard_encoder_resets=False)
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    estimator.update(EncoderSample(50000, 50000, 0), 0.0, 0.02)

    assert estimator.pose.x == pytest.approx(500.0)
    assert estimator.encoder_resets == 0


def test_rotation_correction_on_offset_strafe_pod():
    estimator = make_estimator(strafe_pod_x=-3.5)
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    # Turning in place: forward pods roll opposite ways, strafe pod rolls -3.5 * dtheta
    d_theta = 0.2
    estimator.update(EncoderSample(-120, 120, -70), d_theta, 0.02)

    assert estimator.pose.x == pytest.approx(0.0, abs=1e-9)
    assert estimator.pose.y == pytest.approx(0.0, abs=1e-9)
    assert estimator.pose.heading == pytest.approx(d_theta)


def test_rotation_correction_improves_simulated_run():
    def position_error(correct_rotation):
        chassis = SimulatedChassis()
        chassis.drive(20.0, 5.0, 0.8)
        estimator = PoseEstimator(sensors=chassis, correct_rotation=correct_rotation)
        estimator.reset_pose(chassis.true_pose)
        for step in range(1, 151):
            chassis.step(0.02)
            estimator.periodic(step * 0.02)
        return estimator.pose.distance_to(chassis.true_pose)

    corrected = position_error(True)
    assert corrected < 1.0
    assert corrected < position_error(False)


def test_periodic_requires_sensors():
    with pytest.raises(RuntimeError):
        make_estimator().periodic(0.0)


def test_periodic_uses_timestamp_difference(sensors):
    estimator = make_estimator(sensors=sensors)
    estimator.periodic(1.0)
    sensors.set(500, 500, 0)
    estimator.periodic(1.5)

    assert estimator.velocity.vx == pytest.approx(10.0)


def test_shooter_and_predicted_pose():
    estimator = make_estimator(start_pose=Pose(10.0, 10.0, math.pi / 2))
    shooter = estimator.shooter_pose(2.0)
    assert shooter.x == pytest.approx(10.0)
    assert shooter.y == pytest.approx(12.0)

    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    estimator.update(EncoderSample(100, 100, 0), 0.0, 0.1)
    # 1 in along field +y in 0.1 s
    predicted = estimator.predicted_pose(0.5)
    assert predicted.x == pytest.approx(10.0)
    assert predicted.y == pytest.approx(11.0 + 5.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"ticks_per_inch": 0.0},
        {"velocity_alpha": 1.5},
        {"velocity_alpha": -0.1},
        {"max_tick_delta": 0},
    ],
)
def test_invalid_calibration_raises(kwargs):
    with pytest.raises(ValueError):
        make_estimator(**kwargs)


def test_state_and_diagnostics_keys():
    estimator = make_estimator()
    assert set(estimator.get_state()) == {"x", "y", "theta", "v_x", "v_y", "omega"}
    assert "encoder_resets" in estimator.get_diagnostics()


@pytest.mark.parametrize(
    "bad_encoders, bad_heading",
    [
        (EncoderSample(100, 100, 0), math.nan),
        (EncoderSample(math.nan, 100, 0), 0.0),
        (EncoderSample(100, 100, 0), math.inf),
    ],
)
def test_non_finite_reading_costs_one_cycle(bad_encoders, bad_heading):
    estimator = make_estimator()
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    estimator.update(bad_encoders, bad_heading, 0.02)

    assert estimator.pose == Pose()
    assert estimator.encoder_resets == 1

    # Next good sample re-baselines, the one after integrates normally
    estimator.update(EncoderSample(200, 200, 0), 0.1, 0.02)
    estimator.update(EncoderSample(300, 300, 0), 0.1, 0.02)

    assert estimator.pose.x == pytest.approx(1.0)
    assert estimator.pose.y == pytest.approx(0.0)
    assert estimator.pose.heading == pytest.approx(0.0)
    assert all(math.isfinite(v) for v in estimator.velocity.__dict__.values())


def test_non_finite_reset_reading_is_not_used_as_baseline():
    estimator = make_estimator()
    estimator.reset_pose(Pose(2.0, 2.0, 0.0), EncoderSample(0, 0, 0), math.nan)
    estimator.update(EncoderSample(100, 100, 0), 0.5, 0.02)
    estimator.update(EncoderSample(200, 200, 0), 0.5, 0.02)

    assert estimator.pose.x == pytest.approx(3.0)
    assert estimator.pose.heading == pytest.approx(0.0)


def test_published_values_are_plain_floats():
    estimator = make_estimator()
    estimator.update(EncoderSample(0, 0, 0), 0.0, 0.0)
    estimator.update(EncoderSample(150, 250, 40), 0.05, 0.02)

    for value in (*estimator.get_state().values(), estimator.last_forward, estimator.last_lateral):
        assert type(value) is float
