from robot_control.component_modes import ComponentMode, parse_component_flags


def test_defaults_enable_everything():
    mode, remaining = parse_component_flags([])
    assert mode == ComponentMode()
    assert all(mode.to_dict().values())
    assert remaining == []


def test_flags_disable_components_and_keep_other_args():
    mode, remaining = parse_component_flags(
        ["--no-voltage-comp", "--duration", "3", "--no-reset-guard"]
    )
    assert not mode.use_voltage_compensation
    assert not mode.use_reset_guard
    assert mode.use_rotation_correction
    assert mode.use_feedforward
    assert remaining == ["--duration", "3"]


def test_description_lists_active_terms():
    assert str(ComponentMode()) == (
        "Odometry(RotCorr+ResetGuard) → Zones → Flywheel(PID+FF+VComp)"
    )
    bare = ComponentMode(
        use_rotation_correction=False,
        use_reset_guard=False,
        use_voltage_compensation=False,
        use_feedforward=False,
    )
    assert str(bare) == "Odometry → Zones → Flywheel(PID)"
