import logging
from pathlib import Path

import pytest

from robot_control import plot_results, runner
from robot_control.visualization import load_csv_to_dict


@pytest.fixture
def logged_run(tmp_path, monkeypatch):
    monkeypatch.delenv("RUN_DIR", raising=False)
    exit_code = runner.main(
        ["--duration", "1", "--preset", "mid", "--no-voltage-comp", "--output-dir", str(tmp_path)]
    )
    assert exit_code == 0
    return tmp_path / "results"


def test_runner_writes_a_run(logged_run):
    run_dir = plot_results.find_latest_run(logged_run)
    pose = load_csv_to_dict(run_dir / "pose_data.csv")
    flywheel = load_csv_to_dict(run_dir / "flywheel_data.csv")

    assert len(pose["x"]) == 51
    assert flywheel["target_velocity"][-1] == 1250.0
    assert set(flywheel["voltage_ratio"]) != {1.0}


def test_runner_rejects_bad_duration():
    assert runner.main(["--duration", "0", "--no-log"]) == 1


def test_plot_results_saves_figures(logged_run):
    assert plot_results.main(["--results-dir", str(logged_run), "--save", "--no-show"]) == 0

    run_dir = plot_results.find_latest_run(logged_run)
    assert (run_dir / "trajectory.png").exists()
    assert (run_dir / "flywheel.png").exists()


def test_plot_results_lists_runs(logged_run):
    names = plot_results.list_available_runs(logged_run)
    assert len(names) == 1
    assert plot_results.main(["--results-dir", str(logged_run), "--list"]) == 0


def test_plot_results_missing_run(tmp_path):
    assert plot_results.main(["--results-dir", str(tmp_path), "--no-show"]) == 1
    assert plot_results.main(["--results-dir", str(tmp_path), "--run", "run_x"]) == 1
    with pytest.raises(FileNotFoundError):
        plot_results.find_latest_run(Path(tmp_path) / "absent")


def test_runner_logs_component_flags(caplog):
    caplog.set_level(logging.DEBUG)
    assert runner.main(["-v", "--no-log", "--duration", "0.1", "--no-feedforward"]) == 0
    assert "'use_feedforward': False" in caplog.text
