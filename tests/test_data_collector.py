import csv

import pytest

from robot_control.data_collector import (
    FLYWHEEL_COLUMNS,
    POSE_COLUMNS,
    ZONE_COLUMNS,
    DataCollector,
)
from robot_control.runner import run_session


def read_rows(path):
    with open(path, newline="") as f:
        return list(csv.reader(f))


def test_session_writes_one_row_per_cycle(tmp_path):
    with DataCollector(run_dir=str(tmp_path / "run_test")) as collector:
        run_session(duration=1.0, period=0.1, data_collector=collector)

    pose_rows = read_rows(collector.pose_output_path)
    zone_rows = read_rows(collector.zone_output_path)
    flywheel_rows = read_rows(collector.flywheel_output_path)

    assert pose_rows[0] == POSE_COLUMNS
    assert zone_rows[0] == ZONE_COLUMNS
    assert flywheel_rows[0] == FLYWHEEL_COLUMNS
    # 0.0, 0.1, ..., 1.0
    assert len(pose_rows) == len(zone_rows) == len(flywheel_rows) == 12
    assert zone_rows[1][1] == "CLOSE"


def test_run_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("RUN_DIR", str(tmp_path / "from_env"))
    collector = DataCollector(output_dir=str(tmp_path))
    assert collector.run_dir == tmp_path / "from_env"
    assert collector.run_dir.is_dir()


def test_timestamped_run_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("RUN_DIR", raising=False)
    collector = DataCollector(output_dir=str(tmp_path))
    assert collector.run_dir.parent == tmp_path / "results"
    assert collector.run_dir.name.startswith("run_")


def test_output_dir_must_be_a_directory(tmp_path):
    not_a_dir = tmp_path / "file.txt"
    not_a_dir.write_text("x")
    with pytest.raises(ValueError):
        DataCollector(output_dir=str(not_a_dir))
