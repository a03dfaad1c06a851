"""Post-run visualization of logged control sessions.

This module loads the CSV files written by DataCollector and plots:
- Estimated trajectory over the shooting zones, colored by time
- Flywheel target vs measured velocity, power and filtered voltage
"""

import csv
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from .config import FIELD_HEIGHT, FIELD_WIDTH, PLOT_BLUE, PLOT_ORANGE, PLOT_TAUPE
from .zones import ZoneClassifier, default_zones


def load_csv_to_dict(csv_path: Path) -> Dict[str, np.ndarray]:
    """Load CSV file into dictionary of numpy arrays.

    Automatically converts numeric values to floats. Non-numeric values
    become NaN.

    Args:
        csv_path: Path to CSV file.

    Returns:
        Dictionary mapping column names to numpy arrays.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        data: Dict[str, List[float]] = {key: [] for key in reader.fieldnames or []}
        for row in reader:
            for key, value in row.items():
                try:
                    data[key].append(float(value))
                except (ValueError, TypeError):
                    data[key].append(np.nan)

    return {key: np.array(values) for key, values in data.items()}


def plot_trajectory(
    pose_data: Dict[str, np.ndarray],
    zones: Optional[ZoneClassifier] = None,
    title: str = "Estimated Trajectory",
    save_path: Optional[Path] = None,
) -> Figure:
    """Plot the estimated x/y trajectory over the zone outlines.

    Args:
        pose_data: Dictionary with 'timestamp', 'x', 'y' arrays.
        zones: Zones to outline (default: competition zones).
        title: Plot title.
        save_path: Optional path to save the figure.

    Returns:
        Matplotlib figure object.
    """
    if zones is None:
        zones = default_zones()

    fig, ax = plt.subplots(figsize=(9, 8))

    for zone in zones:
        outline = np.array(zone.vertices + zone.vertices[:1])
        ax.plot(outline[:, 0], outline[:, 1], "-", color=PLOT_TAUPE, linewidth=1.0)
        cx, cy = zone.center
        ax.annotate(zone.name, (cx, cy), color=PLOT_TAUPE, ha="center", va="center")

    x = pose_data["x"]
    y = pose_data["y"]
    timestamps = pose_data["timestamp"]
    valid_mask = ~(np.isnan(x) | np.isnan(y))
    x, y, timestamps = x[valid_mask], y[valid_mask], timestamps[valid_mask]

    if len(x) > 0:
        ax.plot(x, y, "-", color=PLOT_ORANGE, linewidth=1.5, alpha=0.6, label="Estimate")
        scatter = ax.scatter(x, y, c=timestamps, cmap="viridis", s=8, zorder=3)
        plt.colorbar(scatter, ax=ax, label="Time (s)")
        ax.plot(x[0], y[0], "o", color=PLOT_BLUE, markersize=8, label="Start", zorder=5)
        ax.plot(x[-1], y[-1], "o", color=PLOT_ORANGE, markersize=8, label="End", zorder=5)

    ax.set_xlim(0, FIELD_WIDTH)
    ax.set_ylim(0, FIELD_HEIGHT)
    ax.set_aspect("equal")
    ax.set_xlabel("X Position (in)")
    ax.set_ylabel("Y Position (in)")
    ax.set_title(title, fontweight="bold")
    ax.grid(True, alpha=0.3, linestyle="--", linewidth=0.5)
    ax.legend(loc="upper right")
    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_flywheel(
    flywheel_data: Dict[str, np.ndarray],
    title: str = "Flywheel",
    save_path: Optional[Path] = None,
) -> Figure:
    """Plot flywheel velocity tracking, power and battery voltage.

    Args:
        flywheel_data: Dictionary with FLYWHEEL_COLUMNS arrays.
        title: Plot title prefix.
        save_path: Optional path to save the figure.

    Returns:
        Matplotlib figure object.
    """
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)
    t = flywheel_data["timestamp"]

    ax1.plot(t, flywheel_data["target_velocity"], "--", color=PLOT_BLUE, label="Target")
    ax1.plot(t, flywheel_data["measured_velocity"], color=PLOT_ORANGE, label="Measured")
    ax1.set_ylabel("Velocity (ticks/s)")
    ax1.set_title(f"{title} - Velocity", fontweight="bold")
    ax1.grid(True, alpha=0.3, linestyle="--", linewidth=0.5)
    ax1.legend(loc="lower right")

    ax2.plot(t, flywheel_data["power"], color=PLOT_ORANGE, label="Power")
    ax2.plot(t, flywheel_data["base_power"], ":", color=PLOT_TAUPE, label="Uncompensated")
    ax2.set_xlabel("Time (s)")
    ax2.set_ylabel("Power")
    ax2.set_title(f"{title} - Power and Voltage", fontweight="bold")
    ax2.grid(True, alpha=0.3, linestyle="--", linewidth=0.5)

    ax_volt = ax2.twinx()
    ax_volt.plot(t, flywheel_data["filtered_voltage"], color=PLOT_BLUE, label="Filtered voltage")
    ax_volt.set_ylabel("Voltage (V)")

    lines = ax2.get_lines() + ax_volt.get_lines()
    ax2.legend(lines, [line.get_label() for line in lines], loc="lower right")
    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_run_summary(run_dir: Path, save_plots: bool = False, show_plots: bool = True) -> None:
    """Generate summary plots for a complete run.

    Args:
        run_dir: Directory containing pose_data.csv and flywheel_data.csv.
        save_plots: If True, save plots to run directory.
        show_plots: If True, display plots interactively.

    Raises:
        FileNotFoundError: If required CSV files are not found.
    """
    pose_data = load_csv_to_dict(run_dir / "pose_data.csv")
    flywheel_data = load_csv_to_dict(run_dir / "flywheel_data.csv")

    run_name = run_dir.name
    plot_trajectory(
        pose_data,
        title=f"Estimated Trajectory - {run_name}",
        save_path=run_dir / "trajectory.png" if save_plots else None,
    )
    plot_flywheel(
        flywheel_data,
        title=f"Flywheel - {run_name}",
        save_path=run_dir / "flywheel.png" if save_plots else None,
    )

    if show_plots:
        plt.show()
    else:
        plt.close("all")
