#!/usr/bin/env python3
"""
Standalone script to visualize logged control sessions.

This script loads pose and flywheel data from a run directory and generates
the trajectory-over-zones and flywheel response plots.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import TERM_BLUE, TERM_RESET
from .visualization import plot_run_summary


def _run_dirs(results_dir: Path) -> List[Path]:
    return sorted(d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_"))


def find_latest_run(results_dir: Path) -> Path:
    """Find the most recent run directory.

    Args:
        results_dir: Path to the results directory.

    Returns:
        Path to the most recent run directory.

    Raises:
        FileNotFoundError: If no run directories are found.
    """
    if not results_dir.exists():
        raise FileNotFoundError(f"Results directory not found: {results_dir}")

    run_dirs = _run_dirs(results_dir)
    if not run_dirs:
        raise FileNotFoundError(f"No run directories found in {results_dir}")

    return run_dirs[-1]


def list_available_runs(results_dir: Path) -> List[str]:
    """Log all available run directories.

    Args:
        results_dir: Path to the results directory.

    Returns:
        Names of the run directories, oldest first.
    """
    if not results_dir.exists():
        logging.error(f"Results directory not found: {results_dir}")
        return []

    names = [d.name for d in _run_dirs(results_dir)]
    if not names:
        logging.info(f"No run directories found in {results_dir}")
        return names

    logging.info("Available runs:")
    for i, name in enumerate(names, 1):
        logging.info(f"  {i}. {name}")
    return names


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the plotting script."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser(
        description="Visualize logged control sessions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Plot the most recent run
  python -m robot_control.plot_results

  # Plot a specific run by name
  python -m robot_control.plot_results --run run_20260301_101500

  # Save figures to the run directory without opening windows
  python -m robot_control.plot_results --save --no-show

  # List all available runs
  python -m robot_control.plot_results --list
        """,
    )
    parser.add_argument(
        "--run",
        type=str,
        default=None,
        help="Name of the run directory to plot. If not specified, plots the most recent run.",
    )
    parser.add_argument(
        "--results-dir",
        type=str,
        default="results",
        help="Path to the results directory (default: results)",
    )
    parser.add_argument(
        "--save", action="store_true", help="Save plots as PNG files in the run directory"
    )
    parser.add_argument(
        "--no-show",
        action="store_true",
        help="Do not display plots interactively (useful with --save)",
    )
    parser.add_argument("--list", action="store_true", help="List all available runs and exit")
    args = parser.parse_args(argv)

    results_dir = Path(args.results_dir)

    if args.list:
        list_available_runs(results_dir)
        return 0

    if args.run:
        run_dir = results_dir / args.run
        if not run_dir.exists():
            logging.error(f"Error: Run directory not found: {run_dir}")
            list_available_runs(results_dir)
            return 1
    else:
        try:
            run_dir = find_latest_run(results_dir)
            logging.info(f"{TERM_BLUE}Plotting most recent run: {run_dir}{TERM_RESET}")
        except FileNotFoundError as e:
            logging.error(f"Error: {e}")
            return 1

    try:
        plot_run_summary(run_dir=run_dir, save_plots=args.save, show_plots=not args.no_show)
    except FileNotFoundError as e:
        logging.error(f"Error: {e}")
        logging.info(f"Make sure {run_dir} contains pose_data.csv and flywheel_data.csv")
        return 1

    if args.save:
        logging.info(f"{TERM_BLUE}✓ Saved plots to {run_dir}/{TERM_RESET}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
