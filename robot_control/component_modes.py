"""
Component toggles for isolating parts of the control core.

This module defines which optional corrections are active so their effect
can be evaluated one at a time in simulation or on the practice field.
"""

from dataclasses import dataclass
import argparse
import sys


@dataclass
class ComponentMode:
    """Configuration for which optional corrections are active."""

    # Pose Estimation
    use_rotation_correction: bool = True  # If False, raw pod averages only
    use_reset_guard: bool = True  # If False, integrate any encoder delta

    # Flywheel Control
    use_voltage_compensation: bool = True  # If False, no nominal/actual scaling
    use_feedforward: bool = True  # If False, PID only

    def __str__(self):
        """Human-readable description of active components."""
        odometry = "Odometry"
        odometry_terms = []
        if self.use_rotation_correction:
            odometry_terms.append("RotCorr")
        if self.use_reset_guard:
            odometry_terms.append("ResetGuard")
        if odometry_terms:
            odometry += f"({'+'.join(odometry_terms)})"

        flywheel_terms = ["PID"]
        if self.use_feedforward:
            flywheel_terms.append("FF")
        if self.use_voltage_compensation:
            flywheel_terms.append("VComp")

        return " → ".join([odometry, "Zones", f"Flywheel({'+'.join(flywheel_terms)})"])

    def to_dict(self):
        """Convert to dictionary for logging."""
        return {
            'use_rotation_correction': self.use_rotation_correction,
            'use_reset_guard': self.use_reset_guard,
            'use_voltage_compensation': self.use_voltage_compensation,
            'use_feedforward': self.use_feedforward,
        }


def parse_component_flags(args=None):
    """
    Parse command-line flags to determine which components are active.

    Args:
        args: List of command-line arguments (default: sys.argv[1:])

    Returns:
        tuple: (ComponentMode, remaining_args)
            - ComponentMode with appropriate settings
            - List of remaining arguments not consumed
    """
    parser = argparse.ArgumentParser(add_help=False)

    parser.add_argument('--no-rotation-correction', action='store_true',
                        help='Do not remove rotation-induced pod travel')
    parser.add_argument('--no-reset-guard', action='store_true',
                        help='Integrate implausible encoder deltas instead of dropping them')
    parser.add_argument('--no-voltage-comp', action='store_true',
                        help='Disable flywheel battery voltage compensation')
    parser.add_argument('--no-feedforward', action='store_true',
                        help='Disable flywheel feedforward terms')

    # Parse known args, keep the rest
    if args is None:
        args = sys.argv[1:]

    known_args, remaining_args = parser.parse_known_args(args)

    mode = ComponentMode(
        use_rotation_correction=not known_args.no_rotation_correction,
        use_reset_guard=not known_args.no_reset_guard,
        use_voltage_compensation=not known_args.no_voltage_comp,
        use_feedforward=not known_args.no_feedforward,
    )

    return mode, remaining_args
