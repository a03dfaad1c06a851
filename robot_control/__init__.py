"""Robot Control - Motion and Actuation Core for a Competition Robot

Pose estimation, field-zone classification and flywheel velocity control for a
holonomic competition robot, run once per fixed control cycle.

## Architecture Overview

Each control cycle runs three components in a fixed order:

### Stage 1: Pose Estimation (localizer.py)
Dead-reckons the field pose from three dead-wheel encoder pods and IMU heading.
- Two forward pods and one strafe pod, ticks converted to inches
- IMU heading delta wrapped to the shortest signed angle
- Encoder reset guard: implausible tick jumps re-baseline instead of teleporting
- Output: Field pose (x, y, heading) and smoothed field velocity

### Stage 2: Zone Classification (zones.py)
Reports which shooting zone contains the current pose.
- Even-odd ray casting with inclusive boundaries
- First-registered zone wins where zones overlap
- Distance to the nearest zone edge for approach guidance
- Output: Zone label ("CLOSE", "MID", ... or "NONE")

### Stage 3: Flywheel Control (flywheel.py)
Holds the shooter flywheel at a target speed as the battery sags.
- Feedforward: kV, kA and kS terms
- PID on the velocity error with anti-windup
- Voltage compensation from a low-pass filtered battery reading
- Output: Clamped motor power and an at-target readiness signal

## Modules

### Core Control Modules
- `config.py` - Centralized configuration parameters with documentation
- `model.py` - Pose, velocity and angle helpers
- `hardware.py` - Sensor and actuator interfaces
- `localizer.py` - Dead-wheel odometry pose estimation
- `zones.py` - Polygon zones and classification
- `flywheel.py` - Flywheel velocity controller and commands
- `robot.py` - Fixed-order control cycle over all components

### Simulation & Data
- `simulation.py` - Simulated chassis and flywheel for offline sessions
- `runner.py` - Offline control session and command-line entry point
- `component_modes.py` - Toggles for isolating optional corrections
- `data_collector.py` - CSV data logging for every control cycle

### Visualization
- `visualization.py` - Trajectory over zones and flywheel response plots
- `plot_results.py` - CLI for visualization tools

## Quick Start

```python
from robot_control.runner import run_session

robot = run_session(duration=5.0, preset_name="mid")
print(robot.pose(), robot.classify())
```

Or use the command-line interface:
```bash
python -m robot_control --duration 8 --preset far
python -m robot_control.plot_results --save
```

## Configuration

All tunable parameters are centralized in `config.py`:
- Odometry: Pod geometry, tick scale, velocity smoothing, reset guard
- Zones: Field size and zone polygons in priority order
- Flywheel: Feedforward and PID gains, voltage filter, target band, presets

## Version

0.1.0 - Initial implementation
"""

__version__ = "0.1.0"

# Export key classes for convenience
from .data_collector import DataCollector
from .flywheel import VelocityController
from .localizer import PoseEstimator
from .model import EncoderSample, Pose, Velocity
from .robot import Robot
from .zones import Zone, ZoneClassifier

__all__ = [
    "PoseEstimator",
    "ZoneClassifier",
    "Zone",
    "VelocityController",
    "Robot",
    "Pose",
    "Velocity",
    "EncoderSample",
    "DataCollector",
]
