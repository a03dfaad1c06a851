"""Configuration parameters for the robot control core.

This module centralizes all configuration parameters including:
- Dead-wheel odometry calibration
- Field and shooting zone geometry
- Flywheel control gains and voltage compensation
- Simulation plant parameters

All parameters are documented with their purpose, valid ranges, and tuning rationale.
"""

# ============================================================================
# Odometry Calibration (Three Dead-Wheel Pods + IMU)
# ============================================================================

TICKS_PER_INCH = 336.87
"""Encoder ticks per inch of wheel travel.

Origin: 2000 ticks/rev pod encoder on a 48 mm omni wheel
- Circumference = pi * 48 mm = 150.8 mm = 5.937 in
- 2000 / 5.937 = 336.87 ticks/in
Re-measure by pushing the robot a known distance if wheels are swapped.
"""

LEFT_POD_Y = 6.0
"""Lateral position of the left forward pod (inches, +y is robot left)."""

RIGHT_POD_Y = -6.0
"""Lateral position of the right forward pod (inches, +y is robot left)."""

STRAFE_POD_X = -3.5
"""Forward position of the strafe pod (inches, +x is robot forward).

Negative = mounted behind the centre of rotation. The pod reads
lateral + STRAFE_POD_X * dtheta while turning in place.
"""

ODOMETRY_CORRECT_ROTATION = True
"""Remove rotation-induced pod travel from forward/lateral displacement.

With symmetric forward pods the forward term cancels on its own; the
strafe term does not. Disable only if the strafe pod sits on the centre
of rotation.
"""

ODOMETRY_VELOCITY_ALPHA = 0.3
"""Low-pass filter alpha for velocity smoothing (range: [0, 1]).

Exponential moving average: v_filtered = alpha * v_new + (1-alpha) * v_old

Higher alpha = faster response but more noise
Lower alpha = smoother but slower response

Tuning rationale:
- Encoder quantization at 50 Hz gives ~0.15 in/s steps per tick
- 0.3 (30% new, 70% old) hides the steps without visible lag at match speeds
"""

ODOMETRY_MAX_TICK_DELTA = 20000
"""Largest plausible per-cycle tick delta on any pod.

20000 ticks = 59 in in one cycle, far beyond what the chassis can do.
Anything larger is a counter reset (hub re-init, cable pulled) and is
treated as zero motion instead of being integrated into the pose.
"""

ODOMETRY_GUARD_RESETS = True
"""Enable the encoder reset guard described above."""

SHOOTER_OFFSET = -0.6
"""Forward offset of the turret from the robot centre (inches)."""

SHOT_PREDICTION_TIME = 0.25
"""Lookahead used when extrapolating the shooter pose (seconds)."""


# ============================================================================
# Field and Shooting Zones
# ============================================================================

FIELD_WIDTH = 144.0
"""Field width (inches). Standard 12 ft x 12 ft field."""

FIELD_HEIGHT = 144.0
"""Field height (inches)."""

START_POSE = (0.0, 0.0, 0.0)
"""Default starting pose (x in, y in, heading rad)."""

ZONE_DEFINITIONS = [
    ("CLOSE", [(0.0, 0.0), (24.0, 0.0), (24.0, 24.0), (0.0, 24.0)]),
    ("MID", [(24.0, 0.0), (48.0, 0.0), (48.0, 24.0), (24.0, 24.0)]),
    ("FAR", [(48.0, 0.0), (72.0, 0.0), (72.0, 36.0), (48.0, 36.0)]),
    ("MAIN", [(0.0, 0.0), (48.0, 0.0), (48.0, 36.0), (0.0, 36.0)]),
]
"""Named shooting zones in classification priority order.

Zones overlap on purpose: MAIN covers CLOSE and MID plus a strip above
them. Smaller zones come first so the most specific label wins; MAIN only
reports the strip CLOSE and MID leave uncovered.
"""

ZONE_BOUNDARY_TOLERANCE = 1e-9
"""Distance (inches) within which a point counts as on a zone edge.

Points on an edge or vertex are contained. Keeps contains() and
distance_to() == 0 in agreement.
"""


# ============================================================================
# Flywheel Velocity Control (PID + Feedforward)
# ============================================================================

# Feedforward gains
FLYWHEEL_KV = 1.0 / 2400.0
"""Velocity feedforward gain (power per tick/s).

Free speed of the two-motor flywheel at full power and nominal voltage is
~2400 ticks/s, so kV = 1/2400 gives the open-loop power for a target.
"""

FLYWHEEL_KA = 0.0
"""Acceleration feedforward gain (power per tick/s^2). Presets step the
target, so there is no acceleration reference to feed."""

FLYWHEEL_KS = 0.0
"""Static friction feedforward (power, applied with the sign of the target)."""

# Feedback gains
FLYWHEEL_KP = 0.0015
"""Proportional gain on velocity error (power per tick/s).

Tuning rationale:
- 100 ticks/s error adds 0.15 power on top of feedforward
- Higher values chatter on encoder velocity quantization
"""

FLYWHEEL_KI = 0.0
"""Integral gain (power per tick). Voltage compensation removes most of the
steady-state error kI would otherwise fix."""

FLYWHEEL_KD = 0.00005
"""Derivative gain on velocity error (power per tick/s^2).

Damps the overshoot after a preset step without amplifying noise.
"""

FLYWHEEL_INTEGRAL_LIMIT = 200.0
"""Anti-windup limit for the integral term (tick/s * s)."""

# Voltage compensation
NOMINAL_VOLTAGE = 12.0
"""Voltage the gains were tuned at (volts)."""

MIN_VOLTAGE = 9.0
"""Safety floor for the battery reading (volts).

Readings below this are treated as 9 V. Below 9 V the hub browns out anyway,
and clamping keeps the compensation ratio bounded at 12/9 = 1.33.
"""

VOLTAGE_FILTER_ALPHA = 0.08
"""Low-pass filter alpha for the battery voltage (range: (0, 1]).

0.08 at 50 Hz gives a ~0.25 s time constant: long enough to ignore the
sag spike of a shot, short enough to follow the battery over a match.
"""

VOLTAGE_COMPENSATION = True
"""Scale commanded power by NOMINAL_VOLTAGE / filtered voltage."""

FLYWHEEL_MAX_POWER = 0.85
"""Power clamp (fraction of full scale, range: (0, 1)).

Held below 1.0 so voltage compensation has headroom to boost when the
battery sags.
"""

FLYWHEEL_TOLERANCE_BELOW = 20.0
"""At-target tolerance below the target (ticks/s). Undershoot drops shots."""

FLYWHEEL_TOLERANCE_ABOVE = 40.0
"""At-target tolerance above the target (ticks/s). Overshoot is cheaper."""

FLYWHEEL_PRESETS = {
    "off": 0.0,
    "close": 1000.0,
    "mid": 1250.0,
    "far": 1500.0,
    "max": 1500.0,
    "max_auto": 1600.0,
    "idle": -300.0,
    "run_high": 2000.0,
}
"""Named flywheel targets (ticks/s). idle spins backwards to hold game
pieces out of the shooter."""


# ============================================================================
# Control Loop
# ============================================================================

LOOP_PERIOD = 0.02
"""Control cycle period (seconds). 50 Hz."""


# ============================================================================
# Simulation Plant
# ============================================================================

SIM_FLYWHEEL_FREE_SPEED = 2400.0
"""Flywheel speed at full power and nominal voltage (ticks/s)."""

SIM_FLYWHEEL_TIME_CONSTANT = 0.25
"""First-order flywheel spin-up time constant (seconds)."""

SIM_BATTERY_VOLTAGE = 12.6
"""Resting battery voltage (volts)."""

SIM_BATTERY_SAG = 1.8
"""Voltage drop at full flywheel power (volts)."""

SIM_ENCODER_NOISE = 0.0
"""Standard deviation of encoder tick noise (ticks)."""

SIM_HEADING_NOISE = 0.0
"""Standard deviation of IMU heading noise (radians)."""

SIM_SEED = 405
"""Seed for the simulation noise generator."""


# ============================================================================
# Terminal Colors
# ============================================================================

TERM_ORANGE = "\033[38;2;247;72;35m"
"""Terminal color code for warnings and headline numbers."""

TERM_BLUE = "\033[38;2;35;116;247m"
"""Terminal color code for status messages."""

TERM_RESET = "\033[0m"
"""Terminal color reset code."""

PLOT_ORANGE = "#f74823"
"""Primary plot color - measured data, estimated trajectory."""

PLOT_BLUE = "#2374f7"
"""Secondary plot color - targets and references."""

PLOT_TAUPE = "#686a5f"
"""Neutral color for zone outlines and grids."""
