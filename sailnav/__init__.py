"""Sailnav - Steering frames and segmented control schedules for spacecraft.

This package computes a vehicle's commanded orientation and thrust state at
any simulation time from a library of orbit-relative steering frames and a
pilot-authored timeline of control segments.

Example:
    >>> from sailnav import Controls, ControlSegment, OrbitalState, command_at
    >>>
    >>> controls = Controls(epoch=0.0)
    >>> controls.append(ControlSegment("RTN", (35.0, 0.0, 0.0), duration=86400.0, throttle=1.0))
    >>>
    >>> state = OrbitalState.circular(radius=7.0e6, time=600.0)
    >>> cmd = command_at(controls.schedule, state)
    >>> print(cmd.orientation, cmd.throttle, cmd.propulsion_on)
"""

__version__ = "0.1.0"

# Orbital state and quaternion primitives
from sailnav.dynamics import (
    OrbitalState,
    look_rotation,
    quaternion_multiply,
    rotate_vector,
)

# Errors
from sailnav.errors import (
    DegenerateOrbitalStateError,
    InvalidAnglesError,
    InvalidSegmentError,
    NavigatorError,
    UnknownFrameError,
)

# Per-tick actuation
from sailnav.navigator import (
    AttitudeActuator,
    Navigator,
    PropulsionActuator,
)

# Orbit propagation
from sailnav.orbital import KeplerPropagator, propagate_kepler

# Trajectory preview
from sailnav.simulation import (
    PreviewResult,
    PreviewSample,
    Propagator,
    TrajectoryPreview,
)

# Steering frames, schedules and commands
from sailnav.steering import (
    FRAMES,
    ActiveSegment,
    ControlSchedule,
    ControlSegment,
    Controls,
    FrameInfo,
    ResolvedCommand,
    ScheduleConfig,
    SteeringFrame,
    command_at,
    get_frame,
    list_frames,
    resolve_command,
)

__all__ = [
    # Version
    "__version__",
    # State
    "OrbitalState",
    "look_rotation",
    "quaternion_multiply",
    "rotate_vector",
    # Frames
    "FRAMES",
    "SteeringFrame",
    "FrameInfo",
    "get_frame",
    "list_frames",
    # Schedule
    "ControlSegment",
    "ControlSchedule",
    "ActiveSegment",
    "Controls",
    "ScheduleConfig",
    # Commands
    "ResolvedCommand",
    "resolve_command",
    "command_at",
    # Navigator
    "Navigator",
    "AttitudeActuator",
    "PropulsionActuator",
    # Preview
    "TrajectoryPreview",
    "PreviewSample",
    "PreviewResult",
    "Propagator",
    "KeplerPropagator",
    "propagate_kepler",
    # Errors
    "NavigatorError",
    "UnknownFrameError",
    "InvalidAnglesError",
    "InvalidSegmentError",
    "DegenerateOrbitalStateError",
]
