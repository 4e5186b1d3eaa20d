"""Steering frames, control schedules and command resolution.

Steering turns the host's orbital state into a commanded orientation and
throttle every tick:

    active = controls.lookup(state.time)             # Schedule lookup
    cmd = resolve_command(state, active.segment)     # Frame evaluation
    vessel.set_rotation(cmd.orientation)             # Host actuation

Available frames:
    RTN: Radial/Tangential/Normal (Cone/Clock/Flatspin)
    ICN: In-track/Cross-track/Normal (FPA/Az/Flatspin)
    WORLD: Worldspace (Az/Ele/Flatspin)
    CCWF: Counterclockwise (Az/Ele/Flatspin)
"""

from sailnav.steering.command import ResolvedCommand, command_at, resolve_command
from sailnav.steering.frames import (
    FRAMES,
    CCWFrame,
    FrameInfo,
    ICNFrame,
    RTNFrame,
    SteeringFrame,
    WorldFrame,
    get_frame,
    list_frames,
    validate_angles,
)
from sailnav.steering.schedule import (
    ActiveSegment,
    ControlSchedule,
    ControlSegment,
    Controls,
    ScheduleConfig,
)

__all__ = [
    # Frames
    "FRAMES",
    "SteeringFrame",
    "FrameInfo",
    "RTNFrame",
    "ICNFrame",
    "WorldFrame",
    "CCWFrame",
    "get_frame",
    "list_frames",
    "validate_angles",
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
]
