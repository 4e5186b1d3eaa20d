"""Command resolution: orbital state + active segment -> steering command.

This is the per-tick entry point consumed by the host's actuation logic.
Resolution is a pure function of its inputs, so resolving the same state,
time and schedule twice yields identical commands.

Example:
    >>> from sailnav.steering import command_at
    >>>
    >>> cmd = command_at(controls.schedule, state)
    >>> vessel.set_rotation(cmd.orientation)
    >>> vessel.set_throttle(cmd.throttle)
"""

from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from sailnav.dynamics.state import OrbitalState
from sailnav.steering.frames import FRAMES, SteeringFrame, get_frame
from sailnav.steering.schedule import ControlSchedule, ControlSegment
from sailnav.typecheck import typechecked


@typechecked
@dataclass(frozen=True, eq=False)
class ResolvedCommand:
    """Steering and thrust command for one tick.

    Attributes:
        orientation: Target orientation quaternion [q0, q1, q2, q3] (body to inertial)
        throttle: Throttle setting (0 to 1)
        propulsion_on: Whether the sail/engine should be deployed
    """
    orientation: NDArray[np.float64]
    throttle: float
    propulsion_on: bool

    def __eq__(self, other: object):
        if not isinstance(other, ResolvedCommand):
            return NotImplemented
        return (
            np.array_equal(self.orientation, other.orientation)
            and self.throttle == other.throttle
            and self.propulsion_on == other.propulsion_on
        )


@typechecked
def resolve_command(
    state: OrbitalState,
    segment: ControlSegment,
    frames: Mapping[str, SteeringFrame] = FRAMES,
) -> ResolvedCommand:
    """Evaluate a segment's steering frame at the given orbital state.

    Args:
        state: Current orbital state
        segment: Active control segment
        frames: Frame registry to resolve segment.frame_id against

    Returns:
        ResolvedCommand with orientation, throttle and propulsion flag

    Raises:
        UnknownFrameError: If the segment's frame is not registered
        DegenerateOrbitalStateError: If the state cannot define the frame
    """
    frame = get_frame(segment.frame_id, frames)
    orientation = frame.orientation(state, segment.angles)
    return ResolvedCommand(
        orientation=orientation,
        throttle=segment.throttle,
        propulsion_on=segment.propulsion_on,
    )


@typechecked
def command_at(
    schedule: ControlSchedule,
    state: OrbitalState,
    frames: Mapping[str, SteeringFrame] = FRAMES,
) -> ResolvedCommand:
    """Resolve the schedule's active segment at state.time."""
    active = schedule.lookup(state.time)
    return resolve_command(state, active.segment, frames)
