"""Per-tick navigator: drives the host actuators from the control schedule.

Every physics step the host calls Navigator.update with the current orbital
state. The navigator looks up the active segment, resolves its steering
frame, and applies the command to the attitude and propulsion actuators.

If a segment cannot be resolved (for example its frame was renamed in a
newer registry) the navigator keeps flying the previous command and logs a
warning instead of interrupting the tick loop.

Example:
    >>> from sailnav import Controls, Navigator
    >>>
    >>> controls = Controls(epoch=ut_now)
    >>> nav = Navigator(controls, attitude=vessel_attitude, propulsion=sail)
    >>> nav.locked = True
    >>>
    >>> # In the host's fixed update
    >>> nav.update(OrbitalState(position=r, velocity=v, time=ut))
"""

import logging
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from sailnav.dynamics.state import OrbitalState
from sailnav.errors import UnknownFrameError
from sailnav.steering.command import ResolvedCommand, resolve_command
from sailnav.steering.frames import FRAMES, SteeringFrame
from sailnav.steering.schedule import Controls
from sailnav.typecheck import typechecked

logger = logging.getLogger(__name__)

# =============================================================================
# Actuator Protocols
# =============================================================================


@runtime_checkable
class AttitudeActuator(Protocol):
    """Host attitude actuator (sets the vehicle orientation)."""

    def set_orientation(self, orientation: NDArray[np.float64]) -> None:
        """Point the vehicle: quaternion [q0, q1, q2, q3], body to inertial."""
        ...


@runtime_checkable
class PropulsionActuator(Protocol):
    """Host propulsion actuator (engine throttle and sail deployment)."""

    @property
    def is_deployed(self) -> bool:
        """Whether the sail/engine is currently deployed."""
        ...

    def set_throttle(self, throttle: float) -> None:
        """Set throttle (0 to 1)."""
        ...

    def deploy(self) -> None:
        """Deploy the sail / activate the engine."""
        ...

    def retract(self) -> None:
        """Retract the sail / shut down the engine."""
        ...


# =============================================================================
# Navigator
# =============================================================================


@typechecked
class Navigator:
    """Applies the scheduled steering and throttle every tick.

    Attributes:
        controls: Live schedule handle
        attitude: Attitude actuator, or None to skip attitude commands
        propulsion: Propulsion actuators to throttle and deploy/retract
        frames: Frame registry used to resolve segments
        locked: Actuate only while True (attitude hold engaged)
        throttle_enabled: Whether throttle commands are sent
    """

    def __init__(
        self,
        controls: Controls,
        attitude: AttitudeActuator | None = None,
        propulsion: list[PropulsionActuator] | None = None,
        frames: Mapping[str, SteeringFrame] = FRAMES,
        locked: bool = False,
        throttle_enabled: bool = True,
    ) -> None:
        self.controls = controls
        self.attitude = attitude
        self.propulsion = propulsion if propulsion is not None else []
        self.frames = frames
        self.locked = locked
        self.throttle_enabled = throttle_enabled

        self._last_command: ResolvedCommand | None = None
        self._last_error: str | None = None

    @property
    def last_command(self) -> ResolvedCommand | None:
        """Most recent successfully resolved command."""
        return self._last_command

    @property
    def last_error(self) -> str | None:
        """Diagnostic from the most recent failed resolution, if any."""
        return self._last_error

    def resolve(self, state: OrbitalState) -> ResolvedCommand | None:
        """Resolve the command for state.time, holding the last one on failure.

        Only an unregistered frame id is held over; segment angles are
        checked when the segment is built. Degenerate orbital states are a
        caller error and are not caught.

        Returns:
            The new command, the previous command if resolution failed, or
            None if nothing has ever resolved
        """
        active = self.controls.lookup(state.time)
        try:
            command = resolve_command(state, active.segment, self.frames)
        except UnknownFrameError as exc:
            if str(exc) != self._last_error:
                logger.warning(f"Holding previous command at UT {state.time:.1f}: {exc}")
            self._last_error = str(exc)
            return self._last_command

        if self._last_error is not None:
            logger.info(f"Steering resolved again at UT {state.time:.1f}")
            self._last_error = None
        self._last_command = command
        return command

    def update(self, state: OrbitalState) -> ResolvedCommand | None:
        """Resolve the active command and apply it to the actuators."""
        if not self.locked:
            return None

        command = self.resolve(state)
        if command is None:
            return None

        self.apply(command)
        return command

    def apply(self, command: ResolvedCommand) -> None:
        """Send a command to the attitude and propulsion actuators."""
        if self.attitude is not None:
            self.attitude.set_orientation(command.orientation)

        for actuator in self.propulsion:
            if self.throttle_enabled:
                actuator.set_throttle(command.throttle)
            # Only toggle deployment on change
            if command.propulsion_on != actuator.is_deployed:
                if command.propulsion_on:
                    logger.info("Deploying propulsion")
                    actuator.deploy()
                else:
                    logger.info("Retracting propulsion")
                    actuator.retract()
