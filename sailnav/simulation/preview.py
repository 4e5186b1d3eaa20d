"""Trajectory preview: forecast steering over a future window.

The preview re-evaluates a control schedule at evenly spaced future times,
propagating the orbital state between samples with a host-provided
propagator. Samples are produced lazily, and iterating the preview again
restarts from the initial state, so the same preview object can feed a
renderer every frame.

Example:
    >>> from sailnav.orbital import KeplerPropagator
    >>> from sailnav.simulation import TrajectoryPreview
    >>>
    >>> preview = TrajectoryPreview(
    ...     schedule=controls.schedule,
    ...     initial_state=state,
    ...     propagator=KeplerPropagator(),
    ...     duration=86400.0,
    ...     n_samples=200,
    ... )
    >>> for sample in preview:
    ...     draw_marker(sample.state.position, sample.orientation)
    >>>
    >>> df = preview.collect().to_dataframe()
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import NamedTuple, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from sailnav.dynamics.state import OrbitalState, rotate_vector
from sailnav.steering.command import resolve_command
from sailnav.steering.frames import FRAMES, SteeringFrame
from sailnav.steering.schedule import ControlSchedule
from sailnav.typecheck import typechecked

# Vehicle long axis in body coordinates
NOSE_AXIS = np.array([0.0, 1.0, 0.0])


# =============================================================================
# Propagator Protocol
# =============================================================================


@runtime_checkable
class Propagator(Protocol):
    """Protocol for orbit propagators supplied by the host."""

    def __call__(self, state: OrbitalState, dt: float) -> OrbitalState:
        """Return the state dt seconds after the given one."""
        ...


# =============================================================================
# Samples
# =============================================================================


class PreviewSample(NamedTuple):
    """Predicted steering at one future time."""
    time: float                       # Universal time [s]
    state: OrbitalState               # Propagated orbital state
    orientation: NDArray[np.float64]  # Commanded orientation quaternion
    throttle: float                   # Throttle (0 to 1)
    propulsion_on: bool               # Sail/engine deployed
    segment_index: int | None         # Active segment (None = default)


@typechecked
@dataclass
class PreviewResult:
    """Collected preview samples with array accessors."""
    samples: list[PreviewSample]

    @property
    def time(self) -> NDArray[np.float64]:
        """Sample times [s]."""
        return np.array([s.time for s in self.samples])

    @property
    def position(self) -> NDArray[np.float64]:
        """Predicted positions [m], shape (N, 3)."""
        return np.array([s.state.position for s in self.samples]).reshape(-1, 3)

    @property
    def radius(self) -> NDArray[np.float64]:
        """Distance from the body center [m]."""
        return np.array([s.state.radius for s in self.samples], dtype=np.float64)

    @property
    def speed(self) -> NDArray[np.float64]:
        """Speed history [m/s]."""
        return np.array([s.state.speed for s in self.samples], dtype=np.float64)

    @property
    def orientation(self) -> NDArray[np.float64]:
        """Commanded orientations, shape (N, 4)."""
        return np.array([s.orientation for s in self.samples]).reshape(-1, 4)

    @property
    def nose_direction(self) -> NDArray[np.float64]:
        """Inertial direction of the vehicle long axis, shape (N, 3)."""
        return np.array([rotate_vector(q, NOSE_AXIS) for q in self.orientation]).reshape(-1, 3)

    @property
    def throttle(self) -> NDArray[np.float64]:
        """Throttle history."""
        return np.array([s.throttle for s in self.samples], dtype=np.float64)

    @property
    def propulsion_on(self) -> NDArray[np.bool_]:
        """Propulsion flag history."""
        return np.array([s.propulsion_on for s in self.samples], dtype=bool)

    def to_dataframe(self):
        """Convert to Polars DataFrame."""
        import polars as pl

        position = self.position
        orientation = self.orientation
        return pl.DataFrame({
            "time": self.time,
            "x": position[:, 0],
            "y": position[:, 1],
            "z": position[:, 2],
            "radius": self.radius,
            "speed": self.speed,
            "q0": orientation[:, 0],
            "q1": orientation[:, 1],
            "q2": orientation[:, 2],
            "q3": orientation[:, 3],
            "throttle": self.throttle,
            "propulsion_on": self.propulsion_on,
            "segment_index": [s.segment_index for s in self.samples],
        })


# =============================================================================
# Preview
# =============================================================================


@typechecked
@dataclass(frozen=True)
class TrajectoryPreview:
    """Lazy, finite, restartable forecast of commanded orientation.

    Attributes:
        schedule: Schedule snapshot to evaluate
        initial_state: Orbital state at the start of the window
        propagator: Advances an orbital state by dt seconds
        duration: Length of the window [s]
        n_samples: Number of samples, including both window ends
        frames: Frame registry used to resolve segments
    """
    schedule: ControlSchedule
    initial_state: OrbitalState
    propagator: Propagator
    duration: float
    n_samples: int = 100
    frames: Mapping[str, SteeringFrame] = field(default_factory=lambda: FRAMES)

    def __post_init__(self) -> None:
        """Validate the window."""
        if not np.isfinite(self.duration) or self.duration < 0:
            raise ValueError(f"Duration must be finite and non-negative, got {self.duration}")
        if self.n_samples < 1:
            raise ValueError(f"Need at least 1 sample, got {self.n_samples}")

    @property
    def times(self) -> NDArray[np.float64]:
        """Sample times [s]."""
        t0 = self.initial_state.time
        if self.n_samples == 1:
            return np.array([t0])
        return np.linspace(t0, t0 + self.duration, self.n_samples)

    def __len__(self) -> int:
        return self.n_samples

    def __iter__(self) -> Iterator[PreviewSample]:
        state = self.initial_state
        for t in self.times:
            t = float(t)
            if t != state.time:
                state = self.propagator(state, t - state.time)
            active = self.schedule.lookup(t)
            command = resolve_command(state, active.segment, self.frames)
            yield PreviewSample(
                time=t,
                state=state,
                orientation=command.orientation,
                throttle=command.throttle,
                propulsion_on=command.propulsion_on,
                segment_index=active.index,
            )

    def collect(self) -> PreviewResult:
        """Evaluate every sample."""
        return PreviewResult(samples=list(self))
