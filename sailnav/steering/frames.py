"""Steering frames: orbital state + angle triple -> commanded orientation.

Each frame derives a base orientation from the orbital state and composes
it with a local rotation built from three angles in degrees. The set of
frames is fixed; they are registered once at import in FRAMES.

Orbital basis used by the frames:
- r: unit position (radial)
- v: unit velocity
- h: unit(r x v), orbit angular momentum (normal); when r and v are
  parallel, any unit vector perpendicular to r
- t: unit(h x r), tangential

Frames available:
- RTN: Radial/Tangential/Normal with Cone/Clock/Flatspin angles
- ICN: In-track/Cross-track/Normal with FPA/Azimuth/Flatspin angles
- WORLD: Inertial (orbit independent) with Azimuth/Elevation/Flatspin
- CCWF: Counterclockwise frame, a mirrored RTN built from position only

Example:
    >>> from sailnav.steering import get_frame
    >>> from sailnav.dynamics import OrbitalState
    >>>
    >>> state = OrbitalState.circular(radius=7.0e6)
    >>> rtn = get_frame("RTN")
    >>> q = rtn.orientation(state, rtn.angle_defaults)
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import ClassVar

import numpy as np
from numpy.typing import NDArray

from sailnav.dynamics.state import (
    IDENTITY_QUATERNION,
    OrbitalState,
    axis_angle_quaternion,
    look_rotation,
    plane_normal,
    quaternion_multiply,
    rotate_vector,
    unit_vector,
)
from sailnav.errors import InvalidAnglesError, UnknownFrameError
from sailnav.typecheck import typechecked

Angles = tuple[float, float, float]

# Local axes shared by the angle laws (body coordinates)
_SAIL_RADIAL = np.array([0.0, -1.0, 0.0])
_SAIL_NORMAL = np.array([1.0, 0.0, 0.0])
_LOCAL_VELOCITY = np.array([0.0, 1.0, 0.0])
_LOCAL_MOMENTUM = np.array([1.0, 0.0, 0.0])


# =============================================================================
# Angle Validation
# =============================================================================


def validate_angles(angles: Sequence[float]) -> Angles:
    """Check an angle triple and return it as a tuple of floats.

    Raises:
        InvalidAnglesError: If there are not exactly three finite angles
    """
    try:
        values = tuple(float(a) for a in angles)
    except (TypeError, ValueError) as exc:
        raise InvalidAnglesError(f"Angles must be numeric, got {angles!r}") from exc

    if len(values) != 3:
        raise InvalidAnglesError(f"Expected 3 angles, got {len(values)}")
    if not all(np.isfinite(values)):
        raise InvalidAnglesError(f"Angles must be finite, got {values}")
    return values


# =============================================================================
# Local Rotation Laws
# =============================================================================


def _cone_clock_rotation(cone: float, clock: float, flatspin: float) -> NDArray[np.float64]:
    """Clock about radial, then cone about the clocked normal, then flatspin."""
    q_clock = axis_angle_quaternion(clock, _SAIL_RADIAL)
    r_clock = rotate_vector(q_clock, _SAIL_RADIAL)
    n_clock = rotate_vector(q_clock, _SAIL_NORMAL)

    q_cone = axis_angle_quaternion(cone, n_clock)
    r_cone = rotate_vector(q_cone, r_clock)

    q_fs = axis_angle_quaternion(flatspin, r_cone)

    return quaternion_multiply(q_fs, quaternion_multiply(q_cone, q_clock))


def _azimuth_elevation_rotation(azimuth: float, elevation: float, flatspin: float) -> NDArray[np.float64]:
    """Azimuth about velocity, then elevation about the rotated momentum axis, then flatspin."""
    q_az = axis_angle_quaternion(azimuth, _LOCAL_VELOCITY)
    v_az = rotate_vector(q_az, _LOCAL_VELOCITY)
    h_az = rotate_vector(q_az, _LOCAL_MOMENTUM)

    q_el = axis_angle_quaternion(elevation, h_az)
    v_el = rotate_vector(q_el, v_az)

    q_fs = axis_angle_quaternion(flatspin, v_el)

    return quaternion_multiply(q_fs, quaternion_multiply(q_el, q_az))


# =============================================================================
# Frame Interface
# =============================================================================


@dataclass(frozen=True)
class FrameInfo:
    """Description of a frame for configuration surfaces.

    Attributes:
        id: Registry key
        name: Display name
        summary: Short description of the axes
        angle_labels: Names of the three angles
        angle_defaults: Default values of the three angles [deg]
    """
    id: str
    name: str
    summary: str
    angle_labels: tuple[str, str, str]
    angle_defaults: Angles


class SteeringFrame(ABC):
    """Base class for steering frames.

    Subclasses provide base_orientation and local_orientation; the
    combined orientation is base * local unless a frame says otherwise.
    Frames hold no per-instance state.
    """
    id: ClassVar[str]
    name: ClassVar[str]
    summary: ClassVar[str]
    angle_labels: ClassVar[tuple[str, str, str]]
    angle_defaults: ClassVar[Angles]

    @abstractmethod
    def base_orientation(self, state: OrbitalState) -> NDArray[np.float64]:
        """Orientation of the frame axes for the given orbital state."""
        ...

    @abstractmethod
    def local_orientation(self, angles: Sequence[float]) -> NDArray[np.float64]:
        """Rotation of the vehicle relative to the frame axes."""
        ...

    def orientation(self, state: OrbitalState, angles: Sequence[float]) -> NDArray[np.float64]:
        """Commanded orientation: base applied first, local in the base frame."""
        return quaternion_multiply(
            self.base_orientation(state),
            self.local_orientation(angles),
        )

    def info(self) -> FrameInfo:
        """Describe this frame."""
        return FrameInfo(
            id=self.id,
            name=self.name,
            summary=self.summary,
            angle_labels=self.angle_labels,
            angle_defaults=self.angle_defaults,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def __str__(self) -> str:
        return self.name


# =============================================================================
# Frames
# =============================================================================


class RTNFrame(SteeringFrame):
    """Radial/tangential/normal frame with cone/clock/flatspin angles.

    Base: forward = t, up = r (body +X ends up along h).
    Local: clock about radial, cone about the clocked normal, flatspin
    about the resulting radial axis.
    Combined: base * local.
    """
    id = "RTN"
    name = "RTN"
    summary = "Radial/Tangential/Normal"
    angle_labels = ("Cone", "Clock", "Flatspin")
    angle_defaults = (90.0, 0.0, 0.0)

    @typechecked
    def base_orientation(self, state: OrbitalState) -> NDArray[np.float64]:
        r = unit_vector(state.position, "position")
        v = unit_vector(state.velocity, "velocity")
        h = plane_normal(r, v)
        t = unit_vector(np.cross(h, r), "tangential")
        return look_rotation(t, r)

    def local_orientation(self, angles: Sequence[float]) -> NDArray[np.float64]:
        cone, clock, flatspin = validate_angles(angles)
        return _cone_clock_rotation(cone, clock, flatspin)


class ICNFrame(SteeringFrame):
    """In-track/cross-track/normal frame with FPA/azimuth/flatspin angles.

    Base: forward = velocity rotated into the cross-track axis
    (v_z, v_y, -v_x), up = v.
    Local: azimuth (angle 1) about velocity, flight path angle (angle 0)
    about the rotated momentum axis, flatspin about the result.
    Combined: base * local.
    """
    id = "ICN"
    name = "ICN"
    summary = "In-track/Cross-track/Normal"
    angle_labels = ("FPA", "Az", "Flatspin")
    angle_defaults = (0.0, 0.0, 0.0)

    @typechecked
    def base_orientation(self, state: OrbitalState) -> NDArray[np.float64]:
        v = unit_vector(state.velocity, "velocity")
        cross_track = np.array([v[2], v[1], -v[0]])
        return look_rotation(cross_track, v)

    def local_orientation(self, angles: Sequence[float]) -> NDArray[np.float64]:
        fpa, azimuth, flatspin = validate_angles(angles)
        return _azimuth_elevation_rotation(azimuth, fpa, flatspin)


class WorldFrame(SteeringFrame):
    """Inertial frame with azimuth/elevation/flatspin angles.

    Base: identity for every orbital state.
    Local: the ICN law with azimuth (angle 0) and elevation (angle 1).
    Combined: local alone.
    """
    id = "WORLD"
    name = "Worldspace"
    summary = "Azimuth/Elevation/Normal"
    angle_labels = ("Az", "Ele", "Flatspin")
    angle_defaults = (0.0, 90.0, 0.0)

    @typechecked
    def base_orientation(self, state: OrbitalState) -> NDArray[np.float64]:
        return IDENTITY_QUATERNION.copy()

    def local_orientation(self, angles: Sequence[float]) -> NDArray[np.float64]:
        azimuth, elevation, flatspin = validate_angles(angles)
        return _azimuth_elevation_rotation(azimuth, elevation, flatspin)


class CCWFrame(SteeringFrame):
    """Counterclockwise frame: RTN mirrored, derived from position only.

    Base: the tangential axis comes from the mirrored radial
    (-r_z, r_y, r_x) instead of the velocity; forward = r, up = t (the
    reverse of RTN's axis assignment).
    Local: the RTN cone/clock/flatspin law.
    Combined: base * local, base applied first with no interleaving.
    """
    id = "CCWF"
    name = "Counterclockwise"
    summary = "Azimuth/Elevation/Normal"
    angle_labels = ("Az", "Ele", "Flatspin")
    angle_defaults = (90.0, 0.0, 0.0)

    @typechecked
    def base_orientation(self, state: OrbitalState) -> NDArray[np.float64]:
        r = unit_vector(state.position, "position")
        ccw = np.array([-r[2], r[1], r[0]])
        h = plane_normal(r, ccw)
        t = unit_vector(np.cross(h, r), "tangential")
        return look_rotation(r, t)

    def local_orientation(self, angles: Sequence[float]) -> NDArray[np.float64]:
        cone, clock, flatspin = validate_angles(angles)
        return _cone_clock_rotation(cone, clock, flatspin)


# =============================================================================
# Registry
# =============================================================================

FRAMES: Mapping[str, SteeringFrame] = MappingProxyType({
    frame.id: frame
    for frame in (RTNFrame(), ICNFrame(), WorldFrame(), CCWFrame())
})


def get_frame(frame_id: str, frames: Mapping[str, SteeringFrame] = FRAMES) -> SteeringFrame:
    """Look up a frame by id.

    Args:
        frame_id: Registry key (e.g., "RTN")
        frames: Registry to search (defaults to the built-in frames)

    Raises:
        UnknownFrameError: If the id is not registered
    """
    try:
        return frames[frame_id]
    except KeyError:
        raise UnknownFrameError(frame_id, tuple(frames)) from None


def list_frames(frames: Mapping[str, SteeringFrame] = FRAMES) -> list[FrameInfo]:
    """Describe every registered frame, in registry order."""
    return [frame.info() for frame in frames.values()]
