"""Tests for steering frames.

Reference orientations are worked by hand for a circular equatorial orbit
with position along +X and velocity along +Y, so that
r = +X, t = +Y, h = +Z.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from sailnav.dynamics.state import OrbitalState, quaternion_to_dcm, rotate_vector
from sailnav.errors import DegenerateOrbitalStateError, InvalidAnglesError, UnknownFrameError
from sailnav.steering.frames import FRAMES, SteeringFrame, get_frame, list_frames, validate_angles

NOSE = np.array([0.0, 1.0, 0.0])


def _state(position, velocity, time=0.0):
    return OrbitalState(
        position=np.array(position, dtype=np.float64),
        velocity=np.array(velocity, dtype=np.float64),
        time=time,
    )


def _assert_same_rotation(q, dcm):
    """Compare up to quaternion sign."""
    assert_allclose(quaternion_to_dcm(q), np.asarray(dcm, dtype=np.float64), atol=1e-12)


def _nose(frame_id, state, angles):
    return rotate_vector(FRAMES[frame_id].orientation(state, angles), NOSE)


def _angle_between(a, b):
    cos = np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b))
    return np.degrees(np.arccos(np.clip(cos, -1.0, 1.0)))


@pytest.fixture
def equatorial():
    """r along +X, v along +Y."""
    return _state([7.0e6, 0.0, 0.0], [0.0, 7546.0, 0.0])


@pytest.fixture
def generic():
    """State with no special alignment to the inertial axes."""
    return _state([7.0e6, 1.0e6, 2.0e6], [-1000.0, 7000.0, 500.0], time=500.0)


# =============================================================================
# General Properties
# =============================================================================


class TestFrameProperties:
    """Properties every frame must satisfy."""

    @pytest.mark.parametrize("frame_id", ["RTN", "ICN", "WORLD", "CCWF"])
    def test_unit_norm(self, frame_id, generic):
        """Orientation is a unit quaternion over a grid of angles."""
        frame = FRAMES[frame_id]
        for a0 in (-180.0, -45.0, 0.0, 30.0, 90.0, 270.0):
            for a1 in (-90.0, 0.0, 15.0, 360.0):
                for a2 in (0.0, 123.0):
                    q = frame.orientation(generic, (a0, a1, a2))
                    assert q.shape == (4,)
                    assert_allclose(np.linalg.norm(q), 1.0, atol=1e-12)

    @pytest.mark.parametrize("frame_id", ["RTN", "ICN", "WORLD", "CCWF"])
    def test_deterministic(self, frame_id, generic):
        """The same inputs give bit-identical output."""
        frame = FRAMES[frame_id]
        angles = (12.0, 34.0, 56.0)
        assert np.array_equal(frame.orientation(generic, angles), frame.orientation(generic, angles))

    @pytest.mark.parametrize("frame_id", ["RTN", "ICN", "WORLD", "CCWF"])
    def test_flatspin_keeps_nose(self, frame_id, generic):
        """Flatspin rolls the vehicle about its own long axis."""
        nose_a = _nose(frame_id, generic, (25.0, 40.0, 0.0))
        nose_b = _nose(frame_id, generic, (25.0, 40.0, 75.0))
        assert_allclose(nose_a, nose_b, atol=1e-12)

    @pytest.mark.parametrize("frame_id", ["RTN", "ICN", "WORLD", "CCWF"])
    def test_orientation_is_base_times_local(self, frame_id, generic):
        """Body vectors pass through the local rotation, then the base."""
        frame = FRAMES[frame_id]
        angles = (10.0, 20.0, 30.0)
        v = np.array([0.3, -0.5, 0.8])

        expected = rotate_vector(
            frame.base_orientation(generic),
            rotate_vector(frame.local_orientation(angles), v),
        )
        assert_allclose(rotate_vector(frame.orientation(generic, angles), v), expected, atol=1e-12)


# =============================================================================
# RTN
# =============================================================================


class TestRTN:
    """Radial/tangential/normal frame."""

    def test_base_reference(self, equatorial):
        """Body X, Y, Z map to h, r, t."""
        _assert_same_rotation(
            FRAMES["RTN"].base_orientation(equatorial),
            [[0, 1, 0], [0, 0, 1], [1, 0, 0]],
        )

    def test_defaults_reference(self, equatorial):
        """Default angles are a -90 deg rotation about inertial +Y."""
        q = FRAMES["RTN"].orientation(equatorial, FRAMES["RTN"].angle_defaults)

        _assert_same_rotation(q, [[0, 0, -1], [0, 1, 0], [1, 0, 0]])
        # Nose along the direction of travel
        assert_allclose(rotate_vector(q, NOSE), [0, 1, 0], atol=1e-12)

    def test_zero_cone_points_radially(self, generic):
        """With zero cone the nose is radial for any clock angle."""
        r = generic.position / np.linalg.norm(generic.position)
        for clock in (0.0, 37.0, 200.0):
            assert_allclose(_nose("RTN", generic, (0.0, clock, 12.0)), r, atol=1e-12)

    @pytest.mark.parametrize("cone", [10.0, 35.0, 60.0])
    def test_cone_angle_from_radial(self, cone, generic):
        """The cone angle is the angle between the nose and the radial."""
        nose = _nose("RTN", generic, (cone, 80.0, 0.0))
        assert_allclose(_angle_between(nose, generic.position), cone, atol=1e-9)

    def test_zero_velocity_is_degenerate(self):
        """RTN needs a velocity."""
        with pytest.raises(DegenerateOrbitalStateError):
            FRAMES["RTN"].orientation(_state([7.0e6, 0.0, 0.0], [0.0, 0.0, 0.0]), (90.0, 0.0, 0.0))

    def test_radial_velocity_falls_back(self):
        """Velocity parallel to position still gives a valid orientation."""
        state = _state([7.0e6, 0.0, 0.0], [100.0, 0.0, 0.0])
        q = FRAMES["RTN"].orientation(state, FRAMES["RTN"].angle_defaults)

        assert_allclose(np.linalg.norm(q), 1.0, atol=1e-12)
        # Normal taken against +Y, so the base matches the equatorial case
        _assert_same_rotation(
            FRAMES["RTN"].base_orientation(state),
            [[0, 1, 0], [0, 0, 1], [1, 0, 0]],
        )
        assert_allclose(np.dot(rotate_vector(q, NOSE), [1, 0, 0]), 0.0, atol=1e-12)

    def test_integer_angles(self, generic):
        """Whole-degree angles may be given as ints."""
        assert np.array_equal(
            FRAMES["RTN"].orientation(generic, (90, 0, 0)),
            FRAMES["RTN"].orientation(generic, (90.0, 0.0, 0.0)),
        )


# =============================================================================
# ICN
# =============================================================================


class TestICN:
    """In-track/cross-track/normal frame."""

    @pytest.fixture
    def state(self):
        """Velocity in the XZ plane, where the cross-track axis is exactly normal to it."""
        return _state([-5.6e6, 0.0, 4.2e6], [4500.0, 0.0, 6000.0])

    def test_defaults_point_along_velocity(self, state):
        """Zero angles put the nose on the velocity vector."""
        v = state.velocity / np.linalg.norm(state.velocity)
        assert_allclose(_nose("ICN", state, (0.0, 0.0, 0.0)), v, atol=1e-12)

    def test_azimuth_alone_keeps_nose(self, state):
        """Azimuth turns about the velocity, so the nose stays put."""
        v = state.velocity / np.linalg.norm(state.velocity)
        assert_allclose(_nose("ICN", state, (0.0, 40.0, 0.0)), v, atol=1e-12)

    @pytest.mark.parametrize("fpa", [5.0, 30.0, 80.0])
    def test_flight_path_angle(self, fpa, state):
        """The first angle tilts the nose away from the velocity."""
        nose = _nose("ICN", state, (fpa, 0.0, 0.0))
        assert_allclose(_angle_between(nose, state.velocity), fpa, atol=1e-9)

    def test_independent_of_position(self, state):
        """ICN depends on velocity alone."""
        moved = _state([1.0e7, 2.0e6, -3.0e6], state.velocity)
        assert np.array_equal(
            FRAMES["ICN"].orientation(state, (10.0, 20.0, 30.0)),
            FRAMES["ICN"].orientation(moved, (10.0, 20.0, 30.0)),
        )

    def test_zero_velocity_is_degenerate(self):
        """ICN needs a velocity."""
        with pytest.raises(DegenerateOrbitalStateError):
            FRAMES["ICN"].base_orientation(_state([7.0e6, 0.0, 0.0], [0.0, 0.0, 0.0]))


# =============================================================================
# WORLD
# =============================================================================


class TestWorld:
    """Inertial frame."""

    def test_base_is_identity(self, equatorial, generic):
        """Base orientation ignores the orbital state entirely."""
        zero = _state([0.0, 0.0, 0.0], [0.0, 0.0, 0.0])
        for state in (equatorial, generic, zero):
            assert_allclose(FRAMES["WORLD"].base_orientation(state), [1, 0, 0, 0])

    def test_defaults_point_up(self, generic):
        """Default elevation of 90 deg points the nose along inertial +Z."""
        assert_allclose(_nose("WORLD", generic, FRAMES["WORLD"].angle_defaults), [0, 0, 1], atol=1e-12)

    def test_azimuth_at_full_elevation(self, generic):
        """Azimuth swings the raised nose within the XZ plane."""
        az = np.radians(30.0)
        assert_allclose(
            _nose("WORLD", generic, (30.0, 90.0, 0.0)),
            [np.sin(az), 0.0, np.cos(az)],
            atol=1e-12,
        )

    def test_orientation_equals_local(self, generic):
        """Combined orientation is the local rotation alone."""
        angles = (15.0, 25.0, 35.0)
        assert_allclose(
            FRAMES["WORLD"].orientation(generic, angles),
            FRAMES["WORLD"].local_orientation(angles),
            atol=1e-15,
        )


# =============================================================================
# CCWF
# =============================================================================


class TestCCWF:
    """Counterclockwise frame."""

    def test_base_reference(self, equatorial):
        """Body X, Y, Z map to +Y, +Z, +X for a position along +X."""
        _assert_same_rotation(
            FRAMES["CCWF"].base_orientation(equatorial),
            [[0, 0, 1], [1, 0, 0], [0, 1, 0]],
        )

    def test_defaults_point_radially(self, generic):
        """Default cone of 90 deg puts the nose along the radial."""
        r = generic.position / np.linalg.norm(generic.position)
        assert_allclose(_nose("CCWF", generic, FRAMES["CCWF"].angle_defaults), r, atol=1e-12)

    def test_independent_of_velocity(self, generic):
        """CCWF is built from position only."""
        other = _state(generic.position, [0.0, 0.0, 0.0])
        assert np.array_equal(
            FRAMES["CCWF"].orientation(generic, (20.0, 30.0, 40.0)),
            FRAMES["CCWF"].orientation(other, (20.0, 30.0, 40.0)),
        )

    def test_zero_position_is_degenerate(self):
        """CCWF needs a position."""
        with pytest.raises(DegenerateOrbitalStateError):
            FRAMES["CCWF"].base_orientation(_state([0.0, 0.0, 0.0], [0.0, 7546.0, 0.0]))

    def test_position_on_mirror_axis_falls_back(self):
        """A position along +Y mirrors onto itself; the normal falls back to -Z."""
        state = _state([0.0, 7.0e6, 0.0], [7546.0, 0.0, 0.0])
        q = FRAMES["CCWF"].orientation(state, FRAMES["CCWF"].angle_defaults)

        assert_allclose(np.linalg.norm(q), 1.0, atol=1e-12)
        _assert_same_rotation(
            FRAMES["CCWF"].base_orientation(state),
            [[0, 1, 0], [0, 0, 1], [1, 0, 0]],
        )
        assert_allclose(rotate_vector(q, NOSE), [0, 1, 0], atol=1e-12)


# =============================================================================
# Angles and Registry
# =============================================================================


class TestAngles:
    """Angle triple validation."""

    def test_coerces_to_floats(self):
        """Valid triples come back as float tuples."""
        assert validate_angles([1, 2.5, -3]) == (1.0, 2.5, -3.0)

    @pytest.mark.parametrize("angles", [(), (1.0, 2.0), (1.0, 2.0, 3.0, 4.0)])
    def test_wrong_arity(self, angles, generic):
        """Exactly three angles are required."""
        with pytest.raises(InvalidAnglesError, match="Expected 3"):
            FRAMES["RTN"].orientation(generic, angles)

    @pytest.mark.parametrize("bad", [np.nan, np.inf, -np.inf])
    def test_non_finite(self, bad, generic):
        """NaN and infinite angles are rejected."""
        with pytest.raises(InvalidAnglesError, match="finite"):
            FRAMES["ICN"].orientation(generic, (0.0, bad, 0.0))

    def test_non_numeric(self):
        """Strings are not angles."""
        with pytest.raises(InvalidAnglesError):
            validate_angles(("a", "b", "c"))

    def test_is_value_error(self):
        """Callers can catch invalid angles as ValueError."""
        with pytest.raises(ValueError):
            validate_angles((1.0,))


class TestRegistry:
    """Frame registry and metadata."""

    def test_order_and_metadata(self):
        """Frames are listed in registration order with their labels."""
        infos = list_frames()

        assert [i.id for i in infos] == ["RTN", "ICN", "WORLD", "CCWF"]
        assert [i.name for i in infos] == ["RTN", "ICN", "Worldspace", "Counterclockwise"]
        assert infos[0].angle_labels == ("Cone", "Clock", "Flatspin")
        assert infos[1].angle_labels == ("FPA", "Az", "Flatspin")
        assert infos[2].angle_defaults == (0.0, 90.0, 0.0)
        assert infos[3].summary == "Azimuth/Elevation/Normal"

    def test_get_frame(self):
        """Frames are found by id."""
        assert get_frame("ICN") is FRAMES["ICN"]
        assert str(get_frame("WORLD")) == "Worldspace"

    def test_unknown_frame(self):
        """Unknown ids raise with the available ids attached."""
        with pytest.raises(UnknownFrameError) as exc_info:
            get_frame("LVLH")

        assert exc_info.value.frame_id == "LVLH"
        assert "RTN" in exc_info.value.available
        assert isinstance(exc_info.value, LookupError)

    def test_custom_registry(self):
        """A reduced registry hides the missing frames."""
        frames = {"RTN": FRAMES["RTN"]}
        assert [i.id for i in list_frames(frames)] == ["RTN"]
        with pytest.raises(UnknownFrameError):
            get_frame("ICN", frames)

    def test_registry_is_read_only(self):
        """The built-in registry cannot be modified."""
        with pytest.raises(TypeError):
            FRAMES["LVLH"] = FRAMES["RTN"]


class TestFrameInterface:
    """The abstract frame base class."""

    def test_base_class_is_abstract(self):
        """SteeringFrame itself cannot be instantiated."""
        with pytest.raises(TypeError):
            SteeringFrame()

    def test_incomplete_frame_rejected(self):
        """A frame without a local rotation law cannot be instantiated."""

        class BaseOnly(SteeringFrame):
            id = "BASE"
            name = "Base only"
            summary = "Identity base"
            angle_labels = ("A", "B", "C")
            angle_defaults = (0.0, 0.0, 0.0)

            def base_orientation(self, state):
                return np.array([1.0, 0.0, 0.0, 0.0])

        with pytest.raises(TypeError, match="local_orientation"):
            BaseOnly()

    def test_complete_frame_registers(self, generic):
        """A frame providing both laws works in a custom registry."""

        class Fixed(SteeringFrame):
            id = "FIXED"
            name = "Fixed"
            summary = "Identity"
            angle_labels = ("A", "B", "C")
            angle_defaults = (0.0, 0.0, 0.0)

            def base_orientation(self, state):
                return np.array([1.0, 0.0, 0.0, 0.0])

            def local_orientation(self, angles):
                return np.array([1.0, 0.0, 0.0, 0.0])

        frames = {"FIXED": Fixed()}
        assert_allclose(get_frame("FIXED", frames).orientation(generic, (0, 0, 0)), [1, 0, 0, 0])
        assert list_frames(frames)[0].name == "Fixed"
