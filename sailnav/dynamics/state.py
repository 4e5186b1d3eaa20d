"""Orbital state and orientation primitives for steering computations.

The orbital state contains:
- Position (3): [x, y, z] relative to the orbited body, inertial basis
- Velocity (3): [vx, vy, vz] relative to the orbited body, inertial basis
- Time (1): universal time [s]

Quaternion convention:
- Scalar-first: q = [q0, q1, q2, q3] where q0 is the scalar part
- Hamilton product; quaternion_multiply(q1, q2) applies q2 first, then q1
- An orientation quaternion rotates body-frame vectors into the inertial frame

Body axes (host convention):
- +Y: vehicle long axis (nose)
- +Z: forward axis used by look_rotation
- +X: completes the right-handed triad
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from sailnav.errors import DegenerateOrbitalStateError
from sailnav.typecheck import typechecked

# Vectors shorter than this cannot define a direction
_MIN_NORM = 1e-12

IDENTITY_QUATERNION = np.array([1.0, 0.0, 0.0, 0.0])
IDENTITY_QUATERNION.flags.writeable = False

# =============================================================================
# Vector Utilities
# =============================================================================


@typechecked
def unit_vector(v: NDArray[np.float64], name: str = "vector") -> NDArray[np.float64]:
    """Return v scaled to unit length.

    Raises:
        DegenerateOrbitalStateError: If v is (numerically) zero or not finite
    """
    norm = np.linalg.norm(v)
    if not np.isfinite(norm) or norm < _MIN_NORM:
        raise DegenerateOrbitalStateError(f"Cannot normalize {name}: |{name}| = {norm}")
    return v / norm


@typechecked
def plane_normal(a: NDArray[np.float64], b: NDArray[np.float64]) -> NDArray[np.float64]:
    """Unit normal of the plane spanned by unit vectors a and b.

    If a and b are parallel the plane is undefined; the normal is then taken
    against the inertial axis least aligned with a, so the result is always
    perpendicular to a.
    """
    n = np.cross(a, b)
    n_mag = np.linalg.norm(n)
    if n_mag > 1e-9:
        return n / n_mag

    fallback = np.eye(3)[int(np.argmin(np.abs(a)))]
    return unit_vector(np.cross(a, fallback), "plane normal")


# =============================================================================
# Quaternion Utilities
# =============================================================================


@typechecked
def normalize_quaternion(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Normalize a quaternion to unit length."""
    norm = np.linalg.norm(q)
    if norm < 1e-10:
        return np.array([1.0, 0.0, 0.0, 0.0])
    return q / norm


@typechecked
def quaternion_multiply(q1: NDArray[np.float64], q2: NDArray[np.float64]) -> NDArray[np.float64]:
    """Multiply two quaternions (Hamilton product).

    The result represents the rotation q2 followed by the rotation q1.

    Args:
        q1: First quaternion [q0, q1, q2, q3]
        q2: Second quaternion [q0, q1, q2, q3]

    Returns:
        Product quaternion q1 * q2
    """
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2

    return np.array([
        w1*w2 - x1*x2 - y1*y2 - z1*z2,
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2,
    ])


@typechecked
def axis_angle_quaternion(angle_deg: float, axis: NDArray[np.float64]) -> NDArray[np.float64]:
    """Quaternion for a right-handed rotation of angle_deg about axis.

    Args:
        angle_deg: Rotation angle [degrees]
        axis: Rotation axis (need not be unit length)

    Returns:
        Unit quaternion [q0, q1, q2, q3]; identity if the axis is zero
    """
    norm = np.linalg.norm(axis)
    if norm < _MIN_NORM:
        return np.array([1.0, 0.0, 0.0, 0.0])
    half = 0.5 * np.radians(angle_deg)
    s = np.sin(half) / norm
    return np.array([np.cos(half), axis[0] * s, axis[1] * s, axis[2] * s])


@typechecked
def rotate_vector(q: NDArray[np.float64], v: NDArray[np.float64]) -> NDArray[np.float64]:
    """Rotate vector v by quaternion q (v' = q v q*)."""
    w = q[0]
    u = q[1:4]
    t = 2.0 * np.cross(u, v)
    return v + w * t + np.cross(u, t)


@typechecked
def quaternion_to_dcm(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert quaternion to Direction Cosine Matrix (DCM).

    Args:
        q: Quaternion [q0, q1, q2, q3] representing rotation from frame A to B

    Returns:
        3x3 DCM that transforms vectors from frame A to frame B
    """
    q = normalize_quaternion(q)
    q0, q1, q2, q3 = q

    return np.array([
        [1 - 2*(q2**2 + q3**2), 2*(q1*q2 - q0*q3), 2*(q1*q3 + q0*q2)],
        [2*(q1*q2 + q0*q3), 1 - 2*(q1**2 + q3**2), 2*(q2*q3 - q0*q1)],
        [2*(q1*q3 - q0*q2), 2*(q2*q3 + q0*q1), 1 - 2*(q1**2 + q2**2)],
    ])


@typechecked
def dcm_to_quaternion(dcm: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert Direction Cosine Matrix to quaternion.

    Uses Shepperd's method for numerical stability.
    """
    trace = np.trace(dcm)

    if trace > 0:
        s = 0.5 / np.sqrt(trace + 1.0)
        q0 = 0.25 / s
        q1 = (dcm[2, 1] - dcm[1, 2]) * s
        q2 = (dcm[0, 2] - dcm[2, 0]) * s
        q3 = (dcm[1, 0] - dcm[0, 1]) * s
    elif dcm[0, 0] > dcm[1, 1] and dcm[0, 0] > dcm[2, 2]:
        s = 2.0 * np.sqrt(1.0 + dcm[0, 0] - dcm[1, 1] - dcm[2, 2])
        q0 = (dcm[2, 1] - dcm[1, 2]) / s
        q1 = 0.25 * s
        q2 = (dcm[0, 1] + dcm[1, 0]) / s
        q3 = (dcm[0, 2] + dcm[2, 0]) / s
    elif dcm[1, 1] > dcm[2, 2]:
        s = 2.0 * np.sqrt(1.0 + dcm[1, 1] - dcm[0, 0] - dcm[2, 2])
        q0 = (dcm[0, 2] - dcm[2, 0]) / s
        q1 = (dcm[0, 1] + dcm[1, 0]) / s
        q2 = 0.25 * s
        q3 = (dcm[1, 2] + dcm[2, 1]) / s
    else:
        s = 2.0 * np.sqrt(1.0 + dcm[2, 2] - dcm[0, 0] - dcm[1, 1])
        q0 = (dcm[1, 0] - dcm[0, 1]) / s
        q1 = (dcm[0, 2] + dcm[2, 0]) / s
        q2 = (dcm[1, 2] + dcm[2, 1]) / s
        q3 = 0.25 * s

    q = np.array([q0, q1, q2, q3])
    return normalize_quaternion(q)


@typechecked
def look_rotation(
    forward: NDArray[np.float64],
    up: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Orientation whose body +Z points along forward and body +Y toward up.

    The up direction is orthogonalized against forward, so body +Y is the
    direction closest to up that is perpendicular to forward.

    Args:
        forward: Desired direction of body +Z (inertial frame)
        up: Desired direction of body +Y (inertial frame)

    Returns:
        Orientation quaternion [q0, q1, q2, q3] (body to inertial)

    Raises:
        DegenerateOrbitalStateError: If forward is zero
    """
    body_z = unit_vector(forward, "forward")

    # Orthogonalize
    body_y = up - np.dot(up, body_z) * body_z
    y_mag = np.linalg.norm(body_y)
    if y_mag > 1e-9:
        body_y = body_y / y_mag
    else:
        # up is parallel to forward: use the inertial axis least aligned with it
        fallback = np.eye(3)[int(np.argmin(np.abs(body_z)))]
        body_y = fallback - np.dot(fallback, body_z) * body_z
        body_y = body_y / np.linalg.norm(body_y)

    body_x = np.cross(body_y, body_z)

    dcm = np.column_stack([body_x, body_y, body_z])
    return dcm_to_quaternion(dcm)


# =============================================================================
# Orbital State
# =============================================================================


@typechecked
@dataclass
class OrbitalState:
    """Instantaneous orbital state supplied by the host every tick.

    Attributes:
        position: [x, y, z] relative to the orbited body [m]
        velocity: [vx, vy, vz] relative to the orbited body [m/s]
        time: universal time [s]
    """
    position: NDArray[np.float64]
    velocity: NDArray[np.float64]
    time: float = 0.0

    def __post_init__(self) -> None:
        """Validate state vectors."""
        self.position = np.asarray(self.position, dtype=np.float64)
        self.velocity = np.asarray(self.velocity, dtype=np.float64)
        self.time = float(self.time)

        if self.position.shape != (3,):
            raise ValueError(f"Position must be shape (3,), got {self.position.shape}")
        if self.velocity.shape != (3,):
            raise ValueError(f"Velocity must be shape (3,), got {self.velocity.shape}")
        if not (np.all(np.isfinite(self.position)) and np.all(np.isfinite(self.velocity))):
            raise ValueError("Position and velocity must be finite")
        if not np.isfinite(self.time):
            raise ValueError(f"Time must be finite, got {self.time}")

    @classmethod
    def circular(
        cls,
        radius: float,
        mu: float = 3.986004418e14,  # Earth
        inclination_deg: float = 0.0,
        time: float = 0.0,
    ) -> "OrbitalState":
        """Create a state on a circular orbit at the ascending node.

        Position lies along +X; with zero inclination velocity is along +Y.

        Args:
            radius: Orbit radius from the body center [m]
            mu: Gravitational parameter of the body [m^3/s^2]
            inclination_deg: Orbit inclination [degrees]
            time: Universal time of the state [s]
        """
        speed = np.sqrt(mu / radius)
        inc = np.radians(inclination_deg)

        position = np.array([radius, 0.0, 0.0])
        velocity = np.array([0.0, speed * np.cos(inc), speed * np.sin(inc)])

        return cls(position=position, velocity=velocity, time=time)

    @property
    def radius(self) -> float:
        """Distance from the body center [m]."""
        return float(np.linalg.norm(self.position))

    @property
    def speed(self) -> float:
        """Speed magnitude [m/s]."""
        return float(np.linalg.norm(self.velocity))
