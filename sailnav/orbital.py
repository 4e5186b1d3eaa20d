"""Orbital mechanics utilities with numba optimization.

Provides the two-body propagation used to forecast steering over a future
window. Core functions are numba-compiled for use in tight preview loops.

Key functions:
- propagate_kepler: Two-body state propagation (universal variables)
- circular_velocity: Circular orbit speed at altitude
- orbital_period: Period from semi-major axis

Example:
    >>> from sailnav.orbital import KeplerPropagator
    >>> from sailnav.dynamics import OrbitalState
    >>>
    >>> state = OrbitalState.circular(radius=7.0e6)
    >>> propagator = KeplerPropagator()
    >>> later = propagator(state, 600.0)
    >>> print(f"UT: {later.time:.0f} s")
"""

from dataclasses import dataclass

import numpy as np
from numba import njit
from numpy.typing import NDArray

from sailnav.dynamics.state import OrbitalState
from sailnav.typecheck import typechecked

# =============================================================================
# Constants
# =============================================================================

MU_EARTH: float = 3.986004418e14  # Gravitational parameter [m^3/s^2]
R_EARTH_EQ: float = 6378137.0  # Equatorial radius [m]

# Universal-variable solver settings
_KEPLER_TOL: float = 1e-10
_KEPLER_MAX_ITER: int = 100


# =============================================================================
# Core Numba Functions
# =============================================================================


@njit(cache=True, fastmath=True)
def _stumpff(z: float) -> tuple[float, float]:
    """Stumpff functions C(z), S(z)."""
    if z > 1e-6:
        s = np.sqrt(z)
        return (1.0 - np.cos(s)) / z, (s - np.sin(s)) / (s * s * s)
    if z < -1e-6:
        s = np.sqrt(-z)
        return (np.cosh(s) - 1.0) / (-z), (np.sinh(s) - s) / (s * s * s)
    return 0.5 - z / 24.0, 1.0 / 6.0 - z / 120.0


@njit(cache=True, fastmath=True)
def _propagate_kepler_core(
    rx: float, ry: float, rz: float,
    vx: float, vy: float, vz: float,
    dt: float,
    mu: float = MU_EARTH,
) -> tuple[float, float, float, float, float, float]:
    """Numba-optimized two-body propagation with universal variables.

    Returns tuple of:
        (rx, ry, rz, vx, vy, vz) after dt seconds
    """
    if dt == 0.0:
        return rx, ry, rz, vx, vy, vz

    r0 = np.sqrt(rx*rx + ry*ry + rz*rz)
    v0_sq = vx*vx + vy*vy + vz*vz
    vr0 = (rx*vx + ry*vy + rz*vz) / r0
    sqrt_mu = np.sqrt(mu)

    # Reciprocal of semi-major axis (negative for hyperbolic)
    alpha = 2.0 / r0 - v0_sq / mu

    # Newton iteration on the universal anomaly
    chi = sqrt_mu * abs(alpha) * dt
    for _ in range(_KEPLER_MAX_ITER):
        chi_sq = chi * chi
        z = alpha * chi_sq
        c, s = _stumpff(z)

        f_chi = (r0 * vr0 / sqrt_mu * chi_sq * c
                 + (1.0 - alpha * r0) * chi_sq * chi * s
                 + r0 * chi
                 - sqrt_mu * dt)
        df_chi = (r0 * vr0 / sqrt_mu * chi * (1.0 - z * s)
                  + (1.0 - alpha * r0) * chi_sq * c
                  + r0)

        ratio = f_chi / df_chi
        chi -= ratio
        if abs(ratio) < _KEPLER_TOL * max(1.0, abs(chi)):
            break

    chi_sq = chi * chi
    z = alpha * chi_sq
    c, s = _stumpff(z)

    # Lagrange coefficients
    f = 1.0 - chi_sq / r0 * c
    g = dt - chi_sq * chi / sqrt_mu * s

    px = f * rx + g * vx
    py = f * ry + g * vy
    pz = f * rz + g * vz
    r = np.sqrt(px*px + py*py + pz*pz)

    f_dot = sqrt_mu / (r * r0) * (z * chi * s - chi)
    g_dot = 1.0 - chi_sq / r * c

    return (
        px, py, pz,
        f_dot * rx + g_dot * vx,
        f_dot * ry + g_dot * vy,
        f_dot * rz + g_dot * vz,
    )


@njit(cache=True, fastmath=True)
def _circular_velocity(altitude: float, mu: float = MU_EARTH, r_body: float = R_EARTH_EQ) -> float:
    """Circular orbital velocity at altitude."""
    return np.sqrt(mu / (r_body + altitude))


@njit(cache=True, fastmath=True)
def _orbital_period(semi_major_axis: float, mu: float = MU_EARTH) -> float:
    """Orbital period from semi-major axis."""
    if semi_major_axis <= 0:
        return np.inf
    return 2.0 * np.pi * np.sqrt(semi_major_axis**3 / mu)


# =============================================================================
# Python API Functions
# =============================================================================


def propagate_kepler(
    position: NDArray[np.float64],
    velocity: NDArray[np.float64],
    dt: float,
    mu: float = MU_EARTH,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Propagate a two-body state forward (or backward) in time.

    Args:
        position: Position vector relative to the body [m]
        velocity: Velocity vector relative to the body [m/s]
        dt: Time step [s] (negative propagates backward)
        mu: Gravitational parameter [m^3/s^2]

    Returns:
        (position, velocity) after dt

    Example:
        >>> pos = np.array([7.0e6, 0.0, 0.0])
        >>> vel = np.array([0.0, 7546.0, 0.0])
        >>> pos2, vel2 = propagate_kepler(pos, vel, 600.0)
    """
    result = _propagate_kepler_core(
        position[0], position[1], position[2],
        velocity[0], velocity[1], velocity[2],
        float(dt), float(mu),
    )
    return np.array(result[0:3]), np.array(result[3:6])


def circular_velocity(altitude: float, mu: float = MU_EARTH) -> float:
    """Get circular orbital velocity at altitude.

    Args:
        altitude: Altitude above surface [m]
        mu: Gravitational parameter [m^3/s^2]

    Returns:
        Circular orbital velocity [m/s]
    """
    return _circular_velocity(altitude, mu, R_EARTH_EQ)


def orbital_period(semi_major_axis: float, mu: float = MU_EARTH) -> float:
    """Get orbital period from semi-major axis.

    Args:
        semi_major_axis: Semi-major axis [m]
        mu: Gravitational parameter [m^3/s^2]

    Returns:
        Orbital period [s]
    """
    return _orbital_period(semi_major_axis, mu)


# =============================================================================
# Propagator
# =============================================================================


@typechecked
@dataclass(frozen=True)
class KeplerPropagator:
    """Two-body propagator usable wherever a host propagator is expected.

    Attributes:
        mu: Gravitational parameter of the orbited body [m^3/s^2]
    """
    mu: float = MU_EARTH

    def __call__(self, state: OrbitalState, dt: float) -> OrbitalState:
        """Return the state dt seconds after the given one."""
        position, velocity = propagate_kepler(state.position, state.velocity, dt, self.mu)
        return OrbitalState(position=position, velocity=velocity, time=state.time + dt)
