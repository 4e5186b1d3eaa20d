"""Dynamics module: orbital state and orientation primitives.

This module provides the orbital state supplied by the host each tick and
the quaternion algebra used to compose steering orientations.

Example:
    >>> from sailnav.dynamics import OrbitalState, look_rotation
    >>> import numpy as np
    >>>
    >>> state = OrbitalState.circular(radius=7.0e6)
    >>> q = look_rotation(state.velocity, state.position)
"""

from sailnav.dynamics.state import (
    IDENTITY_QUATERNION,
    OrbitalState,
    axis_angle_quaternion,
    dcm_to_quaternion,
    look_rotation,
    normalize_quaternion,
    plane_normal,
    quaternion_multiply,
    quaternion_to_dcm,
    rotate_vector,
    unit_vector,
)

__all__ = [
    # State
    "OrbitalState",
    # Quaternion utilities
    "IDENTITY_QUATERNION",
    "axis_angle_quaternion",
    "quaternion_to_dcm",
    "dcm_to_quaternion",
    "quaternion_multiply",
    "normalize_quaternion",
    "rotate_vector",
    "look_rotation",
    # Vectors
    "unit_vector",
    "plane_normal",
]
