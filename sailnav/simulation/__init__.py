"""Simulation module for forecasting steering over a future window.

Provides the trajectory preview: the control schedule is re-evaluated at
future times while a propagator advances the orbital state.

Example:
    >>> from sailnav.simulation import TrajectoryPreview
    >>> from sailnav.orbital import KeplerPropagator
    >>>
    >>> preview = TrajectoryPreview(schedule, state, KeplerPropagator(), duration=3600.0)
    >>> for sample in preview:
    ...     print(sample.time, sample.orientation)
"""

from sailnav.simulation.preview import (
    NOSE_AXIS,
    PreviewResult,
    PreviewSample,
    Propagator,
    TrajectoryPreview,
)

__all__ = [
    "NOSE_AXIS",
    "PreviewResult",
    "PreviewSample",
    "Propagator",
    "TrajectoryPreview",
]
