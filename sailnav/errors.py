"""Exceptions raised by the steering frames and control schedule.

Every error derives from NavigatorError and from the builtin a caller
would naturally catch (ValueError or LookupError).

Example:
    >>> from sailnav.errors import NavigatorError, UnknownFrameError
    >>>
    >>> try:
    ...     frame = get_frame("LVLH")
    ... except UnknownFrameError as exc:
    ...     print(exc.frame_id)
"""


class NavigatorError(Exception):
    """Base class for all sailnav errors."""


class UnknownFrameError(NavigatorError, LookupError):
    """A segment or lookup referenced a frame id missing from the registry."""

    def __init__(self, frame_id: str, available: tuple[str, ...] = ()) -> None:
        self.frame_id = frame_id
        self.available = available
        message = f"Unknown steering frame: {frame_id!r}"
        if available:
            message += f" (available: {', '.join(available)})"
        super().__init__(message)


class InvalidAnglesError(NavigatorError, ValueError):
    """Angle triple has the wrong arity or non-finite entries."""


class InvalidSegmentError(NavigatorError, ValueError):
    """Segment duration or throttle is out of range."""


class DegenerateOrbitalStateError(NavigatorError, ValueError):
    """Position or velocity is too small to define a steering basis."""
