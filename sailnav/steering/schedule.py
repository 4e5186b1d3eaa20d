"""Segmented control schedule for steering and throttle.

A schedule partitions mission time into contiguous half-open intervals
[start, start + duration) beginning at an epoch. Each interval is a
ControlSegment naming a steering frame, three angles, a throttle and a
propulsion-on flag. A default segment covers all time before the epoch
and after the last segment ends.

ControlSchedule is an immutable snapshot: edits return a new schedule with
its cumulative start times recomputed. Controls is the live handle shared
between an editor and the tick loop; it serializes edits and publishes
each new snapshot with a single reference swap, so lookups never see a
partially edited schedule.

Example:
    >>> from sailnav.steering import Controls, ControlSegment
    >>>
    >>> controls = Controls(epoch=0.0)
    >>> controls.append(ControlSegment("RTN", (35.0, 0.0, 0.0), duration=86400.0))
    >>> controls.append(ControlSegment("ICN", (0.0, 0.0, 0.0), duration=3600.0, throttle=1.0))
    >>> active = controls.lookup(90000.0)
    >>> print(active.segment.frame_id, active.start_time)
"""

import logging
import threading
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, NamedTuple

import numpy as np
from numpy.typing import NDArray

from sailnav.errors import InvalidSegmentError
from sailnav.steering.frames import FRAMES, SteeringFrame, get_frame, validate_angles
from sailnav.typecheck import typechecked

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600.0


# =============================================================================
# Control Segment
# =============================================================================


@typechecked
@dataclass(frozen=True)
class ControlSegment:
    """One scheduled interval of constant steering and throttle.

    Attributes:
        frame_id: Key of the steering frame in the frame registry
        angles: Three steering angles in that frame's convention [deg]
        duration: Length of the interval [s]; ignored for default segments
        throttle: Throttle setting (0 to 1)
        propulsion_on: Whether the sail/engine is deployed
    """
    frame_id: str
    angles: Sequence[float]
    duration: float = 0.0
    throttle: float = 0.0
    propulsion_on: bool = True

    def __post_init__(self) -> None:
        """Validate segment parameters."""
        object.__setattr__(self, "angles", validate_angles(self.angles))
        object.__setattr__(self, "duration", float(self.duration))
        object.__setattr__(self, "throttle", float(self.throttle))

        if not np.isfinite(self.duration) or self.duration < 0:
            raise InvalidSegmentError(f"Duration must be finite and non-negative, got {self.duration}")
        if not np.isfinite(self.throttle) or not 0.0 <= self.throttle <= 1.0:
            raise InvalidSegmentError(f"Throttle must be in [0, 1], got {self.throttle}")

    @classmethod
    def from_frame(
        cls,
        frame: SteeringFrame,
        duration: float = 0.0,
        throttle: float = 0.0,
        propulsion_on: bool = True,
    ) -> "ControlSegment":
        """Create a segment using a frame's default angles."""
        return cls(
            frame_id=frame.id,
            angles=frame.angle_defaults,
            duration=duration,
            throttle=throttle,
            propulsion_on=propulsion_on,
        )

    def with_changes(self, **changes: Any) -> "ControlSegment":
        """Copy of this segment with some fields replaced (re-validated)."""
        return replace(self, **changes)


class ActiveSegment(NamedTuple):
    """Result of a schedule lookup.

    index is None when the default segment applies.
    """
    segment: ControlSegment
    start_time: float  # Absolute start of the active interval [s]
    index: int | None

    @property
    def is_default(self) -> bool:
        """True if no scheduled segment covers the query time."""
        return self.index is None


# =============================================================================
# Schedule Snapshot
# =============================================================================


def _default_control() -> ControlSegment:
    frame = FRAMES["RTN"]
    return ControlSegment.from_frame(frame, throttle=0.0, propulsion_on=True)


@typechecked
@dataclass(frozen=True)
class ControlSchedule:
    """Immutable, chronologically ordered list of control segments.

    Segment i starts at epoch + sum(durations of segments 0..i-1).

    Attributes:
        epoch: Start time of the first segment (universal time) [s]
        segments: Scheduled segments in chronological order
        default_segment: Applies before the epoch, after the last segment,
            and whenever the schedule is empty
    """
    epoch: float = 0.0
    segments: Sequence[ControlSegment] = ()
    default_segment: ControlSegment = field(default_factory=_default_control)

    _starts: NDArray[np.float64] = field(init=False, repr=False, compare=False)
    _end: float = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Freeze the segment list and precompute cumulative start times."""
        object.__setattr__(self, "epoch", float(self.epoch))
        if not np.isfinite(self.epoch):
            raise ValueError(f"Epoch must be finite, got {self.epoch}")

        segments = tuple(self.segments)
        durations = np.array([s.duration for s in segments], dtype=np.float64)
        ends = self.epoch + np.cumsum(durations)
        starts = np.concatenate(([self.epoch], ends[:-1])) if segments else np.empty(0)
        starts.flags.writeable = False

        object.__setattr__(self, "segments", segments)
        object.__setattr__(self, "_starts", starts)
        object.__setattr__(self, "_end", float(ends[-1]) if segments else float(self.epoch))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def lookup(self, t: float) -> ActiveSegment:
        """Segment in effect at time t.

        Intervals are half-open, so a query exactly on a boundary returns
        the later segment. Zero-duration segments are never active.

        Args:
            t: Universal time [s]

        Returns:
            ActiveSegment with the segment, its absolute start time, and its
            index (None for the default segment)
        """
        if not np.isfinite(t):
            raise ValueError(f"Lookup time must be finite, got {t}")

        if t < self.epoch:
            return ActiveSegment(self.default_segment, float(self.epoch), None)
        if t >= self._end:
            return ActiveSegment(self.default_segment, self._end, None)

        i = int(np.searchsorted(self._starts, t, side="right")) - 1
        return ActiveSegment(self.segments[i], float(self._starts[i]), i)

    @property
    def start_times(self) -> NDArray[np.float64]:
        """Absolute start time of every segment [s] (read-only)."""
        return self._starts

    @property
    def end_time(self) -> float:
        """End of the last segment [s]; the epoch when empty."""
        return self._end

    def start_time(self, index: int) -> float:
        """Absolute start time of segment index [s]."""
        self._check_index(index)
        return float(self._starts[index])

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[ControlSegment]:
        return iter(self.segments)

    def __getitem__(self, index: int) -> ControlSegment:
        return self.segments[index]

    # -------------------------------------------------------------------------
    # Edits (each returns a new schedule)
    # -------------------------------------------------------------------------

    def _check_index(self, index: int, allow_end: bool = False) -> None:
        upper = len(self.segments) if allow_end else len(self.segments) - 1
        if not 0 <= index <= upper:
            raise IndexError(f"Segment index {index} out of range [0, {upper}]")

    def _with_segments(self, segments: list[ControlSegment]) -> "ControlSchedule":
        return replace(self, segments=tuple(segments))

    def append(self, segment: ControlSegment) -> "ControlSchedule":
        """Add a segment after the last one."""
        return self._with_segments([*self.segments, segment])

    def insert(self, index: int, segment: ControlSegment) -> "ControlSchedule":
        """Insert a segment before position index (index == len appends)."""
        self._check_index(index, allow_end=True)
        segments = list(self.segments)
        segments.insert(index, segment)
        return self._with_segments(segments)

    def insert_after(self, index: int, segment: ControlSegment) -> "ControlSchedule":
        """Insert a segment after position index."""
        self._check_index(index)
        return self.insert(index + 1, segment)

    def remove(self, index: int) -> "ControlSchedule":
        """Delete the segment at index."""
        self._check_index(index)
        segments = list(self.segments)
        del segments[index]
        return self._with_segments(segments)

    def replace(self, index: int, segment: ControlSegment) -> "ControlSchedule":
        """Swap the segment at index for another."""
        self._check_index(index)
        segments = list(self.segments)
        segments[index] = segment
        return self._with_segments(segments)

    def set_duration(self, index: int, duration: float) -> "ControlSchedule":
        """Change the duration of the segment at index."""
        self._check_index(index)
        return self.replace(index, self.segments[index].with_changes(duration=duration))

    def move(self, index: int, new_index: int) -> "ControlSchedule":
        """Move the segment at index so that it ends up at new_index."""
        self._check_index(index)
        self._check_index(new_index)
        segments = list(self.segments)
        segments.insert(new_index, segments.pop(index))
        return self._with_segments(segments)

    def with_default(self, segment: ControlSegment) -> "ControlSchedule":
        """Replace the default segment."""
        return replace(self, default_segment=segment)

    def with_epoch(self, epoch: float) -> "ControlSchedule":
        """Shift the whole schedule to start at a new epoch."""
        return replace(self, epoch=epoch)


# =============================================================================
# Configuration
# =============================================================================


@typechecked
@dataclass
class ScheduleConfig:
    """Defaults used when creating controls and new segments.

    Attributes:
        default_frame: Frame id of the default segment
        default_days: Duration of a new segment, days part
        default_hours: Duration of a new segment, hours part
        hours_per_day: Length of a day [h]
        default_throttle: Throttle of the default segment (0 to 1)
        default_propulsion_on: Propulsion flag of the default segment
    """
    default_frame: str = "RTN"
    default_days: float = 10.0
    default_hours: float = 0.0
    hours_per_day: float = 24.0
    default_throttle: float = 0.0
    default_propulsion_on: bool = True

    @property
    def default_duration(self) -> float:
        """Duration given to newly added segments [s]."""
        return (self.default_days * self.hours_per_day + self.default_hours) * SECONDS_PER_HOUR

    def default_segment(self, frames: Mapping[str, SteeringFrame] = FRAMES) -> ControlSegment:
        """Default segment built from the configured frame's default angles."""
        frame = get_frame(self.default_frame, frames)
        return ControlSegment.from_frame(
            frame,
            throttle=self.default_throttle,
            propulsion_on=self.default_propulsion_on,
        )


# =============================================================================
# Live Controls Handle
# =============================================================================


@typechecked
class Controls:
    """Shared, editable handle on the current control schedule.

    Edits are serialized by a lock and validated against the frame
    registry before the new snapshot is published. Reads are lock-free:
    the schedule property always returns a complete snapshot.

    Example:
        >>> controls = Controls(epoch=ut_now)
        >>> controls.add_segment()           # copy of the last segment
        >>> controls.set_duration(0, 7200.0)
        >>> active = controls.lookup(ut_now + 100.0)
    """

    def __init__(
        self,
        schedule: ControlSchedule | None = None,
        epoch: float = 0.0,
        frames: Mapping[str, SteeringFrame] = FRAMES,
        config: ScheduleConfig | None = None,
    ) -> None:
        """Create controls from an existing schedule or from the config defaults.

        Args:
            schedule: Initial schedule (epoch is ignored when given)
            epoch: Epoch of a new, empty schedule [s]
            frames: Frame registry used to validate frame ids
            config: Defaults for the default segment and new segments
        """
        self.frames = frames
        self.config = config if config is not None else ScheduleConfig()
        if schedule is None:
            schedule = ControlSchedule(epoch=epoch, default_segment=self.config.default_segment(frames))
        self._validate(schedule)
        self._lock = threading.Lock()
        self._schedule = schedule
        logger.info(f"Controls created at epoch {schedule.epoch:.1f} with {len(schedule)} segments")

    @property
    def schedule(self) -> ControlSchedule:
        """Current schedule snapshot."""
        return self._schedule

    def lookup(self, t: float) -> ActiveSegment:
        """Segment in effect at time t in the current snapshot."""
        return self._schedule.lookup(t)

    def __len__(self) -> int:
        return len(self._schedule)

    def _validate(self, schedule: ControlSchedule) -> None:
        get_frame(schedule.default_segment.frame_id, self.frames)
        for segment in schedule.segments:
            get_frame(segment.frame_id, self.frames)

    def _edit(self, name: str, edit: Callable[[ControlSchedule], ControlSchedule]) -> ControlSchedule:
        """Build a new snapshot from the current one and publish it."""
        with self._lock:
            schedule = edit(self._schedule)
            self._validate(schedule)
            self._schedule = schedule
        logger.debug(f"Schedule {name}: {len(schedule)} segments, ends at {schedule.end_time:.1f}")
        return schedule

    # -------------------------------------------------------------------------
    # Edit API
    # -------------------------------------------------------------------------

    def append(self, segment: ControlSegment) -> ControlSchedule:
        """Add a segment at the end of the schedule."""
        return self._edit("append", lambda s: s.append(segment))

    def insert(self, index: int, segment: ControlSegment) -> ControlSchedule:
        """Insert a segment before position index."""
        return self._edit("insert", lambda s: s.insert(index, segment))

    def insert_after(self, index: int, segment: ControlSegment) -> ControlSchedule:
        """Insert a segment after position index."""
        return self._edit("insert_after", lambda s: s.insert_after(index, segment))

    def remove(self, index: int) -> ControlSchedule:
        """Delete the segment at index."""
        return self._edit("remove", lambda s: s.remove(index))

    def replace(self, index: int, segment: ControlSegment) -> ControlSchedule:
        """Swap the segment at index for another."""
        return self._edit("replace", lambda s: s.replace(index, segment))

    def set_duration(self, index: int, duration: float) -> ControlSchedule:
        """Change the duration of the segment at index."""
        return self._edit("set_duration", lambda s: s.set_duration(index, duration))

    def move(self, index: int, new_index: int) -> ControlSchedule:
        """Reorder: move the segment at index to new_index."""
        return self._edit("move", lambda s: s.move(index, new_index))

    def set_default(self, segment: ControlSegment) -> ControlSchedule:
        """Replace the default segment."""
        return self._edit("set_default", lambda s: s.with_default(segment))

    def set_epoch(self, epoch: float) -> ControlSchedule:
        """Move the start of the schedule."""
        return self._edit("set_epoch", lambda s: s.with_epoch(epoch))

    def new_segment(self) -> ControlSegment:
        """Segment built from the configured defaults and default duration."""
        return self.config.default_segment(self.frames).with_changes(
            duration=self.config.default_duration,
        )

    def add_segment(self) -> ControlSchedule:
        """Append a copy of the last segment (or of the default) with the default duration."""
        def edit(schedule: ControlSchedule) -> ControlSchedule:
            template = schedule.segments[-1] if schedule.segments else schedule.default_segment
            return schedule.append(template.with_changes(duration=self.config.default_duration))

        return self._edit("add_segment", edit)
