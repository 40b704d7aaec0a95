"""
Availability intersection engine.

Finds where two parties' availability overlaps long enough to host a lesson
of a given duration. Candidate starts are stepped at a fixed stride from the
start of each overlap so that drag-and-drop snapping stays predictable.
"""

from typing import List, Optional
from models.schemas import TimeBlock, WeekSchedule
from service.intervals import get_day_blocks, merge_time_blocks

DROP_ZONE_STRIDE = 15


def _candidate_windows(
    day: int,
    duration: int,
    availability_a: Optional[WeekSchedule],
    availability_b: Optional[WeekSchedule],
    stride: int,
) -> List[TimeBlock]:
    """All stride-stepped windows of length duration inside A ∩ B on a day."""
    if duration <= 0 or stride <= 0:
        return []

    blocks_a = get_day_blocks(availability_a, day)
    blocks_b = get_day_blocks(availability_b, day)
    # Absent availability means no availability, not unconstrained
    if not blocks_a or not blocks_b:
        return []

    windows = []
    for block_a in blocks_a:
        for block_b in blocks_b:
            overlap_start = max(block_a.start, block_b.start)
            overlap_end = min(block_a.end, block_b.end)

            if overlap_end - overlap_start < duration:
                continue

            for start in range(overlap_start, overlap_end - duration + 1, stride):
                windows.append(TimeBlock(start=start, duration=duration))

    return windows


def get_valid_drop_zones(
    day: int,
    duration: int,
    availability_a: Optional[WeekSchedule],
    availability_b: Optional[WeekSchedule],
    stride: int = DROP_ZONE_STRIDE,
) -> List[TimeBlock]:
    """
    Compute the zones on a day where a lesson of `duration` can be placed.

    Args:
        day: Day of week (0 = Sunday)
        duration: Lesson length in minutes
        availability_a: First party's availability (typically the owner)
        availability_b: Second party's availability (typically the participant)
        stride: Step between candidate starts inside an overlap

    Returns:
        Merged, non-overlapping zones; each at least `duration` long
    """
    return merge_time_blocks(_candidate_windows(day, duration, availability_a, availability_b, stride))


def get_valid_drop_positions(
    day: int,
    duration: int,
    availability_a: Optional[WeekSchedule],
    availability_b: Optional[WeekSchedule],
    stride: int = DROP_ZONE_STRIDE,
) -> List[int]:
    """Candidate start minutes on a day, deduplicated and ascending."""
    windows = _candidate_windows(day, duration, availability_a, availability_b, stride)
    return sorted({window.start for window in windows})


def is_valid_placement(
    day: int,
    start: int,
    duration: int,
    availability_a: Optional[WeekSchedule],
    availability_b: Optional[WeekSchedule],
    stride: int = DROP_ZONE_STRIDE,
) -> bool:
    """True iff [start, start + duration) fits inside one of the day's drop zones."""
    zones = get_valid_drop_zones(day, duration, availability_a, availability_b, stride)
    return any(
        start >= zone.start and start + duration <= zone.end
        for zone in zones
    )
