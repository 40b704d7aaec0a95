"""
Interval model for weekly availability.

A WeekSchedule holds seven DaySchedules (0 = Sunday), each a list of TimeBlocks
measured in minutes from midnight. Every function here is pure: inputs are
never mutated, new schedules are returned.
"""

from typing import List, Optional
from models.schemas import TimeBlock, DaySchedule, WeekSchedule, ScheduleValidationError


MINUTES_PER_DAY = 1440
DAYS_PER_WEEK = 7

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
WEEKDAY_SHORT = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


# ===========================
# Construction & Access
# ===========================

def create_empty_week_schedule() -> WeekSchedule:
    """Create a week with seven days and no blocks."""
    return WeekSchedule(days=[DaySchedule(day_of_week=i, blocks=[]) for i in range(DAYS_PER_WEEK)])


def get_day_blocks(schedule: Optional[WeekSchedule], day: int) -> List[TimeBlock]:
    """
    Return the blocks for a day of week, or an empty list if absent.

    Looks the day up by its day_of_week rather than trusting list position,
    so short or reordered schedules never raise.
    """
    if schedule is None:
        return []

    if 0 <= day < len(schedule.days) and schedule.days[day].day_of_week == day:
        return schedule.days[day].blocks

    for day_schedule in schedule.days:
        if day_schedule.day_of_week == day:
            return day_schedule.blocks
    return []


def is_empty(schedule: Optional[WeekSchedule]) -> bool:
    """True iff every day has zero blocks."""
    if schedule is None:
        return True
    return all(len(day.blocks) == 0 for day in schedule.days)


def replace_day_blocks(schedule: WeekSchedule, day: int, blocks: List[TimeBlock]) -> WeekSchedule:
    """Return a copy of schedule with one day's blocks swapped out."""
    new_schedule = schedule.model_copy(deep=True)
    for day_schedule in new_schedule.days:
        if day_schedule.day_of_week == day:
            day_schedule.blocks = blocks
            return new_schedule

    new_schedule.days.append(DaySchedule(day_of_week=day, blocks=blocks))
    new_schedule.days.sort(key=lambda d: d.day_of_week)
    return new_schedule


# ===========================
# Merge Rules
# ===========================

def merge_time_blocks(blocks: List[TimeBlock]) -> List[TimeBlock]:
    """
    Merge overlapping or touching blocks into canonical blocks.

    Only meant for availability. Lesson blocks must never be merged since
    adjacent lessons for different participants stay distinct.

    Args:
        blocks: Blocks in any order

    Returns:
        Sorted, non-overlapping blocks with metadata dropped
    """
    ordered = sorted((b for b in blocks if b.duration > 0), key=lambda b: b.start)
    if not ordered:
        return []

    merged: List[TimeBlock] = []
    current_start = ordered[0].start
    current_end = ordered[0].end

    for block in ordered[1:]:
        if block.start <= current_end:
            current_end = max(current_end, block.end)
        else:
            merged.append(TimeBlock(start=current_start, duration=current_end - current_start))
            current_start, current_end = block.start, block.end

    merged.append(TimeBlock(start=current_start, duration=current_end - current_start))
    return merged


def merge_week_schedule(schedule: WeekSchedule) -> WeekSchedule:
    """Merge every day of an availability schedule."""
    return WeekSchedule(days=[
        DaySchedule(day_of_week=day.day_of_week, blocks=merge_time_blocks(day.blocks))
        for day in schedule.days
    ])


# ===========================
# Validation
# ===========================

def validate_week_schedule(schedule: WeekSchedule) -> List[ScheduleValidationError]:
    """
    Check the sorted / non-overlapping / in-bounds invariants.

    All violations are collected; nothing is raised.

    Args:
        schedule: Schedule to check

    Returns:
        List of errors, empty when the schedule is valid
    """
    errors: List[ScheduleValidationError] = []

    if len(schedule.days) != DAYS_PER_WEEK:
        errors.append(ScheduleValidationError(
            type="structure",
            day_of_week=-1,
            message=f"Schedule must have exactly {DAYS_PER_WEEK} days, found {len(schedule.days)}"
        ))

    for position, day in enumerate(schedule.days):
        day_name = _safe_day_name(day.day_of_week)

        if day.day_of_week != position:
            errors.append(ScheduleValidationError(
                type="structure",
                day_of_week=day.day_of_week,
                message=f"Day at position {position} has day_of_week {day.day_of_week}"
            ))

        # Bounds
        for index, block in enumerate(day.blocks):
            if block.start < 0 or block.duration <= 0 or block.end > MINUTES_PER_DAY:
                errors.append(ScheduleValidationError(
                    type="time_range",
                    day_of_week=day.day_of_week,
                    block_index=index,
                    message=f"Invalid time block in {day_name}: {block.start}-{block.end}"
                ))

        # Ordering
        for index in range(1, len(day.blocks)):
            if day.blocks[index].start < day.blocks[index - 1].start:
                errors.append(ScheduleValidationError(
                    type="order",
                    day_of_week=day.day_of_week,
                    block_index=index,
                    message=f"Block {index} in {day_name} starts before block {index - 1}"
                ))

        # Overlaps, checked in start order so unsorted days are still covered
        indexed = sorted(enumerate(day.blocks), key=lambda item: item[1].start)
        for (prev_index, prev), (index, block) in zip(indexed, indexed[1:]):
            if prev.end > block.start:
                errors.append(ScheduleValidationError(
                    type="overlap",
                    day_of_week=day.day_of_week,
                    block_index=index,
                    message=f"Block {index} in {day_name} overlaps block {prev_index}"
                ))

    return errors


# ===========================
# Block Editing
# ===========================

def add_block(schedule: WeekSchedule, day: int, block: TimeBlock) -> WeekSchedule:
    """Add an availability block to a day and re-merge."""
    blocks = list(get_day_blocks(schedule, day)) + [block]
    return replace_day_blocks(schedule, day, merge_time_blocks(blocks))


def update_block(schedule: WeekSchedule, day: int, index: int, start: int, end: int) -> WeekSchedule:
    """Replace one availability block with [start, end) and re-merge."""
    blocks = list(get_day_blocks(schedule, day))
    if not 0 <= index < len(blocks):
        return schedule.model_copy(deep=True)

    blocks[index] = TimeBlock(start=start, duration=end - start)
    return replace_day_blocks(schedule, day, merge_time_blocks(blocks))


def remove_block(schedule: WeekSchedule, day: int, index: int) -> WeekSchedule:
    """Remove one block from a day without merging the rest."""
    blocks = list(get_day_blocks(schedule, day))
    if not 0 <= index < len(blocks):
        return schedule.model_copy(deep=True)

    del blocks[index]
    return replace_day_blocks(schedule, day, [b.model_copy(deep=True) for b in blocks])


# ===========================
# Interval Arithmetic
# ===========================

def blocks_overlap(a: TimeBlock, b: TimeBlock) -> bool:
    """True if the two half-open intervals share at least one minute."""
    return a.start < b.end and b.start < a.end


def intersect_blocks(a: List[TimeBlock], b: List[TimeBlock]) -> List[TimeBlock]:
    """Exact overlap of two block lists, merged."""
    overlaps = []
    for block_a in a:
        for block_b in b:
            start = max(block_a.start, block_b.start)
            end = min(block_a.end, block_b.end)
            if end > start:
                overlaps.append(TimeBlock(start=start, duration=end - start))
    return merge_time_blocks(overlaps)


def subtract_blocks(blocks: List[TimeBlock], removed: List[TimeBlock]) -> List[TimeBlock]:
    """Minutes of `blocks` not covered by any of `removed`, merged."""
    remaining = merge_time_blocks(blocks)
    for cut in merge_time_blocks(removed):
        pieces = []
        for block in remaining:
            if not blocks_overlap(block, cut):
                pieces.append(block)
                continue
            if block.start < cut.start:
                pieces.append(TimeBlock(start=block.start, duration=cut.start - block.start))
            if cut.end < block.end:
                pieces.append(TimeBlock(start=cut.end, duration=block.end - cut.end))
        remaining = pieces
    return remaining


def covers(blocks: List[TimeBlock], start: int, duration: int) -> bool:
    """True if [start, start + duration) lies inside a single merged block."""
    end = start + duration
    return any(block.start <= start and end <= block.end for block in merge_time_blocks(blocks))


def get_total_available_minutes(schedule: Optional[WeekSchedule]) -> int:
    """Sum of block durations across the week."""
    if schedule is None:
        return 0
    return sum(block.duration for day in schedule.days for block in day.blocks)


# ===========================
# Formatting Helpers
# ===========================

def time_string_to_minutes(time_str: str) -> int:
    """Parse 'HH:MM' (24-hour) to minutes from midnight."""
    parts = time_str.strip().split(":")
    if len(parts) != 2 or not parts[0].isdigit() or not parts[1].isdigit():
        raise ValueError(f"Invalid time format: {time_str}. Expected HH:MM format.")

    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time values: {time_str}")
    return hours * 60 + minutes


def minutes_to_time_string(minutes: int) -> str:
    """Format minutes from midnight as 'HH:MM'."""
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValueError(f"Invalid minutes: {minutes}. Must be between 0 and 1439.")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_to_display_time(minutes: int) -> str:
    """Format minutes from midnight as '9:30 AM'. 1440 renders as midnight."""
    minutes = minutes % MINUTES_PER_DAY
    hours24, mins = divmod(minutes, 60)
    hours12 = hours24 % 12 or 12
    ampm = "PM" if hours24 >= 12 else "AM"
    return f"{hours12}:{mins:02d} {ampm}"


def format_duration(minutes: int) -> str:
    """Format a duration as '45m', '1h' or '1h 30m'."""
    if minutes < 60:
        return f"{minutes}m"
    hours, remaining = divmod(minutes, 60)
    if remaining == 0:
        return f"{hours}h"
    return f"{hours}h {remaining}m"


def get_day_name(day: int, short: bool = False) -> str:
    if day < 0 or day >= DAYS_PER_WEEK:
        raise ValueError(f"Invalid day of week: {day}")
    return WEEKDAY_SHORT[day] if short else WEEKDAY_NAMES[day]


def _safe_day_name(day: int) -> str:
    if 0 <= day < DAYS_PER_WEEK:
        return WEEKDAY_NAMES[day]
    return f"day {day}"


def format_week_schedule_display(schedule: WeekSchedule) -> List[str]:
    """Render availability as human-readable lines, one header per non-empty day."""
    lines: List[str] = []
    for day in schedule.days:
        if not day.blocks:
            continue
        lines.append(f"{_safe_day_name(day.day_of_week)}:")
        for block in day.blocks:
            lines.append(f"  {minutes_to_display_time(block.start)} - {minutes_to_display_time(block.end)}")

    if not lines:
        lines.append("No availability set")
    return lines
