"""
Conversions between WeekSchedule and the legacy formats still used by
collaborators: the day-name keyed {hour, minute} map used for storage, and
the half-hour boolean grid.

The grid is only ever a projection of a WeekSchedule. It is computed on
demand and never edited in place.
"""

from typing import Dict, List, Any
from models.schemas import TimeBlock, DaySchedule, WeekSchedule, LegacyTime, LegacyTimeRange
from service.intervals import (
    MINUTES_PER_DAY, DAYS_PER_WEEK, WEEKDAY_NAMES,
    create_empty_week_schedule, merge_time_blocks, get_day_blocks,
)
import logging

logger = logging.getLogger(__name__)


# ===========================
# Day-name map
# ===========================

def week_schedule_to_legacy(schedule: WeekSchedule) -> Dict[str, List[LegacyTimeRange]]:
    """
    Convert a WeekSchedule to the legacy day-name map.

    Days without blocks are omitted. The end of the day is encoded as
    {"hour": 24, "minute": 0}.
    """
    legacy: Dict[str, List[LegacyTimeRange]] = {}

    for day in range(DAYS_PER_WEEK):
        blocks = get_day_blocks(schedule, day)
        if not blocks:
            continue

        legacy[WEEKDAY_NAMES[day]] = [
            LegacyTimeRange(
                start=LegacyTime(hour=block.start // 60, minute=block.start % 60),
                end=LegacyTime(hour=block.end // 60, minute=block.end % 60),
            )
            for block in blocks
        ]

    return legacy


def legacy_to_week_schedule(legacy: Dict[str, Any]) -> WeekSchedule:
    """
    Convert a legacy day-name map back to a WeekSchedule.

    Accepts either LegacyTimeRange models or plain dicts. Unknown day names and
    ranges that end at or before they start are skipped with a warning. Blocks
    are sorted but not merged, so the conversion is lossless.
    """
    schedule = create_empty_week_schedule()

    for day_name, ranges in legacy.items():
        if day_name not in WEEKDAY_NAMES:
            logger.warning(f"Ignoring unknown day '{day_name}' in legacy schedule")
            continue
        if not ranges:
            continue

        day_index = WEEKDAY_NAMES.index(day_name)
        blocks = []

        for time_range in ranges:
            if not isinstance(time_range, LegacyTimeRange):
                time_range = LegacyTimeRange.model_validate(time_range)

            start = time_range.start.hour * 60 + time_range.start.minute
            end = time_range.end.hour * 60 + time_range.end.minute
            if end <= start:
                logger.warning(f"Ignoring empty range {start}-{end} on {day_name}")
                continue
            blocks.append(TimeBlock(start=start, duration=end - start))

        schedule.days[day_index].blocks = sorted(blocks, key=lambda b: b.start)

    return schedule


# ===========================
# Boolean grid projection
# ===========================

def week_schedule_to_grid(
    schedule: WeekSchedule,
    slot_minutes: int = 30,
    start_minute: int = 0,
    end_minute: int = MINUTES_PER_DAY,
) -> List[List[bool]]:
    """
    Project a schedule onto a [7][slots] boolean grid.

    A cell is True only when its whole slot is covered by availability.

    Args:
        schedule: Schedule to project
        slot_minutes: Width of each cell
        start_minute: Minute of day the first cell starts at
        end_minute: Minute of day the grid stops at

    Returns:
        Grid indexed [day_of_week][cell]
    """
    slots_per_day = (end_minute - start_minute) // slot_minutes
    grid = []

    for day in range(DAYS_PER_WEEK):
        merged = merge_time_blocks(get_day_blocks(schedule, day))
        row = [False] * slots_per_day

        for block in merged:
            # Cells fully inside the block
            first = max(0, -(-(block.start - start_minute) // slot_minutes))
            last = min(slots_per_day, (block.end - start_minute) // slot_minutes)
            for cell in range(first, last):
                row[cell] = True

        grid.append(row)

    return grid


def grid_to_week_schedule(
    grid: List[List[bool]],
    slot_minutes: int = 30,
    start_minute: int = 0,
) -> WeekSchedule:
    """Rebuild a WeekSchedule from a boolean grid, one block per run of True cells."""
    schedule = create_empty_week_schedule()

    for day_index, row in enumerate(grid[:DAYS_PER_WEEK]):
        blocks = []
        run_start = None

        for cell, selected in enumerate(row):
            if selected and run_start is None:
                run_start = cell
            elif not selected and run_start is not None:
                blocks.append(_run_to_block(run_start, cell, slot_minutes, start_minute))
                run_start = None

        if run_start is not None:
            blocks.append(_run_to_block(run_start, len(row), slot_minutes, start_minute))

        schedule.days[day_index] = DaySchedule(day_of_week=day_index, blocks=blocks)

    return schedule


def _run_to_block(first_cell: int, end_cell: int, slot_minutes: int, start_minute: int) -> TimeBlock:
    return TimeBlock(
        start=start_minute + first_cell * slot_minutes,
        duration=(end_cell - first_cell) * slot_minutes,
    )
