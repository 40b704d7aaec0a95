"""
Placement controller for manually repositioning lesson blocks.

The pure functions `snap_start` and `move_block` decide where a dragged block
lands and whether the drop is legal. `InteractionSession` carries the
ephemeral interaction state (what is being dragged or edited, which snap mode
is active) and calls those functions only at state transitions.
"""

from enum import Enum
from typing import Dict, Optional
from models.schemas import TimeBlock, WeekSchedule, PlacementResult
from service.intervals import (
    MINUTES_PER_DAY, DAYS_PER_WEEK, get_day_blocks, blocks_overlap, add_block,
    update_block, remove_block, replace_day_blocks,
)
from service.intersection import DROP_ZONE_STRIDE, get_valid_drop_positions, is_valid_placement
from service.exceptions import InvalidTransitionError
import logging

logger = logging.getLogger(__name__)

GRID_SNAP_MINUTES = 15
MIN_SELECTION_MINUTES = 15


class SnapMode(str, Enum):
    GRID = "grid"
    PRECISE = "precise"
    SMART = "smart"


def _grid_snap(minute: int, step: int) -> int:
    # Round half up
    return int((minute + step / 2) // step) * step


def snap_start(
    minute: int,
    duration: int,
    mode: SnapMode,
    day: int,
    owner_availability: Optional[WeekSchedule] = None,
    participant_availability: Optional[WeekSchedule] = None,
    grid_minutes: int = GRID_SNAP_MINUTES,
    stride: int = DROP_ZONE_STRIDE,
) -> int:
    """
    Turn a raw drag position into a candidate start minute.

    The position is first clamped so the block stays inside the day.

    Args:
        minute: Raw start minute under the pointer
        duration: Block length in minutes
        mode: GRID rounds to grid_minutes, PRECISE keeps the minute, SMART picks
            the nearest valid drop position and falls back to GRID if there is none
        day: Target day of week
        owner_availability: Owner availability for SMART mode
        participant_availability: Participant availability for SMART mode

    Returns:
        Snapped start minute
    """
    latest = max(0, MINUTES_PER_DAY - duration)
    clamped = max(0, min(latest, minute))

    if mode == SnapMode.PRECISE:
        return clamped

    if mode == SnapMode.SMART:
        positions = get_valid_drop_positions(day, duration, owner_availability, participant_availability, stride)
        if positions:
            # Ties go to the earlier position
            return min(positions, key=lambda p: (abs(p - clamped), p))

    return min(latest - latest % grid_minutes, _grid_snap(clamped, grid_minutes))


def move_block(
    schedule: WeekSchedule,
    origin_day: int,
    block_index: int,
    target_day: int,
    target_start: int,
    owner_availability: Optional[WeekSchedule] = None,
    participant_availabilities: Optional[Dict[str, WeekSchedule]] = None,
    stride: int = DROP_ZONE_STRIDE,
) -> PlacementResult:
    """
    Move one placed lesson block to a new day and start.

    The drop is accepted only if:
    1. The landing interval lies inside a valid drop zone for the block's
       participant (skipped when no availability data is supplied)
    2. It does not overlap any other block on the target day; the moved block
       itself is excluded by its original index

    On acceptance the returned schedule has the block moved with its metadata,
    and each touched day re-sorted but never merged. On rejection the schedule
    is returned unchanged.
    """
    if origin_day not in range(DAYS_PER_WEEK) or target_day not in range(DAYS_PER_WEEK):
        return PlacementResult(
            accepted=False, schedule=schedule, day_of_week=origin_day,
            start_minute=target_start, reason="Invalid day"
        )

    origin_blocks = get_day_blocks(schedule, origin_day)

    if not 0 <= block_index < len(origin_blocks):
        return PlacementResult(
            accepted=False, schedule=schedule, day_of_week=origin_day,
            start_minute=target_start, reason=f"No block {block_index} on day {origin_day}"
        )

    moving = origin_blocks[block_index]
    landing = TimeBlock(
        start=target_start,
        duration=moving.duration,
        metadata=moving.metadata.model_copy() if moving.metadata else None,
    )

    if target_start < 0 or landing.end > MINUTES_PER_DAY:
        return _reject(schedule, moving, origin_day, "Block would extend outside the day")

    # 1. Availability
    participant_id = moving.metadata.participant_id if moving.metadata else None
    if owner_availability is not None and participant_availabilities is not None and participant_id:
        participant_availability = participant_availabilities.get(participant_id)
        if not is_valid_placement(
            target_day, target_start, moving.duration,
            owner_availability, participant_availability, stride
        ):
            return _reject(schedule, moving, origin_day, "Outside shared availability")

    # 2. Collisions with other lessons on the target day
    for index, other in enumerate(get_day_blocks(schedule, target_day)):
        if target_day == origin_day and index == block_index:
            continue
        if blocks_overlap(landing, other):
            return _reject(schedule, moving, origin_day, "Overlaps another lesson")

    remaining = [b.model_copy(deep=True) for i, b in enumerate(origin_blocks) if i != block_index]
    new_schedule = replace_day_blocks(schedule, origin_day, sorted(remaining, key=lambda b: b.start))
    target_blocks = list(get_day_blocks(new_schedule, target_day)) + [landing]
    new_schedule = replace_day_blocks(new_schedule, target_day, sorted(target_blocks, key=lambda b: b.start))

    logger.debug(f"Moved block from day {origin_day} to day {target_day} at minute {target_start}")
    return PlacementResult(
        accepted=True, schedule=new_schedule, day_of_week=target_day, start_minute=target_start
    )


def _reject(schedule: WeekSchedule, moving: TimeBlock, origin_day: int, reason: str) -> PlacementResult:
    logger.debug(f"Drop rejected: {reason}")
    return PlacementResult(
        accepted=False, schedule=schedule, day_of_week=origin_day,
        start_minute=moving.start, reason=reason
    )


# ===========================
# Interaction State Machine
# ===========================

class InteractionState(str, Enum):
    IDLE = "idle"
    CREATING_SELECTION = "creating_selection"
    DRAGGING_BLOCK = "dragging_block"
    EDITING_BLOCK = "editing_block"


class InteractionSession:
    """
    Ephemeral state for one calendar editor.

    `schedule` is replaced (never mutated) whenever a transition commits a
    change, so callers can keep earlier values for undo.
    """

    def __init__(
        self,
        schedule: WeekSchedule,
        snap_mode: SnapMode = SnapMode.GRID,
        owner_availability: Optional[WeekSchedule] = None,
        participant_availabilities: Optional[Dict[str, WeekSchedule]] = None,
    ):
        self.schedule = schedule
        self.snap_mode = snap_mode
        self.owner_availability = owner_availability
        self.participant_availabilities = participant_availabilities
        self.state = InteractionState.IDLE

        self._selection_day: Optional[int] = None
        self._selection_anchor: Optional[int] = None
        self._selection_end: Optional[int] = None

        self._drag_origin_day: Optional[int] = None
        self._drag_index: Optional[int] = None
        self._drag_day: Optional[int] = None
        self._drag_start: Optional[int] = None

        self._edit_day: Optional[int] = None
        self._edit_index: Optional[int] = None

    def _require(self, action: str, *states: InteractionState):
        if self.state not in states:
            raise InvalidTransitionError(action, self.state.value)

    def _reset(self):
        self.state = InteractionState.IDLE
        self._selection_day = self._selection_anchor = self._selection_end = None
        self._drag_origin_day = self._drag_index = self._drag_day = self._drag_start = None
        self._edit_day = self._edit_index = None

    # Availability selection

    def begin_selection(self, day: int, minute: int):
        self._require("begin selection", InteractionState.IDLE)
        snapped = _grid_snap(minute, GRID_SNAP_MINUTES)
        self._selection_day = day
        self._selection_anchor = snapped
        self._selection_end = snapped
        self.state = InteractionState.CREATING_SELECTION

    def update_selection(self, minute: int):
        self._require("update selection", InteractionState.CREATING_SELECTION)
        # Selections never leave the day they started on
        self._selection_end = max(0, min(MINUTES_PER_DAY, _grid_snap(minute, GRID_SNAP_MINUTES)))

    def end_selection(self) -> WeekSchedule:
        """Commit the selection as a merged availability block."""
        self._require("end selection", InteractionState.CREATING_SELECTION)
        start = min(self._selection_anchor, self._selection_end)
        duration = max(MIN_SELECTION_MINUTES, abs(self._selection_end - self._selection_anchor))
        start = min(start, MINUTES_PER_DAY - duration)

        self.schedule = add_block(self.schedule, self._selection_day, TimeBlock(start=start, duration=duration))
        self._reset()
        return self.schedule

    # Lesson dragging

    def begin_drag(self, day: int, block_index: int):
        self._require("begin drag", InteractionState.IDLE)
        blocks = get_day_blocks(self.schedule, day)
        if not 0 <= block_index < len(blocks):
            raise IndexError(f"No block {block_index} on day {day}")

        self._drag_origin_day = day
        self._drag_index = block_index
        self._drag_day = day
        self._drag_start = blocks[block_index].start
        self.state = InteractionState.DRAGGING_BLOCK

    def drag_to(self, day: int, minute: int) -> int:
        """Track the pointer; returns the snapped start the block would land at."""
        self._require("drag", InteractionState.DRAGGING_BLOCK)
        block = get_day_blocks(self.schedule, self._drag_origin_day)[self._drag_index]

        participant_availability = None
        if block.metadata and self.participant_availabilities:
            participant_availability = self.participant_availabilities.get(block.metadata.participant_id)

        self._drag_day = day
        self._drag_start = snap_start(
            minute, block.duration, self.snap_mode, day,
            self.owner_availability, participant_availability,
        )
        return self._drag_start

    def drop(self) -> PlacementResult:
        self._require("drop", InteractionState.DRAGGING_BLOCK)
        result = move_block(
            self.schedule, self._drag_origin_day, self._drag_index,
            self._drag_day, self._drag_start,
            self.owner_availability, self.participant_availabilities,
        )
        if result.accepted:
            self.schedule = result.schedule
        self._reset()
        return result

    # Block editing

    def select_block(self, day: int, block_index: int):
        self._require("select block", InteractionState.IDLE)
        if not 0 <= block_index < len(get_day_blocks(self.schedule, day)):
            raise IndexError(f"No block {block_index} on day {day}")
        self._edit_day = day
        self._edit_index = block_index
        self.state = InteractionState.EDITING_BLOCK

    def apply_edit(self, start: int, end: int) -> WeekSchedule:
        """Replace the selected availability block with [start, end)."""
        self._require("apply edit", InteractionState.EDITING_BLOCK)
        if end <= start:
            raise ValueError("End time must be after start time")
        if start < 0 or end > MINUTES_PER_DAY:
            raise ValueError("Time must be within the day")

        self.schedule = update_block(self.schedule, self._edit_day, self._edit_index, start, end)
        self._reset()
        return self.schedule

    def delete_selected(self) -> WeekSchedule:
        self._require("delete block", InteractionState.EDITING_BLOCK)
        self.schedule = remove_block(self.schedule, self._edit_day, self._edit_index)
        self._reset()
        return self.schedule

    def cancel(self):
        """Abandon whatever is in progress without touching the schedule."""
        self._reset()

