"""
Greedy first-fit assignment heuristic.

Places one participant at a time into the owner's residual free time, at
half-hour resolution, scanning days ascending and then time ascending. The
first window that fits wins; nothing is ever backtracked, so identical
inputs always produce identical bookings.
"""

from typing import List, Dict, Optional
from datetime import datetime
from models.schemas import (
    TimeBlock, DaySchedule, WeekSchedule, Person, Booking, TimeInterval,
    LessonAssignment, ScheduleSolution, SolutionMetadata, CommittedBooking,
)
from service.intervals import (
    DAYS_PER_WEEK, get_day_blocks, is_empty, merge_time_blocks,
    intersect_blocks, subtract_blocks, create_empty_week_schedule,
)
from service.legacy import week_schedule_to_grid
from service.exceptions import NoAvailableSlotError
import logging

logger = logging.getLogger(__name__)

SLOT_MINUTES = 30


def _floor_to(minute: int, step: int) -> int:
    return (minute // step) * step


def _ceil_to(minute: int, step: int) -> int:
    return -(-minute // step) * step


def find_first_fitting_window(
    free_time: WeekSchedule,
    duration: int,
    slot_minutes: int = SLOT_MINUTES,
) -> Optional[Booking]:
    """
    Find the earliest slot-aligned window of `duration` free minutes.

    Scans days in order, then time ascending within each day. For 30 minutes
    this is the first free half-hour cell; for 60 it is the first pair of
    adjacent free cells on the same day.

    Args:
        free_time: Residual free time
        duration: Required minutes
        slot_minutes: Alignment of candidate starts

    Returns:
        The first fitting Booking, or None
    """
    for day in range(DAYS_PER_WEEK):
        for block in merge_time_blocks(get_day_blocks(free_time, day)):
            start = _ceil_to(block.start, slot_minutes)
            if start + duration <= block.end:
                return Booking(day=day, time_interval=TimeInterval(start=start, duration=duration))
    return None


def booking_to_assignment(participant_id: str, booking: Booking) -> LessonAssignment:
    return LessonAssignment(
        participant_id=participant_id,
        day_of_week=booking.day,
        start_minute=booking.time_interval.start,
        duration_minutes=booking.time_interval.duration,
    )


class HeuristicScheduler:
    """
    First-fit scheduler over an owner's residual availability.

    Holds only configuration; every call is independent.
    """

    def __init__(
        self,
        assume_free_when_unset: bool = True,
        fallback_days: Optional[List[int]] = None,
        fallback_start_minute: int = 540,
        fallback_end_minute: int = 1260,
        slot_minutes: int = SLOT_MINUTES,
    ):
        """
        Initialize the scheduler.

        Args:
            assume_free_when_unset: Treat an owner with no recorded availability
                as free during the fallback window
            fallback_days: Days the fallback window applies to (default every day)
            fallback_start_minute: Start of the fallback window
            fallback_end_minute: End of the fallback window
            slot_minutes: Grid resolution and start alignment
        """
        self.assume_free_when_unset = assume_free_when_unset
        self.fallback_days = fallback_days if fallback_days is not None else list(range(DAYS_PER_WEEK))
        self.fallback_start_minute = fallback_start_minute
        self.fallback_end_minute = fallback_end_minute
        self.slot_minutes = slot_minutes

    def _fallback_availability(self) -> WeekSchedule:
        schedule = create_empty_week_schedule()
        window = TimeBlock(
            start=self.fallback_start_minute,
            duration=self.fallback_end_minute - self.fallback_start_minute,
        )
        for day in self.fallback_days:
            if 0 <= day < DAYS_PER_WEEK:
                schedule.days[day].blocks = [window.model_copy()]
        return schedule

    def build_free_time(
        self,
        owner_availability: Optional[WeekSchedule],
        committed_bookings: List[Booking],
        participant_availability: Optional[WeekSchedule] = None,
    ) -> WeekSchedule:
        """
        Compute the owner's residual free time at slot resolution.

        Steps:
        1. Owner availability, or the fallback window when none was ever recorded
        2. Restricted to the participant's availability when given
        3. Trimmed inward to whole slots
        4. Minus every slot touched by a committed booking
        """
        owner = owner_availability
        if is_empty(owner):
            if self.assume_free_when_unset:
                logger.warning("Owner has no recorded availability; using fallback window")
                owner = self._fallback_availability()
            else:
                owner = create_empty_week_schedule()

        free = create_empty_week_schedule()
        for day in range(DAYS_PER_WEEK):
            blocks = merge_time_blocks(get_day_blocks(owner, day))
            if participant_availability is not None:
                blocks = intersect_blocks(blocks, get_day_blocks(participant_availability, day))

            aligned = []
            for block in blocks:
                start = _ceil_to(block.start, self.slot_minutes)
                end = _floor_to(block.end, self.slot_minutes)
                if end > start:
                    aligned.append(TimeBlock(start=start, duration=end - start))

            booked = []
            for booking in committed_bookings:
                if booking.day != day:
                    continue
                start = _floor_to(booking.time_interval.start, self.slot_minutes)
                end = _ceil_to(booking.time_interval.start + booking.time_interval.duration, self.slot_minutes)
                booked.append(TimeBlock(start=start, duration=end - start))

            free.days[day] = DaySchedule(day_of_week=day, blocks=subtract_blocks(aligned, booked))

        return free

    def build_free_grid(
        self,
        owner_availability: Optional[WeekSchedule],
        committed_bookings: List[Booking],
        participant_availability: Optional[WeekSchedule] = None,
    ) -> List[List[bool]]:
        """Half-hour boolean projection of the residual free time."""
        free = self.build_free_time(owner_availability, committed_bookings, participant_availability)
        return week_schedule_to_grid(free, slot_minutes=self.slot_minutes)

    def find_booking(
        self,
        owner_availability: Optional[WeekSchedule],
        committed_bookings: List[Booking],
        participant: Person,
        participant_availability: Optional[WeekSchedule] = None,
    ) -> Booking:
        """
        Pick one slot for a new participant.

        Raises:
            NoAvailableSlotError: if no window of the required duration is free
        """
        free = self.build_free_time(owner_availability, committed_bookings, participant_availability)
        duration = participant.required_duration_minutes
        booking = find_first_fitting_window(free, duration, self.slot_minutes)

        if booking is None:
            raise NoAvailableSlotError(participant.id, duration)

        logger.info(
            f"Booked {participant.id} on day {booking.day} at minute "
            f"{booking.time_interval.start} for {duration} min"
        )
        return booking

    def commit_booking(
        self,
        participant: Person,
        booking: Booking,
        participant_availability: Optional[WeekSchedule] = None,
    ) -> CommittedBooking:
        """Wrap a booking with the participant's identity and availability snapshot."""
        snapshot_source = participant_availability or create_empty_week_schedule()
        return CommittedBooking(
            participant_id=participant.id,
            participant_name=participant.name,
            booking=booking,
            availability_snapshot=week_schedule_to_grid(snapshot_source, slot_minutes=self.slot_minutes),
        )

    def solve_batch(
        self,
        owner_availability: Optional[WeekSchedule],
        participants: List[Person],
        committed_bookings: Optional[List[Booking]] = None,
        participant_availabilities: Optional[Dict[str, WeekSchedule]] = None,
    ) -> ScheduleSolution:
        """
        Place participants one by one, in the order given.

        Each booking is committed before the next participant is considered.
        A participant with no free slot is marked unscheduled and the batch
        carries on.
        """
        start_time = datetime.now()
        bookings = list(committed_bookings or [])
        availabilities = participant_availabilities or {}
        assignments: List[LessonAssignment] = []
        unscheduled: List[str] = []

        for participant in participants:
            try:
                booking = self.find_booking(
                    owner_availability, bookings, participant, availabilities.get(participant.id)
                )
            except NoAvailableSlotError as e:
                logger.info(f"Leaving participant unscheduled: {e}")
                unscheduled.append(participant.id)
                continue

            bookings.append(booking)
            assignments.append(booking_to_assignment(participant.id, booking))

        compute_time_ms = (datetime.now() - start_time).total_seconds() * 1000

        return ScheduleSolution(
            assignments=assignments,
            unscheduled=unscheduled,
            metadata=SolutionMetadata(
                total_participants=len(participants),
                scheduled_participants=len(assignments),
                strategy="heuristic",
                status="FEASIBLE" if not unscheduled else "PARTIAL",
                compute_time_ms=compute_time_ms,
            ),
        )
