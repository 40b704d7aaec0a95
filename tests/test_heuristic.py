"""
Test the first-fit assignment heuristic.
"""
import pytest
from models.schemas import TimeBlock, Person, Booking, TimeInterval
from service.intervals import create_empty_week_schedule
from service.heuristic import HeuristicScheduler, find_first_fitting_window
from service.exceptions import NoAvailableSlotError

SUNDAY, MONDAY, TUESDAY, SATURDAY = 0, 1, 2, 6


def week_with(day, *ranges):
    schedule = create_empty_week_schedule()
    schedule.days[day].blocks = [TimeBlock(start=s, duration=e - s) for s, e in ranges]
    return schedule


def booking(day, start, duration):
    return Booking(day=day, time_interval=TimeInterval(start=start, duration=duration))


def person(pid, duration=30):
    return Person(id=pid, name=f"Student {pid}", required_duration_minutes=duration)


def test_consecutive_participants_fill_in_order():
    """Test Monday 09:00-10:00 gives 09:00 then 09:30 to two half-hour participants."""
    scheduler = HeuristicScheduler()
    owner = week_with(MONDAY, (540, 600))

    first = scheduler.find_booking(owner, [], person("p1"))
    assert (first.day, first.time_interval.start, first.time_interval.duration) == (MONDAY, 540, 30)

    second = scheduler.find_booking(owner, [first], person("p2"))
    assert (second.day, second.time_interval.start) == (MONDAY, 570)

    with pytest.raises(NoAvailableSlotError):
        scheduler.find_booking(owner, [first, second], person("p3"))


def test_hour_lesson_needs_adjacent_cells():
    """Test isolated half hours cannot host a 60 minute lesson."""
    scheduler = HeuristicScheduler()
    owner = week_with(MONDAY, (540, 570), (600, 630))

    with pytest.raises(NoAvailableSlotError) as exc_info:
        scheduler.find_booking(owner, [], person("p1", 60))
    assert exc_info.value.participant_id == "p1"
    assert exc_info.value.duration == 60


def test_hour_lesson_uses_first_adjacent_pair():
    """Test a 60 minute lesson lands on the first two adjacent free cells."""
    scheduler = HeuristicScheduler()
    owner = week_with(MONDAY, (540, 570), (600, 660))

    result = scheduler.find_booking(owner, [], person("p1", 60))
    assert (result.day, result.time_interval.start) == (MONDAY, 600)


def test_days_are_scanned_from_sunday():
    """Test an earlier day wins over an earlier time on a later day."""
    scheduler = HeuristicScheduler()
    owner = week_with(MONDAY, (540, 570))
    owner.days[SUNDAY].blocks = [TimeBlock(start=600, duration=30)]

    result = scheduler.find_booking(owner, [], person("p1"))
    assert (result.day, result.time_interval.start) == (SUNDAY, 600)


def test_off_grid_availability_is_trimmed_inward():
    """Test a partially covered half hour is not offered."""
    scheduler = HeuristicScheduler()
    owner = week_with(MONDAY, (545, 660))

    result = scheduler.find_booking(owner, [], person("p1"))
    assert result.time_interval.start == 570


def test_off_grid_booking_blocks_whole_cells():
    """Test a committed booking blocks every half hour it touches."""
    scheduler = HeuristicScheduler()
    owner = week_with(MONDAY, (540, 660))

    result = scheduler.find_booking(owner, [booking(MONDAY, 545, 30)], person("p1"))
    assert result.time_interval.start == 600


def test_participant_availability_restricts_slots():
    """Test the booking falls inside the participant's declared time."""
    scheduler = HeuristicScheduler()
    owner = week_with(MONDAY, (540, 720))
    participant_availability = week_with(MONDAY, (600, 660))

    result = scheduler.find_booking(owner, [], person("p1"), participant_availability)
    assert result.time_interval.start == 600


def test_fallback_window_when_owner_never_set_availability():
    """Test an owner with no availability is treated as free from 09:00 to 21:00."""
    scheduler = HeuristicScheduler()

    result = scheduler.find_booking(None, [], person("p1"))
    assert (result.day, result.time_interval.start) == (SUNDAY, 540)

    result = scheduler.find_booking(create_empty_week_schedule(), [], person("p2"))
    assert (result.day, result.time_interval.start) == (SUNDAY, 540)


def test_fallback_window_includes_weekend():
    """Test the fallback still finds Saturday when every other day is booked."""
    scheduler = HeuristicScheduler()
    bookings = [booking(day, 540, 720) for day in range(6)]

    result = scheduler.find_booking(None, bookings, person("p1", 60))
    assert (result.day, result.time_interval.start) == (SATURDAY, 540)

    with pytest.raises(NoAvailableSlotError):
        scheduler.find_booking(None, bookings + [booking(SATURDAY, 540, 720)], person("p2"))


def test_fallback_can_be_disabled():
    """Test no slot is found for an empty owner when the fallback is off."""
    scheduler = HeuristicScheduler(assume_free_when_unset=False)
    with pytest.raises(NoAvailableSlotError):
        scheduler.find_booking(None, [], person("p1"))


def test_custom_fallback_window():
    """Test the fallback days and hours are configurable."""
    scheduler = HeuristicScheduler(fallback_days=[TUESDAY], fallback_start_minute=600, fallback_end_minute=660)
    result = scheduler.find_booking(None, [], person("p1", 60))
    assert (result.day, result.time_interval.start) == (TUESDAY, 600)


def test_free_grid_projection():
    """Test the residual free time as a half-hour grid."""
    scheduler = HeuristicScheduler()
    grid = scheduler.build_free_grid(week_with(MONDAY, (540, 600)), [booking(MONDAY, 540, 30)])
    assert [i for i, cell in enumerate(grid[MONDAY]) if cell] == [19]


def test_commit_booking_snapshots_availability():
    """Test the committed booking carries the participant and their grid."""
    scheduler = HeuristicScheduler()
    new_booking = booking(MONDAY, 540, 30)

    committed = scheduler.commit_booking(person("p1"), new_booking, week_with(MONDAY, (540, 600)))
    assert committed.participant_id == "p1"
    assert committed.participant_name == "Student p1"
    assert committed.booking == new_booking
    assert [i for i, cell in enumerate(committed.availability_snapshot[MONDAY]) if cell] == [18, 19]

    empty = scheduler.commit_booking(person("p2"), new_booking)
    assert not any(any(row) for row in empty.availability_snapshot)


def test_find_first_fitting_window_direct():
    """Test the window search over an already-computed free schedule."""
    free = week_with(TUESDAY, (600, 630), (700, 800))
    found = find_first_fitting_window(free, 60)
    assert (found.day, found.time_interval.start) == (TUESDAY, 720)
    assert find_first_fitting_window(free, 90) is None


def test_solve_batch_keeps_going_after_a_miss():
    """Test unplaceable participants are listed and later ones still placed."""
    scheduler = HeuristicScheduler()
    owner = week_with(MONDAY, (540, 600))
    participants = [person("p1"), person("p2", 60), person("p3")]

    solution = scheduler.solve_batch(owner, participants)

    placed = [(a.participant_id, a.day_of_week, a.start_minute) for a in solution.assignments]
    assert placed == [("p1", MONDAY, 540), ("p3", MONDAY, 570)]
    assert solution.unscheduled == ["p2"]
    assert solution.metadata.total_participants == 3
    assert solution.metadata.scheduled_participants == 2
    assert solution.metadata.strategy == "heuristic"
    assert solution.metadata.status == "PARTIAL"


def test_solve_batch_respects_committed_bookings():
    """Test existing bookings are never double-booked."""
    scheduler = HeuristicScheduler()
    owner = week_with(MONDAY, (540, 600))

    solution = scheduler.solve_batch(owner, [person("p1")], committed_bookings=[booking(MONDAY, 540, 30)])
    assert solution.assignments[0].start_minute == 570
    assert solution.metadata.status == "FEASIBLE"


def test_solve_batch_is_deterministic():
    """Test identical inputs give identical assignments."""
    scheduler = HeuristicScheduler()
    owner = week_with(MONDAY, (540, 720))
    participants = [person("p1", 60), person("p2"), person("p3")]

    first = scheduler.solve_batch(owner, participants)
    second = scheduler.solve_batch(owner, participants)
    assert first.assignments == second.assignments


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
