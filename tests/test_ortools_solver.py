"""
Test the CP-SAT batch scheduler.
"""
import pytest
from models.schemas import TimeBlock, Person, Booking, TimeInterval
from service.intervals import create_empty_week_schedule
from service.analysis import detect_conflicts
from service.heuristic import HeuristicScheduler
from service.ortools_solver import ORToolsScheduler

MONDAY, TUESDAY = 1, 2


def week_with(day, *ranges):
    schedule = create_empty_week_schedule()
    schedule.days[day].blocks = [TimeBlock(start=s, duration=e - s) for s, e in ranges]
    return schedule


def person(pid, duration=30):
    return Person(id=pid, name=f"Student {pid}", required_duration_minutes=duration)


def starts(solution):
    return {a.participant_id: (a.day_of_week, a.start_minute) for a in solution.assignments}


def test_fills_an_hour_with_two_half_hours():
    """Test two half-hour participants share Monday 09:00-10:00."""
    solution = ORToolsScheduler().solve(week_with(MONDAY, (540, 600)), [person("p1"), person("p2")])

    assert solution.metadata.status == "OPTIMAL"
    assert solution.metadata.strategy == "optimal"
    assert solution.metadata.scheduled_participants == 2
    assert sorted(starts(solution).values()) == [(MONDAY, 540), (MONDAY, 570)]
    assert solution.unscheduled == []


def test_schedules_more_participants_than_first_fit():
    """Test the optimizer skips a long lesson that would crowd out two short ones."""
    owner = week_with(MONDAY, (540, 600))
    participants = [person("p1", 60), person("p2"), person("p3")]

    heuristic = HeuristicScheduler().solve_batch(owner, participants)
    optimal = ORToolsScheduler().solve(owner, participants)

    assert heuristic.metadata.scheduled_participants == 1
    assert optimal.metadata.scheduled_participants == 2
    assert optimal.unscheduled == ["p1"]
    assert detect_conflicts(optimal.assignments) == []


def test_prefers_earlier_slots():
    """Test a lone participant gets the earliest legal start in the week."""
    owner = week_with(TUESDAY, (540, 720))
    owner.days[MONDAY].blocks = [TimeBlock(start=900, duration=60)]

    solution = ORToolsScheduler().solve(owner, [person("p1")])
    assert starts(solution) == {"p1": (MONDAY, 900)}


def test_respects_participant_availability():
    """Test a participant is only placed inside their declared time."""
    owner = week_with(MONDAY, (540, 720))
    solution = ORToolsScheduler().solve(
        owner, [person("p1"), person("p2")], {"p1": week_with(MONDAY, (600, 660))}
    )

    assert starts(solution)["p1"][1] >= 600
    assert starts(solution)["p1"][1] + 30 <= 660
    assert starts(solution)["p2"] == (MONDAY, 540)


def test_avoids_committed_bookings():
    """Test existing bookings are treated as occupied."""
    owner = week_with(MONDAY, (540, 600))
    committed = [Booking(day=MONDAY, time_interval=TimeInterval(start=540, duration=30))]

    solution = ORToolsScheduler().solve(owner, [person("p1"), person("p2")], committed_bookings=committed)
    assert solution.metadata.scheduled_participants == 1
    assert list(starts(solution).values()) == [(MONDAY, 570)]


def test_empty_owner_is_infeasible():
    """Test nothing is scheduled without owner availability."""
    solution = ORToolsScheduler().solve(None, [person("p1"), person("p2")])

    assert solution.metadata.status == "INFEASIBLE"
    assert solution.assignments == []
    assert solution.unscheduled == ["p1", "p2"]


def test_solver_is_deterministic():
    """Test repeated runs with the fixed seed return the same answer."""
    owner = week_with(MONDAY, (540, 720))
    participants = [person("p1", 60), person("p2"), person("p3"), person("p4", 60)]

    first = ORToolsScheduler().solve(owner, participants)
    second = ORToolsScheduler().solve(owner, participants)
    assert first.assignments == second.assignments
    assert first.metadata.scheduled_participants == 4


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
