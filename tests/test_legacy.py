"""
Test conversions to and from the legacy day-name map and the boolean grid.
"""
import pytest
from models.schemas import TimeBlock
from service.intervals import create_empty_week_schedule
from service.legacy import (
    week_schedule_to_legacy, legacy_to_week_schedule, week_schedule_to_grid, grid_to_week_schedule,
)


def week_with(day, *ranges):
    schedule = create_empty_week_schedule()
    schedule.days[day].blocks = [TimeBlock(start=s, duration=e - s) for s, e in ranges]
    return schedule


def spans(blocks):
    return [(b.start, b.end) for b in blocks]


def test_to_legacy_omits_empty_days():
    """Test only days with blocks appear, keyed by weekday name."""
    legacy = week_schedule_to_legacy(week_with(1, (540, 630)))
    assert list(legacy.keys()) == ["Monday"]

    time_range = legacy["Monday"][0]
    assert (time_range.start.hour, time_range.start.minute) == (9, 0)
    assert (time_range.end.hour, time_range.end.minute) == (10, 30)


def test_to_legacy_encodes_end_of_day_as_24():
    """Test a block ending at midnight is written as 24:00."""
    legacy = week_schedule_to_legacy(week_with(6, (1380, 1440)))
    end = legacy["Saturday"][0].end
    assert (end.hour, end.minute) == (24, 0)


def test_from_legacy_accepts_plain_dicts():
    """Test parsing the stored JSON form."""
    schedule = legacy_to_week_schedule({
        "Monday": [
            {"start": {"hour": 14, "minute": 0}, "end": {"hour": 15, "minute": 0}},
            {"start": {"hour": 9, "minute": 0}, "end": {"hour": 10, "minute": 30}},
        ]
    })
    # Sorted, not merged
    assert spans(schedule.days[1].blocks) == [(540, 630), (840, 900)]
    assert all(not day.blocks for day in schedule.days if day.day_of_week != 1)


def test_from_legacy_skips_unknown_days_and_empty_ranges():
    """Test bad entries are dropped instead of failing the conversion."""
    schedule = legacy_to_week_schedule({
        "Funday": [{"start": {"hour": 9, "minute": 0}, "end": {"hour": 10, "minute": 0}}],
        "Tuesday": [
            {"start": {"hour": 10, "minute": 0}, "end": {"hour": 10, "minute": 0}},
            {"start": {"hour": 11, "minute": 0}, "end": {"hour": 12, "minute": 0}},
        ],
        "Wednesday": [],
    })
    assert spans(schedule.days[2].blocks) == [(660, 720)]
    assert schedule.days[3].blocks == []


def test_legacy_round_trip_preserves_minutes():
    """Test converting out and back keeps every covered minute."""
    schedule = week_with(1, (540, 585), (600, 615))
    schedule.days[0].blocks = [TimeBlock(start=0, duration=1440)]

    restored = legacy_to_week_schedule(week_schedule_to_legacy(schedule))
    for day in range(7):
        assert spans(restored.days[day].blocks) == spans(schedule.days[day].blocks)


def test_grid_marks_fully_covered_cells():
    """Test Monday 09:00-10:00 fills cells 18 and 19 of the half-hour grid."""
    grid = week_schedule_to_grid(week_with(1, (540, 600)))
    assert len(grid) == 7
    assert len(grid[1]) == 48
    assert [i for i, cell in enumerate(grid[1]) if cell] == [18, 19]


def test_grid_ignores_partially_covered_cells():
    """Test a cell is only set when its whole half hour is available."""
    grid = week_schedule_to_grid(week_with(1, (545, 605)))
    assert [i for i, cell in enumerate(grid[1]) if cell] == [19]


def test_grid_with_custom_window():
    """Test a grid starting at 08:00 with hourly cells."""
    grid = week_schedule_to_grid(week_with(2, (540, 660)), slot_minutes=60, start_minute=480, end_minute=1080)
    assert grid[2] == [False, True, True, False, False, False, False, False, False, False]


def test_grid_to_week_schedule_rebuilds_runs():
    """Test consecutive True cells become one block."""
    grid = [[False] * 48 for _ in range(7)]
    grid[3][18] = grid[3][19] = True
    grid[3][47] = True

    schedule = grid_to_week_schedule(grid)
    assert spans(schedule.days[3].blocks) == [(540, 600), (1410, 1440)]
    assert schedule.days[1].blocks == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
