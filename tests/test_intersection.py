"""
Test valid drop zones, candidate positions and placement legality.
"""
import pytest
from models.schemas import TimeBlock
from service.intervals import create_empty_week_schedule, intersect_blocks, get_day_blocks
from service.intersection import get_valid_drop_zones, get_valid_drop_positions, is_valid_placement

MONDAY = 1


def week_with(day, *ranges):
    schedule = create_empty_week_schedule()
    schedule.days[day].blocks = [TimeBlock(start=s, duration=e - s) for s, e in ranges]
    return schedule


def spans(blocks):
    return [(b.start, b.end) for b in blocks]


def test_zones_cover_shared_time():
    """Test the zone is the overlap of both parties for a 30 minute lesson."""
    owner = week_with(MONDAY, (540, 660))
    participant = week_with(MONDAY, (600, 720))

    assert spans(get_valid_drop_zones(MONDAY, 30, owner, participant)) == [(600, 660)]
    assert get_valid_drop_positions(MONDAY, 30, owner, participant) == [600, 615, 630]


def test_overlap_exactly_one_lesson_long():
    """Test an overlap equal to the duration yields a single position."""
    owner = week_with(MONDAY, (540, 660))
    participant = week_with(MONDAY, (600, 720))

    assert get_valid_drop_positions(MONDAY, 60, owner, participant) == [600]
    assert spans(get_valid_drop_zones(MONDAY, 60, owner, participant)) == [(600, 660)]


def test_overlap_too_short_yields_nothing():
    """Test no zone when the overlap is shorter than the lesson."""
    owner = week_with(MONDAY, (540, 660))
    participant = week_with(MONDAY, (600, 720))
    assert get_valid_drop_zones(MONDAY, 90, owner, participant) == []


def test_positions_stop_before_overlap_end():
    """Test stride stepping never produces a window running past the overlap."""
    owner = week_with(MONDAY, (540, 600))
    participant = week_with(MONDAY, (540, 610))

    assert get_valid_drop_positions(MONDAY, 45, owner, participant) == [540, 555]
    assert spans(get_valid_drop_zones(MONDAY, 45, owner, participant)) == [(540, 600)]


def test_missing_availability_means_no_zones():
    """Test an absent or empty side has no zones."""
    owner = week_with(MONDAY, (540, 660))
    assert get_valid_drop_zones(MONDAY, 30, owner, None) == []
    assert get_valid_drop_zones(MONDAY, 30, owner, create_empty_week_schedule()) == []
    assert get_valid_drop_zones(2, 30, owner, owner) == []


def test_non_positive_duration_or_stride():
    """Test degenerate arguments return no zones rather than looping."""
    owner = week_with(MONDAY, (540, 660))
    assert get_valid_drop_zones(MONDAY, 0, owner, owner) == []
    assert get_valid_drop_zones(MONDAY, 30, owner, owner, stride=0) == []


def test_zones_lie_inside_both_availabilities():
    """Test every zone is inside A and B and at least one lesson long."""
    owner = week_with(MONDAY, (480, 600), (660, 900))
    participant = week_with(MONDAY, (540, 720), (840, 960))
    shared = intersect_blocks(get_day_blocks(owner, MONDAY), get_day_blocks(participant, MONDAY))

    zones = get_valid_drop_zones(MONDAY, 30, owner, participant)
    assert zones
    for zone in zones:
        assert zone.duration >= 30
        assert any(s.start <= zone.start and zone.end <= s.end for s in shared)


def test_is_valid_placement_matches_zone_containment():
    """Test placement is legal exactly when it sits inside a zone."""
    owner = week_with(MONDAY, (540, 660))
    participant = week_with(MONDAY, (600, 720))

    assert is_valid_placement(MONDAY, 600, 30, owner, participant)
    assert is_valid_placement(MONDAY, 630, 30, owner, participant)
    assert is_valid_placement(MONDAY, 605, 30, owner, participant)
    assert not is_valid_placement(MONDAY, 640, 30, owner, participant)
    assert not is_valid_placement(MONDAY, 570, 30, owner, participant)
    assert not is_valid_placement(2, 600, 30, owner, participant)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
