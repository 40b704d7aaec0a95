"""
Conflict and utilization analysis over a finished set of assignments,
plus calendar export and revalidation after availability edits.
"""

from typing import List, Dict, Optional, Tuple
from datetime import date, datetime, timedelta, timezone
from models.schemas import (
    LessonAssignment, ScheduleSolution, WeekSchedule, Person, UtilizationMetrics,
)
from service.intervals import get_day_blocks, get_total_available_minutes, covers
import logging

logger = logging.getLogger(__name__)


# ===========================
# Conflicts
# ===========================

def assignments_overlap(a: LessonAssignment, b: LessonAssignment) -> bool:
    """Same day and the half-open ranges intersect. Touching lessons do not overlap."""
    return (
        a.day_of_week == b.day_of_week
        and a.start_minute < b.end_minute
        and b.start_minute < a.end_minute
    )


def detect_conflicts(assignments: List[LessonAssignment]) -> List[List[LessonAssignment]]:
    """
    Find overlapping assignments.

    Grouping is pairwise: each overlapping pair is its own group, so an
    assignment that overlaps several others appears in several groups.
    """
    conflicts = []
    for i, first in enumerate(assignments):
        for second in assignments[i + 1:]:
            if assignments_overlap(first, second):
                conflicts.append([first, second])
    return conflicts


# ===========================
# Utilization
# ===========================

def calculate_utilization(solution: ScheduleSolution, owner_availability: WeekSchedule) -> UtilizationMetrics:
    """
    Compute load and fragmentation for a solution.

    Args:
        solution: Schedule solution to analyze
        owner_availability: The owner's declared availability

    Returns:
        UtilizationMetrics; utilization_rate is 0 when the owner has no availability
    """
    available_minutes = get_total_available_minutes(owner_availability)
    scheduled_minutes = sum(a.duration_minutes for a in solution.assignments)
    utilization_rate = 100 * scheduled_minutes / available_minutes if available_minutes > 0 else 0.0

    # Group assignments by day
    by_day: Dict[int, List[LessonAssignment]] = {}
    for assignment in solution.assignments:
        by_day.setdefault(assignment.day_of_week, []).append(assignment)

    # Unused minutes strictly between consecutive lessons
    day_fragmentation: Dict[int, int] = {}
    for day, day_assignments in sorted(by_day.items()):
        ordered = sorted(day_assignments, key=lambda a: a.start_minute)
        day_fragmentation[day] = sum(
            max(0, nxt.start_minute - cur.end_minute)
            for cur, nxt in zip(ordered, ordered[1:])
        )

    total_gaps = sum(day_fragmentation.values())
    avg_fragmentation = total_gaps / len(day_fragmentation) if day_fragmentation else 0.0

    return UtilizationMetrics(
        scheduled_minutes=scheduled_minutes,
        available_minutes=available_minutes,
        utilization_rate=utilization_rate,
        avg_fragmentation=avg_fragmentation,
        total_gaps=total_gaps,
        conflict_count=len(detect_conflicts(solution.assignments)),
        day_fragmentation=day_fragmentation,
    )


# ===========================
# Calendar Export
# ===========================

def _escape_ics_text(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace(";", "\\;")
        .replace("\n", "\\n")
    )


def _quote_ics_param(text: str) -> str:
    # Parameter values cannot contain double quotes
    return "\"" + text.replace("\"", "'") + "\""


def _next_occurrence(reference: date, day_of_week: int) -> date:
    """First date on or after reference that falls on day_of_week (0 = Sunday)."""
    reference_dow = (reference.weekday() + 1) % 7
    return reference + timedelta(days=(day_of_week - reference_dow) % 7)


def generate_ics(
    solution: ScheduleSolution,
    participants: List[Person],
    owner_name: str,
    timezone_name: str = "UTC",
    reference_date: Optional[date] = None,
    generated_at: Optional[datetime] = None,
    uid_domain: str = "lesson-scheduler.local",
) -> str:
    """
    Render a solution as an iCalendar payload.

    One weekly recurring event per assignment, titled with the participant's
    name, or "Participant <id>" when the participant is unknown.

    Args:
        solution: Schedule solution to export
        participants: Participants used to resolve names
        owner_name: Organizer name
        timezone_name: TZID for event times
        reference_date: First week to place events in (default: today)
        generated_at: DTSTAMP value (default: now, UTC)
        uid_domain: Domain part of event UIDs

    Returns:
        ICS text with CRLF line endings
    """
    reference = reference_date or date.today()
    stamp = (generated_at or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%SZ")
    names = {p.id: p.name for p in participants}

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Lesson Scheduler//Lesson Scheduler//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-TIMEZONE:{timezone_name}",
    ]

    for index, assignment in enumerate(solution.assignments):
        name = names.get(assignment.participant_id, f"Participant {assignment.participant_id}")

        lesson_date = _next_occurrence(reference, assignment.day_of_week)
        start = datetime.combine(lesson_date, datetime.min.time()) + timedelta(minutes=assignment.start_minute)
        end = start + timedelta(minutes=assignment.duration_minutes)

        lines.extend([
            "BEGIN:VEVENT",
            f"UID:lesson-{assignment.participant_id}-{index}@{uid_domain}",
            f"DTSTAMP:{stamp}",
            f"DTSTART;TZID={timezone_name}:{start.strftime('%Y%m%dT%H%M%S')}",
            f"DTEND;TZID={timezone_name}:{end.strftime('%Y%m%dT%H%M%S')}",
            "RRULE:FREQ=WEEKLY",
            f"SUMMARY:{_escape_ics_text(f'Lesson with {name}')}",
            f"DESCRIPTION:{_escape_ics_text(f'{assignment.duration_minutes} minute lesson with {name}')}",
            f"ORGANIZER;CN={_quote_ics_param(owner_name)}:mailto:noreply@{uid_domain}",
            "STATUS:CONFIRMED",
            "TRANSP:OPAQUE",
            "END:VEVENT",
        ])

    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"


# ===========================
# Revalidation
# ===========================

def filter_valid_assignments(
    assignments: List[LessonAssignment],
    owner_availability: WeekSchedule,
    participant_availabilities: Optional[Dict[str, WeekSchedule]] = None,
) -> Tuple[List[LessonAssignment], List[LessonAssignment]]:
    """
    Split assignments into those still valid after an availability edit and those that are not.

    An assignment stays valid while it lies fully inside the owner's availability
    and, if the participant has declared availability, inside theirs too.

    Returns:
        (kept, dropped)
    """
    availabilities = participant_availabilities or {}
    kept, dropped = [], []

    for assignment in assignments:
        day = assignment.day_of_week
        start, duration = assignment.start_minute, assignment.duration_minutes

        valid = covers(get_day_blocks(owner_availability, day), start, duration)
        participant_availability = availabilities.get(assignment.participant_id)
        if valid and participant_availability is not None:
            valid = covers(get_day_blocks(participant_availability, day), start, duration)

        if valid:
            kept.append(assignment)
        else:
            logger.warning(
                f"Dropping assignment for {assignment.participant_id} on day {day} "
                f"at minute {start}: no longer fits availability"
            )
            dropped.append(assignment)

    return kept, dropped
