"""
Data models and Pydantic schemas for the lesson scheduling engine.
"""
from .schemas import (
    BlockMetadata,
    TimeBlock,
    DaySchedule,
    WeekSchedule,
    LessonLength,
    Person,
    LessonAssignment,
    SolutionMetadata,
    ScheduleSolution,
    TimeInterval,
    Booking,
    CommittedBooking,
    ScheduleValidationError,
    UtilizationMetrics,
    LegacyTime,
    LegacyTimeRange,
    PlacementResult,
    ErrorMessage,
    Messages,
)

__all__ = [
    "BlockMetadata",
    "TimeBlock",
    "DaySchedule",
    "WeekSchedule",
    "LessonLength",
    "Person",
    "LessonAssignment",
    "SolutionMetadata",
    "ScheduleSolution",
    "TimeInterval",
    "Booking",
    "CommittedBooking",
    "ScheduleValidationError",
    "UtilizationMetrics",
    "LegacyTime",
    "LegacyTimeRange",
    "PlacementResult",
    "ErrorMessage",
    "Messages",
]
