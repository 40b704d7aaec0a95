from pydantic import BaseModel, Field
from typing import List, Dict, Optional, Literal


# ===========================
# Interval Models
# ===========================

class BlockMetadata(BaseModel):
    """Who a placed lesson block belongs to"""
    participant_id: str
    participant_name: str = ""


class TimeBlock(BaseModel):
    """Contiguous interval [start, start + duration) within one day"""
    start: int       # minute of day, 0-1439
    duration: int    # minutes
    metadata: Optional[BlockMetadata] = None

    @property
    def end(self) -> int:
        return self.start + self.duration


class DaySchedule(BaseModel):
    """Blocks for a single day of the week"""
    day_of_week: int  # 0 = Sunday ... 6 = Saturday
    blocks: List[TimeBlock] = []


def _empty_days() -> List[DaySchedule]:
    return [DaySchedule(day_of_week=i, blocks=[]) for i in range(7)]


class WeekSchedule(BaseModel):
    """Seven days of availability or of placed lessons"""
    days: List[DaySchedule] = Field(default_factory=_empty_days)


# ===========================
# Participant & Assignment Models
# ===========================

LessonLength = Literal[30, 60]


class Person(BaseModel):
    """A participant to be matched with the owner"""
    id: str
    name: str
    required_duration_minutes: LessonLength = 30


class LessonAssignment(BaseModel):
    """One committed placement"""
    participant_id: str
    day_of_week: int
    start_minute: int
    duration_minutes: int

    @property
    def end_minute(self) -> int:
        return self.start_minute + self.duration_minutes


class SolutionMetadata(BaseModel):
    total_participants: int
    scheduled_participants: int
    strategy: Optional[str] = None          # "heuristic" or "optimal"
    status: Optional[str] = None            # "OPTIMAL", "FEASIBLE", "PARTIAL", "INFEASIBLE", "TIMEOUT", "ERROR"
    compute_time_ms: Optional[float] = None


class ScheduleSolution(BaseModel):
    """Result of placing a batch of participants"""
    assignments: List[LessonAssignment] = []
    unscheduled: List[str] = []   # participant ids
    metadata: SolutionMetadata


class TimeInterval(BaseModel):
    start: int
    duration: int


class Booking(BaseModel):
    """Single-slot output of one heuristic run"""
    day: int
    time_interval: TimeInterval


class CommittedBooking(BaseModel):
    """Booking tied to a participant, with a snapshot of their availability grid"""
    participant_id: str
    participant_name: str
    booking: Booking
    availability_snapshot: List[List[bool]] = []


# ===========================
# Validation & Analysis Models
# ===========================

class ScheduleValidationError(BaseModel):
    """A single invariant violation found in a WeekSchedule"""
    type: Literal["structure", "time_range", "order", "overlap"]
    day_of_week: int
    block_index: Optional[int] = None
    message: str


class UtilizationMetrics(BaseModel):
    scheduled_minutes: int
    available_minutes: int
    utilization_rate: float          # percent
    avg_fragmentation: float         # minutes of unused time per busy day
    total_gaps: int = 0
    conflict_count: int = 0
    day_fragmentation: Dict[int, int] = {}


# ===========================
# Legacy Interchange Models
# ===========================

class LegacyTime(BaseModel):
    hour: int
    minute: int


class LegacyTimeRange(BaseModel):
    start: LegacyTime
    end: LegacyTime


# ===========================
# Placement Models
# ===========================

class PlacementResult(BaseModel):
    """Outcome of a drag/drop; rejection is a value, not an error"""
    accepted: bool
    schedule: WeekSchedule
    day_of_week: int
    start_minute: int
    reason: Optional[str] = None


# ===========================
# Request Schemas
# ===========================

class AvailabilityRequest(BaseModel):
    schedule: WeekSchedule


class DropZonesRequest(BaseModel):
    day_of_week: int
    duration_minutes: int
    availability_a: Optional[WeekSchedule] = None
    availability_b: Optional[WeekSchedule] = None
    start_minute: Optional[int] = None   # when given, placement legality is also reported


class NextBookingRequest(BaseModel):
    """Place one new participant against the owner's residual availability"""
    owner_availability: Optional[WeekSchedule] = None
    committed_bookings: List[Booking] = []
    participant: Person
    participant_availability: Optional[WeekSchedule] = None


class BatchScheduleRequest(BaseModel):
    owner_availability: Optional[WeekSchedule] = None
    committed_bookings: List[Booking] = []
    participants: List[Person]
    participant_availabilities: Dict[str, WeekSchedule] = {}


class ConflictsRequest(BaseModel):
    assignments: List[LessonAssignment]


class UtilizationRequest(BaseModel):
    solution: ScheduleSolution
    owner_availability: WeekSchedule


class CalendarExportRequest(BaseModel):
    solution: ScheduleSolution
    participants: List[Person] = []
    owner_name: str
    timezone: Optional[str] = None


class RevalidateRequest(BaseModel):
    assignments: List[LessonAssignment]
    owner_availability: WeekSchedule
    participant_availabilities: Dict[str, WeekSchedule] = {}


class SnapRequest(BaseModel):
    minute: int
    duration_minutes: int
    snap_mode: Literal["grid", "precise", "smart"] = "grid"
    day_of_week: int
    owner_availability: Optional[WeekSchedule] = None
    participant_availability: Optional[WeekSchedule] = None


class PlacementMoveRequest(BaseModel):
    """Move an already-placed lesson block to a new day/time"""
    schedule: WeekSchedule
    origin_day: int
    block_index: int
    target_day: int
    target_minute: int
    snap_mode: Literal["grid", "precise", "smart"] = "grid"
    owner_availability: Optional[WeekSchedule] = None
    participant_availabilities: Optional[Dict[str, WeekSchedule]] = None


# ===========================
# Response Schemas
# ===========================

class ErrorMessage(BaseModel):
    """Error or warning message"""
    title: str
    message: str
    code: Optional[str] = None


class Messages(BaseModel):
    """Collection of error/warning messages"""
    error_message: List[ErrorMessage] = []


class ValidationResponse(BaseModel):
    valid: bool
    errors: List[ScheduleValidationError] = []


class DropZonesResponse(BaseModel):
    zones: List[TimeBlock] = []
    positions: List[int] = []
    is_valid: Optional[bool] = None


class NextBookingResponse(BaseModel):
    status: str   # "SCHEDULED" or "UNSCHEDULED"
    new_booking: Optional[Booking] = None
    committed: Optional[CommittedBooking] = None
    messages: Messages = Messages()


class BatchScheduleResponse(BaseModel):
    solution: ScheduleSolution
    messages: Messages = Messages()


class ConflictsResponse(BaseModel):
    conflicts: List[List[LessonAssignment]] = []


class RevalidateResponse(BaseModel):
    kept: List[LessonAssignment] = []
    dropped: List[LessonAssignment] = []


class SnapResponse(BaseModel):
    start_minute: int
