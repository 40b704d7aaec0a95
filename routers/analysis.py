from fastapi import APIRouter, Response
from models.schemas import (
    ConflictsRequest, ConflictsResponse, UtilizationRequest, UtilizationMetrics,
    CalendarExportRequest, RevalidateRequest, RevalidateResponse,
)
from service.analysis import detect_conflicts, calculate_utilization, generate_ics, filter_valid_assignments
from config import settings

# Create a router instance
router = APIRouter()


@router.post("/analysis/conflicts", response_model=ConflictsResponse)
async def find_conflicts(request: ConflictsRequest):
    """Return every pair of assignments that overlap on the same day."""
    return ConflictsResponse(conflicts=detect_conflicts(request.assignments))


@router.post("/analysis/utilization", response_model=UtilizationMetrics)
async def utilization(request: UtilizationRequest):
    """Report how much of the owner's availability a solution uses and how fragmented it is."""
    return calculate_utilization(request.solution, request.owner_availability)


@router.post("/analysis/ics")
async def export_calendar(request: CalendarExportRequest):
    """Export a solution as weekly recurring iCalendar events."""
    payload = generate_ics(
        request.solution,
        request.participants,
        request.owner_name,
        timezone_name=request.timezone or settings.ics_timezone,
        uid_domain=settings.ics_uid_domain,
    )
    return Response(
        content=payload,
        media_type="text/calendar",
        headers={"Content-Disposition": 'attachment; filename="lessons.ics"'},
    )


@router.post("/analysis/revalidate", response_model=RevalidateResponse)
async def revalidate(request: RevalidateRequest):
    """
    Re-check assignments after an availability change.

    Assignments that no longer fit are returned in `dropped`.
    """
    kept, dropped = filter_valid_assignments(
        request.assignments, request.owner_availability, request.participant_availabilities
    )
    return RevalidateResponse(kept=kept, dropped=dropped)
