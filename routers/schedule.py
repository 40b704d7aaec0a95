from fastapi import APIRouter
from models.schemas import (
    NextBookingRequest, NextBookingResponse, BatchScheduleRequest, BatchScheduleResponse,
    Messages, ErrorMessage,
)
from service.heuristic import HeuristicScheduler
from service.ortools_solver import ORToolsScheduler
from service.exceptions import NoAvailableSlotError
from config import settings

# Create a router instance
router = APIRouter()


def _heuristic_scheduler() -> HeuristicScheduler:
    return HeuristicScheduler(
        assume_free_when_unset=settings.assume_free_when_unset,
        fallback_days=settings.fallback_days,
        fallback_start_minute=settings.fallback_start_minute,
        fallback_end_minute=settings.fallback_end_minute,
        slot_minutes=settings.heuristic_slot_minutes,
    )


@router.post("/schedule/next-booking", response_model=NextBookingResponse)
async def next_booking(request: NextBookingRequest):
    """
    Place one new participant in the first free slot of the owner's week.

    If nothing fits, the response is still 200 with status UNSCHEDULED and an
    explanatory message.
    """
    scheduler = _heuristic_scheduler()

    try:
        booking = scheduler.find_booking(
            request.owner_availability, request.committed_bookings,
            request.participant, request.participant_availability
        )
    except NoAvailableSlotError as e:
        return NextBookingResponse(
            status="UNSCHEDULED",
            messages=Messages(error_message=[
                ErrorMessage(title="No Available Slot", message=str(e), code="NO_AVAILABLE_SLOT")
            ])
        )

    committed = scheduler.commit_booking(request.participant, booking, request.participant_availability)
    return NextBookingResponse(status="SCHEDULED", new_booking=booking, committed=committed)


@router.post("/schedule/heuristic", response_model=BatchScheduleResponse)
async def schedule_heuristic(request: BatchScheduleRequest):
    """
    Place a batch of participants greedily, in the order given.

    Participants that cannot be placed are listed as unscheduled.
    """
    scheduler = _heuristic_scheduler()
    solution = scheduler.solve_batch(
        request.owner_availability,
        request.participants,
        request.committed_bookings,
        request.participant_availabilities,
    )
    return BatchScheduleResponse(solution=solution, messages=_unscheduled_messages(solution.unscheduled))


@router.post("/schedule/optimal", response_model=BatchScheduleResponse)
async def schedule_optimal(request: BatchScheduleRequest):
    """
    Place a batch of participants with the CP-SAT solver.

    Maximizes the number of scheduled participants, preferring earlier slots.
    """
    scheduler = ORToolsScheduler(
        time_limit_seconds=settings.solver_timeout_seconds,
        random_seed=settings.solver_random_seed,
        num_workers=settings.solver_num_workers,
        stride=settings.drop_zone_stride_minutes,
    )
    solution = scheduler.solve(
        request.owner_availability,
        request.participants,
        request.participant_availabilities,
        request.committed_bookings,
    )

    messages = _unscheduled_messages(solution.unscheduled)
    if solution.metadata.status in ("TIMEOUT", "ERROR"):
        messages.error_message.insert(0, ErrorMessage(
            title="Solver Failed",
            message=f"Solver finished with status {solution.metadata.status}",
            code=solution.metadata.status,
        ))
    return BatchScheduleResponse(solution=solution, messages=messages)


def _unscheduled_messages(unscheduled) -> Messages:
    return Messages(error_message=[
        ErrorMessage(
            title="Unscheduled Participant",
            message=f"Could not find a slot for participant {participant_id}",
            code="NO_AVAILABLE_SLOT",
        )
        for participant_id in unscheduled
    ])
