from fastapi import APIRouter
from models.schemas import SnapRequest, SnapResponse, PlacementMoveRequest, PlacementResult
from service.intervals import get_day_blocks
from service.placement import SnapMode, snap_start, move_block
from config import settings

# Create a router instance
router = APIRouter()


@router.post("/placement/snap", response_model=SnapResponse)
async def snap(request: SnapRequest):
    """Snap a raw drag position according to the requested snap mode."""
    start = snap_start(
        request.minute,
        request.duration_minutes,
        SnapMode(request.snap_mode),
        request.day_of_week,
        request.owner_availability,
        request.participant_availability,
        grid_minutes=settings.grid_snap_minutes,
        stride=settings.drop_zone_stride_minutes,
    )
    return SnapResponse(start_minute=start)


@router.post("/placement/move", response_model=PlacementResult)
async def move(request: PlacementMoveRequest):
    """
    Snap and drop a placed lesson block at a new day and minute.

    A rejected drop is a normal response with accepted=false and the schedule unchanged.
    """
    blocks = get_day_blocks(request.schedule, request.origin_day)
    target_minute = request.target_minute

    if 0 <= request.block_index < len(blocks):
        block = blocks[request.block_index]
        participant_availability = None
        if block.metadata and request.participant_availabilities:
            participant_availability = request.participant_availabilities.get(block.metadata.participant_id)

        target_minute = snap_start(
            request.target_minute,
            block.duration,
            SnapMode(request.snap_mode),
            request.target_day,
            request.owner_availability,
            participant_availability,
            grid_minutes=settings.grid_snap_minutes,
            stride=settings.drop_zone_stride_minutes,
        )

    return move_block(
        request.schedule,
        request.origin_day,
        request.block_index,
        request.target_day,
        target_minute,
        request.owner_availability,
        request.participant_availabilities,
        stride=settings.drop_zone_stride_minutes,
    )
