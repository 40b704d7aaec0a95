from fastapi import APIRouter
from typing import Dict, List
from models.schemas import (
    WeekSchedule, LegacyTimeRange, AvailabilityRequest, ValidationResponse,
    DropZonesRequest, DropZonesResponse,
)
from service.intervals import validate_week_schedule, merge_week_schedule
from service.legacy import week_schedule_to_legacy, legacy_to_week_schedule
from service.intersection import get_valid_drop_zones, get_valid_drop_positions, is_valid_placement
from config import settings

# Create a router instance
router = APIRouter()


@router.post("/availability/validate", response_model=ValidationResponse)
async def validate_availability(request: AvailabilityRequest):
    """
    Check a weekly schedule for ordering, overlap and range problems.

    All violations are returned; the request itself never fails on them.
    """
    errors = validate_week_schedule(request.schedule)
    return ValidationResponse(valid=not errors, errors=errors)


@router.post("/availability/merge", response_model=WeekSchedule)
async def merge_availability(request: AvailabilityRequest):
    """Coalesce overlapping and touching availability blocks on every day."""
    return merge_week_schedule(request.schedule)


@router.post("/availability/to-legacy", response_model=Dict[str, List[LegacyTimeRange]])
async def availability_to_legacy(request: AvailabilityRequest):
    """Convert a schedule to the day-name keyed {hour, minute} format."""
    return week_schedule_to_legacy(request.schedule)


@router.post("/availability/from-legacy", response_model=WeekSchedule)
async def availability_from_legacy(legacy: Dict[str, List[LegacyTimeRange]]):
    """Convert the day-name keyed format back to a schedule. Unknown days are ignored."""
    return legacy_to_week_schedule(legacy)


@router.post("/intersection/drop-zones", response_model=DropZonesResponse)
async def drop_zones(request: DropZonesRequest):
    """
    Find where a lesson of the given duration fits inside both availabilities.

    When start_minute is supplied, also report whether that exact placement is legal.
    """
    stride = settings.drop_zone_stride_minutes
    zones = get_valid_drop_zones(
        request.day_of_week, request.duration_minutes,
        request.availability_a, request.availability_b, stride
    )
    positions = get_valid_drop_positions(
        request.day_of_week, request.duration_minutes,
        request.availability_a, request.availability_b, stride
    )

    is_valid = None
    if request.start_minute is not None:
        is_valid = is_valid_placement(
            request.day_of_week, request.start_minute, request.duration_minutes,
            request.availability_a, request.availability_b, stride
        )

    return DropZonesResponse(zones=zones, positions=positions, is_valid=is_valid)
