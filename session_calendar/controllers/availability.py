from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query

from .. import schemas
from ..dependencies import get_scheduling_service
from ..services.scheduling_service import SchedulingService

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/", response_model=List[schemas.TimeSlotOut])
def get_availability(
    identities: List[str] = Query(...),
    day: date = Query(..., alias="date"),
    zone: str = "UTC",
    interval_minutes: int = Query(30, ge=15, le=240),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Business-hour slots for `date` in `zone`; a slot is unavailable when
    any of the identities already has a session overlapping it.
    """
    return service.availability(identities, day, zone, interval_minutes)
