from typing import List, Optional

from fastapi import APIRouter, Depends

from .. import schemas
from ..dependencies import get_scheduling_service
from ..services.scheduling_service import SchedulingService

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("/bookings", response_model=schemas.BookingOut, status_code=201)
async def propose_booking(
    payload: schemas.BookingCreate,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Book a session (and its recurrences) from a wall-clock time in a zone.
    Every occurrence is created, or none is.
    """
    created = await service.propose_booking(payload)
    return {"accepted": created}


@router.get("/", response_model=List[schemas.SessionOut])
def list_sessions(identity: str, service: SchedulingService = Depends(get_scheduling_service)):
    return service.sessions_for(identity)


@router.get("/{session_id}", response_model=schemas.SessionOut)
def get_session(session_id: str, service: SchedulingService = Depends(get_scheduling_service)):
    return service.get_session(session_id)


@router.delete("/{session_id}", response_model=List[schemas.SessionOut])
async def cancel_session(
    session_id: str,
    actor_id: str,
    series: bool = False,
    reason: Optional[str] = None,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Cancel a session, or every still-scheduled occurrence of its series.
    """
    return await service.cancel_session(session_id, actor_id, whole_series=series, reason=reason)
