# session_calendar/controllers/meetings.py

from fastapi import APIRouter, Depends

from .. import schemas
from ..dependencies import get_scheduling_service
from ..services.scheduling_service import SchedulingService

router = APIRouter(
    prefix="/sessions/{session_id}/meeting",
    tags=["meetings"],
)


@router.post("/start", response_model=schemas.SessionOut)
async def start_meeting(
    session_id: str,
    payload: schemas.MeetingAction,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Host marks the meeting live.
    """
    return await service.start_meeting(session_id, payload.actor_id)


@router.post("/end", response_model=schemas.SessionOut)
async def end_meeting(
    session_id: str,
    payload: schemas.MeetingAction,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Host ends a live meeting.
    """
    return await service.end_meeting(session_id, payload.actor_id)


@router.get("/join-status", response_model=schemas.JoinStatusOut)
def join_status(
    session_id: str,
    actor_id: str,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.join_status(session_id, actor_id)
