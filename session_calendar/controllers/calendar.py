from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from .. import schemas
from ..dependencies import get_scheduling_service
from ..services.scheduling_service import SchedulingService
from ..utils.ics_utils import build_session_ics

router = APIRouter(tags=["calendar"])


@router.get("/sessions/{session_id}/calendar-event", response_model=schemas.CalendarEventOut)
def get_calendar_event(
    session_id: str,
    zone: str = "UTC",
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.calendar_event(session_id, zone)


@router.get("/sessions/{session_id}/invite.ics")
def get_invite(
    session_id: str,
    zone: str = "UTC",
    service: SchedulingService = Depends(get_scheduling_service),
):
    ics = build_session_ics(service.calendar_event(session_id, zone))
    return Response(
        content=ics,
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="session_{session_id}.ics"'},
    )


@router.get("/calendar/{identity}", response_model=List[schemas.CalendarEventOut])
def get_calendar(
    identity: str,
    zone: str = "UTC",
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Every session the identity hosts or is invited to, localized to `zone`.
    """
    return service.calendar_for(identity, zone)
