from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .database import get_db
from .services.scheduling_service import SchedulingService


def get_scheduling_service(request: Request, db: Session = Depends(get_db)) -> SchedulingService:
    state = request.app.state
    return SchedulingService(db, state.channel, getattr(state, "scheduler", None))
