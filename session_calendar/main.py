import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import CORS_ORIGINS, LOG_LEVEL
from .controllers import availability, calendar, meetings, sessions, users
from .database import init_db
from .errors import (
    ConflictError,
    InvalidBookingError,
    InvalidTimeError,
    InvalidTransitionError,
    PastTimeError,
    SchedulingError,
    SessionNotFoundError,
)
from .services.realtime import build_channel

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

STATUS_CODES = {
    InvalidTimeError: 422,
    InvalidBookingError: 422,
    PastTimeError: 422,
    ConflictError: 409,
    SessionNotFoundError: 404,
}


def status_code_for(exc: SchedulingError) -> int:
    if isinstance(exc, InvalidTransitionError):
        return 403 if exc.reason == InvalidTransitionError.NOT_HOST else 409
    for error_type, code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return code
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Session calendar starting up...")
    init_db()
    app.state.channel = build_channel()
    app.state.scheduler = AsyncIOScheduler(timezone="UTC")
    app.state.scheduler.start()
    yield
    app.state.scheduler.shutdown(wait=False)
    await app.state.channel.flush()
    logger.info("Session calendar shutting down...")


app = FastAPI(title="Session Calendar", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    status_code = status_code_for(exc)
    logger.warning(f"{request.method} {request.url.path} -> {status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


app.include_router(users.router)
app.include_router(sessions.router)
app.include_router(meetings.router)
app.include_router(calendar.router)
app.include_router(availability.router)
