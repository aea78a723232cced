from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from utils.datetime_helpers import format_utc_datetime

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    service: str
    timestamp: str


@router.get("/", response_class=PlainTextResponse)
def root():
    return "App is running!"


@router.get("/health", response_model=HealthResponse)
def health(request: Request):
    settings = getattr(request.app.state, "settings", None)
    return HealthResponse(
        status="healthy",
        service=settings.service_name if settings else "whatsapp-attendance-bot",
        timestamp=format_utc_datetime(datetime.now(timezone.utc)),
    )
