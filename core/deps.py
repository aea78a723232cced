from fastapi import HTTPException, Request, status

from services.conversation_engine import ConversationEngine
from utils.geofence import GeoMatcher

# Service Objects Live On app.state; Created In main.lifespan

SERVICE_NOT_READY_EXCEPTION = HTTPException(
    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    detail="Service is starting up.",
)


def get_conversation_engine(request: Request) -> ConversationEngine:
    engine = getattr(request.app.state, "conversation_engine", None)
    if engine is None:
        raise SERVICE_NOT_READY_EXCEPTION
    return engine


def get_geo_matcher(request: Request) -> GeoMatcher:
    geo_matcher = getattr(request.app.state, "geo_matcher", None)
    if geo_matcher is None:
        raise SERVICE_NOT_READY_EXCEPTION
    return geo_matcher


def get_verify_token(request: Request) -> str:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise SERVICE_NOT_READY_EXCEPTION
    return settings.verify_token
