import asyncio
import logging
import os
from contextlib import asynccontextmanager, suppress
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI

from api.health_routes import router as health_router
from api.office_routes import router as office_router
from api.webhook_routes import router as webhook_router
from core.config import load_settings
from services.container import AppServices, build_services
from services.pending_sweeper import run_pending_sweep_loop

# This file is the control center of the whole application

# Load environment variables from .env file, if it exists
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def create_app(services: Optional[AppServices] = None) -> FastAPI:
    """
    Build the FastAPI app. Pass prebuilt services to skip environment-driven
    wiring (tests); otherwise settings are read at startup and missing
    credentials abort it.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_services = services or await build_services(load_settings())
        app.state.settings = app_services.settings
        app.state.geo_matcher = app_services.geo_matcher
        app.state.pending_store = app_services.pending_store
        app.state.conversation_engine = app_services.conversation_engine

        sweep_task = None
        if app_services.settings.pending_request_ttl_seconds:
            sweep_task = asyncio.create_task(
                run_pending_sweep_loop(
                    app_services.pending_store,
                    app_services.settings.pending_sweep_interval_seconds,
                )
            )
        logger.info(f"[STARTUP] ✅ {app_services.settings.service_name} ready")

        yield

        if sweep_task is not None:
            sweep_task.cancel()
            with suppress(asyncio.CancelledError):
                await sweep_task
        close = getattr(app_services.notifier, "aclose", None)
        if close is not None:
            await close()

    # Starts Fast API Up; Init
    app = FastAPI(lifespan=lifespan)

    app.include_router(health_router, tags=["Health"])
    app.include_router(webhook_router, prefix="/webhook", tags=["Webhook"])
    app.include_router(office_router, prefix="/offices", tags=["Offices", "Geofence"])
    return app


app = create_app()
