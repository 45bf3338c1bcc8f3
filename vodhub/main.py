import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from vodhub import __version__
from vodhub.api.routes_api import router as api_router
from vodhub.context import AppContext, build_context
from vodhub.core.config import get_settings
from vodhub.core.logging import configure_logging

load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """Application lifespan context manager."""
    if getattr(app.state, "context", None) is None:
        settings = get_settings()
        configure_logging(settings)
        app.state.context = build_context(settings)
        logger.info(
            f"VodHub started with {len(app.state.context.registry.all())} sources"
        )
    try:
        yield
    finally:
        try:
            await app.state.context.aclose()
        except Exception as e:
            logger.error(f"Error closing HTTP sessions: {e}")


def create_app(context: AppContext | None = None) -> FastAPI:
    """Build the FastAPI app, optionally around a prepared context."""
    app = FastAPI(
        title="VodHub",
        description="Aggregated VOD listings with AI-assisted curation",
        version=__version__,
        lifespan=app_lifespan,
    )
    app.state.context = context
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
