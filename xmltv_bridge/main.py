from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from xmltv_bridge import __version__
from xmltv_bridge.config import settings, setup_logging
from xmltv_bridge.dependencies import get_warm_scheduler, init_services, registry
from xmltv_bridge.routers import main_router
from xmltv_bridge.utils.logging_helpers import log_banner


setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the guide services on startup, stop the warm-up job on shutdown"""
    log_banner(logger, f"Starting XMLTV Bridge {__version__}")

    try:
        init_services(settings)
        get_warm_scheduler().start()
    except Exception as e:
        log_banner(logger, f"XMLTV Bridge failed to start: {e}", logging.ERROR)
        raise

    logger.info("Serving guides for %s", settings.default_playlist_url)

    yield

    log_banner(logger, "Shutting down XMLTV Bridge")
    try:
        get_warm_scheduler().shutdown()
    except Exception as e:
        logger.error(f"Error stopping warm-up scheduler: {e}", exc_info=True)
    registry.reset()


app = FastAPI(
    title="XMLTV Bridge",
    version=__version__,
    lifespan=lifespan
)

app.include_router(main_router)

