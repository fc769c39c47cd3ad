import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from fractal import __version__
from fractal.api.endpoints import router as api_router
from fractal.api.error_handling import register_exception_handlers
from fractal.core.config import Settings
from fractal.core.constants import APP_DESCRIPTION, APP_NAME
from fractal.core.logging import configure_root_logging
from fractal.services.orchestrator import GenerationOrchestrator, build_orchestrator

logger = logging.getLogger(__name__)


def create_app(
    orchestrator: GenerationOrchestrator | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the HTTP app around an orchestrator (default wiring when omitted)."""
    if orchestrator is None:
        settings = settings or Settings.load()
        orchestrator = build_orchestrator(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.orchestrator.aclose()
        logger.debug("Backend clients closed")

    app = FastAPI(
        title=APP_NAME,
        description=APP_DESCRIPTION,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator
    app.include_router(api_router)
    register_exception_handlers(app)
    return app


def main() -> None:
    settings = Settings.load()
    configure_root_logging(settings.log_level)

    print(f"🚀 {APP_NAME} v{__version__}")
    print(f"   Server: http://{settings.host}:{settings.port}")
    print(f"   Stream mode: {settings.stream_mode}")
    print(f"   Cache size : {settings.cache_max_size}")
    print("")

    log_level = settings.log_level.lower()
    uvicorn.run(
        "fractal.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=log_level,
        access_log=log_level == "debug",
        reload=False,
    )


if __name__ == "__main__":
    main()
