import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from settlement import __version__
from settlement.core.config import get_settings
from settlement.core.container import ApplicationContainer, get_container
from settlement.core.logging import setup_logging
from settlement.infrastructure.database.session import dispose_engine, init_db
from settlement.interfaces.http import create_api_router
from settlement.interfaces.http.routers import notifications as notifications_router

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.logging.level, settings.logging.format)
    container: ApplicationContainer = app.state.container
    await init_db(container.engine)

    worker = None
    if settings.queue.backend == "database" and settings.queue.run_worker:
        worker = container.build_queue_worker()
        await worker.start()
    app.state.queue_worker = worker

    logger.info("%s %s started (queue backend: %s)", settings.project_name, __version__, settings.queue.backend)
    try:
        yield
    finally:
        if worker is not None:
            await worker.stop()
        await container.aclose()
        await dispose_engine()


def create_app(container: Optional[ApplicationContainer] = None) -> FastAPI:
    app = FastAPI(
        title=settings.project_name,
        description="Transaction creation, scheduling and settlement",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.container = container or get_container()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_api_router(settings.api_prefix))
    app.include_router(notifications_router.router)

    @app.get("/health", summary="Liveness probe")
    async def health() -> dict:
        return {"status": "ok", "version": __version__}

    return app


def run() -> None:
    import uvicorn

    uvicorn.run(
        "settlement.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.server.reload,
    )


app = create_app()
