import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session, sessionmaker

from tasktide.api.routes import api_router
from tasktide.core.config import Settings, get_settings
from tasktide.core.logging import setup_logging
from tasktide.repositories.scheduler_lock import SchedulerLockStore
from tasktide.repositories.templates import TemplateStore
from tasktide.services.generation import GenerationCoordinator
from tasktide.services.scheduler import SchedulerService, should_start_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    scheduler: SchedulerService = app.state.scheduler
    started = should_start_scheduler(settings)
    if started:
        scheduler.start()
    else:
        logger.info(
            f"Recurring task scheduler disabled (environment={settings.environment}, "
            f"build_phase={settings.build_phase})"
        )

    yield

    if started:
        scheduler.stop()


def create_app(
    settings: Settings | None = None,
    session_factory: sessionmaker[Session] | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging()

    if session_factory is None:
        from tasktide.db.session import SessionLocal

        session_factory = SessionLocal

    app = FastAPI(
        title="TaskTide",
        docs_url="/docs" if settings.environment == "development" else None,
        redoc_url="/redoc" if settings.environment == "development" else None,
        lifespan=lifespan,
    )

    coordinator = GenerationCoordinator(TemplateStore(session_factory))
    app.state.settings = settings
    app.state.coordinator = coordinator
    # Built here, started only by the lifespan
    app.state.scheduler = SchedulerService.from_settings(
        coordinator, SchedulerLockStore(session_factory), settings
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app


app = create_app()
