import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from todolist.core.config import Settings
from todolist.core.database import build_engine, build_session_factory, check_connection, init_db
from todolist.core.errors import register_error_handlers
from todolist.core.logging import configure_logging
from todolist.core.security import AuthService
from todolist.routers import auth, health, tasks

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Construit l'app: settings, pool DB et AuthService sont créés ici une seule fois."""
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)
    settings.validate()

    engine = build_engine(settings)
    init_db(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        check_connection(engine)
        logger.info("Server running on port %s (%s)", settings.PORT, settings.APP_ENV)
        yield
        engine.dispose()

    app = FastAPI(title="Todo List API", version="1.0.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.auth_service = AuthService.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CORS_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        status_code = 500  # si call_next lève, la réponse sera un 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            logger.info(
                "%s %s -> %d (%.1f ms)",
                request.method,
                request.url.path,
                status_code,
                (time.perf_counter() - started) * 1000,
            )

    register_error_handlers(app, settings)

    # Routes
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(tasks.router)

    return app


def run() -> None:
    import uvicorn

    settings = Settings()
    uvicorn.run("todolist.main:create_app", factory=True, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
