import asyncio
import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from campus_queue.core.cache import cache_manager
from campus_queue.core.change_feed import change_feed
from campus_queue.core.config import Settings, get_settings
from campus_queue.core.database_init import init_database_schema
from campus_queue.core.logging import configure_logging
from campus_queue.core.middleware import RequestContextMiddleware
from campus_queue.routers import get_api_router
from campus_queue.services.bootstrap import ensure_default_admin, seed_sample_staff
from campus_queue.workers.sweeper import UnresponsiveEntrySweeper

logger = logging.getLogger("campus_queue.app")


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        body = await request.body()
        logger.warning(
            "Validation error on %s %s body=%s detail=%s",
            request.method,
            request.url.path,
            body.decode("utf-8", errors="replace") if body else "",
            exc.errors(),
        )
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": jsonable_errors(exc)})

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "A database error occurred. Please try again."},
        )


def register_internal_docs(app: FastAPI, settings: Settings) -> None:
    """Serve OpenAPI and Swagger only to callers holding ``INTERNAL_DOCS_SECRET``."""

    def _check_secret(secret: str | None) -> None:
        if not settings.INTERNAL_DOCS_SECRET:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
        if secret != settings.INTERNAL_DOCS_SECRET:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    @app.get("/internal-docs/openapi.json", include_in_schema=False)
    async def internal_openapi(secret: str | None = None) -> JSONResponse:
        _check_secret(secret)
        return JSONResponse(app.openapi())

    @app.get("/internal-docs/", include_in_schema=False)
    async def internal_docs(secret: str | None = None):
        _check_secret(secret)
        return get_swagger_ui_html(
            openapi_url=f"/internal-docs/openapi.json?secret={secret}",
            title=f"{settings.PROJECT_NAME} - Internal Docs",
        )


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(title=settings.PROJECT_NAME, docs_url=None, redoc_url=None, openapi_url=None)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)
    app.include_router(get_api_router(), prefix=settings.API_V1_PREFIX)
    register_internal_docs(app, settings)

    @app.on_event("startup")
    async def startup_event():
        change_feed.bind_loop()
        if settings.AUTO_CREATE_SCHEMA:
            init_database_schema()
        cache_manager.connect()
        ensure_default_admin()
        if settings.SEED_SAMPLE_STAFF:
            seed_sample_staff()
        if settings.SWEEPER_ENABLED:
            app.state.sweeper_stop = asyncio.Event()
            app.state.sweeper_task = asyncio.create_task(
                UnresponsiveEntrySweeper().run_periodically(app.state.sweeper_stop)
            )
            logger.info("Unresponsive-entry sweeper scheduled every %ss", settings.SWEEP_INTERVAL_SECONDS)

    @app.on_event("shutdown")
    async def shutdown_event():
        task = getattr(app.state, "sweeper_task", None)
        if task is not None:
            app.state.sweeper_stop.set()
            await task

    return app


app = create_app()
