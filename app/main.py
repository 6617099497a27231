"""FastAPI application factory and startup configuration.

The strategy registry (and the HTTP fetcher shared by the URL-based
strategies) is built once in the lifespan and kept on app.state.
"""
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.schemas.base_schema import ApiResponse
from app.core.exceptions import ImportPipelineError, NotFoundError, ParsingError
from app.core.logging import setup_logging, get_logger, set_correlation_id
from app.api.v1.imports import router as imports_router
from app.api.v1.countries import router as countries_router
from app.api.v1.properties import router as properties_router
from app.api.responses import ok
from app.services.fetch_service import HttpFetcher
from app.services.registry import build_default_registry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    setup_logging()
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    fetcher = HttpFetcher()
    app.state.registry = build_default_registry(fetcher)
    logger.info(
        "Import strategies registered: %s",
        ", ".join(s.name for s in app.state.registry.all()),
    )

    yield

    fetcher.close()
    logger.info("Shutting down %s", settings.app_name)


def _error_response(request: Request, status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse(
            success=False,
            data=None,
            message=str(exc),
            errors=[str(exc)],
            trace_id=getattr(request.state, "trace_id", None),
        ).model_dump(),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Listing Import API — detect, normalize and reconcile real-estate feeds into a tenant catalog.",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.middleware("http")
    async def add_trace_id(request: Request, call_next):
        request.state.trace_id = set_correlation_id(str(uuid4()))
        response = await call_next(request)
        response.headers["X-Trace-Id"] = request.state.trace_id
        return response

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        trace_id = getattr(request.state, "trace_id", None)
        logger.exception("Unhandled exception [trace_id=%s]", trace_id, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=ApiResponse(
                success=False,
                data=None,
                message="Internal error",
                errors=["Internal server error"],
                trace_id=trace_id,
            ).model_dump(),
        )

    @application.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(request, 404, exc)

    @application.exception_handler(ImportPipelineError)
    async def import_pipeline_handler(request: Request, exc: ImportPipelineError):
        logger.warning("Import rejected: %s", exc.message)
        return _error_response(request, 422, exc)

    @application.exception_handler(ParsingError)
    async def parsing_handler(request: Request, exc: ParsingError):
        return _error_response(request, 422, exc)

    application.include_router(imports_router, prefix="/api/v1/imports", tags=["imports"])
    application.include_router(countries_router, prefix="/api/v1/countries", tags=["countries"])
    application.include_router(properties_router, prefix="/api/v1/properties", tags=["properties"])

    @application.get("/health", tags=["system"])
    async def health_check(request: Request):
        from sqlalchemy import text
        from app.database import async_session_factory

        db_status = "ok"
        try:
            async with async_session_factory() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            db_status = f"error: {str(e)}"

        return ok(
            {
                "status": "healthy" if db_status == "ok" else "unhealthy",
                "version": settings.app_version,
                "database": db_status,
            },
            "Health check completed",
            request,
        )

    return application


app = create_app()
