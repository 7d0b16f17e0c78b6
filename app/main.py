import logging
import time
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.v1 import router as api_router
from app.config.config import settings as default_settings
from app.core import bootstrap
from app.core.container import Container
from app.core.errors import AppException, ErrorCategory, ErrorCode, ErrorRegistry
from app.core.utils import configure_logging
from app.db.base import Base
from app.schemas.common import FAILURE_CODE, ApiResponse, ErrorModel

logger = logging.getLogger("lael.main")


UNAUTHORIZED_CODES = {
    ErrorCode.UNAUTHORIZED,
    ErrorCode.INVALID_CREDENTIALS,
    ErrorCode.OTP_EXPIRED,
    ErrorCode.INVALID_OTP,
    ErrorCode.SESSION_EXPIRED,
    ErrorCode.MAX_OTP_ATTEMPTS,
    ErrorCode.WRONG_TOKEN_TYPE,
}
FORBIDDEN_CODES = {
    ErrorCode.FORBIDDEN,
    ErrorCode.STAFF_NOT_APPROVED,
    ErrorCode.ACCOUNT_INACTIVE,
    ErrorCode.ACCOUNT_NOT_VERIFIED,
}
NOT_FOUND_CODES = {ErrorCode.USER_NOT_FOUND, ErrorCode.PATIENT_NOT_FOUND, ErrorCode.OPD_NOT_FOUND}
CONFLICT_CODES = {
    ErrorCode.USER_ALREADY_EXISTS,
    ErrorCode.PATIENT_ALREADY_REGISTERED,
    ErrorCode.OPD_ALREADY_EXISTS,
}


def http_status_for(code: str, category: ErrorCategory) -> int:
    if category is ErrorCategory.SYSTEM:
        return 500
    if category is ErrorCategory.DEPENDENCY:
        return 503
    if code in UNAUTHORIZED_CODES:
        return 401
    if code in FORBIDDEN_CODES:
        return 403
    if code in NOT_FOUND_CODES:
        return 404
    if code in CONFLICT_CODES:
        return 409
    return 400


def error_response(
    registry: ErrorRegistry, code: str, status_code: Optional[int] = None
) -> JSONResponse:
    record = registry.lookup(code)
    body = ApiResponse[ErrorModel](
        code=FAILURE_CODE,
        msg="FAILED",
        model=ErrorModel(
            error_code=record.code,
            message=record.message,
            display_message=record.display_message,
            category=record.category.value,
        ),
    )
    return JSONResponse(
        status_code=status_code or http_status_for(record.code, record.category),
        content=body.model_dump(mode="json", by_alias=True),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup & Shutdown lifespan events."""
    container: Container = app.state.container
    settings = container.resolve(bootstrap.SETTINGS)

    # -------- STARTUP --------
    configure_logging(settings.LOG_LEVEL)
    logger.info(f"Starting {settings.PROJECT_NAME} {settings.VERSION} ({settings.ENVIRONMENT})")

    registry = container.resolve(bootstrap.ERROR_REGISTRY)
    logger.info(f"Error registry loaded with {len(registry)} codes")

    engine = container.resolve(bootstrap.DB_ENGINE)
    if settings.AUTO_CREATE_TABLES:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    scheduler = container.resolve(bootstrap.OTP_CLEANUP_SCHEDULER)
    await scheduler.start()

    logger.info("Startup complete")

    yield

    # -------- SHUTDOWN --------
    await scheduler.stop()
    await engine.dispose()
    logger.info("Scheduler stopped and database engine disposed")


def create_app(container: Optional[Container] = None) -> FastAPI:
    container = container or bootstrap.build_container(default_settings)
    settings = container.resolve(bootstrap.SETTINGS)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.container = container

    def registry() -> ErrorRegistry:
        return container.resolve(bootstrap.ERROR_REGISTRY)

    # ---------------------- EXCEPTION HANDLERS ----------------------
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        record = registry().lookup(exc.code)
        if record.category in (ErrorCategory.SYSTEM, ErrorCategory.DEPENDENCY):
            logger.error(
                f"{request.method} {request.url.path} failed with {exc.code}: {exc.detail}"
            )
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.code}")
        return error_response(registry(), exc.code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info(f"{request.method} {request.url.path} validation failed: {exc.errors()}")
        return error_response(registry(), ErrorCode.BAD_REQUEST, status_code=422)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        logger.error(f"Unhandled Error: {trace}")
        return error_response(registry(), ErrorCode.INTERNAL)

    # ---------------------- REQUEST LOGGING ----------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms"
        )
        return response

    # ---------------------- CORS ----------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000, compresslevel=6)

    # ---------------------- ROUTES ----------------------
    app.include_router(api_router, prefix=settings.API_PREFIX)

    # ---------------------- HEALTH CHECK ----------------------
    @app.get("/health")
    async def health_check():
        """Liveness plus a database round trip. 503 when the database is down."""
        scheduler = container.resolve(bootstrap.OTP_CLEANUP_SCHEDULER)
        checks = {
            "environment": settings.ENVIRONMENT,
            "otp_cleanup": "running" if scheduler.running else "stopped",
        }
        try:
            session_factory = container.resolve(bootstrap.SESSION_FACTORY)
            async with session_factory() as db:
                await db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Health check database probe failed: {e}")
            return JSONResponse(
                status_code=503,
                content={**checks, "status": "unhealthy", "database": "disconnected"},
            )
        return {**checks, "status": "healthy", "database": "connected"}

    @app.get("/")
    async def root():
        return {
            "name": settings.PROJECT_NAME,
            "environment": settings.ENVIRONMENT,
            "version": settings.VERSION,
        }

    return app


app = create_app()
