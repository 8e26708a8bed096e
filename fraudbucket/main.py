"""FraudBucket case management service.

This service provides the authentication surface (sign-in, refresh-token
rotation, password reset) and user administration over PostgreSQL, with
password-reset passcodes held in Redis.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from fraudbucket.api.routes import api_router
from fraudbucket.core.config import AppEnvironment, Settings, get_settings
from fraudbucket.core.database import create_async_engine, create_session_factory
from fraudbucket.core.errors import FraudBucketError, get_status_code
from fraudbucket.core.logging import setup_logging
from fraudbucket.core.redis import RedisClient
from fraudbucket.core.tokens import TokenService
from fraudbucket.persistence.passcode_store import PasscodeStore
from fraudbucket.services.mailer import Mailer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan: build, connect and tear down collaborators."""
    settings = get_settings()
    setup_logging(settings)

    logger.info(
        "Starting FraudBucket API",
        extra={
            "app": settings.app.name,
            "env": settings.app.env,
            "version": settings.app.version,
        },
    )

    engine = create_async_engine(settings.database)
    redis = RedisClient(settings.redis)
    await redis.connect()

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.redis = redis
    app.state.token_service = TokenService.from_config(settings.tokens)
    app.state.passcode_store = PasscodeStore(
        redis,
        key_prefix=settings.redis.passcode_key_prefix,
        default_ttl_seconds=settings.password_reset.passcode_ttl_seconds,
    )
    app.state.mailer = Mailer(
        settings.email,
        link_ttl_minutes=settings.password_reset.passcode_ttl_seconds // 60,
    )

    try:
        yield
    finally:
        await redis.disconnect()
        await engine.dispose()
        logger.info("FraudBucket API stopped")


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Map domain errors and unexpected failures to JSON responses."""

    @app.exception_handler(FraudBucketError)
    async def domain_error_handler(  # type: ignore[reportUnusedFunction]
        request: Request, exc: FraudBucketError
    ) -> JSONResponse:
        """Handle domain-specific errors and return appropriate HTTP responses."""
        status_code = get_status_code(exc)
        if status_code >= 500:
            logger.error(
                "Internal failure",
                exc_info=exc,
                extra={"path": request.url.path, "method": request.method},
            )
        content: dict = {"error": exc.message}
        if exc.details and not settings.security.sanitize_errors:
            content["details"] = exc.details
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(  # type: ignore[reportUnusedFunction]
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed request bodies and parameters as 400."""
        content: dict = {"error": "Invalid request"}
        if not settings.security.sanitize_errors:
            content["details"] = {"errors": exc.errors()}
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(Exception)
    async def global_exception_handler(  # type: ignore[reportUnusedFunction]
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions and return 500 error responses."""
        logger.exception(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="FraudBucket API",
        description=(
            "Fraud case management backend: credential authentication, "
            "session tokens and user administration."
        ),
        version=settings.app.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.app.env != AppEnvironment.PROD else None,
        redoc_url="/redoc" if settings.app.env != AppEnvironment.PROD else None,
        openapi_url="/openapi.json" if settings.app.env != AppEnvironment.PROD else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_allowed_origins,
        allow_credentials=settings.security.cors_allow_credentials,
        allow_methods=settings.security.cors_allow_methods,
        allow_headers=settings.security.cors_allow_headers,
    )

    app.include_router(api_router, prefix=settings.app.api_prefix)

    register_exception_handlers(app, settings)
    setup_telemetry(app, settings)

    return app


def setup_telemetry(app: FastAPI, settings: Settings) -> None:
    """Setup OpenTelemetry instrumentation."""
    if not settings.observability.otlp_endpoint:
        return

    resource = Resource(
        attributes={
            SERVICE_NAME: settings.observability.service_name,
        }
    )

    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(
        endpoint=settings.observability.otlp_endpoint,
        insecure=settings.observability.otlp_insecure,
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app)


def run() -> None:
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "fraudbucket.main:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.app.env == AppEnvironment.LOCAL,
        workers=1 if settings.app.env == AppEnvironment.LOCAL else settings.server.workers,
        log_level=settings.app.log_level.value.lower(),
    )


if __name__ == "__main__":
    run()
