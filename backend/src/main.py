import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from pki.api import certificates as certificates_api
from pki.ca.signing import build_signer
from shared.config import settings
from shared.database import engine, init_models
from shared.logging import setup_logging
from shared.metrics import setup_metrics

logger = logging.getLogger(__name__)


def setup_tracing() -> None:
    resource = Resource.create({"service.name": settings.APP_NAME})
    provider = TracerProvider(resource=resource)

    processor = BatchSpanProcessor(ConsoleSpanExporter())
    provider.add_span_processor(processor)

    trace.set_tracer_provider(provider)


async def connect_store() -> None:
    """Phase one of startup: the store must be reachable before we accept traffic."""
    try:
        await init_models()
    except Exception as e:
        logger.critical("store_connection_failed", extra={"error": str(e)})
        raise SystemExit(1) from e


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    setup_logging()
    setup_tracing()
    setup_metrics(settings.APP_NAME)

    LoggingInstrumentor().instrument(set_logging_format=True)
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)

    await connect_store()

    app.state.signer = build_signer()
    logger.info(
        "service_started",
        extra={"port": settings.PORT, "signature_mode": app.state.signer.mode.value},
    )

    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Instrument FastAPI
FastAPIInstrumentor.instrument_app(app)

app.include_router(certificates_api.router)
certificates_api.register_exception_handlers(app)


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok", "service": settings.APP_NAME}


async def check_store() -> None:
    """Connect once before the server starts, then release the pool."""
    try:
        await connect_store()
    finally:
        await engine.dispose()


def run() -> None:
    """Console entry point: serve the app on HOST:PORT.

    Exits with status 1 when the store is unreachable. A failure inside the
    lifespan would instead end with uvicorn's own startup exit code.
    """
    asyncio.run(check_store())
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)
