import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from opentelemetry import trace

from sparqlvis.api.router import proxy_router, router as api_router
from sparqlvis.config import settings
from sparqlvis.services.sparql_service import cleanup_sparql_relay
from sparqlvis.telemetry import setup_telemetry, instrument_app

from dotenv import load_dotenv
load_dotenv()

# Allowed frontend origins (comma-separated env optional)
DEFAULT_CORS = [
    "http://localhost:5000",
    "http://localhost:3001",
    "http://localhost:8000",
]
ENV_CORS = settings.CORS_ORIGINS
ALLOWED_ORIGINS = [o.strip() for o in ENV_CORS.split(",") if o.strip()] or DEFAULT_CORS

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(f"SPARQL visualizer started, default endpoint: {settings.DEFAULT_SPARQL_ENDPOINT}")
    try:
        yield
    finally:
        await cleanup_sparql_relay()
        logger.info("Application shutdown completed")

def setup_tracing():
    # Only set up tracing if explicitly enabled
    if settings.ENABLE_TRACING:
        setup_telemetry()

    else:
        # Set a no-op tracer provider to disable tracing
        trace.set_tracer_provider(trace.NoOpTracerProvider())

def create_application() -> FastAPI:
    setup_tracing()
    app = FastAPI(
        title="sparqlvis",
        description="SPARQL results to tables, graphs and Vega-Lite encodings",
        version="0.1.0",
        lifespan=lifespan,
    )

    instrument_app(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "X-Requested-With"],
    )

    app.include_router(proxy_router)
    app.include_router(api_router)

    return app

app = create_application()


def run():
    import uvicorn
    uvicorn.run("sparqlvis.main:app", host=settings.SPARQLVIS_HOST, port=settings.SPARQLVIS_PORT)
