"""
OpenTelemetry setup for the visualization service.
"""
import logging

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from sparqlvis.config import settings

logger = logging.getLogger(__name__)


def setup_telemetry() -> None:
    """Install an SDK tracer provider exporting spans to the console."""
    resource = Resource.create({SERVICE_NAME: settings.OTEL_SERVICE_NAME})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)
    logger.info(f"OTEL initialized for service: {settings.OTEL_SERVICE_NAME}")


def instrument_app(app: FastAPI) -> None:
    """Attach request spans to every FastAPI route."""
    if not settings.ENABLE_TRACING:
        return
    FastAPIInstrumentor.instrument_app(app)
