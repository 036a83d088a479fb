from __future__ import annotations

import logging

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from gitshelf.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def init_otel(app: FastAPI, settings: Settings = default_settings) -> bool:
    """Export request, GitHub call and document sync spans over OTLP when enabled."""
    if not settings.otel_enabled:
        return False

    provider = TracerProvider(resource=Resource.create({"service.name": settings.api_name}))
    exporter = (
        OTLPSpanExporter(endpoint=settings.otel_otlp_endpoint)
        if settings.otel_otlp_endpoint
        else OTLPSpanExporter()
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app)
    HTTPXClientInstrumentor().instrument()
    logger.info("OpenTelemetry tracing enabled (%s)", settings.otel_otlp_endpoint)
    return True
