"""
Owned Observability (OpenTelemetry)

Enabled via environment variables:
- OWNED_OTEL_ENABLED=true
- OWNED_OTEL_SERVICE_NAME=owned-api
- OWNED_OTEL_EXPORTER=console|otlp
- OWNED_OTEL_OTLP_ENDPOINT=https://... (only if exporter=otlp)

The opentelemetry packages are an optional extra; without them both hooks
report False and the API runs untraced.
"""

from __future__ import annotations

import os

from .config import _bool


def otel_enabled() -> bool:
    return _bool(os.environ.get("OWNED_OTEL_ENABLED"), False)


def configure_observability() -> bool:
    if not otel_enabled():
        return False

    service_name = os.environ.get("OWNED_OTEL_SERVICE_NAME", "owned-api")
    exporter = os.environ.get("OWNED_OTEL_EXPORTER", "console").lower()

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
    except ImportError:
        return False

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if exporter == "otlp":
        try:
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        except ImportError:
            provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        else:
            endpoint = os.environ.get("OWNED_OTEL_OTLP_ENDPOINT")
            span_exporter = OTLPSpanExporter(endpoint=endpoint) if endpoint else OTLPSpanExporter()
            provider.add_span_processor(BatchSpanProcessor(span_exporter))
    else:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    return True


def instrument_app(app) -> bool:
    if not otel_enabled():
        return False
    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.instrumentation.logging import LoggingInstrumentor
    except ImportError:
        return False

    LoggingInstrumentor().instrument(set_logging_format=True)
    FastAPIInstrumentor.instrument_app(app)
    return True
