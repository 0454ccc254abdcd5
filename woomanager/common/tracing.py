"""OpenTelemetry wiring; spans go to an OTLP HTTP collector when enabled."""

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from woomanager.common.config import settings

# Health checks and scrapes would drown the handshake and webhook spans.
UNTRACED_PATHS = "health,metrics"


def setup_tracing(service_name: str, endpoint: str | None = None) -> TracerProvider:
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint or settings.otel_exporter_otlp_endpoint))
    )
    trace.set_tracer_provider(provider)
    return provider


def instrument_app(app: FastAPI) -> None:
    FastAPIInstrumentor.instrument_app(app, excluded_urls=UNTRACED_PATHS)


# Spans for the SSO callback and webhook provisioning; a no-op until setup_tracing runs.
tracer = trace.get_tracer("woomanager.relay")
