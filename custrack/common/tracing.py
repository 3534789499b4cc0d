"""OpenTelemetry wiring for the customer service.

When tracing is disabled no provider is registered, so `tracer` hands out
no-op spans and the service code needs no branches of its own.
"""

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from custrack.common.config import settings

tracer = trace.get_tracer("custrack.customers")


def setup_tracing(service_name: str) -> None:
    """Register an OTLP/HTTP exporting tracer provider for `service_name`."""

    if not settings.tracing_enabled:
        return
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint))
    )
    trace.set_tracer_provider(provider)


def instrument_app(app: FastAPI) -> None:
    if settings.tracing_enabled:
        FastAPIInstrumentor.instrument_app(app, excluded_urls="health,metrics")


def annotate_transition(span, customer_id: str, from_status: str, to_status: str, outcome: str) -> None:
    """Tag a transition span with the customer and the attempted edge."""

    span.set_attribute("customer.id", customer_id)
    span.set_attribute("customer.status.from", from_status)
    span.set_attribute("customer.status.to", to_status)
    span.set_attribute("customer.status.outcome", outcome)
