import os
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource


def setup_tracing(service_name="FallbackProxy"):
    """
    Installs the tracer provider behind the request spans and the
    `model_fallbacks.commit` spans of the fallback registry.

    Spans are only exported when ENABLE_CONSOLE_TRACING=true (printed to stdout).
    """
    provider = TracerProvider(resource=Resource(attributes={"service.name": service_name}))

    if os.getenv("ENABLE_CONSOLE_TRACING", "false").lower() == "true":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    return provider
