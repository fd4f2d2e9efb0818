"""Telemetry setup for OpenTelemetry traces and metrics.

Instruments are created at import time from the global meter, which proxies
to whatever provider ``setup_telemetry`` installs later. Without setup (tests,
the CLI ``status`` command) they record into a no-op provider.
"""

import logging
import os

from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.trace import TracerProvider

SERVICE_NAME = "planwatch"

# Suppress gRPC warnings when collector is unavailable
logging.getLogger("opentelemetry.exporter.otlp.proto.grpc").setLevel(logging.ERROR)

watch_events_counter: metrics.Counter
recompute_counter: metrics.Counter
broadcast_counter: metrics.Counter
hook_events_counter: metrics.Counter
hook_step_failures_counter: metrics.Counter


def setup_telemetry() -> tuple[trace.Tracer, metrics.Meter]:
    """Initialize OpenTelemetry providers.

    Exports over OTLP gRPC when ``OTLP_ENABLED=true``; the endpoint comes from
    ``OTLP_ENDPOINT`` (default ``http://localhost:4317``). Otherwise installs
    SDK providers with no exporter.

    Returns:
        Tuple of (tracer, meter)
    """
    otlp_enabled = os.getenv("OTLP_ENABLED", "false").lower() == "true"
    endpoint = os.getenv("OTLP_ENDPOINT", "http://localhost:4317")

    if otlp_enabled:
        # Import OTLP exporters only when needed
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
            OTLPMetricExporter,
        )
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        trace_provider = TracerProvider()
        trace_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint))
        )
        trace.set_tracer_provider(trace_provider)

        metric_reader = PeriodicExportingMetricReader(
            OTLPMetricExporter(endpoint=endpoint)
        )
        metrics.set_meter_provider(MeterProvider(metric_readers=[metric_reader]))
    else:
        trace.set_tracer_provider(TracerProvider())
        metrics.set_meter_provider(MeterProvider())

    return trace.get_tracer(SERVICE_NAME), metrics.get_meter(SERVICE_NAME)


def create_metrics(meter: metrics.Meter) -> None:
    """Create the metric instruments.

    - watch events emitted (by type: plan or sessions)
    - snapshot recomputations (by cache)
    - broadcasts (by message type)
    - hook events ingested (by event name)
    - hook side-effect step failures (by step)
    """
    global watch_events_counter, recompute_counter, broadcast_counter
    global hook_events_counter, hook_step_failures_counter

    watch_events_counter = meter.create_counter(
        "planwatch_watch_events_total",
        description="Coalesced filesystem change events emitted",
    )
    recompute_counter = meter.create_counter(
        "planwatch_recomputes_total",
        description="Cache recomputations",
    )
    broadcast_counter = meter.create_counter(
        "planwatch_broadcasts_total",
        description="Messages broadcast to SSE subscribers",
    )
    hook_events_counter = meter.create_counter(
        "planwatch_hook_events_total",
        description="Hook events ingested",
    )
    hook_step_failures_counter = meter.create_counter(
        "planwatch_hook_step_failures_total",
        description="Failed hook side-effect steps",
    )


create_metrics(metrics.get_meter(SERVICE_NAME))
