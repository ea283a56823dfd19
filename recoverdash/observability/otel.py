"""OpenTelemetry + Prometheus fallback wiring for RecoverDash backend."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI

from recoverdash import config

logger = logging.getLogger("recoverdash.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None
_fastapi_instrumentor: Any | None = None

_scan_counter: Any | None = None
_scan_latency_hist: Any | None = None
_folder_skip_counter: Any | None = None
_content_read_counter: Any | None = None

_prom_enabled = False
_prom_scan_counter: Any | None = None
_prom_scan_latency_hist: Any | None = None
_prom_folder_skip_counter: Any | None = None
_prom_content_read_counter: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _label(value: str | None) -> str:
    return (value or "").strip() or "unknown"


def initialize(app: FastAPI | None = None) -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider, _fastapi_instrumentor
    global _scan_counter, _scan_latency_hist, _folder_skip_counter, _content_read_counter
    global _prom_enabled
    global _prom_scan_counter, _prom_scan_latency_hist, _prom_folder_skip_counter, _prom_content_read_counter

    if _initialized:
        if _enabled and app and _fastapi_instrumentor:
            _fastapi_instrumentor.instrument_app(app)
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (RECOVERDASH_OTEL_ENABLED=false)")
        return

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "recoverdash-backend"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "recoverdash",
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_exporter = OTLPSpanExporter(endpoint=traces_endpoint or None)
    trace_provider.add_span_processor(BatchSpanProcessor(trace_exporter))
    trace.set_tracer_provider(trace_provider)
    tracer = trace.get_tracer("recoverdash.backend")

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("recoverdash.backend")

    _scan_counter = meter.create_counter(
        "recoverdash_history_scans_total",
        unit="1",
        description="Count of local history index builds",
    )
    _scan_latency_hist = meter.create_histogram(
        "recoverdash_history_scan_latency_ms",
        unit="ms",
        description="Latency of local history index builds",
    )
    _folder_skip_counter = meter.create_counter(
        "recoverdash_snapshot_folder_skips_total",
        unit="1",
        description="Snapshot folders left out of the index, by reason",
    )
    _content_read_counter = meter.create_counter(
        "recoverdash_content_reads_total",
        unit="1",
        description="Version content reads, by result kind",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = tracer
    _fastapi_instrumentor = FastAPIInstrumentor()
    _enabled = True

    if app:
        _fastapi_instrumentor.instrument_app(app)

    if config.PROM_PORT > 0:
        try:
            from prometheus_client import Counter, Histogram, start_http_server

            start_http_server(config.PROM_PORT)
            _prom_enabled = True
            _prom_scan_counter = Counter(
                "recoverdash_history_scans_total",
                "Count of local history index builds",
                ["result"],
            )
            _prom_scan_latency_hist = Histogram(
                "recoverdash_history_scan_latency_ms",
                "Latency of local history index builds",
                ["result"],
            )
            _prom_folder_skip_counter = Counter(
                "recoverdash_snapshot_folder_skips_total",
                "Snapshot folders left out of the index, by reason",
                ["reason"],
            )
            _prom_content_read_counter = Counter(
                "recoverdash_content_reads_total",
                "Version content reads, by result kind",
                ["kind"],
            )
            logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Prometheus fallback not started: %s", exc)
            _prom_enabled = False

    logger.info(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown(app: FastAPI | None = None) -> None:
    global _enabled
    if not _initialized:
        return
    try:
        if app and _fastapi_instrumentor:
            _fastapi_instrumentor.uninstrument_app(app)
    except Exception:
        logger.debug("FastAPI uninstrument failed", exc_info=True)
    try:
        if _meter_provider is not None:
            _meter_provider.shutdown()
    except Exception:
        logger.debug("Meter provider shutdown failed", exc_info=True)
    try:
        if _trace_provider is not None:
            _trace_provider.shutdown()
    except Exception:
        logger.debug("Trace provider shutdown failed", exc_info=True)
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_history_scan(result: str, duration_ms: float, *, folder_count: int = 0) -> None:
    labels = {"result": _label(result)}
    if _enabled and _scan_counter is not None:
        _scan_counter.add(1, {**labels, "folders": max(0, int(folder_count))})
    if _enabled and _scan_latency_hist is not None:
        _scan_latency_hist.record(max(0.0, float(duration_ms)), labels)
    if _prom_enabled and _prom_scan_counter is not None:
        _prom_scan_counter.labels(**labels).inc()
    if _prom_enabled and _prom_scan_latency_hist is not None:
        _prom_scan_latency_hist.labels(**labels).observe(max(0.0, float(duration_ms)))


def record_folder_skip(reason: str, count: int = 1) -> None:
    safe_count = max(0, int(count))
    if safe_count == 0:
        return
    labels = {"reason": _label(reason)}
    if _enabled and _folder_skip_counter is not None:
        _folder_skip_counter.add(safe_count, labels)
    if _prom_enabled and _prom_folder_skip_counter is not None:
        _prom_folder_skip_counter.labels(**labels).inc(safe_count)


def record_content_read(kind: str) -> None:
    labels = {"kind": _label(kind)}
    if _enabled and _content_read_counter is not None:
        _content_read_counter.add(1, labels)
    if _prom_enabled and _prom_content_read_counter is not None:
        _prom_content_read_counter.labels(**labels).inc()
