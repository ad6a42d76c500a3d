from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Dict, Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


_OTEL_INITIALIZED = False
_OTEL_INSTRUMENTED = False
_DEFAULT_SERVICE = "agrocamer"


def _parse_pairs(raw: Optional[str]) -> Dict[str, str]:
    if not raw:
        return {}
    pairs: Dict[str, str] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item or "=" not in item:
            continue
        key, value = item.split("=", 1)
        key = key.strip()
        value = value.strip()
        if key and value:
            pairs[key] = value
    return pairs


def _set_span_attributes(span: object, attributes: Optional[Dict[str, object]]) -> None:
    if not span or not attributes:
        return None
    for key, value in attributes.items():
        if value is None:
            continue
        if not isinstance(value, (str, bool, int, float)):
            value = str(value)
        span.set_attribute(key, value)


@contextmanager
def start_span(name: str, attributes: Optional[Dict[str, object]] = None):
    service = os.getenv("OTEL_SERVICE_NAME") or _DEFAULT_SERVICE
    tracer = trace.get_tracer(service)
    with tracer.start_as_current_span(name) as span:
        _set_span_attributes(span, attributes)
        yield span


def record_exception(span: object, exc: Exception) -> None:
    if not span:
        return None
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, str(exc)))


def _resolve_http_endpoint(base: Optional[str], override: Optional[str]) -> Optional[str]:
    endpoint = (override or base or "").strip()
    if not endpoint:
        return None
    if "/v1/" in endpoint:
        return endpoint
    return endpoint.rstrip("/") + "/v1/traces"


def init_otel(service_name: Optional[str] = None) -> bool:
    """Export spans over OTLP/HTTP when an endpoint is configured."""
    global _OTEL_INITIALIZED
    if _OTEL_INITIALIZED:
        return True
    exporter_name = (os.getenv("OTEL_TRACES_EXPORTER") or "otlp").strip().lower()
    if exporter_name in {"none", "off", "false", "0"}:
        return False
    endpoint = _resolve_http_endpoint(
        os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
        os.getenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT"),
    )
    if not endpoint:
        return False

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    service = service_name or os.getenv("OTEL_SERVICE_NAME") or _DEFAULT_SERVICE
    resource = Resource.create(
        {"service.name": service, **_parse_pairs(os.getenv("OTEL_RESOURCE_ATTRIBUTES"))}
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(
                endpoint=endpoint,
                headers=_parse_pairs(os.getenv("OTEL_EXPORTER_OTLP_HEADERS")),
            )
        )
    )
    trace.set_tracer_provider(provider)
    logging.getLogger(__name__).info("OTLP trace export enabled: %s", endpoint)
    _OTEL_INITIALIZED = True
    return True


def instrument_fastapi(app: object) -> bool:
    global _OTEL_INSTRUMENTED
    if _OTEL_INSTRUMENTED:
        return True
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

    FastAPIInstrumentor.instrument_app(app)
    _OTEL_INSTRUMENTED = True
    return True
