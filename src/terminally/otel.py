"""OpenTelemetry spans for terminally operations.

Optional: without the ``otel`` extra installed, or with export disabled,
:func:`start_span` yields ``None`` and costs nothing.
"""

from __future__ import annotations

import contextlib
import logging
import os
import typing as t

from .__about__ import __version__

logger = logging.getLogger(__name__)

trace = None
OTLPSpanExporter = None
Resource = None
TracerProvider = None
BatchSpanProcessor = None

try:  # pragma: no cover - optional dependency
    from opentelemetry import trace as otel_trace
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
        OTLPSpanExporter as otel_otlp_exporter,
    )
    from opentelemetry.sdk.resources import Resource as otel_resource
    from opentelemetry.sdk.trace import TracerProvider as otel_tracer_provider
    from opentelemetry.sdk.trace.export import (
        BatchSpanProcessor as otel_batch_span_processor,
    )
except ImportError:  # pragma: no cover - optional dependency
    pass
else:
    trace = otel_trace
    OTLPSpanExporter = otel_otlp_exporter
    Resource = otel_resource
    TracerProvider = otel_tracer_provider
    BatchSpanProcessor = otel_batch_span_processor

_OTEL_READY = False


def otel_enabled() -> bool:
    """Return True when span export is enabled by environment.

    ``TERMINALLY_OTEL`` (``1``/``true``, ``0``/``false``) wins; otherwise any
    configured OTLP endpoint enables export.

    Examples
    --------
    >>> from terminally.otel import otel_enabled
    >>> _ = otel_enabled()
    """
    flag = os.environ.get("TERMINALLY_OTEL", "").strip().lower()
    if flag in {"1", "true"}:
        return True
    if flag in {"0", "false"}:
        return False
    return bool(
        os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")
        or os.environ.get("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")
    )


def _ensure_provider() -> bool:
    global _OTEL_READY
    if _OTEL_READY:
        return True
    if (
        trace is None
        or Resource is None
        or TracerProvider is None
        or BatchSpanProcessor is None
        or OTLPSpanExporter is None
    ):
        return False
    if not otel_enabled():
        return False

    provider = trace.get_tracer_provider()
    if provider.__class__.__name__ != "ProxyTracerProvider":
        # the embedding application configured tracing already
        _OTEL_READY = True
        return True

    try:
        resource = Resource.create(
            {
                "service.name": "terminally",
                "service.version": __version__,
            }
        )
        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
        trace.set_tracer_provider(tracer_provider)
    except Exception:  # pragma: no cover - optional dependency
        logger.debug("terminally otel init failed", exc_info=True)
        return False
    else:
        _OTEL_READY = True
        return True


@contextlib.contextmanager
def start_span(
    name: str,
    attributes: dict[str, t.Any] | None = None,
) -> t.Iterator[t.Any]:
    """Run the block inside span ``name`` when export is enabled.

    Examples
    --------
    >>> from terminally.otel import start_span
    >>> with start_span("terminally.test", {"window_id": "@1"}):
    ...     pass
    """
    if trace is None or not _ensure_provider():
        yield None
        return
    tracer = trace.get_tracer("terminally")
    with tracer.start_as_current_span(name, attributes=attributes) as span:
        yield span


__all__ = [
    "otel_enabled",
    "start_span",
]
