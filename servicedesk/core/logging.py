"""Log routing and optional OpenTelemetry tracing for the service desk API.

Application loggers live under ``servicedesk``. Login outcomes, lockouts and
token rejections are logged under ``servicedesk.auth`` so operators can keep
that trail at its own level, independent of the general application level.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from servicedesk.core.config import Settings

APP_LOGGER = "servicedesk"
SECURITY_LOGGER = "servicedesk.auth"


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def logging_config(settings: Settings) -> dict[str, Any]:
    """Build the ``dictConfig`` mapping for ``settings``."""

    app_level = _level(settings.log_level)
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": settings.log_format}},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default"},
        },
        "loggers": {
            APP_LOGGER: {"level": app_level},
            SECURITY_LOGGER: {"level": _level(settings.security_log_level)},
        },
        # third-party libraries (uvicorn, jose, opentelemetry) stay at WARNING
        "root": {"handlers": ["console"], "level": logging.WARNING},
    }


def configure_logging(settings: Settings) -> logging.Logger:
    """Apply the logging configuration and return the application logger."""

    dictConfig(logging_config(settings))
    return logging.getLogger(APP_LOGGER)


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Install an OTLP-exporting tracer provider when tracing is enabled.

    Exporter headers, timeouts and TLS options come from the standard
    ``OTEL_EXPORTER_OTLP_*`` environment variables. Returns ``None`` when
    tracing is off or a provider is already installed in this process.
    """

    if not settings.otel_enabled:
        return None
    if isinstance(trace.get_tracer_provider(), TracerProvider):
        return None

    provider = TracerProvider(resource=Resource.create({"service.name": settings.otel_service_name}))
    exporter = (
        OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint)
        if settings.otel_exporter_otlp_endpoint
        else OTLPSpanExporter()
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    if provider is not None:
        provider.shutdown()
