"""Config validation and diagnostic reporting for goaltrace."""

from __future__ import annotations

import importlib.util
from typing import Any
from urllib.parse import urlparse

from goaltrace.config import Exporter, TracingConfig
from goaltrace.tracing.exporter import CLOUD_TRACE_MODULE
from goaltrace.tracing.tracer import INSTRUMENTORS


def _module_available(module_name: str) -> bool:
    try:
        return importlib.util.find_spec(module_name) is not None
    except ModuleNotFoundError:
        return False


def _instrumentation_installed(name: str) -> bool:
    return _module_available(INSTRUMENTORS[name].split(":")[0])


def _check_endpoint(config: TracingConfig) -> list[dict[str, str]]:
    endpoint = config.exporter_endpoint
    if endpoint is None:
        return []
    parsed = urlparse(endpoint)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return [
            {
                "field": f"{config.exporter.value}_endpoint",
                "message": f"'{endpoint}' is not an http(s) URL",
            }
        ]
    return []


def check_config(config: TracingConfig) -> dict[str, Any]:
    """Validate config and return a diagnostic report.

    Returns a dict with:
        service_name: The advertised service name
        exporter: The primary exporter
        endpoint: Where the primary exporter sends spans (None for console)
        errors: List of critical errors
        warnings: List of warnings
        enabled_instrumentations: Instrumentations that will be activated
        disabled_instrumentations: Instrumentations switched off
    """
    errors: list[dict[str, str]] = _check_endpoint(config)
    warnings: list[dict[str, str]] = []
    enabled: list[str] = []
    disabled: list[str] = []

    for name, on in config.instrumentations.items():
        if name not in INSTRUMENTORS:
            errors.append(
                {
                    "field": "instrumentations",
                    "message": f"Unknown instrumentation '{name}'",
                }
            )
            continue
        if not on:
            disabled.append(name)
            continue
        enabled.append(name)
        if not _instrumentation_installed(name):
            warnings.append(
                {
                    "field": "instrumentations",
                    "message": (
                        f"'{name}' is enabled but its instrumentation"
                        " package is not installed"
                    ),
                }
            )

    if config.exporter == Exporter.CLOUDTRACE and not _module_available(
        CLOUD_TRACE_MODULE
    ):
        warnings.append(
            {
                "field": "exporter",
                "message": (
                    "Cloud Trace exporter package is not installed,"
                    " spans will go to Zipkin"
                ),
            }
        )

    if config.exporter == Exporter.CONSOLE and config.console_export:
        warnings.append(
            {
                "field": "console_export",
                "message": "spans will be printed to the console twice",
            }
        )

    return {
        "service_name": config.service_name,
        "exporter": config.exporter.value,
        "endpoint": config.exporter_endpoint,
        "processor": config.processor.value,
        "errors": errors,
        "warnings": warnings,
        "enabled_instrumentations": enabled,
        "disabled_instrumentations": disabled,
    }
