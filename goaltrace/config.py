import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

import yaml

from goaltrace.exceptions import ConfigurationError

DEFAULT_SERVICE_NAME = "ai-goal-seeking-backend"
DEFAULT_ZIPKIN_ENDPOINT = "http://zipkin:9411/api/v2/spans"
DEFAULT_OTLP_ENDPOINT = "http://localhost:4317"

# HTTP clients, web framework, messaging. The logging instrumentation
# replaces the record factory and clashes with TraceContextFilter.
DEFAULT_INSTRUMENTATIONS = {
    "urllib3": True,
    "requests": True,
    "flask": True,
    "celery": True,
    "logging": False,
}

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Exporter(Enum):
    ZIPKIN = "zipkin"
    OTLP = "otlp"
    CONSOLE = "console"
    CLOUDTRACE = "cloudtrace"


# Alternate spellings accepted for TRACING_EXPORTER
EXPORTER_ALIASES = {"gcp": Exporter.CLOUDTRACE}


class Processor(Enum):
    SIMPLE = "simple"
    BATCH = "batch"


@dataclass
class TracingConfig:
    service_name: str = DEFAULT_SERVICE_NAME
    service_version: str = "1.0.0"
    exporter: Exporter = Exporter.ZIPKIN
    zipkin_endpoint: str = DEFAULT_ZIPKIN_ENDPOINT
    otlp_endpoint: str = DEFAULT_OTLP_ENDPOINT
    console_export: bool = True
    processor: Processor = Processor.SIMPLE
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        "DEBUG"
    )
    instrumentations: dict[str, bool] = field(
        default_factory=lambda: dict(DEFAULT_INSTRUMENTATIONS)
    )

    def __post_init__(self):
        # value checking
        if not self.service_name:
            raise ValueError("Service name must be provided")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")
        if isinstance(self.exporter, str):
            name = self.exporter.lower()
            if name in EXPORTER_ALIASES:
                self.exporter = EXPORTER_ALIASES[name]
            elif name in [e.value for e in Exporter]:
                self.exporter = Exporter(name)
            else:
                raise ValueError(f"Invalid exporter: {self.exporter}")
        if isinstance(self.processor, str):
            if self.processor.lower() not in [p.value for p in Processor]:
                raise ValueError(f"Invalid processor: {self.processor}")
            self.processor = Processor(self.processor.lower())
        for name, enabled in self.instrumentations.items():
            if name not in DEFAULT_INSTRUMENTATIONS:
                raise ValueError(
                    f"Unknown instrumentation '{name}', choose from: "
                    f"{', '.join(DEFAULT_INSTRUMENTATIONS)}"
                )
            if not isinstance(enabled, bool):
                raise ValueError(
                    f"Instrumentation '{name}' must be true or false"
                )

    @property
    def exporter_endpoint(self) -> Optional[str]:
        """Endpoint of the primary exporter, if it talks to the network."""
        if self.exporter == Exporter.ZIPKIN:
            return self.zipkin_endpoint
        if self.exporter == Exporter.OTLP:
            return self.otlp_endpoint
        return None

    def enabled_instrumentations(self) -> list[str]:
        return [name for name, on in self.instrumentations.items() if on]


def _env_overrides() -> dict:
    overrides: dict = {}
    env_map = {
        "OTEL_SERVICE_NAME": "service_name",
        "SERVICE_VERSION": "service_version",
        "TRACING_EXPORTER": "exporter",
        "ZIPKIN_ENDPOINT": "zipkin_endpoint",
        "OTEL_EXPORTER_OTLP_ENDPOINT": "otlp_endpoint",
        "TRACING_PROCESSOR": "processor",
    }
    for env_name, key in env_map.items():
        value = os.getenv(env_name)
        if value:
            overrides[key] = value

    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        overrides["log_level"] = log_level.upper()
    elif os.getenv("ENVIRONMENT", "").lower() == "production":
        overrides["log_level"] = "INFO"
    return overrides


def load_config(config_path: Optional[str] = None) -> TracingConfig:
    """Load the tracing configuration.

    Values come from the optional YAML file first (``config_path`` or the
    ``GOALTRACE_CONFIG`` environment variable), then environment variables
    override them.
    """
    explicit = config_path is not None
    config_path = config_path or os.getenv("GOALTRACE_CONFIG", "")

    config_data: dict = {}
    if config_path:
        if not os.path.exists(config_path):
            if explicit:
                raise ConfigurationError(
                    f"Config file not found: {config_path}",
                    "Check the --config-path option.",
                )
        else:
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}
            if not isinstance(config_data, dict):
                raise ConfigurationError(
                    f"Config file {config_path} must contain a mapping"
                )
            # YAML toggles are layered over the defaults
            if isinstance(config_data.get("instrumentations"), dict):
                config_data["instrumentations"] = {
                    **DEFAULT_INSTRUMENTATIONS,
                    **config_data["instrumentations"],
                }

    config_data.update(_env_overrides())
    # Production ships to Cloud Trace unless an exporter was chosen
    if os.getenv("ENVIRONMENT", "").lower() == "production":
        config_data.setdefault("exporter", Exporter.CLOUDTRACE.value)
    try:
        return TracingConfig(**config_data)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Error loading config: {e}") from e
