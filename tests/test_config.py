"""Tests for tracing configuration loading and validation."""

import pytest

from goaltrace.config import (
    DEFAULT_INSTRUMENTATIONS,
    Exporter,
    Processor,
    TracingConfig,
    load_config,
)
from goaltrace.exceptions import ConfigurationError

ENV_VARS = [
    "GOALTRACE_CONFIG",
    "OTEL_SERVICE_NAME",
    "SERVICE_VERSION",
    "TRACING_EXPORTER",
    "ZIPKIN_ENDPOINT",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
    "TRACING_PROCESSOR",
    "LOG_LEVEL",
    "ENVIRONMENT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestTracingConfig:
    def test_defaults(self):
        """Default config exports to Zipkin with the default instrumentations."""
        config = TracingConfig()
        assert config.service_name == "ai-goal-seeking-backend"
        assert config.exporter == Exporter.ZIPKIN
        assert config.zipkin_endpoint == "http://zipkin:9411/api/v2/spans"
        assert config.processor == Processor.SIMPLE
        assert config.console_export is True
        assert config.instrumentations == DEFAULT_INSTRUMENTATIONS
        assert "logging" not in config.enabled_instrumentations()

    def test_string_values_are_converted(self):
        """Enum fields accept case-insensitive strings."""
        config = TracingConfig(exporter="OTLP", processor="batch")
        assert config.exporter == Exporter.OTLP
        assert config.processor == Processor.BATCH
        assert config.exporter_endpoint == "http://localhost:4317"

    def test_console_exporter_has_no_endpoint(self):
        """The console exporter has no network endpoint."""
        assert TracingConfig(exporter="console").exporter_endpoint is None

    def test_invalid_exporter_raises(self):
        """An unsupported exporter name is rejected."""
        with pytest.raises(ValueError, match="exporter"):
            TracingConfig(exporter="jaeger")

    def test_invalid_log_level_raises(self):
        """An unknown log level is rejected."""
        with pytest.raises(ValueError, match="log level"):
            TracingConfig(log_level="LOUD")

    def test_empty_service_name_raises(self):
        """An empty service name is rejected."""
        with pytest.raises(ValueError, match="Service name"):
            TracingConfig(service_name="")

    def test_non_boolean_instrumentation_raises(self):
        """Instrumentation toggles must be booleans."""
        with pytest.raises(ValueError, match="flask"):
            TracingConfig(instrumentations={"flask": "yes"})

    def test_unknown_instrumentation_raises(self):
        """A toggle no instrumentor exists for is rejected up front."""
        with pytest.raises(ValueError, match="django"):
            TracingConfig(
                instrumentations={**DEFAULT_INSTRUMENTATIONS, "django": True}
            )

    @pytest.mark.parametrize("name", ["cloudtrace", "gcp", "GCP"])
    def test_cloud_trace_aliases(self, name):
        """Both spellings select the Cloud Trace exporter."""
        config = TracingConfig(exporter=name)
        assert config.exporter == Exporter.CLOUDTRACE
        assert config.exporter_endpoint is None


class TestLoadConfig:
    def test_without_file_uses_defaults(self):
        """Without a config file the defaults apply."""
        config = load_config()
        assert config.service_name == "ai-goal-seeking-backend"
        assert config.log_level == "DEBUG"

    def test_environment_overrides(self, monkeypatch):
        """Environment variables override the defaults."""
        monkeypatch.setenv("OTEL_SERVICE_NAME", "chat-backend")
        monkeypatch.setenv("ZIPKIN_ENDPOINT", "http://localhost:9411/api/v2/spans")
        monkeypatch.setenv("TRACING_EXPORTER", "zipkin")
        monkeypatch.setenv("LOG_LEVEL", "warning")

        config = load_config()
        assert config.service_name == "chat-backend"
        assert config.zipkin_endpoint == "http://localhost:9411/api/v2/spans"
        assert config.log_level == "WARNING"

    def test_production_defaults_to_info(self, monkeypatch):
        """Production lowers the default log level to INFO."""
        monkeypatch.setenv("ENVIRONMENT", "production")
        assert load_config().log_level == "INFO"

    def test_production_defaults_to_cloud_trace(self, monkeypatch):
        """Production exports to Cloud Trace when no exporter is chosen."""
        monkeypatch.setenv("ENVIRONMENT", "production")
        assert load_config().exporter == Exporter.CLOUDTRACE

    def test_explicit_exporter_wins_in_production(self, monkeypatch):
        """TRACING_EXPORTER overrides the production default."""
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("TRACING_EXPORTER", "zipkin")
        assert load_config().exporter == Exporter.ZIPKIN

    def test_yaml_exporter_wins_in_production(self, tmp_path, monkeypatch):
        """An exporter set in the config file overrides the production default."""
        path = tmp_path / "tracing.yaml"
        path.write_text("exporter: otlp\n")
        monkeypatch.setenv("ENVIRONMENT", "production")
        assert load_config(str(path)).exporter == Exporter.OTLP

    def test_yaml_file_with_env_override(self, tmp_path, monkeypatch):
        """Environment values win over the YAML file."""
        path = tmp_path / "tracing.yaml"
        path.write_text(
            "service_name: from-yaml\n"
            "exporter: otlp\n"
            "otlp_endpoint: http://collector:4317\n"
            "instrumentations:\n"
            "  flask: false\n"
        )
        monkeypatch.setenv("OTEL_SERVICE_NAME", "from-env")

        config = load_config(str(path))
        assert config.service_name == "from-env"
        assert config.exporter == Exporter.OTLP
        assert config.otlp_endpoint == "http://collector:4317"
        assert config.instrumentations["flask"] is False
        assert config.instrumentations["requests"] is True

    def test_config_path_from_environment(self, tmp_path, monkeypatch):
        """GOALTRACE_CONFIG points at the config file."""
        path = tmp_path / "tracing.yaml"
        path.write_text("console_export: false\n")
        monkeypatch.setenv("GOALTRACE_CONFIG", str(path))
        assert load_config().console_export is False

    def test_missing_explicit_file_raises(self, tmp_path):
        """A missing --config-path file is an error."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(str(tmp_path / "missing.yaml"))

    def test_invalid_values_raise_configuration_error(self, tmp_path):
        """Invalid YAML values surface as ConfigurationError."""
        path = tmp_path / "tracing.yaml"
        path.write_text("processor: eventually\n")
        with pytest.raises(ConfigurationError, match="processor"):
            load_config(str(path))

    def test_unknown_instrumentation_in_yaml_raises(self, tmp_path):
        """A misspelled instrumentation in YAML fails config loading."""
        path = tmp_path / "tracing.yaml"
        path.write_text("instrumentations:\n  django: true\n")
        with pytest.raises(ConfigurationError, match="django"):
            load_config(str(path))

    def test_unknown_key_raises_configuration_error(self, tmp_path):
        """Unknown YAML keys surface as ConfigurationError."""
        path = tmp_path / "tracing.yaml"
        path.write_text("sampler: half\n")
        with pytest.raises(ConfigurationError):
            load_config(str(path))
