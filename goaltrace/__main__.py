import asyncio
import json

import click
from colorama import Fore, Style

from goaltrace.config import TracingConfig, load_config
from goaltrace.doctor import check_config
from goaltrace.error_handler import handle_error
from goaltrace.exceptions import GoaltraceError
from goaltrace.log import bind_trace_context, init_logger, logger
from goaltrace.tracing import TracingRuntime, initialize_tracing
from goaltrace.tracing.demo import generate_demo_traces

config_option = click.option(
    "-c",
    "--config-path",
    "config_path",
    type=click.Path(),
    required=False,
    help="Path to configuration file",
)


def _report(text: str, color: str = Fore.BLUE) -> None:
    click.echo(f"{color}{text}{Style.RESET_ALL}")


def _load(config_path: str | None) -> TracingConfig:
    try:
        config = load_config(config_path)
    except GoaltraceError as e:
        handle_error(e, exit_on_error=True)
    init_logger(config)
    return config


def _start(config: TracingConfig) -> TracingRuntime:
    runtime = initialize_tracing(config)
    bind_trace_context(runtime.context_manager)
    if not runtime.enabled:
        logger.warning("Tracing is disabled; spans will not be exported")
    return runtime


@click.group()
def cli():
    pass


@cli.command()
@config_option
def selftest(config_path: str | None):
    """
    Start the tracing pipeline, emit the diagnostic span and flush it.
    """
    config = _load(config_path)
    runtime = _start(config)
    runtime.shutdown()


@cli.command()
@config_option
@click.option(
    "--delay-scale",
    type=float,
    default=1.0,
    show_default=True,
    help="Multiplier for the simulated processing delays",
)
def demo(config_path: str | None, delay_scale: float):
    """
    Generate a set of representative traces for end-to-end checks.
    """
    config = _load(config_path)
    runtime = _start(config)
    try:
        asyncio.run(generate_demo_traces(runtime, delay_scale))
    finally:
        runtime.shutdown()


@cli.command()
@config_option
@click.argument("name")
def propagate(config_path: str | None, name: str):
    """
    Start a root span NAME and print the headers that carry its context.
    """
    config = _load(config_path)
    runtime = _start(config)
    manager = runtime.context_manager
    span = manager.create_root_span(name)
    headers = manager.with_span(
        span, lambda _: manager.inject_context_into_headers()
    )
    click.echo(json.dumps(headers, indent=2))
    runtime.shutdown()


@cli.command()
@config_option
def doctor(config_path: str | None):
    """
    Check the tracing config and report exporter and instrumentation setup.
    """
    config = _load(config_path)
    report = check_config(config)

    _report(f"Service: {report['service_name']}")
    _report(f"Exporter: {report['exporter']} ({report['processor']})")
    if report["endpoint"]:
        _report(f"Endpoint: {report['endpoint']}")
    _report(
        "Instrumentations enabled: "
        + (", ".join(report["enabled_instrumentations"]) or "none")
    )
    _report(
        "Instrumentations disabled: "
        + (", ".join(report["disabled_instrumentations"]) or "none")
    )

    for error in report["errors"]:
        _report(f"ERROR {error['field']}: {error['message']}", Fore.RED)
    for warning in report["warnings"]:
        _report(f"WARNING {warning['field']}: {warning['message']}", Fore.YELLOW)

    if report["errors"]:
        raise SystemExit(1)
    _report("Config OK")


if __name__ == "__main__":
    cli()
