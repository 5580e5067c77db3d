#!/usr/bin/env python3
"""
Command-Line Interface for the Prometheus query client.

Usage:
    # Instant query
    promclient --url http://localhost:9090 query 'up'

    # Range query over the last hour at 60s resolution, as CSV
    promclient query-range 'rate(http_requests_total[5m])' --range 3600 --step 60 --format csv

    # List metric names
    promclient -c promclient.yaml metrics
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import __version__
from .config import VALID_OUTPUT_FORMATS, ClientConfig, load_config
from .errors import PrometheusClientError
from .models import QueryResponse

# Set up logging with rich handler
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(rich_tracebacks=True, show_time=False, console=Console(stderr=True))],
)
logger = logging.getLogger(__name__)
console = Console(stderr=True)


class CLIContext:
    """Context object for CLI commands."""

    def __init__(self):
        self.verbose = False
        self.config_path: Optional[Path] = None
        self.url: Optional[str] = None
        self.timeout: Optional[float] = None

    def load(self, output_format: Optional[str] = None,
             delimiter: Optional[str] = None) -> ClientConfig:
        """Load the configuration file and apply command-line overrides."""
        return load_config(
            self.config_path,
            url=self.url,
            timeout=self.timeout,
            output_format=output_format,
            delimiter=delimiter,
        )


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def fail(ctx: CLIContext, error: Exception) -> None:
    """Report an error and exit with status 1."""
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}", style="red", soft_wrap=True)
    if isinstance(error, PrometheusClientError) and getattr(error, "errors", None):
        for message in error.errors:
            console.print(f"  • {message}", markup=False, soft_wrap=True)
    if ctx.verbose:
        console.print_exception()
    sys.exit(1)


def render(response: QueryResponse, config: ClientConfig) -> str:
    """Render a response in the configured output format."""
    if config.output_format == "csv":
        return response.to_csv(config.delimiter)
    return response.to_text()


def output_options(func):
    """Attach the --format and --delimiter options to a command."""
    func = click.option(
        "--delimiter", "-d",
        type=str,
        default=None,
        help="Field delimiter for csv output (default: ',')"
    )(func)
    func = click.option(
        "--format", "-f", "output_format",
        type=click.Choice(VALID_OUTPUT_FORMATS, case_sensitive=False),
        default=None,
        help="Output format (default: text)"
    )(func)
    return func


@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output (logs request URLs and response bodies)"
)
@click.option(
    "-c", "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file"
)
@click.option(
    "--url", "-u",
    type=str,
    default=None,
    help="Prometheus URL (overrides config, default: http://localhost:9090)"
)
@click.option(
    "--timeout", "-t",
    type=float,
    default=None,
    help="Request timeout in seconds (overrides config, default: 30)"
)
@click.version_option(version=__version__, prog_name="promclient")
@pass_context
def cli(ctx: CLIContext, verbose: bool, config: Optional[Path], url: Optional[str],
        timeout: Optional[float]):
    """
    Query a Prometheus server through its HTTP API.
    """
    ctx.verbose = verbose
    ctx.config_path = config
    ctx.url = url
    ctx.timeout = timeout

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose mode enabled")


@cli.command()
@click.argument("expr")
@output_options
@pass_context
def query(ctx: CLIContext, expr: str, output_format: Optional[str], delimiter: Optional[str]):
    """
    Evaluate EXPR at the current time.

    Examples:

        promclient query 'sum(up)'

        promclient query 'up' --format csv --delimiter ';'
    """
    try:
        config = ctx.load(output_format, delimiter)
        with config.create_client() as client:
            response = client.query(expr)
        click.echo(render(response, config), nl=False)
    except (PrometheusClientError, FileNotFoundError, ValueError) as e:
        fail(ctx, e)


@cli.command("query-range")
@click.argument("expr")
@click.option(
    "--range", "-r", "range_seconds",
    type=click.IntRange(min=0),
    required=True,
    help="Length of the evaluated interval in seconds"
)
@click.option(
    "--step", "-s",
    type=click.IntRange(min=0),
    required=True,
    help="Resolution step width in seconds"
)
@click.option(
    "--end", "-e",
    type=float,
    default=None,
    help="End of the interval as a UNIX timestamp (default: now)"
)
@output_options
@pass_context
def query_range(ctx: CLIContext, expr: str, range_seconds: int, step: int, end: Optional[float],
                output_format: Optional[str], delimiter: Optional[str]):
    """
    Evaluate EXPR over a time range.

    Examples:

        promclient query-range 'rate(http_requests_total[5m])' --range 3600 --step 60
    """
    if end is None:
        end = time.time()

    try:
        config = ctx.load(output_format, delimiter)
        with config.create_client() as client:
            response = client.query_range(expr, end, range_seconds, step)
        click.echo(render(response, config), nl=False)
    except (PrometheusClientError, FileNotFoundError, ValueError) as e:
        fail(ctx, e)


@cli.command()
@pass_context
def metrics(ctx: CLIContext):
    """
    List the metric names known to the server.
    """
    try:
        config = ctx.load()
        with config.create_client() as client:
            names = client.metrics()
        for name in names:
            click.echo(name)
        logger.debug(f"{len(names)} metric names")
    except (PrometheusClientError, FileNotFoundError, ValueError) as e:
        fail(ctx, e)


def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
