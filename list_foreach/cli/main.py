"""list-foreach CLI.

Usage:
    list-foreach run --url JQ_PROGRAM [OPTIONS] < records
    list-foreach version

Example:
    gcloud projects list --format=json | jq -c '.[]' |
      list-foreach run --execute --auto-collection \\
        --url '"https://compute.googleapis.com/compute/v1/projects/\\(.projectId)/global/networks"'

Exit codes: 0=success, 1=configuration or run error
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import IO, Annotated

import typer
from rich.console import Console

from list_foreach import __version__
from list_foreach.config.options import RunOptions
from list_foreach.config.settings import get_settings
from list_foreach.core.errors import ListForEachError
from list_foreach.core.types import InputFormat, OutputFormat
from list_foreach.http.auth import GoogleAuth
from list_foreach.http.client import AiohttpClient, HttpClient
from list_foreach.io.decoders import make_decoder
from list_foreach.io.encoders import make_encoder
from list_foreach.observability.logger import setup_logging
from list_foreach.observability.metrics import RunMetrics
from list_foreach.observability.wire import WireDump
from list_foreach.pipeline.emitter import ResultEmitter
from list_foreach.pipeline.runner import Runner
from list_foreach.pipeline.seeds import JqExpander

# Create CLI app
app = typer.Typer(
    name="list-foreach",
    help="Fetch every page of paginated list APIs for each input record",
    add_completion=False,
)

# stdout carries results, so diagnostics go to stderr
console = Console(stderr=True)


def build_client(options: RunOptions) -> HttpClient:
    """HTTP client for a run, with Google credentials unless disabled."""
    auth = GoogleAuth.from_default() if options.auth and options.execute else None
    return AiohttpClient(
        auth=auth,
        timeout=options.http_timeout,
        user_agent=options.user_agent,
        wire=WireDump() if options.log_http else None,
    )


@app.command()
def run(
    url: Annotated[str, typer.Option("--url", help="jq program producing seed URLs from each record")],
    billing_project: Annotated[
        str | None, typer.Option("--billing-project", help="Project billed for quota (x-goog-user-project)")
    ] = None,
    collection: Annotated[
        str | None, typer.Option("--collection", help="Collection field name for paginated list method")
    ] = None,
    auto_collection: Annotated[
        bool, typer.Option("--auto-collection", help="Infer collection name from URL path")
    ] = False,
    parallelism: Annotated[int | None, typer.Option("--parallelism", help="Concurrent seeds")] = None,
    rate_limit: Annotated[
        int | None, typer.Option("--rate-limit-per-minute", help="Request cap per minute (0 = unlimited)")
    ] = None,
    execute: Annotated[bool, typer.Option("--execute", help="Send requests (default: dry run)")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every request")] = False,
    log_http: Annotated[bool, typer.Option("--log-http", help="Dump raw HTTP to stderr")] = False,
    raw_input: Annotated[bool, typer.Option("--raw-input", help="Each input line is a string")] = False,
    yaml_input: Annotated[bool, typer.Option("--yaml-input", help="Input is a YAML stream")] = False,
    yaml_output: Annotated[bool, typer.Option("--yaml-output", help="Write YAML documents")] = False,
    filter_error: Annotated[
        bool, typer.Option("--filter-error", help="Drop non-200 terminal responses")
    ] = False,
    max_retries: Annotated[
        int | None, typer.Option("--max-retries", help="Retry cap per request (default: unlimited)")
    ] = None,
    timeout: Annotated[float | None, typer.Option("--timeout", help="Request timeout in seconds")] = None,
    no_auth: Annotated[bool, typer.Option("--no-auth", help="Send requests without credentials")] = False,
    json_logs: Annotated[bool, typer.Option("--json-logs", help="Structured JSON log lines")] = False,
    input_file: Annotated[
        Path | None, typer.Option("--input", "-i", help="Read records from file instead of stdin")
    ] = None,
) -> None:
    """Expand each input record into URLs and fetch all of their pages.

    Writes one {"input": ..., "response": ...} record per URL to stdout.
    """
    setup_logging(
        level=logging.DEBUG if verbose else logging.INFO,
        json_format=json_logs,
        force=True,
    )

    if raw_input:
        input_format = InputFormat.RAW
    elif yaml_input:
        input_format = InputFormat.YAML
    else:
        input_format = InputFormat.JSON

    try:
        options = RunOptions.from_settings(
            get_settings(),
            billing_project=billing_project,
            collection=collection,
            auto_collection=auto_collection,
            parallelism=parallelism,
            rate_limit_per_minute=rate_limit,
            execute=execute,
            verbose=verbose,
            log_http=log_http,
            input_format=input_format,
            output_format=OutputFormat.YAML if yaml_output else OutputFormat.JSON,
            filter_errors=filter_error,
            max_retries=max_retries,
            http_timeout=timeout,
            auth=not no_auth,
        )
        expander = JqExpander(url)

        if input_file is not None:
            with input_file.open(encoding="utf-8") as stream:
                asyncio.run(_run(options, expander, stream))
        else:
            asyncio.run(_run(options, expander, sys.stdin))
    except (ListForEachError, OSError) as e:
        console.print(f"Error: {e}", style="red", markup=False, highlight=False)
        raise typer.Exit(code=1)


async def _run(options: RunOptions, expander: JqExpander, stream: IO[str]) -> RunMetrics:
    client = build_client(options)
    try:
        runner = Runner(
            options=options,
            expander=expander,
            client=client,
            emitter=ResultEmitter(make_encoder(options.output_format), sys.stdout),
        )
        return await runner.run(make_decoder(options.input_format, stream))
    finally:
        await client.close()


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]list-foreach v{__version__}[/bold]")


if __name__ == "__main__":
    app()
