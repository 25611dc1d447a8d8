from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer

from app.schemas import ParseReport
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_report
from models.records import AggregationOptions, Interval, Method
from services.aggregator import Aggregator
from services.processor import ProcessingOutcome
from services.parser import parse_csv


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for parsing inverter logger CSV exports.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _build_options(
    interval: Optional[Interval], method: Method, fields: Optional[List[str]]
) -> Optional[AggregationOptions]:
    if interval is None:
        if fields or method is not Method.average:
            raise typer.BadParameter(
                "--field and --method only apply together with --interval.",
                param_hint="--interval",
            )
        return None
    try:
        return AggregationOptions(interval=interval, method=method, fields=tuple(fields or ()))
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--field") from exc


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Ingest API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the service to answer.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("parse")
def parse_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV file."),
    interval: Optional[Interval] = typer.Option(
        None, "--interval", "-i", help="Aggregate records into buckets of this size."
    ),
    method: Method = typer.Option(Method.average, "--method", "-m", help="Reduction per bucket."),
    fields: Optional[List[str]] = typer.Option(
        None, "--field", "-f", help="Dotted record path to aggregate; repeatable."
    ),
    records: bool = typer.Option(True, "--records/--no-records", help="List parsed records."),
) -> None:
    """Parse a CSV file locally and print the report."""
    options = _build_options(interval, method, fields)
    try:
        text = file.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise typer.BadParameter(f"{file} is not valid UTF-8 text.", param_hint="FILE") from exc

    aggregator = Aggregator()
    result = parse_csv(text)
    outcome = ProcessingOutcome(
        result=result,
        aggregates=aggregator.aggregate(result.data, options) if options else None,
        upload_name=file.name,
    )
    report = ParseReport.from_outcome(
        outcome,
        include_records=records,
        statistics=aggregator.statistics(result.data),
    )
    render_report(report.model_dump(mode="json"))


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV file."),
    interval: Optional[Interval] = typer.Option(
        None, "--interval", "-i", help="Ask the service to aggregate into buckets of this size."
    ),
    method: Method = typer.Option(Method.average, "--method", "-m", help="Reduction per bucket."),
    fields: Optional[List[str]] = typer.Option(
        None, "--field", "-f", help="Dotted record path to aggregate; repeatable."
    ),
    records: bool = typer.Option(True, "--records/--no-records", help="List parsed records."),
) -> None:
    """Upload a CSV file to the ingest service and print its report."""
    _build_options(interval, method, fields)
    state = _get_state(ctx)
    typer.echo(f"Uploading {file} to {state.config.base_url} ...")
    payload = state.client.upload_file(
        file,
        interval=interval.value if interval else None,
        method=method.value if interval else None,
        fields=fields or [],
        include_records=records,
    )
    typer.echo()
    render_report(payload)
