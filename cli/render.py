from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_values(values: Dict[str, Any]) -> str:
    return ", ".join(f"{name}={value:.2f}" for name, value in values.items())


def render_report(payload: Dict[str, Any], max_records: int = 10) -> None:
    echo_heading("Parse Report")
    echo_key_values(
        [
            ("filename", payload.get("filename")),
            ("total_rows", payload.get("total_rows")),
            ("successful_rows", payload.get("successful_rows")),
            ("error_count", payload.get("error_count")),
            ("processing_ms", payload.get("processing_ms")),
        ]
    )

    records = payload.get("records")
    if records is not None:
        typer.echo()
        echo_heading("Records")
        if records:
            for record in records[:max_records]:
                user = record.get("user_record") or {}
                timestamp = user.get("timestamp") or {}
                pv = record.get("pv") or {}
                battery = record.get("battery") or {}
                typer.echo(
                    f"  - {user.get('id') or '?'} {timestamp.get('date')} {timestamp.get('time')}"
                    f" pv={pv.get('power_w')}W soc={battery.get('soc')}%"
                )
            if len(records) > max_records:
                typer.echo(f"  ... and {len(records) - max_records} more")
        else:
            typer.echo("No records parsed.")

    aggregates = payload.get("aggregates")
    if aggregates is not None:
        typer.echo()
        echo_heading("Aggregates")
        if aggregates:
            for bucket in aggregates:
                typer.echo(
                    f"  - {bucket.get('period')} (count={bucket.get('count')}): "
                    f"{_format_values(bucket.get('values') or {})}"
                )
        else:
            typer.echo("No timestamped records to aggregate.")

    typer.echo()
    echo_heading("Errors")
    typer.echo(payload.get("summary") or "No errors")
