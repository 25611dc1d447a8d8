from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import pytest
from typer.testing import CliRunner

from cli.app import app

CSV_CONTENT = (
    "ID,Date,Time,Name,Power W,SOC\n"
    "inv-1,2025-09-28,10:00,Roof,100,40\n"
    "inv-1,2025-09-28,10:30,Roof,300,160\n"
    ",,10:45,,0,0\n"
)


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.upload_calls: List[Dict[str, Any]] = []
        self.payload: Dict[str, Any] = {
            "filename": "data.csv",
            "total_rows": 2,
            "successful_rows": 2,
            "error_count": 0,
            "processing_ms": 3,
            "summary": "No errors",
            "errors": [],
            "records": None,
            "aggregates": [
                {"period": "2025-09-28 10:00", "values": {"pv.power_w": 200.0}, "count": 2}
            ],
        }
        self.closed = False

    def upload_file(self, path: Path, **kwargs: Any) -> Dict[str, Any]:
        self.upload_calls.append({"path": path, **kwargs})
        return self.payload

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def csv_path(tmp_path) -> Path:
    path = tmp_path / "data.csv"
    path.write_text(CSV_CONTENT)
    return path


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def test_parse_locally_renders_report(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["parse", str(csv_path)])

    assert result.exit_code == 0, result.output
    assert "Parse Report" in result.stdout
    assert "total_rows: 3" in result.stdout
    assert "successful_rows: 2" in result.stdout
    assert "inv-1 2025-09-28 10:00 pv=100.0W soc=40.0%" in result.stdout
    assert "VALIDATION errors" in result.stdout
    assert "MISSING errors" in result.stdout
    assert "Aggregates" not in result.stdout
    assert not stub.upload_calls
    assert stub.closed is True


def test_parse_locally_with_aggregation(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    _install_stub(monkeypatch, StubClient(config=None))

    result = runner.invoke(
        app,
        ["parse", str(csv_path), "--interval", "hour", "--method", "sum", "--field", "pv.power_w", "--no-records"],
    )

    assert result.exit_code == 0, result.output
    assert "2025-09-28 10:00 (count=2): pv.power_w=400.00" in result.stdout
    assert "Records" not in result.stdout


def test_parse_rejects_unknown_field(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    _install_stub(monkeypatch, StubClient(config=None))

    result = runner.invoke(app, ["parse", str(csv_path), "--interval", "day", "--field", "pv.nope"])

    assert result.exit_code != 0


def test_upload_sends_options_to_service(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(
        app,
        [
            "--base-url",
            "http://ingest.local:9000/",
            "upload",
            str(csv_path),
            "--interval",
            "hour",
            "--field",
            "pv.power_w",
            "--no-records",
        ],
    )

    assert result.exit_code == 0, result.output
    assert stub.config.base_url == "http://ingest.local:9000"
    assert stub.upload_calls == [
        {
            "path": csv_path,
            "interval": "hour",
            "method": "average",
            "fields": ["pv.power_w"],
            "include_records": False,
        }
    ]
    assert "2025-09-28 10:00 (count=2): pv.power_w=200.00" in result.stdout
    assert "No errors" in result.stdout
    assert stub.closed is True


def test_upload_without_interval_omits_method(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["upload", str(csv_path)])

    assert result.exit_code == 0, result.output
    assert stub.upload_calls[0]["interval"] is None
    assert stub.upload_calls[0]["method"] is None
    assert stub.upload_calls[0]["include_records"] is True


@pytest.mark.parametrize("command", ["parse", "upload"])
@pytest.mark.parametrize(
    "extra_args", [["--field", "pv.power_w"], ["--method", "max"]]
)
def test_aggregation_options_without_interval_are_rejected(
    monkeypatch, runner: CliRunner, csv_path: Path, command: str, extra_args: List[str]
) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, [command, str(csv_path), *extra_args])

    assert result.exit_code == 2
    assert not stub.upload_calls
