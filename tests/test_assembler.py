"""Unit tests for row assembly."""

from __future__ import annotations

from datetime import datetime
from typing import Dict

from models.records import ErrorType
from services.assembler import assemble_row


def _row(**overrides: str) -> Dict[str, str]:
    row = {
        "ID": "HINV-80F3DA61D0",
        "Date": "2025-09-28",
        "Time": "21:05",
        "Name": "TwinklePower",
        "Blackout": "-",
        "InvSupply_TotalKWh": "1.85",
        "PV_Voltage": "120",
        "PV_Current": "4.5",
        "PV_PowerW": "540",
        "PV_DailyWh": "0",
        "PV_MonthlyWd": "774.77",
        "PV_YearlyWm": "387.38",
        "PV_TotalKWh": "2.32",
        "Battery_Voltage": "25.9",
        "Battery_Current": "-3.2",
        "Battery_Temp": "27",
        "Battery_SOC": "98",
        "Inverter_Voltage": "208.35",
        "Inverter_Current": "0",
        "Inverter_Frequency": "60",
        "Grid_Voltage": "206.63",
        "Grid_Current": "0",
        "Grid_Frequency": "60",
        "Status_Hex": "0x03",
    }
    row.update(overrides)
    return row


def test_assemble_row_builds_nested_record() -> None:
    record, errors = assemble_row(_row(), 2)

    assert errors == []
    assert record is not None
    assert record.user_record.id == "HINV-80F3DA61D0"
    assert record.user_record.name == "TwinklePower"
    assert record.user_record.blackout is None
    assert record.user_record.timestamp.datetime == datetime(2025, 9, 28, 21, 5)
    assert record.inverter_supply.total_kwh == 1.85
    assert record.pv.power_w == 540
    assert record.pv.total_kwh == 2.32
    assert record.battery.current == -3.2
    assert record.battery.soc == 98
    assert record.inverter.frequency == 60
    assert record.grid.voltage == 206.63
    assert record.status.hex == "0x03"
    assert record.status.flags is None


def test_assemble_row_reports_every_error_in_field_order() -> None:
    record, errors = assemble_row(
        _row(
            Time="25:00",
            Blackout="sometimes",
            PV_Voltage="abc",
            Battery_SOC="150",
            Grid_Frequency="99",
            Status_Hex="03",
        ),
        7,
    )

    assert record is not None
    assert [(error.field, error.type) for error in errors] == [
        ("Time", ErrorType.format),
        ("Blackout", ErrorType.validation),
        ("PV_Voltage", ErrorType.conversion),
        ("Battery_SOC", ErrorType.validation),
        ("Grid_Frequency", ErrorType.validation),
        ("Status_Hex", ErrorType.format),
    ]
    assert all(error.row == 7 for error in errors)
    assert record.user_record.timestamp.datetime is None
    assert record.pv.voltage == 0
    assert record.battery.soc == 150
    assert record.status.hex == "03"


def test_assemble_row_rejects_row_without_id_and_date() -> None:
    record, errors = assemble_row(_row(ID="", Date=""), 3)

    assert record is None
    assert any(error.field == "Date" and error.type is ErrorType.missing for error in errors)
    assert errors[-1].field == "record"
    assert errors[-1].value == "incomplete"
    assert errors[-1].type is ErrorType.validation


def test_assemble_row_keeps_row_with_only_an_id() -> None:
    record, errors = assemble_row(_row(Date=""), 3)

    assert record is not None
    assert record.user_record.timestamp.date == ""
    assert record.user_record.timestamp.datetime is None
    assert [error.field for error in errors] == ["Date"]


def test_assemble_row_keeps_row_with_only_a_date() -> None:
    record, _ = assemble_row(_row(ID=" "), 3)

    assert record is not None
    assert record.user_record.id == ""


def test_assemble_row_reads_legacy_header_names() -> None:
    row = {
        "ID": "inv-1",
        "Date": "2025-01-02",
        "Time": "08:00",
        "Voltage": "110",
        "Power W": "900",
        "Voltage_1": "51.2",
        "SOC": "64",
        "Hz": "50",
        "Hz_1": "49.9",
        "Hex": "0x1F",
    }

    record, errors = assemble_row(row, 2)

    assert errors == []
    assert record is not None
    assert record.pv.voltage == 110
    assert record.pv.power_w == 900
    assert record.battery.voltage == 51.2
    assert record.battery.soc == 64
    assert record.inverter.frequency == 50
    assert record.grid.frequency == 49.9
    assert record.status.hex == "0x1F"
    assert record.inverter.voltage == 0


def test_assemble_row_prefers_canonical_header_over_legacy() -> None:
    row = _row(Voltage="999")

    record, errors = assemble_row(row, 2)

    assert errors == []
    assert record is not None
    assert record.pv.voltage == 120
