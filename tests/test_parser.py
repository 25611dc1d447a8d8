"""Tests for the CSV parse orchestrator."""

from __future__ import annotations

import logging

from models.records import ErrorType
from services.parser import parse_csv

HEADER = (
    "ID,Date,Time,Name,Blackout,Total kWh,Voltage,Current,Power W,Daily Wh,Monthly Wd,"
    "Yearly Wm,Total kWh,Voltage,Current,Temp,SOC,Voltage,Current,Hz,Voltage,Current,Hz,Hex"
)
BANNER = "User Record,,,,Inv Supply,,PV,,,,,,,BATTERY,,,,INVERTER,,,GRID,,,Status"
FULL_ROW = (
    "HINV-80F3DA61D0,2025-09-28,21:05,TwinklePower,-,1.85,0,0,0,0,774.77,387.38,2.32,"
    "25.9,0,27,98,208.35,0,60,206.63,0,60,0x03"
)
TIME_ONLY_ROW = ",,21:06,,-,,0,0,0,,,,,25.9,0,27,98,208.09,0,60,206.63,0,60,0x03"


def _csv(*lines: str) -> str:
    return "\n".join(lines) + "\n"


def test_parse_sample_keeps_identifiable_row_and_drops_anonymous_one() -> None:
    result = parse_csv(_csv(HEADER, FULL_ROW, TIME_ONLY_ROW))

    assert result.total_rows == 2
    assert result.successful_rows == 1
    assert len(result.data) == 1
    assert any(
        error.field == "Date" and error.type is ErrorType.missing and error.row == 3
        for error in result.errors
    )

    record = result.data[0]
    assert record.user_record.id == "HINV-80F3DA61D0"
    assert record.inverter_supply.total_kwh == 1.85
    assert record.pv.monthly_wd == 774.77
    assert record.pv.total_kwh == 2.32
    assert record.battery.voltage == 25.9
    assert record.battery.temperature == 27
    assert record.inverter.voltage == 208.35
    assert record.grid.voltage == 206.63
    assert record.grid.frequency == 60


def test_parse_reports_errors_in_row_order() -> None:
    bad_soc = FULL_ROW.replace(",98,", ",150,")
    bad_voltage = FULL_ROW.replace(",25.9,", ",abc,")
    result = parse_csv(_csv(HEADER, bad_soc, bad_voltage))

    assert result.successful_rows == 2
    assert [(error.row, error.field, error.type) for error in result.errors] == [
        (2, "Battery_SOC", ErrorType.validation),
        (3, "Battery_Voltage", ErrorType.conversion),
    ]
    assert result.data[0].battery.soc == 150


def test_parse_skips_section_banner_and_blank_lines() -> None:
    result = parse_csv(_csv(BANNER, HEADER, "", FULL_ROW, "   ", TIME_ONLY_ROW))

    assert result.total_rows == 2
    assert result.successful_rows == 1
    assert result.data[0].user_record.name == "TwinklePower"
    assert {error.row for error in result.errors} == {4}


def test_parse_strips_byte_order_mark() -> None:
    result = parse_csv("\ufeff" + _csv(HEADER, FULL_ROW))

    assert result.successful_rows == 1
    assert result.errors == []


def test_parse_reports_field_count_mismatch_and_still_assembles_row() -> None:
    short_row = "inv-2,2025-09-28,21:10"
    result = parse_csv(_csv(HEADER, short_row))

    assert result.total_rows == 1
    assert result.successful_rows == 1
    parsing_errors = [error for error in result.errors if error.field == "parsing"]
    assert len(parsing_errors) == 1
    assert parsing_errors[0].type is ErrorType.format
    assert parsing_errors[0].row == 2
    assert "expected 24 fields but parsed 3" in parsing_errors[0].message


def test_parse_reports_unreadable_row_and_keeps_going() -> None:
    broken = FULL_ROW.replace("TwinklePower", '"Twinkle"x')
    result = parse_csv(_csv(HEADER, FULL_ROW, broken, *[FULL_ROW] * 5))

    assert result.total_rows == 7
    assert result.successful_rows == 6
    assert [(error.row, error.field, error.type) for error in result.errors] == [
        (3, "parsing", ErrorType.format)
    ]
    assert "expected after" in result.errors[0].message


def test_parse_reports_unterminated_quote_at_end_of_input() -> None:
    result = parse_csv(_csv(HEADER, FULL_ROW) + 'inv-4,"2025-09-28')

    assert result.total_rows == 2
    assert result.successful_rows == 1
    assert result.errors[-1].row == 3
    assert result.errors[-1].field == "parsing"


def test_parse_empty_input_returns_single_file_error() -> None:
    result = parse_csv("")

    assert result.total_rows == 0
    assert result.successful_rows == 0
    assert result.data == []
    assert len(result.errors) == 1
    assert result.errors[0].field == "file"
    assert result.errors[0].type is ErrorType.format


def test_parse_untokenizable_header_returns_single_file_error() -> None:
    result = parse_csv('ID,"Date\n')

    assert result.total_rows == 0
    assert len(result.errors) == 1
    assert result.errors[0].field == "file"


def test_parse_header_only_has_no_rows() -> None:
    result = parse_csv(_csv(HEADER))

    assert result.total_rows == 0
    assert result.successful_rows == 0
    assert result.errors == []


def test_parse_accepts_canonical_headers() -> None:
    text = _csv(
        "ID,Date,Time,PV_PowerW,Battery_SOC,Grid_Frequency,Status_Hex",
        "inv-9,2025-10-01,6:30,1200,55,50.1,0x0A",
    )

    result = parse_csv(text)

    assert result.errors == []
    record = result.data[0]
    assert record.pv.power_w == 1200
    assert record.battery.soc == 55
    assert record.grid.frequency == 50.1
    assert record.status.hex == "0x0A"


def test_successful_rows_never_exceed_total_rows() -> None:
    rows = [FULL_ROW, TIME_ONLY_ROW, ",,,Nameless", FULL_ROW.replace("HINV-80F3DA61D0", "")]
    result = parse_csv(_csv(HEADER, *rows))

    assert result.successful_rows == len(result.data) == 2
    assert result.successful_rows <= result.total_rows == 4


def test_parse_logs_skipped_rows(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="services.parser"):
        parse_csv(_csv(HEADER, FULL_ROW, TIME_ONLY_ROW))

    records = [record for record in caplog.records if record.name == "services.parser"]
    assert records, "Expected row skip warnings to be logged."
    assert any("Skipping row 3" in record.getMessage() for record in records)
    assert any(getattr(record, "row_number", None) == 3 for record in records)
