"""Assembly of a single header-keyed CSV row into an :class:`InverterRecord`."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from models.records import (
    BatteryData,
    ErrorType,
    Field,
    GridData,
    InverterData,
    InverterRecord,
    InverterSupply,
    ParseError,
    PVData,
    SystemStatus,
    Timestamp,
    UserRecord,
)
from services.headers import HeaderMap, resolve_headers
from services.validation import (
    NumberResult,
    validate_blackout,
    validate_current,
    validate_date,
    validate_energy,
    validate_frequency,
    validate_hex,
    validate_power,
    validate_soc,
    validate_temperature,
    validate_time,
    validate_voltage,
)

NumberValidator = Callable[[Optional[str], str, int], NumberResult]
RowOutcome = Tuple[Optional[InverterRecord], List[ParseError]]

# Order matters: errors are reported in this sequence.
NUMERIC_FIELDS: Tuple[Tuple[Field, NumberValidator], ...] = (
    (Field.inv_supply_total_kwh, validate_energy),
    (Field.pv_voltage, validate_voltage),
    (Field.pv_current, validate_current),
    (Field.pv_power_w, validate_power),
    (Field.pv_daily_wh, validate_energy),
    (Field.pv_monthly_wd, validate_energy),
    (Field.pv_yearly_wm, validate_energy),
    (Field.pv_total_kwh, validate_energy),
    (Field.battery_voltage, validate_voltage),
    (Field.battery_current, validate_current),
    (Field.battery_temp, validate_temperature),
    (Field.battery_soc, validate_soc),
    (Field.inverter_voltage, validate_voltage),
    (Field.inverter_current, validate_current),
    (Field.inverter_frequency, validate_frequency),
    (Field.grid_voltage, validate_voltage),
    (Field.grid_current, validate_current),
    (Field.grid_frequency, validate_frequency),
)


def _read(row: Mapping[str, Optional[str]], header_map: HeaderMap, field: Field) -> str:
    column = header_map.get(field)
    if column is None:
        return ""
    return row.get(column) or ""


def build_timestamp(date_raw: str, time_raw: str, row_number: int) -> Tuple[Timestamp, List[ParseError]]:
    """Validate date and time and combine them when both are valid."""
    errors: List[ParseError] = []
    date_value, date_error = validate_date(date_raw, Field.date.value, row_number)
    time_value, time_error = validate_time(time_raw, Field.time.value, row_number)
    if date_error:
        errors.append(date_error)
    if time_error:
        errors.append(time_error)

    combined: Optional[datetime] = None
    if date_error is None and time_error is None:
        try:
            combined = datetime.strptime(f"{date_value} {time_value}", "%Y-%m-%d %H:%M")
        except ValueError:
            errors.append(
                ParseError(
                    row=row_number,
                    field="datetime",
                    value=f"{date_raw} {time_raw}",
                    message="Failed to create valid datetime",
                    type=ErrorType.conversion,
                )
            )

    return Timestamp(date=date_value, time=time_value, datetime=combined), errors


def assemble_row(
    row: Mapping[str, Optional[str]],
    row_number: int,
    header_map: Optional[HeaderMap] = None,
) -> RowOutcome:
    """Turn one raw row into a record plus every error found along the way.

    A record is returned for any row that carries a device id or a date, even
    when individual fields failed validation; failed fields keep their
    fallback values. Rows with neither are rejected with an extra
    ``record`` error.
    """
    if header_map is None:
        header_map = resolve_headers(row.keys())

    errors: List[ParseError] = []

    device_id = _read(row, header_map, Field.id).strip()
    name = _read(row, header_map, Field.name).strip()

    timestamp, timestamp_errors = build_timestamp(
        _read(row, header_map, Field.date),
        _read(row, header_map, Field.time),
        row_number,
    )
    errors.extend(timestamp_errors)

    blackout, blackout_error = validate_blackout(
        _read(row, header_map, Field.blackout), Field.blackout.value, row_number
    )
    if blackout_error:
        errors.append(blackout_error)

    values: Dict[Field, float] = {}
    for field, validator in NUMERIC_FIELDS:
        value, error = validator(_read(row, header_map, field), field.value, row_number)
        values[field] = value
        if error:
            errors.append(error)

    status_hex, hex_error = validate_hex(
        _read(row, header_map, Field.status_hex), Field.status_hex.value, row_number
    )
    if hex_error:
        errors.append(hex_error)

    if not device_id and not timestamp.date:
        errors.append(
            ParseError(
                row=row_number,
                field="record",
                value="incomplete",
                message="Row missing required ID or date information",
                type=ErrorType.validation,
            )
        )
        return None, errors

    record = InverterRecord(
        user_record=UserRecord(
            id=device_id,
            name=name,
            timestamp=timestamp,
            blackout=blackout,
        ),
        inverter_supply=InverterSupply(total_kwh=values[Field.inv_supply_total_kwh]),
        pv=PVData(
            voltage=values[Field.pv_voltage],
            current=values[Field.pv_current],
            power_w=values[Field.pv_power_w],
            daily_wh=values[Field.pv_daily_wh],
            monthly_wd=values[Field.pv_monthly_wd],
            yearly_wm=values[Field.pv_yearly_wm],
            total_kwh=values[Field.pv_total_kwh],
        ),
        battery=BatteryData(
            voltage=values[Field.battery_voltage],
            current=values[Field.battery_current],
            temperature=values[Field.battery_temp],
            soc=values[Field.battery_soc],
        ),
        inverter=InverterData(
            voltage=values[Field.inverter_voltage],
            current=values[Field.inverter_current],
            frequency=values[Field.inverter_frequency],
        ),
        grid=GridData(
            voltage=values[Field.grid_voltage],
            current=values[Field.grid_current],
            frequency=values[Field.grid_frequency],
        ),
        status=SystemStatus(hex=status_hex),
    )
    return record, errors
