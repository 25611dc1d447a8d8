"""Field-level validators for raw CSV values.

Every validator takes the raw cell text, the field name used for error
reporting and the row number, and returns a ``(value, error)`` pair. The
value is always usable: failed numeric fields fall back to ``0``, a failed
blackout flag to ``None``. Out-of-range numbers are returned unchanged
alongside a ``validation`` error so that recorded telemetry is never
silently clamped.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Tuple

from models.records import ErrorType, ParseError

NumberResult = Tuple[float, Optional[ParseError]]
TextResult = Tuple[str, Optional[ParseError]]
FlagResult = Tuple[Optional[bool], Optional[ParseError]]

_EMPTY_MARKERS = {"", "-"}
_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
_TIME_PATTERN = re.compile(r"([01]?[0-9]|2[0-3]):[0-5][0-9]")
_HEX_PATTERN = re.compile(r"0x[0-9A-Fa-f]+")
_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}

DEFAULT_HEX = "0x00"


@dataclass(frozen=True)
class Range:
    min: float
    max: float


VALIDATION_RULES: Dict[str, Range] = {
    "voltage": Range(0, 300),
    "current": Range(-100, 100),
    "power": Range(0, 10000),
    "energy": Range(0, 100000),
    "temperature": Range(-40, 80),
    "soc": Range(0, 100),
    "frequency": Range(45, 65),
}


def _error(
    row: int, field_name: str, raw: Optional[str], message: str, kind: ErrorType
) -> ParseError:
    return ParseError(
        row=row,
        field=field_name,
        value=raw or "",
        message=message,
        type=kind,
    )


def _to_float(candidate: str) -> Optional[float]:
    # float() also accepts "1_000", "nan" and "inf"; none is a logger reading.
    if "_" in candidate:
        return None
    try:
        parsed = float(candidate)
    except ValueError:
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def validate_number(
    raw: Optional[str],
    field_name: str,
    min_value: float,
    max_value: float,
    row: int,
) -> NumberResult:
    candidate = (raw or "").strip()
    if candidate in _EMPTY_MARKERS:
        return 0.0, None

    value = _to_float(candidate)
    if value is None:
        return 0.0, _error(
            row,
            field_name,
            raw,
            f'Invalid number format: "{raw}"',
            ErrorType.conversion,
        )

    if value < min_value or value > max_value:
        return value, _error(
            row,
            field_name,
            raw,
            f"Value {value:g} is outside valid range [{min_value:g}, {max_value:g}]",
            ErrorType.validation,
        )

    return value, None


def _validate_quantity(quantity: str, raw: Optional[str], field_name: str, row: int) -> NumberResult:
    rule = VALIDATION_RULES[quantity]
    return validate_number(raw, field_name, rule.min, rule.max, row)


def validate_voltage(raw: Optional[str], field_name: str, row: int) -> NumberResult:
    return _validate_quantity("voltage", raw, field_name, row)


def validate_current(raw: Optional[str], field_name: str, row: int) -> NumberResult:
    return _validate_quantity("current", raw, field_name, row)


def validate_power(raw: Optional[str], field_name: str, row: int) -> NumberResult:
    return _validate_quantity("power", raw, field_name, row)


def validate_energy(raw: Optional[str], field_name: str, row: int) -> NumberResult:
    return _validate_quantity("energy", raw, field_name, row)


def validate_temperature(raw: Optional[str], field_name: str, row: int) -> NumberResult:
    return _validate_quantity("temperature", raw, field_name, row)


def validate_soc(raw: Optional[str], field_name: str, row: int) -> NumberResult:
    return _validate_quantity("soc", raw, field_name, row)


def validate_frequency(raw: Optional[str], field_name: str, row: int) -> NumberResult:
    return _validate_quantity("frequency", raw, field_name, row)


def validate_date(raw: Optional[str], field_name: str, row: int) -> TextResult:
    """Require a ``YYYY-MM-DD`` string naming a real calendar day."""
    candidate = (raw or "").strip()
    if not candidate:
        return "", _error(row, field_name, raw, "Date is required", ErrorType.missing)

    if not _DATE_PATTERN.fullmatch(candidate):
        return candidate, _error(
            row,
            field_name,
            raw,
            "Date must be in YYYY-MM-DD format",
            ErrorType.format,
        )

    try:
        datetime.strptime(candidate, "%Y-%m-%d")
    except ValueError:
        return candidate, _error(row, field_name, raw, "Invalid date", ErrorType.validation)

    return candidate, None


def validate_time(raw: Optional[str], field_name: str, row: int) -> TextResult:
    """Require an ``H:MM`` or ``HH:MM`` 24-hour clock time."""
    candidate = (raw or "").strip()
    if not candidate:
        return "", _error(row, field_name, raw, "Time is required", ErrorType.missing)

    if not _TIME_PATTERN.fullmatch(candidate):
        return candidate, _error(
            row,
            field_name,
            raw,
            "Time must be in HH:MM format",
            ErrorType.format,
        )

    return candidate, None


def validate_blackout(raw: Optional[str], field_name: str, row: int) -> FlagResult:
    candidate = (raw or "").strip()
    if candidate in _EMPTY_MARKERS:
        return None, None

    lowered = candidate.lower()
    if lowered in _TRUE_VALUES:
        return True, None
    if lowered in _FALSE_VALUES:
        return False, None

    return None, _error(
        row,
        field_name,
        raw,
        f'Invalid blackout status: "{raw}"',
        ErrorType.validation,
    )


def validate_hex(raw: Optional[str], field_name: str, row: int) -> TextResult:
    candidate = (raw or "").strip()
    if not candidate:
        return DEFAULT_HEX, None

    if not _HEX_PATTERN.fullmatch(candidate):
        return candidate, _error(
            row,
            field_name,
            raw,
            f'Invalid hex format: "{raw}"',
            ErrorType.format,
        )

    return candidate, None
