"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Mapping, Optional, Tuple


class ErrorType(str, Enum):
    """Closed set of error kinds reported while parsing."""

    validation = "validation"
    conversion = "conversion"
    missing = "missing"
    format = "format"


class Field(str, Enum):
    """Canonical column names; values double as reported error fields."""

    id = "ID"
    name = "Name"
    date = "Date"
    time = "Time"
    blackout = "Blackout"
    inv_supply_total_kwh = "InvSupply_TotalKWh"
    pv_voltage = "PV_Voltage"
    pv_current = "PV_Current"
    pv_power_w = "PV_PowerW"
    pv_daily_wh = "PV_DailyWh"
    pv_monthly_wd = "PV_MonthlyWd"
    pv_yearly_wm = "PV_YearlyWm"
    pv_total_kwh = "PV_TotalKWh"
    battery_voltage = "Battery_Voltage"
    battery_current = "Battery_Current"
    battery_temp = "Battery_Temp"
    battery_soc = "Battery_SOC"
    inverter_voltage = "Inverter_Voltage"
    inverter_current = "Inverter_Current"
    inverter_frequency = "Inverter_Frequency"
    grid_voltage = "Grid_Voltage"
    grid_current = "Grid_Current"
    grid_frequency = "Grid_Frequency"
    status_hex = "Status_Hex"


class Interval(str, Enum):
    """Bucket granularity for aggregation."""

    minute = "minute"
    hour = "hour"
    day = "day"
    month = "month"


class Method(str, Enum):
    """Reduction applied to the values of a bucket."""

    average = "average"
    sum = "sum"
    min = "min"
    max = "max"


@dataclass(frozen=True, slots=True)
class ParseError:
    """A single problem found while parsing a CSV row."""

    row: int
    field: str
    value: str
    message: str
    type: ErrorType


@dataclass(frozen=True, slots=True)
class Timestamp:
    date: str
    time: str
    datetime: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class UserRecord:
    id: str
    name: str
    timestamp: Timestamp
    blackout: Optional[bool] = None


@dataclass(frozen=True, slots=True)
class InverterSupply:
    total_kwh: float


@dataclass(frozen=True, slots=True)
class PVData:
    voltage: float
    current: float
    power_w: float
    daily_wh: float
    monthly_wd: float
    yearly_wm: float
    total_kwh: float


@dataclass(frozen=True, slots=True)
class BatteryData:
    """Battery readings; positive current means charging."""

    voltage: float
    current: float
    temperature: float
    soc: float


@dataclass(frozen=True, slots=True)
class InverterData:
    voltage: float
    current: float
    frequency: float


@dataclass(frozen=True, slots=True)
class GridData:
    voltage: float
    current: float
    frequency: float


@dataclass(frozen=True, slots=True)
class SystemStatus:
    """Raw status code; ``flags`` is reserved and never decoded here."""

    hex: str
    flags: Optional[Mapping[str, bool]] = None


@dataclass(frozen=True, slots=True)
class InverterRecord:
    """One fully parsed telemetry row."""

    user_record: UserRecord
    inverter_supply: InverterSupply
    pv: PVData
    battery: BatteryData
    inverter: InverterData
    grid: GridData
    status: SystemStatus


@dataclass(slots=True)
class ParseResult:
    """Records and errors produced from one CSV document."""

    data: List[InverterRecord] = field(default_factory=list)
    errors: List[ParseError] = field(default_factory=list)
    total_rows: int = 0

    @property
    def successful_rows(self) -> int:
        return len(self.data)


DEFAULT_AGGREGATION_FIELDS: Tuple[str, ...] = (
    "pv.power_w",
    "battery.voltage",
    "battery.soc",
    "inverter.voltage",
    "grid.voltage",
)

AGGREGATABLE_FIELDS: Tuple[str, ...] = (
    "inverter_supply.total_kwh",
    "pv.voltage",
    "pv.current",
    "pv.power_w",
    "pv.daily_wh",
    "pv.monthly_wd",
    "pv.yearly_wm",
    "pv.total_kwh",
    "battery.voltage",
    "battery.current",
    "battery.temperature",
    "battery.soc",
    "inverter.voltage",
    "inverter.current",
    "inverter.frequency",
    "grid.voltage",
    "grid.current",
    "grid.frequency",
)


@dataclass(frozen=True, slots=True)
class AggregationOptions:
    """How to bucket and reduce records."""

    interval: Interval
    fields: Tuple[str, ...] = DEFAULT_AGGREGATION_FIELDS
    method: Method = Method.average

    def __post_init__(self) -> None:
        object.__setattr__(self, "interval", Interval(self.interval))
        object.__setattr__(self, "method", Method(self.method))
        object.__setattr__(self, "fields", tuple(self.fields or DEFAULT_AGGREGATION_FIELDS))
        unknown = [path for path in self.fields if path not in AGGREGATABLE_FIELDS]
        if unknown:
            raise ValueError(f"Unknown aggregation fields: {', '.join(unknown)}")


@dataclass(frozen=True, slots=True)
class AggregatedData:
    period: str
    values: Mapping[str, float]
    count: int


@dataclass(frozen=True, slots=True)
class PowerStatistics:
    max: float
    average: float
    total_energy: float


@dataclass(frozen=True, slots=True)
class BatteryStatistics:
    average_soc: float
    min_soc: float
    max_soc: float
    average_temp: float


@dataclass(frozen=True, slots=True)
class DatasetStatistics:
    """Summary figures for a set of parsed records."""

    total_records: int
    date_range: Tuple[Optional[datetime], Optional[datetime]]
    power: PowerStatistics
    battery: BatteryStatistics
    devices: List[str]
