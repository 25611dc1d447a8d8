"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import datetime as dt
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import DatasetStatistics, ErrorType
from services.processor import ProcessingOutcome
from services.reporting import format_parse_errors


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class TimestampSchema(_FromAttributes):
    date: str
    time: str
    datetime: Optional[dt.datetime] = None


class UserRecordSchema(_FromAttributes):
    id: str
    name: str
    timestamp: TimestampSchema
    blackout: Optional[bool] = None


class InverterSupplySchema(_FromAttributes):
    total_kwh: float


class PVDataSchema(_FromAttributes):
    voltage: float
    current: float
    power_w: float
    daily_wh: float
    monthly_wd: float
    yearly_wm: float
    total_kwh: float


class BatteryDataSchema(_FromAttributes):
    voltage: float
    current: float
    temperature: float
    soc: float


class ACDataSchema(_FromAttributes):
    voltage: float
    current: float
    frequency: float


class SystemStatusSchema(_FromAttributes):
    hex: str
    flags: Optional[Dict[str, bool]] = None


class InverterRecordSchema(_FromAttributes):
    """A parsed telemetry row as exposed over HTTP."""

    user_record: UserRecordSchema
    inverter_supply: InverterSupplySchema
    pv: PVDataSchema
    battery: BatteryDataSchema
    inverter: ACDataSchema
    grid: ACDataSchema
    status: SystemStatusSchema


class ParseErrorSchema(_FromAttributes):
    """Details about a field or row that failed validation or parsing."""

    row: int = Field(..., ge=0)
    field: str
    value: str
    message: str
    type: ErrorType


class AggregatedDataSchema(_FromAttributes):
    period: str
    values: Dict[str, float]
    count: int = Field(..., ge=0)


class PowerStatisticsSchema(_FromAttributes):
    max: float
    average: float
    total_energy: float


class BatteryStatisticsSchema(_FromAttributes):
    average_soc: float
    min_soc: float
    max_soc: float
    average_temp: float


class StatisticsSchema(_FromAttributes):
    total_records: int
    start: Optional[dt.datetime] = None
    end: Optional[dt.datetime] = None
    power: PowerStatisticsSchema
    battery: BatteryStatisticsSchema
    devices: List[str] = Field(default_factory=list)

    @classmethod
    def from_statistics(cls, stats: DatasetStatistics) -> "StatisticsSchema":
        start, end = stats.date_range
        return cls(
            total_records=stats.total_records,
            start=start,
            end=end,
            power=PowerStatisticsSchema.model_validate(stats.power),
            battery=BatteryStatisticsSchema.model_validate(stats.battery),
            devices=list(stats.devices),
        )


class ParseReport(BaseModel):
    """Full response for a parsed upload."""

    filename: str
    total_rows: int = Field(..., ge=0)
    successful_rows: int = Field(..., ge=0)
    error_count: int = Field(..., ge=0)
    processing_ms: int = Field(
        default=0, description="Duration in milliseconds spent parsing and aggregating."
    )
    summary: str
    errors: List[ParseErrorSchema] = Field(default_factory=list)
    records: Optional[List[InverterRecordSchema]] = None
    aggregates: Optional[List[AggregatedDataSchema]] = None
    statistics: Optional[StatisticsSchema] = None

    @classmethod
    def from_outcome(
        cls,
        outcome: ProcessingOutcome,
        include_records: bool = True,
        statistics: Optional[DatasetStatistics] = None,
    ) -> "ParseReport":
        result = outcome.result
        return cls(
            filename=outcome.upload_name,
            total_rows=result.total_rows,
            successful_rows=result.successful_rows,
            error_count=len(result.errors),
            processing_ms=outcome.processing_ms,
            summary=format_parse_errors(result.errors),
            errors=[ParseErrorSchema.model_validate(error) for error in result.errors],
            records=(
                [InverterRecordSchema.model_validate(record) for record in result.data]
                if include_records
                else None
            ),
            aggregates=(
                [AggregatedDataSchema.model_validate(bucket) for bucket in outcome.aggregates]
                if outcome.aggregates is not None
                else None
            ),
            statistics=(
                StatisticsSchema.from_statistics(statistics) if statistics is not None else None
            ),
        )
