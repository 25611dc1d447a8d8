"""Aggregation logic for parsed inverter records."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from models.records import (
    AggregatedData,
    AggregationOptions,
    BatteryStatistics,
    DatasetStatistics,
    InverterRecord,
    Interval,
    Method,
    PowerStatistics,
)

_PERIOD_FORMATS: Dict[Interval, str] = {
    Interval.minute: "%Y-%m-%d %H:%M",
    Interval.hour: "%Y-%m-%d %H:00",
    Interval.day: "%Y-%m-%d",
    Interval.month: "%Y-%m",
}


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


_REDUCERS: Dict[Method, Callable[[Sequence[float]], float]] = {
    Method.sum: sum,
    Method.average: _mean,
    Method.min: min,
    Method.max: max,
}


def period_key(instant: datetime, interval: Interval) -> str:
    """Truncate an instant to the bucket label for ``interval``."""
    return instant.strftime(_PERIOD_FORMATS[Interval(interval)])


def resolve_path(record: InverterRecord, path: str) -> Optional[float]:
    """Follow a dotted attribute path such as ``battery.soc``."""
    value: object = record
    for part in path.split("."):
        value = getattr(value, part, None)
        if value is None:
            return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value):
        return None
    return float(value)


def reduce_values(values: Sequence[float], method: Method) -> float:
    if not values:
        return 0
    return _REDUCERS[Method(method)](values)


def filter_by_date_range(
    records: Iterable[InverterRecord], start: datetime, end: datetime
) -> List[InverterRecord]:
    """Keep records whose combined instant lies within ``[start, end]``."""
    return [
        record
        for record in records
        if record.user_record.timestamp.datetime is not None
        and start <= record.user_record.timestamp.datetime <= end
    ]


def filter_by_device_id(records: Iterable[InverterRecord], device_id: str) -> List[InverterRecord]:
    return [record for record in records if record.user_record.id == device_id]


def unique_device_ids(records: Iterable[InverterRecord]) -> List[str]:
    seen: Dict[str, None] = {}
    for record in records:
        if record.user_record.id:
            seen.setdefault(record.user_record.id, None)
    return list(seen)


def date_range(
    records: Iterable[InverterRecord],
) -> Tuple[Optional[datetime], Optional[datetime]]:
    instants = [
        record.user_record.timestamp.datetime
        for record in records
        if record.user_record.timestamp.datetime is not None
    ]
    if not instants:
        return None, None
    return min(instants), max(instants)


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(
        self, records: Iterable[InverterRecord], options: AggregationOptions
    ) -> List[AggregatedData]:
        """Group records into time buckets and reduce the requested fields.

        Records without a combined date and time are left out. Buckets are
        returned in the order their first record was seen.
        """
        buckets: Dict[str, List[InverterRecord]] = {}
        for record in records:
            instant = record.user_record.timestamp.datetime
            if instant is None:
                continue
            buckets.setdefault(period_key(instant, options.interval), []).append(record)

        aggregated: List[AggregatedData] = []
        for period, members in buckets.items():
            values: Dict[str, float] = {}
            for path in options.fields:
                present = [
                    value
                    for value in (resolve_path(member, path) for member in members)
                    if value is not None
                ]
                values[path] = reduce_values(present, options.method)
            aggregated.append(AggregatedData(period=period, values=values, count=len(members)))
        return aggregated

    def statistics(self, records: Iterable[InverterRecord]) -> Optional[DatasetStatistics]:
        """Headline figures for a record set, or ``None`` when it is empty."""
        items = list(records)
        if not items:
            return None

        power = [record.pv.power_w for record in items if record.pv.power_w > 0]
        soc = [record.battery.soc for record in items if record.battery.soc >= 0]
        temperatures = [record.battery.temperature for record in items]

        return DatasetStatistics(
            total_records=len(items),
            date_range=date_range(items),
            power=PowerStatistics(
                max=max(power) if power else 0,
                average=_mean(power) if power else 0,
                total_energy=sum(record.pv.total_kwh for record in items),
            ),
            battery=BatteryStatistics(
                average_soc=_mean(soc) if soc else 0,
                min_soc=min(soc) if soc else 0,
                max_soc=max(soc) if soc else 0,
                average_temp=_mean(temperatures),
            ),
            devices=unique_device_ids(items),
        )
