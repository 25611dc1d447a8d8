"""Header normalization and alias resolution for logger CSV files.

Loggers repeat the same column titles (``Voltage``, ``Current``, ``Hz``,
``Total kWh``) for the PV, battery, inverter and grid sections. Repeats are
told apart by position: the header is first made unique by suffixing the
n-th repeat with ``_n``, then every accepted name is looked up in a single
alias table that maps it onto a canonical :class:`Field`.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from models.records import Field

HeaderMap = Dict[Field, str]

HEADER_ALIASES: Mapping[Field, Tuple[str, ...]] = {
    Field.inv_supply_total_kwh: ("Total kWh", "Inv_Total_kWh"),
    Field.pv_voltage: ("Voltage",),
    Field.pv_current: ("Current",),
    Field.pv_power_w: ("Power W", "PV_Power_W"),
    Field.pv_daily_wh: ("Daily Wh", "PV_Daily_Wh"),
    Field.pv_monthly_wd: ("Monthly Wd", "PV_Monthly_Wd"),
    Field.pv_yearly_wm: ("Yearly Wm", "PV_Yearly_Wm"),
    Field.pv_total_kwh: ("Total kWh_1", "PV_Total_kWh"),
    Field.battery_voltage: ("Voltage_1",),
    Field.battery_current: ("Current_1",),
    Field.battery_temp: ("Temp",),
    Field.battery_soc: ("SOC",),
    Field.inverter_voltage: ("Voltage_2",),
    Field.inverter_current: ("Current_2",),
    Field.inverter_frequency: ("Hz", "Inverter_Hz"),
    Field.grid_voltage: ("Voltage_3",),
    Field.grid_current: ("Current_3",),
    Field.grid_frequency: ("Hz_1", "Grid_Hz"),
    Field.status_hex: ("Hex",),
}


def _build_lookup() -> Dict[str, Field]:
    lookup: Dict[str, Field] = {field.value: field for field in Field}
    for field, aliases in HEADER_ALIASES.items():
        for alias in aliases:
            lookup.setdefault(alias, field)
    return lookup


_KNOWN_NAMES = _build_lookup()


def normalize_header(names: Iterable[str]) -> List[str]:
    """Trim column names and suffix repeated ones with their occurrence index."""
    seen: Dict[str, int] = {}
    taken: Set[str] = set()
    normalized: List[str] = []
    for name in names:
        clean = name.strip()
        if not clean:
            normalized.append(clean)
            continue
        occurrence = seen.get(clean, 0)
        candidate = clean
        while candidate in taken:
            occurrence += 1
            candidate = f"{clean}_{occurrence}"
        seen[clean] = occurrence
        taken.add(candidate)
        normalized.append(candidate)
    return normalized


def lookup_field(name: str) -> Optional[Field]:
    """Return the canonical field a column name stands for, if any."""
    return _KNOWN_NAMES.get(name.strip())


def is_known_header(names: Iterable[str]) -> bool:
    return any(lookup_field(name) is not None for name in names if name)


def resolve_headers(columns: Iterable[str]) -> HeaderMap:
    """Map each canonical field to the column it should be read from.

    The canonical name wins over legacy aliases; among aliases the first one
    listed in :data:`HEADER_ALIASES` wins. Unrecognized columns are ignored.
    """
    available = {column.strip(): column for column in columns if column and column.strip()}
    resolved: HeaderMap = {}
    for field in Field:
        for candidate in (field.value, *HEADER_ALIASES.get(field, ())):
            if candidate in available:
                resolved[field] = available[candidate]
                break
    return resolved
