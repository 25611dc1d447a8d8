"""Human-readable summaries of parse errors."""

from __future__ import annotations

from typing import Dict, Iterable, List

from models.records import ParseError

EXAMPLES_PER_TYPE = 5


def format_parse_errors(errors: Iterable[ParseError]) -> str:
    """Group errors by type and list a handful of examples for each group."""
    grouped: Dict[str, List[ParseError]] = {}
    total = 0
    for error in errors:
        grouped.setdefault(error.type.value, []).append(error)
        total += 1

    if not total:
        return "No errors"

    lines = [f"Found {total} error(s):"]
    for kind, group in grouped.items():
        lines.append("")
        lines.append(f"{kind.upper()} errors ({len(group)}):")
        for error in group[:EXAMPLES_PER_TYPE]:
            lines.append(f"  Row {error.row}, {error.field}: {error.message}")
        if len(group) > EXAMPLES_PER_TYPE:
            lines.append(f"  ... and {len(group) - EXAMPLES_PER_TYPE} more")
    return "\n".join(lines)
