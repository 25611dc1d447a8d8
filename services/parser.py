"""Parsing of logger CSV text into records and typed errors."""

from __future__ import annotations

import csv
import io
import logging
from typing import Dict, Iterator, List, Optional

from models.records import ErrorType, ParseError, ParseResult
from services.assembler import assemble_row
from services.headers import is_known_header, normalize_header, resolve_headers

logger = logging.getLogger(__name__)


def _is_blank(cells: List[str]) -> bool:
    return all(not cell.strip() for cell in cells)


def _next_row(reader: Iterator[List[str]]) -> Optional[List[str]]:
    """Return the next non-blank row, or ``None`` at the end of input."""
    for cells in reader:
        if not _is_blank(cells):
            return cells
    return None


def _file_error(message: str) -> ParseResult:
    logger.warning("Rejecting CSV file: %s", message, extra={"reason": message})
    return ParseResult(
        data=[],
        errors=[
            ParseError(row=0, field="file", value="", message=message, type=ErrorType.format)
        ],
        total_rows=0,
    )


def _field_count_error(row_number: int, expected: int, parsed: int) -> ParseError:
    qualifier = "few" if parsed < expected else "many"
    return ParseError(
        row=row_number,
        field="parsing",
        value="",
        message=f"Too {qualifier} fields: expected {expected} fields but parsed {parsed}",
        type=ErrorType.format,
    )


def _keyed_row(columns: List[str], cells: List[str]) -> Dict[str, str]:
    return {
        column: cells[position] if position < len(cells) else ""
        for position, column in enumerate(columns)
        if column
    }


def _tokenizer_error(row_number: int, message: str) -> ParseError:
    logger.warning(
        "Unreadable CSV row %s",
        row_number,
        extra={"row_number": row_number, "reason": message},
    )
    return ParseError(
        row=row_number,
        field="parsing",
        value="",
        message=message,
        type=ErrorType.format,
    )


def parse_csv(text: str) -> ParseResult:
    """Parse a whole CSV document.

    Malformed data never raises: field problems, rejected rows and lines the
    tokenizer cannot read are all returned in :attr:`ParseResult.errors`, and
    parsing carries on with the next line. Only input that cannot yield a
    header row produces an empty result with a single file-level error.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    first_data_row = 2
    pending: Optional[List[str]] = None

    try:
        header_cells = _next_row(reader)
        if header_cells is None:
            return _file_error("CSV content is empty or missing a header row.")

        if not is_known_header(normalize_header(header_cells)):
            candidate = _next_row(reader)
            if candidate is not None and is_known_header(normalize_header(candidate)):
                # Section banner above the real header.
                header_cells = candidate
                first_data_row = 3
            else:
                pending = candidate
    except csv.Error as exc:
        return _file_error(f"Unable to read CSV header: {exc}")

    columns = normalize_header(header_cells)
    header_map = resolve_headers(columns)
    result = ParseResult()

    while True:
        row_number = result.total_rows + first_data_row
        if pending is not None:
            cells, pending = pending, None
        else:
            try:
                cells = _next_row(reader)
            except csv.Error as exc:
                result.total_rows += 1
                result.errors.append(_tokenizer_error(row_number, str(exc)))
                continue
        if cells is None:
            break

        result.total_rows += 1

        if len(cells) != len(columns):
            result.errors.append(_field_count_error(row_number, len(columns), len(cells)))

        record, row_errors = assemble_row(_keyed_row(columns, cells), row_number, header_map)
        for error in row_errors:
            logger.debug(
                "Field error: %s",
                error.message,
                extra={
                    "row_number": error.row,
                    "field": error.field,
                    "error_type": error.type.value,
                },
            )
        result.errors.extend(row_errors)

        if record is None:
            logger.warning(
                "Skipping row %s: missing ID and date",
                row_number,
                extra={"row_number": row_number, "reason": "missing ID and date"},
            )
            continue
        result.data.append(record)

    logger.info(
        "Parsed CSV",
        extra={
            "row_count": result.total_rows,
            "record_count": result.successful_rows,
            "error_count": len(result.errors),
        },
    )
    return result
