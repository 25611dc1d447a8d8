"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from app.schemas import ParseReport
from models.records import AggregationOptions, Interval, Method
from services.processor import ProcessorService, build_default_processor

router = APIRouter()


def get_processor() -> ProcessorService:
    return build_default_processor()


def get_aggregation_options(
    interval: Optional[Interval] = Query(
        None, description="Bucket size; aggregates are only computed when set."
    ),
    method: Method = Query(Method.average, description="Reduction applied per bucket."),
    fields: Optional[List[str]] = Query(
        None, description="Dotted record paths to aggregate, e.g. battery.soc."
    ),
) -> Optional[AggregationOptions]:
    if interval is None:
        return None
    try:
        return AggregationOptions(interval=interval, method=method, fields=tuple(fields or ()))
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.post(
    "/files",
    response_model=ParseReport,
    summary="Parse an inverter CSV export and report records and errors.",
)
async def upload_file(
    file: UploadFile = File(..., description="CSV file exported by an inverter data logger."),
    include_records: bool = Query(True, description="Include parsed records in the response."),
    options: Optional[AggregationOptions] = Depends(get_aggregation_options),
    processor: ProcessorService = Depends(get_processor),
) -> ParseReport:
    try:
        outcome = await processor.process_upload(file, options)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        await file.close()

    statistics = processor.aggregator.statistics(outcome.result.data)
    return ParseReport.from_outcome(
        outcome,
        include_records=include_records,
        statistics=statistics,
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
