"""Executor-backed processing of uploaded CSV files."""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from fastapi import UploadFile

from models.records import AggregatedData, AggregationOptions, InverterRecord, ParseResult
from services.aggregator import Aggregator
from services.parser import parse_csv
from settings import get_settings

logger = logging.getLogger(__name__)


@dataclass
class ProcessingOutcome:
    """Parse result for one upload plus optional time buckets."""

    result: ParseResult
    aggregates: Optional[List[AggregatedData]] = None
    processing_ms: int = 0
    upload_name: str = "upload.csv"


class ProcessorService:
    """Runs parsing off the event loop and aggregates on request."""

    def __init__(
        self,
        aggregator: Aggregator,
        workers: int = 4,
        max_upload_bytes: Optional[int] = None,
    ) -> None:
        self.aggregator = aggregator
        self.max_upload_bytes = max_upload_bytes
        self.executor = ThreadPoolExecutor(max_workers=workers)

    async def parse_text(self, text: str) -> ParseResult:
        """Parse CSV text on the worker pool without blocking the caller."""
        future = self.executor.submit(parse_csv, text)
        return await asyncio.wrap_future(future)

    async def aggregate_records(
        self, records: List[InverterRecord], options: AggregationOptions
    ) -> List[AggregatedData]:
        future = self.executor.submit(self.aggregator.aggregate, records, options)
        return await asyncio.wrap_future(future)

    async def process_upload(
        self,
        file: UploadFile,
        options: Optional[AggregationOptions] = None,
    ) -> ProcessingOutcome:
        """Decode an uploaded file, parse it and optionally aggregate it."""
        upload_name = Path(file.filename or "upload.csv").name
        contents = await file.read(self._read_limit())
        text = self.decode(contents)

        start_time = time.perf_counter()
        result = await self.parse_text(text)
        aggregates = None
        if options is not None:
            aggregates = await self.aggregate_records(result.data, options)
        processing_ms = int((time.perf_counter() - start_time) * 1000)

        logger.info(
            "Processed upload",
            extra={
                "upload_name": upload_name,
                "row_count": result.total_rows,
                "record_count": result.successful_rows,
                "error_count": len(result.errors),
                "processing_ms": processing_ms,
            },
        )
        return ProcessingOutcome(
            result=result,
            aggregates=aggregates,
            processing_ms=processing_ms,
            upload_name=upload_name,
        )

    def _read_limit(self) -> int:
        # One byte past the limit is enough to tell an oversized upload apart.
        if self.max_upload_bytes is None:
            return -1
        return self.max_upload_bytes + 1

    def decode(self, contents: bytes | str) -> str:
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        if not contents:
            raise ValueError("Uploaded file is empty.")
        if self.max_upload_bytes is not None and len(contents) > self.max_upload_bytes:
            raise ValueError(
                f"Uploaded file exceeds the {self.max_upload_bytes} byte limit."
            )
        try:
            return contents.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ValueError("Uploaded file is not valid UTF-8 text.") from exc

    def shutdown(self) -> None:
        """Clean up executor resources during application shutdown."""
        self.executor.shutdown(wait=False, cancel_futures=True)


@lru_cache
def build_default_processor(
    workers: Optional[int] = None,
) -> ProcessorService:
    """Factory that wires the processor from settings."""
    settings = get_settings()
    worker_count = workers or settings.processor_workers
    return ProcessorService(
        aggregator=Aggregator(),
        workers=worker_count,
        max_upload_bytes=settings.max_upload_bytes,
    )
