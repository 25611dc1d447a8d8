from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_WORKER_COUNT_ENV = "PROCESSOR_WORKER_COUNT"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_MAX_UPLOAD_BYTES_ENV = "MAX_UPLOAD_BYTES"

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    processor_workers: int
    log_level: str
    max_upload_bytes: int


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        processor_workers=_read_positive_int(_WORKER_COUNT_ENV, 4),
        log_level=_read_log_level("INFO"),
        max_upload_bytes=_read_positive_int(_MAX_UPLOAD_BYTES_ENV, DEFAULT_MAX_UPLOAD_BYTES),
    )
