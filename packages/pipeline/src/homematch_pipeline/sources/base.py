"""
sources/base.py — Abstract base class for listing-feed adapters.

A source answers two questions: what did the provider send (extract) and
which of those rows can go into the properties table (transform). run()
sequences the two and logs row counts and timings for each step.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any

import polars as pl
import structlog

log = structlog.get_logger(__name__)


def _elapsed_ms(since: float) -> int:
    return int((time.monotonic() - since) * 1000)


class BaseSource(ABC):
    """Abstract base for HomeMatch listing sources."""

    # Bound into every log record as source_name
    name: str = "unknown"

    def __init__(self) -> None:
        self._log = log.bind(source_name=self.name)

    @abstractmethod
    async def extract(self, **kwargs: Any) -> pl.DataFrame:
        """Fetch raw listings; one row per listing the provider returned."""

    @abstractmethod
    def transform(self, raw: pl.DataFrame) -> pl.DataFrame:
        """Validate raw rows into properties rows, dropping the bad ones."""

    @abstractmethod
    async def get_metadata(self) -> dict[str, Any]:
        """Describe the source (name, endpoint, paging) for logs."""

    async def run(self, **kwargs: Any) -> pl.DataFrame:
        """
        Extract then transform.

        Args:
            **kwargs: Forwarded to extract(); also bound into the log context.

        Returns:
            The transformed frame.
        """
        step_log = self._log.bind(**{k: str(v) for k, v in kwargs.items()})
        started = time.monotonic()

        try:
            raw = await self.extract(**kwargs)
        except Exception as exc:
            step_log.error("extract_failed", error=str(exc), duration_ms=_elapsed_ms(started), exc_info=True)
            raise
        step_log.info("extract_complete", raw_rows=len(raw), duration_ms=_elapsed_ms(started))

        transform_started = time.monotonic()
        result = self.transform(raw)
        step_log.info(
            "transform_complete",
            rows=len(result),
            dropped_rows=len(raw) - len(result),
            duration_ms=_elapsed_ms(transform_started),
        )
        return result
