"""
loaders/supabase_loader.py — Batched idempotent upserts into Supabase.

Rows go out in batches so a single PostgREST request stays small. A batch
that fails is logged and counted; the remaining batches still run, so one
malformed listing costs its batch rather than the whole location.

Usage:
    from homematch_pipeline.loaders.supabase_loader import SupabaseLoader

    loader = SupabaseLoader()
    result = await loader.upsert("properties", df, conflict_columns=["zpid"])
    result.records_loaded, result.records_failed, result.status
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import polars as pl
import structlog

from homematch_shared.db import get_supabase_client

log = structlog.get_logger(__name__)

BATCH_SIZE = 200


@dataclass
class LoadResult:
    """Outcome of one upsert call."""

    table: str
    records_loaded: int = 0
    records_failed: int = 0
    batches_total: int = 0
    batches_failed: int = 0
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return self.records_failed == 0

    @property
    def status(self) -> str:
        if self.success:
            return "success"
        return "partial_failure" if self.records_loaded else "failure"


def to_records(df: pl.DataFrame) -> list[dict[str, Any]]:
    """JSON-ready row dicts; null fields are left out so column defaults apply."""
    datetime_cols = [name for name, dtype in df.schema.items() if dtype == pl.Datetime]
    if datetime_cols:
        df = df.with_columns(pl.col(datetime_cols).dt.strftime("%Y-%m-%dT%H:%M:%SZ"))
    return [{k: v for k, v in row.items() if v is not None} for row in df.iter_rows(named=True)]


def _batches(rows: list[dict[str, Any]], size: int) -> Iterator[list[dict[str, Any]]]:
    for start in range(0, len(rows), size):
        yield rows[start : start + size]


class SupabaseLoader:
    """Pipeline writes, made with the service role key so RLS does not apply."""

    def __init__(self, batch_size: int = BATCH_SIZE) -> None:
        self._batch_size = batch_size
        self._client = get_supabase_client(service_role=True)

    async def upsert(
        self,
        table: str,
        df: pl.DataFrame,
        conflict_columns: list[str],
    ) -> LoadResult:
        """
        Upsert every row of df into table.

        Args:
            table:            Target table name.
            df:               Rows to write; column names must match the table.
            conflict_columns: Unique columns used for ON CONFLICT.
        """
        result = LoadResult(table=table)
        if df.is_empty():
            log.debug("upsert_skipped_empty", table=table)
            return result

        started = time.monotonic()
        rows = to_records(df)
        batches = list(_batches(rows, self._batch_size))
        result.batches_total = len(batches)
        on_conflict = ",".join(conflict_columns)

        for number, batch in enumerate(batches, start=1):
            try:
                self._client.table(table).upsert(batch, on_conflict=on_conflict).execute()
            except Exception as exc:
                log.error("batch_failed", table=table, batch=number, n_batches=len(batches), error=str(exc))
                result.records_failed += len(batch)
                result.batches_failed += 1
                result.errors.append(f"Batch {number}/{len(batches)}: {exc}")
            else:
                result.records_loaded += len(batch)

        result.duration_ms = int((time.monotonic() - started) * 1000)
        log.info(
            "upsert_complete",
            table=table,
            rows=len(rows),
            records_loaded=result.records_loaded,
            records_failed=result.records_failed,
            duration_ms=result.duration_ms,
            status=result.status,
        )
        return result
