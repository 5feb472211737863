"""
homematch_pipeline — listing ingestion for HomeMatch.

Architecture:
  sources/     — listing-feed adapters (Zillow search via RapidAPI)
  transforms/  — search item -> properties row normalization
  loaders/     — idempotent Supabase upserts with batch handling
  pipelines/   — orchestrators that wire sources -> transforms -> loaders
  utils/       — structlog configuration, exponential-backoff retry decorator

Quick start:
    from homematch_pipeline.pipelines.listings import run
    import asyncio
    summary = asyncio.run(run(["Oakland, CA"], dry_run=True))

CLI:
    homematch-pipeline ingest --location "Oakland, CA" --dry-run
"""

__version__ = "0.1.0"
