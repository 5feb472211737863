"""
homematch_pipeline.sources — listing-feed adapters.

  ZillowSource — Zillow property search through RapidAPI
"""

from homematch_pipeline.sources.zillow import ZillowSource

__all__ = ["ZillowSource"]
