"""
homematch_shared — shared utilities, models, and configuration for HomeMatch.

Usage:
    from homematch_shared.config import settings
    from homematch_shared.db import get_supabase_client
    from homematch_shared.models import Interaction, UserProfile
    from homematch_shared.geo import parse_polygon
    from homematch_shared.boundaries import build_mece_neighborhoods
"""

__version__ = "0.1.0"
