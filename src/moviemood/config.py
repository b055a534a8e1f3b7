"""
Configuration constants for the moviemood recommender.

This module centralizes all magic numbers and configurable parameters.
Values can be overridden via environment variables.
"""
import os
import logging

logger = logging.getLogger(__name__)


def _get_float_env(key: str, default: float, min_val: float = 0) -> float:
    """
    Safely parse float from environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set or invalid
        min_val: Minimum allowed value

    Returns:
        Validated float value
    """
    try:
        val = float(os.environ.get(key, default))
        if val < min_val:
            logger.warning(f"{key}={val} is below minimum {min_val}, using {min_val}")
            return min_val
        return val
    except ValueError:
        logger.warning(f"Invalid {key}='{os.environ.get(key)}', using default {default}")
        return default


def _get_int_env(key: str, default: int, min_val: int = 1) -> int:
    """
    Safely parse integer from environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set or invalid
        min_val: Minimum allowed value

    Returns:
        Validated integer value
    """
    try:
        val = int(os.environ.get(key, default))
        if val < min_val:
            logger.warning(f"{key}={val} is below minimum {min_val}, using {min_val}")
            return min_val
        return val
    except ValueError:
        logger.warning(f"Invalid {key}='{os.environ.get(key)}', using default {default}")
        return default


# TMDB Credentials and Endpoints
TMDB_API_KEY = os.environ.get("TMDB_API_KEY") or os.environ.get("VITE_TMDB_API_KEY", "")
TMDB_BASE_URL = os.environ.get("MOVIEMOOD_TMDB_BASE_URL", "https://api.themoviedb.org/3").rstrip("/")
TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p"
IMAGE_SIZES = {
    'poster': 'w500',
    'backdrop': 'w1280',
}
PROVIDER_LOGO_SIZE = 'original'

# HTTP Client Configuration
HTTP_TIMEOUT = _get_float_env("MOVIEMOOD_HTTP_TIMEOUT", 10.0, min_val=0.5)
DEFAULT_MAX_CONCURRENT = _get_int_env("MOVIEMOOD_MAX_CONCURRENT", 10, min_val=1)
MAX_HTTP_RETRIES = _get_int_env("MOVIEMOOD_MAX_RETRIES", 3, min_val=1)
DEFAULT_RETRY_AFTER = 10  # Wait time if a 429 carries no Retry-After header

# Catalog Query Parameters
CATALOG_LANGUAGE = os.environ.get("MOVIEMOOD_LANGUAGE", "en-US")
WATCH_REGION = os.environ.get("MOVIEMOOD_WATCH_REGION", "US")
DISCOVER_SORT_BY = "popularity.desc"
DISCOVER_MIN_VOTE_COUNT = 100
MAX_REVIEWS = 3
PROVIDER_OFFER_TYPES = ('flatrate', 'rent', 'buy')  # Walk order when flattening watch providers

# Match Scoring
BASE_SCORE = 60
VOTE_AVERAGE_MULTIPLIER = 2
VOTE_SCORE_CAP = 20
POPULARITY_DIVISOR = 100
POPULARITY_SCORE_CAP = 20
MAX_MATCH_PERCENTAGE = 100

# Output Limits
MIN_MATCH_PERCENTAGE = 30  # Exclusive: a score of exactly 30 is dropped
MAX_RECOMMENDATIONS = 7

# Caller-side input validation (the core itself accepts any text)
MIN_DESCRIPTION_WORDS = 5
