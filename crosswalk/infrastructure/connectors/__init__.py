"""Target catalog connectivity: rate limiting and the throttled client adapter."""

from .catalog import RateLimitedCatalog
from .rate_limiter import RateLimiter, RateLimiterStats

__all__ = ["RateLimitedCatalog", "RateLimiter", "RateLimiterStats"]
