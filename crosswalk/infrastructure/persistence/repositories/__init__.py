"""Repository implementations."""

from .match_cache import CacheStats, MatchCache
from .repo_decorator import db_operation

__all__ = ["CacheStats", "MatchCache", "db_operation"]
