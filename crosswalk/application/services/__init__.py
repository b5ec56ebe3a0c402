"""Application services."""

from .matching_service import MatchingService, create_matching_service

__all__ = ["MatchingService", "create_matching_service"]
