"""
Repository implementations for Redis persistence.

Repositories translate between domain models and stored JSON documents.
"""

from .coaching import CoachingCacheRepository
from .profiles import ProfileRepository
from .runs import RunRepository

__all__ = ["CoachingCacheRepository", "ProfileRepository", "RunRepository"]
