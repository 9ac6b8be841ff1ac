"""Cache layer for railwatch.

Submodules:
    hierarchy -- Read-through HierarchyCache with whole-cache invalidation.
"""

from railwatch.cache.hierarchy import CacheLevel, HierarchyCache

__all__ = ["CacheLevel", "HierarchyCache"]
