from .persistence import PersistenceCache, CacheEntry

__all__ = ["PersistenceCache", "CacheEntry"]
