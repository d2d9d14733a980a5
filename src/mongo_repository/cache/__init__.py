from mongo_repository.cache.memory_cache import Cache, MemoryCache

__all__ = ["Cache", "MemoryCache"]
