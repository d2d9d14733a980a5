"""
Cached repositories.

`cached_get(identifier)` looks the entity up by a configured equality field through a process-local
cache keyed `"{prefix}-{identifier}"`. Misses are cached too (as `None`). Writes never invalidate
the cache; call `invalidate(identifier)` after mutating a cached entity.
"""

from typing import Any, Optional

from mongo_repository.cache.memory_cache import Cache, MemoryCache
from mongo_repository.managers.logging_manager import get_logger
from mongo_repository.repositories.filters import IDENTIFIER_FIELD
from mongo_repository.repositories.read_only import EntityT, ReadOnlyRepository
from mongo_repository.repositories.read_write import ReadWriteRepository

logger = get_logger(prefix="[Cache]")


class CachedReadOnlyRepository(ReadOnlyRepository[EntityT]):
    """
    Read-only repository with a cache in front of single-entity lookups.

    Args:
        cache (`Optional[Cache]`): Cache backend; a `MemoryCache` from settings when omitted.
        cache_prefix (`Optional[str]`): Default key prefix; the entity type name when omitted.
        cache_field (`str`): Stored field compared with the identifier on a miss.
        **kwargs: Passed to the repository constructor.
    """

    def __init__(
        self,
        *args: Any,
        cache: Optional[Cache] = None,
        cache_prefix: Optional[str] = None,
        cache_field: str = IDENTIFIER_FIELD,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.cache = cache if cache is not None else MemoryCache()
        self.cache_prefix = cache_prefix if cache_prefix and cache_prefix.strip() else self.entity_type.__name__
        self.cache_field = cache_field

    def cache_key(self, identifier: Any, prefix: Optional[str] = None) -> str:
        if not prefix or not prefix.strip():
            prefix = self.cache_prefix
        return f"{prefix}-{identifier}"

    async def cached_get(self, identifier: Any, prefix: Optional[str] = None) -> Optional[EntityT]:
        key = self.cache_key(identifier, prefix)
        hit, value = self.cache.try_get(key)
        if hit:
            logger.debug("Cache hit %s", key)
            return value

        logger.debug("Cache miss %s, querying %s", key, self.descriptor.namespace_key)
        collection = self.context.read_collection()
        entity = self._to_entity(await self._run(collection.find_one({self.cache_field: identifier})))
        self.cache.set(key, entity)
        return entity

    def invalidate(self, identifier: Any, prefix: Optional[str] = None) -> None:
        key = self.cache_key(identifier, prefix)
        self.cache.invalidate(key)
        logger.debug("Invalidated %s", key)


class CachedReadWriteRepository(CachedReadOnlyRepository[EntityT], ReadWriteRepository[EntityT]):
    """Read-write repository with `cached_get` / `invalidate`."""
