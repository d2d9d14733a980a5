"""
Process-wide record of namespaces whose indexes were already provisioned.

Deduplication is best-effort: concurrent first callers for the same key may each run the build,
which is harmless because index creation is idempotent. A key is only recorded once a build
completes, so a failed build is retried by the next caller.
"""

from typing import Awaitable, Callable, Set

from mongo_repository.managers.logging_manager import get_logger

logger = get_logger(prefix="[IndexRegistry]")


class IndexBuildRegistry:
    """Set of namespace keys (`{collection}@{database}`) already provisioned."""

    def __init__(self):
        self._built: Set[str] = set()

    def is_built(self, key: str) -> bool:
        return key in self._built

    async def get_or_build(self, key: str, build_fn: Callable[[], Awaitable[object]]) -> bool:
        """
        Run `build_fn` unless `key` is already recorded.

        Returns:
            bool: `True` if `build_fn` ran, `False` if it was skipped.
        """
        if key in self._built:
            return False
        logger.debug("Provisioning indexes for %s", key)
        await build_fn()
        self._built.add(key)
        return True

    def reset(self) -> None:
        """Forget every key. Not synchronized with in-flight builds."""
        logger.debug("Resetting %d provisioned namespace(s)", len(self._built))
        self._built.clear()


index_registry = IndexBuildRegistry()
