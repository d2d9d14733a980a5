"""
# Logging Manager

Central logging entry point for the `mongo_repository` package.

Every module obtains its logger through `get_logger()`, optionally with a **prefix** that tags
each message with the subsystem that produced it:

```python
from mongo_repository.managers.logging_manager import get_logger

logger = get_logger(prefix="[IndexPlan]")
logger.info("Created %d indexes on %s", 3, "IndexSample@SampleDatabase")
# 2026-10-19 07:55:01,123 - MongoRepository - INFO - [IndexPlan] Created 3 indexes on IndexSample@SampleDatabase
```

The package never configures the root logger on import. Applications that want the default
format call `setup_logging()` once at startup; everything else inherits whatever handlers the
host application installs.

## Prefix Catalog

| Prefix | Emitted by |
|---|---|
| `[DATABASE]` | client factory, storage accessor |
| `[Metadata]` | metadata resolver |
| `[IndexPlan]` | index plan builder |
| `[IndexRegistry]` | build-once coordinator |
| `[Repository]` | read-only / read-write repositories |
| `[Cache]` | memory cache, cached repository |
| `[Audit]` | audited repository |
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

DEFAULT_LOGGER_NAME = "MongoRepository"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed subsystem prefix to every message."""

    def __init__(self, logger: logging.Logger, prefix: str = ""):
        super().__init__(logger, {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        if self.prefix:
            return f"{self.prefix} {msg}", kwargs
        return msg, kwargs


def get_logger(name: str = DEFAULT_LOGGER_NAME, prefix: str = "") -> PrefixedLoggerAdapter:
    """
    Return a logger for the given name, tagged with an optional prefix.

    Args:
        name (`str`): Logger name. Defaults to the package-wide `MongoRepository` logger so that
            a single `logging.getLogger("MongoRepository")` call controls every subsystem.
        prefix (`str`): Text prepended to each message, e.g. `"[DATABASE]"`.

    Returns:
        `PrefixedLoggerAdapter`: Adapter exposing the standard `Logger` API.
    """
    return PrefixedLoggerAdapter(logging.getLogger(name), prefix)


def setup_logging(level: Optional[str] = None) -> None:
    """
    Install a stdout handler with the package format on the package logger.

    Args:
        level (`Optional[str]`): Level name. Defaults to `settings.LOG_LEVEL`, or `DEBUG` when
            `settings.DEBUG` is enabled.
    """
    from mongo_repository.config import settings

    if level is None:
        level = "DEBUG" if settings.DEBUG else settings.LOG_LEVEL

    package_logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    package_logger.setLevel(level.upper())
    if not any(getattr(handler, "_mongo_repository", False) for handler in package_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._mongo_repository = True
        package_logger.addHandler(handler)
