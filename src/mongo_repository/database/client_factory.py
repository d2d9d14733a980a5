"""
# MongoDB Client Factory

One `AsyncIOMotorClient` per connection string, shared by every repository of the process.
Motor clients own a connection pool, so creating one per repository would multiply sockets.

Pool size and driver timeouts come from `Settings`:

| Setting | Client option |
|---|---|
| `MONGODB_SERVER_SELECTION_TIMEOUT` | `serverSelectionTimeoutMS` |
| `MONGODB_CONNECTION_TIMEOUT` | `connectTimeoutMS` |
| `MONGODB_MAX_POOL_SIZE` | `maxPoolSize` |
| `MONGODB_MIN_POOL_SIZE` | `minPoolSize` |
| `MONGODB_USERNAME` / `MONGODB_PASSWORD` | `username` / `password` |

Credentials are only injected when both are set and the connection string carries none.
"""

import threading
from typing import Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient

from mongo_repository.config import Settings, settings
from mongo_repository.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")


def _redact(connection_string: str) -> str:
    scheme, separator, rest = connection_string.partition("://")
    if not separator or "@" not in rest:
        return connection_string
    return f"{scheme}://***@{rest.split('@', 1)[1]}"


class MongoClientFactory:
    """Creates and pools Motor clients keyed by connection string."""

    def __init__(self, config: Optional[Settings] = None):
        self._config = config or settings
        self._clients: Dict[str, AsyncIOMotorClient] = {}
        self._lock = threading.Lock()

    def _client_options(self, connection_string: str) -> Dict[str, object]:
        options: Dict[str, object] = {
            "serverSelectionTimeoutMS": self._config.MONGODB_SERVER_SELECTION_TIMEOUT,
            "connectTimeoutMS": self._config.MONGODB_CONNECTION_TIMEOUT,
            "maxPoolSize": self._config.MONGODB_MAX_POOL_SIZE,
            "minPoolSize": self._config.MONGODB_MIN_POOL_SIZE,
        }
        has_credentials = "@" in connection_string.partition("://")[2]
        if self._config.MONGODB_USERNAME and self._config.MONGODB_PASSWORD and not has_credentials:
            options["username"] = self._config.MONGODB_USERNAME
            options["password"] = self._config.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
        return options

    def get_client(self, connection_string: str) -> AsyncIOMotorClient:
        """
        Return the pooled client of `connection_string`, creating it on first use.

        Args:
            connection_string (`str`): MongoDB URI.

        Returns:
            `AsyncIOMotorClient`: Shared client instance.
        """
        client = self._clients.get(connection_string)
        if client is not None:
            return client
        with self._lock:
            client = self._clients.get(connection_string)
            if client is None:
                options = self._client_options(connection_string)
                db_logger.info(
                    "Creating MongoDB client - URL: %s, MaxPool: %d, MinPool: %d, ServerTimeout: %dms, ConnTimeout: %dms",
                    _redact(connection_string),
                    options["maxPoolSize"],
                    options["minPoolSize"],
                    options["serverSelectionTimeoutMS"],
                    options["connectTimeoutMS"],
                )
                client = AsyncIOMotorClient(connection_string, **options)
                self._clients[connection_string] = client
        return client

    def close(self) -> None:
        """Close every pooled client and forget them."""
        with self._lock:
            clients = list(self._clients.items())
            self._clients.clear()
        for connection_string, client in clients:
            client.close()
            db_logger.info("Closed MongoDB client for %s", _redact(connection_string))


client_factory = MongoClientFactory()
