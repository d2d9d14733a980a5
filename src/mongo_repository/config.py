"""
# Configuration Management Module

Configuration for the repository layer, built on **Pydantic Settings**.

## Loading Hierarchy

Higher layers override lower layers:

1. **Environment variables** (highest priority).
2. **`MONGO_REPOSITORY_CONFIG_PATH`**: path to a dotenv-style file, if the variable is set and the
   file exists.
3. **`.env`** in the project root.
4. **Defaults** declared on `Settings` (lowest priority).

If no file is found the settings are read from the environment only.

## Configuration Groups

### MongoDB
```python
MONGODB_READ_WRITE_URL: str = "mongodb://localhost:27017"   # primary endpoint
MONGODB_READ_ONLY_URL: str = ""                             # replica endpoint, empty -> read-write URL
MONGODB_DEFAULT_DATABASE: str = ""                          # used when an entity has no database marker
MONGODB_USERNAME: Optional[str] = None
MONGODB_PASSWORD: Optional[SecretStr] = None
MONGODB_CONNECTION_TIMEOUT: int = 10000                     # ms
MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000                # ms
MONGODB_MAX_POOL_SIZE: int = 50
MONGODB_MIN_POOL_SIZE: int = 5
MONGODB_OPERATION_TIMEOUT: Optional[float] = None           # seconds, per repository call
```

### Cache
```python
CACHE_SLIDING_EXPIRATION_SECONDS: int = 300
CACHE_ABSOLUTE_EXPIRATION_SECONDS: int = 300
CACHE_EXPIRATION_SCAN_FREQUENCY_MS: int = 1000
CACHE_MAX_ITEM_COUNT: int = 10000
CACHE_TTL_SECONDS: int = 0                                  # 0 disables the hard TTL
CACHE_DISABLED: bool = False
```

## Usage

```python
from mongo_repository.config import MongoDbOptions, settings

options = MongoDbOptions.from_settings(settings)
```

Repositories accept explicit `MongoDbOptions` / `CacheOptions`, so tests and multi-cluster
deployments never need to touch the module-level `settings` singleton.
"""

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "MONGO_REPOSITORY_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parents[2]


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determine the configuration file path.

    Checks, in order, the `MONGO_REPOSITORY_CONFIG_PATH` environment variable and a `.env` file in
    the project root.

    Returns:
        Optional[str]: Path to the configuration file, or `None` for environment-only mode.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class Settings(BaseSettings):
    """
    Repository configuration settings model.

    **Configuration Groups:**
    *   **MongoDB**: read-write / read-only endpoints, default database, pool and timeouts.
    *   **Cache**: in-process cache expiry policy and capacity.
    *   **Logging**: level and debug flag.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # MongoDB configuration
    MONGODB_READ_WRITE_URL: str = "mongodb://localhost:27017"
    MONGODB_READ_ONLY_URL: str = ""
    MONGODB_DEFAULT_DATABASE: str = ""
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_MAX_POOL_SIZE: int = 50
    MONGODB_MIN_POOL_SIZE: int = 5
    MONGODB_OPERATION_TIMEOUT: Optional[float] = None

    # Cache configuration
    CACHE_SLIDING_EXPIRATION_SECONDS: int = 300
    CACHE_ABSOLUTE_EXPIRATION_SECONDS: int = 300
    CACHE_EXPIRATION_SCAN_FREQUENCY_MS: int = 1000
    CACHE_MAX_ITEM_COUNT: int = 10000
    CACHE_TTL_SECONDS: int = 0
    CACHE_DISABLED: bool = False

    @field_validator("MONGODB_READ_WRITE_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        """
        Validates that the read-write MongoDB URL is not empty.

        Raises:
            ValueError: If the URL is empty or whitespace.
        """
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or config file and not empty!")
        return v

    @field_validator(
        "MONGODB_MAX_POOL_SIZE",
        "CACHE_SLIDING_EXPIRATION_SECONDS",
        "CACHE_ABSOLUTE_EXPIRATION_SECONDS",
        "CACHE_EXPIRATION_SCAN_FREQUENCY_MS",
        "CACHE_MAX_ITEM_COUNT",
        mode="before",
    )
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        """
        Validates that numeric settings are positive integers.

        Raises:
            ValueError: If the value is not a positive integer.
        """
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @field_validator("MONGODB_MIN_POOL_SIZE", "CACHE_TTL_SECONDS", mode="before")
    @classmethod
    def validate_non_negative_integers(cls, v: Any, info: Any) -> int:
        value = int(v)
        if value < 0:
            raise ValueError(f"{info.field_name} must not be negative")
        return value

    @field_validator("MONGODB_CONNECTION_TIMEOUT", "MONGODB_SERVER_SELECTION_TIMEOUT", mode="before")
    @classmethod
    def validate_timeout_values(cls, v: Any, info: Any) -> int:
        """
        Validates that driver timeouts are within 1ms and 5 minutes.

        Raises:
            ValueError: If the timeout is out of range.
        """
        timeout = int(v)
        if timeout < 1 or timeout > 300000:
            raise ValueError(f"{info.field_name} must be between 1 and 300000 milliseconds")
        return timeout

    @field_validator("MONGODB_OPERATION_TIMEOUT", mode="before")
    @classmethod
    def validate_operation_timeout(cls, v: Any) -> Optional[float]:
        if v is None or v == "":
            return None
        timeout = float(v)
        if timeout <= 0:
            raise ValueError("MONGODB_OPERATION_TIMEOUT must be a positive number of seconds")
        return timeout

    @property
    def read_only_url(self) -> str:
        """Read-only endpoint, falling back to the read-write endpoint when unset."""
        return self.MONGODB_READ_ONLY_URL or self.MONGODB_READ_WRITE_URL


class MongoDbOptions(BaseModel):
    """Connection options for a repository's storage accessor."""

    read_write_connection: str = Field(..., description="Connection string of the primary endpoint")
    read_only_connection: Optional[str] = Field(None, description="Connection string used for queries")
    default_database: Optional[str] = Field(None, description="Database for entities without a marker")
    operation_timeout: Optional[float] = Field(None, gt=0, description="Per-call timeout in seconds")

    @property
    def effective_read_only_connection(self) -> str:
        return self.read_only_connection or self.read_write_connection

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "MongoDbOptions":
        source = source or settings
        return cls(
            read_write_connection=source.MONGODB_READ_WRITE_URL,
            read_only_connection=source.read_only_url,
            default_database=source.MONGODB_DEFAULT_DATABASE or None,
            operation_timeout=source.MONGODB_OPERATION_TIMEOUT,
        )


class CacheOptions(BaseModel):
    """Expiry policy and capacity of the in-process cache."""

    sliding_expiration_seconds: int = Field(300, gt=0)
    absolute_expiration_seconds: int = Field(300, gt=0)
    expiration_scan_frequency_ms: int = Field(1000, gt=0)
    max_item_count: int = Field(10000, gt=0)
    ttl_seconds: int = Field(0, ge=0)
    disable_cache: bool = False

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "CacheOptions":
        source = source or settings
        return cls(
            sliding_expiration_seconds=source.CACHE_SLIDING_EXPIRATION_SECONDS,
            absolute_expiration_seconds=source.CACHE_ABSOLUTE_EXPIRATION_SECONDS,
            expiration_scan_frequency_ms=source.CACHE_EXPIRATION_SCAN_FREQUENCY_MS,
            max_item_count=source.CACHE_MAX_ITEM_COUNT,
            ttl_seconds=source.CACHE_TTL_SECONDS,
            disable_cache=source.CACHE_DISABLED,
        )


settings = Settings()
