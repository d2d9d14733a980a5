"""
# mongo_repository

Typed repositories over MongoDB (Motor), driven by declarative entity metadata.

```python
from typing import Annotated, Optional

from pydantic import Field

from mongo_repository import Entity, EntityIndex, ReadWriteRepository, entity_collection, entity_database


@entity_database("Shop")
@entity_collection("Orders")
class Order(Entity):
    id: Optional[str] = Field(default=None, alias="_id")
    number: Annotated[Optional[str], EntityIndex(unique=True)] = None


class OrderRepository(ReadWriteRepository[Order]):
    entity_type = Order


order = await OrderRepository().add(Order(id="o-1", number=" 42 "))  # stored as "42"
```

Layers: `ReadOnlyRepository` → `ReadWriteRepository` → `CachedReadWriteRepository` /
`AuditedRepository`. Indexes declared on the entity are created once per namespace on the first
write-side access.
"""

from mongo_repository.cache import Cache, MemoryCache
from mongo_repository.config import CacheOptions, MongoDbOptions, Settings, settings
from mongo_repository.database import (
    ContextTenantResolver,
    CustomIndexBuilder,
    CustomizedIndexResult,
    IndexBuildRegistry,
    IndexPlanBuilder,
    MongoClientFactory,
    MongoContext,
    StaticTenantResolver,
    TenantResolver,
    index_registry,
)
from mongo_repository.exceptions import AuditError, RepositoryConfigurationError, RepositoryError
from mongo_repository.metadata import (
    EntityDescriptor,
    EntityIndex,
    ExpireIndex,
    GeoIndex,
    IndexGroup,
    clear_descriptor_cache,
    entity_audit,
    entity_collection,
    entity_database,
    entity_field_index,
    resolve_descriptor,
)
from mongo_repository.models import AuditRecord, Entity, PageInfo, PaginatedResult
from mongo_repository.repositories import (
    AuditedRepository,
    CachedReadOnlyRepository,
    CachedReadWriteRepository,
    ReadOnlyRepository,
    ReadWriteRepository,
)
from mongo_repository.services import AuditInformationProvider, DefaultAuditService

__version__ = "0.1.0"

__all__ = [
    "AuditError",
    "AuditInformationProvider",
    "AuditRecord",
    "AuditedRepository",
    "Cache",
    "CacheOptions",
    "CachedReadOnlyRepository",
    "CachedReadWriteRepository",
    "ContextTenantResolver",
    "CustomIndexBuilder",
    "CustomizedIndexResult",
    "DefaultAuditService",
    "Entity",
    "EntityDescriptor",
    "EntityIndex",
    "ExpireIndex",
    "GeoIndex",
    "IndexBuildRegistry",
    "IndexGroup",
    "IndexPlanBuilder",
    "MemoryCache",
    "MongoClientFactory",
    "MongoContext",
    "MongoDbOptions",
    "PageInfo",
    "PaginatedResult",
    "ReadOnlyRepository",
    "ReadWriteRepository",
    "RepositoryConfigurationError",
    "RepositoryError",
    "Settings",
    "StaticTenantResolver",
    "TenantResolver",
    "clear_descriptor_cache",
    "entity_audit",
    "entity_collection",
    "entity_database",
    "entity_field_index",
    "index_registry",
    "resolve_descriptor",
    "settings",
]
