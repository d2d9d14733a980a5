from mongo_repository.database.client_factory import MongoClientFactory, client_factory
from mongo_repository.database.context import CustomIndexBuilder, CustomizedIndexResult, MongoContext
from mongo_repository.database.index_plan import IndexPlanBuilder
from mongo_repository.database.index_registry import IndexBuildRegistry, index_registry
from mongo_repository.database.tenant import (
    ContextTenantResolver,
    StaticTenantResolver,
    TenantResolver,
    reset_current_tenant,
    set_current_tenant,
)

__all__ = [
    "ContextTenantResolver",
    "CustomIndexBuilder",
    "CustomizedIndexResult",
    "IndexBuildRegistry",
    "IndexPlanBuilder",
    "MongoClientFactory",
    "MongoContext",
    "StaticTenantResolver",
    "TenantResolver",
    "client_factory",
    "index_registry",
    "reset_current_tenant",
    "set_current_tenant",
]
