"""
# Storage Accessor

`MongoContext` binds one entity type to its collection handles.

- **Read handle** (`read_collection()`): bound to the read-only endpoint (a replica when one is
  configured). Never provisions indexes, so read-only deployments never need index privileges.
- **Write handle** (`await write_collection()`): bound to the read-write endpoint. The first
  access per namespace runs the entity's index plan, then the optional custom index builder,
  through the build registry.
- **Audit handle** (`await audit_collection(audit_type)`): the entity's audit collection in the
  same write database, provisioned with the audit type's own index plan.

The descriptor, and with it the tenant-scoped database name, is resolved once at construction.
"""

import dataclasses
from typing import List, Optional, Protocol, Type, runtime_checkable

from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import BaseModel

from mongo_repository.config import MongoDbOptions
from mongo_repository.database.client_factory import MongoClientFactory, client_factory as default_client_factory
from mongo_repository.database.index_plan import IndexPlanBuilder
from mongo_repository.database.index_registry import IndexBuildRegistry, index_registry
from mongo_repository.database.tenant import TenantResolver
from mongo_repository.managers.logging_manager import get_logger
from mongo_repository.metadata.descriptor import EntityDescriptor
from mongo_repository.metadata.resolver import resolve_descriptor
from mongo_repository.models.audit import AuditRecord

db_logger = get_logger(prefix="[DATABASE]")


class CustomizedIndexResult(BaseModel):
    """Collection touched by a custom index builder."""

    database: str
    collection: str


@runtime_checkable
class CustomIndexBuilder(Protocol):
    async def build_customized_index(self) -> List[CustomizedIndexResult]: ...


class MongoContext:
    """
    Collection handles of one entity type.

    Args:
        entity_type (`type`): Entity model decorated with entity markers.
        options (`Optional[MongoDbOptions]`): Endpoints and default database; read from settings when omitted.
        client_factory (`Optional[MongoClientFactory]`): Source of pooled Motor clients.
        tenant_resolver (`Optional[TenantResolver]`): Prefix/suffix around the database name.
        custom_index_builder (`Optional[CustomIndexBuilder]`): Extra indexes created after the plan.
        registry (`Optional[IndexBuildRegistry]`): Build-once registry; the process singleton by default.
        index_plan (`Optional[IndexPlanBuilder]`): Index plan builder.
    """

    def __init__(
        self,
        entity_type: type,
        options: Optional[MongoDbOptions] = None,
        client_factory: Optional[MongoClientFactory] = None,
        tenant_resolver: Optional[TenantResolver] = None,
        custom_index_builder: Optional[CustomIndexBuilder] = None,
        registry: Optional[IndexBuildRegistry] = None,
        index_plan: Optional[IndexPlanBuilder] = None,
    ):
        self.options = options or MongoDbOptions.from_settings()
        self.client_factory = client_factory or default_client_factory
        self.tenant_resolver = tenant_resolver
        self.custom_index_builder = custom_index_builder
        self.registry = registry or index_registry
        self.index_plan = index_plan or IndexPlanBuilder()
        self.descriptor = self._resolve(entity_type)

    def _resolve(self, entity_type: type) -> EntityDescriptor:
        prefix = self.tenant_resolver.prefix() if self.tenant_resolver else None
        suffix = self.tenant_resolver.suffix() if self.tenant_resolver else None
        return resolve_descriptor(entity_type, self.options.default_database, prefix, suffix)

    @property
    def collection_namespace(self) -> str:
        return self.descriptor.collection_namespace

    def _collection(self, connection_string: str, descriptor: EntityDescriptor) -> AsyncIOMotorCollection:
        client = self.client_factory.get_client(connection_string)
        return client[descriptor.database_name][descriptor.collection_name]

    def read_collection(self) -> AsyncIOMotorCollection:
        """Handle on the read-only endpoint; never provisions indexes."""
        return self._collection(self.options.effective_read_only_connection, self.descriptor)

    async def write_collection(self) -> AsyncIOMotorCollection:
        """Handle on the read-write endpoint, provisioning the namespace's indexes on first access."""
        collection = self._collection(self.options.read_write_connection, self.descriptor)
        await self.registry.get_or_build(
            self.descriptor.namespace_key, lambda: self._provision(collection, self.descriptor, with_custom=True)
        )
        return collection

    async def audit_collection(self, audit_type: Type[BaseModel] = AuditRecord) -> AsyncIOMotorCollection:
        """Audit collection of this entity, in its write database."""
        audit_descriptor = dataclasses.replace(
            resolve_descriptor(audit_type, self.options.default_database),
            database_name=self.descriptor.database_name,
            collection_name=self.descriptor.audit_collection_name,
        )
        collection = self._collection(self.options.read_write_connection, audit_descriptor)
        await self.registry.get_or_build(
            audit_descriptor.namespace_key, lambda: self._provision(collection, audit_descriptor, with_custom=False)
        )
        return collection

    async def _provision(self, collection: AsyncIOMotorCollection, descriptor: EntityDescriptor, with_custom: bool):
        await self.index_plan.apply(collection, descriptor)
        if with_custom and self.custom_index_builder is not None:
            results = await self.custom_index_builder.build_customized_index()
            for result in results or []:
                db_logger.info("Custom indexes built on %s.%s", result.database, result.collection)
