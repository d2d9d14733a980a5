from mongo_repository.metadata.descriptor import EntityDescriptor, IndexGroup, build_namespace_key
from mongo_repository.metadata.markers import (
    EntityIndex,
    ExpireIndex,
    GeoIndex,
    entity_audit,
    entity_collection,
    entity_database,
    entity_field_index,
)
from mongo_repository.metadata.resolver import clear_descriptor_cache, resolve_descriptor

__all__ = [
    "EntityDescriptor",
    "EntityIndex",
    "ExpireIndex",
    "GeoIndex",
    "IndexGroup",
    "build_namespace_key",
    "clear_descriptor_cache",
    "entity_audit",
    "entity_collection",
    "entity_database",
    "entity_field_index",
    "resolve_descriptor",
]
