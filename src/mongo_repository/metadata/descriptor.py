"""Resolved, immutable metadata of an entity type."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

DEFAULT_AUDIT_COLLECTION = "Audit"
IDENTIFIER_FIELD = "_id"


def build_namespace_key(collection_name: str, database_name: str) -> str:
    """Key used to deduplicate index provisioning: `{collection}@{database}`."""
    return f"{collection_name}@{database_name}"


@dataclass(frozen=True)
class IndexGroup:
    """One named (possibly compound) index.

    `fields` keeps declaration order; `sorted_fields` is the key order actually requested.
    """

    name: str
    fields: Tuple[str, ...]
    unique: bool = False
    case_insensitive: bool = False
    partial_filter: Optional[Dict[str, Any]] = None

    @property
    def sorted_fields(self) -> Tuple[str, ...]:
        return tuple(sorted(self.fields))


@dataclass(frozen=True)
class EntityDescriptor:
    """Names and index plan of an entity type within one resolved (tenant) namespace."""

    entity_type: type
    database_name: str
    collection_name: str
    index_groups: Mapping[str, IndexGroup] = field(default_factory=lambda: MappingProxyType({}))
    expire_field: Optional[str] = None
    geo_indexes: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    audit_collection_name: str = DEFAULT_AUDIT_COLLECTION
    identifier_field: str = IDENTIFIER_FIELD

    @property
    def namespace_key(self) -> str:
        return build_namespace_key(self.collection_name, self.database_name)

    @property
    def collection_namespace(self) -> str:
        """`{database}.{collection}`, the identifier written into audit records."""
        return f"{self.database_name}.{self.collection_name}"

    @property
    def entity_name(self) -> str:
        return self.entity_type.__name__
