"""
# Metadata Resolver

Turns an entity type and its markers into an immutable `EntityDescriptor`.

Resolution happens once per `(entity type, tenant prefix, tenant suffix, default database)` and is
cached for the lifetime of the process; repositories never re-inspect the type afterwards.
`clear_descriptor_cache()` drops the cache (tests, hot reload).

## Group merging

- Class-level `@entity_field_index` markers are processed first, then field markers in field
  declaration order.
- The group key is the marker's `name`, or the field's own name (the dotted path for nested
  fields).
- Markers sharing a key merge into one `IndexGroup`: paths are appended once, `unique` and
  `case_insensitive` are OR-merged and the last marker carrying a partial filter wins.

## Nested models

Fields typed as another pydantic model, a list/sequence of one, or `Optional` of either, are
walked recursively. Paths use stored field names (aliases) joined with dots. A model is never
walked twice along the same branch.
"""

import threading
import types
from collections import OrderedDict
from collections.abc import Sequence as AbcSequence
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Type, Union, get_args, get_origin

from pydantic import BaseModel

from mongo_repository.exceptions import RepositoryConfigurationError
from mongo_repository.managers.logging_manager import get_logger
from mongo_repository.metadata.descriptor import DEFAULT_AUDIT_COLLECTION, EntityDescriptor, IndexGroup
from mongo_repository.metadata.markers import EntityIndex, ExpireIndex, GeoIndex, get_entity_markers
from mongo_repository.metadata.query_text import parse_query_document

logger = get_logger(prefix="[Metadata]")

IDENTIFIER_ATTRIBUTE = "id"

_SEQUENCE_ORIGINS = (list, tuple, set, frozenset, AbcSequence)

_descriptor_cache: Dict[Tuple[type, str, str, str], EntityDescriptor] = {}
_descriptor_lock = threading.Lock()


class _GroupBuilder:
    def __init__(self, name: str):
        self.name = name
        self.fields: List[str] = []
        self.unique = False
        self.case_insensitive = False
        self.partial_filter: Optional[Dict[str, Any]] = None

    def add(self, path: str) -> None:
        if path not in self.fields:
            self.fields.append(path)

    def freeze(self) -> IndexGroup:
        return IndexGroup(
            name=self.name,
            fields=tuple(self.fields),
            unique=self.unique,
            case_insensitive=self.case_insensitive,
            partial_filter=self.partial_filter,
        )


def parse_partial_filter(text: str, entity_name: str) -> Dict[str, Any]:
    """
    Parse partial-filter text into a filter document.

    Accepts the shell style (`{ 'status': { '$exists': true } }`) as well as MongoDB
    Extended JSON (`{"status": "active"}`).

    Raises:
        RepositoryConfigurationError: If the text does not describe a document.
    """
    try:
        return parse_query_document(text)
    except (ValueError, TypeError) as exc:
        raise RepositoryConfigurationError(entity_name, f"partial filter {text!r} does not parse: {exc}") from exc


def stored_field_name(model: Type[BaseModel], attribute: str) -> str:
    """Stored (serialized) name of `attribute` on `model`, honouring pydantic aliases."""
    info = model.model_fields.get(attribute)
    if info is None:
        return attribute
    return info.serialization_alias or info.alias or attribute


def nested_model_type(annotation: Any) -> Optional[Type[BaseModel]]:
    """Return the pydantic model held by a field annotation (directly, in a sequence or Optional)."""
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    origin = get_origin(annotation)
    if origin is None:
        return None
    args = get_args(annotation)
    if origin is Union or origin is getattr(types, "UnionType", None):
        candidates = [arg for arg in args if arg is not type(None)]
        if len(candidates) == 1:
            return nested_model_type(candidates[0])
        return None
    if origin in _SEQUENCE_ORIGINS and args:
        return nested_model_type(args[0])
    return None


def _database_name(entity_type: type, default_database: Optional[str], prefix: str, suffix: str) -> str:
    markers = get_entity_markers(entity_type)
    if markers.database and markers.database.strip():
        base = markers.database
    elif default_database and default_database.strip():
        base = default_database
    else:
        base = entity_type.__name__
    return f"{prefix}{base}{suffix}"


def _collect_field_markers(
    model: Type[BaseModel],
    parent_path: str,
    groups: "OrderedDict[str, _GroupBuilder]",
    expire_fields: List[str],
    geo_indexes: "OrderedDict[str, str]",
    entity_name: str,
    visited: FrozenSet[type],
) -> None:
    for attribute, info in model.model_fields.items():
        stored = info.serialization_alias or info.alias or attribute
        path = f"{parent_path}.{stored}" if parent_path else stored
        own_name = path if parent_path else attribute

        for marker in info.metadata:
            if isinstance(marker, EntityIndex):
                key = marker.name or own_name
                group = groups.setdefault(key, _GroupBuilder(key))
                group.add(path)
                group.unique = group.unique or marker.unique
                group.case_insensitive = group.case_insensitive or marker.case_insensitive
                if marker.partial_filter and marker.partial_filter.strip():
                    group.partial_filter = parse_partial_filter(marker.partial_filter, entity_name)
            elif isinstance(marker, GeoIndex):
                geo_indexes[marker.name or own_name] = path
            elif isinstance(marker, ExpireIndex):
                expire_fields.append(path)

        nested = nested_model_type(info.annotation)
        if nested is not None and nested not in visited:
            _collect_field_markers(
                nested, path, groups, expire_fields, geo_indexes, entity_name, visited | {nested}
            )


def build_descriptor(
    entity_type: type,
    default_database: Optional[str] = None,
    prefix: str = "",
    suffix: str = "",
) -> EntityDescriptor:
    """
    Build a fresh descriptor for `entity_type` without consulting the cache.

    Raises:
        RepositoryConfigurationError: For non-model types, types without an `id` field, more than
            one expiry field, or partial filters that do not parse.
    """
    entity_name = getattr(entity_type, "__name__", repr(entity_type))
    if not isinstance(entity_type, type) or not issubclass(entity_type, BaseModel):
        raise RepositoryConfigurationError(entity_name, "entity types must be pydantic models")
    if IDENTIFIER_ATTRIBUTE not in entity_type.model_fields:
        raise RepositoryConfigurationError(entity_name, "entity type has no 'id' identifier field")

    markers = get_entity_markers(entity_type)
    groups: "OrderedDict[str, _GroupBuilder]" = OrderedDict()
    for name, field_path in markers.field_indexes:
        groups.setdefault(name, _GroupBuilder(name)).add(field_path)

    expire_fields: List[str] = []
    geo_indexes: "OrderedDict[str, str]" = OrderedDict()
    _collect_field_markers(
        entity_type, "", groups, expire_fields, geo_indexes, entity_name, frozenset({entity_type})
    )
    if len(expire_fields) > 1:
        raise RepositoryConfigurationError(
            entity_name, f"only one expiry field is allowed, found {', '.join(expire_fields)}"
        )

    collection = markers.collection if markers.collection and markers.collection.strip() else entity_name
    audit_collection = (
        markers.audit_collection
        if markers.audit_collection and markers.audit_collection.strip()
        else DEFAULT_AUDIT_COLLECTION
    )
    descriptor = EntityDescriptor(
        entity_type=entity_type,
        database_name=_database_name(entity_type, default_database, prefix, suffix),
        collection_name=collection,
        index_groups=types.MappingProxyType({key: builder.freeze() for key, builder in groups.items()}),
        expire_field=expire_fields[0] if expire_fields else None,
        geo_indexes=types.MappingProxyType(dict(geo_indexes)),
        audit_collection_name=audit_collection,
        identifier_field=stored_field_name(entity_type, IDENTIFIER_ATTRIBUTE),
    )
    logger.debug(
        "Resolved %s -> %s (%d index groups, expire=%s, geo=%d)",
        entity_name,
        descriptor.namespace_key,
        len(descriptor.index_groups),
        descriptor.expire_field,
        len(descriptor.geo_indexes),
    )
    return descriptor


def resolve_descriptor(
    entity_type: type,
    default_database: Optional[str] = None,
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
) -> EntityDescriptor:
    """
    Return the cached descriptor of `entity_type` for the given namespace, resolving it on first use.

    Args:
        entity_type (`type`): A pydantic model decorated with entity markers.
        default_database (`Optional[str]`): Database used when the type has no database marker.
        prefix (`Optional[str]`): Tenant prefix placed before the database name.
        suffix (`Optional[str]`): Tenant suffix placed after the database name.

    Returns:
        `EntityDescriptor`: The immutable descriptor.
    """
    key = (entity_type, prefix or "", suffix or "", default_database or "")
    descriptor = _descriptor_cache.get(key)
    if descriptor is not None:
        return descriptor
    descriptor = build_descriptor(entity_type, default_database, prefix or "", suffix or "")
    with _descriptor_lock:
        return _descriptor_cache.setdefault(key, descriptor)


def clear_descriptor_cache() -> None:
    with _descriptor_lock:
        _descriptor_cache.clear()
