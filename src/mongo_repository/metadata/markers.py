"""
# Declarative Entity Markers

Markers describe **where** an entity is stored and **which indexes** its collection needs. They
are plain data; nothing is inspected until the metadata resolver builds an `EntityDescriptor`.

## Class-level markers (decorators)

| Decorator | Effect |
|---|---|
| `@entity_database("SampleDatabase")` | Base database name (tenant prefix/suffix are added around it). |
| `@entity_collection("IndexSample")` | Collection name. Defaults to the class name. |
| `@entity_audit("Audit")` | Collection receiving the entity's audit records. |
| `@entity_field_index("Nested_compound", "nested_list.score")` | Adds an explicit field path to a named index group. Repeatable. |

## Field-level markers (`typing.Annotated` metadata)

| Marker | Effect |
|---|---|
| `EntityIndex(name=None, unique=False, case_insensitive=False, partial_filter=None)` | Adds the field to an index group. Repeatable. |
| `GeoIndex(name=None)` | Adds a `2dsphere` index on the field. |
| `ExpireIndex()` | Adds a TTL index that expires documents at the field's timestamp. One per type. |

## Example

```python
@entity_database("SampleDatabase")
@entity_collection("IndexSample")
@entity_field_index("NestedExpression_compound", "nested_list.score")
class IndexSampleEntity(Entity):
    id: Annotated[Optional[str], Field(alias="_id")] = None
    name: Annotated[Optional[str], EntityIndex()] = None
    compound_one: Annotated[Optional[str], EntityIndex("CompoundSampleIndex", unique=True)] = None
    compound_two: Annotated[Optional[str], EntityIndex("CompoundSampleIndex", unique=True)] = None
    expire_at: Annotated[Optional[datetime], ExpireIndex()] = None
```
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Type, TypeVar

T = TypeVar("T", bound=type)

MARKERS_ATTRIBUTE = "__entity_markers__"


@dataclass(frozen=True)
class EntityIndex:
    """Field-level index marker; fields sharing a `name` form one compound index."""

    name: Optional[str] = None
    unique: bool = False
    case_insensitive: bool = False
    partial_filter: Optional[str] = None


@dataclass(frozen=True)
class GeoIndex:
    """Field-level `2dsphere` index marker."""

    name: Optional[str] = None


@dataclass(frozen=True)
class ExpireIndex:
    """Field-level TTL marker; documents expire at the stored timestamp."""


@dataclass(frozen=True)
class EntityMarkers:
    """Class-level markers collected from the decorators of one entity type."""

    database: Optional[str] = None
    collection: Optional[str] = None
    audit_collection: Optional[str] = None
    field_indexes: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


def get_entity_markers(entity_type: type) -> EntityMarkers:
    """Return the class-level markers of `entity_type`, inherited from its bases when unset."""
    return getattr(entity_type, MARKERS_ATTRIBUTE, None) or EntityMarkers()


def _replace_markers(entity_type: T, **changes) -> T:
    current = get_entity_markers(entity_type)
    values = {
        "database": current.database,
        "collection": current.collection,
        "audit_collection": current.audit_collection,
        "field_indexes": current.field_indexes,
    }
    values.update(changes)
    setattr(entity_type, MARKERS_ATTRIBUTE, EntityMarkers(**values))
    return entity_type


def entity_database(database: str) -> Callable[[T], T]:
    def decorator(entity_type: T) -> T:
        return _replace_markers(entity_type, database=database)

    return decorator


def entity_collection(collection: str) -> Callable[[T], T]:
    def decorator(entity_type: T) -> T:
        return _replace_markers(entity_type, collection=collection)

    return decorator


def entity_audit(audit_collection: str) -> Callable[[T], T]:
    def decorator(entity_type: T) -> T:
        return _replace_markers(entity_type, audit_collection=audit_collection)

    return decorator


def entity_field_index(name: str, field_path: str) -> Callable[[Type], Type]:
    """
    Add `field_path` to the index group `name` on the decorated entity.

    Stacked decorators keep their top-to-bottom declaration order even though Python applies
    them bottom-up. Markers with a blank name or path are ignored.
    """

    def decorator(entity_type: T) -> T:
        if not name or not name.strip() or not field_path or not field_path.strip():
            return entity_type
        current = get_entity_markers(entity_type).field_indexes
        return _replace_markers(entity_type, field_indexes=((name, field_path),) + current)

    return decorator
