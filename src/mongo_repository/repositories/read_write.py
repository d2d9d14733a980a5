"""
# Read-Write Repository

Mutation contract on top of `ReadOnlyRepository`. Queries of a read-write repository go to the
**write handle** so callers read their own writes; the first access provisions indexes.

| Operation | Contract |
|---|---|
| `add(entity)` | Trims text fields, inserts, returns the entity with its identifier. |
| `add_range(entities)` | Same per element, one `insert_many` batch. |
| `update(entity)` | Trims, replaces by identifier, inserts when nothing matches. |
| `delete(id)` | Removes by identifier, returns whether a document was removed. |
| `find_and_delete(id)` | Atomically removes and returns the document, or `None`. |
| `update_with_version(entity, version_field, expected_version)` | Optimistic replace, `(succeeded, entity)`. |
| `upsert(entity, filter)` | Atomic find-and-replace on an arbitrary filter. |
| `find_or_create(filter, field_values)` | `$setOnInsert`: values only apply when the document is created. |
| `find_and_update(filter, field_values)` | `$set`: values apply on every call. |

Storage errors (e.g. `DuplicateKeyError`) propagate unmodified.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument

from mongo_repository.managers.logging_manager import get_logger
from mongo_repository.metadata.resolver import stored_field_name
from mongo_repository.repositories.filters import IDENTIFIER_FIELD, redact_filter
from mongo_repository.repositories.read_only import EntityT, ReadOnlyRepository

logger = get_logger(prefix="[Repository]")


def trim_text_fields(entity: EntityT) -> EntityT:
    """
    Strip surrounding whitespace from every top-level text field, in place.

    Whitespace-only values are left untouched rather than collapsed to `""`.
    """
    for name in type(entity).model_fields:
        value = getattr(entity, name)
        if isinstance(value, str) and value.strip():
            stripped = value.strip()
            if stripped != value:
                setattr(entity, name, stripped)
    return entity


class ReadWriteRepository(ReadOnlyRepository[EntityT]):
    """Query and mutation operations over the collection of `entity_type`."""

    async def _query_collection(self) -> AsyncIOMotorCollection:
        return await self.context.write_collection()

    def _stored_values(self, field_values: Dict[str, Any]) -> Dict[str, Any]:
        if not field_values:
            raise ValueError("field_values must contain at least one field")
        return {stored_field_name(self.entity_type, name): value for name, value in field_values.items()}

    async def add(self, entity: EntityT) -> EntityT:
        collection = await self.context.write_collection()
        trim_text_fields(entity)
        result = await self._run(collection.insert_one(entity.to_document()))
        if entity.id is None:
            entity.id = result.inserted_id
        logger.debug("add %s id=%s", self.descriptor.namespace_key, entity.id)
        return entity

    async def add_range(self, entities: Iterable[EntityT]) -> List[EntityT]:
        items = [trim_text_fields(entity) for entity in entities]
        if not items:
            return items
        collection = await self.context.write_collection()
        result = await self._run(collection.insert_many([entity.to_document() for entity in items]))
        for entity, inserted_id in zip(items, result.inserted_ids):
            if entity.id is None:
                entity.id = inserted_id
        logger.debug("add_range %s (%d entities)", self.descriptor.namespace_key, len(items))
        return items

    async def update(self, entity: EntityT) -> EntityT:
        """Replace the document with the entity's identifier, inserting it when missing."""
        if entity.id is None:
            return await self.add(entity)
        collection = await self.context.write_collection()
        trim_text_fields(entity)
        result = await self._run(collection.replace_one({IDENTIFIER_FIELD: entity.id}, entity.to_document(), upsert=True))
        logger.debug(
            "update %s id=%s matched=%d upserted=%s",
            self.descriptor.namespace_key,
            entity.id,
            result.matched_count,
            result.upserted_id is not None,
        )
        return entity

    async def delete(self, id: Any) -> bool:
        collection = await self.context.write_collection()
        result = await self._run(collection.delete_one({IDENTIFIER_FIELD: id}))
        logger.debug("delete %s id=%s deleted=%d", self.descriptor.namespace_key, id, result.deleted_count)
        return result.deleted_count > 0

    async def find_and_delete(self, id: Any) -> Optional[EntityT]:
        collection = await self.context.write_collection()
        document = await self._run(collection.find_one_and_delete({IDENTIFIER_FIELD: id}))
        logger.debug("find_and_delete %s id=%s found=%s", self.descriptor.namespace_key, id, document is not None)
        return self._to_entity(document)

    async def update_with_version(
        self,
        entity: EntityT,
        version_field: str,
        expected_version: Any,
        upsert: bool = False,
        **options: Any,
    ) -> Tuple[bool, EntityT]:
        """
        Replace the stored document only if its `version_field` still equals `expected_version`.

        The caller sets the new version on `entity` before calling. With `expected_version=None`
        the write is an unconditional upsert by identifier.

        Args:
            entity (`EntityT`): New state, including the bumped version.
            version_field (`str`): Attribute or stored name of the version field.
            expected_version (`Any`): Version the caller last read, or `None`.
            upsert (`bool`): Insert when the conditional filter matches nothing.
            **options: Passed through to `replace_one`.

        Returns:
            `Tuple[bool, EntityT]`: `(False, entity)` on a version mismatch, no write applied.
        """
        collection = await self.context.write_collection()
        trim_text_fields(entity)
        document = entity.to_document()
        if expected_version is None:
            await self._run(collection.replace_one({IDENTIFIER_FIELD: entity.id}, document, upsert=True, **options))
            return True, entity

        stored_version = stored_field_name(self.entity_type, version_field)
        filter = {IDENTIFIER_FIELD: entity.id, stored_version: expected_version}
        result = await self._run(collection.replace_one(filter, document, upsert=upsert, **options))
        succeeded = result.matched_count > 0 or result.upserted_id is not None
        if not succeeded:
            logger.info(
                "Version mismatch on %s id=%s (%s expected %s)",
                self.descriptor.namespace_key,
                entity.id,
                stored_version,
                expected_version,
            )
        return succeeded, entity

    async def upsert(
        self,
        entity: EntityT,
        filter: Dict[str, Any],
        upsert: bool = True,
        return_document: ReturnDocument = ReturnDocument.AFTER,
        **options: Any,
    ) -> Optional[EntityT]:
        """Atomically replace the document matching `filter` with `entity`."""
        collection = await self.context.write_collection()
        trim_text_fields(entity)
        document = await self._run(
            collection.find_one_and_replace(
                filter, entity.to_document(), upsert=upsert, return_document=return_document, **options
            )
        )
        logger.debug("upsert %s filter=%s", self.descriptor.namespace_key, redact_filter(filter))
        return self._to_entity(document)

    async def find_or_create(
        self,
        filter: Dict[str, Any],
        field_values: Dict[str, Any],
        upsert: bool = True,
        return_document: ReturnDocument = ReturnDocument.AFTER,
        **options: Any,
    ) -> Optional[EntityT]:
        """Return the match of `filter`, creating it with `field_values` when none exists."""
        collection = await self.context.write_collection()
        update = {"$setOnInsert": self._stored_values(field_values)}
        document = await self._run(
            collection.find_one_and_update(filter, update, upsert=upsert, return_document=return_document, **options)
        )
        logger.debug("find_or_create %s filter=%s", self.descriptor.namespace_key, redact_filter(filter))
        return self._to_entity(document)

    async def find_and_update(
        self,
        filter: Dict[str, Any],
        field_values: Dict[str, Any],
        upsert: bool = True,
        return_document: ReturnDocument = ReturnDocument.AFTER,
        **options: Any,
    ) -> Optional[EntityT]:
        """Set `field_values` on the match of `filter`, creating it when none exists and `upsert` is set."""
        collection = await self.context.write_collection()
        update = {"$set": self._stored_values(field_values)}
        document = await self._run(
            collection.find_one_and_update(filter, update, upsert=upsert, return_document=return_document, **options)
        )
        logger.debug("find_and_update %s filter=%s", self.descriptor.namespace_key, redact_filter(filter))
        return self._to_entity(document)
