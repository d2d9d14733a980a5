"""
# Audited Repository

Wraps the read-write mutations with an append-only audit trail.

| Operation | Audit record |
|---|---|
| `add_with_audit` | `"Add {description}"`, post-image only |
| `update_with_audit` | `"Update {description}"`, pre-image (fetched unless supplied) and post-image |
| `delete_with_audit` | `"Delete {description}"`, pre-image only; nothing is written when no document was removed |

Images are Extended JSON (`bson.json_util`). Records go to the entity's audit collection
(`@entity_audit`, default `"Audit"`) in the entity's write database.

**Best effort:** the mutation and its audit record are not atomic. Any error while building or
persisting the record is logged as an `AuditError` and swallowed; the mutation result is still
returned.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Type

from bson import json_util

from mongo_repository.exceptions import AuditError
from mongo_repository.managers.logging_manager import get_logger
from mongo_repository.models.audit import AuditRecord
from mongo_repository.models.entity import Entity
from mongo_repository.repositories.read_only import EntityT
from mongo_repository.repositories.read_write import ReadWriteRepository
from mongo_repository.services.audit_service import AuditInformationProvider, DefaultAuditService

logger = get_logger(prefix="[Audit]")

ADD_OPERATION = "Add {}"
UPDATE_OPERATION = "Update {}"
DELETE_OPERATION = "Delete {}"


def serialize_image(entity: Optional[Entity]) -> Optional[str]:
    """Extended JSON snapshot of `entity`, `None` when absent."""
    if entity is None:
        return None
    return json_util.dumps(entity.model_dump(by_alias=True))


class AuditedRepository(ReadWriteRepository[EntityT]):
    """
    Read-write repository whose `*_with_audit` mutations append audit records.

    Args:
        audit_service (`Optional[AuditInformationProvider]`): Supplies record shells; defaults to
            `DefaultAuditService`.
        audit_type (`Optional[Type[AuditRecord]]`): Record model, for audit trails with extra fields.
        **kwargs: Passed to the repository constructor.
    """

    audit_type: Type[AuditRecord] = AuditRecord

    def __init__(
        self,
        *args: Any,
        audit_service: Optional[AuditInformationProvider] = None,
        audit_type: Optional[Type[AuditRecord]] = None,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.audit_service = audit_service or DefaultAuditService()
        if audit_type is not None:
            self.audit_type = audit_type

    async def add_with_audit(
        self, entity: EntityT, audit: Optional[AuditRecord] = None, audit_description: Optional[str] = None
    ) -> EntityT:
        result = await self.add(entity)
        await self._append_audit(ADD_OPERATION, audit_description, audit, old_entity=None, new_entity=result)
        return result

    async def update_with_audit(
        self,
        entity: EntityT,
        audit: Optional[AuditRecord] = None,
        old_entity: Optional[EntityT] = None,
        audit_description: Optional[str] = None,
    ) -> EntityT:
        """Update `entity`, recording the prior state (fetched first unless `old_entity` is given)."""
        if old_entity is None and entity.id is not None:
            old_entity = await self.get(entity.id)
        result = await self.update(entity)
        await self._append_audit(UPDATE_OPERATION, audit_description, audit, old_entity=old_entity, new_entity=result)
        return result

    async def delete_with_audit(
        self, id: Any, audit: Optional[AuditRecord] = None, audit_description: Optional[str] = None
    ) -> Optional[EntityT]:
        """Remove the entity with `id`; returns it, or `None` (and writes no record) if absent."""
        removed = await self.find_and_delete(id)
        if removed is None:
            logger.debug("Nothing deleted for id=%s in %s, no audit record", id, self.descriptor.namespace_key)
            return None
        description = audit_description or removed.to_description()
        await self._append_audit(DELETE_OPERATION, description, audit, old_entity=removed, new_entity=None)
        return removed

    async def _append_audit(
        self,
        operation: str,
        description: Optional[str],
        audit: Optional[AuditRecord],
        old_entity: Optional[Entity],
        new_entity: Optional[Entity],
    ) -> None:
        label = operation.format(description or "").rstrip()
        try:
            record = audit if audit is not None else self.audit_service.audit_shell_for(label, self.audit_type)
            record.collection = self.context.collection_namespace
            record.old_item = serialize_image(old_entity)
            record.new_item = serialize_image(new_entity)
            record.operated_at = datetime.now(timezone.utc)

            collection = await self.context.audit_collection(type(record))
            await self._run(collection.insert_one(record.to_document()))
            logger.debug("Audit record written for %r on %s", label, record.collection)
        except Exception as e:
            error = AuditError(f"Failed to write audit record {label!r} for {self.descriptor.namespace_key}: {e}")
            logger.error("%s", error, exc_info=True)
