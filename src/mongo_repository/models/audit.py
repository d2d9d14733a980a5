"""Audit trail record."""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import Field

from mongo_repository.metadata.markers import EntityIndex
from mongo_repository.models.entity import Entity


class AuditRecord(Entity):
    """
    One append-only audit entry.

    Attributes:
        collection (`Optional[str]`): `{database}.{collection}` of the audited entity.
        old_item (`Optional[str]`): Extended JSON pre-image, `None` for inserts.
        new_item (`Optional[str]`): Extended JSON post-image, `None` for deletes.
        operation (`Optional[str]`): Label such as `"Update Order with Id: 42"`.
        operated_by (`Optional[str]`): Actor reported by the audit information provider.
        operated_at (`Optional[datetime]`): UTC time the record was built.
    """

    collection: Annotated[Optional[str], EntityIndex()] = None
    old_item: Optional[str] = None
    new_item: Optional[str] = None
    operation: Optional[str] = None
    operated_by: Annotated[Optional[str], EntityIndex()] = None
    operated_at: Annotated[Optional[datetime], EntityIndex()] = Field(default=None)
