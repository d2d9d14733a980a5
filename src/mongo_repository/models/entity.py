"""Base model of every stored entity."""

from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field

EntityT = TypeVar("EntityT", bound="Entity")


class Entity(BaseModel):
    """
    Typed record mapped to one collection.

    The identifier is exposed as `id` and stored as `_id`. Subclasses may narrow its type
    (e.g. `Optional[str]` or `Optional[ObjectId]`) but must keep the `_id` alias.
    """

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: Optional[Any] = Field(default=None, alias="_id")

    def to_description(self) -> str:
        """Human-readable description used in audit operation labels."""
        return f"{type(self).__name__} with Id: {self.id}"

    def to_document(self) -> Dict[str, Any]:
        """Stored representation; an unset identifier is left out so the server assigns one."""
        document = self.model_dump(by_alias=True)
        if document.get("_id") is None:
            document.pop("_id", None)
        return document

    @classmethod
    def from_document(cls: Type[EntityT], document: Optional[Dict[str, Any]]) -> Optional[EntityT]:
        if document is None:
            return None
        return cls.model_validate(document)
