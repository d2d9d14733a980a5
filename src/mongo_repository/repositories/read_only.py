"""
# Read-Only Repository

Query contract of an entity collection. Every operation is a non-mutating query against the
context's **read handle**, so a read-only repository never provisions indexes.

| Operation | Result |
|---|---|
| `get(id)` | Entity or `None` |
| `get_many(ids)` | Entities whose identifier is in `ids` |
| `get_one(filter)` | First match or `None` |
| `get_all(filter, sort, page, page_size)` | Matches, optionally sorted and paged |
| `get_all_json(json_filter, json_sort, page, page_size)` | Same, with Extended JSON filter/sort text |
| `get_paginated_result(filter, page, page_size, sort_by, is_descending)` | `PaginatedResult` with total count |
| `count(filter)` / `count_json(json_filter)` | Number of matches |
| `search(field, value)` | Case-insensitive "contains" matches |

Paging applies only when both `page` and `page_size` are given (values below 1 become 1). Queries
without an explicit sort are ordered by identifier ascending.
"""

import asyncio
from typing import Any, Awaitable, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING

from mongo_repository.config import MongoDbOptions
from mongo_repository.database.client_factory import MongoClientFactory
from mongo_repository.database.context import CustomIndexBuilder, MongoContext
from mongo_repository.database.index_registry import IndexBuildRegistry
from mongo_repository.database.tenant import TenantResolver
from mongo_repository.exceptions import RepositoryConfigurationError
from mongo_repository.managers.logging_manager import get_logger
from mongo_repository.models.entity import Entity
from mongo_repository.models.pagination import PageInfo, PaginatedResult
from mongo_repository.repositories.filters import (
    IDENTIFIER_FIELD,
    SortSpec,
    page_window,
    parse_json_filter,
    parse_json_sort,
    redact_filter,
    resolve_sort_field,
    search_filter,
)

EntityT = TypeVar("EntityT", bound=Entity)
ResultT = TypeVar("ResultT")

logger = get_logger(prefix="[Repository]")


class ReadOnlyRepository(Generic[EntityT]):
    """
    Query operations over the collection of `entity_type`.

    Subclasses usually set `entity_type` as a class attribute:

    ```python
    class OrderReader(ReadOnlyRepository[Order]):
        entity_type = Order
    ```

    Args:
        entity_type (`Optional[Type[EntityT]]`): Overrides the class attribute.
        options (`Optional[MongoDbOptions]`): Endpoints, default database and operation timeout.
        context (`Optional[MongoContext]`): Prebuilt storage accessor; the remaining arguments
            are only used to build one when it is omitted.
    """

    entity_type: Optional[Type[EntityT]] = None

    def __init__(
        self,
        entity_type: Optional[Type[EntityT]] = None,
        options: Optional[MongoDbOptions] = None,
        client_factory: Optional[MongoClientFactory] = None,
        tenant_resolver: Optional[TenantResolver] = None,
        custom_index_builder: Optional[CustomIndexBuilder] = None,
        registry: Optional[IndexBuildRegistry] = None,
        context: Optional[MongoContext] = None,
    ):
        self.entity_type = entity_type or type(self).entity_type
        if self.entity_type is None:
            raise RepositoryConfigurationError(type(self).__name__, "no entity_type configured")
        self.context = context or MongoContext(
            self.entity_type,
            options=options,
            client_factory=client_factory,
            tenant_resolver=tenant_resolver,
            custom_index_builder=custom_index_builder,
            registry=registry,
        )
        self.operation_timeout: Optional[float] = self.context.options.operation_timeout

    @property
    def descriptor(self):
        return self.context.descriptor

    async def _query_collection(self) -> AsyncIOMotorCollection:
        return self.context.read_collection()

    async def _run(self, operation: Awaitable[ResultT]) -> ResultT:
        """Await a storage call, bounded by the configured operation timeout."""
        if self.operation_timeout is None:
            return await operation
        return await asyncio.wait_for(operation, timeout=self.operation_timeout)

    def _to_entity(self, document: Optional[Dict[str, Any]]) -> Optional[EntityT]:
        if document is None:
            return None
        return self.entity_type.model_validate(document)

    def _to_entities(self, documents: Iterable[Dict[str, Any]]) -> List[EntityT]:
        return [self.entity_type.model_validate(document) for document in documents]

    async def get(self, id: Any) -> Optional[EntityT]:
        collection = await self._query_collection()
        logger.debug("get %s id=%s", self.descriptor.namespace_key, id)
        return self._to_entity(await self._run(collection.find_one({IDENTIFIER_FIELD: id})))

    async def get_many(self, ids: Iterable[Any]) -> List[EntityT]:
        collection = await self._query_collection()
        id_list = list(ids)
        logger.debug("get_many %s (%d ids)", self.descriptor.namespace_key, len(id_list))
        cursor = collection.find({IDENTIFIER_FIELD: {"$in": id_list}})
        return self._to_entities(await self._run(cursor.to_list(length=None)))

    async def get_one(self, filter: Dict[str, Any]) -> Optional[EntityT]:
        collection = await self._query_collection()
        logger.debug("get_one %s filter=%s", self.descriptor.namespace_key, redact_filter(filter))
        return self._to_entity(await self._run(collection.find_one(filter)))

    async def get_all(
        self,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> List[EntityT]:
        """
        Return every entity matching `filter`.

        Args:
            filter (`Optional[Dict[str, Any]]`): Query document; `None` matches everything.
            sort (`Optional[SortSpec]`): `(field, direction)` pairs. Without one, results are
                ordered by identifier ascending.
            page (`Optional[int]`): 1-based page number.
            page_size (`Optional[int]`): Items per page.

        Returns:
            `List[EntityT]`: Matching entities.
        """
        collection = await self._query_collection()
        window = page_window(page, page_size)
        logger.debug(
            "get_all %s filter=%s sort=%s window=%s",
            self.descriptor.namespace_key,
            redact_filter(filter),
            sort,
            window,
        )
        cursor = collection.find(filter or {})
        cursor = cursor.sort(sort or [(IDENTIFIER_FIELD, ASCENDING)])
        if window is not None:
            skip, limit = window
            cursor = cursor.skip(skip).limit(limit)
        return self._to_entities(await self._run(cursor.to_list(length=None)))

    async def get_all_json(
        self,
        json_filter: Optional[str] = None,
        json_sort: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> List[EntityT]:
        """`get_all` with Extended JSON filter and sort text; raises `ValueError` on malformed text."""
        return await self.get_all(parse_json_filter(json_filter), parse_json_sort(json_sort), page, page_size)

    async def get_paginated_result(
        self,
        filter: Optional[Dict[str, Any]] = None,
        page: int = 1,
        page_size: int = 10,
        sort_by: Optional[str] = None,
        is_descending: bool = False,
    ) -> PaginatedResult[EntityT]:
        """
        Return one page of matches together with the total match count.

        `sort_by` is matched case-insensitively against the entity's fields; empty values,
        `"null"` and `"undefined"` sort by identifier.
        """
        sort_field = resolve_sort_field(self.entity_type, sort_by)
        page, page_size = max(page or 1, 1), max(page_size or 1, 1)
        total_count = await self.count(filter)
        items = await self.get_all(
            filter, [(sort_field, DESCENDING if is_descending else ASCENDING)], page, page_size
        )
        return PaginatedResult[self.entity_type](
            items=items,
            page_info=PageInfo(
                page_number=page,
                page_size=page_size,
                total_count=total_count,
                sort_by=sort_field,
                desc=is_descending,
            ),
        )

    async def count(self, filter: Optional[Dict[str, Any]] = None) -> int:
        collection = await self._query_collection()
        logger.debug("count %s filter=%s", self.descriptor.namespace_key, redact_filter(filter))
        return await self._run(collection.count_documents(filter or {}))

    async def count_json(self, json_filter: Optional[str] = None) -> int:
        return await self.count(parse_json_filter(json_filter))

    async def search(self, field: str, value: str) -> List[EntityT]:
        return await self.get_all(search_filter(field, value))
