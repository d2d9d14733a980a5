"""
# Index Plan Builder

Translates an `EntityDescriptor` into `pymongo.IndexModel` requests and applies them to a collection.

| Source | Request |
|---|---|
| `IndexGroup` | Ascending key per field in lexicographic order, named after the group; `unique`, `en`/secondary collation when case-insensitive, `partialFilterExpression` when present. |
| Expiry field | Ascending key, `expireAfterSeconds=0`, server-generated name. |
| Geo field | `2dsphere` key named after the marker. |

Requests whose name already exists on the collection are skipped. Creating an index that already
exists with the same options is a server-side no-op, so re-applying a plan is safe.
"""

from typing import Iterable, List, Set

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, GEOSPHERE, IndexModel
from pymongo.collation import Collation, CollationStrength

from mongo_repository.managers.logging_manager import get_logger
from mongo_repository.metadata.descriptor import EntityDescriptor, IndexGroup

logger = get_logger(prefix="[IndexPlan]")

CASE_INSENSITIVE_COLLATION = Collation(locale="en", strength=CollationStrength.SECONDARY)


def expire_index_name(field_path: str) -> str:
    """Name the server generates for the ascending expiry index on `field_path`."""
    return f"{field_path}_{ASCENDING}"


class IndexPlanBuilder:
    """Builds and applies the index requests of one entity descriptor."""

    def _group_request(self, group: IndexGroup) -> IndexModel:
        options = {"name": group.name}
        if group.unique:
            options["unique"] = True
        if group.case_insensitive:
            options["collation"] = CASE_INSENSITIVE_COLLATION
        if group.partial_filter:
            options["partialFilterExpression"] = group.partial_filter
        return IndexModel([(path, ASCENDING) for path in group.sorted_fields], **options)

    def build_requests(self, descriptor: EntityDescriptor, existing_names: Iterable[str] = ()) -> List[IndexModel]:
        """
        Build the index requests for `descriptor`, leaving out names already present.

        Args:
            descriptor (`EntityDescriptor`): Resolved entity metadata.
            existing_names (`Iterable[str]`): Index names already defined on the collection.

        Returns:
            `List[IndexModel]`: Requests in group, expiry, geo order.
        """
        existing: Set[str] = set(existing_names)
        requests: List[IndexModel] = []

        for name, group in descriptor.index_groups.items():
            if name in existing:
                logger.debug("Index %s already exists on %s, skipping", name, descriptor.namespace_key)
                continue
            requests.append(self._group_request(group))

        if descriptor.expire_field and expire_index_name(descriptor.expire_field) not in existing:
            requests.append(IndexModel([(descriptor.expire_field, ASCENDING)], expireAfterSeconds=0))

        for name, path in descriptor.geo_indexes.items():
            if name in existing:
                logger.debug("Geo index %s already exists on %s, skipping", name, descriptor.namespace_key)
                continue
            requests.append(IndexModel([(path, GEOSPHERE)], name=name))

        return requests

    async def apply(self, collection: AsyncIOMotorCollection, descriptor: EntityDescriptor) -> List[str]:
        """
        Create the missing indexes of `descriptor` on `collection`.

        Storage errors (e.g. an incompatible existing index) propagate to the caller.

        Returns:
            `List[str]`: Names of the indexes the server reported as created.
        """
        indexes = await collection.list_indexes().to_list(length=None)
        existing_names = [index.get("name") for index in indexes]
        requests = self.build_requests(descriptor, existing_names)
        if not requests:
            logger.debug("No index to create on %s", descriptor.namespace_key)
            return []

        created = await collection.create_indexes(requests)
        logger.info("Created %d index(es) on %s: %s", len(created), descriptor.namespace_key, ", ".join(created))
        return list(created)
