"""
In-memory stand-in for the Motor collection surface used by the repositories.

`FakeCollection` supports equality (including dotted paths and list membership), `$in` and
`$regex` filters, cursor sort/skip/limit, `$set` / `$setOnInsert` updates with upsert, and the
index listing/creation calls. Every call is counted in `collection.calls`.
"""

import copy
import re
from collections import Counter
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

_MISSING = object()


def _lookup(document: Dict[str, Any], path: str) -> Any:
    value: Any = document
    for part in path.split("."):
        if isinstance(value, list):
            collected = [item.get(part, _MISSING) for item in value if isinstance(item, dict)]
            value = [item for item in collected if item is not _MISSING]
            if not value:
                return _MISSING
            continue
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _condition_matches(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and condition and all(str(key).startswith("$") for key in condition):
        for operator, operand in condition.items():
            if operator == "$in":
                if isinstance(value, list):
                    if not any(item in operand for item in value):
                        return False
                elif value is _MISSING or value not in operand:
                    return False
            elif operator == "$regex":
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                if not isinstance(value, str) or not re.search(operand, value, flags):
                    return False
            elif operator == "$options":
                continue
            else:
                raise NotImplementedError(operator)
        return True
    if value is _MISSING:
        return condition is None
    if isinstance(value, list) and not isinstance(condition, list):
        return condition in value
    return value == condition


def matches(document: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    return all(_condition_matches(_lookup(document, key), condition) for key, condition in (filter or {}).items())


def _sort_key(value: Any):
    return (0, 0) if value is _MISSING or value is None else (1, value)


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents
        self._sort: List = []
        self._skip = 0
        self._limit = 0

    def sort(self, key_or_list, direction=None):
        self._sort = list(key_or_list) if isinstance(key_or_list, list) else [(key_or_list, direction or 1)]
        return self

    def skip(self, count: int):
        self._skip = count
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        documents = list(self._documents)
        for field, direction in reversed(self._sort):
            documents.sort(key=lambda document: _sort_key(_lookup(document, field)), reverse=direction == -1)
        documents = documents[self._skip :]
        if self._limit:
            documents = documents[: self._limit]
        if length:
            documents = documents[:length]
        return copy.deepcopy(documents)


class FakeIndexCursor:
    def __init__(self, indexes: List[Dict[str, Any]]):
        self._indexes = indexes

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._indexes)


class FakeCollection:
    def __init__(self, database_name: str, name: str):
        self.database_name = database_name
        self.name = name
        self.documents: List[Dict[str, Any]] = []
        self.indexes: List[Dict[str, Any]] = [{"name": "_id_", "key": {"_id": 1}}]
        self.calls: Counter = Counter()
        self.fail_inserts = False

    def _find_index(self, filter) -> Optional[int]:
        for position, document in enumerate(self.documents):
            if matches(document, filter):
                return position
        return None

    def _store(self, document: Dict[str, Any]) -> Any:
        document = copy.deepcopy(document)
        document.setdefault("_id", ObjectId())
        if any(existing["_id"] == document["_id"] for existing in self.documents):
            raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name} _id: {document['_id']}")
        self.documents.append(document)
        return document["_id"]

    def _upsert_seed(self, filter: Dict[str, Any]) -> Dict[str, Any]:
        return {
            key: value
            for key, value in (filter or {}).items()
            if not key.startswith("$") and "." not in key and not isinstance(value, dict)
        }

    def find(self, filter=None, *args, **kwargs) -> FakeCursor:
        self.calls["find"] += 1
        return FakeCursor([document for document in self.documents if matches(document, filter)])

    async def find_one(self, filter=None, *args, **kwargs):
        self.calls["find_one"] += 1
        position = self._find_index(filter)
        return None if position is None else copy.deepcopy(self.documents[position])

    async def count_documents(self, filter, **kwargs) -> int:
        self.calls["count_documents"] += 1
        return sum(1 for document in self.documents if matches(document, filter))

    async def insert_one(self, document, **kwargs):
        self.calls["insert_one"] += 1
        if self.fail_inserts:
            raise RuntimeError("insert failed")
        return SimpleNamespace(inserted_id=self._store(document))

    async def insert_many(self, documents, **kwargs):
        self.calls["insert_many"] += 1
        return SimpleNamespace(inserted_ids=[self._store(document) for document in documents])

    async def replace_one(self, filter, replacement, upsert=False, **kwargs):
        self.calls["replace_one"] += 1
        position = self._find_index(filter)
        if position is not None:
            document = copy.deepcopy(replacement)
            document["_id"] = self.documents[position]["_id"]
            self.documents[position] = document
            return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        if upsert:
            seed = self._upsert_seed(filter)
            seed.update(replacement)
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=self._store(seed))
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    async def delete_one(self, filter, **kwargs):
        self.calls["delete_one"] += 1
        position = self._find_index(filter)
        if position is None:
            return SimpleNamespace(deleted_count=0)
        del self.documents[position]
        return SimpleNamespace(deleted_count=1)

    async def find_one_and_delete(self, filter, **kwargs):
        self.calls["find_one_and_delete"] += 1
        position = self._find_index(filter)
        if position is None:
            return None
        return self.documents.pop(position)

    async def find_one_and_replace(self, filter, replacement, upsert=False, return_document=False, **kwargs):
        self.calls["find_one_and_replace"] += 1
        position = self._find_index(filter)
        if position is not None:
            before = copy.deepcopy(self.documents[position])
            document = copy.deepcopy(replacement)
            document["_id"] = before["_id"]
            self.documents[position] = document
            return copy.deepcopy(document) if return_document else before
        if not upsert:
            return None
        seed = self._upsert_seed(filter)
        seed.update(replacement)
        inserted_id = self._store(seed)
        return copy.deepcopy(self.documents[-1]) if return_document and inserted_id is not None else None

    async def find_one_and_update(self, filter, update, upsert=False, return_document=False, **kwargs):
        self.calls["find_one_and_update"] += 1
        position = self._find_index(filter)
        if position is not None:
            before = copy.deepcopy(self.documents[position])
            self.documents[position].update(copy.deepcopy(update.get("$set", {})))
            return copy.deepcopy(self.documents[position]) if return_document else before
        if not upsert:
            return None
        seed = self._upsert_seed(filter)
        seed.update(update.get("$setOnInsert", {}))
        seed.update(update.get("$set", {}))
        self._store(seed)
        return copy.deepcopy(self.documents[-1]) if return_document else None

    def list_indexes(self) -> FakeIndexCursor:
        self.calls["list_indexes"] += 1
        return FakeIndexCursor(self.indexes)

    async def create_indexes(self, models, **kwargs) -> List[str]:
        self.calls["create_indexes"] += 1
        names = []
        for model in models:
            document = dict(model.document)
            if not any(index["name"] == document["name"] for index in self.indexes):
                self.indexes.append(document)
            names.append(document["name"])
        return names


class FakeDatabase:
    def __init__(self, name: str):
        self.name = name
        self.collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(self.name, name)
        return self.collections[name]


class FakeClient:
    def __init__(self):
        self.databases: Dict[str, FakeDatabase] = {}

    def __getitem__(self, name: str) -> FakeDatabase:
        if name not in self.databases:
            self.databases[name] = FakeDatabase(name)
        return self.databases[name]


class FakeClientFactory:
    """Hands out one shared `FakeClient` for every endpoint and records which endpoints were used."""

    def __init__(self):
        self.client = FakeClient()
        self.requested: List[str] = []

    def get_client(self, connection_string: str) -> FakeClient:
        self.requested.append(connection_string)
        return self.client

    def collection(self, database: str, collection: str) -> FakeCollection:
        return self.client[database][collection]

    def close(self) -> None:
        pass


PRIMARY_URL = "mongodb://primary:27017"
REPLICA_URL = "mongodb://replica:27017"
