from mongo_repository.repositories.audited import AuditedRepository
from mongo_repository.repositories.cached import CachedReadOnlyRepository, CachedReadWriteRepository
from mongo_repository.repositories.read_only import ReadOnlyRepository
from mongo_repository.repositories.read_write import ReadWriteRepository

__all__ = [
    "AuditedRepository",
    "CachedReadOnlyRepository",
    "CachedReadWriteRepository",
    "ReadOnlyRepository",
    "ReadWriteRepository",
]
