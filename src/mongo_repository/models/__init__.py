from mongo_repository.models.audit import AuditRecord
from mongo_repository.models.entity import Entity
from mongo_repository.models.pagination import PageInfo, PaginatedResult

__all__ = ["AuditRecord", "Entity", "PageInfo", "PaginatedResult"]
