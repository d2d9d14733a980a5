from mongo_repository.services.audit_service import (
    AuditInformationProvider,
    DefaultAuditService,
    get_current_actor,
    reset_current_actor,
    set_current_actor,
)

__all__ = [
    "AuditInformationProvider",
    "DefaultAuditService",
    "get_current_actor",
    "reset_current_actor",
    "set_current_actor",
]
