"""Exception hierarchy for the repository layer."""


class RepositoryError(Exception):
    """Base class for errors raised by `mongo_repository` itself.

    Errors raised by the storage engine (PyMongo) are never wrapped and reach the caller as-is.
    """


class RepositoryConfigurationError(RepositoryError):
    """An entity type's declarative metadata cannot be resolved.

    Raised while building an `EntityDescriptor`, e.g. for a partial filter that does not parse,
    a type without an identifier field, or two expiry fields on the same type.
    """

    def __init__(self, entity_name: str, message: str):
        self.entity_name = entity_name
        super().__init__(f"{entity_name}: {message}")


class AuditError(RepositoryError):
    """Writing an audit record failed. Logged by the audited repository, never raised to callers."""
