"""
Error taxonomy shared by the store, repository and workflow layers.
"""
from __future__ import annotations


class ShopError(Exception):
    """Base class for every error raised by the shop core."""
    pass


class StoreError(ShopError):
    """Backing store failure: connectivity, constraint violation, malformed statement."""
    pass


class RepositoryError(ShopError):
    """A StoreError annotated with the entity and operation that triggered it."""

    def __init__(self, entity: str, operation: str, cause: Exception):
        self.entity = entity
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} {entity} failed: {cause}")


class ValidationError(ShopError):
    """Business-rule violation. The message is the reason shown to the operator."""
    pass


class WorkflowAborted(ShopError):
    """The operator declined a prompt; the workflow stops without error."""
    pass
