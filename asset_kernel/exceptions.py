"""
Typed Exception Hierarchy for the Asset Kernel.

===============================================================================
EXCEPTIONS VS RESULTS
===============================================================================

Business-rule failures (a role lacks a capability, a command is not valid
from the current state, a uniqueness rule would be broken) are NOT raised.
The gate and the state machines return a ``LifecycleError`` inside a result
object (see ``asset_kernel.domain.errors``) so that callers branch on data.

Exceptions in this module are reserved for conditions that cross a
collaborator boundary:

  - a repository detects a stale version on save
  - a repository is asked for an id it does not hold
  - configuration cannot be parsed

The orchestrator converts the first two into ``ConcurrentModification`` and
``EntityNotFound`` results.  Everything else propagates unmodified.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    AssetKernelError (base)
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- PersistenceError
    |   +-- EntityNotFoundError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT    | Save with a stale expected version
----------------|-----------------------------|-----------------------------------------
Persistence     | ENTITY_NOT_FOUND            | Load of an unknown id
----------------|-----------------------------|-----------------------------------------
Configuration   | CONFIGURATION_ERROR         | Missing/malformed config values
"""


class AssetKernelError(Exception):
    """
    Base exception for all asset kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "ASSET_KERNEL_ERROR"


# Concurrency-related exceptions


class ConcurrencyError(AssetKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected on save."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        expected_version: int | None = None,
        actual_version: int | None = None,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            f"expected version {expected_version}, found {actual_version}"
        )


# Persistence-related exceptions


class PersistenceError(AssetKernelError):
    """Base exception for persistence collaborator errors."""

    code: str = "PERSISTENCE_ERROR"


class EntityNotFoundError(PersistenceError):
    """Entity with the given id does not exist."""

    code: str = "ENTITY_NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


# Configuration-related exceptions


class ConfigurationError(AssetKernelError):
    """Configuration is missing a required value or is malformed."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(message if source is None else f"{source}: {message}")
