"""
Lifecycle error results (``asset_kernel.domain.errors``).

The gate and the state machines never raise for expected business-rule
failures.  They return a ``LifecycleError`` carrying a stable ``ErrorCode``
that an interface layer maps to a message.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from asset_kernel.utils.serialization import to_jsonable


class ErrorCode(str, Enum):
    """Stable, machine-readable error codes surfaced to callers."""

    INSUFFICIENT_ROLE = "InsufficientRole"
    INVALID_STATE_TRANSITION = "InvalidStateTransition"
    ASSET_RETIRED = "AssetRetired"
    ALREADY_ALLOCATED = "AlreadyAllocated"
    DISPOSAL_ALREADY_PENDING = "DisposalAlreadyPending"
    MAINTENANCE_ALREADY_OPEN = "MaintenanceAlreadyOpen"
    VALIDATION_ERROR = "ValidationError"
    CONCURRENT_MODIFICATION = "ConcurrentModification"
    ENTITY_NOT_FOUND = "EntityNotFound"


@dataclass(frozen=True)
class LifecycleError:
    """A typed, recoverable failure of a lifecycle operation."""

    code: ErrorCode
    message: str
    entity_type: str | None = None
    entity_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.entity_type is not None:
            data["entity_type"] = self.entity_type
        if self.entity_id is not None:
            data["entity_id"] = self.entity_id
        if self.details:
            data["details"] = to_jsonable(self.details)
        return data

    # Constructors for the common cases

    @classmethod
    def insufficient_role(cls, role: str, operation: str) -> LifecycleError:
        return cls(
            code=ErrorCode.INSUFFICIENT_ROLE,
            message=f"Role '{role}' may not perform '{operation}'",
            details={"role": role, "operation": operation},
        )

    @classmethod
    def invalid_transition(
        cls,
        entity_type: str,
        entity_id: str,
        state: str,
        action: str,
        reason: str | None = None,
    ) -> LifecycleError:
        message = f"Cannot '{action}' {entity_type} {entity_id} from state '{state}'"
        if reason:
            message = f"{message}: {reason}"
        return cls(
            code=ErrorCode.INVALID_STATE_TRANSITION,
            message=message,
            entity_type=entity_type,
            entity_id=entity_id,
            details={"state": state, "action": action},
        )

    @classmethod
    def asset_retired(cls, asset_id: str, action: str) -> LifecycleError:
        return cls(
            code=ErrorCode.ASSET_RETIRED,
            message=f"Asset {asset_id} is retired; '{action}' is not permitted",
            entity_type="asset",
            entity_id=asset_id,
            details={"action": action},
        )

    @classmethod
    def validation(
        cls,
        issues: tuple[str, ...],
        entity_type: str | None = None,
        entity_id: str | None = None,
    ) -> LifecycleError:
        return cls(
            code=ErrorCode.VALIDATION_ERROR,
            message="; ".join(issues),
            entity_type=entity_type,
            entity_id=entity_id,
            details={"issues": list(issues)},
        )

    @classmethod
    def concurrent_modification(
        cls,
        entity_type: str,
        entity_id: str,
        expected_version: int | None,
        actual_version: int | None,
    ) -> LifecycleError:
        return cls(
            code=ErrorCode.CONCURRENT_MODIFICATION,
            message=(
                f"{entity_type} {entity_id} was modified concurrently "
                f"(expected version {expected_version}, found {actual_version})"
            ),
            entity_type=entity_type,
            entity_id=entity_id,
            details={
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )

    @classmethod
    def not_found(cls, entity_type: str, entity_id: str) -> LifecycleError:
        return cls(
            code=ErrorCode.ENTITY_NOT_FOUND,
            message=f"{entity_type} {entity_id} does not exist",
            entity_type=entity_type,
            entity_id=entity_id,
        )

    @classmethod
    def already_allocated(cls, asset_id: str, allocation_id: str | None = None) -> LifecycleError:
        return cls(
            code=ErrorCode.ALREADY_ALLOCATED,
            message=f"Asset {asset_id} already has an active allocation",
            entity_type="asset",
            entity_id=asset_id,
            details={"allocation_id": allocation_id} if allocation_id else {},
        )

    @classmethod
    def disposal_already_pending(cls, asset_id: str, disposal_id: str | None = None) -> LifecycleError:
        return cls(
            code=ErrorCode.DISPOSAL_ALREADY_PENDING,
            message=f"Asset {asset_id} already has an open disposal request",
            entity_type="asset",
            entity_id=asset_id,
            details={"disposal_id": disposal_id} if disposal_id else {},
        )

    @classmethod
    def maintenance_already_open(cls, asset_id: str, record_id: str | None = None) -> LifecycleError:
        return cls(
            code=ErrorCode.MAINTENANCE_ALREADY_OPEN,
            message=f"Asset {asset_id} already has an open maintenance record",
            entity_type="asset",
            entity_id=asset_id,
            details={"maintenance_id": record_id} if record_id else {},
        )
