"""
Asset Register Module (``asset_modules.assets``).

Responsibility
--------------
The asset register: the ``Asset`` record, its authoritative status state
machine, registration validation, and cached book value recomputation with
an append-only valuation audit trail.

Architecture position
---------------------
**Modules layer** -- declarative workflow, frozen models, ORM mapping and a
pure state-machine service.  Valuation arithmetic is delegated to
``asset_engines.valuation``; capability checks to
``asset_services.rbac_authority`` through the workflow executor.

Invariants enforced
-------------------
* ``status`` changes only via ``AssetStateMachine``.
* Retired is terminal and absorbing.
* The cached book value is recomputed, never hand-edited.

Failure modes
-------------
* Typed ``LifecycleError`` results: ``InsufficientRole``,
  ``InvalidStateTransition``, ``AssetRetired``, ``AlreadyAllocated``,
  ``DisposalAlreadyPending``, ``ValidationError``.
"""

from asset_modules.assets.models import (
    Asset,
    AssetCategory,
    AssetStatus,
    ValuationAuditEntry,
    ValuationTrigger,
)
from asset_modules.assets.service import AssetStateMachine, revalue, validate_asset
from asset_modules.assets.workflows import ASSET_WORKFLOW

__all__ = [
    "ASSET_WORKFLOW",
    "Asset",
    "AssetCategory",
    "AssetStateMachine",
    "AssetStatus",
    "ValuationAuditEntry",
    "ValuationTrigger",
    "revalue",
    "validate_asset",
]
