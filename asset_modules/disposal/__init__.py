"""
Disposal Module (``asset_modules.disposal``).

Requests to retire an asset.  Approval is multi-stage under the configured
disposal approval policy; completion retires the asset and records the
realised gain or loss.
"""

from asset_modules.disposal.models import (
    DisposalMethod,
    DisposalReason,
    DisposalRequest,
    DisposalStatus,
)
from asset_modules.disposal.service import DisposalStateMachine, validate_disposal
from asset_modules.disposal.workflows import DISPOSAL_WORKFLOW

__all__ = [
    "DISPOSAL_WORKFLOW",
    "DisposalMethod",
    "DisposalReason",
    "DisposalRequest",
    "DisposalStateMachine",
    "DisposalStatus",
    "validate_disposal",
]
