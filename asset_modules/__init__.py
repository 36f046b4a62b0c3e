"""
Asset Modules.

Per-entity lifecycle logic over the Asset Kernel and Engines.
Each module contains:
- Domain models (the nouns)
- Workflows (state machines)
- A state machine service that runs transitions through the workflow executor
- ORM models for persistence

Modules:
- Assets: Asset register, status lifecycle, cached valuation
- Allocation: Assignment of assets to people and departments
- Maintenance: Preventive and breakdown work orders
- Disposal: Multi-stage approved retirement of assets
- Procurement: Multi-stage approved purchase requests
"""

from asset_modules import (
    allocation,
    assets,
    disposal,
    maintenance,
    procurement,
)

__all__ = [
    "allocation",
    "assets",
    "disposal",
    "maintenance",
    "procurement",
]
