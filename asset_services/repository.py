"""
asset_services.repository -- Persistence collaborator contract.

Responsibility:
    Define the load/save surface the lifecycle orchestrator needs and
    provide the in-memory reference implementation used by tests and
    embedded callers.

Architecture position:
    Services layer.  ``LifecycleRepository`` is a Protocol; the SQLAlchemy
    implementation lives in ``asset_services.sql_repository``.

Invariants enforced:
    - Optimistic concurrency: ``save_*(entity, expected_version)`` succeeds
      only when the stored version equals ``expected_version`` (0 means
      "must not exist yet") and stores the entity at ``expected_version + 1``.
      Otherwise ``OptimisticLockError`` is raised.
    - Atomicity: writes inside ``transaction()`` are applied together on
      normal exit and discarded if the block raises.

Failure modes:
    - ``EntityNotFoundError`` from ``load_*`` for unknown ids.
    - ``OptimisticLockError`` from ``save_*`` on a stale version.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import replace
from typing import Any, Protocol, TypeVar

from asset_kernel.exceptions import EntityNotFoundError, OptimisticLockError
from asset_kernel.logging_config import get_logger
from asset_modules.allocation.models import AllocationRecord, AllocationStatus
from asset_modules.assets.models import Asset, ValuationAuditEntry
from asset_modules.disposal.models import DisposalRequest
from asset_modules.maintenance.models import MaintenanceRecord
from asset_modules.procurement.models import ProcurementRequest

logger = get_logger("services.repository")

T = TypeVar("T")


class LifecycleRepository(Protocol):
    """Load/save surface for the lifecycle orchestrator."""

    def load_asset(self, asset_id: str) -> Asset: ...

    def save_asset(self, asset: Asset, expected_version: int) -> Asset: ...

    def load_allocation(self, allocation_id: str) -> AllocationRecord: ...

    def save_allocation(self, record: AllocationRecord, expected_version: int) -> AllocationRecord: ...

    def load_maintenance(self, record_id: str) -> MaintenanceRecord: ...

    def save_maintenance(self, record: MaintenanceRecord, expected_version: int) -> MaintenanceRecord: ...

    def load_disposal(self, disposal_id: str) -> DisposalRequest: ...

    def save_disposal(self, request: DisposalRequest, expected_version: int) -> DisposalRequest: ...

    def load_procurement(self, request_id: str) -> ProcurementRequest: ...

    def save_procurement(self, request: ProcurementRequest, expected_version: int) -> ProcurementRequest: ...

    def active_allocation_for(self, asset_id: str) -> AllocationRecord | None: ...

    def open_disposal_for(self, asset_id: str) -> DisposalRequest | None: ...

    def maintenance_for(self, asset_id: str) -> tuple[MaintenanceRecord, ...]: ...

    def list_assets(self, include_retired: bool = True) -> tuple[Asset, ...]: ...

    def append_valuation_entry(self, entry: ValuationAuditEntry) -> None: ...

    def valuation_entries_for(self, asset_id: str) -> tuple[ValuationAuditEntry, ...]: ...

    def transaction(self) -> AbstractContextManager[None]: ...

    def acting_as(self, role: str) -> AbstractContextManager[None]: ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

_ASSET = "asset"
_ALLOCATION = "allocation"
_MAINTENANCE = "maintenance"
_DISPOSAL = "disposal"
_PROCUREMENT = "procurement"


class InMemoryRepository:
    """Dictionary-backed ``LifecycleRepository``.

    Transactions are serialized by a re-entrant lock, so a version read
    inside ``transaction()`` cannot go stale before the block commits.
    Saves made outside a transaction commit immediately.
    """

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, Any]] = {
            _ASSET: {},
            _ALLOCATION: {},
            _MAINTENANCE: {},
            _DISPOSAL: {},
            _PROCUREMENT: {},
        }
        self._valuation_entries: list[ValuationAuditEntry] = []
        self._lock = threading.RLock()
        self._staged: dict[tuple[str, str], Any] | None = None
        self._staged_entries: list[ValuationAuditEntry] = []

    # -- transaction ----------------------------------------------------------

    @contextmanager
    def acting_as(self, role: str) -> Iterator[None]:
        """Rows kept in memory carry no audit columns."""
        yield

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            if self._staged is not None:
                # Nested: join the outer transaction
                yield
                return
            self._staged = {}
            self._staged_entries = []
            try:
                yield
            except Exception:
                logger.debug("repository_transaction_discarded")
                raise
            else:
                for (kind, entity_id), entity in self._staged.items():
                    self._tables[kind][entity_id] = entity
                self._valuation_entries.extend(self._staged_entries)
            finally:
                self._staged = None
                self._staged_entries = []

    # -- generic helpers ------------------------------------------------------

    def _current(self, kind: str, entity_id: str) -> Any:
        if self._staged is not None and (kind, entity_id) in self._staged:
            return self._staged[(kind, entity_id)]
        return self._tables[kind].get(entity_id)

    def _load(self, kind: str, entity_id: str) -> Any:
        with self._lock:
            entity = self._current(kind, entity_id)
        if entity is None:
            raise EntityNotFoundError(kind, entity_id)
        return entity

    def _save(self, kind: str, entity: T, expected_version: int) -> T:
        with self._lock:
            entity_id = entity.id  # type: ignore[attr-defined]
            current = self._current(kind, entity_id)
            actual_version = current.version if current is not None else 0
            if actual_version != expected_version:
                raise OptimisticLockError(kind, entity_id, expected_version, actual_version)
            stored = replace(entity, version=expected_version + 1)  # type: ignore[type-var]
            if self._staged is not None:
                self._staged[(kind, entity_id)] = stored
            else:
                self._tables[kind][entity_id] = stored
            return stored

    def _all(self, kind: str) -> list[Any]:
        with self._lock:
            merged = dict(self._tables[kind])
            if self._staged is not None:
                for (k, entity_id), entity in self._staged.items():
                    if k == kind:
                        merged[entity_id] = entity
            return list(merged.values())

    # -- entity load/save -----------------------------------------------------

    def load_asset(self, asset_id: str) -> Asset:
        return self._load(_ASSET, asset_id)

    def save_asset(self, asset: Asset, expected_version: int) -> Asset:
        return self._save(_ASSET, asset, expected_version)

    def load_allocation(self, allocation_id: str) -> AllocationRecord:
        return self._load(_ALLOCATION, allocation_id)

    def save_allocation(self, record: AllocationRecord, expected_version: int) -> AllocationRecord:
        return self._save(_ALLOCATION, record, expected_version)

    def load_maintenance(self, record_id: str) -> MaintenanceRecord:
        return self._load(_MAINTENANCE, record_id)

    def save_maintenance(self, record: MaintenanceRecord, expected_version: int) -> MaintenanceRecord:
        return self._save(_MAINTENANCE, record, expected_version)

    def load_disposal(self, disposal_id: str) -> DisposalRequest:
        return self._load(_DISPOSAL, disposal_id)

    def save_disposal(self, request: DisposalRequest, expected_version: int) -> DisposalRequest:
        return self._save(_DISPOSAL, request, expected_version)

    def load_procurement(self, request_id: str) -> ProcurementRequest:
        return self._load(_PROCUREMENT, request_id)

    def save_procurement(self, request: ProcurementRequest, expected_version: int) -> ProcurementRequest:
        return self._save(_PROCUREMENT, request, expected_version)

    # -- queries --------------------------------------------------------------

    def active_allocation_for(self, asset_id: str) -> AllocationRecord | None:
        for record in self._all(_ALLOCATION):
            if record.asset_id == asset_id and record.status == AllocationStatus.ACTIVE:
                return record
        return None

    def open_disposal_for(self, asset_id: str) -> DisposalRequest | None:
        for request in self._all(_DISPOSAL):
            if request.asset_id == asset_id and request.is_open:
                return request
        return None

    def maintenance_for(self, asset_id: str) -> tuple[MaintenanceRecord, ...]:
        records = [r for r in self._all(_MAINTENANCE) if r.asset_id == asset_id]
        return tuple(sorted(records, key=lambda r: (r.scheduled_date, r.id)))

    def list_assets(self, include_retired: bool = True) -> tuple[Asset, ...]:
        assets = sorted(self._all(_ASSET), key=lambda a: a.id)
        if not include_retired:
            assets = [a for a in assets if not a.is_retired]
        return tuple(assets)

    def append_valuation_entry(self, entry: ValuationAuditEntry) -> None:
        with self._lock:
            if self._staged is not None:
                self._staged_entries.append(entry)
            else:
                self._valuation_entries.append(entry)

    def valuation_entries_for(self, asset_id: str) -> tuple[ValuationAuditEntry, ...]:
        with self._lock:
            entries = self._valuation_entries + (
                self._staged_entries if self._staged is not None else []
            )
            return tuple(e for e in entries if e.asset_id == asset_id)
