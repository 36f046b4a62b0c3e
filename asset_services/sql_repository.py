"""
asset_services.sql_repository -- SQLAlchemy ``LifecycleRepository``.

Responsibility:
    Persist the lifecycle entities through the module ORM models with
    optimistic concurrency on the ``version`` column.

Architecture position:
    Services layer.  Receives a SQLAlchemy ``Session`` by constructor
    injection; does not own its lifecycle beyond ``transaction()``.

Invariants enforced:
    - Updates are conditional: ``UPDATE ... WHERE id = :id AND
      version = :expected``.  Zero affected rows raises
      ``OptimisticLockError``.
    - Inserts use ``expected_version == 0``; an existing row with the same
      id is a conflict, not an overwrite.
    - ``transaction()`` commits every staged write together or rolls all
      of them back.

Failure modes:
    - ``EntityNotFoundError`` from ``load_*`` for unknown ids.
    - ``OptimisticLockError`` from ``save_*`` on a stale version.
    - Database errors propagate unmodified.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Callable, TypeVar

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from asset_kernel.exceptions import EntityNotFoundError, OptimisticLockError
from asset_kernel.logging_config import get_logger
from asset_modules.allocation.models import AllocationRecord, AllocationStatus
from asset_modules.allocation.orm import AllocationRecordModel, allocation_columns
from asset_modules.assets.models import Asset, AssetStatus, ValuationAuditEntry
from asset_modules.assets.orm import AssetModel, ValuationAuditEntryModel, asset_columns
from asset_modules.disposal.models import DisposalRequest, OPEN_DISPOSAL_STATUSES
from asset_modules.disposal.orm import DisposalRequestModel, disposal_columns
from asset_modules.maintenance.models import MaintenanceRecord
from asset_modules.maintenance.orm import MaintenanceRecordModel, maintenance_columns
from asset_modules.procurement.models import ProcurementRequest
from asset_modules.procurement.orm import ProcurementRequestModel, procurement_columns

logger = get_logger("services.sql_repository")

T = TypeVar("T")


class SqlAlchemyRepository:
    """``LifecycleRepository`` over a SQLAlchemy session.

    ``updated_by_role`` is stamped on every saved row.  The orchestrator
    overrides it with the acting role for the duration of each command
    through ``acting_as``.
    """

    def __init__(self, session: Session, updated_by_role: str | None = None):
        self._session = session
        self._updated_by_role = updated_by_role
        self._in_transaction = False

    @property
    def session(self) -> Session:
        return self._session

    def with_role(self, role: str) -> SqlAlchemyRepository:
        """A repository on the same session stamping ``role`` on saves."""
        return SqlAlchemyRepository(self._session, updated_by_role=role)

    # -- transaction ----------------------------------------------------------

    @contextmanager
    def acting_as(self, role: str) -> Iterator[None]:
        """Stamp ``role`` on rows saved inside the block."""
        previous = self._updated_by_role
        self._updated_by_role = role
        try:
            yield
        finally:
            self._updated_by_role = previous

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._in_transaction:
            yield
            return
        self._in_transaction = True
        try:
            yield
            self._session.commit()
            logger.debug("repository_transaction_committed")
        except Exception:
            self._session.rollback()
            logger.warning("repository_transaction_rolled_back", exc_info=True)
            raise
        finally:
            self._in_transaction = False

    # -- generic helpers ------------------------------------------------------

    def _load(self, model: type, kind: str, entity_id: str) -> Any:
        row = self._session.get(model, entity_id, populate_existing=True)
        if row is None:
            raise EntityNotFoundError(kind, entity_id)
        return row.to_dto()

    def _save(
        self,
        model: Any,
        kind: str,
        dto: T,
        expected_version: int,
        columns: Callable[[Any], dict],
    ) -> T:
        entity_id = dto.id  # type: ignore[attr-defined]
        new_version = expected_version + 1

        if expected_version == 0:
            existing = self._session.get(model, entity_id)
            if existing is not None:
                raise OptimisticLockError(kind, entity_id, expected_version, existing.version)
            row = model.from_dto(replace(dto, version=new_version), self._updated_by_role)  # type: ignore[type-var]
            self._session.add(row)
            self._session.flush()
        else:
            stmt = (
                update(model)
                .where(model.id == entity_id, model.version == expected_version)
                .values(
                    version=new_version,
                    updated_by_role=self._updated_by_role,
                    **columns(dto),
                )
                .execution_options(synchronize_session=False)
            )
            result = self._session.execute(stmt)
            if result.rowcount == 0:
                actual = self._session.execute(
                    select(model.version).where(model.id == entity_id)
                ).scalar_one_or_none()
                raise OptimisticLockError(kind, entity_id, expected_version, actual)

        return replace(dto, version=new_version)  # type: ignore[type-var]

    # -- entity load/save -----------------------------------------------------

    def load_asset(self, asset_id: str) -> Asset:
        return self._load(AssetModel, "asset", asset_id)

    def save_asset(self, asset: Asset, expected_version: int) -> Asset:
        return self._save(AssetModel, "asset", asset, expected_version, asset_columns)

    def load_allocation(self, allocation_id: str) -> AllocationRecord:
        return self._load(AllocationRecordModel, "allocation", allocation_id)

    def save_allocation(self, record: AllocationRecord, expected_version: int) -> AllocationRecord:
        return self._save(
            AllocationRecordModel, "allocation", record, expected_version, allocation_columns,
        )

    def load_maintenance(self, record_id: str) -> MaintenanceRecord:
        return self._load(MaintenanceRecordModel, "maintenance", record_id)

    def save_maintenance(self, record: MaintenanceRecord, expected_version: int) -> MaintenanceRecord:
        return self._save(
            MaintenanceRecordModel, "maintenance", record, expected_version, maintenance_columns,
        )

    def load_disposal(self, disposal_id: str) -> DisposalRequest:
        return self._load(DisposalRequestModel, "disposal", disposal_id)

    def save_disposal(self, request: DisposalRequest, expected_version: int) -> DisposalRequest:
        return self._save(
            DisposalRequestModel, "disposal", request, expected_version, disposal_columns,
        )

    def load_procurement(self, request_id: str) -> ProcurementRequest:
        return self._load(ProcurementRequestModel, "procurement", request_id)

    def save_procurement(self, request: ProcurementRequest, expected_version: int) -> ProcurementRequest:
        return self._save(
            ProcurementRequestModel, "procurement", request, expected_version, procurement_columns,
        )

    # -- queries --------------------------------------------------------------

    def active_allocation_for(self, asset_id: str) -> AllocationRecord | None:
        row = self._session.execute(
            select(AllocationRecordModel)
            .where(
                AllocationRecordModel.asset_id == asset_id,
                AllocationRecordModel.status == AllocationStatus.ACTIVE.value,
            )
            .execution_options(populate_existing=True)
        ).scalars().first()
        return row.to_dto() if row is not None else None

    def open_disposal_for(self, asset_id: str) -> DisposalRequest | None:
        row = self._session.execute(
            select(DisposalRequestModel)
            .where(
                DisposalRequestModel.asset_id == asset_id,
                DisposalRequestModel.status.in_([s.value for s in OPEN_DISPOSAL_STATUSES]),
            )
            .execution_options(populate_existing=True)
        ).scalars().first()
        return row.to_dto() if row is not None else None

    def maintenance_for(self, asset_id: str) -> tuple[MaintenanceRecord, ...]:
        rows = self._session.execute(
            select(MaintenanceRecordModel)
            .where(MaintenanceRecordModel.asset_id == asset_id)
            .order_by(MaintenanceRecordModel.scheduled_date, MaintenanceRecordModel.id)
            .execution_options(populate_existing=True)
        ).scalars().all()
        return tuple(row.to_dto() for row in rows)

    def list_assets(self, include_retired: bool = True) -> tuple[Asset, ...]:
        stmt = select(AssetModel).order_by(AssetModel.id)
        if not include_retired:
            stmt = stmt.where(AssetModel.status != AssetStatus.RETIRED.value)
        rows = self._session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalars().all()
        return tuple(row.to_dto() for row in rows)

    def append_valuation_entry(self, entry: ValuationAuditEntry) -> None:
        self._session.add(ValuationAuditEntryModel.from_dto(entry))
        self._session.flush()

    def valuation_entries_for(self, asset_id: str) -> tuple[ValuationAuditEntry, ...]:
        rows = self._session.execute(
            select(ValuationAuditEntryModel)
            .where(ValuationAuditEntryModel.asset_id == asset_id)
            .order_by(ValuationAuditEntryModel.recorded_at, ValuationAuditEntryModel.id)
        ).scalars().all()
        return tuple(row.to_dto() for row in rows)
