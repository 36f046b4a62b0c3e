"""
Pytest fixtures for the asset lifecycle test suite.

Provides:
- Structured logging capture
- A deterministic clock and sequential id factory
- Draft factories for assets and procurement requests
- An in-memory repository and a lifecycle orchestrator wired to the
  default configuration set
- SQLite-backed SQLAlchemy sessions for repository tests

Environment Variables:
- DATABASE_URL: optional database URL for the SQL repository tests.
  Defaults to an in-memory SQLite database.
"""

import itertools
import json
import logging
import os
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from asset_config import get_active_config
from asset_engines.valuation import DepreciationMethod
from asset_kernel.db.engine import drop_tables, get_session, init_engine_from_url, reset_engine
from asset_kernel.domain.clock import DeterministicClock
from asset_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from asset_modules._orm_registry import create_all_tables
from asset_modules.allocation.models import AllocationType
from asset_modules.assets.models import Asset, AssetCategory
from asset_modules.procurement.models import (
    ProcurementCategory,
    ProcurementPriority,
    ProcurementRequest,
)
from asset_services import commands as cmd
from asset_services.lifecycle_orchestrator import LifecycleOrchestrator
from asset_services.repository import InMemoryRepository
from asset_services.sql_repository import SqlAlchemyRepository

# The clock date every test starts on
TODAY = date(2026, 1, 15)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture asset_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, orchestrator):
            orchestrator.apply(...)
            logs = captured_logs()
            assert any(r["message"] == "lifecycle_command_applied" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("asset_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock, ids, configuration
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(TODAY)


@pytest.fixture
def id_factory():
    """Sequential ids per prefix: ALC-0001, ALC-0002, ..."""
    counters: dict[str, itertools.count] = {}

    def _next(prefix: str) -> str:
        counter = counters.setdefault(prefix, itertools.count(1))
        return f"{prefix}-{next(counter):04d}"

    return _next


@pytest.fixture(scope="session")
def lifecycle_config():
    return get_active_config()


# =============================================================================
# Draft factories
# =============================================================================


@pytest.fixture
def make_asset():
    """Factory for registration drafts."""

    def _make(
        asset_id: str = "AST-0001",
        name: str = "Dell Latitude 7440",
        category: AssetCategory = AssetCategory.IT_EQUIPMENT,
        purchase_cost: Decimal = Decimal("75000.00"),
        purchase_date: date = date(2025, 1, 15),
        salvage_value: Decimal = Decimal("5000.00"),
        useful_life_months: int = 36,
        depreciation_method: DepreciationMethod | None = DepreciationMethod.STRAIGHT_LINE,
        location: str = "HQ Floor 3",
        department: str = "Engineering",
        **kwargs,
    ) -> Asset:
        return Asset(
            id=asset_id,
            name=name,
            category=category,
            purchase_cost=purchase_cost,
            purchase_date=purchase_date,
            salvage_value=salvage_value,
            useful_life_months=useful_life_months,
            depreciation_method=depreciation_method,
            location=location,
            department=department,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_procurement():
    """Factory for procurement drafts."""

    def _make(
        request_id: str = "PRQ-0001",
        estimated_cost: Decimal = Decimal("2500.00"),
        priority: ProcurementPriority = ProcurementPriority.MEDIUM,
        **kwargs,
    ) -> ProcurementRequest:
        fields = {
            "title": "Developer laptops",
            "category": ProcurementCategory.IT_EQUIPMENT,
            "requested_by": "emp-042",
            "department": "Engineering",
            "request_date": TODAY,
        }
        fields.update(kwargs)
        return ProcurementRequest(
            id=request_id,
            priority=priority,
            estimated_cost=estimated_cost,
            **fields,
        )

    return _make


# =============================================================================
# In-memory orchestration
# =============================================================================


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def orchestrator(repository, clock, lifecycle_config, id_factory):
    return LifecycleOrchestrator(
        repository,
        clock=clock,
        config=lifecycle_config,
        id_factory=id_factory,
    )


@pytest.fixture
def register(orchestrator, make_asset):
    """Register an asset as admin and return the stored asset."""

    def _register(**kwargs) -> Asset:
        result = orchestrator.apply(cmd.RegisterAsset(asset=make_asset(**kwargs)), "admin")
        assert result.success, result.error
        return result.changed("asset")[0]

    return _register


@pytest.fixture
def allocate(orchestrator, repository):
    """Allocate a stored asset as asset_manager; returns the LifecycleResult."""

    def _allocate(asset_id: str, assignee: str = "emp-007", **kwargs):
        asset = repository.load_asset(asset_id)
        fields = {
            "department": "Engineering",
            "location": "HQ Floor 3",
            "allocation_type": AllocationType.PERMANENT,
        }
        fields.update(kwargs)
        return orchestrator.apply(
            cmd.AllocateAsset(
                asset_id=asset_id,
                expected_version=asset.version,
                assignee=assignee,
                **fields,
            ),
            "asset_manager",
        )

    return _allocate


# =============================================================================
# SQLAlchemy (SQLite in-memory unless DATABASE_URL is set)
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", "sqlite://")


@pytest.fixture
def sql_engine():
    engine = init_engine_from_url(get_database_url(), echo=False)
    create_all_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def sql_session(sql_engine):
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def sql_repository(sql_session):
    return SqlAlchemyRepository(sql_session, updated_by_role="admin")
