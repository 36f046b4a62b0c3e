"""
Module ORM Registry (``asset_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created.  ``create_all_tables()`` is the one entry point scripts and
``tests/conftest.py`` use to get a complete schema.

Architecture position
---------------------
**Modules layer** -- utility.  Imports from sibling ``asset_modules``
packages and from ``asset_kernel.db.engine`` (allowed: modules -> kernel).
MUST NOT be imported by ``asset_kernel``.
"""


def import_all_orm_models() -> None:
    """Import every ``asset_modules.*.orm`` module to register ORM models.

    The asset register goes first; the other tables reference
    ``assets_assets.id``.  Idempotent.
    """
    # fmt: off
    import asset_modules.assets.orm  # noqa: F401
    import asset_modules.allocation.orm  # noqa: F401
    import asset_modules.disposal.orm  # noqa: F401
    import asset_modules.maintenance.orm  # noqa: F401
    import asset_modules.procurement.orm  # noqa: F401
    # fmt: on


def create_all_tables() -> None:
    """Create every module table.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from asset_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
