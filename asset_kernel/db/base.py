"""
Module: asset_kernel.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the string primary key convention, the type annotation map for consistent
    column types, and the VersionedBase mixin carrying the optimistic
    concurrency version token and audit timestamps.
Architecture position: Kernel > DB.  The lowest-level import target within
    the kernel.  ALL module orm files import from here.

Invariants enforced:
    - Decimal precision: type_annotation_map maps Python Decimal to
      Numeric(38, 9).  NEVER use float for monetary amounts.
    - Version token: every VersionedBase row carries an integer ``version``
      that repositories compare-and-increment on each save.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import BigInteger, Date, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is a caller-supplied string (asset tags such as ``AST-045``
          are meaningful to users, so ids are not generated here).
        - Decimal maps to Numeric(38, 9).
        - datetime maps to DateTime(timezone=True).
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        date: Date(),
        int: BigInteger().with_variant(Integer(), "sqlite"),
    }

    id: Mapped[str] = mapped_column(String(64), primary_key=True)


class VersionedBase(Base):
    """
    Abstract base with the optimistic concurrency token and audit timestamps.

    Guarantees:
        - ``version`` starts at 1 on insert; repositories issue
          ``UPDATE ... WHERE version = :expected`` and bump it.
        - created_at / updated_at are maintained by the database.
        - updated_by_role records the role that made the last change.
    """

    __abstract__ = True

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    updated_by_role: Mapped[str | None] = mapped_column(String(50), nullable=True)
