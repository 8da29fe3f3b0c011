# ==============================================================================
# BASE MODEL - SQLAlchemy Foundation
# ==============================================================================
# Declarative base and timestamp mixin shared by the storefront tables
# ==============================================================================

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class SQLBase(DeclarativeBase):
    """
    Base class for all storefront tables.

    Provides a string UUID primary key and a column-wise ``to_dict``.

    Example:
        >>> class Product(SQLBase):
        ...     __tablename__ = "products"
        ...     name: Mapped[str] = mapped_column(String(255))
    """

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    def to_dict(self) -> dict[str, Any]:
        """Column values keyed by column name."""
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class TimestampMixin:
    """
    Creation and modification timestamps.

    Both columns fall back to the database clock; callers that own the
    clock (the order engine) pass explicit values instead.
    """

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
