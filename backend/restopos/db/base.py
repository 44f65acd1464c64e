"""SQLAlchemy declarative base and common mixins."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Enum as SQLEnum, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

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


class LifecycleState(str, Enum):
    ACTIVE = "active"
    RETIRED = "retired"


class LifecycleMixin:
    """Soft-delete modelled as an explicit lifecycle state.

    Rows are never physically removed by the API: ``retire()`` moves them to
    ``RETIRED`` and stamps ``retired_at``. Use ``active()`` as a query filter.
    """

    state: Mapped[LifecycleState] = mapped_column(
        SQLEnum(LifecycleState, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        default=LifecycleState.ACTIVE,
        server_default=LifecycleState.ACTIVE.value,
        nullable=False,
        index=True,
    )
    retired_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None,
    )

    @property
    def is_active(self) -> bool:
        return self.state == LifecycleState.ACTIVE

    def retire(self) -> None:
        """Move this row to the retired state."""
        from datetime import timezone
        self.state = LifecycleState.RETIRED
        self.retired_at = datetime.now(timezone.utc)

    def restore(self) -> None:
        """Bring a retired row back to active."""
        self.state = LifecycleState.ACTIVE
        self.retired_at = None

    @classmethod
    def active(cls):
        """SQLAlchemy filter expression: ``WHERE state = 'active'``."""
        return cls.state == LifecycleState.ACTIVE


def enum_column(enum_cls, **kwargs):
    """String-backed enum column storing member values."""
    return mapped_column(
        SQLEnum(enum_cls, values_callable=lambda e: [m.value for m in e], native_enum=False, length=32),
        **kwargs,
    )
