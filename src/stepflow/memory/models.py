"""SQLAlchemy table for skill memories."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, LargeBinary, String, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for stepflow models."""


class StateRow(Base):
    """One remembered value per (user, package, key)."""

    __tablename__ = "states"
    __table_args__ = (
        UniqueConstraint("user_id", "package_id", "key", name="uq_states_user_package_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    package_id: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<StateRow {self.package_id}/{self.user_id}/{self.key}>"
