from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:  # pragma: no cover
    from .queue import Queue


class Staff(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "staff"

    name: Mapped[str] = mapped_column(String(150))
    email: Mapped[str] = mapped_column(String(320))
    department: Mapped[str] = mapped_column(String(150))
    unique_id: Mapped[str] = mapped_column(String(32), unique=True, index=True)

    queue: Mapped[Optional["Queue"]] = relationship(
        "Queue",
        back_populates="staff",
        uselist=False,
        cascade="all, delete-orphan",
    )
