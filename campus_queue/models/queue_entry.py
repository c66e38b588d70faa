from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from .enums import ACTIVE_ENTRY_STATUSES, EntryStatus

if TYPE_CHECKING:  # pragma: no cover
    from .queue import Queue


class QueueEntry(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "queue_entries"
    __table_args__ = (UniqueConstraint("queue_id", "queue_number", name="uq_queue_entries_queue_number"),)

    queue_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("queues.id", ondelete="CASCADE"), index=True
    )
    student_name: Mapped[str] = mapped_column(String(150))
    reason: Mapped[str] = mapped_column(Text)
    queue_number: Mapped[int] = mapped_column(Integer)
    status: Mapped[EntryStatus] = mapped_column(
        Enum(EntryStatus, name="entry_status", values_callable=lambda e: [m.value for m in e]),
        default=EntryStatus.WAITING,
        nullable=False,
        index=True,
    )
    called_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    queue: Mapped["Queue"] = relationship("Queue", back_populates="entries")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_ENTRY_STATUSES
