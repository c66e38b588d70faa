from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from .enums import QueueStatus

if TYPE_CHECKING:  # pragma: no cover
    from .queue_entry import QueueEntry
    from .staff import Staff


class Queue(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "queues"

    staff_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("staff.id", ondelete="CASCADE"), unique=True, index=True
    )
    status: Mapped[QueueStatus] = mapped_column(
        Enum(QueueStatus, name="queue_status", values_callable=lambda e: [m.value for m in e]),
        default=QueueStatus.OPEN,
        nullable=False,
    )
    # Highest queue number handed out so far; advanced by a single UPDATE ... RETURNING.
    last_number: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    staff: Mapped["Staff"] = relationship("Staff", back_populates="queue")
    entries: Mapped[list["QueueEntry"]] = relationship(
        "QueueEntry",
        back_populates="queue",
        cascade="all, delete-orphan",
    )

    @property
    def is_open(self) -> bool:
        return self.status == QueueStatus.OPEN
