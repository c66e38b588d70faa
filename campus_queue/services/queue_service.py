"""Queue state: positions, wait estimates and the entry lifecycle.

Entry lifecycle::

    waiting -> called -> completed   (calling requires an open queue)
    waiting -> completed
    waiting | called -> skipped
    called --(no response within the timeout)--> deleted by the sweep

Only waiting and called entries are *active*. A student's position is the
number of active entries in the same queue with a lower queue number, plus
one, so a called student still counts for everyone behind them.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, func, update
from sqlalchemy.orm import Session

from campus_queue.core import cache
from campus_queue.core.change_feed import publish_change
from campus_queue.core.config import get_settings
from campus_queue.core.identity import AdminIdentity, Identity, StaffIdentity
from campus_queue.models import ACTIVE_ENTRY_STATUSES, ChangeAction, EntryStatus, Queue, QueueEntry, QueueStatus
from campus_queue.models.base import utcnow

from . import exceptions
from .records import entry_record, queue_record
from .staff_service import OVERVIEW_CACHE_NAMESPACE, invalidate_public_caches

logger = logging.getLogger(__name__)

CALL_NEXT_MAX_ATTEMPTS = 5


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands timestamps back naive; they are always stored in UTC."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class EntryStatusView:
    entry: QueueEntry
    position: Optional[int]
    estimated_wait_minutes: Optional[int]
    response_deadline: Optional[datetime]


class QueueService:
    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    @property
    def call_timeout(self) -> timedelta:
        return timedelta(minutes=self.settings.CALL_RESPONSE_TIMEOUT_MINUTES)

    # -- reads -------------------------------------------------------------

    def get_queue(self, queue_id: uuid.UUID) -> Queue:
        queue = self.db.query(Queue).filter(Queue.id == queue_id).first()
        if not queue:
            raise exceptions.NotFoundError("Queue not found")
        return queue

    def get_queue_for_staff(self, staff_id: uuid.UUID) -> Queue:
        queue = self.db.query(Queue).filter(Queue.staff_id == staff_id).first()
        if not queue:
            raise exceptions.NotFoundError("No queue found for this staff member")
        return queue

    def get_entry(self, entry_id: uuid.UUID) -> QueueEntry:
        entry = self.db.query(QueueEntry).filter(QueueEntry.id == entry_id).first()
        if not entry:
            raise exceptions.NotFoundError("Queue entry not found. You may have been removed from the queue.")
        return entry

    def list_active_entries(self, queue_id: uuid.UUID) -> list[QueueEntry]:
        return (
            self.db.query(QueueEntry)
            .filter(QueueEntry.queue_id == queue_id, QueueEntry.status.in_(ACTIVE_ENTRY_STATUSES))
            .order_by(QueueEntry.queue_number.asc())
            .all()
        )

    def compute_position(self, queue_id: uuid.UUID, queue_number: int) -> int:
        ahead = (
            self.db.query(func.count(QueueEntry.id))
            .filter(
                QueueEntry.queue_id == queue_id,
                QueueEntry.queue_number < queue_number,
                QueueEntry.status.in_(ACTIVE_ENTRY_STATUSES),
            )
            .scalar()
            or 0
        )
        return ahead + 1

    def estimated_wait_minutes(self, position: int) -> int:
        return position * self.settings.ENTRY_SERVICE_MINUTES

    def response_deadline(self, entry: QueueEntry) -> Optional[datetime]:
        if entry.status != EntryStatus.CALLED or entry.called_at is None:
            return None
        return as_utc(entry.called_at) + self.call_timeout

    def entry_status(self, entry_id: uuid.UUID) -> EntryStatusView:
        entry = self.get_entry(entry_id)
        return self.describe_entry(entry)

    def describe_entry(self, entry: QueueEntry) -> EntryStatusView:
        if not entry.is_active:
            return EntryStatusView(entry=entry, position=None, estimated_wait_minutes=None, response_deadline=None)
        position = self.compute_position(entry.queue_id, entry.queue_number)
        return EntryStatusView(
            entry=entry,
            position=position,
            estimated_wait_minutes=self.estimated_wait_minutes(position),
            response_deadline=self.response_deadline(entry),
        )

    # -- student -----------------------------------------------------------

    def join_queue(self, *, staff_id: uuid.UUID, student_name: str, reason: str) -> QueueEntry:
        student_name, reason = student_name.strip(), reason.strip()
        if not student_name or not reason:
            raise exceptions.ValidationError("Please fill in all required fields")

        queue = self.get_queue_for_staff(staff_id)
        queue_number = self._reserve_queue_number(queue.id)
        if queue_number is None:
            raise exceptions.QueueClosedError("This staff member's queue is currently closed")

        entry = QueueEntry(
            queue_id=queue.id,
            student_name=student_name,
            reason=reason,
            queue_number=queue_number,
            status=EntryStatus.WAITING,
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        logger.info("Student joined queue %s with number %d", queue.id, queue_number)
        cache.invalidate(OVERVIEW_CACHE_NAMESPACE)
        publish_change("queue_entries", ChangeAction.INSERT, entry.id, entry_record(entry))
        return entry

    def _reserve_queue_number(self, queue_id: uuid.UUID) -> Optional[int]:
        """Advance the queue's counter in one statement; ``None`` when the queue is closed."""

        stmt = (
            update(Queue)
            .where(Queue.id == queue_id, Queue.status == QueueStatus.OPEN)
            .values(last_number=Queue.last_number + 1)
            .returning(Queue.last_number)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    # -- staff -------------------------------------------------------------

    def authorize_queue(self, queue: Queue, actor: Identity) -> None:
        if isinstance(actor, AdminIdentity):
            return
        if isinstance(actor, StaffIdentity) and actor.staff_id == queue.staff_id:
            return
        raise exceptions.AuthorizationError("You can only manage your own queue")

    def call_next(self, *, queue_id: uuid.UUID, actor: Identity) -> QueueEntry:
        queue = self.get_queue(queue_id)
        self.authorize_queue(queue, actor)
        if not queue.is_open:
            raise exceptions.QueueClosedError("Open the queue before calling the next student")

        for _ in range(CALL_NEXT_MAX_ATTEMPTS):
            candidate_id = (
                self.db.query(QueueEntry.id)
                .filter(QueueEntry.queue_id == queue.id, QueueEntry.status == EntryStatus.WAITING)
                .order_by(QueueEntry.queue_number.asc())
                .limit(1)
                .scalar()
            )
            if candidate_id is None:
                break
            # Compare-and-set: a concurrent call may have taken this entry already.
            result = self.db.execute(
                update(QueueEntry)
                .where(QueueEntry.id == candidate_id, QueueEntry.status == EntryStatus.WAITING)
                .values(status=EntryStatus.CALLED, called_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                self.db.commit()
                entry = self.get_entry(candidate_id)
                self.db.refresh(entry)
                logger.info("Queue %s called entry #%d", queue.id, entry.queue_number)
                publish_change("queue_entries", ChangeAction.UPDATE, entry.id, entry_record(entry))
                return entry
            self.db.rollback()

        raise exceptions.NotFoundError("There are no students in the queue to call")

    def skip(self, *, entry_id: uuid.UUID, actor: Identity) -> QueueEntry:
        return self._finish_entry(entry_id=entry_id, target=EntryStatus.SKIPPED, actor=actor)

    def complete(self, *, entry_id: uuid.UUID, actor: Identity) -> QueueEntry:
        return self._finish_entry(entry_id=entry_id, target=EntryStatus.COMPLETED, actor=actor)

    def _finish_entry(self, *, entry_id: uuid.UUID, target: EntryStatus, actor: Identity) -> QueueEntry:
        entry = self.get_entry(entry_id)
        self.authorize_queue(entry.queue, actor)
        if not entry.is_active:
            raise exceptions.ConflictError(f"Entry is already {entry.status.value}")

        entry.status = target
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        logger.info("Queue entry %s marked %s", entry.id, target.value)
        cache.invalidate(OVERVIEW_CACHE_NAMESPACE)
        publish_change("queue_entries", ChangeAction.UPDATE, entry.id, entry_record(entry))
        return entry

    def set_queue_status(self, *, queue_id: uuid.UUID, status: QueueStatus, actor: Identity) -> Queue:
        queue = self.get_queue(queue_id)
        self.authorize_queue(queue, actor)
        if queue.status == status:
            return queue
        queue.status = status
        self.db.add(queue)
        self.db.commit()
        self.db.refresh(queue)
        logger.info("Queue %s is now %s", queue.id, status.value)
        invalidate_public_caches()
        publish_change("queues", ChangeAction.UPDATE, queue.id, queue_record(queue))
        return queue

    def toggle_queue_status(self, *, queue_id: uuid.UUID, actor: Identity) -> Queue:
        queue = self.get_queue(queue_id)
        target = QueueStatus.CLOSED if queue.status == QueueStatus.OPEN else QueueStatus.OPEN
        return self.set_queue_status(queue_id=queue_id, status=target, actor=actor)

    # -- maintenance -------------------------------------------------------

    def sweep_unresponsive(self, *, now: Optional[datetime] = None) -> int:
        """Delete called entries whose response window has passed."""

        cutoff = (now or utcnow()) - self.call_timeout
        stale = (
            self.db.query(QueueEntry)
            .filter(
                QueueEntry.status == EntryStatus.CALLED,
                QueueEntry.called_at.is_not(None),
                QueueEntry.called_at < cutoff,
            )
            .all()
        )
        if not stale:
            return 0

        removed = [entry_record(entry) for entry in stale]
        self.db.execute(
            delete(QueueEntry)
            .where(
                QueueEntry.id.in_([entry.id for entry in stale]),
                QueueEntry.status == EntryStatus.CALLED,
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        for entry in stale:
            self.db.expunge(entry)

        cache.invalidate(OVERVIEW_CACHE_NAMESPACE)
        for record in removed:
            publish_change("queue_entries", ChangeAction.DELETE, record["id"], record)
        logger.info("Removed %d unresponsive queue entries", len(removed))
        return len(removed)
