from __future__ import annotations

import logging
import secrets
import string
import uuid
from typing import Any, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_queue.core.cache import cached, invalidate
from campus_queue.core.change_feed import publish_change
from campus_queue.core.config import get_settings
from campus_queue.core.identity import AdminIdentity, Identity
from campus_queue.models import ACTIVE_ENTRY_STATUSES, ChangeAction, Queue, QueueEntry, QueueStatus, Staff

from . import exceptions
from .records import entry_record, queue_record, staff_record

logger = logging.getLogger(__name__)

ACCESS_CODE_ALPHABET = string.ascii_uppercase + string.digits
ACCESS_CODE_MAX_ATTEMPTS = 20
DIRECTORY_CACHE_NAMESPACE = "staff_directory"
OVERVIEW_CACHE_NAMESPACE = "public_overview"


def invalidate_public_caches() -> None:
    invalidate(DIRECTORY_CACHE_NAMESPACE)
    invalidate(OVERVIEW_CACHE_NAMESPACE)


def _contains_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _directory_ttl() -> int:
    return get_settings().DIRECTORY_CACHE_TTL_SECONDS


@cached(DIRECTORY_CACHE_NAMESPACE, ttl=_directory_ttl)
def load_staff_directory(db: Session) -> list[dict[str, Any]]:
    rows = (
        db.query(Staff.id, Staff.name, Staff.department, Queue.id, Queue.status)
        .outerjoin(Queue, Queue.staff_id == Staff.id)
        .order_by(Staff.name.asc())
        .all()
    )
    return [
        {
            "id": staff_id,
            "name": name,
            "department": department,
            "queue_id": queue_id,
            "queue_status": queue_status,
        }
        for staff_id, name, department, queue_id, queue_status in rows
    ]


@cached(OVERVIEW_CACHE_NAMESPACE, ttl=_directory_ttl)
def load_public_overview(db: Session) -> dict[str, int]:
    staff_count = db.query(func.count(Staff.id)).scalar() or 0
    open_queues = db.query(func.count(Queue.id)).filter(Queue.status == QueueStatus.OPEN).scalar() or 0
    students_waiting = (
        db.query(func.count(QueueEntry.id)).filter(QueueEntry.status.in_(ACTIVE_ENTRY_STATUSES)).scalar() or 0
    )
    return {
        "staff_count": staff_count,
        "open_queues": open_queues,
        "students_waiting": students_waiting,
    }


class StaffService:
    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def _require_admin(self, actor: Identity) -> None:
        if not isinstance(actor, AdminIdentity):
            raise exceptions.AuthorizationError("Only admins can manage staff")

    def generate_unique_id(self, *, exclude: str | None = None) -> str:
        """Return an access code that no staff row currently holds."""

        length = self.settings.ACCESS_CODE_LENGTH
        for _ in range(ACCESS_CODE_MAX_ATTEMPTS):
            code = "".join(secrets.choice(ACCESS_CODE_ALPHABET) for _ in range(length))
            if code == exclude:
                continue
            exists = self.db.query(func.count(Staff.id)).filter(Staff.unique_id == code).scalar()
            if not exists:
                return code
        raise exceptions.ServiceError("Failed to generate unique staff ID")

    def list_staff(self, *, page: int, size: int, search: Optional[str] = None) -> Tuple[int, list[Staff]]:
        query = self.db.query(Staff)
        if search:
            pattern = _contains_pattern(search)
            query = query.filter(
                or_(
                    Staff.name.ilike(pattern, escape="\\"),
                    Staff.email.ilike(pattern, escape="\\"),
                    Staff.department.ilike(pattern, escape="\\"),
                )
            )
        total = query.count()
        staff_members = (
            query.order_by(Staff.created_at.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        return total, staff_members

    def get_staff(self, staff_id: uuid.UUID) -> Staff:
        staff = self.db.query(Staff).filter(Staff.id == staff_id).first()
        if not staff:
            raise exceptions.NotFoundError("Staff member not found")
        return staff

    def find_by_access_code(self, code: str) -> Staff | None:
        return self.db.query(Staff).filter(Staff.unique_id == code).first()

    def create_staff(self, *, name: str, email: str, department: str, actor: Identity) -> Staff:
        self._require_admin(actor)
        name, email, department = name.strip(), email.strip(), department.strip()
        if not name or not email or not department:
            raise exceptions.ValidationError("Please fill in all required fields")

        staff = Staff(name=name, email=email, department=department, unique_id=self.generate_unique_id())
        staff.queue = Queue(status=QueueStatus.OPEN)
        self.db.add(staff)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise exceptions.ConflictError("Staff unique ID collision, please retry") from exc

        self.db.refresh(staff)
        logger.info("Staff member %s created by admin %s", staff.id, actor.user_id)
        invalidate_public_caches()
        publish_change("staff", ChangeAction.INSERT, staff.id, staff_record(staff))
        publish_change("queues", ChangeAction.INSERT, staff.queue.id, queue_record(staff.queue))
        return staff

    def update_staff(
        self,
        *,
        staff_id: uuid.UUID,
        actor: Identity,
        name: Optional[str] = None,
        email: Optional[str] = None,
        department: Optional[str] = None,
    ) -> Staff:
        self._require_admin(actor)
        staff = self.get_staff(staff_id)

        for field, value in (("name", name), ("email", email), ("department", department)):
            if value is None:
                continue
            value = value.strip()
            if not value:
                raise exceptions.ValidationError("Please fill in all required fields")
            setattr(staff, field, value)

        self.db.add(staff)
        self.db.commit()
        self.db.refresh(staff)
        invalidate_public_caches()
        publish_change("staff", ChangeAction.UPDATE, staff.id, staff_record(staff))
        return staff

    def regenerate_unique_id(self, *, staff_id: uuid.UUID, actor: Identity) -> Staff:
        self._require_admin(actor)
        staff = self.get_staff(staff_id)
        previous = staff.unique_id
        staff.unique_id = self.generate_unique_id(exclude=previous)
        self.db.add(staff)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise exceptions.ConflictError("Staff unique ID collision, please retry") from exc
        self.db.refresh(staff)
        logger.info("Access code regenerated for staff %s", staff.id)
        publish_change("staff", ChangeAction.UPDATE, staff.id, staff_record(staff))
        return staff

    def delete_staff(self, *, staff_id: uuid.UUID, actor: Identity) -> None:
        """Delete a staff member together with their queue and all its entries."""

        self._require_admin(actor)
        staff = self.get_staff(staff_id)
        queue = staff.queue
        removed_entries = [entry_record(entry) for entry in queue.entries] if queue else []
        removed_queue = queue_record(queue) if queue else None
        removed_staff = staff_record(staff)

        self.db.delete(staff)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise exceptions.ConflictError("Cannot delete staff member with related records") from exc

        logger.info("Staff member %s deleted with %d queue entries", staff_id, len(removed_entries))
        invalidate_public_caches()
        for record in removed_entries:
            publish_change("queue_entries", ChangeAction.DELETE, record["id"], record)
        if removed_queue:
            publish_change("queues", ChangeAction.DELETE, removed_queue["id"], removed_queue)
        publish_change("staff", ChangeAction.DELETE, removed_staff["id"], removed_staff)

    def staff_directory(self) -> list[dict[str, Any]]:
        return load_staff_directory(self.db)

    def public_overview(self) -> dict[str, int]:
        return load_public_overview(self.db)
