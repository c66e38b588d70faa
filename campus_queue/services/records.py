"""Plain-dict renderings of rows for the change feed.

Staff access codes are never included.
"""

from typing import Any

from campus_queue.models import Queue, QueueEntry, Staff


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def staff_record(staff: Staff) -> dict[str, Any]:
    return {
        "id": str(staff.id),
        "name": staff.name,
        "email": staff.email,
        "department": staff.department,
        "created_at": _iso(staff.created_at),
    }


def queue_record(queue: Queue) -> dict[str, Any]:
    return {
        "id": str(queue.id),
        "staff_id": str(queue.staff_id),
        "status": queue.status.value,
        "created_at": _iso(queue.created_at),
    }


def entry_record(entry: QueueEntry) -> dict[str, Any]:
    return {
        "id": str(entry.id),
        "queue_id": str(entry.queue_id),
        "student_name": entry.student_name,
        "reason": entry.reason,
        "queue_number": entry.queue_number,
        "status": entry.status.value,
        "called_at": _iso(entry.called_at),
        "created_at": _iso(entry.created_at),
    }
