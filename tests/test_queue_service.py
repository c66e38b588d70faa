from datetime import timedelta

import pytest

from campus_queue.core.identity import ANONYMOUS
from campus_queue.models import EntryStatus, QueueEntry, QueueStatus
from campus_queue.models.base import utcnow
from campus_queue.services import QueueService
from campus_queue.services.queue_service import as_utc
from campus_queue.services import exceptions as service_exceptions

from helpers import staff_identity_for


def _join(session, staff, name, reason="advising"):
    return QueueService(session).join_queue(staff_id=staff.id, student_name=name, reason=reason)


def test_first_students_get_sequential_numbers_and_positions(make_staff, db_session):
    staff = make_staff()
    service = QueueService(db_session)

    ada = _join(db_session, staff, "Ada", "advising")
    assert ada.queue_number == 1
    assert ada.status == EntryStatus.WAITING
    assert service.compute_position(ada.queue_id, ada.queue_number) == 1

    grace = _join(db_session, staff, "Grace")
    assert grace.queue_number == 2
    assert service.compute_position(grace.queue_id, grace.queue_number) == 2
    assert service.estimated_wait_minutes(2) == 10


def test_called_entries_still_count_towards_position(make_staff, db_session):
    staff = make_staff()
    actor = staff_identity_for(staff)
    service = QueueService(db_session)
    first = _join(db_session, staff, "Ada")
    second = _join(db_session, staff, "Grace")

    called = service.call_next(queue_id=first.queue_id, actor=actor)

    assert called.id == first.id
    view = service.entry_status(second.id)
    assert view.position == 2
    assert view.estimated_wait_minutes == 10


def test_positions_increase_with_queue_number(make_staff, db_session):
    staff = make_staff()
    service = QueueService(db_session)
    entries = [_join(db_session, staff, f"Student {index}") for index in range(5)]
    service.skip(entry_id=entries[1].id, actor=staff_identity_for(staff))

    active = [entry for entry in entries if entry.id != entries[1].id]
    positions = [service.compute_position(entry.queue_id, entry.queue_number) for entry in active]
    assert positions == sorted(positions)
    assert positions == [1, 2, 3, 4]


def test_call_next_selects_lowest_waiting_number(make_staff, db_session):
    staff = make_staff()
    service = QueueService(db_session)
    first = _join(db_session, staff, "Ada")
    _join(db_session, staff, "Grace")

    called = service.call_next(queue_id=first.queue_id, actor=staff_identity_for(staff))

    assert called.id == first.id
    assert called.queue_number == 1
    assert called.status == EntryStatus.CALLED
    assert called.called_at is not None


def test_call_next_without_waiting_entries_raises_not_found(make_staff, db_session):
    staff = make_staff()
    actor = staff_identity_for(staff)
    service = QueueService(db_session)
    entry = _join(db_session, staff, "Ada")
    service.call_next(queue_id=entry.queue_id, actor=actor)

    with pytest.raises(service_exceptions.NotFoundError):
        service.call_next(queue_id=entry.queue_id, actor=actor)


def test_joining_closed_queue_fails(make_staff, db_session):
    staff = make_staff()
    service = QueueService(db_session)
    service.set_queue_status(queue_id=staff.queue.id, status=QueueStatus.CLOSED, actor=staff_identity_for(staff))

    with pytest.raises(service_exceptions.QueueClosedError):
        _join(db_session, staff, "Ada")

    assert db_session.query(QueueEntry).filter(QueueEntry.queue_id == staff.queue.id).count() == 0


def test_call_next_on_closed_queue_fails(make_staff, db_session):
    staff = make_staff()
    actor = staff_identity_for(staff)
    service = QueueService(db_session)
    entry = _join(db_session, staff, "Ada")
    service.set_queue_status(queue_id=entry.queue_id, status=QueueStatus.CLOSED, actor=actor)

    with pytest.raises(service_exceptions.QueueClosedError):
        service.call_next(queue_id=entry.queue_id, actor=actor)

    db_session.refresh(entry)
    assert entry.status == EntryStatus.WAITING
    assert entry.called_at is None

    service.set_queue_status(queue_id=entry.queue_id, status=QueueStatus.OPEN, actor=actor)
    assert service.call_next(queue_id=entry.queue_id, actor=actor).id == entry.id


def test_join_requires_name_and_reason(make_staff, db_session):
    staff = make_staff()
    with pytest.raises(service_exceptions.ValidationError):
        _join(db_session, staff, "   ", "advising")
    with pytest.raises(service_exceptions.ValidationError):
        _join(db_session, staff, "Ada", "")


def test_skip_and_complete_only_from_active_states(make_staff, db_session):
    staff = make_staff()
    actor = staff_identity_for(staff)
    service = QueueService(db_session)
    waiting = _join(db_session, staff, "Ada")
    other = _join(db_session, staff, "Grace")

    completed = service.complete(entry_id=waiting.id, actor=actor)
    assert completed.status == EntryStatus.COMPLETED
    with pytest.raises(service_exceptions.ConflictError):
        service.skip(entry_id=waiting.id, actor=actor)

    service.call_next(queue_id=other.queue_id, actor=actor)
    skipped = service.skip(entry_id=other.id, actor=actor)
    assert skipped.status == EntryStatus.SKIPPED
    assert service.entry_status(other.id).position is None


def test_staff_cannot_manage_another_staff_queue(make_staff, db_session):
    owner = make_staff(name="Owner")
    intruder = make_staff(name="Intruder")
    service = QueueService(db_session)
    entry = _join(db_session, owner, "Ada")

    with pytest.raises(service_exceptions.AuthorizationError):
        service.call_next(queue_id=entry.queue_id, actor=staff_identity_for(intruder))
    with pytest.raises(service_exceptions.AuthorizationError):
        service.complete(entry_id=entry.id, actor=staff_identity_for(intruder))
    with pytest.raises(service_exceptions.AuthorizationError):
        service.toggle_queue_status(queue_id=entry.queue_id, actor=ANONYMOUS)


def test_admin_can_manage_any_queue(make_staff, db_session, admin_identity):
    staff = make_staff()
    service = QueueService(db_session)
    entry = _join(db_session, staff, "Ada")

    called = service.call_next(queue_id=entry.queue_id, actor=admin_identity)
    assert called.id == entry.id


def test_sweep_removes_only_expired_called_entries(make_staff, db_session):
    staff = make_staff()
    service = QueueService(db_session)
    stale = _join(db_session, staff, "Stale")
    fresh = _join(db_session, staff, "Fresh")
    waiting = _join(db_session, staff, "Waiting")

    now = utcnow()
    stale.status = EntryStatus.CALLED
    stale.called_at = now - timedelta(minutes=6)
    fresh.status = EntryStatus.CALLED
    fresh.called_at = now - timedelta(minutes=2)
    db_session.add_all([stale, fresh])
    db_session.commit()

    removed = service.sweep_unresponsive(now=now)

    assert removed >= 1
    remaining = {entry.id for entry in db_session.query(QueueEntry).filter(QueueEntry.queue_id == staff.queue.id)}
    assert stale.id not in remaining
    assert {fresh.id, waiting.id} <= remaining
    with pytest.raises(service_exceptions.NotFoundError):
        service.entry_status(stale.id)


def test_queue_numbers_are_not_reused_after_sweep(make_staff, db_session):
    staff = make_staff()
    actor = staff_identity_for(staff)
    service = QueueService(db_session)
    first = _join(db_session, staff, "Ada")
    second = _join(db_session, staff, "Grace")
    service.call_next(queue_id=first.queue_id, actor=actor)
    service.call_next(queue_id=first.queue_id, actor=actor)

    assert service.sweep_unresponsive(now=utcnow() + timedelta(minutes=10)) >= 2
    assert db_session.query(QueueEntry).filter(QueueEntry.queue_id == first.queue_id).count() == 0

    third = _join(db_session, staff, "Linus")
    assert third.queue_number == 3
    assert second.queue_number == 2


def test_called_entry_exposes_response_deadline(make_staff, db_session):
    staff = make_staff()
    service = QueueService(db_session)
    entry = _join(db_session, staff, "Ada")
    called = service.call_next(queue_id=entry.queue_id, actor=staff_identity_for(staff))

    view = service.entry_status(called.id)

    assert view.position == 1
    assert view.response_deadline is not None
    assert view.response_deadline == as_utc(called.called_at) + timedelta(minutes=5)
