import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from campus_queue.core.dependencies import get_current_staff, get_db, get_queue_operator
from campus_queue.core.identity import Identity, StaffIdentity
from campus_queue.models import EntryStatus
from campus_queue.schemas import (
    EntryStatusResponse,
    JoinQueueRequest,
    QueueDashboardResponse,
    QueueEntryRead,
    QueueRead,
    QueueStatusUpdate,
    SweepResponse,
)
from campus_queue.services import EntryStatusView, QueueService
from campus_queue.services import exceptions as service_exceptions

router = APIRouter(prefix="/queues", tags=["queues"])

_STATUS_BY_ERROR = (
    (service_exceptions.ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (service_exceptions.AuthorizationError, status.HTTP_403_FORBIDDEN),
    (service_exceptions.NotFoundError, status.HTTP_404_NOT_FOUND),
    (service_exceptions.ConflictError, status.HTTP_409_CONFLICT),
)


def _http_error(exc: service_exceptions.ServiceError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _status_response(view: EntryStatusView) -> EntryStatusResponse:
    return EntryStatusResponse(
        entry=QueueEntryRead.model_validate(view.entry),
        position=view.position,
        estimated_wait_minutes=view.estimated_wait_minutes,
        response_deadline=view.response_deadline,
    )


def _dashboard(service: QueueService, queue) -> QueueDashboardResponse:
    entries = service.list_active_entries(queue.id)
    return QueueDashboardResponse(
        queue=QueueRead.model_validate(queue),
        entries=[QueueEntryRead.model_validate(entry) for entry in entries],
        waiting_count=sum(1 for entry in entries if entry.status == EntryStatus.WAITING),
        called_count=sum(1 for entry in entries if entry.status == EntryStatus.CALLED),
    )


@router.post("/join", response_model=EntryStatusResponse, status_code=status.HTTP_201_CREATED)
def join_queue(payload: JoinQueueRequest, db: Session = Depends(get_db)) -> EntryStatusResponse:
    service = QueueService(db)
    try:
        entry = service.join_queue(
            staff_id=payload.staff_id,
            student_name=payload.student_name,
            reason=payload.reason,
        )
    except service_exceptions.ServiceError as exc:
        raise _http_error(exc) from exc
    return _status_response(service.describe_entry(entry))


@router.get("/entries/{entry_id}", response_model=EntryStatusResponse)
def entry_status(entry_id: uuid.UUID, db: Session = Depends(get_db)) -> EntryStatusResponse:
    service = QueueService(db)
    try:
        view = service.entry_status(entry_id)
    except service_exceptions.NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _status_response(view)


@router.get("/mine", response_model=QueueDashboardResponse)
def my_queue(
    staff: StaffIdentity = Depends(get_current_staff),
    db: Session = Depends(get_db),
) -> QueueDashboardResponse:
    service = QueueService(db)
    try:
        queue = service.get_queue_for_staff(staff.staff_id)
    except service_exceptions.NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _dashboard(service, queue)


@router.get("/{queue_id}/entries", response_model=QueueDashboardResponse)
def queue_entries(
    queue_id: uuid.UUID,
    actor: Identity = Depends(get_queue_operator),
    db: Session = Depends(get_db),
) -> QueueDashboardResponse:
    service = QueueService(db)
    try:
        queue = service.get_queue(queue_id)
        service.authorize_queue(queue, actor)
    except service_exceptions.ServiceError as exc:
        raise _http_error(exc) from exc
    return _dashboard(service, queue)


@router.post("/{queue_id}/call-next", response_model=QueueEntryRead)
def call_next(
    queue_id: uuid.UUID,
    actor: Identity = Depends(get_queue_operator),
    db: Session = Depends(get_db),
) -> QueueEntryRead:
    service = QueueService(db)
    try:
        entry = service.call_next(queue_id=queue_id, actor=actor)
    except service_exceptions.ServiceError as exc:
        raise _http_error(exc) from exc
    return QueueEntryRead.model_validate(entry)


@router.post("/{queue_id}/status", response_model=QueueRead)
def set_queue_status(
    queue_id: uuid.UUID,
    payload: QueueStatusUpdate,
    actor: Identity = Depends(get_queue_operator),
    db: Session = Depends(get_db),
) -> QueueRead:
    service = QueueService(db)
    try:
        queue = service.set_queue_status(queue_id=queue_id, status=payload.status, actor=actor)
    except service_exceptions.ServiceError as exc:
        raise _http_error(exc) from exc
    return QueueRead.model_validate(queue)


@router.post("/{queue_id}/toggle", response_model=QueueRead)
def toggle_queue_status(
    queue_id: uuid.UUID,
    actor: Identity = Depends(get_queue_operator),
    db: Session = Depends(get_db),
) -> QueueRead:
    service = QueueService(db)
    try:
        queue = service.toggle_queue_status(queue_id=queue_id, actor=actor)
    except service_exceptions.ServiceError as exc:
        raise _http_error(exc) from exc
    return QueueRead.model_validate(queue)


@router.post("/entries/{entry_id}/skip", response_model=QueueEntryRead)
def skip_entry(
    entry_id: uuid.UUID,
    actor: Identity = Depends(get_queue_operator),
    db: Session = Depends(get_db),
) -> QueueEntryRead:
    service = QueueService(db)
    try:
        entry = service.skip(entry_id=entry_id, actor=actor)
    except service_exceptions.ServiceError as exc:
        raise _http_error(exc) from exc
    return QueueEntryRead.model_validate(entry)


@router.post("/entries/{entry_id}/complete", response_model=QueueEntryRead)
def complete_entry(
    entry_id: uuid.UUID,
    actor: Identity = Depends(get_queue_operator),
    db: Session = Depends(get_db),
) -> QueueEntryRead:
    service = QueueService(db)
    try:
        entry = service.complete(entry_id=entry_id, actor=actor)
    except service_exceptions.ServiceError as exc:
        raise _http_error(exc) from exc
    return QueueEntryRead.model_validate(entry)


@router.post("/sweep", response_model=SweepResponse)
def sweep_unresponsive(
    actor: Identity = Depends(get_queue_operator),
    db: Session = Depends(get_db),
) -> SweepResponse:
    removed = QueueService(db).sweep_unresponsive()
    return SweepResponse(removed=removed)
