import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from campus_queue.core.dependencies import get_current_admin, get_db
from campus_queue.core.identity import AdminIdentity
from campus_queue.schemas import StaffAdminRead, StaffCreateRequest, StaffListResponse, StaffUpdateRequest
from campus_queue.services import StaffService
from campus_queue.services import exceptions as service_exceptions

router = APIRouter(prefix="/staff", tags=["staff"])


@router.get("", response_model=StaffListResponse)
def list_staff(
    search: str | None = Query(default=None, min_length=1),
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
    admin: AdminIdentity = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> StaffListResponse:
    service = StaffService(db)
    total, staff_members = service.list_staff(page=page, size=size, search=search)
    return StaffListResponse(
        pagination={"page": page, "size": size, "total": total},
        items=[StaffAdminRead.model_validate(member) for member in staff_members],
    )


@router.post("", response_model=StaffAdminRead, status_code=status.HTTP_201_CREATED)
def create_staff(
    payload: StaffCreateRequest,
    admin: AdminIdentity = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> StaffAdminRead:
    service = StaffService(db)
    try:
        staff = service.create_staff(
            name=payload.name,
            email=payload.email,
            department=payload.department,
            actor=admin,
        )
    except service_exceptions.ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except service_exceptions.ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return StaffAdminRead.model_validate(staff)


@router.get("/{staff_id}", response_model=StaffAdminRead)
def get_staff(
    staff_id: uuid.UUID,
    admin: AdminIdentity = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> StaffAdminRead:
    service = StaffService(db)
    try:
        staff = service.get_staff(staff_id)
    except service_exceptions.NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return StaffAdminRead.model_validate(staff)


@router.put("/{staff_id}", response_model=StaffAdminRead)
def update_staff(
    staff_id: uuid.UUID,
    payload: StaffUpdateRequest,
    admin: AdminIdentity = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> StaffAdminRead:
    data = payload.model_dump(exclude_unset=True)
    service = StaffService(db)
    try:
        staff = service.update_staff(
            staff_id=staff_id,
            actor=admin,
            name=data.get("name"),
            email=data.get("email"),
            department=data.get("department"),
        )
    except service_exceptions.NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except service_exceptions.ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return StaffAdminRead.model_validate(staff)


@router.post("/{staff_id}/regenerate-id", response_model=StaffAdminRead)
def regenerate_unique_id(
    staff_id: uuid.UUID,
    admin: AdminIdentity = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> StaffAdminRead:
    service = StaffService(db)
    try:
        staff = service.regenerate_unique_id(staff_id=staff_id, actor=admin)
    except service_exceptions.NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except service_exceptions.ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return StaffAdminRead.model_validate(staff)


@router.delete("/{staff_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_staff(
    staff_id: uuid.UUID,
    admin: AdminIdentity = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> None:
    service = StaffService(db)
    try:
        service.delete_staff(staff_id=staff_id, actor=admin)
    except service_exceptions.NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except service_exceptions.ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
