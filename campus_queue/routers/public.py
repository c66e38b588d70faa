from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from campus_queue.core.dependencies import get_db
from campus_queue.schemas import PublicOverview, StaffDirectoryItem
from campus_queue.services import StaffService

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/staff", response_model=list[StaffDirectoryItem])
def staff_directory(db: Session = Depends(get_db)) -> list[StaffDirectoryItem]:
    return [StaffDirectoryItem(**item) for item in StaffService(db).staff_directory()]


@router.get("/overview", response_model=PublicOverview)
def overview(db: Session = Depends(get_db)) -> PublicOverview:
    return PublicOverview(**StaffService(db).public_overview())
