from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from campus_queue.core.dependencies import get_db, get_identity
from campus_queue.core.identity import AdminIdentity, Identity, StaffIdentity
from campus_queue.core.security import TokenPair
from campus_queue.schemas import (
    AdminAuthResponse,
    AdminLoginRequest,
    AdminProfile,
    AdminRead,
    AdminSignupRequest,
    AnonymousProfile,
    MeResponse,
    RefreshRequest,
    StaffAccessRequest,
    StaffAuthResponse,
    StaffProfile,
    StaffRead,
    TokenResponse,
)
from campus_queue.services import AuthService
from campus_queue.services.auth_log_service import ClientInfo
from campus_queue.services import exceptions as service_exceptions

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(tokens: TokenPair) -> TokenResponse:
    return TokenResponse(access_token=tokens.access, refresh_token=tokens.refresh)


@router.post("/admin/signup", response_model=AdminAuthResponse, status_code=status.HTTP_201_CREATED)
def admin_signup(
    payload: AdminSignupRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> AdminAuthResponse:
    service = AuthService(db)
    try:
        admin, tokens = service.admin_signup(
            email=payload.email,
            password=payload.password,
            name=payload.name,
            client=ClientInfo.from_request(request),
        )
    except service_exceptions.ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except service_exceptions.ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return AdminAuthResponse(
        admin=AdminRead.model_validate(admin),
        tokens=_token_response(tokens),
    )


@router.post("/admin/login", response_model=AdminAuthResponse)
def admin_login(
    payload: AdminLoginRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> AdminAuthResponse:
    service = AuthService(db)
    try:
        admin, tokens = service.admin_login(
            email=payload.email,
            password=payload.password,
            client=ClientInfo.from_request(request),
        )
    except service_exceptions.AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except service_exceptions.AuthorizationError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    return AdminAuthResponse(
        admin=AdminRead.model_validate(admin),
        tokens=_token_response(tokens),
    )


@router.post("/staff/access", response_model=StaffAuthResponse)
def staff_access(
    payload: StaffAccessRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> StaffAuthResponse:
    service = AuthService(db)
    try:
        staff, tokens = service.staff_access(code=payload.unique_id, client=ClientInfo.from_request(request))
    except service_exceptions.ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except service_exceptions.AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    return StaffAuthResponse(
        staff=StaffRead.model_validate(staff),
        tokens=_token_response(tokens),
    )


@router.post("/refresh", response_model=TokenResponse)
def refresh_tokens(payload: RefreshRequest, db: Session = Depends(get_db)) -> TokenResponse:
    if not payload.refresh_token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="refresh_token is required")
    service = AuthService(db)
    try:
        tokens = service.refresh_tokens(refresh_token=payload.refresh_token)
    except service_exceptions.AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return _token_response(tokens)


@router.get("/me", response_model=MeResponse)
def read_identity(identity: Identity = Depends(get_identity)) -> MeResponse:
    if isinstance(identity, AdminIdentity):
        return MeResponse(identity=AdminProfile(user_id=identity.user_id, email=identity.email, name=identity.name))
    if isinstance(identity, StaffIdentity):
        return MeResponse(
            identity=StaffProfile(staff_id=identity.staff_id, name=identity.name, department=identity.department)
        )
    return MeResponse(identity=AnonymousProfile())
