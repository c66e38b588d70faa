import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import InvalidTokenError
from sqlalchemy.orm import Session

from campus_queue.core import security
from campus_queue.core.db import get_db_session
from campus_queue.core.identity import ANONYMOUS, AdminIdentity, Identity, StaffIdentity
from campus_queue.models import AuthActorType, Staff, User, UserRole


bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Session:
    yield from get_db_session()


def _decode(token: str) -> dict:
    try:
        return security.decode_access_token(token)
    except InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


def _subject(payload: dict) -> uuid.UUID:
    try:
        return uuid.UUID(payload["sub"])
    except (KeyError, ValueError, TypeError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


def resolve_identity(db: Session, token: str) -> Identity:
    """Turn an access token into the identity it was issued for."""

    payload = _decode(token)
    actor_type = payload.get("actor_type")
    subject = _subject(payload)

    if actor_type == AuthActorType.ADMIN.value:
        user = db.query(User).filter(User.id == subject, User.role == UserRole.ADMIN).first()
        if not user:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin not found")
        return AdminIdentity(user_id=user.id, email=user.email, name=user.name)

    if actor_type == AuthActorType.STAFF.value:
        staff = db.query(Staff).filter(Staff.id == subject).first()
        if not staff:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Staff not found")
        return StaffIdentity(staff_id=staff.id, name=staff.name, department=staff.department)

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def get_identity(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    if credentials is None:
        return ANONYMOUS
    if credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication scheme")
    return resolve_identity(db, credentials.credentials)


def _require_authenticated(identity: Identity) -> None:
    if identity.kind == "anonymous":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")


def get_current_admin(identity: Identity = Depends(get_identity)) -> AdminIdentity:
    _require_authenticated(identity)
    if not isinstance(identity, AdminIdentity):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admins only")
    return identity


def get_current_staff(identity: Identity = Depends(get_identity)) -> StaffIdentity:
    _require_authenticated(identity)
    if not isinstance(identity, StaffIdentity):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Staff only")
    return identity


def get_queue_operator(identity: Identity = Depends(get_identity)) -> Identity:
    """Admins and staff may operate queues; ownership is checked by the service."""

    _require_authenticated(identity)
    return identity
