from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from campus_queue.models import AuthAction, AuthActorType, AuthLog

USER_AGENT_MAX_LENGTH = 255


@dataclass(frozen=True)
class ClientInfo:
    """Where an authentication attempt came from."""

    ip: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_request(cls, request: Request) -> "ClientInfo":
        return cls(
            ip=getattr(request.state, "ip", None),
            user_agent=getattr(request.state, "user_agent", None),
        )


def record_auth_event(
    db: Session,
    *,
    actor_type: AuthActorType,
    action: AuthAction,
    client: Optional[ClientInfo] = None,
    actor_id: Any = None,
    email: Optional[str] = None,
    **meta: Any,
) -> AuthLog:
    """Stage an audit row in the caller's transaction; extra keywords become ``meta``."""

    client = client or ClientInfo()
    entry = AuthLog(
        actor_type=actor_type,
        action=action,
        actor_id=None if actor_id is None else str(actor_id),
        email=email,
        ip=client.ip,
        user_agent=(client.user_agent or "")[:USER_AGENT_MAX_LENGTH] or None,
        meta=meta or None,
    )
    db.add(entry)
    db.flush()
    return entry
