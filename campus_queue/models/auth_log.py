from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDPrimaryKeyMixin, utcnow
from .enums import AuthActorType, AuthAction


class AuthLog(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "auth_logs"

    actor_type: Mapped[AuthActorType] = mapped_column(
        Enum(AuthActorType, name="auth_actor_type"), default=AuthActorType.ADMIN
    )
    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    action: Mapped[AuthAction] = mapped_column(Enum(AuthAction, name="auth_action"), default=AuthAction.LOGIN)
    ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(255), nullable=True)
    meta: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
