import logging
import uuid
from typing import Optional

from jwt import InvalidTokenError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_queue.core import security
from campus_queue.core.security import TokenPair
from campus_queue.models import Account, AuthAction, AuthActorType, Staff, User, UserRole

from . import exceptions
from .auth_log_service import ClientInfo, record_auth_event
from .staff_service import StaffService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
RESERVED_CLAIMS = frozenset({"sub", "exp", "iat", "scope", "actor_type"})


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def issue_tokens(self, *, actor_type: AuthActorType, subject_id: uuid.UUID, claims: dict | None = None) -> TokenPair:
        return security.issue_token_pair(subject=str(subject_id), actor_type=actor_type.value, claims=claims)

    def _audit(self, action: AuthAction, actor_type: AuthActorType, client: Optional[ClientInfo], **fields) -> None:
        record_auth_event(self.db, actor_type=actor_type, action=action, client=client, **fields)
        self.db.commit()

    def admin_signup(
        self,
        *,
        email: str,
        password: str,
        name: str,
        client: Optional[ClientInfo] = None,
    ) -> tuple[User, TokenPair]:
        """Create the login account and its admin profile in one transaction."""

        email = _normalize_email(email)
        name = name.strip()
        if not email or not name:
            raise exceptions.ValidationError("Please fill in all fields")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise exceptions.ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if self.db.query(Account.id).filter(Account.email == email).first():
            raise exceptions.ConflictError("An account with this email already exists")

        profile = User(email=email, name=name, role=UserRole.ADMIN)
        self.db.add_all([Account(email=email, password_hash=security.hash_password(password)), profile])
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            raise exceptions.ConflictError("An account with this email already exists") from exc

        self._audit(AuthAction.SIGNUP, AuthActorType.ADMIN, client, actor_id=profile.id, email=email)
        self.db.refresh(profile)
        logger.info("Admin account created for %s", email)
        return profile, self.issue_tokens(actor_type=AuthActorType.ADMIN, subject_id=profile.id)

    def admin_login(
        self,
        *,
        email: str,
        password: str,
        client: Optional[ClientInfo] = None,
    ) -> tuple[User, TokenPair]:
        email = _normalize_email(email)
        account = self.db.query(Account).filter(Account.email == email).first()
        if account is None or not security.verify_password(password, account.password_hash):
            self._audit(AuthAction.FAILED_LOGIN, AuthActorType.ADMIN, client, email=email)
            raise exceptions.AuthenticationError("Invalid email or password")

        # Valid credentials are not enough: the account needs an admin profile.
        profile = self.db.query(User).filter(User.email == email, User.role == UserRole.ADMIN).first()
        if profile is None:
            self._audit(AuthAction.ACCESS_DENIED, AuthActorType.ADMIN, client, email=email, reason="no_admin_profile")
            raise exceptions.AuthorizationError("You don't have admin privileges")

        self._audit(AuthAction.LOGIN, AuthActorType.ADMIN, client, actor_id=profile.id, email=email)
        return profile, self.issue_tokens(actor_type=AuthActorType.ADMIN, subject_id=profile.id)

    def staff_access(self, *, code: str, client: Optional[ClientInfo] = None) -> tuple[Staff, TokenPair]:
        """Exchange a staff access code for tokens.

        The code is checked only here; tokens issued before a regeneration
        stay valid until they expire.
        """

        normalized = code.strip().upper()
        if not normalized:
            raise exceptions.ValidationError("Please enter your unique ID")

        staff = StaffService(self.db).find_by_access_code(normalized)
        if staff is None:
            self._audit(AuthAction.FAILED_STAFF_ACCESS, AuthActorType.STAFF, client)
            raise exceptions.AuthenticationError("Invalid unique ID. Please check and try again.")

        self._audit(AuthAction.STAFF_ACCESS, AuthActorType.STAFF, client, actor_id=staff.id, email=staff.email)
        return staff, self.issue_tokens(actor_type=AuthActorType.STAFF, subject_id=staff.id)

    def refresh_tokens(self, *, refresh_token: str) -> TokenPair:
        try:
            payload = security.decode_refresh_token(refresh_token)
            actor_type = AuthActorType(payload.get("actor_type"))
            subject_id = uuid.UUID(payload["sub"])
        except (InvalidTokenError, KeyError, ValueError) as exc:
            raise exceptions.AuthenticationError("Invalid refresh token") from exc

        if actor_type is AuthActorType.ADMIN:
            subject = self.db.query(User.id).filter(User.id == subject_id, User.role == UserRole.ADMIN).first()
        else:
            subject = self.db.query(Staff.id).filter(Staff.id == subject_id).first()
        if subject is None:
            raise exceptions.AuthenticationError(f"{actor_type.value.capitalize()} not found")

        claims = {key: value for key, value in payload.items() if key not in RESERVED_CLAIMS}
        return self.issue_tokens(actor_type=actor_type, subject_id=subject_id, claims=claims)
