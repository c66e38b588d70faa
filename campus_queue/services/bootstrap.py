import logging

from passlib.exc import UnknownHashError
from sqlalchemy.exc import IntegrityError

from campus_queue.core import security
from campus_queue.core.config import get_settings
from campus_queue.core.db import session_scope
from campus_queue.models import Account, Queue, QueueStatus, Staff, User, UserRole

from .staff_service import StaffService, invalidate_public_caches

logger = logging.getLogger(__name__)

SAMPLE_STAFF = (
    ("Dr. Sarah Johnson", "sarah.johnson@university.edu", "Computer Science"),
    ("Prof. Michael Chen", "michael.chen@university.edu", "Computer Science"),
    ("Dr. Emily Rodriguez", "emily.rodriguez@university.edu", "Computer Science"),
)


def ensure_default_admin() -> None:
    """Create or update the default admin account defined via environment variables."""

    settings = get_settings()
    email = (settings.DEFAULT_ADMIN_EMAIL or "").strip().lower()
    password = settings.DEFAULT_ADMIN_PASSWORD
    name = (settings.DEFAULT_ADMIN_NAME or "Admin").strip() or "Admin"

    if not email or not password:
        logger.info("Default admin bootstrap skipped: email or password not configured")
        return

    with session_scope() as db:
        account = db.query(Account).filter(Account.email == email).first()
        profile = db.query(User).filter(User.email == email).first()

        if account is None:
            db.add(Account(email=email, password_hash=security.hash_password(password)))
            logger.info("Default admin account '%s' created", email)
        else:
            needs_password_update = False
            try:
                needs_password_update = not security.verify_password(password, account.password_hash)
            except (ValueError, UnknownHashError):
                needs_password_update = True
            if needs_password_update:
                account.password_hash = security.hash_password(password)
                logger.info("Default admin '%s' password updated", email)

        if profile is None:
            db.add(User(email=email, name=name, role=UserRole.ADMIN))
        elif profile.name != name or profile.role != UserRole.ADMIN:
            profile.name = name
            profile.role = UserRole.ADMIN

        try:
            db.flush()
        except IntegrityError:
            logger.warning(
                "Default admin bootstrap encountered integrity error (email=%s). Another process may have created it.",
                email,
            )
            db.rollback()


def seed_sample_staff() -> int:
    """Insert the demo staff members, each with an open queue, into an empty staff table."""

    with session_scope() as db:
        if db.query(Staff.id).first() is not None:
            return 0
        service = StaffService(db)
        for name, email, department in SAMPLE_STAFF:
            staff = Staff(name=name, email=email, department=department, unique_id=service.generate_unique_id())
            staff.queue = Queue(status=QueueStatus.OPEN)
            db.add(staff)
            db.flush()
    invalidate_public_caches()
    logger.info("Seeded %d sample staff members", len(SAMPLE_STAFF))
    return len(SAMPLE_STAFF)
