from campus_queue.core.identity import StaffIdentity
from campus_queue.models import Staff


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def staff_identity_for(staff: Staff) -> StaffIdentity:
    return StaffIdentity(staff_id=staff.id, name=staff.name, department=staff.department)
